"""Infrastructure layer."""

from ledger.infrastructure.database import SessionLocal, get_db, init_db
from ledger.infrastructure.database.models import (
    AccountingPolicyConfigRecord,
    AccountRecord,
    CompanyUserRecord,
    ExchangeRateRecord,
    LedgerEntryRecord,
    UserAccessScopeRecord,
    VoucherRecord,
)
