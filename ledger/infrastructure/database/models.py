"""
Infrastructure - SQLModel database models.
"""

import datetime as dt
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


def _uuid() -> str:
    return str(uuid4())


def _now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class VoucherRecord(SQLModel, table=True):
    """Voucher document plus the columns used for lookups."""

    __tablename__ = "vouchers"

    id: str = Field(default_factory=_uuid, primary_key=True)
    company_id: str = Field(index=True)
    voucher_no: str = Field(index=True)
    type: str
    voucher_date: dt.date = Field(index=True)
    status: str = Field(index=True)
    posted_at: dt.datetime | None = None
    reversal_of_voucher_id: str | None = Field(default=None, index=True)
    replaces_voucher_id: str | None = Field(default=None, index=True)
    document: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    version: int = 1
    created_at: dt.datetime = Field(default_factory=_now)
    updated_at: dt.datetime = Field(default_factory=_now)


class LedgerEntryRecord(SQLModel, table=True):
    """Immutable ledger row. Balances are aggregated from these."""

    __tablename__ = "ledger_entries"

    id: str = Field(default_factory=_uuid, primary_key=True)
    company_id: str = Field(index=True)
    voucher_id: str = Field(index=True)
    voucher_no: str
    line_id: int
    account_id: str = Field(index=True)
    side: str
    amount: Decimal = Field(max_digits=24, decimal_places=6)
    currency: str
    base_amount: Decimal = Field(max_digits=24, decimal_places=6)
    base_currency: str
    exchange_rate: Decimal = Field(max_digits=24, decimal_places=10)
    entry_date: dt.date = Field(index=True)
    cost_center_id: str | None = Field(default=None, index=True)
    notes: str | None = None
    created_at: dt.datetime = Field(default_factory=_now)


class AccountRecord(SQLModel, table=True):
    __tablename__ = "accounts"

    id: str = Field(default_factory=_uuid, primary_key=True)
    company_id: str = Field(index=True)
    code: str = Field(index=True)
    name: str
    account_type: str
    role: str = "POSTING"
    status: str = "ACTIVE"
    currency_policy: str = "OPEN"
    fixed_currency_code: str | None = None
    allowed_currency_codes: list = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    requires_approval: bool = False
    requires_custody_confirmation: bool = False
    custodian_user_id: str | None = None
    owner_scope: str = "shared"
    owner_unit_ids: list = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    replaced_by_account_id: str | None = None
    created_at: dt.datetime = Field(default_factory=_now)


class ExchangeRateRecord(SQLModel, table=True):
    __tablename__ = "exchange_rates"

    id: str = Field(default_factory=_uuid, primary_key=True)
    company_id: str = Field(index=True)
    from_currency: str = Field(index=True)
    to_currency: str = Field(index=True)
    rate: Decimal = Field(max_digits=24, decimal_places=10)
    rate_date: dt.date = Field(index=True)
    source: str = "REFERENCE"
    created_by: str | None = None
    created_at: dt.datetime = Field(default_factory=_now)


class AccountingPolicyConfigRecord(SQLModel, table=True):
    """Governance settings, one row per company."""

    __tablename__ = "accounting_policy_configs"

    company_id: str = Field(primary_key=True)
    base_currency: str = "USD"
    financial_approval_enabled: bool = False
    fa_apply_mode: str = "ALL"
    custody_confirmation_enabled: bool = False
    locked_through_date: dt.date | None = None
    account_access_enabled: bool = False
    cost_center_enabled: bool = False
    cost_center_account_ids: list = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    cost_center_account_types: list = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    policy_error_mode: str = "FAIL_FAST"
    allow_edit_delete_posted: bool = False
    auto_post_enabled: bool = True
    updated_at: dt.datetime = Field(default_factory=_now)


class UserAccessScopeRecord(SQLModel, table=True):
    __tablename__ = "user_access_scopes"

    id: str = Field(default_factory=_uuid, primary_key=True)
    company_id: str = Field(index=True)
    user_id: str = Field(index=True)
    is_super: bool = False
    unit_ids: list = Field(default_factory=list, sa_column=Column(JSON, nullable=False))


class CompanyUserRecord(SQLModel, table=True):
    """Role of a user inside a company."""

    __tablename__ = "company_users"

    id: str = Field(default_factory=_uuid, primary_key=True)
    company_id: str = Field(index=True)
    user_id: str = Field(index=True)
    role: str = "VIEWER"
    is_active: bool = True
