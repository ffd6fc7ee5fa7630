"""
SQL implementations of the collaborator interfaces, all sharing one Session.
"""

import logging
from collections.abc import Callable
from datetime import date
from typing import Any, TypeVar

from sqlalchemy import delete, func, update
from sqlmodel import Session, select

from ledger.core.security import RBACService, UserRole
from ledger.domain.entities import Account, ExchangeRate, LedgerEntry, VoucherEntity
from ledger.domain.errors import ConflictError, NotFoundError, PermissionDeniedError
from ledger.domain.interfaces import (
    IAccountingPolicyConfigProvider,
    IAccountLookupService,
    IExchangeRateRepository,
    ILedgerRepository,
    IPermissionChecker,
    ITransactionManager,
    IUserAccessScopeProvider,
    IVoucherRepository,
    UserAccessScope,
)
from ledger.domain.policy_config import AccountingPolicyConfig
from ledger.domain.value_objects import VoucherStatus
from ledger.infrastructure.database.models import (
    AccountingPolicyConfigRecord,
    AccountRecord,
    CompanyUserRecord,
    ExchangeRateRecord,
    LedgerEntryRecord,
    UserAccessScopeRecord,
    VoucherRecord,
)
from ledger.infrastructure.mappers import (
    exchange_rate_to_record,
    ledger_entry_to_record,
    record_to_account,
    record_to_exchange_rate,
    record_to_ledger_entry,
    record_to_policy_config,
    record_to_scope,
    record_to_voucher,
    voucher_record_values,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SqlTransactionManager(ITransactionManager):
    """
    Commits when the outermost transaction returns and rolls back on any
    exception. Nested calls join the outer transaction.
    """

    def __init__(self, session: Session):
        self.session = session
        self._depth = 0

    def run_transaction(self, fn: Callable[[Any], T]) -> T:
        if self._depth > 0:
            self._depth += 1
            try:
                return fn(self.session)
            finally:
                self._depth -= 1

        self._depth = 1
        try:
            result = fn(self.session)
            self.session.commit()
            return result
        except Exception:
            self.session.rollback()
            logger.debug("Transaction rolled back", exc_info=True)
            raise
        finally:
            self._depth = 0


class SqlVoucherRepository(IVoucherRepository):

    def __init__(self, session: Session):
        self.session = session

    def find_by_id(self, company_id: str, voucher_id: str) -> VoucherEntity | None:
        statement = (
            select(VoucherRecord)
            .where(VoucherRecord.company_id == company_id, VoucherRecord.id == voucher_id)
            .with_for_update()
        )
        record = self.session.exec(statement).first()
        return record_to_voucher(record) if record else None

    def save(self, voucher: VoucherEntity) -> VoucherEntity:
        values = voucher_record_values(voucher)
        existing = self.session.get(VoucherRecord, voucher.id)
        if existing is None:
            self.session.add(VoucherRecord(id=voucher.id, created_at=voucher.created_at, **values))
            self.session.flush()
            return voucher

        # Optimistic check: the stored row must be the version this one was derived from.
        result = self.session.execute(
            update(VoucherRecord)
            .where(VoucherRecord.id == voucher.id, VoucherRecord.version == voucher.version - 1)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ConflictError(
                "CONCURRENT_MODIFICATION",
                f"Voucher {voucher.voucher_no} was modified by another request",
            )
        self.session.expire(existing)
        return voucher

    def find_by_company(
        self,
        company_id: str,
        status: VoucherStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[VoucherEntity]:
        statement = select(VoucherRecord).where(VoucherRecord.company_id == company_id)
        if status is not None:
            statement = statement.where(VoucherRecord.status == VoucherStatus(status).value)
        statement = statement.order_by(
            VoucherRecord.voucher_date.desc(), VoucherRecord.created_at.desc()
        ).offset(offset)
        if limit is not None:
            statement = statement.limit(limit)
        return [record_to_voucher(r) for r in self.session.exec(statement).all()]

    def delete(self, company_id: str, voucher_id: str) -> None:
        record = self.session.get(VoucherRecord, voucher_id)
        if record is None or record.company_id != company_id:
            raise NotFoundError("VOUCHER_NOT_FOUND", f"Voucher {voucher_id} not found")
        self.session.delete(record)
        self.session.flush()

    def find_by_reversal_of(self, company_id: str, original_voucher_id: str) -> VoucherEntity | None:
        statement = select(VoucherRecord).where(
            VoucherRecord.company_id == company_id,
            VoucherRecord.reversal_of_voucher_id == original_voucher_id,
        )
        record = self.session.exec(statement).first()
        return record_to_voucher(record) if record else None

    def find_replacement_of(self, company_id: str, original_voucher_id: str) -> VoucherEntity | None:
        statement = select(VoucherRecord).where(
            VoucherRecord.company_id == company_id,
            VoucherRecord.replaces_voucher_id == original_voucher_id,
        )
        record = self.session.exec(statement).first()
        return record_to_voucher(record) if record else None

    def count_for_prefix(self, company_id: str, prefix: str) -> int:
        statement = select(func.count()).select_from(VoucherRecord).where(
            VoucherRecord.company_id == company_id,
            VoucherRecord.voucher_no.startswith(prefix),
        )
        return self.session.exec(statement).one()


class SqlLedgerRepository(ILedgerRepository):

    def __init__(self, session: Session):
        self.session = session

    def record_for_voucher(self, voucher: VoucherEntity, tx: Any = None) -> list[LedgerEntry]:
        session = tx if isinstance(tx, Session) else self.session
        entries = LedgerEntry.from_voucher(voucher)
        for entry in entries:
            session.add(ledger_entry_to_record(entry))
        session.flush()
        return entries

    def delete_for_voucher(self, company_id: str, voucher_id: str) -> None:
        self.session.execute(
            delete(LedgerEntryRecord).where(
                LedgerEntryRecord.company_id == company_id,
                LedgerEntryRecord.voucher_id == voucher_id,
            )
        )

    def get_entries_for_voucher(self, company_id: str, voucher_id: str) -> list[LedgerEntry]:
        statement = (
            select(LedgerEntryRecord)
            .where(
                LedgerEntryRecord.company_id == company_id,
                LedgerEntryRecord.voucher_id == voucher_id,
            )
            .order_by(LedgerEntryRecord.line_id)
        )
        return [record_to_ledger_entry(r) for r in self.session.exec(statement).all()]


class SqlAccountLookupService(IAccountLookupService):

    def __init__(self, session: Session):
        self.session = session

    def get_accounts_by_ids(self, company_id: str, ids: list[str]) -> list[Account]:
        if not ids:
            return []
        statement = select(AccountRecord).where(
            AccountRecord.company_id == company_id, AccountRecord.id.in_(ids)
        )
        return [record_to_account(r) for r in self.session.exec(statement).all()]

    def get_accounts_by_codes(self, company_id: str, codes: list[str]) -> list[Account]:
        if not codes:
            return []
        statement = select(AccountRecord).where(
            AccountRecord.company_id == company_id, AccountRecord.code.in_(codes)
        )
        return [record_to_account(r) for r in self.session.exec(statement).all()]


class SqlAccountingPolicyConfigProvider(IAccountingPolicyConfigProvider):
    """Reads the company row; a company without one gets the defaults (mode A)."""

    def __init__(self, session: Session, default_base_currency: str = "USD"):
        self.session = session
        self.default_base_currency = default_base_currency

    def get_config(self, company_id: str) -> AccountingPolicyConfig:
        record = self.session.get(AccountingPolicyConfigRecord, company_id)
        if record is None:
            return AccountingPolicyConfig(base_currency=self.default_base_currency)
        return record_to_policy_config(record)


class SqlUserAccessScopeProvider(IUserAccessScopeProvider):

    def __init__(self, session: Session):
        self.session = session

    def get_scope(self, user_id: str, company_id: str) -> UserAccessScope:
        statement = select(UserAccessScopeRecord).where(
            UserAccessScopeRecord.company_id == company_id,
            UserAccessScopeRecord.user_id == user_id,
        )
        record = self.session.exec(statement).first()
        return record_to_scope(record) if record else UserAccessScope(user_id=user_id)


class SqlExchangeRateRepository(IExchangeRateRepository):

    def __init__(self, session: Session):
        self.session = session

    def _pair(self, company_id: str, from_currency: str, to_currency: str):
        return select(ExchangeRateRecord).where(
            ExchangeRateRecord.company_id == company_id,
            ExchangeRateRecord.from_currency == from_currency,
            ExchangeRateRecord.to_currency == to_currency,
        )

    def _latest_first(self, statement):
        return statement.order_by(
            ExchangeRateRecord.rate_date.desc(), ExchangeRateRecord.created_at.desc()
        )

    def get_recent_rates(
        self,
        company_id: str,
        from_currency: str,
        to_currency: str,
        limit: int = 10,
    ) -> list[ExchangeRate]:
        statement = self._latest_first(self._pair(company_id, from_currency, to_currency)).limit(limit)
        return [record_to_exchange_rate(r) for r in self.session.exec(statement).all()]

    def get_most_recent_rate_before_date(
        self,
        company_id: str,
        from_currency: str,
        to_currency: str,
        on_or_before: date,
    ) -> ExchangeRate | None:
        statement = self._latest_first(
            self._pair(company_id, from_currency, to_currency).where(
                ExchangeRateRecord.rate_date <= on_or_before
            )
        )
        record = self.session.exec(statement).first()
        return record_to_exchange_rate(record) if record else None

    def get_rate_for_date(
        self,
        company_id: str,
        from_currency: str,
        to_currency: str,
        on: date,
    ) -> ExchangeRate | None:
        statement = (
            self._pair(company_id, from_currency, to_currency)
            .where(ExchangeRateRecord.rate_date == on)
            .order_by(ExchangeRateRecord.created_at.desc())
        )
        record = self.session.exec(statement).first()
        return record_to_exchange_rate(record) if record else None

    def save(self, rate: ExchangeRate) -> ExchangeRate:
        self.session.add(exchange_rate_to_record(rate))
        self.session.commit()
        return rate

    def delete(self, company_id: str, rate_id: str) -> None:
        record = self.session.get(ExchangeRateRecord, rate_id)
        if record is None or record.company_id != company_id:
            raise NotFoundError("EXCHANGE_RATE_NOT_FOUND", f"Exchange rate {rate_id} not found")
        self.session.delete(record)
        self.session.commit()


class RBACPermissionChecker(IPermissionChecker):
    """Resolves the user's company role and checks it against ROLE_PERMISSIONS."""

    def __init__(self, session: Session, rbac: RBACService | None = None):
        self.session = session
        self.rbac = rbac or RBACService()

    def assert_or_throw(self, user_id: str, company_id: str, permission: str) -> None:
        statement = select(CompanyUserRecord).where(
            CompanyUserRecord.company_id == company_id,
            CompanyUserRecord.user_id == user_id,
            CompanyUserRecord.is_active == True,  # noqa: E712
        )
        membership = self.session.exec(statement).first()
        if membership is None:
            raise PermissionDeniedError(
                "NOT_A_COMPANY_MEMBER",
                f"User {user_id} does not belong to company {company_id}",
            )
        if not self.rbac.has_permission(UserRole(membership.role), permission):
            raise PermissionDeniedError(
                "PERMISSION_DENIED",
                f"Role {membership.role} lacks permission {permission}",
                {"permission": permission},
            )
