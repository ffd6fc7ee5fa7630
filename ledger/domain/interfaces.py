"""
Collaborator interfaces consumed by the use cases. Infrastructure provides the
SQL implementations; tests provide in-memory ones.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from typing import Any, TypeVar

from .entities import Account, ExchangeRate, LedgerEntry, VoucherEntity
from .policy_config import AccountingPolicyConfig
from .value_objects import VoucherStatus

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class UserAccessScope:
    user_id: str
    is_super: bool = False
    unit_ids: tuple[str, ...] = ()


class IVoucherRepository(ABC):

    @abstractmethod
    def find_by_id(self, company_id: str, voucher_id: str) -> VoucherEntity | None:
        ...

    @abstractmethod
    def save(self, voucher: VoucherEntity) -> VoucherEntity:
        ...

    @abstractmethod
    def find_by_company(
        self,
        company_id: str,
        status: VoucherStatus | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[VoucherEntity]:
        ...

    @abstractmethod
    def delete(self, company_id: str, voucher_id: str) -> None:
        ...

    @abstractmethod
    def find_by_reversal_of(self, company_id: str, original_voucher_id: str) -> VoucherEntity | None:
        ...

    @abstractmethod
    def find_replacement_of(self, company_id: str, original_voucher_id: str) -> VoucherEntity | None:
        ...

    @abstractmethod
    def count_for_prefix(self, company_id: str, prefix: str) -> int:
        """Number of vouchers whose number starts with prefix, for auto-numbering."""


class ILedgerRepository(ABC):

    @abstractmethod
    def record_for_voucher(self, voucher: VoucherEntity, tx: Any = None) -> list[LedgerEntry]:
        ...

    @abstractmethod
    def delete_for_voucher(self, company_id: str, voucher_id: str) -> None:
        ...

    @abstractmethod
    def get_entries_for_voucher(self, company_id: str, voucher_id: str) -> list[LedgerEntry]:
        ...


class ITransactionManager(ABC):

    @abstractmethod
    def run_transaction(self, fn: Callable[[Any], T]) -> T:
        """Run fn(tx) atomically: commit on return, roll back on any exception."""


class IPermissionChecker(ABC):

    @abstractmethod
    def assert_or_throw(self, user_id: str, company_id: str, permission: str) -> None:
        ...


class IAccountingPolicyConfigProvider(ABC):

    @abstractmethod
    def get_config(self, company_id: str) -> AccountingPolicyConfig:
        ...


class IAccountLookupService(ABC):

    @abstractmethod
    def get_accounts_by_ids(self, company_id: str, ids: list[str]) -> list[Account]:
        ...

    @abstractmethod
    def get_accounts_by_codes(self, company_id: str, codes: list[str]) -> list[Account]:
        ...


class IUserAccessScopeProvider(ABC):

    @abstractmethod
    def get_scope(self, user_id: str, company_id: str) -> UserAccessScope:
        ...


class IExchangeRateRepository(ABC):

    @abstractmethod
    def get_recent_rates(
        self,
        company_id: str,
        from_currency: str,
        to_currency: str,
        limit: int = 10,
    ) -> list[ExchangeRate]:
        ...

    @abstractmethod
    def get_most_recent_rate_before_date(
        self,
        company_id: str,
        from_currency: str,
        to_currency: str,
        on_or_before: date,
    ) -> ExchangeRate | None:
        ...

    @abstractmethod
    def get_rate_for_date(
        self,
        company_id: str,
        from_currency: str,
        to_currency: str,
        on: date,
    ) -> ExchangeRate | None:
        ...

    @abstractmethod
    def save(self, rate: ExchangeRate) -> ExchangeRate:
        ...

    @abstractmethod
    def delete(self, company_id: str, rate_id: str) -> None:
        ...
