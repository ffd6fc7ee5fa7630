"""
In-memory implementations of the collaborator interfaces, for use-case tests.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from ledger.application.use_cases import (
    ApproveVoucherUseCase,
    CancelVoucherUseCase,
    CheckRateDeviationUseCase,
    ConfirmCustodyUseCase,
    CreateVoucherUseCase,
    DeleteExchangeRateUseCase,
    DeleteVoucherUseCase,
    GetSuggestedRateUseCase,
    GetVoucherUseCase,
    ListVouchersUseCase,
    PostVoucherUseCase,
    RejectVoucherUseCase,
    ReverseAndReplaceUseCase,
    SaveReferenceRateUseCase,
    SubmitVoucherUseCase,
    UpdateVoucherUseCase,
)
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


class InMemoryVoucherRepository(IVoucherRepository):

    def __init__(self):
        self.vouchers: dict[str, VoucherEntity] = {}

    def snapshot(self):
        return dict(self.vouchers)

    def restore(self, state) -> None:
        self.vouchers = state

    def find_by_id(self, company_id, voucher_id):
        voucher = self.vouchers.get(voucher_id)
        if voucher is None or voucher.company_id != company_id:
            return None
        return voucher

    def save(self, voucher):
        existing = self.vouchers.get(voucher.id)
        if existing is not None and existing.version != voucher.version - 1:
            raise ConflictError("CONCURRENT_MODIFICATION", f"Voucher {voucher.voucher_no} changed")
        self.vouchers[voucher.id] = voucher
        return voucher

    def find_by_company(self, company_id, status=None, limit=None, offset=0):
        found = [
            v for v in self.vouchers.values()
            if v.company_id == company_id and (status is None or v.status is status)
        ]
        found.sort(key=lambda v: (v.date, v.created_at), reverse=True)
        end = None if limit is None else offset + limit
        return found[offset:end]

    def delete(self, company_id, voucher_id):
        if self.find_by_id(company_id, voucher_id) is None:
            raise NotFoundError("VOUCHER_NOT_FOUND", f"Voucher {voucher_id} not found")
        del self.vouchers[voucher_id]

    def find_by_reversal_of(self, company_id, original_voucher_id):
        for voucher in self.vouchers.values():
            if voucher.company_id == company_id and voucher.reversal_of_voucher_id == original_voucher_id:
                return voucher
        return None

    def find_replacement_of(self, company_id, original_voucher_id):
        for voucher in self.vouchers.values():
            if voucher.company_id == company_id and voucher.metadata.replaces_voucher_id == original_voucher_id:
                return voucher
        return None

    def count_for_prefix(self, company_id, prefix):
        return sum(
            1 for v in self.vouchers.values()
            if v.company_id == company_id and v.voucher_no.startswith(prefix)
        )


class InMemoryLedgerRepository(ILedgerRepository):
    """Set fail_on_write to simulate a storage failure while posting."""

    def __init__(self):
        self.entries: list[LedgerEntry] = []
        self.write_calls = 0
        self.fail_on_write = False

    def snapshot(self):
        return list(self.entries)

    def restore(self, state) -> None:
        self.entries = state

    def record_for_voucher(self, voucher, tx=None):
        self.write_calls += 1
        if self.fail_on_write:
            raise RuntimeError("ledger storage unavailable")
        entries = LedgerEntry.from_voucher(voucher)
        self.entries.extend(entries)
        return entries

    def delete_for_voucher(self, company_id, voucher_id):
        self.entries = [
            e for e in self.entries
            if not (e.company_id == company_id and e.voucher_id == voucher_id)
        ]

    def get_entries_for_voucher(self, company_id, voucher_id):
        found = [e for e in self.entries if e.company_id == company_id and e.voucher_id == voucher_id]
        return sorted(found, key=lambda e: e.line_id)


class FakeTransactionManager(ITransactionManager):
    """Snapshots every store on entry and restores them when fn raises."""

    def __init__(self, *stores):
        self.stores = stores
        self.depth = 0
        self.commits = 0
        self.rollbacks = 0

    def run_transaction(self, fn):
        if self.depth > 0:
            self.depth += 1
            try:
                return fn(self)
            finally:
                self.depth -= 1

        snapshots = [store.snapshot() for store in self.stores]
        self.depth = 1
        try:
            result = fn(self)
        except Exception:
            for store, state in zip(self.stores, snapshots):
                store.restore(state)
            self.rollbacks += 1
            raise
        finally:
            self.depth = 0
        self.commits += 1
        return result


class AllowAllPermissionChecker(IPermissionChecker):

    def __init__(self):
        self.checked: list[tuple[str, str, str]] = []

    def assert_or_throw(self, user_id, company_id, permission):
        self.checked.append((user_id, company_id, permission))


class RolePermissionChecker(IPermissionChecker):
    """Roles keyed by user id; unknown users are not company members."""

    def __init__(self, roles: dict[str, UserRole]):
        self.roles = roles
        self.rbac = RBACService()

    def assert_or_throw(self, user_id, company_id, permission):
        role = self.roles.get(user_id)
        if role is None:
            raise PermissionDeniedError("NOT_A_COMPANY_MEMBER", f"{user_id} is not a member")
        if not self.rbac.has_permission(role, permission):
            raise PermissionDeniedError("PERMISSION_DENIED", f"{role.value} lacks {permission}")


class StaticConfigProvider(IAccountingPolicyConfigProvider):

    def __init__(self, config: AccountingPolicyConfig | None = None):
        self.config = config or AccountingPolicyConfig()

    def get_config(self, company_id):
        return self.config


class InMemoryAccountLookup(IAccountLookupService):

    def __init__(self, accounts=()):
        self.accounts: list[Account] = list(accounts)

    def get_accounts_by_ids(self, company_id, ids):
        return [a for a in self.accounts if a.company_id == company_id and a.id in ids]

    def get_accounts_by_codes(self, company_id, codes):
        return [a for a in self.accounts if a.company_id == company_id and a.code in codes]


class StaticScopeProvider(IUserAccessScopeProvider):

    def __init__(self, scopes: dict[str, UserAccessScope] | None = None):
        self.scopes = scopes or {}

    def get_scope(self, user_id, company_id):
        return self.scopes.get(user_id, UserAccessScope(user_id=user_id))


class InMemoryExchangeRateRepository(IExchangeRateRepository):

    def __init__(self, rates=()):
        self.rates: list[ExchangeRate] = list(rates)

    def _pair(self, company_id, from_currency, to_currency):
        found = [
            r for r in self.rates
            if r.company_id == company_id
            and r.from_currency == from_currency
            and r.to_currency == to_currency
        ]
        return sorted(found, key=lambda r: (r.date, r.created_at), reverse=True)

    def get_recent_rates(self, company_id, from_currency, to_currency, limit=10):
        return self._pair(company_id, from_currency, to_currency)[:limit]

    def get_most_recent_rate_before_date(self, company_id, from_currency, to_currency, on_or_before: date):
        for rate in self._pair(company_id, from_currency, to_currency):
            if rate.date <= on_or_before:
                return rate
        return None

    def get_rate_for_date(self, company_id, from_currency, to_currency, on: date):
        for rate in self._pair(company_id, from_currency, to_currency):
            if rate.date == on:
                return rate
        return None

    def save(self, rate):
        self.rates.append(rate)
        return rate

    def delete(self, company_id, rate_id):
        for rate in self.rates:
            if rate.id == rate_id and rate.company_id == company_id:
                self.rates.remove(rate)
                return
        raise NotFoundError("EXCHANGE_RATE_NOT_FOUND", f"Exchange rate {rate_id} not found")


@dataclass
class FakeLedger:
    """Use cases wired to in-memory collaborators, with the collaborators exposed."""

    vouchers: InMemoryVoucherRepository
    ledger: InMemoryLedgerRepository
    rates: InMemoryExchangeRateRepository
    tx: FakeTransactionManager
    permissions: IPermissionChecker
    config_provider: StaticConfigProvider
    accounts: InMemoryAccountLookup
    scopes: StaticScopeProvider
    use_cases: dict[str, Any] = field(default_factory=dict)

    def __getattr__(self, name):
        use_cases = self.__dict__.get("use_cases", {})
        if name in use_cases:
            return use_cases[name]
        raise AttributeError(name)

    def set_config(self, **changes) -> AccountingPolicyConfig:
        self.config_provider.config = AccountingPolicyConfig(**changes)
        return self.config_provider.config

    def voucher(self, company_id: str, voucher_id: str) -> VoucherEntity:
        return self.vouchers.find_by_id(company_id, voucher_id)

    def by_status(self, status: VoucherStatus) -> list[VoucherEntity]:
        return [v for v in self.vouchers.vouchers.values() if v.status is status]


def build_fake_ledger(
    accounts=(),
    config: AccountingPolicyConfig | None = None,
    permissions: IPermissionChecker | None = None,
    scopes: dict[str, UserAccessScope] | None = None,
) -> FakeLedger:
    vouchers = InMemoryVoucherRepository()
    ledger = InMemoryLedgerRepository()
    rates = InMemoryExchangeRateRepository()
    tx = FakeTransactionManager(vouchers, ledger)
    permissions = permissions or AllowAllPermissionChecker()
    config_provider = StaticConfigProvider(config)
    lookup = InMemoryAccountLookup(accounts)
    scope_provider = StaticScopeProvider(scopes)

    post = PostVoucherUseCase(vouchers, ledger, tx, permissions, config_provider, lookup, scope_provider)
    create = CreateVoucherUseCase(vouchers, tx, permissions, config_provider, lookup)
    submit = SubmitVoucherUseCase(vouchers, tx, permissions, config_provider, lookup, post_use_case=post)
    use_cases = {
        "create": create,
        "update": UpdateVoucherUseCase(vouchers, ledger, tx, permissions, config_provider, lookup),
        "submit": submit,
        "approve": ApproveVoucherUseCase(vouchers, tx, permissions, config_provider, post_use_case=post),
        "reject": RejectVoucherUseCase(vouchers, tx, permissions),
        "confirm_custody": ConfirmCustodyUseCase(vouchers, tx, permissions, config_provider, post_use_case=post),
        "post": post,
        "cancel": CancelVoucherUseCase(vouchers, tx, permissions),
        "delete": DeleteVoucherUseCase(vouchers, ledger, tx, permissions, config_provider),
        "correct": ReverseAndReplaceUseCase(vouchers, ledger, tx, permissions, create, submit, post),
        "get": GetVoucherUseCase(vouchers, tx, permissions),
        "list": ListVouchersUseCase(vouchers, tx, permissions),
        "suggest_rate": GetSuggestedRateUseCase(rates, permissions),
        "save_rate": SaveReferenceRateUseCase(rates, permissions),
        "delete_rate": DeleteExchangeRateUseCase(rates, permissions),
        "check_rate": CheckRateDeviationUseCase(rates, permissions),
    }
    return FakeLedger(
        vouchers=vouchers,
        ledger=ledger,
        rates=rates,
        tx=tx,
        permissions=permissions,
        config_provider=config_provider,
        accounts=lookup,
        scopes=scope_provider,
        use_cases=use_cases,
    )
