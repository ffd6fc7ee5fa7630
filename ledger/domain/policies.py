"""
Optional posting policies. Each policy is a small strategy object; which ones
run is decided by the policy registry from the company configuration.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date

from .entities import Account, VoucherEntity
from .interfaces import UserAccessScope
from .money import normalize_accounting_date
from .value_objects import AccountOwnerScope, VoucherStatus


@dataclass(frozen=True)
class PolicyContext:
    voucher: VoucherEntity
    user_id: str
    accounts: Mapping[str, Account] = field(default_factory=dict)
    user_scope: UserAccessScope | None = None


@dataclass(frozen=True, slots=True)
class PolicyResult:
    ok: bool
    code: str | None = None
    message: str | None = None
    field_hints: tuple[str, ...] = ()

    @classmethod
    def success(cls) -> "PolicyResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, code: str, message: str, *field_hints: str) -> "PolicyResult":
        return cls(ok=False, code=code, message=message, field_hints=tuple(field_hints))


class PostingPolicy(ABC):
    id: str
    name: str

    @abstractmethod
    def validate(self, ctx: PolicyContext) -> PolicyResult:
        ...

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id}>"


class ApprovalRequiredPolicy(PostingPolicy):
    id = "approval-required"
    name = "Approval Required"

    def validate(self, ctx: PolicyContext) -> PolicyResult:
        status = ctx.voucher.status
        if status is VoucherStatus.APPROVED:
            return PolicyResult.success()
        return PolicyResult.failure(
            "APPROVAL_REQUIRED",
            f"Voucher must be approved before posting (current status: {status.value})",
            "status",
        )


class PeriodLockPolicy(PostingPolicy):
    id = "period-lock"
    name = "Period Lock"

    def __init__(self, locked_through_date: date | str):
        self.locked_through_date = normalize_accounting_date(locked_through_date)

    def validate(self, ctx: PolicyContext) -> PolicyResult:
        voucher_date = normalize_accounting_date(ctx.voucher.date)
        if voucher_date <= self.locked_through_date:
            return PolicyResult.failure(
                "PERIOD_LOCKED",
                f"Cannot post voucher dated {voucher_date.isoformat()}: "
                f"period is locked through {self.locked_through_date.isoformat()}",
                "date",
            )
        return PolicyResult.success()


class AccountAccessPolicy(PostingPolicy):
    """Restricted accounts may be posted to by super users or members of an owning unit."""

    id = "account-access"
    name = "Account Access"

    def validate(self, ctx: PolicyContext) -> PolicyResult:
        scope = ctx.user_scope or UserAccessScope(user_id=ctx.user_id)
        if scope.is_super:
            return PolicyResult.success()
        user_units = set(scope.unit_ids)
        for index, line in enumerate(ctx.voucher.lines):
            account = ctx.accounts.get(line.account_id)
            if account is None:
                continue
            restricted = (
                account.owner_scope is AccountOwnerScope.RESTRICTED or bool(account.owner_unit_ids)
            )
            if not restricted:
                continue
            if not user_units.intersection(account.owner_unit_ids):
                return PolicyResult.failure(
                    "ACCOUNT_ACCESS_DENIED",
                    f"You do not have access to post to account {account.code} - {account.name}",
                    f"lines[{index}].accountId",
                )
        return PolicyResult.success()


class CostCenterRequiredPolicy(PostingPolicy):
    id = "cost-center-required"
    name = "Cost Center Required"

    def __init__(self, account_ids: tuple[str, ...] = (), account_types: tuple[str, ...] = ()):
        self.account_ids = frozenset(account_ids)
        self.account_types = frozenset(t.lower() for t in account_types)

    def _applies(self, account_id: str, account: Account | None) -> bool:
        if account_id in self.account_ids:
            return True
        return account is not None and account.account_type.lower() in self.account_types

    def validate(self, ctx: PolicyContext) -> PolicyResult:
        for index, line in enumerate(ctx.voucher.lines):
            account = ctx.accounts.get(line.account_id)
            if not self._applies(line.account_id, account):
                continue
            if not line.cost_center_id or not line.cost_center_id.strip():
                label = account.name if account else line.account_id
                return PolicyResult.failure(
                    "COST_CENTER_REQUIRED",
                    f"Cost center is required for account {label}",
                    f"lines[{index}].costCenterId",
                )
        return PolicyResult.success()
