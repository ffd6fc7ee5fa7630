"""
Per-company accounting governance settings.
"""

from dataclasses import dataclass, field
from datetime import date

from .value_objects import FinancialApprovalApplyMode, PolicyErrorMode, PostingLockPolicy


@dataclass(frozen=True, slots=True)
class CostCenterPolicyConfig:
    enabled: bool = False
    account_ids: tuple[str, ...] = ()
    account_types: tuple[str, ...] = ()


@dataclass(frozen=True)
class AccountingPolicyConfig:
    base_currency: str = "USD"
    financial_approval_enabled: bool = False
    fa_apply_mode: FinancialApprovalApplyMode = FinancialApprovalApplyMode.ALL
    custody_confirmation_enabled: bool = False
    locked_through_date: date | None = None
    account_access_enabled: bool = False
    cost_center_policy: CostCenterPolicyConfig = field(default_factory=CostCenterPolicyConfig)
    policy_error_mode: PolicyErrorMode = PolicyErrorMode.FAIL_FAST
    allow_edit_delete_posted: bool = False
    auto_post_enabled: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "base_currency", self.base_currency.upper())
        object.__setattr__(self, "fa_apply_mode", FinancialApprovalApplyMode(self.fa_apply_mode))
        object.__setattr__(self, "policy_error_mode", PolicyErrorMode(self.policy_error_mode))

    @property
    def is_strict_mode(self) -> bool:
        return self.financial_approval_enabled or self.custody_confirmation_enabled

    def posting_lock_policy(self) -> PostingLockPolicy:
        """Lock policy to stamp on a voucher posted under this configuration."""
        if self.is_strict_mode:
            return PostingLockPolicy.STRICT_LOCKED
        if self.allow_edit_delete_posted:
            return PostingLockPolicy.FLEXIBLE_EDITABLE
        return PostingLockPolicy.FLEXIBLE_LOCKED
