"""
Builds the ordered list of posting policies enabled for a company.
"""

from ledger.domain.policies import (
    AccountAccessPolicy,
    ApprovalRequiredPolicy,
    CostCenterRequiredPolicy,
    PeriodLockPolicy,
    PostingPolicy,
)
from ledger.domain.policy_config import AccountingPolicyConfig


def build_posting_policies(config: AccountingPolicyConfig) -> list[PostingPolicy]:
    """
    Order is fixed: approval, period lock, account access, cost center.
    """
    policies: list[PostingPolicy] = []
    if config.is_strict_mode:
        policies.append(ApprovalRequiredPolicy())
    if config.locked_through_date is not None:
        policies.append(PeriodLockPolicy(config.locked_through_date))
    if config.account_access_enabled:
        policies.append(AccountAccessPolicy())
    cost_center = config.cost_center_policy
    if cost_center.enabled:
        policies.append(CostCenterRequiredPolicy(cost_center.account_ids, cost_center.account_types))
    return policies
