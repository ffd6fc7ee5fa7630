"""
Unit tests - approval gates, core validation and the posting policy pipeline.
"""

from dataclasses import replace
from datetime import date

import pytest

from ledger.application.policy_registry import build_posting_policies
from ledger.domain.errors import ErrorCategory, PostingError
from ledger.domain.interfaces import UserAccessScope
from ledger.domain.policies import (
    AccountAccessPolicy,
    ApprovalRequiredPolicy,
    CostCenterRequiredPolicy,
    PeriodLockPolicy,
    PolicyContext,
)
from ledger.domain.policy_config import AccountingPolicyConfig, CostCenterPolicyConfig
from ledger.domain.services import ApprovalPolicyService, VoucherValidationService
from ledger.domain.value_objects import (
    ApprovalMode,
    FinancialApprovalApplyMode,
    LineSide,
    PolicyErrorMode,
    PostingLockPolicy,
    VoucherStatus,
)
from tests.factories import CUSTODIAN, make_line, make_voucher


@pytest.fixture
def by_id(accounts):
    return {account.id: account for account in accounts}


class TestApprovalGates:
    """FA x CC gives modes A-D; the touched accounts decide what applies."""

    service = ApprovalPolicyService()

    @pytest.mark.parametrize("fa,cc,mode", [
        (False, False, ApprovalMode.A),
        (False, True, ApprovalMode.B),
        (True, False, ApprovalMode.C),
        (True, True, ApprovalMode.D),
    ])
    def test_operating_mode(self, fa, cc, mode):
        config = AccountingPolicyConfig(financial_approval_enabled=fa, custody_confirmation_enabled=cc)
        assert self.service.get_operating_mode(config) is mode

    def test_mode_a_auto_approves(self, by_id):
        gates = self.service.evaluate_gates(AccountingPolicyConfig(), [by_id["acc-vault"]])
        assert gates.mode is ApprovalMode.A
        assert self.service.should_auto_approve(gates) is True

    def test_mode_c_marked_account(self, by_id):
        config = AccountingPolicyConfig(
            financial_approval_enabled=True,
            fa_apply_mode=FinancialApprovalApplyMode.MARKED_ONLY,
        )
        gates = self.service.evaluate_gates(config, [by_id["acc-vault"], by_id["acc-cash"]])
        assert gates.mode is ApprovalMode.C
        assert gates.financial_approval_required is True
        assert gates.custody_confirmation_required is False

    def test_marked_only_skips_unmarked_accounts(self, by_id):
        config = AccountingPolicyConfig(financial_approval_enabled=True, fa_apply_mode="MARKED_ONLY")
        gates = self.service.evaluate_gates(config, [by_id["acc-rent"], by_id["acc-cash"]])
        assert gates.auto_approve is True

    def test_mode_d_collects_custodians(self, by_id):
        config = AccountingPolicyConfig(financial_approval_enabled=True, custody_confirmation_enabled=True)
        gates = self.service.evaluate_gates(config, [by_id["acc-vault"], by_id["acc-cash"]])
        assert gates.mode is ApprovalMode.D
        assert gates.financial_approval_required is True
        assert gates.custody_confirmation_required is True
        assert gates.required_custodians == (CUSTODIAN,)

    def test_completion_status(self):
        voucher = make_voucher()
        assert self.service.get_completion_status(voucher) == "Ready to Post"
        pending = voucher.submit("u", self.service.evaluate_gates(
            AccountingPolicyConfig(financial_approval_enabled=True), []
        ))
        assert self.service.get_completion_status(pending) == "Awaiting Financial Approval"
        assert pending.metadata.gates_satisfied is False


class TestCoreValidation:

    service = VoucherValidationService()

    def test_valid_voucher_passes(self):
        self.service.validate_core(make_voucher())

    def test_rate_of_one_for_foreign_line_is_suspicious(self):
        lines = [
            make_line(1, "acc-rent", LineSide.DEBIT, 100, currency="EUR", rate="1"),
            make_line(2, "acc-cash", LineSide.CREDIT, 100, currency="EUR", rate="1"),
        ]
        voucher = make_voucher(lines=lines, type="payment", currency="EUR")
        with pytest.raises(PostingError) as exc:
            self.service.validate_core(voucher)
        assert exc.value.code == "SUSPICIOUS_EXCHANGE_RATE"
        assert len(exc.value.violations) == 2

    def test_payment_lines_must_use_voucher_currency(self):
        lines = [
            make_line(1, "acc-rent", LineSide.DEBIT, 100, currency="EUR", rate="1.1"),
            make_line(2, "acc-cash", LineSide.CREDIT, 110),
        ]
        voucher = make_voucher(lines=lines, type="payment")
        with pytest.raises(PostingError) as exc:
            self.service.validate_core(voucher)
        assert exc.value.code == "CURRENCY_MISMATCH"
        assert exc.value.violations[0].field_hints == ("lines[0].currency",)

    def test_journal_entry_allows_mixed_line_currencies(self):
        lines = [
            make_line(1, "acc-rent", LineSide.DEBIT, 100, currency="EUR", rate="1.1"),
            make_line(2, "acc-cash", LineSide.CREDIT, 110),
        ]
        self.service.validate_core(make_voucher(lines=lines))


class TestPostingPolicies:

    def _ctx(self, voucher=None, accounts=None, scope=None):
        return PolicyContext(
            voucher=voucher or make_voucher(),
            user_id="u-1",
            accounts=accounts or {},
            user_scope=scope,
        )

    def test_period_lock_boundary(self):
        policy = PeriodLockPolicy(date(2025, 1, 31))
        assert policy.validate(self._ctx(make_voucher(date=date(2025, 1, 15)))).ok is False
        assert policy.validate(self._ctx(make_voucher(date=date(2025, 1, 31)))).code == "PERIOD_LOCKED"
        assert policy.validate(self._ctx(make_voucher(date=date(2025, 2, 1)))).ok is True

    def test_period_lock_accepts_iso_string(self):
        assert PeriodLockPolicy("2025-01-31").locked_through_date == date(2025, 1, 31)

    def test_approval_required(self):
        draft = make_voucher()
        result = ApprovalRequiredPolicy().validate(self._ctx(draft))
        assert result.code == "APPROVAL_REQUIRED"
        assert ApprovalRequiredPolicy().validate(self._ctx(draft.approve("u"))).ok

    def test_account_access(self, by_id):
        lines = [
            make_line(1, "acc-branch", LineSide.DEBIT, 50),
            make_line(2, "acc-cash", LineSide.CREDIT, 50),
        ]
        voucher = make_voucher(lines=lines)
        policy = AccountAccessPolicy()
        denied = policy.validate(self._ctx(voucher, by_id, UserAccessScope("u-1", unit_ids=("unit-b",))))
        assert denied.code == "ACCOUNT_ACCESS_DENIED"
        assert denied.field_hints == ("lines[0].accountId",)
        assert policy.validate(self._ctx(voucher, by_id, UserAccessScope("u-1", unit_ids=("unit-a",)))).ok
        assert policy.validate(self._ctx(voucher, by_id, UserAccessScope("u-1", is_super=True))).ok

    def test_cost_center_by_account_type(self, by_id):
        policy = CostCenterRequiredPolicy(account_types=("Expense",))
        result = policy.validate(self._ctx(make_voucher(), by_id))
        assert result.code == "COST_CENTER_REQUIRED"
        assert result.field_hints == ("lines[0].costCenterId",)

        lines = [
            replace(make_line(1, "acc-rent", LineSide.DEBIT, 100), cost_center_id="cc-hq"),
            make_line(2, "acc-cash", LineSide.CREDIT, 100),
        ]
        assert policy.validate(self._ctx(make_voucher(lines=lines), by_id)).ok

    def test_cost_center_by_account_id(self, by_id):
        policy = CostCenterRequiredPolicy(account_ids=("acc-cash",))
        assert policy.validate(self._ctx(make_voucher(), by_id)).field_hints == ("lines[1].costCenterId",)


class TestPolicyRegistry:

    def test_default_config_has_no_policies(self):
        assert build_posting_policies(AccountingPolicyConfig()) == []

    def test_policies_in_fixed_order(self):
        config = AccountingPolicyConfig(
            financial_approval_enabled=True,
            locked_through_date=date(2025, 1, 31),
            account_access_enabled=True,
            cost_center_policy=CostCenterPolicyConfig(enabled=True, account_types=("expense",)),
        )
        ids = [policy.id for policy in build_posting_policies(config)]
        assert ids == ["approval-required", "period-lock", "account-access", "cost-center-required"]

    def test_lock_policy_from_config(self):
        assert AccountingPolicyConfig(custody_confirmation_enabled=True).posting_lock_policy() \
            is PostingLockPolicy.STRICT_LOCKED
        assert AccountingPolicyConfig(allow_edit_delete_posted=True).posting_lock_policy() \
            is PostingLockPolicy.FLEXIBLE_EDITABLE
        assert AccountingPolicyConfig().posting_lock_policy() is PostingLockPolicy.FLEXIBLE_LOCKED


class TestPolicyErrorModes:

    service = VoucherValidationService()

    def _failing_setup(self, by_id):
        config = AccountingPolicyConfig(
            locked_through_date=date(2025, 3, 1),
            cost_center_policy=CostCenterPolicyConfig(enabled=True, account_types=("expense",)),
        )
        ctx = PolicyContext(voucher=make_voucher(), user_id="u-1", accounts=by_id)
        return ctx, build_posting_policies(config)

    def test_fail_fast_reports_first_failure(self, by_id):
        ctx, policies = self._failing_setup(by_id)
        with pytest.raises(PostingError) as exc:
            self.service.validate_policies(ctx, policies, PolicyErrorMode.FAIL_FAST)
        assert exc.value.code == "PERIOD_LOCKED"
        assert exc.value.category is ErrorCategory.POLICY
        assert len(exc.value.violations) == 1

    def test_aggregate_collects_all_failures(self, by_id):
        ctx, policies = self._failing_setup(by_id)
        with pytest.raises(PostingError) as exc:
            self.service.validate_policies(ctx, policies, PolicyErrorMode.AGGREGATE)
        assert exc.value.code == "POLICY_VIOLATIONS"
        codes = [v["code"] for v in exc.value.details["violations"]]
        assert codes == ["PERIOD_LOCKED", "COST_CENTER_REQUIRED"]
        assert exc.value.violations[1].policy_id == "cost-center-required"

    def test_passing_policies(self, by_id):
        ctx = PolicyContext(voucher=make_voucher(status=VoucherStatus.APPROVED), user_id="u", accounts=by_id)
        self.service.validate_policies(ctx, [ApprovalRequiredPolicy()], PolicyErrorMode.AGGREGATE)
