"""
Domain Services - approval gates, voucher validation and rate deviation checks.
"""

import logging
from collections.abc import Iterable, Sequence
from decimal import Decimal

from .entities import Account, ExchangeRate, GateRequirements, VoucherEntity, compute_totals
from .errors import ErrorCategory, ErrorDetails, PostingError, Violation
from .money import MONEY_EPS, money_equals, to_decimal
from .policies import PolicyContext, PostingPolicy
from .policy_config import AccountingPolicyConfig
from .value_objects import (
    ApprovalMode,
    FinancialApprovalApplyMode,
    PolicyErrorMode,
    RateWarningType,
    VoucherType,
)

logger = logging.getLogger(__name__)

MODE_DESCRIPTIONS: dict[ApprovalMode, str] = {
    ApprovalMode.A: "Auto-Post (No gates)",
    ApprovalMode.B: "Custody Confirmation Only",
    ApprovalMode.C: "Financial Approval Only",
    ApprovalMode.D: "Full Dual-Gate (FA + CC)",
}


class ApprovalPolicyService:
    """
    Service - static evaluation of the two approval gates.

    FA (financial approval) and CC (custody confirmation) give four operating
    modes. Results are frozen into voucher metadata at submit time.
    """

    @staticmethod
    def get_operating_mode(config: AccountingPolicyConfig) -> ApprovalMode:
        fa = config.financial_approval_enabled
        cc = config.custody_confirmation_enabled
        if fa and cc:
            return ApprovalMode.D
        if fa:
            return ApprovalMode.C
        if cc:
            return ApprovalMode.B
        return ApprovalMode.A

    def evaluate_gates(
        self,
        config: AccountingPolicyConfig,
        touched_accounts: Iterable[Account],
    ) -> GateRequirements:
        accounts = list(touched_accounts)
        needs_fa = config.financial_approval_enabled and (
            config.fa_apply_mode is FinancialApprovalApplyMode.ALL
            or any(a.requires_approval for a in accounts)
        )
        custodians: list[str] = []
        if config.custody_confirmation_enabled:
            for account in accounts:
                if account.requires_custody_confirmation and account.custodian_user_id:
                    if account.custodian_user_id not in custodians:
                        custodians.append(account.custodian_user_id)
        needs_cc = config.custody_confirmation_enabled and any(
            a.requires_custody_confirmation for a in accounts
        )
        return GateRequirements(
            mode=self.get_operating_mode(config),
            financial_approval_required=needs_fa,
            custody_confirmation_required=needs_cc,
            required_custodians=tuple(custodians),
        )

    @staticmethod
    def should_auto_approve(gates: GateRequirements) -> bool:
        return gates.auto_approve

    @staticmethod
    def get_completion_status(voucher: VoucherEntity) -> str:
        """Human-readable progress of the gates for display."""
        meta = voucher.metadata
        if not meta.financial_approval_required and not meta.custody_confirmation_required:
            return "Ready to Post"
        pending_cc = len(meta.pending_custody_confirmations)
        if meta.pending_financial_approval:
            return "Awaiting Financial Approval"
        if pending_cc and meta.financial_approval_required:
            return f"Approved by Management, Awaiting Custody ({pending_cc} pending)"
        if pending_cc:
            return f"Awaiting Custody Confirmation ({pending_cc} pending)"
        return "All Gates Satisfied"


class VoucherValidationService:
    """Runs core invariants, then the configured policies in order."""

    _BASE_ONLY_TYPES = (VoucherType.JOURNAL_ENTRY, VoucherType.REVERSAL)

    def validate_core(self, voucher: VoucherEntity) -> None:
        """Structural checks that no configuration can switch off."""
        errors = ErrorDetails()
        if len(voucher.lines) < 2:
            errors.add("INSUFFICIENT_LINES", "Voucher must have at least 2 lines", "lines")

        debit, credit = compute_totals(voucher.lines)
        if not money_equals(debit, credit, MONEY_EPS):
            errors.add(
                "UNBALANCED_VOUCHER",
                f"Voucher not balanced: debit={debit} credit={credit}",
                "lines",
            )

        for index, line in enumerate(voucher.lines):
            if not line.account_id:
                errors.add("MISSING_ACCOUNT", f"Line {index + 1}: account is required", f"lines[{index}].accountId")
            if line.amount <= 0 or line.base_amount <= 0:
                errors.add("INVALID_AMOUNT", f"Line {index + 1}: amount must be positive", f"lines[{index}].amount")
            if line.currency != voucher.base_currency and line.exchange_rate == 1:
                errors.add(
                    "SUSPICIOUS_EXCHANGE_RATE",
                    f"Line {index + 1}: rate of exactly 1 between {line.currency} "
                    f"and {voucher.base_currency} looks like a missing rate",
                    f"lines[{index}].exchangeRate",
                )
            if voucher.type in self._BASE_ONLY_TYPES:
                if line.base_currency != voucher.base_currency:
                    errors.add(
                        "BASE_CURRENCY_MISMATCH",
                        f"Line {index + 1}: base currency {line.base_currency} "
                        f"differs from voucher base currency {voucher.base_currency}",
                        f"lines[{index}].baseCurrency",
                    )
            elif line.currency != voucher.currency:
                errors.add(
                    "CURRENCY_MISMATCH",
                    f"Line {index + 1}: currency {line.currency} differs from voucher currency {voucher.currency}",
                    f"lines[{index}].currency",
                )

        if errors:
            first = errors.violations[0]
            raise PostingError(first.code, first.message, ErrorCategory.CORE_INVARIANT, errors.violations)

    def validate_policies(
        self,
        ctx: PolicyContext,
        policies: Sequence[PostingPolicy],
        mode: PolicyErrorMode = PolicyErrorMode.FAIL_FAST,
    ) -> None:
        violations: list[Violation] = []
        for policy in policies:
            result = policy.validate(ctx)
            if result.ok:
                continue
            violation = Violation(result.code, result.message, result.field_hints, policy.id)
            logger.warning(
                "Posting policy %s rejected voucher %s: %s",
                policy.id, ctx.voucher.id, result.code,
            )
            if mode is PolicyErrorMode.FAIL_FAST:
                raise PostingError(result.code, result.message, ErrorCategory.POLICY, [violation])
            violations.append(violation)
        if violations:
            raise PostingError(
                "POLICY_VIOLATIONS",
                f"{len(violations)} posting policy violation(s)",
                ErrorCategory.POLICY,
                violations,
            )


class DetectRateDeviationService:
    """Advisory checks on a newly entered exchange rate against recent history."""

    DEVIATION_THRESHOLD = Decimal("0.20")
    DECIMAL_SHIFT_TOLERANCE = Decimal("0.15")
    _SHIFT_FACTORS = (Decimal("10"), Decimal("0.1"), Decimal("100"), Decimal("0.01"))

    def check(self, rate: object, recent_rates: Sequence[ExchangeRate]) -> list[dict]:
        value = to_decimal(rate)
        if not recent_rates:
            return [{
                "type": RateWarningType.FIRST_RATE.value,
                "message": "No previous rate exists for this currency pair",
            }]

        average = sum((r.rate for r in recent_rates), Decimal("0")) / len(recent_rates)
        for factor in self._SHIFT_FACTORS:
            expected = average * factor
            if abs(value - expected) / expected <= self.DECIMAL_SHIFT_TOLERANCE:
                return [{
                    "type": RateWarningType.DECIMAL_SHIFT.value,
                    "message": f"Rate {value} looks like a decimal shift of the recent average {average:.6f}",
                    "averageRate": str(average),
                    "factor": str(factor),
                }]

        deviation = abs(value - average) / average
        if deviation > self.DEVIATION_THRESHOLD:
            return [{
                "type": RateWarningType.PERCENTAGE_DEVIATION.value,
                "message": f"Rate deviates {deviation * 100:.1f}% from the recent average {average:.6f}",
                "averageRate": str(average),
                "deviationPercent": str((deviation * 100).quantize(Decimal("0.1"))),
            }]
        return []
