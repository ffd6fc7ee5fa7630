"""
Domain Entities - the voucher aggregate and the records it works with.

VoucherEntity is immutable. Every transition returns a new instance built with
dataclasses.replace, which re-runs the construction invariants.
"""

import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

from .errors import (
    BusinessError,
    ErrorCategory,
    PermissionDeniedError,
    PostingError,
    ValidationError,
    VoucherLockedError,
)
from .money import MONEY_EPS, money_equals, to_decimal
from .value_objects import (
    AccountOwnerScope,
    AccountRole,
    AccountStatus,
    ApprovalMode,
    CurrencyPolicy,
    LineSide,
    PostingLockPolicy,
    RateSource,
    VoucherStatus,
    VoucherType,
)

ZERO = Decimal("0")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _core(code: str, message: str) -> PostingError:
    return PostingError(code, message, ErrorCategory.CORE_INVARIANT)


@dataclass(frozen=True)
class VoucherLine:
    """One debit or credit line. Amount is in line currency, base_amount in base currency."""
    id: int
    account_id: str
    side: LineSide
    amount: Decimal
    currency: str
    base_amount: Decimal
    base_currency: str
    exchange_rate: Decimal
    notes: str | None = None
    cost_center_id: str | None = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "side", LineSide(self.side))
        except ValueError:
            raise _core("INVALID_LINE_SIDE", f"Line {self.id}: side must be Debit or Credit") from None
        if not self.account_id or not str(self.account_id).strip():
            raise _core("MISSING_ACCOUNT", f"Line {self.id}: account is required")
        if not self.currency or not self.base_currency:
            raise _core("MISSING_CURRENCY", f"Line {self.id}: currency and base currency are required")
        for name in ("amount", "base_amount", "exchange_rate"):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))
        if self.amount <= 0:
            raise _core("INVALID_AMOUNT", f"Line {self.id}: amount must be greater than zero")
        if self.base_amount <= 0:
            raise _core("INVALID_AMOUNT", f"Line {self.id}: base amount must be greater than zero")
        if self.exchange_rate <= 0:
            raise _core("INVALID_EXCHANGE_RATE", f"Line {self.id}: exchange rate must be greater than zero")

    @property
    def debit_amount(self) -> Decimal:
        return self.base_amount if self.side is LineSide.DEBIT else ZERO

    @property
    def credit_amount(self) -> Decimal:
        return self.base_amount if self.side is LineSide.CREDIT else ZERO

    def inverted(self) -> "VoucherLine":
        return replace(self, side=self.side.opposite())


def compute_totals(lines: Iterable[VoucherLine]) -> tuple[Decimal, Decimal]:
    total_debit = ZERO
    total_credit = ZERO
    for line in lines:
        total_debit += line.debit_amount
        total_credit += line.credit_amount
    return total_debit, total_credit


@dataclass(frozen=True, slots=True)
class GateSignoff:
    """Who satisfied an approval gate, and when."""
    user_id: str
    at: datetime


_METADATA_KEYS = {
    "financial_approval_required": "financialApprovalRequired",
    "custody_confirmation_required": "custodyConfirmationRequired",
    "operating_mode": "operatingMode",
    "pending_financial_approval": "pendingFinancialApproval",
    "pending_custody_confirmations": "pendingCustodyConfirmations",
    "required_custodians": "requiredCustodians",
    "submitted_by": "submittedBy",
    "submitted_at": "submittedAt",
    "financial_approval": "financialApproval",
    "custody_confirmations": "custodyConfirmations",
    "correction_group_id": "correctionGroupId",
    "replaces_voucher_id": "replacesVoucherId",
    "correction_reason": "correctionReason",
    "reversed_by_voucher_id": "reversedByVoucherId",
    "reversed_at": "reversedAt",
    "is_edited": "isEdited",
    "edited_at": "editedAt",
}


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_dt(value: str | datetime | None) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@dataclass(frozen=True)
class VoucherMetadata:
    """
    Gate and correction state of a voucher.

    Gate requirements are frozen here at submit time and are not recomputed
    afterwards. Fields owned by other modules go into ``extra``.
    """
    financial_approval_required: bool = False
    custody_confirmation_required: bool = False
    operating_mode: ApprovalMode | None = None
    pending_financial_approval: bool = False
    pending_custody_confirmations: tuple[str, ...] = ()
    required_custodians: tuple[str, ...] = ()
    submitted_by: str | None = None
    submitted_at: datetime | None = None
    financial_approval: GateSignoff | None = None
    custody_confirmations: tuple[GateSignoff, ...] = ()
    correction_group_id: str | None = None
    replaces_voucher_id: str | None = None
    correction_reason: str | None = None
    reversed_by_voucher_id: str | None = None
    reversed_at: datetime | None = None
    is_edited: bool = False
    edited_at: datetime | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    @property
    def is_reversed(self) -> bool:
        return self.reversed_by_voucher_id is not None

    @property
    def gates_satisfied(self) -> bool:
        return not self.pending_financial_approval and not self.pending_custody_confirmations

    def has_confirmed(self, user_id: str) -> bool:
        return any(c.user_id == user_id for c in self.custody_confirmations)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.extra)
        for attr, key in _METADATA_KEYS.items():
            value = getattr(self, attr)
            if isinstance(value, GateSignoff):
                value = {"userId": value.user_id, "at": _iso(value.at)}
            elif attr == "custody_confirmations":
                value = [{"userId": c.user_id, "at": _iso(c.at)} for c in value]
            elif isinstance(value, tuple):
                value = list(value)
            elif isinstance(value, datetime):
                value = _iso(value)
            elif isinstance(value, ApprovalMode):
                value = value.value
            data[key] = value
        data["isReversed"] = self.is_reversed
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "VoucherMetadata":
        if not data:
            return cls()
        known = set(_METADATA_KEYS.values()) | {"isReversed"}
        fa = data.get("financialApproval")
        mode = data.get("operatingMode")
        return cls(
            financial_approval_required=bool(data.get("financialApprovalRequired", False)),
            custody_confirmation_required=bool(data.get("custodyConfirmationRequired", False)),
            operating_mode=ApprovalMode(mode) if mode else None,
            pending_financial_approval=bool(data.get("pendingFinancialApproval", False)),
            pending_custody_confirmations=tuple(data.get("pendingCustodyConfirmations") or ()),
            required_custodians=tuple(data.get("requiredCustodians") or ()),
            submitted_by=data.get("submittedBy"),
            submitted_at=_parse_dt(data.get("submittedAt")),
            financial_approval=GateSignoff(fa["userId"], _parse_dt(fa["at"])) if fa else None,
            custody_confirmations=tuple(
                GateSignoff(c["userId"], _parse_dt(c["at"]))
                for c in data.get("custodyConfirmations") or ()
            ),
            correction_group_id=data.get("correctionGroupId"),
            replaces_voucher_id=data.get("replacesVoucherId"),
            correction_reason=data.get("correctionReason"),
            reversed_by_voucher_id=data.get("reversedByVoucherId"),
            reversed_at=_parse_dt(data.get("reversedAt")),
            is_edited=bool(data.get("isEdited", False)),
            edited_at=_parse_dt(data.get("editedAt")),
            extra={k: v for k, v in data.items() if k not in known},
        )


@dataclass(frozen=True, slots=True)
class GateRequirements:
    """Result of evaluating the approval gates for a set of accounts."""
    mode: ApprovalMode
    financial_approval_required: bool
    custody_confirmation_required: bool
    required_custodians: tuple[str, ...] = ()

    @property
    def auto_approve(self) -> bool:
        return not self.financial_approval_required and not self.custody_confirmation_required


@dataclass(frozen=True)
class VoucherEntity:
    """
    Aggregate - a balanced financial transaction document.

    Totals are in base currency and must match the line sums. POSTED is not a
    status: a voucher is posted once posted_at is set, and keeps APPROVED.
    """
    id: str
    company_id: str
    voucher_no: str
    type: VoucherType
    date: date
    description: str
    currency: str
    base_currency: str
    exchange_rate: Decimal
    lines: tuple[VoucherLine, ...]
    total_debit: Decimal
    total_credit: Decimal
    created_by: str
    status: VoucherStatus = VoucherStatus.DRAFT
    metadata: VoucherMetadata = field(default_factory=VoucherMetadata)
    created_at: datetime = field(default_factory=utcnow)
    approved_by: str | None = None
    approved_at: datetime | None = None
    rejected_by: str | None = None
    rejected_at: datetime | None = None
    rejection_reason: str | None = None
    posted_by: str | None = None
    posted_at: datetime | None = None
    locked_by: str | None = None
    locked_at: datetime | None = None
    posting_lock_policy: PostingLockPolicy | None = None
    reversal_of_voucher_id: str | None = None
    reference: str | None = None
    updated_at: datetime | None = None
    version: int = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", VoucherType(self.type))
        object.__setattr__(self, "status", VoucherStatus(self.status))
        object.__setattr__(self, "lines", tuple(self.lines))
        object.__setattr__(self, "exchange_rate", to_decimal(self.exchange_rate))
        object.__setattr__(self, "total_debit", to_decimal(self.total_debit))
        object.__setattr__(self, "total_credit", to_decimal(self.total_credit))
        if self.posting_lock_policy is not None:
            object.__setattr__(self, "posting_lock_policy", PostingLockPolicy(self.posting_lock_policy))

        if len(self.lines) < 2:
            raise _core("INSUFFICIENT_LINES", "Voucher must have at least 2 lines")
        for line in self.lines:
            if line.base_currency != self.base_currency:
                raise _core(
                    "BASE_CURRENCY_MISMATCH",
                    f"Line {line.id} base currency {line.base_currency} "
                    f"does not match voucher base currency {self.base_currency}",
                )
        debit, credit = compute_totals(self.lines)
        if not money_equals(debit, credit, MONEY_EPS):
            raise _core(
                "UNBALANCED_VOUCHER",
                f"Voucher not balanced: debit={debit} credit={credit} (base currency)",
            )
        if debit != self.total_debit or credit != self.total_credit:
            raise _core(
                "TOTALS_MISMATCH",
                f"Stored totals {self.total_debit}/{self.total_credit} "
                f"do not match line totals {debit}/{credit}",
            )

    @classmethod
    def build(cls, *, lines: Iterable[VoucherLine], **fields: Any) -> "VoucherEntity":
        """Construct a voucher with totals computed from its lines."""
        lines = tuple(lines)
        total_debit, total_credit = compute_totals(lines)
        return cls(lines=lines, total_debit=total_debit, total_credit=total_credit, **fields)

    @property
    def is_posted(self) -> bool:
        return self.posted_at is not None

    @property
    def is_reversal(self) -> bool:
        return self.reversal_of_voucher_id is not None

    def account_ids(self) -> list[str]:
        return list(dict.fromkeys(line.account_id for line in self.lines))

    def _transition(self, at: datetime, **changes: Any) -> "VoucherEntity":
        return replace(self, updated_at=at, version=self.version + 1, **changes)

    def _bad_transition(self, action: str) -> BusinessError:
        return BusinessError(
            "INVALID_STATUS_TRANSITION",
            f"Cannot {action} voucher {self.voucher_no} in status {self.status.value}",
        )

    def submit(
        self,
        submitted_by: str,
        gates: GateRequirements,
        at: datetime | None = None,
    ) -> "VoucherEntity":
        """DRAFT or REJECTED -> PENDING, or straight to APPROVED when no gate applies."""
        at = at or utcnow()
        if self.status not in (VoucherStatus.DRAFT, VoucherStatus.REJECTED):
            raise self._bad_transition("submit")
        custodians = tuple(gates.required_custodians) if gates.custody_confirmation_required else ()
        metadata = replace(
            self.metadata,
            financial_approval_required=gates.financial_approval_required,
            custody_confirmation_required=gates.custody_confirmation_required,
            operating_mode=gates.mode,
            pending_financial_approval=gates.financial_approval_required,
            pending_custody_confirmations=custodians,
            required_custodians=custodians,
            submitted_by=submitted_by,
            submitted_at=at,
            financial_approval=None,
            custody_confirmations=(),
        )
        cleared = dict(rejected_by=None, rejected_at=None, rejection_reason=None)
        if gates.auto_approve:
            return self._transition(
                at,
                status=VoucherStatus.APPROVED,
                metadata=metadata,
                approved_by=submitted_by,
                approved_at=at,
                **cleared,
            )
        return self._transition(at, status=VoucherStatus.PENDING, metadata=metadata, **cleared)

    def satisfy_financial_approval(self, approver: str, at: datetime | None = None) -> "VoucherEntity":
        """Clear the FA gate. A no-op when FA is not pending."""
        at = at or utcnow()
        if self.status is not VoucherStatus.PENDING:
            raise self._bad_transition("approve")
        if not self.metadata.pending_financial_approval:
            return self
        metadata = replace(
            self.metadata,
            pending_financial_approval=False,
            financial_approval=GateSignoff(approver, at),
        )
        if metadata.gates_satisfied:
            return self._transition(
                at,
                metadata=metadata,
                status=VoucherStatus.APPROVED,
                approved_by=approver,
                approved_at=at,
            )
        return self._transition(at, metadata=metadata)

    def confirm_custody(self, custodian: str, at: datetime | None = None) -> "VoucherEntity":
        at = at or utcnow()
        if self.status is not VoucherStatus.PENDING:
            raise self._bad_transition("confirm custody for")
        if self.metadata.has_confirmed(custodian):
            return self
        if custodian not in self.metadata.pending_custody_confirmations:
            raise PermissionDeniedError(
                "CUSTODIAN_NOT_PENDING",
                f"User {custodian} is not a pending custodian for voucher {self.voucher_no}",
            )
        metadata = replace(
            self.metadata,
            pending_custody_confirmations=tuple(
                c for c in self.metadata.pending_custody_confirmations if c != custodian
            ),
            custody_confirmations=self.metadata.custody_confirmations + (GateSignoff(custodian, at),),
        )
        if metadata.gates_satisfied:
            return self._transition(
                at,
                metadata=metadata,
                status=VoucherStatus.APPROVED,
                approved_by=custodian,
                approved_at=at,
            )
        return self._transition(at, metadata=metadata)

    def approve(self, approver: str, at: datetime | None = None) -> "VoucherEntity":
        """Fast-track DRAFT or PENDING straight to APPROVED."""
        at = at or utcnow()
        if self.status not in (VoucherStatus.DRAFT, VoucherStatus.PENDING):
            raise self._bad_transition("approve")
        metadata = replace(
            self.metadata,
            pending_financial_approval=False,
            pending_custody_confirmations=(),
        )
        return self._transition(
            at,
            status=VoucherStatus.APPROVED,
            metadata=metadata,
            approved_by=approver,
            approved_at=at,
        )

    def reject(self, rejected_by: str, reason: str, at: datetime | None = None) -> "VoucherEntity":
        at = at or utcnow()
        if self.is_posted:
            raise BusinessError(
                "VOUCHER_POSTED_REJECT_FORBIDDEN",
                "Posted vouchers cannot be rejected. Use a reversal instead.",
            )
        if self.status is not VoucherStatus.PENDING:
            raise self._bad_transition("reject")
        if not reason or not reason.strip():
            raise ValidationError("REJECTION_REASON_REQUIRED", "A rejection reason is required")
        return self._transition(
            at,
            status=VoucherStatus.REJECTED,
            rejected_by=rejected_by,
            rejected_at=at,
            rejection_reason=reason.strip(),
        )

    def cancel(self, cancelled_by: str, at: datetime | None = None) -> "VoucherEntity":
        at = at or utcnow()
        if self.is_posted:
            raise BusinessError(
                "VOUCHER_POSTED_CANCEL_FORBIDDEN",
                "Posted vouchers cannot be cancelled. Use a reversal instead.",
            )
        if self.status is VoucherStatus.CANCELLED:
            raise self._bad_transition("cancel")
        return self._transition(
            at,
            status=VoucherStatus.CANCELLED,
            locked_by=cancelled_by,
            locked_at=at,
        )

    def post(
        self,
        posted_by: str,
        lock_policy: PostingLockPolicy,
        at: datetime | None = None,
    ) -> "VoucherEntity":
        """Mark as posted. The caller records ledger rows and persists."""
        at = at or utcnow()
        if self.is_posted:
            raise BusinessError("VOUCHER_ALREADY_POSTED", f"Voucher {self.voucher_no} is already posted")
        if self.status is not VoucherStatus.APPROVED:
            raise BusinessError(
                "VOUCHER_NOT_APPROVED",
                f"Voucher {self.voucher_no} must be APPROVED to post (status {self.status.value})",
            )
        return self._transition(
            at,
            posted_by=posted_by,
            posted_at=at,
            posting_lock_policy=PostingLockPolicy(lock_policy),
        )

    def create_reversal(
        self,
        ledger_entries: Iterable["LedgerEntry"],
        *,
        created_by: str,
        voucher_no: str,
        correction_group_id: str,
        reversal_date: date | None = None,
        reason: str | None = None,
        reversal_id: str | None = None,
        at: datetime | None = None,
    ) -> "VoucherEntity":
        """
        Build a DRAFT reversal from the rows actually written to the ledger.

        Amounts, currencies and rates are copied; only the side flips.
        """
        at = at or utcnow()
        if not self.is_posted:
            raise BusinessError("VOUCHER_NOT_POSTED", "Only posted vouchers can be reversed")
        lines = [
            VoucherLine(
                id=index,
                account_id=entry.account_id,
                side=entry.side.opposite(),
                amount=entry.amount,
                currency=entry.currency,
                base_amount=entry.base_amount,
                base_currency=entry.base_currency,
                exchange_rate=entry.exchange_rate,
                notes=entry.notes,
                cost_center_id=entry.cost_center_id,
            )
            for index, entry in enumerate(ledger_entries, start=1)
        ]
        return VoucherEntity.build(
            id=reversal_id or str(uuid.uuid4()),
            company_id=self.company_id,
            voucher_no=voucher_no,
            type=VoucherType.REVERSAL,
            date=reversal_date or self.date,
            description=f"Reversal of {self.voucher_no}" + (f": {reason}" if reason else ""),
            currency=self.currency,
            base_currency=self.base_currency,
            exchange_rate=self.exchange_rate,
            lines=lines,
            created_by=created_by,
            created_at=at,
            status=VoucherStatus.DRAFT,
            metadata=VoucherMetadata(
                correction_group_id=correction_group_id,
                correction_reason=reason,
            ),
            reversal_of_voucher_id=self.id,
            reference=self.voucher_no,
            updated_at=at,
        )

    def mark_reversed(
        self,
        reversal_id: str,
        correction_group_id: str | None = None,
        at: datetime | None = None,
    ) -> "VoucherEntity":
        at = at or utcnow()
        metadata = replace(
            self.metadata,
            reversed_by_voucher_id=reversal_id,
            reversed_at=at,
            correction_group_id=correction_group_id or self.metadata.correction_group_id,
        )
        return self._transition(at, metadata=metadata)

    def revise(
        self,
        *,
        lines: Iterable[VoucherLine] | None = None,
        at: datetime | None = None,
        **header: Any,
    ) -> "VoucherEntity":
        """
        Rebuild header fields and lines. Callers check assert_can_edit first.

        An unposted PENDING or APPROVED voucher goes back to DRAFT: its gate
        sign-offs covered the old content, so it has to be submitted again.
        """
        at = at or utcnow()
        allowed = {"date", "description", "currency", "exchange_rate", "reference", "type"}
        unknown = set(header) - allowed
        if unknown:
            raise ValidationError("INVALID_UPDATE_FIELDS", f"Cannot update fields: {sorted(unknown)}")
        changes: dict[str, Any] = dict(header)
        if lines is not None:
            lines = tuple(lines)
            total_debit, total_credit = compute_totals(lines)
            changes.update(lines=lines, total_debit=total_debit, total_credit=total_credit)
        if self.is_posted:
            changes["metadata"] = replace(self.metadata, is_edited=True, edited_at=at)
        elif self.status in (VoucherStatus.PENDING, VoucherStatus.APPROVED):
            changes["metadata"] = replace(
                self.metadata,
                financial_approval_required=False,
                custody_confirmation_required=False,
                operating_mode=None,
                pending_financial_approval=False,
                pending_custody_confirmations=(),
                required_custodians=(),
                submitted_by=None,
                submitted_at=None,
                financial_approval=None,
                custody_confirmations=(),
                is_edited=True,
                edited_at=at,
            )
            changes.update(status=VoucherStatus.DRAFT, approved_by=None, approved_at=None)
        return self._transition(at, **changes)

    def _assert_mutable(self, is_strict_mode: bool, allow_edit_delete_posted: bool, action: str) -> None:
        if self.status is VoucherStatus.CANCELLED:
            raise VoucherLockedError(
                "VOUCHER_CANCELLED_IMMUTABLE",
                f"Cancelled voucher {self.voucher_no} cannot be changed",
            )
        if not self.is_posted:
            return
        if self.posting_lock_policy is PostingLockPolicy.STRICT_LOCKED:
            raise VoucherLockedError(
                "VOUCHER_STRICT_LOCK_FOREVER",
                f"Voucher {self.voucher_no} was posted under strict approval and is permanently locked",
                remedy="Create a reversal to correct this voucher",
            )
        if is_strict_mode or not allow_edit_delete_posted:
            raise VoucherLockedError(
                f"VOUCHER_POSTED_{action.upper()}_FORBIDDEN",
                f"Posted vouchers cannot be {'edited' if action == 'edit' else 'deleted'} "
                "under the current company settings",
                remedy="Create a reversal, or enable editing of posted vouchers in flexible mode",
            )

    def assert_can_edit(self, is_strict_mode: bool, allow_edit_delete_posted: bool) -> None:
        self._assert_mutable(is_strict_mode, allow_edit_delete_posted, "edit")

    def assert_can_delete(self, is_strict_mode: bool, allow_edit_delete_posted: bool) -> None:
        self._assert_mutable(is_strict_mode, allow_edit_delete_posted, "delete")


@dataclass(frozen=True)
class LedgerEntry:
    """Immutable ledger row written once per posted voucher line."""
    id: str
    company_id: str
    voucher_id: str
    voucher_no: str
    line_id: int
    account_id: str
    side: LineSide
    amount: Decimal
    currency: str
    base_amount: Decimal
    base_currency: str
    exchange_rate: Decimal
    date: date
    cost_center_id: str | None = None
    notes: str | None = None
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        object.__setattr__(self, "side", LineSide(self.side))
        for name in ("amount", "base_amount", "exchange_rate"):
            object.__setattr__(self, name, to_decimal(getattr(self, name)))

    @classmethod
    def from_voucher(cls, voucher: VoucherEntity) -> list["LedgerEntry"]:
        if not voucher.is_posted:
            raise BusinessError("VOUCHER_NOT_POSTED", "Ledger rows are written for posted vouchers only")
        return [
            cls(
                id=str(uuid.uuid4()),
                company_id=voucher.company_id,
                voucher_id=voucher.id,
                voucher_no=voucher.voucher_no,
                line_id=line.id,
                account_id=line.account_id,
                side=line.side,
                amount=line.amount,
                currency=line.currency,
                base_amount=line.base_amount,
                base_currency=line.base_currency,
                exchange_rate=line.exchange_rate,
                date=voucher.date,
                cost_center_id=line.cost_center_id,
                notes=line.notes,
                created_at=voucher.posted_at,
            )
            for line in voucher.lines
        ]


@dataclass(frozen=True)
class Account:
    """Chart-of-accounts entry as seen by the posting engine."""
    id: str
    company_id: str
    code: str
    name: str
    account_type: str
    role: AccountRole = AccountRole.POSTING
    status: AccountStatus = AccountStatus.ACTIVE
    currency_policy: CurrencyPolicy = CurrencyPolicy.OPEN
    fixed_currency_code: str | None = None
    allowed_currency_codes: tuple[str, ...] = ()
    requires_approval: bool = False
    requires_custody_confirmation: bool = False
    custodian_user_id: str | None = None
    owner_scope: AccountOwnerScope = AccountOwnerScope.SHARED
    owner_unit_ids: tuple[str, ...] = ()
    replaced_by_account_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "role", AccountRole(self.role))
        object.__setattr__(self, "status", AccountStatus(self.status))
        object.__setattr__(self, "currency_policy", CurrencyPolicy(self.currency_policy))
        object.__setattr__(self, "owner_scope", AccountOwnerScope(self.owner_scope))
        object.__setattr__(self, "allowed_currency_codes", tuple(c.upper() for c in self.allowed_currency_codes))
        object.__setattr__(self, "owner_unit_ids", tuple(self.owner_unit_ids))

    def can_post(self) -> bool:
        return (
            self.role is AccountRole.POSTING
            and self.status is AccountStatus.ACTIVE
            and self.replaced_by_account_id is None
        )

    def accepts_currency(self, currency: str, base_currency: str) -> bool:
        code = currency.upper()
        if self.currency_policy is CurrencyPolicy.INHERIT:
            return code == base_currency.upper()
        if self.currency_policy is CurrencyPolicy.FIXED:
            return code == (self.fixed_currency_code or "").upper()
        if self.currency_policy is CurrencyPolicy.RESTRICTED:
            return code in self.allowed_currency_codes
        return True


@dataclass(frozen=True)
class ExchangeRate:
    id: str
    company_id: str
    from_currency: str
    to_currency: str
    rate: Decimal
    date: date
    source: RateSource = RateSource.REFERENCE
    created_by: str | None = None
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        object.__setattr__(self, "rate", to_decimal(self.rate))
        object.__setattr__(self, "source", RateSource(self.source))
        if self.rate <= 0:
            raise ValidationError("INVALID_EXCHANGE_RATE", "Exchange rate must be greater than zero")
