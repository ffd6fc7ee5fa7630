"""
Use case - correct a posted voucher by reversing it and optionally replacing it.

Posted vouchers are never edited in place here. A correction group id ties the
original, its reversal and the replacement together.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Any

from ledger.application.dto.voucher_dto import CorrectionRequestDTO
from ledger.application.use_cases.vouchers import (
    Clock,
    CreateVoucherUseCase,
    PostVoucherUseCase,
    SubmitVoucherUseCase,
    VoucherUseCase,
    next_voucher_no,
)
from ledger.core.security import Permission
from ledger.domain.entities import VoucherEntity, VoucherMetadata, utcnow
from ledger.domain.errors import BusinessError, ConflictError, ValidationError
from ledger.domain.interfaces import (
    ILedgerRepository,
    IPermissionChecker,
    ITransactionManager,
    IVoucherRepository,
)
from ledger.domain.money import normalize_accounting_date
from ledger.domain.value_objects import CorrectionMode, VoucherStatus, VoucherType

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CorrectionSummary:
    reversal_posted: bool
    reversal_status: VoucherStatus
    replacement_created: bool
    replacement_posted: bool


@dataclass(frozen=True, slots=True)
class CorrectionResult:
    reverse_voucher_id: str
    replace_voucher_id: str | None
    correction_group_id: str
    summary: CorrectionSummary

    @classmethod
    def from_vouchers(
        cls,
        reversal: VoucherEntity,
        replacement: VoucherEntity | None,
    ) -> "CorrectionResult":
        return cls(
            reverse_voucher_id=reversal.id,
            replace_voucher_id=replacement.id if replacement else None,
            correction_group_id=reversal.metadata.correction_group_id,
            summary=CorrectionSummary(
                reversal_posted=reversal.is_posted,
                reversal_status=reversal.status,
                replacement_created=replacement is not None,
                replacement_posted=bool(replacement and replacement.is_posted),
            ),
        )


class ReverseAndReplaceUseCase(VoucherUseCase):
    """
    Reverse a posted voucher from its actual ledger rows.

    The reversal goes through submit and the regular posting path, so every
    posting policy applies to it. Calling this twice for the same original
    returns the first result.
    """

    permission = Permission.VOUCHER_CORRECT

    def __init__(
        self,
        voucher_repo: IVoucherRepository,
        ledger_repo: ILedgerRepository,
        tx_manager: ITransactionManager,
        permission_checker: IPermissionChecker,
        create_use_case: CreateVoucherUseCase,
        submit_use_case: SubmitVoucherUseCase,
        post_use_case: PostVoucherUseCase,
        clock: Clock = utcnow,
    ):
        super().__init__(voucher_repo, tx_manager, permission_checker, clock)
        self.ledger_repo = ledger_repo
        self.create_use_case = create_use_case
        self.submit_use_case = submit_use_case
        self.post_use_case = post_use_case

    def execute(
        self,
        company_id: str,
        voucher_id: str,
        user_id: str,
        request: CorrectionRequestDTO | None = None,
    ) -> CorrectionResult:
        self._authorize(user_id, company_id)
        request = request or CorrectionRequestDTO()
        if request.mode is CorrectionMode.REVERSE_AND_REPLACE and request.replacement is None:
            raise ValidationError(
                "REPLACEMENT_REQUIRED",
                "A replacement voucher is required for REVERSE_AND_REPLACE",
            )
        return self.tx_manager.run_transaction(
            lambda tx: self._correct(tx, company_id, voucher_id, user_id, request)
        )

    def _submit_and_post(self, tx: Any, company_id: str, voucher_id: str, user_id: str) -> VoucherEntity:
        submitted = self.submit_use_case.submit_within(tx, company_id, voucher_id, user_id, auto_post=False)
        if submitted.status is VoucherStatus.APPROVED:
            return self.post_use_case.post_within(tx, company_id, voucher_id, user_id)
        return submitted

    def _correct(
        self,
        tx: Any,
        company_id: str,
        voucher_id: str,
        user_id: str,
        request: CorrectionRequestDTO,
    ) -> CorrectionResult:
        original = self._load(company_id, voucher_id)
        if not original.is_posted:
            raise BusinessError("VOUCHER_NOT_POSTED", "Only posted vouchers can be corrected")

        existing = self.voucher_repo.find_by_reversal_of(company_id, original.id)
        if existing is not None:
            replacement = self.voucher_repo.find_replacement_of(company_id, original.id)
            logger.warning(
                "Voucher %s already reversed by %s, returning previous result",
                original.voucher_no, existing.voucher_no,
                extra={"voucher_id": original.id, "company_id": company_id, "user_id": user_id},
            )
            return CorrectionResult.from_vouchers(existing, replacement)

        entries = self.ledger_repo.get_entries_for_voucher(company_id, original.id)
        if not entries:
            raise ConflictError(
                "LEDGER_NOT_FOUND_FOR_POSTED_VOUCHER",
                f"Voucher {original.voucher_no} is posted but has no ledger rows",
            )

        if request.reversal_date == "today":
            reversal_date = self.clock().date()
        elif request.reversal_date is not None:
            reversal_date = normalize_accounting_date(request.reversal_date)
        else:
            reversal_date = original.date

        group_id = str(uuid.uuid4())
        reversal = original.create_reversal(
            entries,
            created_by=user_id,
            voucher_no=next_voucher_no(self.voucher_repo, company_id, VoucherType.REVERSAL, reversal_date),
            correction_group_id=group_id,
            reversal_date=reversal_date,
            reason=request.reason,
            at=self.clock(),
        )
        self.voucher_repo.save(reversal)
        reversal = self._submit_and_post(tx, company_id, reversal.id, user_id)

        replacement = None
        if request.mode is CorrectionMode.REVERSE_AND_REPLACE:
            replacement = self.create_use_case.create_within(
                tx,
                company_id,
                user_id,
                request.replacement,
                VoucherMetadata(
                    replaces_voucher_id=original.id,
                    correction_group_id=group_id,
                    correction_reason=request.reason,
                ),
            )
            if request.auto_post_replacement:
                replacement = self._submit_and_post(tx, company_id, replacement.id, user_id)

        logger.info(
            "Voucher %s corrected (group %s)", original.voucher_no, group_id,
            extra={"voucher_id": original.id, "company_id": company_id, "user_id": user_id},
        )
        return CorrectionResult.from_vouchers(reversal, replacement)
