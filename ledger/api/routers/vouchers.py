"""
API Routers - voucher lifecycle endpoints. Business rules live in the use cases.
"""

from fastapi import APIRouter, Depends, Query, Response, status

from ledger.api.dependencies import UseCases, get_current_user_id, get_use_cases
from ledger.application.dto.voucher_dto import (
    CorrectionRequestDTO,
    CorrectionResultDTO,
    RejectVoucherDTO,
    VoucherCreateDTO,
    VoucherResponseDTO,
    VoucherUpdateDTO,
)
from ledger.domain.services import ApprovalPolicyService
from ledger.domain.value_objects import VoucherStatus

router = APIRouter(prefix="/api/v1/companies/{company_id}/vouchers", tags=["Vouchers"])


def _dto(voucher) -> VoucherResponseDTO:
    return VoucherResponseDTO.model_validate(voucher)


@router.post("", response_model=VoucherResponseDTO, status_code=status.HTTP_201_CREATED)
def create_voucher(
    company_id: str,
    dto: VoucherCreateDTO,
    use_cases: UseCases = Depends(get_use_cases),
    user_id: str = Depends(get_current_user_id),
):
    """
    Create a voucher in DRAFT.

    - Lines are triangulated into the company base currency
    - Debits must equal credits in base currency
    - Account codes are resolved to account ids
    """
    return _dto(use_cases.create.execute(company_id, user_id, dto))


@router.get("", response_model=list[VoucherResponseDTO])
def list_vouchers(
    company_id: str,
    status_filter: VoucherStatus | None = Query(None, alias="status"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    use_cases: UseCases = Depends(get_use_cases),
    user_id: str = Depends(get_current_user_id),
):
    vouchers = use_cases.list.execute(company_id, user_id, status=status_filter, limit=limit, offset=offset)
    return [_dto(v) for v in vouchers]


@router.get("/{voucher_id}", response_model=VoucherResponseDTO)
def get_voucher(
    company_id: str,
    voucher_id: str,
    use_cases: UseCases = Depends(get_use_cases),
    user_id: str = Depends(get_current_user_id),
):
    return _dto(use_cases.get.execute(company_id, voucher_id, user_id))


@router.get("/{voucher_id}/completion-status")
def get_completion_status(
    company_id: str,
    voucher_id: str,
    use_cases: UseCases = Depends(get_use_cases),
    user_id: str = Depends(get_current_user_id),
):
    """Progress of the approval gates, for display."""
    voucher = use_cases.get.execute(company_id, voucher_id, user_id)
    meta = voucher.metadata
    return {
        "voucherId": voucher.id,
        "status": voucher.status.value,
        "isPosted": voucher.is_posted,
        "operatingMode": meta.operating_mode.value if meta.operating_mode else None,
        "completionStatus": ApprovalPolicyService.get_completion_status(voucher),
        "pendingFinancialApproval": meta.pending_financial_approval,
        "pendingCustodyConfirmations": list(meta.pending_custody_confirmations),
    }


@router.patch("/{voucher_id}", response_model=VoucherResponseDTO)
def update_voucher(
    company_id: str,
    voucher_id: str,
    dto: VoucherUpdateDTO,
    use_cases: UseCases = Depends(get_use_cases),
    user_id: str = Depends(get_current_user_id),
):
    return _dto(use_cases.update.execute(company_id, voucher_id, user_id, dto))


@router.delete("/{voucher_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_voucher(
    company_id: str,
    voucher_id: str,
    use_cases: UseCases = Depends(get_use_cases),
    user_id: str = Depends(get_current_user_id),
):
    use_cases.delete.execute(company_id, voucher_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{voucher_id}/submit", response_model=VoucherResponseDTO)
def submit_voucher(
    company_id: str,
    voucher_id: str,
    use_cases: UseCases = Depends(get_use_cases),
    user_id: str = Depends(get_current_user_id),
):
    return _dto(use_cases.submit.execute(company_id, voucher_id, user_id))


@router.post("/{voucher_id}/approve", response_model=VoucherResponseDTO)
def approve_voucher(
    company_id: str,
    voucher_id: str,
    use_cases: UseCases = Depends(get_use_cases),
    user_id: str = Depends(get_current_user_id),
):
    return _dto(use_cases.approve.execute(company_id, voucher_id, user_id))


@router.post("/{voucher_id}/reject", response_model=VoucherResponseDTO)
def reject_voucher(
    company_id: str,
    voucher_id: str,
    dto: RejectVoucherDTO,
    use_cases: UseCases = Depends(get_use_cases),
    user_id: str = Depends(get_current_user_id),
):
    return _dto(use_cases.reject.execute(company_id, voucher_id, user_id, dto.reason))


@router.post("/{voucher_id}/confirm-custody", response_model=VoucherResponseDTO)
def confirm_custody(
    company_id: str,
    voucher_id: str,
    use_cases: UseCases = Depends(get_use_cases),
    user_id: str = Depends(get_current_user_id),
):
    return _dto(use_cases.confirm_custody.execute(company_id, voucher_id, user_id))


@router.post("/{voucher_id}/post", response_model=VoucherResponseDTO)
def post_voucher(
    company_id: str,
    voucher_id: str,
    use_cases: UseCases = Depends(get_use_cases),
    user_id: str = Depends(get_current_user_id),
):
    """Post an approved voucher to the ledger. Posting twice is a no-op."""
    return _dto(use_cases.post.execute(company_id, voucher_id, user_id))


@router.post("/{voucher_id}/cancel", response_model=VoucherResponseDTO)
def cancel_voucher(
    company_id: str,
    voucher_id: str,
    use_cases: UseCases = Depends(get_use_cases),
    user_id: str = Depends(get_current_user_id),
):
    return _dto(use_cases.cancel.execute(company_id, voucher_id, user_id))


@router.post("/{voucher_id}/correct", response_model=CorrectionResultDTO)
def correct_voucher(
    company_id: str,
    voucher_id: str,
    dto: CorrectionRequestDTO,
    use_cases: UseCases = Depends(get_use_cases),
    user_id: str = Depends(get_current_user_id),
):
    """Reverse a posted voucher and optionally create its replacement."""
    result = use_cases.correct.execute(company_id, voucher_id, user_id, dto)
    return CorrectionResultDTO.model_validate(result)
