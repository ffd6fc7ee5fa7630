"""
API Routers - exchange-rate endpoints.
"""

import datetime as dt

from fastapi import APIRouter, Depends, Query, Response, status

from ledger.api.dependencies import UseCases, get_current_user_id, get_use_cases
from ledger.application.dto.voucher_dto import (
    ExchangeRateResponseDTO,
    ExchangeRateSaveDTO,
    RateDeviationCheckDTO,
    SuggestedRateDTO,
)

router = APIRouter(prefix="/api/v1/companies/{company_id}/exchange-rates", tags=["Exchange rates"])


@router.get("/suggest", response_model=SuggestedRateDTO)
def suggest_rate(
    company_id: str,
    from_currency: str = Query(..., min_length=3, max_length=3),
    to_currency: str = Query(..., min_length=3, max_length=3),
    on: dt.date = Query(..., alias="date"),
    use_cases: UseCases = Depends(get_use_cases),
    user_id: str = Depends(get_current_user_id),
):
    """Exact date first, then the most recent earlier rate, then the inverse pair."""
    suggestion = use_cases.suggest_rate.execute(company_id, user_id, from_currency, to_currency, on)
    return SuggestedRateDTO.model_validate(suggestion)


@router.post("", response_model=ExchangeRateResponseDTO, status_code=status.HTTP_201_CREATED)
def save_rate(
    company_id: str,
    dto: ExchangeRateSaveDTO,
    use_cases: UseCases = Depends(get_use_cases),
    user_id: str = Depends(get_current_user_id),
):
    rate = use_cases.save_rate.execute(
        company_id, user_id, dto.from_currency, dto.to_currency, dto.rate, dto.date
    )
    return ExchangeRateResponseDTO.model_validate(rate)


@router.delete("/{rate_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_rate(
    company_id: str,
    rate_id: str,
    use_cases: UseCases = Depends(get_use_cases),
    user_id: str = Depends(get_current_user_id),
):
    use_cases.delete_rate.execute(company_id, user_id, rate_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/deviations")
def check_rate_deviation(
    company_id: str,
    dto: RateDeviationCheckDTO,
    use_cases: UseCases = Depends(get_use_cases),
    user_id: str = Depends(get_current_user_id),
):
    """Advisory warnings only; the rate is not saved."""
    warnings = use_cases.check_rate.execute(
        company_id, user_id, dto.from_currency, dto.to_currency, dto.rate
    )
    return {"warnings": warnings}
