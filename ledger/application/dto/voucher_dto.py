"""
API DTOs - Data Transfer Objects for voucher and exchange-rate requests/responses.
"""

import datetime as dt
from decimal import Decimal
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ledger.domain.entities import VoucherMetadata
from ledger.domain.value_objects import (
    CorrectionMode,
    LineSide,
    PostingLockPolicy,
    RateSource,
    VoucherStatus,
    VoucherType,
)


class VoucherLineInputDTO(BaseModel):
    """DTO - Voucher line as entered by the user."""
    account_id: str = Field(..., min_length=1, description="Account id or account code")
    side: LineSide = Field(..., description="Debit or Credit")
    amount: Decimal = Field(..., gt=0, description="Amount in line currency")
    currency: str | None = Field(None, min_length=3, max_length=3, description="Line currency, defaults to voucher currency")
    parity: Decimal = Field(Decimal("1"), gt=0, description="Rate from line currency to voucher currency")
    notes: str | None = Field(None, max_length=500)
    cost_center_id: str | None = Field(None, description="Cost center")
    metadata: dict[str, Any] = Field(default_factory=dict)


class VoucherCreateDTO(BaseModel):
    """DTO - Create a voucher in DRAFT."""
    type: VoucherType = Field(..., description="Voucher type")
    date: dt.date = Field(..., description="Accounting date")
    description: str = Field("", max_length=500)
    currency: str | None = Field(None, min_length=3, max_length=3, description="Voucher currency, defaults to base")
    exchange_rate: Decimal = Field(Decimal("1"), gt=0, description="Rate from voucher currency to base currency")
    reference: str | None = Field(None, max_length=100)
    voucher_no: str | None = Field(None, description="Voucher number, generated when omitted")
    lines: list[VoucherLineInputDTO] = Field(..., min_length=2, description="Voucher lines")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "type": "journal_entry",
            "date": "2025-02-01",
            "description": "Office rent February",
            "currency": "USD",
            "exchange_rate": 1,
            "lines": [
                {"account_id": "6100", "side": "Debit", "amount": 1200},
                {"account_id": "1010", "side": "Credit", "amount": 1200},
            ],
        }
    })


class VoucherUpdateDTO(BaseModel):
    """DTO - Partial update. Omitted fields keep their value."""
    date: dt.date | None = None
    description: str | None = Field(None, max_length=500)
    currency: str | None = Field(None, min_length=3, max_length=3)
    exchange_rate: Decimal | None = Field(None, gt=0)
    reference: str | None = Field(None, max_length=100)
    lines: list[VoucherLineInputDTO] | None = Field(None, min_length=2)


class RejectVoucherDTO(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500, description="Why the voucher is rejected")


class CorrectionRequestDTO(BaseModel):
    """DTO - Reverse a posted voucher and optionally replace it."""
    mode: CorrectionMode = Field(CorrectionMode.REVERSE_ONLY)
    reason: str | None = Field(None, max_length=500)
    reversal_date: dt.date | Literal["today"] | None = Field(
        None, description="Defaults to the original voucher date"
    )
    replacement: VoucherCreateDTO | None = Field(None, description="Required for REVERSE_AND_REPLACE")
    auto_post_replacement: bool = False


class VoucherLineResponseDTO(BaseModel):
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

    model_config = ConfigDict(from_attributes=True)


class VoucherResponseDTO(BaseModel):
    """DTO - Voucher as returned by the API."""
    id: str
    company_id: str
    voucher_no: str
    type: VoucherType
    date: dt.date
    description: str
    currency: str
    base_currency: str
    exchange_rate: Decimal
    lines: list[VoucherLineResponseDTO]
    total_debit: Decimal
    total_credit: Decimal
    status: VoucherStatus
    is_posted: bool
    metadata: dict[str, Any]
    created_by: str
    created_at: dt.datetime
    approved_by: str | None = None
    approved_at: dt.datetime | None = None
    rejected_by: str | None = None
    rejected_at: dt.datetime | None = None
    rejection_reason: str | None = None
    posted_by: str | None = None
    posted_at: dt.datetime | None = None
    posting_lock_policy: PostingLockPolicy | None = None
    reversal_of_voucher_id: str | None = None
    reference: str | None = None
    updated_at: dt.datetime | None = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("metadata", mode="before")
    @classmethod
    def _metadata_to_dict(cls, value: Any) -> Any:
        if isinstance(value, VoucherMetadata):
            return value.to_dict()
        return value


class CorrectionSummaryDTO(BaseModel):
    reversal_posted: bool
    reversal_status: VoucherStatus
    replacement_created: bool
    replacement_posted: bool

    model_config = ConfigDict(from_attributes=True)


class CorrectionResultDTO(BaseModel):
    reverse_voucher_id: str
    replace_voucher_id: str | None = None
    correction_group_id: str
    summary: CorrectionSummaryDTO

    model_config = ConfigDict(from_attributes=True)


class ExchangeRateSaveDTO(BaseModel):
    from_currency: str = Field(..., min_length=3, max_length=3)
    to_currency: str = Field(..., min_length=3, max_length=3)
    rate: Decimal = Field(..., description="Units of to_currency per one from_currency")
    date: dt.date

    model_config = ConfigDict(json_schema_extra={
        "example": {"from_currency": "EUR", "to_currency": "USD", "rate": "1.0850", "date": "2025-02-01"}
    })


class ExchangeRateResponseDTO(BaseModel):
    id: str
    company_id: str
    from_currency: str
    to_currency: str
    rate: Decimal
    date: dt.date
    source: RateSource
    created_by: str | None = None
    created_at: dt.datetime

    model_config = ConfigDict(from_attributes=True)


class SuggestedRateDTO(BaseModel):
    rate: Decimal | None = None
    source: RateSource
    rate_date: dt.date | None = None

    model_config = ConfigDict(from_attributes=True)


class RateDeviationCheckDTO(BaseModel):
    from_currency: str = Field(..., min_length=3, max_length=3)
    to_currency: str = Field(..., min_length=3, max_length=3)
    rate: Decimal = Field(..., gt=0)
