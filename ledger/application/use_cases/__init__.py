"""Use cases - transaction-scoped workflows over the domain."""

from ledger.application.use_cases.corrections import (
    CorrectionResult,
    CorrectionSummary,
    ReverseAndReplaceUseCase,
)
from ledger.application.use_cases.exchange_rates import (
    CheckRateDeviationUseCase,
    DeleteExchangeRateUseCase,
    GetSuggestedRateUseCase,
    SaveReferenceRateUseCase,
    SuggestedRate,
)
from ledger.application.use_cases.vouchers import (
    ApproveVoucherUseCase,
    CancelVoucherUseCase,
    ConfirmCustodyUseCase,
    CreateVoucherUseCase,
    DeleteVoucherUseCase,
    GetVoucherUseCase,
    ListVouchersUseCase,
    PostVoucherUseCase,
    RejectVoucherUseCase,
    SubmitVoucherUseCase,
    UpdateVoucherUseCase,
)
