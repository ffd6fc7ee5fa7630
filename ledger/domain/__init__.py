"""Domain layer - Pure Python business logic."""

from ledger.domain.entities import (
    Account,
    ExchangeRate,
    GateRequirements,
    GateSignoff,
    LedgerEntry,
    VoucherEntity,
    VoucherLine,
    VoucherMetadata,
)
from ledger.domain.errors import (
    AppError,
    BusinessError,
    ConflictError,
    ErrorCategory,
    NotFoundError,
    PermissionDeniedError,
    PostingError,
    ValidationError,
    Violation,
    VoucherLockedError,
)
from ledger.domain.money import MONEY_EPS, round_money, triangulate
from ledger.domain.policy_config import AccountingPolicyConfig, CostCenterPolicyConfig
from ledger.domain.services import (
    ApprovalPolicyService,
    DetectRateDeviationService,
    VoucherValidationService,
)
from ledger.domain.value_objects import (
    ApprovalMode,
    LineSide,
    PostingLockPolicy,
    VoucherStatus,
    VoucherType,
)
