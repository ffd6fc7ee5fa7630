"""
Domain Layer - Value objects and enumerations for the voucher ledger.
"""

from enum import Enum
from typing import NewType

CompanyId = NewType("CompanyId", str)
UserId = NewType("UserId", str)
VoucherId = NewType("VoucherId", str)
AccountId = NewType("AccountId", str)


class VoucherType(str, Enum):
    """Document kinds handled by the posting engine."""
    PAYMENT = "payment"
    RECEIPT = "receipt"
    JOURNAL_ENTRY = "journal_entry"
    OPENING_BALANCE = "opening_balance"
    REVERSAL = "reversal"


class VoucherStatus(str, Enum):
    """Workflow states. Posting is tracked separately through posted_at."""
    DRAFT = "DRAFT"
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"


class LineSide(str, Enum):
    DEBIT = "Debit"
    CREDIT = "Credit"

    def opposite(self) -> "LineSide":
        return LineSide.CREDIT if self is LineSide.DEBIT else LineSide.DEBIT


class PostingLockPolicy(str, Enum):
    """Snapshot of company governance taken at the moment of posting."""
    STRICT_LOCKED = "STRICT_LOCKED"
    FLEXIBLE_LOCKED = "FLEXIBLE_LOCKED"
    FLEXIBLE_EDITABLE = "FLEXIBLE_EDITABLE"


class ApprovalMode(str, Enum):
    """Operating modes derived from the two approval gates."""
    A = "A"  # no gates, auto-post
    B = "B"  # custody confirmation only
    C = "C"  # financial approval only
    D = "D"  # both gates


class FinancialApprovalApplyMode(str, Enum):
    ALL = "ALL"
    MARKED_ONLY = "MARKED_ONLY"


class PolicyErrorMode(str, Enum):
    FAIL_FAST = "FAIL_FAST"
    AGGREGATE = "AGGREGATE"


class AccountRole(str, Enum):
    POSTING = "POSTING"
    HEADER = "HEADER"


class AccountStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class CurrencyPolicy(str, Enum):
    INHERIT = "INHERIT"        # base currency only
    OPEN = "OPEN"              # any currency
    FIXED = "FIXED"            # exactly one currency
    RESTRICTED = "RESTRICTED"  # a whitelist


class AccountOwnerScope(str, Enum):
    SHARED = "shared"
    RESTRICTED = "restricted"


class RateSource(str, Enum):
    REFERENCE = "REFERENCE"
    EXACT_DATE = "EXACT_DATE"
    MOST_RECENT = "MOST_RECENT"
    INVERSE = "INVERSE"
    NONE = "NONE"


class CorrectionMode(str, Enum):
    REVERSE_ONLY = "REVERSE_ONLY"
    REVERSE_AND_REPLACE = "REVERSE_AND_REPLACE"


class RateWarningType(str, Enum):
    FIRST_RATE = "FIRST_RATE"
    PERCENTAGE_DEVIATION = "PERCENTAGE_DEVIATION"
    DECIMAL_SHIFT = "DECIMAL_SHIFT"
