"""
Use cases - exchange-rate suggestion, capture and sanity checks.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from ledger.core.security import Permission
from ledger.domain.entities import ExchangeRate, utcnow
from ledger.domain.errors import ValidationError
from ledger.domain.interfaces import IExchangeRateRepository, IPermissionChecker
from ledger.domain.money import RATE_DECIMALS, normalize_accounting_date, quantize, to_decimal
from ledger.domain.services import DetectRateDeviationService
from ledger.domain.value_objects import RateSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SuggestedRate:
    rate: Decimal | None
    source: RateSource
    rate_date: date | None = None


def _currency(code: str) -> str:
    value = (code or "").strip().upper()
    if len(value) != 3:
        raise ValidationError("INVALID_CURRENCY", f"Invalid currency code: {code!r}")
    return value


class GetSuggestedRateUseCase:
    """
    Look up a rate for a currency pair: exact date, then the most recent rate
    before it, then the inverse of the opposite pair.
    """

    def __init__(self, rate_repo: IExchangeRateRepository, permission_checker: IPermissionChecker):
        self.rate_repo = rate_repo
        self.permission_checker = permission_checker

    def execute(
        self,
        company_id: str,
        user_id: str,
        from_currency: str,
        to_currency: str,
        on: date,
    ) -> SuggestedRate:
        self.permission_checker.assert_or_throw(user_id, company_id, Permission.EXCHANGE_RATE_VIEW.value)
        source_ccy, target_ccy = _currency(from_currency), _currency(to_currency)
        on = normalize_accounting_date(on)
        if source_ccy == target_ccy:
            return SuggestedRate(rate=Decimal("1"), source=RateSource.NONE, rate_date=on)

        exact = self.rate_repo.get_rate_for_date(company_id, source_ccy, target_ccy, on)
        if exact is not None:
            return SuggestedRate(rate=exact.rate, source=RateSource.EXACT_DATE, rate_date=exact.date)

        recent = self.rate_repo.get_most_recent_rate_before_date(company_id, source_ccy, target_ccy, on)
        if recent is not None:
            return SuggestedRate(rate=recent.rate, source=RateSource.MOST_RECENT, rate_date=recent.date)

        opposite = self.rate_repo.get_most_recent_rate_before_date(company_id, target_ccy, source_ccy, on)
        if opposite is not None:
            return SuggestedRate(
                rate=quantize(Decimal("1") / opposite.rate, RATE_DECIMALS),
                source=RateSource.INVERSE,
                rate_date=opposite.date,
            )
        return SuggestedRate(rate=None, source=RateSource.NONE)


class SaveReferenceRateUseCase:
    def __init__(self, rate_repo: IExchangeRateRepository, permission_checker: IPermissionChecker, clock=utcnow):
        self.rate_repo = rate_repo
        self.permission_checker = permission_checker
        self.clock = clock

    def execute(
        self,
        company_id: str,
        user_id: str,
        from_currency: str,
        to_currency: str,
        rate: object,
        on: date,
    ) -> ExchangeRate:
        self.permission_checker.assert_or_throw(user_id, company_id, Permission.EXCHANGE_RATE_MANAGE.value)
        value = to_decimal(rate)
        if value <= 0:
            raise ValidationError("INVALID_EXCHANGE_RATE", "Exchange rate must be greater than zero")
        source_ccy, target_ccy = _currency(from_currency), _currency(to_currency)
        if source_ccy == target_ccy:
            raise ValidationError("SAME_CURRENCY_RATE", "Cannot store a rate between a currency and itself")

        saved = self.rate_repo.save(ExchangeRate(
            id=str(uuid.uuid4()),
            company_id=company_id,
            from_currency=source_ccy,
            to_currency=target_ccy,
            rate=value,
            date=normalize_accounting_date(on),
            source=RateSource.REFERENCE,
            created_by=user_id,
            created_at=self.clock(),
        ))
        logger.info("Reference rate %s/%s = %s saved", source_ccy, target_ccy, value,
                    extra={"company_id": company_id, "user_id": user_id})
        return saved


class DeleteExchangeRateUseCase:
    def __init__(self, rate_repo: IExchangeRateRepository, permission_checker: IPermissionChecker):
        self.rate_repo = rate_repo
        self.permission_checker = permission_checker

    def execute(self, company_id: str, user_id: str, rate_id: str) -> None:
        self.permission_checker.assert_or_throw(user_id, company_id, Permission.EXCHANGE_RATE_MANAGE.value)
        self.rate_repo.delete(company_id, rate_id)


class CheckRateDeviationUseCase:
    """Warn when an entered rate is far from recent history. Never blocks."""

    RECENT_LIMIT = 5

    def __init__(
        self,
        rate_repo: IExchangeRateRepository,
        permission_checker: IPermissionChecker,
        deviation_service: DetectRateDeviationService | None = None,
    ):
        self.rate_repo = rate_repo
        self.permission_checker = permission_checker
        self.deviation_service = deviation_service or DetectRateDeviationService()

    def execute(
        self,
        company_id: str,
        user_id: str,
        from_currency: str,
        to_currency: str,
        rate: object,
    ) -> list[dict]:
        self.permission_checker.assert_or_throw(user_id, company_id, Permission.EXCHANGE_RATE_VIEW.value)
        recent = self.rate_repo.get_recent_rates(
            company_id, _currency(from_currency), _currency(to_currency), limit=self.RECENT_LIMIT
        )
        return self.deviation_service.check(rate, recent)
