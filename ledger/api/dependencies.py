"""
Per-request wiring: one Session, the SQL adapters on top of it, and the use
cases built from them by constructor injection.
"""

from dataclasses import dataclass

from fastapi import Depends, Header
from sqlmodel import Session

from ledger.application.use_cases import (
    ApproveVoucherUseCase,
    CancelVoucherUseCase,
    CheckRateDeviationUseCase,
    ConfirmCustodyUseCase,
    CreateVoucherUseCase,
    DeleteExchangeRateUseCase,
    DeleteVoucherUseCase,
    GetSuggestedRateUseCase,
    GetVoucherUseCase,
    ListVouchersUseCase,
    PostVoucherUseCase,
    RejectVoucherUseCase,
    ReverseAndReplaceUseCase,
    SaveReferenceRateUseCase,
    SubmitVoucherUseCase,
    UpdateVoucherUseCase,
)
from ledger.core.config import settings
from ledger.domain.errors import PermissionDeniedError
from ledger.infrastructure.database import get_db
from ledger.infrastructure.repositories import (
    RBACPermissionChecker,
    SqlAccountingPolicyConfigProvider,
    SqlAccountLookupService,
    SqlExchangeRateRepository,
    SqlLedgerRepository,
    SqlTransactionManager,
    SqlUserAccessScopeProvider,
    SqlVoucherRepository,
)


@dataclass
class UseCases:
    create: CreateVoucherUseCase
    update: UpdateVoucherUseCase
    submit: SubmitVoucherUseCase
    approve: ApproveVoucherUseCase
    reject: RejectVoucherUseCase
    confirm_custody: ConfirmCustodyUseCase
    post: PostVoucherUseCase
    cancel: CancelVoucherUseCase
    delete: DeleteVoucherUseCase
    correct: ReverseAndReplaceUseCase
    get: GetVoucherUseCase
    list: ListVouchersUseCase
    suggest_rate: GetSuggestedRateUseCase
    save_rate: SaveReferenceRateUseCase
    delete_rate: DeleteExchangeRateUseCase
    check_rate: CheckRateDeviationUseCase


def build_use_cases(session: Session, default_base_currency: str = settings.default_base_currency) -> UseCases:
    vouchers = SqlVoucherRepository(session)
    ledger = SqlLedgerRepository(session)
    tx = SqlTransactionManager(session)
    permissions = RBACPermissionChecker(session)
    config = SqlAccountingPolicyConfigProvider(session, default_base_currency)
    accounts = SqlAccountLookupService(session)
    scopes = SqlUserAccessScopeProvider(session)
    rates = SqlExchangeRateRepository(session)

    post = PostVoucherUseCase(vouchers, ledger, tx, permissions, config, accounts, scopes)
    create = CreateVoucherUseCase(vouchers, tx, permissions, config, accounts)
    submit = SubmitVoucherUseCase(vouchers, tx, permissions, config, accounts, post_use_case=post)
    return UseCases(
        create=create,
        update=UpdateVoucherUseCase(vouchers, ledger, tx, permissions, config, accounts),
        submit=submit,
        approve=ApproveVoucherUseCase(vouchers, tx, permissions, config, post_use_case=post),
        reject=RejectVoucherUseCase(vouchers, tx, permissions),
        confirm_custody=ConfirmCustodyUseCase(vouchers, tx, permissions, config, post_use_case=post),
        post=post,
        cancel=CancelVoucherUseCase(vouchers, tx, permissions),
        delete=DeleteVoucherUseCase(vouchers, ledger, tx, permissions, config),
        correct=ReverseAndReplaceUseCase(vouchers, ledger, tx, permissions, create, submit, post),
        get=GetVoucherUseCase(vouchers, tx, permissions),
        list=ListVouchersUseCase(vouchers, tx, permissions),
        suggest_rate=GetSuggestedRateUseCase(rates, permissions),
        save_rate=SaveReferenceRateUseCase(rates, permissions),
        delete_rate=DeleteExchangeRateUseCase(rates, permissions),
        check_rate=CheckRateDeviationUseCase(rates, permissions),
    )


def get_use_cases(db: Session = Depends(get_db)) -> UseCases:
    return build_use_cases(db)


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """The acting user. Authentication happens upstream; the gateway forwards the id."""
    if not x_user_id:
        raise PermissionDeniedError("AUTHENTICATION_REQUIRED", "X-User-Id header is required")
    return x_user_id
