"""
Use cases - voucher lifecycle.

Every use case checks permission before touching a repository and then runs
inside a single transaction. PostVoucherUseCase is the only writer of ledger
rows; the other use cases reach it through post_within() so that auto-posting
joins the caller's transaction.
"""

import logging
import uuid
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from ledger.application.accounts import AccountResolver, assert_accounts_postable
from ledger.application.dto.voucher_dto import (
    VoucherCreateDTO,
    VoucherLineInputDTO,
    VoucherUpdateDTO,
)
from ledger.application.policy_registry import build_posting_policies
from ledger.core.security import Permission
from ledger.domain.entities import VoucherEntity, VoucherLine, VoucherMetadata, utcnow
from ledger.domain.errors import (
    BusinessError,
    NotFoundError,
    ValidationError,
    Violation,
    VoucherLockedError,
)
from ledger.domain.interfaces import (
    IAccountingPolicyConfigProvider,
    IAccountLookupService,
    ILedgerRepository,
    IPermissionChecker,
    ITransactionManager,
    IUserAccessScopeProvider,
    IVoucherRepository,
)
from ledger.domain.money import normalize_accounting_date, to_decimal, triangulate
from ledger.domain.policies import PolicyContext
from ledger.domain.policy_config import AccountingPolicyConfig
from ledger.domain.services import ApprovalPolicyService, VoucherValidationService
from ledger.domain.value_objects import VoucherStatus, VoucherType

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

VOUCHER_NO_PREFIXES: dict[VoucherType, str] = {
    VoucherType.PAYMENT: "PV",
    VoucherType.RECEIPT: "RV",
    VoucherType.JOURNAL_ENTRY: "JV",
    VoucherType.OPENING_BALANCE: "OB",
    VoucherType.REVERSAL: "RJ",
}

ONE = Decimal("1")


def next_voucher_no(
    voucher_repo: IVoucherRepository,
    company_id: str,
    voucher_type: VoucherType,
    on: date,
) -> str:
    """Format: PREFIX/YYYYMMDD/NNN, numbered per company, type and day."""
    prefix = f"{VOUCHER_NO_PREFIXES[VoucherType(voucher_type)]}/{on.strftime('%Y%m%d')}/"
    return f"{prefix}{voucher_repo.count_for_prefix(company_id, prefix) + 1:03d}"


def build_lines(
    inputs: Iterable[VoucherLineInputDTO],
    currency: str,
    header_rate: Decimal,
    base_currency: str,
) -> list[VoucherLine]:
    """Triangulate entered lines into base currency."""
    lines = []
    for index, item in enumerate(inputs, start=1):
        line_currency = (item.currency or currency).upper()
        parity = ONE if line_currency == currency else item.parity
        result = triangulate(item.amount, parity, header_rate, base_currency)
        lines.append(VoucherLine(
            id=index,
            account_id=item.account_id.strip(),
            side=item.side,
            amount=item.amount,
            currency=line_currency,
            base_amount=result.base_amount,
            base_currency=base_currency,
            exchange_rate=result.effective_rate,
            notes=item.notes,
            cost_center_id=item.cost_center_id,
            metadata={**item.metadata, "parity": str(parity)},
        ))
    return lines


def retriangulate(
    lines: Iterable[VoucherLine],
    currency: str,
    header_rate: Decimal,
    base_currency: str,
) -> list[VoucherLine]:
    """Recompute stored lines after the header rate changed; the voucher currency must be unchanged."""
    result = []
    for line in lines:
        parity = ONE if line.currency == currency else to_decimal(line.metadata.get("parity", "1"))
        converted = triangulate(line.amount, parity, header_rate, base_currency)
        result.append(replace(
            line,
            base_amount=converted.base_amount,
            base_currency=base_currency,
            exchange_rate=converted.effective_rate,
            metadata={**line.metadata, "parity": str(parity)},
        ))
    return result


def assert_period_open(config: AccountingPolicyConfig, *dates: date | None) -> None:
    locked = config.locked_through_date
    if locked is None:
        return
    locked = normalize_accounting_date(locked)
    for value in dates:
        if value is not None and normalize_accounting_date(value) <= locked:
            raise VoucherLockedError(
                "VOUCHER_PERIOD_LOCKED",
                f"Period is locked through {locked.isoformat()}",
                remedy="Use a date after the locked period",
            )


class VoucherUseCase:
    """Shared plumbing: repository, transaction manager, permission checker, clock."""

    permission: Permission

    def __init__(
        self,
        voucher_repo: IVoucherRepository,
        tx_manager: ITransactionManager,
        permission_checker: IPermissionChecker,
        clock: Clock = utcnow,
    ):
        self.voucher_repo = voucher_repo
        self.tx_manager = tx_manager
        self.permission_checker = permission_checker
        self.clock = clock

    def _authorize(self, user_id: str, company_id: str) -> None:
        self.permission_checker.assert_or_throw(user_id, company_id, self.permission.value)

    def _load(self, company_id: str, voucher_id: str) -> VoucherEntity:
        voucher = self.voucher_repo.find_by_id(company_id, voucher_id)
        if voucher is None:
            raise NotFoundError("VOUCHER_NOT_FOUND", f"Voucher {voucher_id} not found")
        return voucher

    @staticmethod
    def _log_context(voucher: VoucherEntity, user_id: str) -> dict[str, Any]:
        return {
            "voucher_id": voucher.id,
            "voucher_no": voucher.voucher_no,
            "company_id": voucher.company_id,
            "user_id": user_id,
            "status": voucher.status.value,
        }


class PostVoucherUseCase(VoucherUseCase):
    """The single path from an approved voucher to ledger rows."""

    permission = Permission.VOUCHER_POST

    def __init__(
        self,
        voucher_repo: IVoucherRepository,
        ledger_repo: ILedgerRepository,
        tx_manager: ITransactionManager,
        permission_checker: IPermissionChecker,
        config_provider: IAccountingPolicyConfigProvider,
        account_lookup: IAccountLookupService,
        scope_provider: IUserAccessScopeProvider,
        validation_service: VoucherValidationService | None = None,
        clock: Clock = utcnow,
    ):
        super().__init__(voucher_repo, tx_manager, permission_checker, clock)
        self.ledger_repo = ledger_repo
        self.config_provider = config_provider
        self.accounts = AccountResolver(account_lookup)
        self.scope_provider = scope_provider
        self.validation = validation_service or VoucherValidationService()

    def execute(self, company_id: str, voucher_id: str, user_id: str) -> VoucherEntity:
        self._authorize(user_id, company_id)
        return self.tx_manager.run_transaction(
            lambda tx: self.post_within(tx, company_id, voucher_id, user_id)
        )

    def post_within(self, tx: Any, company_id: str, voucher_id: str, user_id: str) -> VoucherEntity:
        voucher = self._load(company_id, voucher_id)
        if voucher.is_posted:
            logger.info("Voucher %s already posted, nothing to do", voucher.voucher_no,
                        extra=self._log_context(voucher, user_id))
            return voucher

        config = self.config_provider.get_config(company_id)
        voucher, accounts = self.accounts.normalize(voucher)
        assert_accounts_postable(voucher, accounts)

        self.validation.validate_core(voucher)
        scope = None
        if config.account_access_enabled:
            scope = self.scope_provider.get_scope(user_id, company_id)
        self.validation.validate_policies(
            PolicyContext(voucher=voucher, user_id=user_id, accounts=accounts, user_scope=scope),
            build_posting_policies(config),
            config.policy_error_mode,
        )

        now = self.clock()
        posted = voucher.post(user_id, config.posting_lock_policy(), now)
        self.ledger_repo.record_for_voucher(posted, tx)
        saved = self.voucher_repo.save(posted)

        if saved.reversal_of_voucher_id:
            original = self.voucher_repo.find_by_id(company_id, saved.reversal_of_voucher_id)
            if original is not None and not original.metadata.is_reversed:
                self.voucher_repo.save(
                    original.mark_reversed(saved.id, saved.metadata.correction_group_id, now)
                )

        logger.info("Voucher %s posted with %s", saved.voucher_no, saved.posting_lock_policy.value,
                    extra=self._log_context(saved, user_id))
        return saved


class _AutoPostingUseCase(VoucherUseCase):
    """Use cases that may hand an APPROVED voucher straight to posting."""

    def __init__(
        self,
        voucher_repo: IVoucherRepository,
        tx_manager: ITransactionManager,
        permission_checker: IPermissionChecker,
        config_provider: IAccountingPolicyConfigProvider,
        post_use_case: PostVoucherUseCase | None = None,
        clock: Clock = utcnow,
    ):
        super().__init__(voucher_repo, tx_manager, permission_checker, clock)
        self.config_provider = config_provider
        self.post_use_case = post_use_case

    def _maybe_auto_post(
        self,
        tx: Any,
        config: AccountingPolicyConfig,
        voucher: VoucherEntity,
        user_id: str,
    ) -> VoucherEntity:
        if (
            self.post_use_case is not None
            and config.auto_post_enabled
            and voucher.status is VoucherStatus.APPROVED
            and not voucher.is_posted
        ):
            return self.post_use_case.post_within(tx, voucher.company_id, voucher.id, user_id)
        return voucher


class CreateVoucherUseCase(VoucherUseCase):
    permission = Permission.VOUCHER_CREATE

    def __init__(
        self,
        voucher_repo: IVoucherRepository,
        tx_manager: ITransactionManager,
        permission_checker: IPermissionChecker,
        config_provider: IAccountingPolicyConfigProvider,
        account_lookup: IAccountLookupService,
        clock: Clock = utcnow,
    ):
        super().__init__(voucher_repo, tx_manager, permission_checker, clock)
        self.config_provider = config_provider
        self.accounts = AccountResolver(account_lookup)

    def execute(
        self,
        company_id: str,
        user_id: str,
        dto: VoucherCreateDTO,
        metadata: VoucherMetadata | None = None,
    ) -> VoucherEntity:
        self._authorize(user_id, company_id)
        return self.tx_manager.run_transaction(
            lambda tx: self.create_within(tx, company_id, user_id, dto, metadata)
        )

    def create_within(
        self,
        tx: Any,
        company_id: str,
        user_id: str,
        dto: VoucherCreateDTO,
        metadata: VoucherMetadata | None = None,
    ) -> VoucherEntity:
        config = self.config_provider.get_config(company_id)
        base_currency = config.base_currency.upper()
        currency = (dto.currency or base_currency).upper()
        header_rate = ONE if currency == base_currency else dto.exchange_rate
        voucher_date = normalize_accounting_date(dto.date)
        now = self.clock()

        voucher = VoucherEntity.build(
            id=str(uuid.uuid4()),
            company_id=company_id,
            voucher_no=dto.voucher_no or next_voucher_no(
                self.voucher_repo, company_id, dto.type, voucher_date
            ),
            type=dto.type,
            date=voucher_date,
            description=dto.description,
            currency=currency,
            base_currency=base_currency,
            exchange_rate=header_rate,
            lines=build_lines(dto.lines, currency, header_rate, base_currency),
            created_by=user_id,
            created_at=now,
            status=VoucherStatus.DRAFT,
            metadata=metadata or VoucherMetadata(),
            reference=dto.reference,
            updated_at=now,
        )
        voucher, accounts = self.accounts.normalize(voucher)
        assert_accounts_postable(voucher, accounts)

        saved = self.voucher_repo.save(voucher)
        logger.info("Voucher %s created", saved.voucher_no, extra=self._log_context(saved, user_id))
        return saved


class UpdateVoucherUseCase(VoucherUseCase):
    """Edit a voucher. Posted vouchers are editable only in flexible mode with the toggle on."""

    permission = Permission.VOUCHER_UPDATE

    def __init__(
        self,
        voucher_repo: IVoucherRepository,
        ledger_repo: ILedgerRepository,
        tx_manager: ITransactionManager,
        permission_checker: IPermissionChecker,
        config_provider: IAccountingPolicyConfigProvider,
        account_lookup: IAccountLookupService,
        clock: Clock = utcnow,
    ):
        super().__init__(voucher_repo, tx_manager, permission_checker, clock)
        self.ledger_repo = ledger_repo
        self.config_provider = config_provider
        self.accounts = AccountResolver(account_lookup)

    def execute(
        self,
        company_id: str,
        voucher_id: str,
        user_id: str,
        dto: VoucherUpdateDTO,
    ) -> VoucherEntity:
        self._authorize(user_id, company_id)

        def work(tx: Any) -> VoucherEntity:
            voucher = self._load(company_id, voucher_id)
            config = self.config_provider.get_config(company_id)
            assert_period_open(config, voucher.date, dto.date)
            voucher.assert_can_edit(config.is_strict_mode, config.allow_edit_delete_posted)

            base_currency = voucher.base_currency
            currency = (dto.currency or voucher.currency).upper()
            if currency == base_currency:
                header_rate = ONE
            elif dto.exchange_rate is not None:
                header_rate = dto.exchange_rate
            else:
                header_rate = voucher.exchange_rate

            # Stored parities are relative to the current voucher currency.
            lines = None
            if dto.lines is not None:
                lines = build_lines(dto.lines, currency, header_rate, base_currency)
            elif currency != voucher.currency:
                code = "LINES_REQUIRED_FOR_CURRENCY_CHANGE"
                message = (
                    f"Changing the voucher currency from {voucher.currency} to {currency} "
                    "requires the lines to be sent again"
                )
                raise ValidationError(
                    code,
                    message,
                    {"violations": [Violation(code, message, ("currency", "lines")).to_dict()]},
                )
            elif header_rate != voucher.exchange_rate:
                lines = retriangulate(voucher.lines, currency, header_rate, base_currency)

            header: dict[str, Any] = {"currency": currency, "exchange_rate": header_rate}
            if dto.date is not None:
                header["date"] = normalize_accounting_date(dto.date)
            if dto.description is not None:
                header["description"] = dto.description
            if dto.reference is not None:
                header["reference"] = dto.reference

            revised = voucher.revise(lines=lines, at=self.clock(), **header)
            revised, accounts = self.accounts.normalize(revised)
            assert_accounts_postable(revised, accounts)
            saved = self.voucher_repo.save(revised)

            if saved.is_posted:
                self.ledger_repo.delete_for_voucher(company_id, saved.id)
                self.ledger_repo.record_for_voucher(saved, tx)
                logger.warning("Posted voucher %s edited, ledger resynced", saved.voucher_no,
                               extra=self._log_context(saved, user_id))
            else:
                logger.info("Voucher %s updated", saved.voucher_no, extra=self._log_context(saved, user_id))
            return saved

        return self.tx_manager.run_transaction(work)


class SubmitVoucherUseCase(_AutoPostingUseCase):
    """Freeze gate requirements onto the voucher and move it into approval."""

    permission = Permission.VOUCHER_SUBMIT

    def __init__(
        self,
        voucher_repo: IVoucherRepository,
        tx_manager: ITransactionManager,
        permission_checker: IPermissionChecker,
        config_provider: IAccountingPolicyConfigProvider,
        account_lookup: IAccountLookupService,
        post_use_case: PostVoucherUseCase | None = None,
        approval_service: ApprovalPolicyService | None = None,
        clock: Clock = utcnow,
    ):
        super().__init__(voucher_repo, tx_manager, permission_checker, config_provider, post_use_case, clock)
        self.accounts = AccountResolver(account_lookup)
        self.approval_service = approval_service or ApprovalPolicyService()

    def execute(self, company_id: str, voucher_id: str, user_id: str) -> VoucherEntity:
        self._authorize(user_id, company_id)
        return self.tx_manager.run_transaction(
            lambda tx: self.submit_within(tx, company_id, voucher_id, user_id)
        )

    def submit_within(
        self,
        tx: Any,
        company_id: str,
        voucher_id: str,
        user_id: str,
        auto_post: bool = True,
    ) -> VoucherEntity:
        voucher = self._load(company_id, voucher_id)
        if voucher.status is VoucherStatus.APPROVED:
            logger.info("Voucher %s already approved, submit ignored", voucher.voucher_no,
                        extra=self._log_context(voucher, user_id))
            return voucher

        config = self.config_provider.get_config(company_id)
        resolved = self.accounts.resolve(company_id, voucher.account_ids())
        touched = {account.id: account for account in resolved.values()}.values()
        gates = self.approval_service.evaluate_gates(config, touched)

        saved = self.voucher_repo.save(voucher.submit(user_id, gates, self.clock()))
        logger.info("Voucher %s submitted in mode %s", saved.voucher_no, gates.mode.value,
                    extra=self._log_context(saved, user_id))
        if auto_post:
            return self._maybe_auto_post(tx, config, saved, user_id)
        return saved


class ApproveVoucherUseCase(_AutoPostingUseCase):
    """
    Satisfy the financial-approval gate of a PENDING voucher, or fast-track a
    DRAFT when the company has no gates enabled.
    """

    permission = Permission.VOUCHER_APPROVE

    def execute(self, company_id: str, voucher_id: str, user_id: str) -> VoucherEntity:
        self._authorize(user_id, company_id)

        def work(tx: Any) -> VoucherEntity:
            voucher = self._load(company_id, voucher_id)
            if voucher.is_posted or voucher.status is VoucherStatus.APPROVED:
                return voucher
            config = self.config_provider.get_config(company_id)
            now = self.clock()
            if voucher.status is VoucherStatus.PENDING:
                updated = voucher.satisfy_financial_approval(user_id, now)
            elif voucher.status is VoucherStatus.DRAFT and config.is_strict_mode:
                raise BusinessError(
                    "SUBMIT_REQUIRED",
                    "Approval gates are enabled: submit the voucher before approving it",
                )
            else:
                updated = voucher.approve(user_id, now)

            if updated is voucher:
                return voucher
            saved = self.voucher_repo.save(updated)
            logger.info("Voucher %s approval recorded", saved.voucher_no,
                        extra=self._log_context(saved, user_id))
            return self._maybe_auto_post(tx, config, saved, user_id)

        return self.tx_manager.run_transaction(work)


class ConfirmCustodyUseCase(_AutoPostingUseCase):
    permission = Permission.VOUCHER_CONFIRM_CUSTODY

    def execute(self, company_id: str, voucher_id: str, user_id: str) -> VoucherEntity:
        self._authorize(user_id, company_id)

        def work(tx: Any) -> VoucherEntity:
            voucher = self._load(company_id, voucher_id)
            if voucher.is_posted or voucher.status is VoucherStatus.APPROVED:
                return voucher
            updated = voucher.confirm_custody(user_id, self.clock())
            if updated is voucher:
                return voucher
            saved = self.voucher_repo.save(updated)
            logger.info("Custody confirmed on voucher %s", saved.voucher_no,
                        extra=self._log_context(saved, user_id))
            config = self.config_provider.get_config(company_id)
            return self._maybe_auto_post(tx, config, saved, user_id)

        return self.tx_manager.run_transaction(work)


class RejectVoucherUseCase(VoucherUseCase):
    permission = Permission.VOUCHER_REJECT

    def execute(self, company_id: str, voucher_id: str, user_id: str, reason: str) -> VoucherEntity:
        self._authorize(user_id, company_id)

        def work(tx: Any) -> VoucherEntity:
            voucher = self._load(company_id, voucher_id)
            saved = self.voucher_repo.save(voucher.reject(user_id, reason, self.clock()))
            logger.info("Voucher %s rejected", saved.voucher_no, extra=self._log_context(saved, user_id))
            return saved

        return self.tx_manager.run_transaction(work)


class CancelVoucherUseCase(VoucherUseCase):
    permission = Permission.VOUCHER_CANCEL

    def execute(self, company_id: str, voucher_id: str, user_id: str) -> VoucherEntity:
        self._authorize(user_id, company_id)

        def work(tx: Any) -> VoucherEntity:
            voucher = self._load(company_id, voucher_id)
            saved = self.voucher_repo.save(voucher.cancel(user_id, self.clock()))
            logger.info("Voucher %s cancelled", saved.voucher_no, extra=self._log_context(saved, user_id))
            return saved

        return self.tx_manager.run_transaction(work)


class DeleteVoucherUseCase(VoucherUseCase):
    permission = Permission.VOUCHER_DELETE

    def __init__(
        self,
        voucher_repo: IVoucherRepository,
        ledger_repo: ILedgerRepository,
        tx_manager: ITransactionManager,
        permission_checker: IPermissionChecker,
        config_provider: IAccountingPolicyConfigProvider,
        clock: Clock = utcnow,
    ):
        super().__init__(voucher_repo, tx_manager, permission_checker, clock)
        self.ledger_repo = ledger_repo
        self.config_provider = config_provider

    def execute(self, company_id: str, voucher_id: str, user_id: str) -> None:
        self._authorize(user_id, company_id)

        def work(tx: Any) -> None:
            voucher = self._load(company_id, voucher_id)
            config = self.config_provider.get_config(company_id)
            assert_period_open(config, voucher.date)
            voucher.assert_can_delete(config.is_strict_mode, config.allow_edit_delete_posted)
            if voucher.is_posted:
                self.ledger_repo.delete_for_voucher(company_id, voucher.id)
            self.voucher_repo.delete(company_id, voucher.id)
            logger.info("Voucher %s deleted", voucher.voucher_no, extra=self._log_context(voucher, user_id))

        self.tx_manager.run_transaction(work)


class GetVoucherUseCase(VoucherUseCase):
    permission = Permission.VOUCHER_VIEW

    def execute(self, company_id: str, voucher_id: str, user_id: str) -> VoucherEntity:
        self._authorize(user_id, company_id)
        return self._load(company_id, voucher_id)


class ListVouchersUseCase(VoucherUseCase):
    permission = Permission.VOUCHER_VIEW

    def execute(
        self,
        company_id: str,
        user_id: str,
        status: VoucherStatus | None = None,
        limit: int | None = 100,
        offset: int = 0,
    ) -> list[VoucherEntity]:
        self._authorize(user_id, company_id)
        return self.voucher_repo.find_by_company(company_id, status=status, limit=limit, offset=offset)
