"""
Account resolution for voucher lines.

Lines may reference accounts by id or by code. References are resolved by id
first, then by code, and rewritten to ids before anything is persisted or posted.
"""

from collections.abc import Iterable, Mapping
from dataclasses import replace

from ledger.domain.entities import Account, VoucherEntity
from ledger.domain.errors import ErrorDetails, ValidationError
from ledger.domain.interfaces import IAccountLookupService
from ledger.domain.value_objects import AccountStatus


class AccountResolver:

    def __init__(self, account_lookup: IAccountLookupService):
        self.account_lookup = account_lookup

    def resolve(self, company_id: str, references: Iterable[str]) -> dict[str, Account]:
        """Map each reference to its account. Unknown references raise ACCOUNT_NOT_FOUND."""
        refs = list(dict.fromkeys(references))
        if not refs:
            return {}
        resolved = {
            account.id: account
            for account in self.account_lookup.get_accounts_by_ids(company_id, refs)
        }
        missing = [ref for ref in refs if ref not in resolved]
        if missing:
            by_code = {
                account.code: account
                for account in self.account_lookup.get_accounts_by_codes(company_id, missing)
            }
            for ref in missing:
                if ref in by_code:
                    resolved[ref] = by_code[ref]

        errors = ErrorDetails()
        for ref in refs:
            if ref not in resolved:
                errors.add("ACCOUNT_NOT_FOUND", f"Account {ref} does not exist", "accountId")
        if errors:
            raise ValidationError(
                "ACCOUNT_NOT_FOUND",
                errors.violations[0].message,
                {"violations": [v.to_dict() for v in errors.violations]},
            )
        return resolved

    def normalize(self, voucher: VoucherEntity) -> tuple[VoucherEntity, dict[str, Account]]:
        """Resolve every line and rewrite code references to account ids."""
        resolved = self.resolve(voucher.company_id, (line.account_id for line in voucher.lines))
        lines = tuple(
            line if resolved[line.account_id].id == line.account_id
            else replace(line, account_id=resolved[line.account_id].id)
            for line in voucher.lines
        )
        if lines != voucher.lines:
            voucher = replace(voucher, lines=lines)
        return voucher, {account.id: account for account in resolved.values()}


def assert_accounts_postable(
    voucher: VoucherEntity,
    accounts: Mapping[str, Account],
    check_currency: bool = True,
) -> None:
    """Existence, status, role and currency policy of every line's account."""
    errors = ErrorDetails()
    for index, line in enumerate(voucher.lines):
        hint = f"lines[{index}].accountId"
        account = accounts.get(line.account_id)
        if account is None:
            errors.add("ACCOUNT_NOT_FOUND", f"Account {line.account_id} does not exist", hint)
            continue
        if account.status is not AccountStatus.ACTIVE:
            errors.add("ACCOUNT_INACTIVE", f"Account {account.code} - {account.name} is inactive", hint)
        elif not account.can_post():
            errors.add(
                "ACCOUNT_NOT_POSTABLE",
                f"Account {account.code} - {account.name} is a header or replaced account",
                hint,
            )
        elif check_currency and not account.accepts_currency(line.currency, voucher.base_currency):
            errors.add(
                "ACCOUNT_CURRENCY_NOT_ALLOWED",
                f"Account {account.code} does not accept currency {line.currency}",
                f"lines[{index}].currency",
            )
    if errors:
        first = errors.violations[0]
        raise ValidationError(
            first.code,
            first.message,
            {"violations": [v.to_dict() for v in errors.violations]},
        )
