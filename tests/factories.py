"""
Builders for accounts, vouchers and request DTOs used across the tests.
"""

from datetime import date
from decimal import Decimal

from ledger.application.dto.voucher_dto import VoucherCreateDTO
from ledger.domain.entities import Account, VoucherEntity, VoucherLine
from ledger.domain.value_objects import (
    AccountOwnerScope,
    AccountRole,
    CurrencyPolicy,
    LineSide,
)

COMPANY_ID = "co-1"
ACCOUNTANT = "u-accountant"
CUSTODIAN = "u-custodian"


def make_accounts(company_id: str = COMPANY_ID) -> list[Account]:
    return [
        Account(id="acc-cash", company_id=company_id, code="1010", name="Cash", account_type="asset"),
        Account(id="acc-rent", company_id=company_id, code="6100", name="Rent expense", account_type="expense"),
        Account(
            id="acc-vault",
            company_id=company_id,
            code="1020",
            name="Vault",
            account_type="asset",
            requires_approval=True,
            requires_custody_confirmation=True,
            custodian_user_id=CUSTODIAN,
        ),
        Account(
            id="acc-assets",
            company_id=company_id,
            code="1000",
            name="Assets",
            account_type="asset",
            role=AccountRole.HEADER,
        ),
        Account(
            id="acc-usd-bank",
            company_id=company_id,
            code="1110",
            name="USD bank",
            account_type="asset",
            currency_policy=CurrencyPolicy.INHERIT,
        ),
        Account(
            id="acc-branch",
            company_id=company_id,
            code="1030",
            name="Branch cash",
            account_type="asset",
            owner_scope=AccountOwnerScope.RESTRICTED,
            owner_unit_ids=("unit-a",),
        ),
    ]


def journal_dto(
    amount="100",
    debit: str = "acc-rent",
    credit: str = "acc-cash",
    credit_amount=None,
    **fields,
) -> VoucherCreateDTO:
    """Two-line voucher: debit one account, credit another."""
    data = {
        "type": "journal_entry",
        "date": date(2025, 2, 1),
        "description": "Office rent",
        "lines": [
            {"account_id": debit, "side": "Debit", "amount": amount},
            {"account_id": credit, "side": "Credit", "amount": credit_amount or amount},
        ],
    }
    data.update(fields)
    return VoucherCreateDTO(**data)


def make_line(line_id: int, account_id: str, side: LineSide, amount, currency="USD", rate="1") -> VoucherLine:
    amount = Decimal(str(amount))
    rate = Decimal(str(rate))
    return VoucherLine(
        id=line_id,
        account_id=account_id,
        side=side,
        amount=amount,
        currency=currency,
        base_amount=(amount * rate).quantize(Decimal("0.01")),
        base_currency="USD",
        exchange_rate=rate,
    )


def make_voucher(lines=None, **fields) -> VoucherEntity:
    values = {
        "id": "v-1",
        "company_id": COMPANY_ID,
        "voucher_no": "JV/20250201/001",
        "type": "journal_entry",
        "date": date(2025, 2, 1),
        "description": "Office rent",
        "currency": "USD",
        "base_currency": "USD",
        "exchange_rate": Decimal("1"),
        "created_by": ACCOUNTANT,
    }
    values.update(fields)
    if lines is None:
        lines = [
            make_line(1, "acc-rent", LineSide.DEBIT, 100),
            make_line(2, "acc-cash", LineSide.CREDIT, 100),
        ]
    return VoucherEntity.build(lines=lines, **values)

