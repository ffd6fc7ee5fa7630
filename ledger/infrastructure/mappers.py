"""
Conversions between domain entities and persistence records.

The voucher is stored as a camelCase JSON document with decimals as strings.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from ledger.domain.entities import (
    Account,
    ExchangeRate,
    LedgerEntry,
    VoucherEntity,
    VoucherLine,
    VoucherMetadata,
)
from ledger.domain.interfaces import UserAccessScope
from ledger.domain.policy_config import AccountingPolicyConfig, CostCenterPolicyConfig
from ledger.infrastructure.database.models import (
    AccountingPolicyConfigRecord,
    AccountRecord,
    ExchangeRateRecord,
    LedgerEntryRecord,
    UserAccessScopeRecord,
    VoucherRecord,
)


def _dt(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_dt(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _opt(value: Any) -> Any:
    return value.value if hasattr(value, "value") else value


def line_to_dict(line: VoucherLine) -> dict[str, Any]:
    data = {
        "id": line.id,
        "accountId": line.account_id,
        "side": line.side.value,
        "amount": str(line.amount),
        "currency": line.currency,
        "baseAmount": str(line.base_amount),
        "baseCurrency": line.base_currency,
        "exchangeRate": str(line.exchange_rate),
        "metadata": dict(line.metadata),
    }
    if line.notes is not None:
        data["notes"] = line.notes
    if line.cost_center_id is not None:
        data["costCenterId"] = line.cost_center_id
    return data


def dict_to_line(data: dict[str, Any]) -> VoucherLine:
    return VoucherLine(
        id=int(data["id"]),
        account_id=data["accountId"],
        side=data["side"],
        amount=Decimal(data["amount"]),
        currency=data["currency"],
        base_amount=Decimal(data["baseAmount"]),
        base_currency=data["baseCurrency"],
        exchange_rate=Decimal(data["exchangeRate"]),
        notes=data.get("notes"),
        cost_center_id=data.get("costCenterId"),
        metadata=data.get("metadata") or {},
    )


def voucher_to_document(voucher: VoucherEntity) -> dict[str, Any]:
    return {
        "id": voucher.id,
        "companyId": voucher.company_id,
        "voucherNo": voucher.voucher_no,
        "type": voucher.type.value,
        "date": voucher.date.isoformat(),
        "description": voucher.description,
        "currency": voucher.currency,
        "baseCurrency": voucher.base_currency,
        "exchangeRate": str(voucher.exchange_rate),
        "lines": [line_to_dict(line) for line in voucher.lines],
        "totalDebit": str(voucher.total_debit),
        "totalCredit": str(voucher.total_credit),
        "status": voucher.status.value,
        "metadata": voucher.metadata.to_dict(),
        "createdBy": voucher.created_by,
        "createdAt": _dt(voucher.created_at),
        "approvedBy": voucher.approved_by,
        "approvedAt": _dt(voucher.approved_at),
        "rejectedBy": voucher.rejected_by,
        "rejectedAt": _dt(voucher.rejected_at),
        "rejectionReason": voucher.rejection_reason,
        "postedBy": voucher.posted_by,
        "postedAt": _dt(voucher.posted_at),
        "lockedBy": voucher.locked_by,
        "lockedAt": _dt(voucher.locked_at),
        "postingLockPolicy": _opt(voucher.posting_lock_policy),
        "reversalOfVoucherId": voucher.reversal_of_voucher_id,
        "reference": voucher.reference,
        "updatedAt": _dt(voucher.updated_at),
    }


def document_to_voucher(doc: dict[str, Any], version: int = 1) -> VoucherEntity:
    return VoucherEntity(
        id=doc["id"],
        company_id=doc["companyId"],
        voucher_no=doc["voucherNo"],
        type=doc["type"],
        date=date.fromisoformat(doc["date"]),
        description=doc.get("description") or "",
        currency=doc["currency"],
        base_currency=doc["baseCurrency"],
        exchange_rate=Decimal(doc["exchangeRate"]),
        lines=tuple(dict_to_line(line) for line in doc["lines"]),
        total_debit=Decimal(doc["totalDebit"]),
        total_credit=Decimal(doc["totalCredit"]),
        status=doc["status"],
        metadata=VoucherMetadata.from_dict(doc.get("metadata")),
        created_by=doc["createdBy"],
        created_at=_parse_dt(doc["createdAt"]),
        approved_by=doc.get("approvedBy"),
        approved_at=_parse_dt(doc.get("approvedAt")),
        rejected_by=doc.get("rejectedBy"),
        rejected_at=_parse_dt(doc.get("rejectedAt")),
        rejection_reason=doc.get("rejectionReason"),
        posted_by=doc.get("postedBy"),
        posted_at=_parse_dt(doc.get("postedAt")),
        locked_by=doc.get("lockedBy"),
        locked_at=_parse_dt(doc.get("lockedAt")),
        posting_lock_policy=doc.get("postingLockPolicy"),
        reversal_of_voucher_id=doc.get("reversalOfVoucherId"),
        reference=doc.get("reference"),
        updated_at=_parse_dt(doc.get("updatedAt")),
        version=version,
    )


def voucher_record_values(voucher: VoucherEntity) -> dict[str, Any]:
    """Column values for a VoucherRecord insert or update."""
    return {
        "company_id": voucher.company_id,
        "voucher_no": voucher.voucher_no,
        "type": voucher.type.value,
        "voucher_date": voucher.date,
        "status": voucher.status.value,
        "posted_at": voucher.posted_at,
        "reversal_of_voucher_id": voucher.reversal_of_voucher_id,
        "replaces_voucher_id": voucher.metadata.replaces_voucher_id,
        "document": voucher_to_document(voucher),
        "version": voucher.version,
        "updated_at": voucher.updated_at or voucher.created_at,
    }


def record_to_voucher(record: VoucherRecord) -> VoucherEntity:
    return document_to_voucher(record.document, record.version)


def ledger_entry_to_record(entry: LedgerEntry) -> LedgerEntryRecord:
    return LedgerEntryRecord(
        id=entry.id,
        company_id=entry.company_id,
        voucher_id=entry.voucher_id,
        voucher_no=entry.voucher_no,
        line_id=entry.line_id,
        account_id=entry.account_id,
        side=entry.side.value,
        amount=entry.amount,
        currency=entry.currency,
        base_amount=entry.base_amount,
        base_currency=entry.base_currency,
        exchange_rate=entry.exchange_rate,
        entry_date=entry.date,
        cost_center_id=entry.cost_center_id,
        notes=entry.notes,
        created_at=entry.created_at,
    )


def record_to_ledger_entry(record: LedgerEntryRecord) -> LedgerEntry:
    return LedgerEntry(
        id=record.id,
        company_id=record.company_id,
        voucher_id=record.voucher_id,
        voucher_no=record.voucher_no,
        line_id=record.line_id,
        account_id=record.account_id,
        side=record.side,
        amount=Decimal(record.amount),
        currency=record.currency,
        base_amount=Decimal(record.base_amount),
        base_currency=record.base_currency,
        exchange_rate=Decimal(record.exchange_rate),
        date=record.entry_date,
        cost_center_id=record.cost_center_id,
        notes=record.notes,
        created_at=record.created_at,
    )


def record_to_account(record: AccountRecord) -> Account:
    return Account(
        id=record.id,
        company_id=record.company_id,
        code=record.code,
        name=record.name,
        account_type=record.account_type,
        role=record.role,
        status=record.status,
        currency_policy=record.currency_policy,
        fixed_currency_code=record.fixed_currency_code,
        allowed_currency_codes=tuple(record.allowed_currency_codes or ()),
        requires_approval=record.requires_approval,
        requires_custody_confirmation=record.requires_custody_confirmation,
        custodian_user_id=record.custodian_user_id,
        owner_scope=record.owner_scope,
        owner_unit_ids=tuple(record.owner_unit_ids or ()),
        replaced_by_account_id=record.replaced_by_account_id,
    )


def exchange_rate_to_record(rate: ExchangeRate) -> ExchangeRateRecord:
    return ExchangeRateRecord(
        id=rate.id,
        company_id=rate.company_id,
        from_currency=rate.from_currency,
        to_currency=rate.to_currency,
        rate=rate.rate,
        rate_date=rate.date,
        source=rate.source.value,
        created_by=rate.created_by,
        created_at=rate.created_at,
    )


def record_to_exchange_rate(record: ExchangeRateRecord) -> ExchangeRate:
    return ExchangeRate(
        id=record.id,
        company_id=record.company_id,
        from_currency=record.from_currency,
        to_currency=record.to_currency,
        rate=Decimal(record.rate),
        date=record.rate_date,
        source=record.source,
        created_by=record.created_by,
        created_at=record.created_at,
    )


def record_to_policy_config(record: AccountingPolicyConfigRecord) -> AccountingPolicyConfig:
    return AccountingPolicyConfig(
        base_currency=record.base_currency.upper(),
        financial_approval_enabled=record.financial_approval_enabled,
        fa_apply_mode=record.fa_apply_mode,
        custody_confirmation_enabled=record.custody_confirmation_enabled,
        locked_through_date=record.locked_through_date,
        account_access_enabled=record.account_access_enabled,
        cost_center_policy=CostCenterPolicyConfig(
            enabled=record.cost_center_enabled,
            account_ids=tuple(record.cost_center_account_ids or ()),
            account_types=tuple(record.cost_center_account_types or ()),
        ),
        policy_error_mode=record.policy_error_mode,
        allow_edit_delete_posted=record.allow_edit_delete_posted,
        auto_post_enabled=record.auto_post_enabled,
    )


def record_to_scope(record: UserAccessScopeRecord) -> UserAccessScope:
    return UserAccessScope(
        user_id=record.user_id,
        is_super=record.is_super,
        unit_ids=tuple(record.unit_ids or ()),
    )
