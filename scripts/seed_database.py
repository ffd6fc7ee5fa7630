#!/usr/bin/env python3
"""
Database Seeding Script - demo company for local runs and UAT.

Creates a chart of accounts, company members, a governance row and a few
reference exchange rates. Running it twice leaves the data unchanged.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

from sqlmodel import Session, select

from ledger.infrastructure.database.models import (
    AccountingPolicyConfigRecord,
    AccountRecord,
    CompanyUserRecord,
    ExchangeRateRecord,
)

DEMO_COMPANY_ID = "demo-co"

ACCOUNTS = [
    # code, name, type, extra columns
    ("1000", "Assets", "asset", {"role": "HEADER"}),
    ("1010", "Cash on hand", "asset", {}),
    ("1020", "Main vault", "asset", {
        "requires_approval": True,
        "requires_custody_confirmation": True,
        "custodian_user_id": "demo-custodian",
    }),
    ("1110", "Bank EUR", "asset", {"currency_policy": "FIXED", "fixed_currency_code": "EUR"}),
    ("2100", "Accounts payable", "liability", {}),
    ("3000", "Share capital", "equity", {}),
    ("4000", "Sales revenue", "revenue", {}),
    ("6100", "Rent expense", "expense", {}),
    ("6200", "Travel expense", "expense", {}),
]

MEMBERS = [
    ("demo-admin", "ADMIN"),
    ("demo-manager", "ACC_MGR"),
    ("demo-accountant", "ACCOUNTANT"),
    ("demo-custodian", "CUSTODIAN"),
    ("demo-auditor", "AUDITOR"),
]

RATES = [
    ("EUR", "USD", "1.0850", date(2025, 1, 2)),
    ("EUR", "USD", "1.0790", date(2025, 2, 3)),
    ("GBP", "USD", "1.2510", date(2025, 2, 3)),
]


def seed(db: Session, company_id: str = DEMO_COMPANY_ID) -> dict[str, int]:
    """Insert whatever demo rows are missing. Returns how many rows were added per table."""
    added = {"accounts": 0, "members": 0, "rates": 0}

    for code, name, account_type, extra in ACCOUNTS:
        exists = db.exec(
            select(AccountRecord).where(AccountRecord.company_id == company_id, AccountRecord.code == code)
        ).first()
        if not exists:
            db.add(AccountRecord(
                id=f"{company_id}-{code}",
                company_id=company_id,
                code=code,
                name=name,
                account_type=account_type,
                **extra,
            ))
            added["accounts"] += 1

    for user_id, role in MEMBERS:
        exists = db.exec(
            select(CompanyUserRecord).where(
                CompanyUserRecord.company_id == company_id, CompanyUserRecord.user_id == user_id
            )
        ).first()
        if not exists:
            db.add(CompanyUserRecord(company_id=company_id, user_id=user_id, role=role))
            added["members"] += 1

    if db.get(AccountingPolicyConfigRecord, company_id) is None:
        db.add(AccountingPolicyConfigRecord(
            company_id=company_id,
            base_currency="USD",
            custody_confirmation_enabled=True,
            cost_center_enabled=True,
            cost_center_account_types=["expense"],
        ))

    for from_currency, to_currency, rate, rate_date in RATES:
        exists = db.exec(
            select(ExchangeRateRecord).where(
                ExchangeRateRecord.company_id == company_id,
                ExchangeRateRecord.from_currency == from_currency,
                ExchangeRateRecord.to_currency == to_currency,
                ExchangeRateRecord.rate_date == rate_date,
            )
        ).first()
        if not exists:
            db.add(ExchangeRateRecord(
                id=str(uuid4()),
                company_id=company_id,
                from_currency=from_currency,
                to_currency=to_currency,
                rate=Decimal(rate),
                rate_date=rate_date,
                created_by="seed",
            ))
            added["rates"] += 1

    db.commit()
    return added


def main():
    print("=" * 60)
    print("Database Seeding - Voucher Ledger demo company")
    print("=" * 60)

    from ledger.infrastructure.database import SessionLocal, init_db

    init_db()
    db = SessionLocal()
    try:
        added = seed(db)
        for table, count in added.items():
            print(f"✓ {table}: {count} added")
        print(f"\nCompany ID: {DEMO_COMPANY_ID}")
    except Exception as e:
        print(f"\n❌ Error: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
