"""
Fixtures for tests against a real (in-memory SQLite) database.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from ledger.infrastructure.database import get_db
from ledger.infrastructure.database.models import (
    AccountingPolicyConfigRecord,
    AccountRecord,
    CompanyUserRecord,
)
from ledger.main import app
from tests.factories import ACCOUNTANT, COMPANY_ID, CUSTODIAN, make_accounts

ADMIN = "u-admin"
VIEWER = "u-viewer"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


def seed_company(session: Session, company_id: str = COMPANY_ID) -> None:
    """Chart of accounts and members for one company."""
    for account in make_accounts(company_id):
        session.add(AccountRecord(
            id=account.id,
            company_id=account.company_id,
            code=account.code,
            name=account.name,
            account_type=account.account_type,
            role=account.role.value,
            status=account.status.value,
            currency_policy=account.currency_policy.value,
            allowed_currency_codes=list(account.allowed_currency_codes),
            requires_approval=account.requires_approval,
            requires_custody_confirmation=account.requires_custody_confirmation,
            custodian_user_id=account.custodian_user_id,
            owner_scope=account.owner_scope.value,
            owner_unit_ids=list(account.owner_unit_ids),
        ))
    for user_id, role in [
        (ADMIN, "ADMIN"),
        (ACCOUNTANT, "ACCOUNTANT"),
        (CUSTODIAN, "CUSTODIAN"),
        (VIEWER, "VIEWER"),
    ]:
        session.add(CompanyUserRecord(company_id=company_id, user_id=user_id, role=role))
    session.commit()


@pytest.fixture
def session(engine):
    with Session(engine, expire_on_commit=False) as session:
        seed_company(session)
        yield session


def set_policy(session: Session, **values) -> None:
    record = session.get(AccountingPolicyConfigRecord, COMPANY_ID)
    if record is None:
        record = AccountingPolicyConfigRecord(company_id=COMPANY_ID)
    for key, value in values.items():
        setattr(record, key, value)
    session.add(record)
    session.commit()


@pytest.fixture
def client(session):
    def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
