"""
Pytest configuration and fixtures.
"""

import os

os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_FORMAT", "console")

import pytest  # noqa: E402

from ledger.domain.entities import Account, VoucherEntity  # noqa: E402
from tests.factories import COMPANY_ID, make_accounts, make_voucher  # noqa: E402
from tests.fakes import build_fake_ledger  # noqa: E402


@pytest.fixture
def company_id() -> str:
    return COMPANY_ID


@pytest.fixture
def accounts() -> list[Account]:
    return make_accounts()


@pytest.fixture
def fake(accounts):
    """Use cases over in-memory collaborators, default company config (mode A)."""
    return build_fake_ledger(accounts=accounts)


@pytest.fixture
def draft_voucher() -> VoucherEntity:
    return make_voucher()
