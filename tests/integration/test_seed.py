"""
Integration tests - demo data seeding.
"""

from ledger.infrastructure.repositories import (
    RBACPermissionChecker,
    SqlAccountingPolicyConfigProvider,
    SqlAccountLookupService,
)
from scripts.seed_database import ACCOUNTS, DEMO_COMPANY_ID, MEMBERS, seed


class TestSeedDatabase:

    def test_seed_is_repeatable(self, session):
        first = seed(session)
        assert first == {"accounts": len(ACCOUNTS), "members": len(MEMBERS), "rates": 3}
        assert seed(session) == {"accounts": 0, "members": 0, "rates": 0}

    def test_seeded_company_is_usable(self, session):
        seed(session)
        vault = SqlAccountLookupService(session).get_accounts_by_codes(DEMO_COMPANY_ID, ["1020"])[0]
        assert vault.custodian_user_id == "demo-custodian"

        config = SqlAccountingPolicyConfigProvider(session).get_config(DEMO_COMPANY_ID)
        assert config.custody_confirmation_enabled is True
        assert config.cost_center_policy.account_types == ("expense",)

        RBACPermissionChecker(session).assert_or_throw("demo-manager", DEMO_COMPANY_ID, "voucher.approve")
