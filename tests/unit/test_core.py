"""
Unit tests - settings, logging setup and role permissions.
"""

import json
import logging

import pytest

from ledger.core.config import get_engine_url, load_settings
from ledger.core.logging_config import JsonFormatter, get_logging_config
from ledger.core.security import Permission, RBACService, UserRole


class TestSettings:

    def test_defaults_for_development(self, monkeypatch):
        for name in ("APP_ENV", "LOG_LEVEL", "LOG_FORMAT", "DEFAULT_BASE_CURRENCY"):
            monkeypatch.delenv(name, raising=False)
        settings = load_settings()
        assert settings.debug is True
        assert settings.log_format == "console"
        assert settings.log_level == "DEBUG"
        assert settings.default_base_currency == "USD"

    def test_production_logs_json(self, monkeypatch):
        monkeypatch.setenv("APP_ENV", "production")
        monkeypatch.delenv("LOG_FORMAT", raising=False)
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        settings = load_settings()
        assert settings.log_format == "json"
        assert settings.log_level == "INFO"

    def test_engine_url_from_parts(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        monkeypatch.setenv("DB_HOST", "db")
        monkeypatch.setenv("DB_NAME", "books")
        assert get_engine_url("postgresql") == "postgresql://postgres:postgres@db:5432/books"
        monkeypatch.setenv("DATABASE_PATH", "/tmp/x.db")
        assert get_engine_url("sqlite") == "sqlite:////tmp/x.db"

    def test_unsupported_database(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        with pytest.raises(ValueError, match="Unsupported database type"):
            get_engine_url("oracle")


class TestLogging:

    def test_json_formatter_keeps_extra_fields(self):
        record = logging.LogRecord("ledger.test", logging.INFO, __file__, 1, "posted %s", ("JV-1",), None)
        record.voucher_id = "v-1"
        entry = json.loads(JsonFormatter().format(record))
        assert entry["message"] == "posted JV-1"
        assert entry["level"] == "INFO"
        assert entry["extra"]["voucher_id"] == "v-1"

    def test_config_picks_formatter(self, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "json")
        config = get_logging_config(load_settings())
        assert config["formatters"]["default"]["()"].endswith("JsonFormatter")


class TestRolePermissions:

    @pytest.mark.parametrize("role,permission,allowed", [
        (UserRole.ADMIN, Permission.VOUCHER_CORRECT, True),
        (UserRole.ACCOUNTANT, Permission.VOUCHER_APPROVE, False),
        (UserRole.ACCOUNTING_MANAGER, Permission.VOUCHER_APPROVE, True),
        (UserRole.CUSTODIAN, Permission.VOUCHER_CONFIRM_CUSTODY, True),
        (UserRole.AUDITOR, Permission.VOUCHER_CREATE, False),
    ])
    def test_role_matrix(self, role, permission, allowed):
        assert RBACService().has_permission(role, permission) is allowed

    def test_plain_string_permission(self):
        assert RBACService().has_permission(UserRole.VIEWER, "voucher.view") is True
