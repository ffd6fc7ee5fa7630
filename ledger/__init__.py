"""Voucher ledger - multi-tenant double-entry posting engine."""

__version__ = "0.1.0"
