"""Public interface for the marketplace adapter."""

from __future__ import annotations

from .schema import LicensePayload, TransactionPayload
from .translator import parse_license, parse_licenses, parse_transaction, parse_transactions

__all__ = [
    "LicensePayload",
    "TransactionPayload",
    "parse_license",
    "parse_licenses",
    "parse_transaction",
    "parse_transactions",
]
