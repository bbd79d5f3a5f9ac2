"""Domain model package."""

from __future__ import annotations

from .crm import DEAL_PROPERTY_FIELDS, Contact, ContactDirectory, Deal, DealProperties
from .enums import (
    FREE_LICENSE_TYPES,
    DealStage,
    Hosting,
    LicenseStatus,
    LicenseType,
    SaleType,
)
from .marketplace import (
    ContactInfo,
    License,
    LicenseContext,
    MarketplaceRecord,
    PartnerInfo,
    RelatedLicenseSet,
    Transaction,
)

__all__ = [
    "DEAL_PROPERTY_FIELDS",
    "FREE_LICENSE_TYPES",
    "Contact",
    "ContactDirectory",
    "ContactInfo",
    "Deal",
    "DealProperties",
    "DealStage",
    "Hosting",
    "License",
    "LicenseContext",
    "LicenseStatus",
    "LicenseType",
    "MarketplaceRecord",
    "PartnerInfo",
    "RelatedLicenseSet",
    "SaleType",
    "Transaction",
]
