"""Immutable marketplace records as delivered by one feed download.

``License`` and ``Transaction`` share the identifying and contact fields of
``MarketplaceRecord``; a transaction repeats the license data it was sold
against, so either kind can seed a deal on its own.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from .enums import FREE_LICENSE_TYPES, Hosting, LicenseStatus, LicenseType, SaleType

if TYPE_CHECKING:
    from datetime import date


@dataclass(frozen=True, slots=True, kw_only=True)
class ContactInfo:
    email: str
    name: str | None = None

    @property
    def domain(self) -> str:
        return self.email.strip().lower().rpartition("@")[2]


@dataclass(frozen=True, slots=True, kw_only=True)
class PartnerInfo:
    partner_name: str | None = None
    partner_type: str | None = None
    billing_contact: ContactInfo | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class MarketplaceRecord:
    addon_license_id: str
    license_id: str | None = None
    addon_key: str
    addon_name: str
    hosting: Hosting | str
    license_type: LicenseType | str
    tier: str
    maintenance_start_date: date
    maintenance_end_date: date | None = None
    technical_contact: ContactInfo
    billing_contact: ContactInfo | None = None
    partner_details: PartnerInfo | None = None
    company: str | None = None
    country: str | None = None
    region: str | None = None

    @property
    def is_free(self) -> bool:
        return self.license_type in FREE_LICENSE_TYPES

    @property
    def contact_emails(self) -> tuple[str, ...]:
        """Technical, billing and partner billing emails, in that order."""

        partner_contact = self.partner_details.billing_contact if self.partner_details else None
        candidates = (self.technical_contact, self.billing_contact, partner_contact)
        return tuple(contact.email for contact in candidates if contact is not None)


@dataclass(frozen=True, slots=True, kw_only=True)
class License(MarketplaceRecord):
    status: LicenseStatus | str
    evaluation_opportunity_size: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status == LicenseStatus.ACTIVE


@dataclass(frozen=True, slots=True, kw_only=True)
class Transaction(MarketplaceRecord):
    transaction_id: str
    sale_date: date
    sale_type: SaleType | str
    billing_period: str | None = None
    purchase_price: Decimal = Decimal(0)
    vendor_amount: Decimal = Decimal(0)

    @property
    def is_refund(self) -> bool:
        return self.sale_type == SaleType.REFUND


@dataclass(frozen=True, slots=True)
class LicenseContext:
    """One license together with the transactions sold against it."""

    license: License
    transactions: tuple[Transaction, ...] = ()


# Ordered, non-empty set of contexts believed to be one customer relationship.
type RelatedLicenseSet = tuple[LicenseContext, ...]
