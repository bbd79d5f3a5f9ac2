"""Pydantic models describing marketplace reporting payloads."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date  # noqa: TC003
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _to_str(value: object) -> object:
    if isinstance(value, int):
        return str(value)
    return value


class MarketplaceBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ContactPayload(MarketplaceBaseModel):
    email: str
    name: str | None = None

    _normalize_name = field_validator("name", mode="before")(_blank_to_none)


class ContactDetailsPayload(MarketplaceBaseModel):
    company: str | None = None
    country: str | None = None
    region: str | None = None
    technical_contact: ContactPayload = Field(alias="technicalContact")
    billing_contact: ContactPayload | None = Field(default=None, alias="billingContact")

    _normalize_text = field_validator("company", "country", "region", mode="before")(
        _blank_to_none
    )


class PartnerDetailsPayload(MarketplaceBaseModel):
    partner_name: str | None = Field(default=None, alias="partnerName")
    partner_type: str | None = Field(default=None, alias="partnerType")
    billing_contact: ContactPayload | None = Field(default=None, alias="billingContact")


class LicensePayload(MarketplaceBaseModel):
    addon_license_id: str = Field(alias="addonLicenseId")
    license_id: str | None = Field(default=None, alias="licenseId")
    addon_key: str = Field(alias="addonKey")
    addon_name: str = Field(alias="addonName")
    hosting: str
    license_type: str = Field(alias="licenseType")
    status: str
    tier: str
    maintenance_start_date: date = Field(alias="maintenanceStartDate")
    maintenance_end_date: date | None = Field(default=None, alias="maintenanceEndDate")
    contact_details: ContactDetailsPayload = Field(alias="contactDetails")
    partner_details: PartnerDetailsPayload | None = Field(default=None, alias="partnerDetails")
    evaluation_opportunity_size: str | None = Field(
        default=None, alias="evaluationOpportunitySize"
    )

    _normalize_ids = field_validator("addon_license_id", "license_id", mode="before")(_to_str)
    _normalize_optional = field_validator(
        "license_id", "maintenance_end_date", "evaluation_opportunity_size", mode="before"
    )(_blank_to_none)


class PurchaseDetailsPayload(MarketplaceBaseModel):
    sale_date: date = Field(alias="saleDate")
    sale_type: str = Field(alias="saleType")
    tier: str
    license_type: str = Field(alias="licenseType")
    hosting: str
    billing_period: str | None = Field(default=None, alias="billingPeriod")
    purchase_price: Decimal = Field(default=Decimal(0), alias="purchasePrice")
    vendor_amount: Decimal = Field(default=Decimal(0), alias="vendorAmount")
    maintenance_start_date: date = Field(alias="maintenanceStartDate")
    maintenance_end_date: date | None = Field(default=None, alias="maintenanceEndDate")

    _normalize_optional = field_validator(
        "billing_period", "maintenance_end_date", mode="before"
    )(_blank_to_none)


class TransactionPayload(MarketplaceBaseModel):
    transaction_id: str = Field(alias="transactionId")
    addon_license_id: str = Field(alias="addonLicenseId")
    license_id: str | None = Field(default=None, alias="licenseId")
    addon_key: str = Field(alias="addonKey")
    addon_name: str = Field(alias="addonName")
    customer_details: ContactDetailsPayload = Field(alias="customerDetails")
    partner_details: PartnerDetailsPayload | None = Field(default=None, alias="partnerDetails")
    purchase_details: PurchaseDetailsPayload = Field(alias="purchaseDetails")

    _normalize_ids = field_validator(
        "transaction_id", "addon_license_id", "license_id", mode="before"
    )(_to_str)
    _normalize_license_id = field_validator("license_id", mode="before")(_blank_to_none)


LicensePayloadInput = LicensePayload | Mapping[str, object]
TransactionPayloadInput = TransactionPayload | Mapping[str, object]
