"""Translate marketplace payloads into domain records."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from mpacsync.domain.model import (
    ContactInfo,
    Hosting,
    License,
    LicenseStatus,
    LicenseType,
    PartnerInfo,
    SaleType,
    Transaction,
)

from .schema import LicensePayload, TransactionPayload

if TYPE_CHECKING:
    from collections.abc import Iterable
    from enum import StrEnum

    from .schema import (
        ContactPayload,
        LicensePayloadInput,
        PartnerDetailsPayload,
        TransactionPayloadInput,
    )


log = getLogger(__name__)


def _coerce[E: StrEnum](enum: type[E], value: str) -> E | str:
    """Known values become enum members; anything else passes through unchanged."""

    try:
        return enum(value)
    except ValueError:
        log.debug("Unrecognised %s value %r", enum.__name__, value)
        return value


def _contact(payload: ContactPayload) -> ContactInfo:
    return ContactInfo(email=payload.email.strip(), name=payload.name)


def _optional_contact(payload: ContactPayload | None) -> ContactInfo | None:
    return _contact(payload) if payload is not None else None


def _partner(payload: PartnerDetailsPayload | None) -> PartnerInfo | None:
    if payload is None:
        return None
    return PartnerInfo(
        partner_name=payload.partner_name,
        partner_type=payload.partner_type,
        billing_contact=_optional_contact(payload.billing_contact),
    )


def _ensure_license_payload(raw: LicensePayloadInput) -> LicensePayload:
    if isinstance(raw, LicensePayload):
        return raw
    return LicensePayload.model_validate(raw)


def _ensure_transaction_payload(raw: TransactionPayloadInput) -> TransactionPayload:
    if isinstance(raw, TransactionPayload):
        return raw
    return TransactionPayload.model_validate(raw)


def parse_license(raw: LicensePayloadInput) -> License:
    try:
        payload = _ensure_license_payload(raw)
    except Exception:
        log.exception("Error parsing license")
        raise

    details = payload.contact_details
    return License(
        addon_license_id=payload.addon_license_id,
        license_id=payload.license_id,
        addon_key=payload.addon_key,
        addon_name=payload.addon_name,
        hosting=_coerce(Hosting, payload.hosting),
        license_type=_coerce(LicenseType, payload.license_type),
        tier=payload.tier,
        maintenance_start_date=payload.maintenance_start_date,
        maintenance_end_date=payload.maintenance_end_date,
        technical_contact=_contact(details.technical_contact),
        billing_contact=_optional_contact(details.billing_contact),
        partner_details=_partner(payload.partner_details),
        company=details.company,
        country=details.country,
        region=details.region,
        status=_coerce(LicenseStatus, payload.status),
        evaluation_opportunity_size=payload.evaluation_opportunity_size,
    )


def parse_transaction(raw: TransactionPayloadInput) -> Transaction:
    try:
        payload = _ensure_transaction_payload(raw)
    except Exception:
        log.exception("Error parsing transaction")
        raise

    details = payload.customer_details
    purchase = payload.purchase_details
    return Transaction(
        addon_license_id=payload.addon_license_id,
        license_id=payload.license_id,
        addon_key=payload.addon_key,
        addon_name=payload.addon_name,
        hosting=_coerce(Hosting, purchase.hosting),
        license_type=_coerce(LicenseType, purchase.license_type),
        tier=purchase.tier,
        maintenance_start_date=purchase.maintenance_start_date,
        maintenance_end_date=purchase.maintenance_end_date,
        technical_contact=_contact(details.technical_contact),
        billing_contact=_optional_contact(details.billing_contact),
        partner_details=_partner(payload.partner_details),
        company=details.company,
        country=details.country,
        region=details.region,
        transaction_id=payload.transaction_id,
        sale_date=purchase.sale_date,
        sale_type=_coerce(SaleType, purchase.sale_type),
        billing_period=purchase.billing_period,
        purchase_price=purchase.purchase_price,
        vendor_amount=purchase.vendor_amount,
    )


def parse_licenses(raw_licenses: Iterable[LicensePayloadInput]) -> list[License]:
    return [parse_license(raw) for raw in raw_licenses]


def parse_transactions(raw_transactions: Iterable[TransactionPayloadInput]) -> list[Transaction]:
    return [parse_transaction(raw) for raw in raw_transactions]
