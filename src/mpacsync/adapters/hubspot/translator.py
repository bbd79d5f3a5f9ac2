"""Translate CRM payloads into domain records and plans back into API bags.

Deals outside the marketplace pipeline are not ours and are dropped on the
way in. On the way out every value is rendered as the string the CRM
stores, so a deal read back compares equal to the one that was written.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from logging import getLogger
from typing import TYPE_CHECKING, Final

from mpacsync.domain.model import (
    DEAL_PROPERTY_FIELDS,
    Contact,
    ContactDirectory,
    Deal,
    DealProperties,
    DealStage,
    Hosting,
)

from .schema import ContactPayload, DealPayload

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from mpacsync.config import HubspotDealConfig
    from mpacsync.domain.deals import Association, DealCreate, DealUpdate

    from .schema import ContactPayloadInput, DealPayloadInput

log = getLogger(__name__)

DEAL_TO_CONTACT_ASSOCIATION_TYPE_ID: Final[int] = 3

_FIXED_PROPERTY_NAMES: Final[dict[str, str]] = {
    "close_date": "closedate",
    "deployment": "deployment",
    "license_tier": "license_tier",
    "country": "country",
    "origin": "origin",
    "related_products": "related_products",
    "deal_name": "dealname",
    "pipeline": "pipeline",
    "deal_stage": "dealstage",
    "amount": "amount",
}


def property_names(config: HubspotDealConfig) -> dict[str, str]:
    """Map ``DealProperties`` field names to CRM property names."""

    names = {
        "addon_license_id": config.addon_license_id_attr,
        "transaction_id": config.transaction_id_attr,
        "app": config.app_attr,
        **_FIXED_PROPERTY_NAMES,
    }
    return {field: names[field] for field in DEAL_PROPERTY_FIELDS}


def deal_api_properties(config: HubspotDealConfig) -> list[str]:
    """CRM property names to request when downloading deals."""

    return list(property_names(config).values())


def _blank(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _parse_date(value: str | None) -> date | None:
    text = _blank(value)
    return date.fromisoformat(text[:10]) if text else None


def _parse_decimal(value: str | None, *, name: str) -> Decimal | None:
    text = _blank(value)
    if text is None:
        return None
    try:
        return Decimal(text)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid {name} value: {value!r}") from exc


def _parse_tier(value: str | None) -> int | None:
    parsed = _parse_decimal(value, name="license_tier")
    return int(parsed) if parsed is not None else None


def _parse_deployment(value: str | None) -> Hosting | str | None:
    text = _blank(value)
    if text is None:
        return None
    try:
        return Hosting(text)
    except ValueError:
        return text


def _ensure_deal_payload(raw: DealPayloadInput) -> DealPayload:
    if isinstance(raw, DealPayload):
        return raw
    return DealPayload.model_validate(raw)


def _ensure_contact_payload(raw: ContactPayloadInput) -> ContactPayload:
    if isinstance(raw, ContactPayload):
        return raw
    return ContactPayload.model_validate(raw)


def parse_deal(raw: DealPayloadInput, config: HubspotDealConfig) -> Deal | None:
    """Return the domain deal, or ``None`` for deals in other pipelines."""

    try:
        payload = _ensure_deal_payload(raw)
    except Exception:
        log.exception("Error parsing deal")
        raise

    values = payload.properties
    if values.get("pipeline") != config.pipeline:
        return None

    names = property_names(config)
    stage_id = _blank(values.get(names["deal_stage"]))
    properties = DealProperties(
        addon_license_id=_blank(values.get(names["addon_license_id"])),
        transaction_id=_blank(values.get(names["transaction_id"])),
        close_date=_parse_date(values.get(names["close_date"])),
        deployment=_parse_deployment(values.get(names["deployment"])),
        app=_blank(values.get(names["app"])),
        license_tier=_parse_tier(values.get(names["license_tier"])),
        country=_blank(values.get(names["country"])),
        origin=_blank(values.get(names["origin"])),
        related_products=_blank(values.get(names["related_products"])),
        deal_name=_blank(values.get(names["deal_name"])),
        pipeline=config.pipeline,
        deal_stage=config.stage_from_id(stage_id) if stage_id else None,
        amount=_parse_decimal(values.get(names["amount"]), name="amount"),
    )
    return Deal(
        id=payload.id,
        properties=properties,
        contact_ids=payload.associated_ids("contacts"),
    )


def parse_deals(raw_deals: Iterable[DealPayloadInput], config: HubspotDealConfig) -> list[Deal]:
    deals: list[Deal] = []
    skipped = 0
    for raw in raw_deals:
        deal = parse_deal(raw, config)
        if deal is None:
            skipped += 1
            continue
        deals.append(deal)
    if skipped:
        log.debug("Skipped %s deals outside pipeline %s", skipped, config.pipeline)
    return deals


def parse_contact(raw: ContactPayloadInput) -> Contact:
    try:
        payload = _ensure_contact_payload(raw)
    except Exception:
        log.exception("Error parsing contact")
        raise

    emails: list[str] = []
    primary = _blank(payload.properties.get("email"))
    if primary:
        emails.append(primary.lower())
    additional = payload.properties.get("hs_additional_emails") or ""
    emails.extend(email.strip().lower() for email in additional.split(";") if email.strip())
    return Contact(id=payload.id, emails=tuple(dict.fromkeys(emails)))


def parse_contacts(raw_contacts: Iterable[ContactPayloadInput]) -> list[Contact]:
    return [parse_contact(raw) for raw in raw_contacts]


def build_contact_directory(raw_contacts: Iterable[ContactPayloadInput]) -> ContactDirectory:
    return ContactDirectory.from_contacts(parse_contacts(raw_contacts))


def _render(field: str, value: object, config: HubspotDealConfig) -> str:
    if value is None:
        return ""
    if field == "deal_stage" and isinstance(value, (DealStage, str)):
        return config.stage_id(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


def changes_to_api(changes: Mapping[str, object], config: HubspotDealConfig) -> dict[str, str]:
    names = property_names(config)
    return {names[field]: _render(field, value, config) for field, value in changes.items()}


def deal_properties_to_api(properties: DealProperties, config: HubspotDealConfig) -> dict[str, str]:
    return changes_to_api(
        {field: getattr(properties, field) for field in DEAL_PROPERTY_FIELDS}, config
    )


def deal_create_to_api(create: DealCreate, config: HubspotDealConfig) -> dict[str, object]:
    return {
        "properties": deal_properties_to_api(create.properties, config),
        "associations": [
            {
                "to": {"id": contact_id},
                "types": [
                    {
                        "associationCategory": "HUBSPOT_DEFINED",
                        "associationTypeId": DEAL_TO_CONTACT_ASSOCIATION_TYPE_ID,
                    }
                ],
            }
            for contact_id in create.contact_ids
        ],
    }


def deal_update_to_api(update: DealUpdate, config: HubspotDealConfig) -> dict[str, object]:
    return {"id": update.deal_id, "properties": changes_to_api(update.changes, config)}


def association_to_api(association: Association) -> dict[str, object]:
    return {
        "from": {"id": association.deal_id},
        "to": {"id": association.contact_id},
        "type": "deal_to_contact",
    }
