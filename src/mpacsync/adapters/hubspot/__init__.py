"""Public interface for the CRM adapter."""

from __future__ import annotations

from .schema import ContactPayload, DealPayload
from .translator import (
    association_to_api,
    build_contact_directory,
    deal_api_properties,
    deal_create_to_api,
    deal_properties_to_api,
    deal_update_to_api,
    parse_contact,
    parse_contacts,
    parse_deal,
    parse_deals,
)

__all__ = [
    "ContactPayload",
    "DealPayload",
    "association_to_api",
    "build_contact_directory",
    "deal_api_properties",
    "deal_create_to_api",
    "deal_properties_to_api",
    "deal_update_to_api",
    "parse_contact",
    "parse_contacts",
    "parse_deal",
    "parse_deals",
]
