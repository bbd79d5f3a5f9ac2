"""Email-domain sets used to exclude groups from deal generation."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from mpacsync.domain.model import MarketplaceRecord


def normalize_domain(value: str) -> str:
    return value.strip().lower().removeprefix("@")


def provider_domains(raw_domains: Iterable[str]) -> frozenset[str]:
    """Free or mass email providers, normalized and without blanks."""

    return frozenset(
        domain for domain in (normalize_domain(raw) for raw in raw_domains) if domain
    )


def partner_domains(records: Iterable[MarketplaceRecord]) -> frozenset[str]:
    """Domains of partner billing contacts seen on licenses and transactions."""

    domains: set[str] = set()
    for record in records:
        partner = record.partner_details
        if partner is None or partner.billing_contact is None:
            continue
        domain = partner.billing_contact.domain
        if domain:
            domains.add(domain)
    return frozenset(domains)
