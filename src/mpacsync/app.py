"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import dataclass
from itertools import chain
from logging import getLogger
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

from mpacsync.adapters.hubspot import (
    association_to_api,
    build_contact_directory,
    deal_create_to_api,
    deal_update_to_api,
    parse_deals,
)
from mpacsync.adapters.marketplace import parse_licenses, parse_transactions
from mpacsync.config import get_engine_config
from mpacsync.domain.deals import generate_deals
from mpacsync.domain.domains import partner_domains, provider_domains
from mpacsync.domain.grouping import build_related_sets

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from datetime import date
    from pathlib import Path

    from mpacsync.config import EngineConfig, HubspotDealConfig
    from mpacsync.domain.deals import DealSyncPlan

log = getLogger(__name__)

type RawPayload = Mapping[str, object]


@dataclass(frozen=True, slots=True, kw_only=True)
class SyncSnapshot:
    """Raw API payloads captured for one run, plus the matcher's output."""

    licenses: Sequence[RawPayload] = ()
    transactions: Sequence[RawPayload] = ()
    deals: Sequence[RawPayload] = ()
    contacts: Sequence[RawPayload] = ()
    matches: Sequence[Sequence[str]] = ()
    free_email_providers: Sequence[str] = ()


class SnapshotFile(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    licenses: list[dict[str, Any]] = Field(default_factory=list["dict[str, Any]"])
    transactions: list[dict[str, Any]] = Field(default_factory=list["dict[str, Any]"])
    deals: list[dict[str, Any]] = Field(default_factory=list["dict[str, Any]"])
    contacts: list[dict[str, Any]] = Field(default_factory=list["dict[str, Any]"])
    matches: list[list[str]] = Field(default_factory=list["list[str]"])
    free_email_providers: list[str] = Field(
        default_factory=list["str"], alias="freeEmailProviders"
    )


def load_snapshot(path: Path) -> SyncSnapshot:
    """Read a JSON snapshot file written by the download step."""

    payload = SnapshotFile.model_validate_json(path.read_text(encoding="utf-8"))
    return SyncSnapshot(
        licenses=payload.licenses,
        transactions=payload.transactions,
        deals=payload.deals,
        contacts=payload.contacts,
        matches=payload.matches,
        free_email_providers=payload.free_email_providers,
    )


def generate_deal_plan(
    snapshot: SyncSnapshot,
    *,
    config: EngineConfig | None = None,
    today: date | None = None,
) -> DealSyncPlan:
    """Translate ``snapshot`` and run the deal engine over it."""

    effective_config = config or get_engine_config()
    licenses = parse_licenses(snapshot.licenses)
    transactions = parse_transactions(snapshot.transactions)
    deals = parse_deals(snapshot.deals, effective_config.hubspot)
    contacts = build_contact_directory(snapshot.contacts)
    log.info(
        "Starting deal generation: licenses=%s, transactions=%s, deals=%s, contacts=%s",
        len(licenses),
        len(transactions),
        len(deals),
        len(contacts),
    )

    plan = generate_deals(
        build_related_sets(licenses, transactions, snapshot.matches),
        deals=deals,
        contacts=contacts,
        provider_domains=provider_domains(snapshot.free_email_providers),
        partner_domains=partner_domains(chain(licenses, transactions)),
        defaults=effective_config.deals,
        max_license_age_days=effective_config.max_license_age_days,
        today=today,
    )

    log.info(
        "Finished deal generation: create=%s, update=%s, associate=%s, disassociate=%s, "
        "ignored=%s",
        len(plan.deals_to_create),
        len(plan.deals_to_update),
        len(plan.associations_to_create),
        len(plan.associations_to_remove),
        len(plan.ignored),
    )
    return plan


def render_plan(plan: DealSyncPlan, config: HubspotDealConfig) -> dict[str, object]:
    """Render ``plan`` as CRM request bodies for inspection or a later upload."""

    return {
        "create": [deal_create_to_api(create, config) for create in plan.deals_to_create],
        "update": [deal_update_to_api(update, config) for update in plan.deals_to_update],
        "associate": [association_to_api(item) for item in plan.associations_to_create],
        "disassociate": [association_to_api(item) for item in plan.associations_to_remove],
        "ignored": plan.ignored_reasons(),
    }


def summarize_plan(plan: DealSyncPlan) -> dict[str, object]:
    return {
        "create": len(plan.deals_to_create),
        "update": len(plan.deals_to_update),
        "associate": len(plan.associations_to_create),
        "disassociate": len(plan.associations_to_remove),
        "ignored": plan.ignored_reasons(),
    }
