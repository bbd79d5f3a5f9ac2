"""Deal generation entry point.

Runs the group classifier over every related-license set and turns the
resulting actions into a ``DealSyncPlan``: full property sets for creates,
changed-fields-only updates, and contact association diffs.

All run inputs (deal snapshot, contact directory, domain sets, deal
defaults) are passed in explicitly; nothing is read from module state.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, timedelta
from logging import getLogger
from typing import TYPE_CHECKING

from mpacsync.domain.errors import DataIntegrityError

from .actions import CreateDeal, UpdateDeal
from .classify import GroupClassifier
from .finder import DealFinder
from .plan import Association, DealCreate, DealSyncPlan, DealUpdate
from .properties import DealPropertyMapper, contact_ids_for

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence, Set

    from mpacsync.domain.model import ContactDirectory, Deal, RelatedLicenseSet

    from .actions import DealAction
    from .properties import DealDefaults

log = getLogger(__name__)


def is_stale(group: RelatedLicenseSet, *, today: date, max_age_days: int) -> bool:
    """True when no license in ``group`` started maintenance within ``max_age_days``."""

    cutoff = today - timedelta(days=max_age_days)
    return all(context.license.maintenance_start_date < cutoff for context in group)


def generate_deals(
    groups: Iterable[RelatedLicenseSet],
    *,
    deals: Sequence[Deal],
    contacts: ContactDirectory,
    provider_domains: Set[str],
    partner_domains: Set[str],
    defaults: DealDefaults,
    max_license_age_days: int | None = None,
    today: date | None = None,
) -> DealSyncPlan:
    """Compute the deal and association changes that bring the CRM in line with ``groups``."""

    deals_by_id = {deal.id: deal for deal in deals}
    classifier = GroupClassifier(
        DealFinder(deals),
        provider_domains=provider_domains,
        partner_domains=partner_domains,
    )
    materializer = _PlanBuilder(
        mapper=DealPropertyMapper(defaults),
        contacts=contacts,
        deals_by_id=deals_by_id,
    )
    reference_date = today or date.today()

    for group in groups:
        if max_license_age_days is not None and group and is_stale(
            group, today=reference_date, max_age_days=max_license_age_days
        ):
            classifier.ignore("stale-licenses", [context.license for context in group])
            continue
        for action in classifier.classify(group):
            materializer.add(action)

    plan = materializer.plan
    plan.ignored.extend(classifier.ignored)
    log.info(
        "Generated deal plan: create=%s, update=%s, associate=%s, disassociate=%s, ignored=%s",
        len(plan.deals_to_create),
        len(plan.deals_to_update),
        len(plan.associations_to_create),
        len(plan.associations_to_remove),
        len(plan.ignored),
    )
    return plan


class _PlanBuilder:
    def __init__(
        self,
        *,
        mapper: DealPropertyMapper,
        contacts: ContactDirectory,
        deals_by_id: Mapping[str, Deal],
    ) -> None:
        self._mapper = mapper
        self._contacts = contacts
        self._deals_by_id = deals_by_id
        self.plan = DealSyncPlan()

    def add(self, action: DealAction) -> None:
        if isinstance(action, CreateDeal):
            self._add_create(action)
        elif isinstance(action, UpdateDeal):
            self._add_update(action)
        else:
            raise TypeError(f"Unsupported deal action: {type(action).__name__}")

    def _add_create(self, action: CreateDeal) -> None:
        properties = self._mapper.for_record(
            action.record, action.transactions, stage=action.stage
        )
        if action.amount is not None:
            properties = replace(properties, amount=action.amount)
        self.plan.deals_to_create.append(
            DealCreate(
                properties=properties,
                contact_ids=contact_ids_for(action.record, self._contacts),
            )
        )

    def _add_update(self, action: UpdateDeal) -> None:
        existing = self._deals_by_id.get(action.deal.id)
        if existing is None:
            raise DataIntegrityError(f"Update targets unknown deal {action.deal.id}")

        license = action.license
        if license is not None:
            wanted = contact_ids_for(license, self._contacts)
            self.plan.associations_to_create.extend(
                Association(contact_id, existing.id)
                for contact_id in wanted
                if contact_id not in existing.contact_ids
            )
            self.plan.associations_to_remove.extend(
                Association(contact_id, existing.id)
                for contact_id in existing.contact_ids
                if contact_id not in wanted
            )

        changes = self._mapper.update_changes(
            existing,
            action.overrides,
            record=action.record,
            transactions=action.transactions,
            refresh=action.refresh,
        )
        if changes:
            self.plan.deals_to_update.append(DealUpdate(deal_id=existing.id, changes=changes))
        else:
            log.debug("Skipping no-op update for deal %s", existing.id)
