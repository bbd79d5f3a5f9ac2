"""Apply a plan to an in-memory deal snapshot.

Used to feed one run's output back in as the next run's input without a
CRM round trip; created deals receive generated ids.
"""

from __future__ import annotations

from dataclasses import replace
from itertools import count
from typing import TYPE_CHECKING

from mpacsync.domain.errors import DataIntegrityError
from mpacsync.domain.model import Deal

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from .plan import DealSyncPlan


def _sequential_ids(existing: Iterable[str]) -> Callable[[], str]:
    taken = set(existing)
    counter = count(1)

    def next_id() -> str:
        while True:
            candidate = f"replay-{next(counter)}"
            if candidate not in taken:
                taken.add(candidate)
                return candidate

    return next_id


def replay_plan(
    deals: Iterable[Deal],
    plan: DealSyncPlan,
    *,
    new_id: Callable[[], str] | None = None,
) -> list[Deal]:
    """Return the deal snapshot that results from applying ``plan`` to ``deals``."""

    by_id = {deal.id: deal for deal in deals}
    make_id = new_id or _sequential_ids(by_id)

    for update in plan.deals_to_update:
        deal = by_id.get(update.deal_id)
        if deal is None:
            raise DataIntegrityError(f"Cannot replay update for unknown deal {update.deal_id}")
        by_id[deal.id] = replace(deal, properties=replace(deal.properties, **update.changes))

    for association in plan.associations_to_remove:
        deal = by_id[association.deal_id]
        remaining = tuple(cid for cid in deal.contact_ids if cid != association.contact_id)
        by_id[deal.id] = replace(deal, contact_ids=remaining)

    for association in plan.associations_to_create:
        deal = by_id[association.deal_id]
        if association.contact_id not in deal.contact_ids:
            by_id[deal.id] = replace(deal, contact_ids=(*deal.contact_ids, association.contact_id))

    for create in plan.deals_to_create:
        deal_id = make_id()
        by_id[deal_id] = Deal(
            id=deal_id, properties=create.properties, contact_ids=create.contact_ids
        )

    return list(by_id.values())
