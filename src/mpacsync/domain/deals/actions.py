"""Deal actions and the event-driven action generator.

Actions describe a desired mutation; they never touch the deal they refer
to. ``CreateDeal`` and ``UpdateDeal`` are turned into concrete property sets
by the generation stage, which also drops updates that would change nothing.

The group classifier only sends ``RefundEvent`` through ``actions_for`` (see
``classify.GroupClassifier._apply_refunds``). It decides eval, purchase,
renewal and upgrade deals with its own group-level rules. The matching
handlers here make up the per-event transition table, which callers holding
an event timeline reach through ``generate_from``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from mpacsync.domain.model import DealStage, License, Transaction

from .events import (
    EvalEvent,
    PurchaseEvent,
    RefundEvent,
    RenewalEvent,
    UpgradeEvent,
    record_date,
)
from .properties import GENERATED_FIELDS, IDENTIFYING_FIELDS

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from decimal import Decimal

    from mpacsync.domain.model import Deal, RelatedLicenseSet

    from .events import DealRelevantEvent
    from .finder import DealFinder


@dataclass(frozen=True, slots=True, kw_only=True)
class CreateDeal:
    """A brand-new deal seeded from ``record``.

    ``amount`` overrides the amount derived from the record when set.
    """

    stage: DealStage
    record: License | Transaction
    transactions: tuple[Transaction, ...] = ()
    amount: Decimal | None = None
    group: RelatedLicenseSet = ()

    @property
    def addon_license_id(self) -> str:
        return self.record.addon_license_id

    @property
    def transaction_id(self) -> str | None:
        return self.record.transaction_id if isinstance(self.record, Transaction) else None

    def with_stage(self, stage: DealStage) -> CreateDeal:
        return replace(self, stage=stage)


@dataclass(frozen=True, slots=True, kw_only=True)
class UpdateDeal:
    """Desired changes to an existing deal.

    When ``record`` is set, the fields named in ``refresh`` are regenerated
    from it before ``overrides`` are applied.
    """

    deal: Deal
    overrides: Mapping[str, object] = field(default_factory=dict["str", "object"])
    record: License | Transaction | None = None
    transactions: tuple[Transaction, ...] = ()
    refresh: tuple[str, ...] = GENERATED_FIELDS
    group: RelatedLicenseSet = ()

    @property
    def license(self) -> License | None:
        return self.record if isinstance(self.record, License) else None

    @property
    def addon_license_id(self) -> str | None:
        value = self.overrides.get("addon_license_id")
        if isinstance(value, str):
            return value
        if self.record is not None:
            return self.record.addon_license_id
        return self.deal.properties.addon_license_id

    def with_stage(self, stage: DealStage) -> UpdateDeal:
        return replace(self, overrides={**self.overrides, "deal_stage": stage})


type DealAction = CreateDeal | UpdateDeal


def latest_record(
    licenses: Iterable[License], transaction: Transaction | None
) -> License | Transaction:
    """Most recent record by event date; ties keep input order."""

    records: list[License | Transaction] = list(licenses)
    if transaction is not None:
        records.append(transaction)
    return sorted(records, key=record_date, reverse=True)[0]


class ActionGenerator:
    """Map lifecycle events to deal actions, consulting existing deal state.

    ==========  ==================  =====================================
    event       existing deal       action
    ==========  ==================  =====================================
    eval        none                create, EVAL
    eval        EVAL                update identifying fields
    purchase    none                create, CLOSED_WON
    purchase    EVAL                update to CLOSED_WON
    renewal     any                 create, CLOSED_WON
    upgrade     any                 create, CLOSED_WON
    refund      not CLOSED_LOST     update to CLOSED_LOST (per deal)
    ==========  ==================  =====================================

    Every other combination yields no action.
    """

    def __init__(self, finder: DealFinder) -> None:
        self._finder = finder

    def generate_from(self, events: Iterable[DealRelevantEvent]) -> list[DealAction]:
        actions: list[DealAction] = []
        for event in events:
            actions.extend(self.actions_for(event))
        return actions

    def actions_for(self, event: DealRelevantEvent) -> list[DealAction]:
        if isinstance(event, EvalEvent):
            action = self._action_for_eval(event)
        elif isinstance(event, PurchaseEvent):
            action = self._action_for_purchase(event)
        elif isinstance(event, (RenewalEvent, UpgradeEvent)):
            action = CreateDeal(
                stage=DealStage.CLOSED_WON,
                record=event.transaction,
                group=event.group,
            )
        elif isinstance(event, RefundEvent):
            return self._actions_for_refund(event)
        else:
            raise TypeError(f"Unsupported event: {type(event).__name__}")
        return [action] if action is not None else []

    def _action_for_eval(self, event: EvalEvent) -> DealAction | None:
        deal = self._finder.get_deal(event.licenses)
        latest = event.licenses[-1]
        if deal is None:
            return CreateDeal(stage=DealStage.EVAL, record=latest, group=event.group)
        if deal.is_eval():
            return UpdateDeal(
                deal=deal,
                record=latest,
                refresh=IDENTIFYING_FIELDS,
                group=event.group,
            )
        return None

    def _action_for_purchase(self, event: PurchaseEvent) -> DealAction | None:
        # Either an eval (or transaction-less purchase) deal keyed by license,
        # or a purchase deal keyed by its transaction.
        deal = self._finder.get_deal(event.licenses)
        if deal is None and event.transaction is not None:
            deal = self._finder.get_deal([event.transaction])

        record = latest_record(event.licenses, event.transaction)
        transactions = (event.transaction,) if event.transaction is not None else ()
        if deal is None:
            return CreateDeal(
                stage=DealStage.CLOSED_WON,
                record=record,
                transactions=transactions,
                group=event.group,
            )
        if deal.is_eval():
            return UpdateDeal(
                deal=deal,
                overrides={"deal_stage": DealStage.CLOSED_WON},
                record=record,
                transactions=transactions,
                group=event.group,
            )
        return None

    def _actions_for_refund(self, event: RefundEvent) -> list[DealAction]:
        deals = self._finder.get_deals(event.refunded_transactions)
        return [
            UpdateDeal(
                deal=deal,
                overrides={"deal_stage": DealStage.CLOSED_LOST},
                group=event.group,
            )
            for deal in deals
            if deal.stage != DealStage.CLOSED_LOST
        ]
