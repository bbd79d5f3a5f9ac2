"""Per-group classification into deal actions.

Order of evaluation for one related-license set:

1. domain exclusion: every technical contact on a free-provider or partner
   domain means the group is ignored before any deal lookup
2. free-only groups: create, refresh or close the eval deal
3. groups with paid licenses: create or close-won the deal
4. refunds: close the deals the refunded transactions reference, folding
   into the group's own pending action where both target the same deal
"""

from __future__ import annotations

from decimal import Decimal
from logging import getLogger
from typing import TYPE_CHECKING

from mpacsync.domain.errors import DataIntegrityError
from mpacsync.domain.model import DealStage

from .actions import ActionGenerator, CreateDeal, UpdateDeal
from .events import RefundEvent
from .plan import IgnoredGroup
from .properties import close_date_for

if TYPE_CHECKING:
    from collections.abc import Sequence, Set

    from mpacsync.domain.model import Deal, License, RelatedLicenseSet, Transaction

    from .actions import DealAction
    from .finder import DealFinder

log = getLogger(__name__)

CENTS = Decimal("0.01")


def _cents(amount: Decimal) -> Decimal:
    return amount.quantize(CENTS)


class GroupClassifier:
    """Classify related-license sets against existing deal state.

    Ignored groups are collected on ``ignored`` for audit output; nothing here
    raises for an ignore decision.
    """

    def __init__(
        self,
        finder: DealFinder,
        *,
        provider_domains: Set[str],
        partner_domains: Set[str],
    ) -> None:
        self._finder = finder
        self._action_generator = ActionGenerator(finder)
        self._provider_domains = provider_domains
        self._partner_domains = partner_domains
        self.ignored: list[IgnoredGroup] = []

    def classify(self, group: RelatedLicenseSet) -> list[DealAction]:
        if not group:
            raise DataIntegrityError("Related license set must contain at least one license")

        if self._is_excluded(group):
            return []

        deals = self._finder.get_deals(context.license for context in group)
        deal = deals[0] if deals else None

        licenses = sorted(
            (context.license for context in group),
            key=lambda license: license.maintenance_start_date,
        )
        transactions = [transaction for context in group for transaction in context.transactions]

        if all(license.is_free for license in licenses):
            return self._classify_free(group, licenses, transactions, deal)

        actions = self._classify_paid(group, licenses, transactions, deal)
        return self._apply_refunds(group, transactions, actions)

    def ignore(self, reason: str, licenses: Sequence[License]) -> None:
        log.debug(
            "Ignoring group %s: %s",
            ",".join(license.addon_license_id for license in licenses),
            reason,
        )
        self.ignored.append(IgnoredGroup(reason=reason, licenses=tuple(licenses)))

    def _is_excluded(self, group: RelatedLicenseSet) -> bool:
        licenses = [context.license for context in group]
        bad_domains = [
            license.technical_contact.domain
            for license in licenses
            if license.technical_contact.domain in self._partner_domains
            or license.technical_contact.domain in self._provider_domains
        ]
        if len(bad_domains) != len(licenses):
            return False
        self.ignore("bad-domains:" + ",".join(dict.fromkeys(bad_domains)), licenses)
        return True

    def _classify_free(
        self,
        group: RelatedLicenseSet,
        licenses: list[License],
        transactions: list[Transaction],
        deal: Deal | None,
    ) -> list[DealAction]:
        if transactions:
            ids = ",".join(license.addon_license_id for license in licenses)
            raise DataIntegrityError(
                f"Free-only group {ids} carries {len(transactions)} transactions"
            )

        latest = licenses[-1]

        if deal is None:
            if latest.is_active:
                return [
                    CreateDeal(
                        stage=DealStage.EVAL,
                        record=latest,
                        amount=Decimal(0),
                        group=group,
                    )
                ]
            self.ignore("inactive-evals", licenses)
            return []

        if not latest.is_active:
            return [
                UpdateDeal(
                    deal=deal,
                    overrides={
                        "addon_license_id": latest.addon_license_id,
                        "deal_stage": DealStage.CLOSED_LOST,
                    },
                    group=group,
                )
            ]

        close_date = close_date_for(latest, transactions)
        if (
            close_date != deal.properties.close_date
            or latest.addon_license_id != deal.properties.addon_license_id
        ):
            return [
                UpdateDeal(
                    deal=deal,
                    overrides={
                        "addon_license_id": latest.addon_license_id,
                        "close_date": close_date,
                    },
                    group=group,
                )
            ]
        self.ignore("eval-up-to-date", licenses)
        return []

    def _classify_paid(
        self,
        group: RelatedLicenseSet,
        licenses: list[License],
        transactions: list[Transaction],
        deal: Deal | None,
    ) -> list[DealAction]:
        paid_transactions = tuple(
            sorted(
                (transaction for transaction in transactions if not transaction.is_refund),
                key=lambda transaction: transaction.sale_date,
            )
        )
        # Price comes from the first sale, not the latest.
        price = paid_transactions[0].vendor_amount if paid_transactions else None
        first_paid = next(license for license in licenses if not license.is_free)
        converted_from_eval = licenses[0].is_free

        if deal is None:
            return [
                CreateDeal(
                    stage=DealStage.CLOSED_WON,
                    record=first_paid,
                    transactions=paid_transactions,
                    amount=_cents(price or Decimal(0)),
                    group=group,
                )
            ]

        # A group that started paid only closes stale evals; closed deals are left alone.
        if not converted_from_eval and not deal.is_eval():
            return []

        overrides: dict[str, object] = {
            "addon_license_id": first_paid.addon_license_id,
            "deal_stage": DealStage.CLOSED_WON,
        }
        if price:
            overrides["amount"] = _cents(price)
        return [
            UpdateDeal(
                deal=deal,
                overrides=overrides,
                record=first_paid,
                transactions=paid_transactions,
                group=group,
            )
        ]

    def _apply_refunds(
        self,
        group: RelatedLicenseSet,
        transactions: list[Transaction],
        actions: list[DealAction],
    ) -> list[DealAction]:
        refunds = tuple(transaction for transaction in transactions if transaction.is_refund)
        if not refunds:
            return actions

        refunded_deal_ids = {deal.id for deal in self._finder.get_deals(refunds)}
        refunded_license_ids = {refund.addon_license_id for refund in refunds}
        refunded_transaction_ids = {refund.transaction_id for refund in refunds}

        def targets_refund(action: DealAction) -> bool:
            if isinstance(action, UpdateDeal):
                return (
                    action.deal.id in refunded_deal_ids
                    or action.addon_license_id in refunded_license_ids
                )
            return (
                action.addon_license_id in refunded_license_ids
                or action.transaction_id in refunded_transaction_ids
            )

        merged: list[DealAction] = []
        closed_deal_ids: set[str] = set()
        for action in actions:
            if targets_refund(action):
                action = action.with_stage(DealStage.CLOSED_LOST)  # noqa: PLW2901
                if isinstance(action, UpdateDeal):
                    closed_deal_ids.add(action.deal.id)
            merged.append(action)

        event = RefundEvent(group=group, refunded_transactions=refunds)
        for action in self._action_generator.actions_for(event):
            if isinstance(action, UpdateDeal) and action.deal.id in closed_deal_ids:
                continue
            merged.append(action)
        return merged
