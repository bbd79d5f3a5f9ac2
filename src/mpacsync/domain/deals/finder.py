"""Read-only index from marketplace identifiers to existing deals."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from mpacsync.domain.errors import DataIntegrityError
from mpacsync.domain.model import Transaction

if TYPE_CHECKING:
    from collections.abc import Iterable

    from mpacsync.domain.model import Deal, MarketplaceRecord

log = getLogger(__name__)


class DealFinder:
    """Resolve licenses and transactions to the deals that reference them.

    Built once per run from the full deal snapshot. Deals are indexed by their
    addon license id and by their transaction id; a transaction is looked up by
    its own id first and falls back to its addon license id.
    """

    def __init__(self, deals: Iterable[Deal]) -> None:
        self._by_addon_license_id: dict[str, Deal] = {}
        self._by_transaction_id: dict[str, Deal] = {}
        for deal in deals:
            self._index(self._by_addon_license_id, deal.properties.addon_license_id, deal)
            self._index(self._by_transaction_id, deal.properties.transaction_id, deal)

    @staticmethod
    def _index(index: dict[str, Deal], key: str | None, deal: Deal) -> None:
        if not key:
            return
        previous = index.get(key)
        if previous is not None and previous.id != deal.id:
            log.warning("Deals %s and %s share identifier %s", previous.id, deal.id, key)
        index[key] = deal

    def by_addon_license_id(self, addon_license_id: str) -> Deal | None:
        return self._by_addon_license_id.get(addon_license_id)

    def by_transaction_id(self, transaction_id: str) -> Deal | None:
        return self._by_transaction_id.get(transaction_id)

    def _lookup(self, record: MarketplaceRecord) -> Deal | None:
        if isinstance(record, Transaction):
            deal = self._by_transaction_id.get(record.transaction_id)
            if deal is not None:
                return deal
        return self._by_addon_license_id.get(record.addon_license_id)

    def get_deals(self, records: Iterable[MarketplaceRecord]) -> list[Deal]:
        """Return the distinct deals referenced by ``records``, in first-seen order."""

        found: dict[str, Deal] = {}
        for record in records:
            deal = self._lookup(record)
            if deal is not None:
                found.setdefault(deal.id, deal)
        return list(found.values())

    def get_deal(self, records: Iterable[MarketplaceRecord]) -> Deal | None:
        """Return the single deal owned by ``records`` or ``None``.

        Raises ``DataIntegrityError`` when the records point at several deals.
        """

        deals = self.get_deals(records)
        if len(deals) > 1:
            ids = ", ".join(deal.id for deal in deals)
            raise DataIntegrityError(f"Expected at most one deal, found: {ids}")
        return deals[0] if deals else None
