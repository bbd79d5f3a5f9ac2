"""Lifecycle events the action generator reacts to.

Each event carries the related-license set it was derived from so that
actions can be traced back to their source records.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from mpacsync.domain.model import Transaction

if TYPE_CHECKING:
    from datetime import date

    from mpacsync.domain.model import License, RelatedLicenseSet


@dataclass(frozen=True, slots=True, kw_only=True)
class EvalEvent:
    """One or more free licenses, ordered by maintenance start."""

    group: RelatedLicenseSet
    licenses: tuple[License, ...]

    def __post_init__(self) -> None:
        if not self.licenses:
            raise ValueError("Eval event requires at least one license")


@dataclass(frozen=True, slots=True, kw_only=True)
class PurchaseEvent:
    group: RelatedLicenseSet
    licenses: tuple[License, ...]
    transaction: Transaction | None = None

    def __post_init__(self) -> None:
        if not self.licenses and self.transaction is None:
            raise ValueError("Purchase event requires a license or a transaction")


@dataclass(frozen=True, slots=True, kw_only=True)
class RenewalEvent:
    group: RelatedLicenseSet
    transaction: Transaction


@dataclass(frozen=True, slots=True, kw_only=True)
class UpgradeEvent:
    group: RelatedLicenseSet
    transaction: Transaction


@dataclass(frozen=True, slots=True, kw_only=True)
class RefundEvent:
    group: RelatedLicenseSet
    refunded_transactions: tuple[Transaction, ...]


type DealRelevantEvent = EvalEvent | PurchaseEvent | RenewalEvent | UpgradeEvent | RefundEvent


def record_date(record: License | Transaction) -> date:
    """Date a record became relevant: sale date for transactions, maintenance start otherwise."""

    if isinstance(record, Transaction):
        return record.sale_date
    return record.maintenance_start_date
