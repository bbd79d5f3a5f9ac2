"""Output of one deal generation run.

The plan is the contract between the engine and whatever applies it to the
CRM: creates carry a full property set, updates carry only changed fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

    from mpacsync.domain.model import DealProperties, License


@dataclass(frozen=True, slots=True, kw_only=True)
class DealCreate:
    properties: DealProperties
    contact_ids: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class DealUpdate:
    deal_id: str
    changes: Mapping[str, object]

    def __post_init__(self) -> None:
        if not self.changes:
            raise ValueError("Deal update must change at least one property")


@dataclass(frozen=True, slots=True)
class Association:
    contact_id: str
    deal_id: str


@dataclass(frozen=True, slots=True, kw_only=True)
class IgnoredGroup:
    """Group skipped without generating actions, kept for inspection."""

    reason: str
    licenses: tuple[License, ...]


@dataclass(slots=True)
class DealSyncPlan:
    """Aggregate result for one run."""

    deals_to_create: list[DealCreate] = field(default_factory=list["DealCreate"])
    deals_to_update: list[DealUpdate] = field(default_factory=list["DealUpdate"])
    associations_to_create: list[Association] = field(default_factory=list["Association"])
    associations_to_remove: list[Association] = field(default_factory=list["Association"])
    ignored: list[IgnoredGroup] = field(default_factory=list["IgnoredGroup"])

    @property
    def is_empty(self) -> bool:
        """True when applying the plan would not change the CRM."""

        return not (
            self.deals_to_create
            or self.deals_to_update
            or self.associations_to_create
            or self.associations_to_remove
        )

    def ignored_reasons(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for entry in self.ignored:
            counts[entry.reason] = counts.get(entry.reason, 0) + 1
        return counts
