"""Deal reconciliation engine.

Flow for one run:
1) index the existing deal snapshot by marketplace identifiers (``finder``)
2) classify every related-license set into create/update actions
   (``classify``, with lifecycle rules from ``actions``)
3) map actions onto deal property sets and diff them against the snapshot
   (``properties``), collecting association changes (``generate``)

The engine is a pure function of its inputs and never applies the plan.
"""

from __future__ import annotations

from .actions import ActionGenerator, CreateDeal, DealAction, UpdateDeal
from .classify import GroupClassifier
from .events import (
    DealRelevantEvent,
    EvalEvent,
    PurchaseEvent,
    RefundEvent,
    RenewalEvent,
    UpgradeEvent,
)
from .finder import DealFinder
from .generate import generate_deals
from .plan import Association, DealCreate, DealSyncPlan, DealUpdate, IgnoredGroup
from .properties import DealDefaults, DealPropertyMapper
from .replay import replay_plan
from .tiers import calculate_tier, calculate_tiers

__all__ = [
    "ActionGenerator",
    "Association",
    "CreateDeal",
    "DealAction",
    "DealCreate",
    "DealDefaults",
    "DealFinder",
    "DealPropertyMapper",
    "DealRelevantEvent",
    "DealSyncPlan",
    "DealUpdate",
    "EvalEvent",
    "GroupClassifier",
    "IgnoredGroup",
    "PurchaseEvent",
    "RefundEvent",
    "RenewalEvent",
    "UpgradeEvent",
    "calculate_tier",
    "calculate_tiers",
    "generate_deals",
    "replay_plan",
]
