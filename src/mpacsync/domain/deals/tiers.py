"""Licensed-user tier derivation.

A tier is the upper bound of a licensed user range. License, transaction and
evaluation records encode it differently, so one license context can yield
several candidates; callers take the maximum.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from mpacsync.domain.errors import TierParseError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from mpacsync.domain.model import License, Transaction

UNLIMITED_TIER = 10001
UNKNOWN_TIER = -1

_USERS_RE = re.compile(r"^(\d+) Users$")
_PER_UNIT_RE = re.compile(r"^Per Unit Pricing \((\d+) users\)$", re.IGNORECASE)

_UNTIERED_LICENSE_VALUES = frozenset({"Subscription", "Evaluation", "Demonstration License"})
_UNKNOWN_OPPORTUNITY_VALUES = frozenset({"NA", "Unknown", "Evaluation"})


def parse_license_tier(tier: str) -> int:
    if tier == "Unlimited Users":
        return UNLIMITED_TIER
    if tier in _UNTIERED_LICENSE_VALUES:
        return UNKNOWN_TIER
    match = _USERS_RE.match(tier)
    if match is None:
        raise TierParseError(f"Unknown license tier: {tier!r}")
    return int(match.group(1))


def parse_transaction_tier(tier: str) -> int:
    if tier == "Unlimited Users":
        return UNLIMITED_TIER
    if tier == "Per Unit Pricing":
        return UNKNOWN_TIER
    match = _PER_UNIT_RE.match(tier) or _USERS_RE.match(tier)
    if match is None:
        raise TierParseError(f"Unknown transaction tier: {tier!r}")
    return int(match.group(1))


def tier_from_eval_opportunity(size: str | None) -> int:
    if size is None or not size.strip() or size in _UNKNOWN_OPPORTUNITY_VALUES:
        return UNKNOWN_TIER
    if size == "Unlimited Users":
        return UNLIMITED_TIER
    if not size.strip().isdigit():
        raise TierParseError(f"Unknown evaluation opportunity size: {size!r}")
    return int(size)


def calculate_tiers(license: License, transactions: Iterable[Transaction] = ()) -> list[int]:
    """Return every tier candidate for ``license`` and its transactions."""

    if license.is_free:
        tiers = [tier_from_eval_opportunity(license.evaluation_opportunity_size)]
    else:
        tiers = [parse_license_tier(license.tier)]
    tiers.extend(parse_transaction_tier(transaction.tier) for transaction in transactions)
    return tiers


def calculate_tier(license: License, transactions: Iterable[Transaction] = ()) -> int:
    return max(calculate_tiers(license, transactions))


def transaction_tier(transaction: Transaction) -> int:
    return parse_transaction_tier(transaction.tier)
