"""Assemble related-license sets from matcher output.

The matcher itself lives outside this package; it hands over lists of addon
license ids that belong to one customer relationship.
"""

from __future__ import annotations

from collections import defaultdict
from logging import getLogger
from typing import TYPE_CHECKING

from mpacsync.domain.errors import DataIntegrityError
from mpacsync.domain.model import LicenseContext

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from mpacsync.domain.model import License, RelatedLicenseSet, Transaction

log = getLogger(__name__)


def build_related_sets(
    licenses: Iterable[License],
    transactions: Iterable[Transaction],
    matches: Iterable[Sequence[str]],
) -> list[RelatedLicenseSet]:
    """Return one group per match, then one singleton group per unmatched license.

    Transactions are attached to the license sharing their addon license id.
    """

    licenses_by_id: dict[str, License] = {}
    for license in licenses:
        licenses_by_id.setdefault(license.addon_license_id, license)

    transactions_by_license: dict[str, list[Transaction]] = defaultdict(list)
    for transaction in transactions:
        transactions_by_license[transaction.addon_license_id].append(transaction)

    def context_for(addon_license_id: str) -> LicenseContext:
        license = licenses_by_id.get(addon_license_id)
        if license is None:
            raise DataIntegrityError(f"Match references unknown license {addon_license_id}")
        return LicenseContext(
            license=license,
            transactions=tuple(transactions_by_license.get(addon_license_id, ())),
        )

    groups: list[RelatedLicenseSet] = []
    matched: set[str] = set()
    for match in matches:
        ids = [license_id for license_id in dict.fromkeys(match) if license_id not in matched]
        if not ids:
            continue
        groups.append(tuple(context_for(license_id) for license_id in ids))
        matched.update(ids)

    unmatched = [license_id for license_id in licenses_by_id if license_id not in matched]
    groups.extend((context_for(license_id),) for license_id in unmatched)

    orphaned = set(transactions_by_license) - set(licenses_by_id)
    if orphaned:
        log.warning("Transactions reference %s licenses outside the feed", len(orphaned))

    log.debug("Built %s related license sets (%s unmatched)", len(groups), len(unmatched))
    return groups
