"""Deal property mapping and property-level diffing.

The mapper turns a license (with its transactions) or a single transaction
into the full ``DealProperties`` a deal should carry, and reduces a desired
property set to the fields that differ from an existing deal.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from string import Formatter
from typing import TYPE_CHECKING, Final

from mpacsync.domain.model import DEAL_PROPERTY_FIELDS, DealProperties, License, Transaction

from .tiers import calculate_tier, transaction_tier

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence
    from datetime import date

    from mpacsync.domain.model import ContactDirectory, Deal, DealStage, MarketplaceRecord

DEFAULT_DEAL_ORIGIN: Final[str] = "Atlassian Marketplace"
DEFAULT_RELATED_PRODUCTS: Final[str] = "Marketplace Apps"
DEFAULT_DEAL_NAME_TEMPLATE: Final[str] = "{addon_name} at {company}"

DEAL_NAME_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "addon_key",
        "addon_name",
        "addon_license_id",
        "license_id",
        "company",
        "country",
        "hosting",
        "technical_contact_email",
    }
)

IDENTIFYING_FIELDS: Final[tuple[str, ...]] = ("addon_license_id", "transaction_id", "close_date")
GENERATED_FIELDS: Final[tuple[str, ...]] = tuple(
    name for name in DEAL_PROPERTY_FIELDS if name != "deal_stage"
)

type PropertyChanges = dict[str, object]


def template_fields(template: str) -> set[str]:
    """Return the placeholder names used by a deal name template."""

    return {name for _, name, _, _ in Formatter().parse(template) if name}


@dataclass(frozen=True, slots=True, kw_only=True)
class DealDefaults:
    """Per-portal constants stamped onto every generated deal."""

    pipeline: str
    origin: str = DEFAULT_DEAL_ORIGIN
    related_products: str = DEFAULT_RELATED_PRODUCTS
    name_template: str = DEFAULT_DEAL_NAME_TEMPLATE

    def __post_init__(self) -> None:
        unknown = template_fields(self.name_template) - DEAL_NAME_FIELDS
        if unknown:
            raise ValueError(f"Unknown deal name fields: {', '.join(sorted(unknown))}")


def first_paid_transaction(transactions: Iterable[Transaction]) -> Transaction | None:
    """Earliest transaction by sale date that is not a refund."""

    ordered = sorted(transactions, key=lambda transaction: transaction.sale_date)
    return next((transaction for transaction in ordered if not transaction.is_refund), None)


def close_date_for(license: License, transactions: Iterable[Transaction]) -> date:
    sale_dates = [transaction.sale_date for transaction in transactions]
    return min(sale_dates) if sale_dates else license.maintenance_start_date


def contact_ids_for(record: MarketplaceRecord, contacts: ContactDirectory) -> tuple[str, ...]:
    """Resolve technical, billing and partner billing contacts; unknown emails are dropped."""

    ids: list[str] = []
    for email in record.contact_emails:
        contact_id = contacts.id_for(email)
        if contact_id is not None and contact_id not in ids:
            ids.append(contact_id)
    return tuple(ids)


def diff_properties(current: DealProperties, desired: DealProperties) -> PropertyChanges:
    """Fields of ``desired`` whose value differs from ``current``."""

    changes: PropertyChanges = {}
    for name in DEAL_PROPERTY_FIELDS:
        value = getattr(desired, name)
        if value != getattr(current, name):
            changes[name] = value
    return changes


class DealPropertyMapper:
    """Build deal property sets from marketplace records."""

    def __init__(self, defaults: DealDefaults) -> None:
        self.defaults = defaults

    def deal_name(self, record: MarketplaceRecord) -> str:
        values = {
            "addon_key": record.addon_key,
            "addon_name": record.addon_name,
            "addon_license_id": record.addon_license_id,
            "license_id": record.license_id or "",
            "company": record.company or "",
            "country": record.country or "",
            "hosting": str(record.hosting),
            "technical_contact_email": record.technical_contact.email,
        }
        return self.defaults.name_template.format_map(values).strip()

    def for_license(
        self,
        license: License,
        transactions: Sequence[Transaction] = (),
        *,
        stage: DealStage | None = None,
    ) -> DealProperties:
        paid = first_paid_transaction(transactions)
        return DealProperties(
            addon_license_id=license.addon_license_id,
            transaction_id=None,
            close_date=close_date_for(license, transactions),
            deployment=license.hosting,
            app=license.addon_key,
            license_tier=calculate_tier(license, transactions),
            country=license.country,
            origin=self.defaults.origin,
            related_products=self.defaults.related_products,
            deal_name=self.deal_name(license),
            pipeline=self.defaults.pipeline,
            deal_stage=stage,
            amount=paid.vendor_amount if paid is not None else Decimal(0),
        )

    def for_transaction(
        self,
        transaction: Transaction,
        *,
        stage: DealStage | None = None,
    ) -> DealProperties:
        return DealProperties(
            addon_license_id=transaction.addon_license_id,
            transaction_id=transaction.transaction_id,
            close_date=transaction.sale_date,
            deployment=transaction.hosting,
            app=transaction.addon_key,
            license_tier=transaction_tier(transaction),
            country=transaction.country,
            origin=self.defaults.origin,
            related_products=self.defaults.related_products,
            deal_name=self.deal_name(transaction),
            pipeline=self.defaults.pipeline,
            deal_stage=stage,
            amount=transaction.vendor_amount,
        )

    def for_record(
        self,
        record: MarketplaceRecord,
        transactions: Sequence[Transaction] = (),
        *,
        stage: DealStage | None = None,
    ) -> DealProperties:
        if isinstance(record, Transaction):
            return self.for_transaction(record, stage=stage)
        if isinstance(record, License):
            return self.for_license(record, transactions, stage=stage)
        raise TypeError(f"Unsupported record type: {type(record).__name__}")

    def desired_properties(
        self,
        deal: Deal,
        overrides: Mapping[str, object],
        *,
        record: MarketplaceRecord | None = None,
        transactions: Sequence[Transaction] = (),
        refresh: Sequence[str] = GENERATED_FIELDS,
    ) -> DealProperties:
        """Existing properties, refreshed from ``record`` and then overridden.

        ``refresh`` limits which freshly generated fields replace stored ones;
        explicit ``overrides`` always win.
        """

        unknown = set(overrides) - set(DEAL_PROPERTY_FIELDS)
        if unknown:
            raise ValueError(f"Unknown deal properties: {', '.join(sorted(unknown))}")

        refreshed: dict[str, object] = {}
        if record is not None:
            generated = self.for_record(record, transactions)
            refreshed = {name: getattr(generated, name) for name in refresh}
        refreshed.update(overrides)
        return replace(deal.properties, **refreshed)

    def update_changes(
        self,
        deal: Deal,
        overrides: Mapping[str, object],
        *,
        record: MarketplaceRecord | None = None,
        transactions: Sequence[Transaction] = (),
        refresh: Sequence[str] = GENERATED_FIELDS,
    ) -> PropertyChanges:
        """Only the properties an update must write; empty means no-op."""

        desired = self.desired_properties(
            deal,
            overrides,
            record=record,
            transactions=transactions,
            refresh=refresh,
        )
        return diff_properties(deal.properties, desired)
