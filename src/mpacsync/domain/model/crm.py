"""CRM-side records: deals, contacts and the per-run contact directory."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import TYPE_CHECKING

from .enums import DealStage

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from datetime import date
    from decimal import Decimal

    from .enums import Hosting


@dataclass(frozen=True, slots=True, kw_only=True)
class DealProperties:
    """The property bag a marketplace deal carries in the CRM.

    Values are typed so that comparisons ignore formatting differences
    (``Decimal("100") == Decimal("100.00")``).
    """

    addon_license_id: str | None = None
    transaction_id: str | None = None
    close_date: date | None = None
    deployment: Hosting | str | None = None
    app: str | None = None
    license_tier: int | None = None
    country: str | None = None
    origin: str | None = None
    related_products: str | None = None
    deal_name: str | None = None
    pipeline: str | None = None
    deal_stage: DealStage | str | None = None
    amount: Decimal | None = None


DEAL_PROPERTY_FIELDS: tuple[str, ...] = tuple(field.name for field in fields(DealProperties))


@dataclass(frozen=True, slots=True, kw_only=True)
class Deal:
    id: str
    properties: DealProperties
    contact_ids: tuple[str, ...] = ()

    @property
    def stage(self) -> DealStage | str | None:
        return self.properties.deal_stage

    def is_eval(self) -> bool:
        return self.stage == DealStage.EVAL

    def is_closed(self) -> bool:
        return self.stage in (DealStage.CLOSED_WON, DealStage.CLOSED_LOST)


@dataclass(frozen=True, slots=True, kw_only=True)
class Contact:
    id: str
    emails: tuple[str, ...]


class ContactDirectory:
    """Lookup from lowercase email to CRM contact id."""

    __slots__ = ("_ids_by_email",)

    def __init__(self, ids_by_email: Mapping[str, str] | None = None) -> None:
        self._ids_by_email: dict[str, str] = {}
        for email, contact_id in (ids_by_email or {}).items():
            self._ids_by_email.setdefault(email.strip().lower(), contact_id)

    @classmethod
    def from_contacts(cls, contacts: Iterable[Contact]) -> ContactDirectory:
        directory = cls()
        for contact in contacts:
            for email in contact.emails:
                directory._ids_by_email.setdefault(  # noqa: SLF001
                    email.strip().lower(), contact.id
                )
        return directory

    def id_for(self, email: str | None) -> str | None:
        if not email:
            return None
        return self._ids_by_email.get(email.strip().lower())

    def __len__(self) -> int:
        return len(self._ids_by_email)

    def __contains__(self, email: object) -> bool:
        return isinstance(email, str) and email.strip().lower() in self._ids_by_email
