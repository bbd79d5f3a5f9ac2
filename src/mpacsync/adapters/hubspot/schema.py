"""Pydantic models describing CRM object payloads."""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _to_str(value: object) -> object:
    if isinstance(value, int):
        return str(value)
    return value


class HubspotBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class AssociationRef(HubspotBaseModel):
    id: str
    type: str | None = None

    _normalize_id = field_validator("id", mode="before")(_to_str)


class AssociationList(HubspotBaseModel):
    results: list[AssociationRef] = Field(default_factory=list["AssociationRef"])


class ObjectPayload(HubspotBaseModel):
    id: str
    properties: dict[str, str | None] = Field(default_factory=dict["str", "str | None"])
    associations: dict[str, AssociationList] = Field(
        default_factory=dict["str", "AssociationList"]
    )

    _normalize_id = field_validator("id", mode="before")(_to_str)

    @field_validator("properties", mode="before")
    @classmethod
    def _stringify_properties(cls, value: object) -> object:
        if isinstance(value, Mapping):
            return {
                str(key): (None if item is None else str(item))
                for key, item in value.items()
            }
        return value

    def associated_ids(self, kind: str) -> tuple[str, ...]:
        association = self.associations.get(kind)
        if association is None:
            return ()
        return tuple(dict.fromkeys(ref.id for ref in association.results))


class DealPayload(ObjectPayload):
    pass


class ContactPayload(ObjectPayload):
    pass


DealPayloadInput = DealPayload | Mapping[str, object]
ContactPayloadInput = ContactPayload | Mapping[str, object]
