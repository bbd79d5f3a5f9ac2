from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from mpacsync.adapters.hubspot import (
    association_to_api,
    build_contact_directory,
    deal_api_properties,
    deal_create_to_api,
    deal_update_to_api,
    parse_contact,
    parse_deal,
    parse_deals,
)
from mpacsync.config import HubspotDealConfig
from mpacsync.domain.deals import Association, DealCreate, DealUpdate
from mpacsync.domain.model import DealProperties, DealStage, Hosting


@pytest.fixture
def config() -> HubspotDealConfig:
    return HubspotDealConfig(
        pipeline="111",
        stage_ids={
            DealStage.EVAL: "201",
            DealStage.CLOSED_WON: "202",
            DealStage.CLOSED_LOST: "203",
        },
        addon_license_id_attr="mp_addon_license_id",
    )


def _deal_payload(**properties: object) -> dict[str, object]:
    values: dict[str, object] = {
        "pipeline": "111",
        "dealstage": "202",
        "mp_addon_license_id": "1234567",
        "transactionid": "",
        "closedate": "2024-01-15T00:00:00.000Z",
        "deployment": "Server",
        "aa_app": "com.example.timesheets",
        "license_tier": "50",
        "country": "Germany",
        "origin": "Atlassian Marketplace",
        "related_products": "Marketplace Apps",
        "dealname": "Timesheets at Acme",
        "amount": "100.00",
    }
    values.update(properties)
    return {
        "id": 9001,
        "properties": values,
        "associations": {
            "contacts": {"results": [{"id": 11, "type": "deal_to_contact"}, {"id": "12"}]}
        },
    }


def test_parse_deal(config: HubspotDealConfig) -> None:
    deal = parse_deal(_deal_payload(), config)

    assert deal is not None
    assert deal.id == "9001"
    assert deal.contact_ids == ("11", "12")
    assert deal.properties == DealProperties(
        addon_license_id="1234567",
        transaction_id=None,
        close_date=date(2024, 1, 15),
        deployment=Hosting.SERVER,
        app="com.example.timesheets",
        license_tier=50,
        country="Germany",
        origin="Atlassian Marketplace",
        related_products="Marketplace Apps",
        deal_name="Timesheets at Acme",
        pipeline="111",
        deal_stage=DealStage.CLOSED_WON,
        amount=Decimal("100.00"),
    )


def test_blank_values_and_unknown_stage(config: HubspotDealConfig) -> None:
    deal = parse_deal(_deal_payload(amount="", dealstage="999", license_tier=None), config)

    assert deal is not None
    assert deal.properties.amount is None
    assert deal.properties.license_tier is None
    assert deal.stage == "999"
    assert not deal.is_closed()


def test_deals_from_other_pipelines_are_dropped(config: HubspotDealConfig) -> None:
    deals = parse_deals([_deal_payload(), _deal_payload(pipeline="default")], config)

    assert [deal.id for deal in deals] == ["9001"]


def test_invalid_amount_raises(config: HubspotDealConfig) -> None:
    with pytest.raises(ValueError, match="amount"):
        parse_deal(_deal_payload(amount="lots"), config)


def test_contacts_use_primary_and_additional_emails() -> None:
    raw = {
        "id": "42",
        "properties": {
            "email": "Tech@Acme.example",
            "hs_additional_emails": "old@acme.example; tech@acme.example;",
        },
    }

    contact = parse_contact(raw)
    directory = build_contact_directory([raw, {"id": "43", "properties": {"email": None}}])

    assert contact.emails == ("tech@acme.example", "old@acme.example")
    assert directory.id_for("OLD@acme.example") == "42"
    assert len(directory) == 2


def test_create_renders_crm_values(config: HubspotDealConfig) -> None:
    create = DealCreate(
        properties=DealProperties(
            addon_license_id="1234567",
            close_date=date(2024, 1, 15),
            deployment=Hosting.DATA_CENTER,
            license_tier=10001,
            pipeline="111",
            deal_stage=DealStage.EVAL,
            amount=Decimal(0),
        ),
        contact_ids=("11",),
    )

    body = deal_create_to_api(create, config)

    properties = body["properties"]
    assert isinstance(properties, dict)
    assert properties["mp_addon_license_id"] == "1234567"
    assert properties["transactionid"] == ""
    assert properties["closedate"] == "2024-01-15"
    assert properties["deployment"] == "Data Center"
    assert properties["license_tier"] == "10001"
    assert properties["dealstage"] == "201"
    assert properties["amount"] == "0"
    assert body["associations"] == [
        {
            "to": {"id": "11"},
            "types": [{"associationCategory": "HUBSPOT_DEFINED", "associationTypeId": 3}],
        }
    ]


def test_update_renders_only_changes(config: HubspotDealConfig) -> None:
    update = DealUpdate(
        deal_id="9001",
        changes={"deal_stage": DealStage.CLOSED_LOST, "amount": Decimal("99.50")},
    )

    assert deal_update_to_api(update, config) == {
        "id": "9001",
        "properties": {"dealstage": "203", "amount": "99.50"},
    }


def test_rendered_deal_parses_back_to_same_properties(config: HubspotDealConfig) -> None:
    original = parse_deal(_deal_payload(), config)
    assert original is not None

    body = deal_create_to_api(DealCreate(properties=original.properties), config)
    reparsed = parse_deal({"id": "1", "properties": body["properties"]}, config)

    assert reparsed is not None
    assert reparsed.properties == original.properties


def test_association_and_property_names(config: HubspotDealConfig) -> None:
    assert association_to_api(Association("11", "9001")) == {
        "from": {"id": "9001"},
        "to": {"id": "11"},
        "type": "deal_to_contact",
    }
    assert "mp_addon_license_id" in deal_api_properties(config)
    assert "addonlicenseid" not in deal_api_properties(config)
