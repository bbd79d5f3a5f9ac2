from __future__ import annotations

import pytest

from mpacsync.config import (
    ConfigurationError,
    HubspotDealConfig,
    MissingConfigurationError,
    get_engine_config,
    get_hubspot_deal_config,
    optional_int_env_var,
    require_env_vars,
)
from mpacsync.domain.model import DealStage

_REQUIRED = {
    "HUBSPOT_PIPELINE_MPAC": "111",
    "HUBSPOT_DEALSTAGE_EVAL": "201",
    "HUBSPOT_DEALSTAGE_CLOSED_WON": "202",
    "HUBSPOT_DEALSTAGE_CLOSED_LOST": "203",
}

_OPTIONAL = (
    "DEAL_ORIGIN",
    "DEAL_RELATED_PRODUCTS",
    "DEAL_DEALNAME",
    "HUBSPOT_DEAL_ADDONLICENSEID_ATTR",
    "HUBSPOT_DEAL_TRANSACTIONID_ATTR",
    "HUBSPOT_DEAL_APP_ATTR",
    "IGNORE_LICENSES_OLDER_THAN_DAYS",
)


@pytest.fixture
def portal_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name, value in _REQUIRED.items():
        monkeypatch.setenv(name, value)
    for name in _OPTIONAL:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_require_env_vars_reports_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_ONE", raising=False)
    monkeypatch.setenv("MISSING_TWO", "   ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_TWO", "MISSING_ONE"])

    assert "MISSING_ONE, MISSING_TWO" in str(exc.value)


def test_engine_config_defaults(portal_env: pytest.MonkeyPatch) -> None:
    config = get_engine_config()

    assert config.hubspot.pipeline == "111"
    assert config.hubspot.stage_id(DealStage.CLOSED_WON) == "202"
    assert config.hubspot.addon_license_id_attr == "addonlicenseid"
    assert config.deals.pipeline == "111"
    assert config.deals.origin == "Atlassian Marketplace"
    assert config.deals.name_template == "{addon_name} at {company}"
    assert config.max_license_age_days == 90


def test_engine_config_overrides(portal_env: pytest.MonkeyPatch) -> None:
    portal_env.setenv("DEAL_ORIGIN", "MPAC")
    portal_env.setenv("DEAL_DEALNAME", "{addon_key} for {technical_contact_email}")
    portal_env.setenv("HUBSPOT_DEAL_APP_ATTR", "marketplace_app")
    portal_env.setenv("IGNORE_LICENSES_OLDER_THAN_DAYS", "0")

    config = get_engine_config()

    assert config.deals.origin == "MPAC"
    assert config.deals.name_template == "{addon_key} for {technical_contact_email}"
    assert config.hubspot.app_attr == "marketplace_app"
    assert config.max_license_age_days is None


def test_missing_stage_id_is_reported(portal_env: pytest.MonkeyPatch) -> None:
    portal_env.delenv("HUBSPOT_DEALSTAGE_CLOSED_LOST")

    with pytest.raises(MissingConfigurationError, match="HUBSPOT_DEALSTAGE_CLOSED_LOST"):
        get_hubspot_deal_config()


def test_unknown_deal_name_field_is_a_configuration_error(
    portal_env: pytest.MonkeyPatch,
) -> None:
    portal_env.setenv("DEAL_DEALNAME", "{addon_name} / {customer}")

    with pytest.raises(ConfigurationError, match="customer"):
        get_engine_config()


@pytest.mark.parametrize("value", ["soon", "-5"])
def test_invalid_license_age_is_rejected(monkeypatch: pytest.MonkeyPatch, value: str) -> None:
    monkeypatch.setenv("IGNORE_LICENSES_OLDER_THAN_DAYS", value)

    with pytest.raises(ConfigurationError):
        optional_int_env_var("IGNORE_LICENSES_OLDER_THAN_DAYS", 90)


def test_blank_license_age_disables_filter(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("IGNORE_LICENSES_OLDER_THAN_DAYS", " ")

    assert optional_int_env_var("IGNORE_LICENSES_OLDER_THAN_DAYS", 90) is None


def test_stage_ids_must_be_complete_and_distinct() -> None:
    with pytest.raises(ConfigurationError, match="Missing stage ids"):
        HubspotDealConfig(pipeline="111", stage_ids={DealStage.EVAL: "201"})
    with pytest.raises(ConfigurationError, match="distinct"):
        HubspotDealConfig(
            pipeline="111",
            stage_ids={
                DealStage.EVAL: "201",
                DealStage.CLOSED_WON: "201",
                DealStage.CLOSED_LOST: "203",
            },
        )


def test_stage_lookup_round_trips_and_passes_unknown_ids_through() -> None:
    config = HubspotDealConfig(
        pipeline="111",
        stage_ids={
            DealStage.EVAL: "201",
            DealStage.CLOSED_WON: "202",
            DealStage.CLOSED_LOST: "203",
        },
    )

    assert config.stage_from_id("203") == DealStage.CLOSED_LOST
    assert config.stage_from_id("appointmentscheduled") == "appointmentscheduled"
    assert config.stage_id("appointmentscheduled") == "appointmentscheduled"
