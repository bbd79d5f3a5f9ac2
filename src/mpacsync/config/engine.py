"""Deal engine and CRM portal configuration values."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from mpacsync.domain.deals.properties import (
    DEAL_NAME_FIELDS,
    DEFAULT_DEAL_NAME_TEMPLATE,
    DEFAULT_DEAL_ORIGIN,
    DEFAULT_RELATED_PRODUCTS,
    DealDefaults,
    template_fields,
)
from mpacsync.domain.model import DealStage

from .env import optional_env_var, optional_int_env_var, require_env_vars
from .errors import ConfigurationError

DEFAULT_MAX_LICENSE_AGE_DAYS: Final[int] = 90

DEFAULT_ADDON_LICENSE_ID_ATTR: Final[str] = "addonlicenseid"
DEFAULT_TRANSACTION_ID_ATTR: Final[str] = "transactionid"
DEFAULT_APP_ATTR: Final[str] = "aa_app"

_STAGE_ENV_VARS: Final[dict[DealStage, str]] = {
    DealStage.EVAL: "HUBSPOT_DEALSTAGE_EVAL",
    DealStage.CLOSED_WON: "HUBSPOT_DEALSTAGE_CLOSED_WON",
    DealStage.CLOSED_LOST: "HUBSPOT_DEALSTAGE_CLOSED_LOST",
}


@dataclass(frozen=True, slots=True, kw_only=True)
class HubspotDealConfig:
    """Portal-specific ids and custom property names for marketplace deals."""

    pipeline: str
    stage_ids: dict[DealStage, str]
    addon_license_id_attr: str = DEFAULT_ADDON_LICENSE_ID_ATTR
    transaction_id_attr: str = DEFAULT_TRANSACTION_ID_ATTR
    app_attr: str = DEFAULT_APP_ATTR

    def __post_init__(self) -> None:
        missing = [stage for stage in DealStage if stage not in self.stage_ids]
        if missing:
            raise ConfigurationError(f"Missing stage ids for: {', '.join(missing)}")
        if len(set(self.stage_ids.values())) != len(self.stage_ids):
            raise ConfigurationError("Deal stage ids must be distinct")

    def stage_id(self, stage: DealStage | str) -> str:
        if isinstance(stage, DealStage):
            return self.stage_ids[stage]
        return stage

    def stage_from_id(self, stage_id: str) -> DealStage | str:
        for stage, candidate in self.stage_ids.items():
            if candidate == stage_id:
                return stage
        return stage_id


@dataclass(frozen=True, slots=True, kw_only=True)
class EngineConfig:
    """Everything one deal generation run needs besides its data."""

    hubspot: HubspotDealConfig
    deals: DealDefaults
    max_license_age_days: int | None = DEFAULT_MAX_LICENSE_AGE_DAYS


def get_hubspot_deal_config() -> HubspotDealConfig:
    values = require_env_vars(("HUBSPOT_PIPELINE_MPAC", *_STAGE_ENV_VARS.values()))
    return HubspotDealConfig(
        pipeline=values["HUBSPOT_PIPELINE_MPAC"],
        stage_ids={stage: values[name] for stage, name in _STAGE_ENV_VARS.items()},
        addon_license_id_attr=optional_env_var(
            "HUBSPOT_DEAL_ADDONLICENSEID_ATTR", DEFAULT_ADDON_LICENSE_ID_ATTR
        ),
        transaction_id_attr=optional_env_var(
            "HUBSPOT_DEAL_TRANSACTIONID_ATTR", DEFAULT_TRANSACTION_ID_ATTR
        ),
        app_attr=optional_env_var("HUBSPOT_DEAL_APP_ATTR", DEFAULT_APP_ATTR),
    )


def get_engine_config(*, hubspot: HubspotDealConfig | None = None) -> EngineConfig:
    hubspot_config = hubspot or get_hubspot_deal_config()

    name_template = optional_env_var("DEAL_DEALNAME", DEFAULT_DEAL_NAME_TEMPLATE)
    unknown = template_fields(name_template) - DEAL_NAME_FIELDS
    if unknown:
        raise ConfigurationError(
            f"DEAL_DEALNAME uses unknown fields: {', '.join(sorted(unknown))}"
        )

    return EngineConfig(
        hubspot=hubspot_config,
        deals=DealDefaults(
            pipeline=hubspot_config.pipeline,
            origin=optional_env_var("DEAL_ORIGIN", DEFAULT_DEAL_ORIGIN),
            related_products=optional_env_var("DEAL_RELATED_PRODUCTS", DEFAULT_RELATED_PRODUCTS),
            name_template=name_template,
        ),
        max_license_age_days=optional_int_env_var(
            "IGNORE_LICENSES_OLDER_THAN_DAYS", DEFAULT_MAX_LICENSE_AGE_DAYS
        ),
    )
