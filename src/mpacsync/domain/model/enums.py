"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class LicenseType(StrEnum):
    EVALUATION = "EVALUATION"
    OPEN_SOURCE = "OPEN_SOURCE"
    COMMERCIAL = "COMMERCIAL"
    ACADEMIC = "ACADEMIC"
    COMMUNITY = "COMMUNITY"
    DEMONSTRATION = "DEMONSTRATION"
    STARTER = "STARTER"


FREE_LICENSE_TYPES = frozenset({LicenseType.EVALUATION, LicenseType.OPEN_SOURCE})


class LicenseStatus(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    CANCELLED = "cancelled"


class SaleType(StrEnum):
    NEW = "New"
    RENEWAL = "Renewal"
    UPGRADE = "Upgrade"
    REFUND = "Refund"
    DOWNGRADE = "Downgrade"


class Hosting(StrEnum):
    SERVER = "Server"
    CLOUD = "Cloud"
    DATA_CENTER = "Data Center"


class DealStage(StrEnum):
    """Deal stages the engine reads and writes.

    CRM portals use their own stage ids; adapters map them onto these values.
    """

    EVAL = "eval"
    CLOSED_WON = "closedwon"
    CLOSED_LOST = "closedlost"
