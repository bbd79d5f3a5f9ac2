from __future__ import annotations

from datetime import date

import pytest

from mpacsync.domain.deals import DealDefaults
from mpacsync.domain.model import ContactDirectory
from tests.support.records import make_defaults


@pytest.fixture
def defaults() -> DealDefaults:
    return make_defaults()


@pytest.fixture
def contacts() -> ContactDirectory:
    return ContactDirectory(
        {
            "tech@acme.example": "C1",
            "billing@acme.example": "C2",
            "sales@reseller.example": "C3",
        }
    )


@pytest.fixture
def today() -> date:
    return date(2024, 2, 1)
