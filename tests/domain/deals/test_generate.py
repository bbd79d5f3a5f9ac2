from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal

import pytest

from mpacsync.domain.deals import (
    Association,
    DealDefaults,
    DealSyncPlan,
    generate_deals,
    replay_plan,
)
from mpacsync.domain.deals.generate import is_stale
from mpacsync.domain.model import (
    ContactDirectory,
    Deal,
    DealStage,
    LicenseStatus,
    RelatedLicenseSet,
    SaleType,
)
from tests.support.records import (
    context,
    group,
    make_deal,
    make_eval_license,
    make_license,
    make_transaction,
)


def _generate(
    groups: list[RelatedLicenseSet],
    *,
    deals: list[Deal],
    contacts: ContactDirectory,
    defaults: DealDefaults,
    partner_domains: frozenset[str] = frozenset(),
    provider_domains: frozenset[str] = frozenset(),
    max_license_age_days: int | None = None,
    today: date | None = None,
) -> DealSyncPlan:
    return generate_deals(
        groups,
        deals=deals,
        contacts=contacts,
        provider_domains=provider_domains,
        partner_domains=partner_domains,
        defaults=defaults,
        max_license_age_days=max_license_age_days,
        today=today,
    )


def test_active_eval_without_deal_creates_eval_deal(
    defaults: DealDefaults, contacts: ContactDirectory
) -> None:
    groups = [group(context(make_eval_license("E1")))]

    plan = _generate(groups, deals=[], contacts=contacts, defaults=defaults)

    (create,) = plan.deals_to_create
    assert create.properties.deal_stage == DealStage.EVAL
    assert create.properties.amount == Decimal(0)
    assert create.properties.addon_license_id == "E1"
    assert create.contact_ids == ("C1",)
    assert plan.deals_to_update == []


def test_eval_converted_to_purchase_closes_won(
    defaults: DealDefaults, contacts: ContactDirectory
) -> None:
    deal = make_deal("D1", addon_license_id="E1", contact_ids=("C1",))
    groups = [
        group(
            context(make_eval_license("E1", maintenance_start_date=date(2024, 1, 1))),
            context(
                make_license("L1", maintenance_start_date=date(2024, 1, 10)),
                make_transaction("T1", "L1", vendor_amount="100"),
            ),
        )
    ]

    plan = _generate(groups, deals=[deal], contacts=contacts, defaults=defaults)

    assert plan.deals_to_create == []
    (update,) = plan.deals_to_update
    assert update.deal_id == "D1"
    assert update.changes["deal_stage"] == DealStage.CLOSED_WON
    assert update.changes["amount"] == Decimal("100.00")
    assert update.changes["addon_license_id"] == "L1"


def test_refund_on_won_deal_only_changes_stage(
    defaults: DealDefaults, contacts: ContactDirectory
) -> None:
    deal = make_deal("D1", stage=DealStage.CLOSED_WON, addon_license_id="L1", contact_ids=("C9",))
    groups = [
        group(
            context(
                make_license("L1"),
                make_transaction("T1"),
                make_transaction("R1", sale_type=SaleType.REFUND, vendor_amount="-100"),
            )
        )
    ]

    plan = _generate(groups, deals=[deal], contacts=contacts, defaults=defaults)

    assert [(update.deal_id, dict(update.changes)) for update in plan.deals_to_update] == [
        ("D1", {"deal_stage": DealStage.CLOSED_LOST})
    ]
    assert plan.associations_to_create == []
    assert plan.associations_to_remove == []


def test_partner_domains_suppress_all_actions(
    defaults: DealDefaults, contacts: ContactDirectory
) -> None:
    groups = [
        group(
            context(make_license("L1", email="a@reseller.example"), make_transaction("T1")),
            context(make_license("L2", email="b@reseller.example")),
        )
    ]

    plan = _generate(
        groups,
        deals=[make_deal("D1", stage=DealStage.EVAL, addon_license_id="L1")],
        contacts=contacts,
        defaults=defaults,
        partner_domains=frozenset({"reseller.example"}),
    )

    assert plan.is_empty
    assert plan.ignored_reasons() == {"bad-domains:reseller.example": 1}


def test_no_op_update_is_dropped(defaults: DealDefaults, contacts: ContactDirectory) -> None:
    license = make_eval_license("E1", status=LicenseStatus.INACTIVE)
    deal = make_deal("D1", stage=DealStage.CLOSED_LOST, addon_license_id="E1")

    plan = _generate(
        [group(context(license))], deals=[deal], contacts=contacts, defaults=defaults
    )

    assert plan.is_empty


def test_associations_follow_license_contacts(
    defaults: DealDefaults, contacts: ContactDirectory
) -> None:
    deal = make_deal("D1", addon_license_id="E1", contact_ids=("C1", "C9"))
    groups = [
        group(
            context(make_eval_license("E1", maintenance_start_date=date(2024, 1, 1))),
            context(
                make_license(
                    "L1",
                    maintenance_start_date=date(2024, 1, 10),
                    billing_email="billing@acme.example",
                ),
                make_transaction("T1", "L1"),
            ),
        )
    ]

    plan = _generate(groups, deals=[deal], contacts=contacts, defaults=defaults)

    assert plan.associations_to_create == [Association("C2", "D1")]
    assert plan.associations_to_remove == [Association("C9", "D1")]


def test_stale_groups_are_skipped(defaults: DealDefaults, contacts: ContactDirectory) -> None:
    stale = group(context(make_eval_license("E1", maintenance_start_date=date(2023, 6, 1))))
    fresh = group(context(make_eval_license("E2", maintenance_start_date=date(2024, 1, 20))))

    plan = _generate(
        [stale, fresh],
        deals=[],
        contacts=contacts,
        defaults=defaults,
        max_license_age_days=90,
        today=date(2024, 2, 1),
    )

    assert [create.properties.addon_license_id for create in plan.deals_to_create] == ["E2"]
    assert plan.ignored_reasons() == {"stale-licenses": 1}


def test_is_stale_needs_every_license_to_be_old(today: date) -> None:
    old = context(make_eval_license("E1", maintenance_start_date=date(2023, 1, 1)))
    recent = context(make_eval_license("E2", maintenance_start_date=date(2024, 1, 31)))

    assert is_stale(group(old), today=today, max_age_days=30)
    assert not is_stale(group(old, recent), today=today, max_age_days=30)


def test_summary_is_logged(
    defaults: DealDefaults, contacts: ContactDirectory, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.INFO)

    _generate([group(context(make_eval_license()))], deals=[], contacts=contacts, defaults=defaults)

    assert "create=1, update=0" in caplog.text


@pytest.mark.parametrize(
    "groups",
    [
        pytest.param(
            [group(context(make_eval_license("E1")))],
            id="eval",
        ),
        pytest.param(
            [
                group(
                    context(make_eval_license("E1", maintenance_start_date=date(2024, 1, 1))),
                    context(
                        make_license("L1", maintenance_start_date=date(2024, 1, 10)),
                        make_transaction("T1", "L1"),
                    ),
                )
            ],
            id="converted",
        ),
        pytest.param(
            [
                group(
                    context(
                        make_license("L1"),
                        make_transaction("T1"),
                        make_transaction("R1", sale_type=SaleType.REFUND, vendor_amount="-100"),
                    )
                )
            ],
            id="refunded",
        ),
        pytest.param(
            [
                group(
                    context(
                        make_license("L1", billing_email="billing@acme.example"),
                        make_transaction("T1"),
                        make_transaction(
                            "T2",
                            sale_date=date(2025, 1, 10),
                            sale_type=SaleType.RENEWAL,
                            vendor_amount="120",
                        ),
                    )
                )
            ],
            id="renewed",
        ),
    ],
)
def test_second_run_over_replayed_output_is_empty(
    groups: list[RelatedLicenseSet],
    defaults: DealDefaults,
    contacts: ContactDirectory,
) -> None:
    deals = [make_deal("D1", addon_license_id="E1", contact_ids=("C1",))]

    first = _generate(groups, deals=deals, contacts=contacts, defaults=defaults)
    assert not first.is_empty

    second = _generate(
        groups, deals=replay_plan(deals, first), contacts=contacts, defaults=defaults
    )

    assert second.is_empty


def test_paid_deal_never_moves_back_to_eval(
    defaults: DealDefaults, contacts: ContactDirectory
) -> None:
    deal = make_deal("D1", stage=DealStage.CLOSED_WON, addon_license_id="E1")
    groups = [group(context(make_eval_license("E1", maintenance_start_date=date(2024, 1, 5))))]

    plan = _generate(groups, deals=[deal], contacts=contacts, defaults=defaults)

    assert all("deal_stage" not in update.changes for update in plan.deals_to_update)
