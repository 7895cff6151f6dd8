"""Unit tests for buildings, capacity, recruitment and supply purchases."""

from __future__ import annotations

from dataclasses import replace

import pytest

from shadowfront.domain import economy
from shadowfront.domain.enums import BuildingKind
from shadowfront.domain.ledger import Resource
from shadowfront.domain.models import Building, PlayerBase
from shadowfront.domain.rules_config import DEFAULT_RULES

STARTING = DEFAULT_RULES.starting_resources


def test_upgrade_costs():
    assert economy.upgrade_cost(Building(BuildingKind.STORAGE)) == Resource(300, 2, 3, 0)
    assert economy.upgrade_cost(Building(BuildingKind.BARRACKS)) == Resource(300, 3, 2, 0)
    assert economy.upgrade_cost(Building(BuildingKind.STORAGE, 3)) == Resource(900, 6, 9, 0)


def test_storage_upgrade_raises_money_ceiling():
    base = PlayerBase()
    assert economy.storage_capacity(base).money == 1200

    transaction = economy.upgrade_building(base, BuildingKind.STORAGE, STARTING)

    assert transaction.success
    assert transaction.cost == Resource(money=300, ammo=2, food=3)
    assert transaction.resources == Resource(money=200, ammo=18, food=27, units=5)
    assert base.storage.level == 2
    assert economy.storage_capacity(base).money == 1400
    assert economy.storage_capacity(base).ammo == 700


def test_upgrade_fails_at_max_level_without_changes():
    base = PlayerBase(storage=Building(BuildingKind.STORAGE, 10))
    wealthy = Resource(money=100_000, ammo=1000, food=1000)

    transaction = economy.upgrade_building(base, BuildingKind.STORAGE, wealthy)

    assert not transaction.success
    assert transaction.detail == "Building already at maximum level"
    assert transaction.resources == wealthy
    assert base.storage.level == 10


def test_upgrade_fails_when_unaffordable():
    base = PlayerBase()
    transaction = economy.upgrade_building(base, BuildingKind.BARRACKS, Resource(money=100))

    assert not transaction.success
    assert transaction.detail == "Insufficient resources"
    assert base.barracks.level == 1


def test_building_level_is_kept_in_range():
    assert Building(BuildingKind.STORAGE, 0).level == 1

    base = PlayerBase(storage=Building(BuildingKind.STORAGE, 25))
    economy.normalize_base(base)
    assert base.storage.level == 10


def test_level_ceiling_follows_configured_rules():
    rules = replace(DEFAULT_RULES, economy=replace(DEFAULT_RULES.economy, max_building_level=3))
    base = PlayerBase(
        storage=Building(BuildingKind.STORAGE, 7), barracks=Building(BuildingKind.BARRACKS, 3)
    )

    economy.normalize_base(base, rules=rules)
    transaction = economy.upgrade_building(
        base, BuildingKind.BARRACKS, Resource(money=100_000, ammo=100, food=100), rules=rules
    )

    assert base.storage.level == 3
    assert not transaction.success
    assert transaction.detail == "Building already at maximum level"


def test_unit_ceiling_follows_barracks():
    assert economy.max_units(PlayerBase()) == 15
    assert economy.max_units(PlayerBase(barracks=Building(BuildingKind.BARRACKS, 3))) == 25


def test_clamp_to_capacity_discards_excess():
    base = PlayerBase()
    overflowing = Resource(money=5000, ammo=601, food=10, units=40)

    assert economy.clamp_to_capacity(overflowing, base) == Resource(1200, 600, 10, 15)
    assert economy.excess_over_capacity(overflowing, base) == Resource(3800, 1, 0, 25)
    assert not economy.can_store(overflowing, base)


def test_recruit_units():
    transaction = economy.recruit_units(PlayerBase(), STARTING, 3)

    assert transaction.success
    assert transaction.cost == Resource(money=300, food=15)
    assert transaction.resources == Resource(money=200, ammo=20, food=15, units=8)


def test_recruit_rejects_over_capacity_and_unaffordable():
    over = economy.recruit_units(PlayerBase(), STARTING, 11)
    assert not over.success
    assert over.detail == "Not enough barracks capacity"
    assert over.resources == STARTING

    poor = economy.recruit_units(PlayerBase(), Resource(money=200, food=100, units=5), 3)
    assert not poor.success
    assert poor.detail == "Insufficient resources"


def test_recruit_requires_positive_count():
    with pytest.raises(ValueError):
        economy.recruit_units(PlayerBase(), STARTING, 0)


def test_recruitment_limits():
    assert economy.max_recruitable_units(PlayerBase(), 12) == 3
    assert economy.max_recruitable_units(PlayerBase(), 20) == 0
    assert economy.max_affordable_units(Resource(money=450, food=12)) == 2


def test_purchase_supplies():
    transaction = economy.purchase_supplies(PlayerBase(), STARTING, ammo=10, food=5)

    assert transaction.success
    assert transaction.cost == Resource(money=60)
    assert transaction.resources == Resource(money=440, ammo=30, food=35, units=5)


def test_purchase_rejections():
    base = PlayerBase()

    nothing = economy.purchase_supplies(base, STARTING)
    assert not nothing.success
    assert nothing.detail == "Nothing to purchase"

    broke = economy.purchase_supplies(base, Resource(money=4), ammo=1)
    assert broke.detail == "Insufficient resources"

    full = economy.purchase_supplies(base, Resource(money=1000, ammo=595), ammo=10)
    assert not full.success
    assert full.detail == "Not enough storage capacity"
    assert full.resources == Resource(money=1000, ammo=595)

    with pytest.raises(ValueError):
        economy.purchase_supplies(base, STARTING, ammo=-1)


def test_supply_affordability():
    base = PlayerBase()
    assert economy.max_affordable_ammo(STARTING, base) == 100
    assert economy.max_affordable_food(STARTING, base) == 250
    assert economy.max_affordable_food(Resource(money=10_000, food=590), base) == 10


def test_base_statistics():
    stats = economy.base_statistics(PlayerBase())
    assert stats.total_building_levels == 2
    assert stats.base_value == 400
    assert stats.upgrade_progress == pytest.approx(0.1)
    assert stats.storage_capacity == Resource(1200, 600, 600, 15)


def test_validate_base_warnings_and_issues():
    base = PlayerBase()

    near = economy.validate_base(base, Resource(money=1100, ammo=100, units=15))
    assert near.is_valid
    assert near.warnings == ("Money storage nearly full", "Unit capacity reached")

    over = economy.validate_base(base, Resource(money=1300))
    assert not over.is_valid
    assert over.issues == ("Money exceeds storage capacity",)
    assert over.has_warnings
