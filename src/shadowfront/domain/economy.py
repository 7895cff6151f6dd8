"""Base economy: building upgrades, storage ceilings, recruitment and supplies.

Every transaction returns a fresh ledger instead of mutating one in place.
Any transaction that adds resources clamps the result to the base's capacity,
so excess is discarded rather than queued or rejected.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from .enums import BuildingKind
from .ledger import ZERO, Resource
from .models import Building, PlayerBase
from .rules_config import DEFAULT_RULES, RulesConfig


@dataclass(frozen=True, slots=True)
class Transaction:
    """Result of an economy command."""

    success: bool
    resources: Resource
    cost: Resource = ZERO
    detail: str = ""


@dataclass(frozen=True, slots=True)
class BaseStatistics:
    storage_level: int
    barracks_level: int
    storage_capacity: Resource
    max_units: int
    total_building_levels: int
    base_value: int
    upgrade_progress: float


@dataclass(frozen=True, slots=True)
class BaseValidation:
    is_valid: bool
    issues: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)


# --- Buildings ------------------------------------------------------------------


def is_max_level(building: Building, *, rules: RulesConfig = DEFAULT_RULES) -> bool:
    return building.level >= rules.economy.max_building_level


def normalize_base(base: PlayerBase, *, rules: RulesConfig = DEFAULT_RULES) -> PlayerBase:
    """Clamp every building level into [1, max level] in place."""

    ceiling = rules.economy.max_building_level
    for kind in BuildingKind:
        building = base.building(kind)
        building.level = max(1, min(building.level, ceiling))
    return base


def upgrade_cost(building: Building, *, rules: RulesConfig = DEFAULT_RULES) -> Resource:
    """Cost to raise ``building`` from its current level to the next."""

    economy = rules.economy
    level = building.level
    money = math.floor(economy.upgrade_base_cost * level * economy.upgrade_cost_multiplier)
    ammo_per_level, food_per_level = economy.per_level_supplies(building.kind)
    return Resource(money=money, ammo=level * ammo_per_level, food=level * food_per_level)


def upgrade_building(
    base: PlayerBase,
    kind: BuildingKind,
    resources: Resource,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> Transaction:
    """Upgrade one building, charging the ledger on success only."""

    building = base.building(kind)
    if is_max_level(building, rules=rules):
        return Transaction(False, resources, detail="Building already at maximum level")

    cost = upgrade_cost(building, rules=rules)
    if not resources.can_afford(cost):
        return Transaction(False, resources, cost, detail="Insufficient resources")

    building.level += 1
    return Transaction(True, resources - cost, cost, detail=f"{kind} upgraded to {building.level}")


# --- Capacity -------------------------------------------------------------------


def max_units(base: PlayerBase, *, rules: RulesConfig = DEFAULT_RULES) -> int:
    economy = rules.economy
    return economy.base_unit_capacity + economy.units_per_barracks_level * base.barracks.level


def storage_capacity(base: PlayerBase, *, rules: RulesConfig = DEFAULT_RULES) -> Resource:
    """Per-field ceilings for the ledger; ``units`` carries the barracks cap."""

    economy = rules.economy
    bulk = economy.storage_base_capacity + economy.storage_capacity_per_level * base.storage.level
    return Resource(
        money=bulk * economy.money_capacity_multiplier,
        ammo=bulk,
        food=bulk,
        units=max_units(base, rules=rules),
    )


def clamp_to_capacity(
    resources: Resource, base: PlayerBase, *, rules: RulesConfig = DEFAULT_RULES
) -> Resource:
    return resources.clamped_to(storage_capacity(base, rules=rules))


def excess_over_capacity(
    resources: Resource, base: PlayerBase, *, rules: RulesConfig = DEFAULT_RULES
) -> Resource:
    return resources.excess_over(storage_capacity(base, rules=rules))


def can_store(resources: Resource, base: PlayerBase, *, rules: RulesConfig = DEFAULT_RULES) -> bool:
    return resources.fits_within(storage_capacity(base, rules=rules))


# --- Recruitment ----------------------------------------------------------------


def recruitment_cost(count: int, *, rules: RulesConfig = DEFAULT_RULES) -> Resource:
    economy = rules.economy
    return Resource(money=count * economy.unit_money_cost, food=count * economy.unit_food_cost)


def max_recruitable_units(
    base: PlayerBase, current_units: int, *, rules: RulesConfig = DEFAULT_RULES
) -> int:
    return max(0, max_units(base, rules=rules) - current_units)


def max_affordable_units(resources: Resource, *, rules: RulesConfig = DEFAULT_RULES) -> int:
    economy = rules.economy
    return min(resources.money // economy.unit_money_cost, resources.food // economy.unit_food_cost)


def recruit_units(
    base: PlayerBase,
    resources: Resource,
    count: int,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> Transaction:
    if count < 1:
        raise ValueError("count must be positive")

    if count > max_recruitable_units(base, resources.units, rules=rules):
        return Transaction(False, resources, detail="Not enough barracks capacity")

    cost = recruitment_cost(count, rules=rules)
    if not resources.can_afford(cost):
        return Transaction(False, resources, cost, detail="Insufficient resources")

    updated = (resources - cost) + Resource(units=count)
    return Transaction(
        True,
        clamp_to_capacity(updated, base, rules=rules),
        cost,
        detail=f"Recruited {count} units",
    )


# --- Supplies -------------------------------------------------------------------


def supply_cost(ammo: int = 0, food: int = 0, *, rules: RulesConfig = DEFAULT_RULES) -> Resource:
    economy = rules.economy
    return Resource(money=ammo * economy.ammo_price + food * economy.food_price)


def max_affordable_ammo(
    resources: Resource, base: PlayerBase, *, rules: RulesConfig = DEFAULT_RULES
) -> int:
    by_money = resources.money // rules.economy.ammo_price
    by_storage = storage_capacity(base, rules=rules).ammo - resources.ammo
    return max(0, min(by_money, by_storage))


def max_affordable_food(
    resources: Resource, base: PlayerBase, *, rules: RulesConfig = DEFAULT_RULES
) -> int:
    by_money = resources.money // rules.economy.food_price
    by_storage = storage_capacity(base, rules=rules).food - resources.food
    return max(0, min(by_money, by_storage))


def purchase_supplies(
    base: PlayerBase,
    resources: Resource,
    *,
    ammo: int = 0,
    food: int = 0,
    rules: RulesConfig = DEFAULT_RULES,
) -> Transaction:
    if ammo < 0 or food < 0:
        raise ValueError("supply quantities must be non-negative")
    if ammo == 0 and food == 0:
        return Transaction(False, resources, detail="Nothing to purchase")

    cost = supply_cost(ammo, food, rules=rules)
    if not resources.can_afford(cost):
        return Transaction(False, resources, cost, detail="Insufficient resources")

    stocked = resources + Resource(ammo=ammo, food=food)
    if not can_store(stocked, base, rules=rules):
        return Transaction(False, resources, cost, detail="Not enough storage capacity")

    updated = (resources - cost) + Resource(ammo=ammo, food=food)
    return Transaction(
        True,
        clamp_to_capacity(updated, base, rules=rules),
        cost,
        detail=f"Purchased {ammo} ammo and {food} food",
    )


# --- Reporting ------------------------------------------------------------------


def base_statistics(base: PlayerBase, *, rules: RulesConfig = DEFAULT_RULES) -> BaseStatistics:
    economy = rules.economy
    total_levels = base.storage.level + base.barracks.level
    max_levels = len(BuildingKind) * economy.max_building_level
    return BaseStatistics(
        storage_level=base.storage.level,
        barracks_level=base.barracks.level,
        storage_capacity=storage_capacity(base, rules=rules),
        max_units=max_units(base, rules=rules),
        total_building_levels=total_levels,
        base_value=total_levels * economy.building_value_per_level,
        upgrade_progress=total_levels / max_levels,
    )


def validate_base(
    base: PlayerBase, resources: Resource, *, rules: RulesConfig = DEFAULT_RULES
) -> BaseValidation:
    """Report fields over capacity (issues) and fields close to it (warnings)."""

    capacity = storage_capacity(base, rules=rules)
    ratio = rules.economy.near_capacity_ratio
    issues: list[str] = []
    warnings: list[str] = []

    for name in ("money", "ammo", "food"):
        held = getattr(resources, name)
        ceiling = getattr(capacity, name)
        if held > ceiling:
            issues.append(f"{name.capitalize()} exceeds storage capacity")
        if held > int(ceiling * ratio):
            warnings.append(f"{name.capitalize()} storage nearly full")

    if resources.units > capacity.units:
        issues.append("Units exceed barracks capacity")
    if resources.units >= capacity.units:
        warnings.append("Unit capacity reached")

    return BaseValidation(is_valid=not issues, issues=tuple(issues), warnings=tuple(warnings))
