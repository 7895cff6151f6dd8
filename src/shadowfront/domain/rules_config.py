"""Declarative rule configuration for the Shadowfront engine."""

from __future__ import annotations

from dataclasses import dataclass

from .enums import ActionKind, BuildingKind, ObjectiveKind, RiskTier
from .ledger import Resource


@dataclass(frozen=True, slots=True)
class ActionRules:
    """Constants for a single operation type."""

    display_name: str
    description: str
    success_coefficient: float
    base_cost: Resource
    minimum_units: int
    alert_increase: float
    defense_bonus: float
    enemy_force_reduction: float
    success_reward: Resource
    failure_penalty_factor: float
    risk_tier: RiskTier
    is_destructive: bool = False
    is_permanent: bool = False
    # Informational reward table shown in the catalog; execution uses success_reward.
    base_success_reward: Resource = Resource()
    failure_alert_multiplier: float = 1.5

    @property
    def failure_alert_increase(self) -> float:
        return self.alert_increase * self.failure_alert_multiplier


@dataclass(frozen=True, slots=True)
class ActionCatalogRules:
    """The four operations and the penalty shared by all of them."""

    raid: ActionRules = ActionRules(
        display_name="Raid",
        description="Quick strike to gather resources and weaken defenses",
        success_coefficient=1.5,
        base_cost=Resource(ammo=2, food=1),
        minimum_units=1,
        alert_increase=0.10,
        defense_bonus=0.05,
        enemy_force_reduction=0.0,
        success_reward=Resource(money=0, ammo=5, food=5, units=5),
        failure_penalty_factor=1.0,
        risk_tier=RiskTier.MEDIUM,
        base_success_reward=Resource(money=100, ammo=5, food=5, units=5),
    )
    robbery: ActionRules = ActionRules(
        display_name="Robbery",
        description="Steal supplies with moderate risk",
        success_coefficient=0.8,
        base_cost=Resource(ammo=3, food=2),
        minimum_units=2,
        alert_increase=0.10,
        defense_bonus=0.05,
        enemy_force_reduction=0.0,
        success_reward=Resource(money=0, ammo=10, food=10, units=5),
        failure_penalty_factor=1.2,
        risk_tier=RiskTier.HIGH,
        base_success_reward=Resource(money=150, ammo=10, food=10, units=5),
    )
    capture: ActionRules = ActionRules(
        display_name="Capture",
        description="Take control of the location permanently",
        success_coefficient=0.5,
        base_cost=Resource(ammo=5, food=3, units=1),
        minimum_units=3,
        alert_increase=0.0,
        defense_bonus=0.10,
        enemy_force_reduction=0.0,
        success_reward=Resource(money=0, ammo=15, food=15, units=10),
        failure_penalty_factor=2.0,
        risk_tier=RiskTier.VERY_HIGH,
        is_permanent=True,
        base_success_reward=Resource(money=300, ammo=15, food=15, units=10),
    )
    destruction: ActionRules = ActionRules(
        display_name="Destruction",
        description="Destroy the target and reduce enemy forces",
        success_coefficient=1.0,
        base_cost=Resource(ammo=8, food=2),
        minimum_units=2,
        alert_increase=0.10,
        defense_bonus=0.0,
        enemy_force_reduction=0.10,
        success_reward=Resource(money=0, ammo=1, food=1, units=1),
        failure_penalty_factor=1.5,
        risk_tier=RiskTier.MEDIUM,
        is_destructive=True,
        is_permanent=True,
        base_success_reward=Resource(money=50, ammo=1, food=1, units=1),
    )
    base_failure_penalty: Resource = Resource(ammo=2, food=1, units=1)

    def for_action(self, action: ActionKind) -> ActionRules:
        return getattr(self, str(action))


@dataclass(frozen=True, slots=True)
class ObjectiveArchetype:
    """Spawn-time stats for one objective kind."""

    display_name: str
    baseline_defense: int
    initial_units: int
    footprint: tuple[int, int]
    high_value: bool = False


@dataclass(frozen=True, slots=True)
class ObjectiveRules:
    """Objective archetypes and map lookup defaults."""

    base: ObjectiveArchetype = ObjectiveArchetype("Base", 50, 15, (70, 30), high_value=True)
    village: ObjectiveArchetype = ObjectiveArchetype("Village", 20, 8, (90, 70))
    warehouse: ObjectiveArchetype = ObjectiveArchetype("Warehouse", 30, 10, (60, 60))
    station: ObjectiveArchetype = ObjectiveArchetype("Station", 35, 12, (65, 65))
    factory: ObjectiveArchetype = ObjectiveArchetype("Factory", 40, 13, (75, 75), high_value=True)
    lookup_tolerance: float = 50.0

    def for_kind(self, kind: ObjectiveKind) -> ObjectiveArchetype:
        return getattr(self, str(kind))


@dataclass(frozen=True, slots=True)
class MapRules:
    """Scaling applied when an operation ripples across the map."""

    defense_bonus_scale: int = 100
    force_reduction_scale: int = 10
    failure_bonus_ratio: float = 0.5


@dataclass(frozen=True, slots=True)
class CombatRules:
    """Probability clamps and decision threshold."""

    min_probability: float = 0.05
    max_probability: float = 0.95
    undefended_probability: float = 1.0
    success_threshold: float = 0.5


@dataclass(frozen=True, slots=True)
class AnalysisRules:
    """Thresholds used by operation previews."""

    low_risk: float = 0.8
    medium_risk: float = 0.6
    high_risk: float = 0.4
    recommended: float = 0.7
    consider: float = 0.5
    risky: float = 0.3
    best_action_min_probability: float = 0.3
    best_action_tie_window: float = 0.1


@dataclass(frozen=True, slots=True)
class EconomyRules:
    """Building, storage and market constants."""

    max_building_level: int = 10
    upgrade_base_cost: int = 200
    upgrade_cost_multiplier: float = 1.5
    storage_ammo_per_level: int = 2
    storage_food_per_level: int = 3
    barracks_ammo_per_level: int = 3
    barracks_food_per_level: int = 2
    storage_base_capacity: int = 500
    storage_capacity_per_level: int = 100
    money_capacity_multiplier: int = 2
    base_unit_capacity: int = 10
    units_per_barracks_level: int = 5
    unit_money_cost: int = 100
    unit_food_cost: int = 5
    ammo_price: int = 5
    food_price: int = 2
    near_capacity_ratio: float = 0.9
    building_value_per_level: int = 200

    def per_level_supplies(self, kind: BuildingKind) -> tuple[int, int]:
        """Return (ammo, food) charged per level when upgrading ``kind``."""

        if kind is BuildingKind.STORAGE:
            return self.storage_ammo_per_level, self.storage_food_per_level
        return self.barracks_ammo_per_level, self.barracks_food_per_level


@dataclass(frozen=True, slots=True)
class AlertRules:
    """Alert meter limits."""

    defeat_threshold: float = 1.0
    maximum: float = 1.0


@dataclass(frozen=True, slots=True)
class RulesConfig:
    """Top-level configuration container for all subsystems."""

    actions: ActionCatalogRules = ActionCatalogRules()
    objectives: ObjectiveRules = ObjectiveRules()
    map: MapRules = MapRules()
    combat: CombatRules = CombatRules()
    analysis: AnalysisRules = AnalysisRules()
    economy: EconomyRules = EconomyRules()
    alert: AlertRules = AlertRules()
    starting_resources: Resource = Resource(money=500, ammo=20, food=30, units=5)


DEFAULT_RULES = RulesConfig()
