"""Four-currency resource ledger.

``Resource`` is an immutable value type.  Every constructor and arithmetic
operator floors each field at zero independently, so a ledger can never hold a
negative amount: subtraction that would overdraw a field leaves that field at
zero instead of failing or borrowing from the others.
"""

from __future__ import annotations

from dataclasses import dataclass

from .enums import ResourceKind

# Weights used to collapse a ledger into a single display score.
MONEY_WEIGHT = 1
AMMO_WEIGHT = 5
FOOD_WEIGHT = 2
UNITS_WEIGHT = 105  # 100 money + 5 food per recruited unit

# Contribution of each currency to combat strength.
UNIT_STRENGTH = 1.0
AMMO_STRENGTH = 0.5
FOOD_STRENGTH = 0.2


@dataclass(frozen=True, slots=True)
class Resource:
    """Money, ammo, food and units held or spent by the player."""

    money: int = 0
    ammo: int = 0
    food: int = 0
    units: int = 0

    def __post_init__(self) -> None:
        for name in ("money", "ammo", "food", "units"):
            value = getattr(self, name)
            if value < 0:
                object.__setattr__(self, name, 0)

    # --- arithmetic -----------------------------------------------------------

    def __add__(self, other: Resource) -> Resource:
        return Resource(
            money=self.money + other.money,
            ammo=self.ammo + other.ammo,
            food=self.food + other.food,
            units=self.units + other.units,
        )

    def __sub__(self, other: Resource) -> Resource:
        return Resource(
            money=max(0, self.money - other.money),
            ammo=max(0, self.ammo - other.ammo),
            food=max(0, self.food - other.food),
            units=max(0, self.units - other.units),
        )

    def __mul__(self, factor: float) -> Resource:
        return self.scaled(factor)

    __rmul__ = __mul__

    def scaled(self, factor: float) -> Resource:
        """Multiply every field by ``factor``, truncating toward zero."""

        return Resource(
            money=int(self.money * factor),
            ammo=int(self.ammo * factor),
            food=int(self.food * factor),
            units=int(self.units * factor),
        )

    def can_afford(self, cost: Resource) -> bool:
        return (
            self.money >= cost.money
            and self.ammo >= cost.ammo
            and self.food >= cost.food
            and self.units >= cost.units
        )

    def clamped_to(self, ceiling: Resource) -> Resource:
        """Return the ledger with each field capped at ``ceiling``."""

        return Resource(
            money=min(self.money, ceiling.money),
            ammo=min(self.ammo, ceiling.ammo),
            food=min(self.food, ceiling.food),
            units=min(self.units, ceiling.units),
        )

    def excess_over(self, ceiling: Resource) -> Resource:
        """Return the amount by which each field exceeds ``ceiling``."""

        return Resource(
            money=max(0, self.money - ceiling.money),
            ammo=max(0, self.ammo - ceiling.ammo),
            food=max(0, self.food - ceiling.food),
            units=max(0, self.units - ceiling.units),
        )

    def fits_within(self, ceiling: Resource) -> bool:
        return ceiling.can_afford(self)

    # --- per-kind access ------------------------------------------------------

    def value(self, kind: ResourceKind) -> int:
        return getattr(self, str(kind))

    def with_value(self, kind: ResourceKind, value: int) -> Resource:
        """Return a copy with one field replaced (floored at zero)."""

        fields = self.as_dict()
        fields[str(kind)] = max(0, value)
        return Resource(**fields)

    def with_added(self, kind: ResourceKind, delta: int) -> Resource:
        return self.with_value(kind, self.value(kind) + delta)

    def as_dict(self) -> dict[str, int]:
        return {
            "money": self.money,
            "ammo": self.ammo,
            "food": self.food,
            "units": self.units,
        }

    # --- derived values -------------------------------------------------------

    @property
    def total_value(self) -> int:
        """Money-equivalent score for display and ranking only."""

        return (
            self.money * MONEY_WEIGHT
            + self.ammo * AMMO_WEIGHT
            + self.food * FOOD_WEIGHT
            + self.units * UNITS_WEIGHT
        )

    @property
    def combat_strength(self) -> float:
        return self.units * UNIT_STRENGTH + self.ammo * AMMO_STRENGTH + self.food * FOOD_STRENGTH

    @property
    def is_empty(self) -> bool:
        return self.money == 0 and self.ammo == 0 and self.food == 0 and self.units == 0

    @property
    def has_units(self) -> bool:
        return self.units > 0

    @property
    def has_supplies(self) -> bool:
        return self.ammo > 0 or self.food > 0


ZERO = Resource()
