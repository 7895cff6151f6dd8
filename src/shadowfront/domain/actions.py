"""Operation catalog lookups and precondition checks."""

from __future__ import annotations

from dataclasses import dataclass

from .enums import ActionKind
from .ledger import Resource
from .models import Objective
from .rules_config import DEFAULT_RULES, ActionRules, RulesConfig


@dataclass(frozen=True, slots=True)
class ActionValidation:
    """Outcome of a precondition check; ``issues`` is ordered."""

    is_valid: bool
    issues: tuple[str, ...] = ()

    @property
    def error_message(self) -> str:
        return ", ".join(self.issues)


def action_rules(action: ActionKind, *, rules: RulesConfig = DEFAULT_RULES) -> ActionRules:
    return rules.actions.for_action(action)


def base_cost(action: ActionKind, *, rules: RulesConfig = DEFAULT_RULES) -> Resource:
    """Resources consumed by ``action`` regardless of outcome."""

    return action_rules(action, rules=rules).base_cost


def failure_penalty(action: ActionKind, *, rules: RulesConfig = DEFAULT_RULES) -> Resource:
    """Additional losses charged when ``action`` fails."""

    factor = action_rules(action, rules=rules).failure_penalty_factor
    return rules.actions.base_failure_penalty.scaled(factor)


def success_reward(action: ActionKind, *, rules: RulesConfig = DEFAULT_RULES) -> Resource:
    """Flat reward granted when ``action`` succeeds."""

    return action_rules(action, rules=rules).success_reward


def alert_increase(
    action: ActionKind, *, success: bool, rules: RulesConfig = DEFAULT_RULES
) -> float:
    spec = action_rules(action, rules=rules)
    return spec.alert_increase if success else spec.failure_alert_increase


def validate_action(
    action: ActionKind,
    resources: Resource,
    objective: Objective,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> ActionValidation:
    """Check whether ``action`` may be launched against ``objective``."""

    spec = action_rules(action, rules=rules)
    issues: list[str] = []

    if not objective.is_active:
        issues.append("Target is not operational")

    if not resources.can_afford(spec.base_cost):
        issues.append("Insufficient resources")

    if resources.units < spec.minimum_units:
        issues.append(f"Need at least {spec.minimum_units} units")

    if action is ActionKind.CAPTURE and objective.is_captured:
        issues.append("Target already captured")

    if action is ActionKind.DESTRUCTION and objective.is_destroyed:
        issues.append("Target already destroyed")

    return ActionValidation(is_valid=not issues, issues=tuple(issues))


def affordable_actions(
    resources: Resource, *, rules: RulesConfig = DEFAULT_RULES
) -> list[ActionKind]:
    """Actions whose cost and unit minimum the ledger currently covers."""

    affordable: list[ActionKind] = []
    for action in ActionKind:
        spec = action_rules(action, rules=rules)
        if resources.can_afford(spec.base_cost) and resources.units >= spec.minimum_units:
            affordable.append(action)
    return affordable
