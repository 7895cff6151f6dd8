"""Combat resolution rules.

Every function here is pure: the same action, ledger and objective always
produce the same result.  The outcome is a threshold on the computed
probability, not a random draw.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from . import actions
from .enums import ActionKind, OperationOutcome, RiskTier
from .ledger import ZERO, Resource
from .models import Objective, OperationResult
from .rules_config import DEFAULT_RULES, RulesConfig


@dataclass(frozen=True, slots=True)
class OperationAnalysis:
    """Preview of an operation; never affects execution."""

    action: ActionKind
    is_viable: bool
    success_probability: float
    expected_loss: Resource
    expected_gain: Resource
    risk_tier: RiskTier | None
    risk_assessment: str
    recommendation: str
    issues: tuple[str, ...] = ()
    is_worthwhile: bool = False

    @property
    def success_percentage(self) -> int:
        return int(self.success_probability * 100)

    @property
    def expected_net_value(self) -> int:
        return self.expected_gain.total_value - self.expected_loss.total_value


def player_strength(resources: Resource) -> float:
    return resources.combat_strength


def enemy_strength(objective: Objective) -> float:
    return float(objective.total_defense + objective.current_units)


def success_probability(
    attacker: float,
    defender: float,
    action: ActionKind,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> float:
    """Return the clamped success probability for ``action``."""

    combat = rules.combat
    if defender == 0:
        return combat.undefended_probability

    coefficient = actions.action_rules(action, rules=rules).success_coefficient
    probability = (attacker / defender) * coefficient
    return max(combat.min_probability, min(combat.max_probability, probability))


def determine_outcome(
    probability: float, *, rules: RulesConfig = DEFAULT_RULES
) -> OperationOutcome:
    if probability >= rules.combat.success_threshold:
        return OperationOutcome.SUCCESS
    return OperationOutcome.FAILURE


def resources_lost(
    action: ActionKind, outcome: OperationOutcome, *, rules: RulesConfig = DEFAULT_RULES
) -> Resource:
    lost = actions.base_cost(action, rules=rules)
    if outcome is OperationOutcome.FAILURE:
        lost = lost + actions.failure_penalty(action, rules=rules)
    return lost


def resources_gained(
    action: ActionKind, outcome: OperationOutcome, *, rules: RulesConfig = DEFAULT_RULES
) -> Resource:
    # The flat per-action table is authoritative; per-objective rewards are not consulted.
    if outcome is not OperationOutcome.SUCCESS:
        return ZERO
    return actions.success_reward(action, rules=rules)


def resolve_operation(
    action: ActionKind,
    resources: Resource,
    objective: Objective,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> OperationResult:
    """Resolve ``action`` against ``objective`` without mutating either."""

    attacker = player_strength(resources)
    defender = enemy_strength(objective)
    probability = success_probability(attacker, defender, action, rules=rules)
    outcome = determine_outcome(probability, rules=rules)

    return OperationResult(
        action=action,
        target=replace(objective),
        outcome=outcome,
        resources_lost=resources_lost(action, outcome, rules=rules),
        resources_gained=resources_gained(action, outcome, rules=rules),
        player_strength=attacker,
        enemy_strength=defender,
        success_probability=probability,
        risk_tier=risk_tier(probability, rules=rules),
    )


# --- Previews -------------------------------------------------------------------


def risk_tier(probability: float, *, rules: RulesConfig = DEFAULT_RULES) -> RiskTier:
    analysis = rules.analysis
    if probability >= analysis.low_risk:
        return RiskTier.LOW
    if probability >= analysis.medium_risk:
        return RiskTier.MEDIUM
    if probability >= analysis.high_risk:
        return RiskTier.HIGH
    return RiskTier.VERY_HIGH


_RISK_TEXT: dict[RiskTier, str] = {
    RiskTier.LOW: "Low risk ({pct}%) - Your forces significantly outmatch the enemy",
    RiskTier.MEDIUM: "Medium risk ({pct}%) - Favorable odds but some uncertainty",
    RiskTier.HIGH: "High risk ({pct}%) - Challenging operation with significant danger",
    RiskTier.VERY_HIGH: (
        "Very high risk ({pct}%) - Enemy forces are superior, high chance of failure"
    ),
}


def risk_assessment(probability: float, *, rules: RulesConfig = DEFAULT_RULES) -> str:
    tier = risk_tier(probability, rules=rules)
    return _RISK_TEXT[tier].format(pct=int(probability * 100))


def recommendation(probability: float, *, rules: RulesConfig = DEFAULT_RULES) -> str:
    analysis = rules.analysis
    if probability >= analysis.recommended:
        return "Recommended - Good chance of success with acceptable risk"
    if probability >= analysis.consider:
        return "Consider carefully - Moderate risk, ensure you can afford losses"
    if probability >= analysis.risky:
        return "High risk - Consider reinforcing or choosing different target"
    return "Not recommended - Find easier target or strengthen your forces"


def expected_loss(
    action: ActionKind, probability: float, *, rules: RulesConfig = DEFAULT_RULES
) -> Resource:
    """Base cost plus the failure penalty weighted by the failure probability."""

    penalty = actions.failure_penalty(action, rules=rules).scaled(1.0 - probability)
    return actions.base_cost(action, rules=rules) + penalty


def expected_gain(
    action: ActionKind, probability: float, *, rules: RulesConfig = DEFAULT_RULES
) -> Resource:
    reward = resources_gained(action, OperationOutcome.SUCCESS, rules=rules)
    return reward.scaled(probability)


def analyze_operation(
    action: ActionKind,
    resources: Resource,
    objective: Objective,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> OperationAnalysis:
    """Compute a probability-weighted preview of ``action``."""

    validation = actions.validate_action(action, resources, objective, rules=rules)
    if not validation.is_valid:
        return OperationAnalysis(
            action=action,
            is_viable=False,
            success_probability=0.0,
            expected_loss=ZERO,
            expected_gain=ZERO,
            risk_tier=None,
            risk_assessment=f"Operation not viable: {validation.error_message}",
            recommendation="Address issues before attempting operation",
            issues=validation.issues,
        )

    probability = success_probability(
        player_strength(resources), enemy_strength(objective), action, rules=rules
    )
    loss = expected_loss(action, probability, rules=rules)
    gain = expected_gain(action, probability, rules=rules)
    return OperationAnalysis(
        action=action,
        is_viable=True,
        success_probability=probability,
        expected_loss=loss,
        expected_gain=gain,
        risk_tier=risk_tier(probability, rules=rules),
        risk_assessment=risk_assessment(probability, rules=rules),
        recommendation=recommendation(probability, rules=rules),
        is_worthwhile=(
            probability >= rules.analysis.risky and gain.total_value > loss.total_value
        ),
    )


def compare_actions(
    resources: Resource,
    objective: Objective,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> dict[ActionKind, OperationAnalysis]:
    return {
        action: analyze_operation(action, resources, objective, rules=rules)
        for action in ActionKind
    }


def best_action(
    resources: Resource,
    objective: Objective,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> ActionKind | None:
    """Pick the most promising viable action, or ``None`` when nothing qualifies.

    Higher probability wins; candidates within the tie window of each other are
    ranked by expected net value instead.  Ties on both keep catalog order.
    """

    threshold = rules.analysis.best_action_min_probability
    window = rules.analysis.best_action_tie_window
    candidates = [
        analysis
        for analysis in compare_actions(resources, objective, rules=rules).values()
        if analysis.is_viable and analysis.success_probability >= threshold
    ]
    if not candidates:
        return None

    best = candidates[0]
    for analysis in candidates[1:]:
        if abs(analysis.success_probability - best.success_probability) < window:
            if analysis.expected_net_value > best.expected_net_value:
                best = analysis
        elif analysis.success_probability > best.success_probability:
            best = analysis
    return best.action
