"""Rule engine turning a strategy definition into ENTER/EXIT/HOLD decisions."""

from dataclasses import dataclass, field
from typing import Mapping, Optional
import logging
import math

from signalcore.config import Settings, get_settings
from signalcore.rules.strategy import (
    Decision,
    Engine,
    EngineWeights,
    Rule,
    ScoreContext,
    StrategyDefinition,
    engine_score_path,
    validate_definition,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeightCheck:
    """Result of checking that engine weights sum to 1.0."""
    valid: bool
    total: float


@dataclass(frozen=True)
class StrategyValidation:
    """Result of validating a full strategy definition."""
    valid: bool
    total_weight: float
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RuleResult:
    """Outcome of one rule against one score context."""
    rule: Rule
    observed: Optional[float]
    passed: bool

    def to_dict(self) -> dict:
        return {
            **self.rule.to_dict(),
            'observed': self.observed,
            'passed': self.passed,
        }


@dataclass(frozen=True)
class StrategyEvaluation:
    """Full breakdown of a strategy evaluated against a score context."""
    decision: Decision
    entry_triggered: bool
    exit_triggered: bool
    entry_results: list[RuleResult] = field(default_factory=list)
    exit_results: list[RuleResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'decision': self.decision.value,
            'entry_triggered': self.entry_triggered,
            'exit_triggered': self.exit_triggered,
            'entry_rules': [r.to_dict() for r in self.entry_results],
            'exit_rules': [r.to_dict() for r in self.exit_results],
        }


@dataclass(frozen=True)
class StrategySignal:
    """Decision for one asset."""
    symbol: str
    decision: Decision
    final_score: Optional[float]
    evaluation: StrategyEvaluation

    def to_dict(self) -> dict:
        return {
            'symbol': self.symbol,
            'action': self.decision.value,
            'final_score': None if self.final_score is None else round(self.final_score, 4),
            **{k: v for k, v in self.evaluation.to_dict().items() if k != 'decision'},
        }


class StrategyRuleEngine:
    """Validates strategies and evaluates them against score contexts.

    Evaluation is pure: the engine holds only settings and never mutates
    the definitions or contexts it is given.
    """

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize the rule engine.

        Args:
            settings: Optional Settings instance.
        """
        self.settings = settings or get_settings()

    def validate_weights(self, weights: EngineWeights) -> WeightCheck:
        """Check that the five engine weights sum to 1.0.

        Advisory only; ``decide`` still evaluates strategies with invalid
        weights.

        Args:
            weights: Engine weights to check.

        Returns:
            WeightCheck with the validity flag and the raw total.
        """
        total = weights.total
        return WeightCheck(
            valid=abs(total - 1.0) < self.settings.weight_tolerance,
            total=total,
        )

    def validate(self, definition: StrategyDefinition) -> StrategyValidation:
        """Validate a strategy before it is submitted.

        Args:
            definition: Strategy to validate.

        Returns:
            StrategyValidation listing every problem found.
        """
        errors = validate_definition(definition, self.settings)
        return StrategyValidation(
            valid=not errors,
            total_weight=definition.engine_weights.total,
            errors=errors,
        )

    @staticmethod
    def resolve_path(context: ScoreContext, path: str) -> Optional[float]:
        """Walk a dot-separated path through a nested score context.

        Args:
            context: Nested mapping of scores.
            path: Field path such as ``metadata.engine_details.trend.score``.

        Returns:
            The numeric leaf, or None if any segment is missing, an
            intermediate value is not a mapping, or the leaf is not a number.
        """
        node = context
        for segment in path.split('.'):
            if not isinstance(node, Mapping) or segment not in node:
                return None
            node = node[segment]

        # bool is an int subclass but never a score
        if isinstance(node, bool) or not isinstance(node, (int, float)):
            return None
        return float(node)

    def evaluate_rule(self, context: ScoreContext, rule: Rule) -> bool:
        """Evaluate one rule; a missing field makes the rule false."""
        return self._evaluate_rule(context, rule).passed

    def _evaluate_rule(self, context: ScoreContext, rule: Rule) -> RuleResult:
        observed = self.resolve_path(context, rule.field)
        if observed is None:
            logger.debug(f"Field {rule.field!r} not present in score context, rule fails")
            return RuleResult(rule=rule, observed=None, passed=False)

        return RuleResult(
            rule=rule,
            observed=observed,
            passed=rule.operator.compare(observed, rule.value),
        )

    def evaluate(
        self,
        definition: StrategyDefinition,
        context: ScoreContext,
    ) -> StrategyEvaluation:
        """Evaluate every rule of a strategy and derive the decision.

        Entry requires all entry rules to pass; an empty entry set never
        enters. Exit requires any exit rule to pass. When both hold, EXIT
        wins: closing a position takes priority over opening one.

        Args:
            definition: Strategy to evaluate.
            context: Score context of one asset.

        Returns:
            StrategyEvaluation with per-rule results and the decision.
        """
        entry_results = [self._evaluate_rule(context, r) for r in definition.entry_rules]
        exit_results = [self._evaluate_rule(context, r) for r in definition.exit_rules]

        entry_triggered = bool(entry_results) and all(r.passed for r in entry_results)
        exit_triggered = any(r.passed for r in exit_results)

        if exit_triggered:
            decision = Decision.EXIT
        elif entry_triggered:
            decision = Decision.ENTER
        else:
            decision = Decision.HOLD

        return StrategyEvaluation(
            decision=decision,
            entry_triggered=entry_triggered,
            exit_triggered=exit_triggered,
            entry_results=entry_results,
            exit_results=exit_results,
        )

    def decide(self, definition: StrategyDefinition, context: ScoreContext) -> Decision:
        """Return ENTER, EXIT or HOLD for one score context."""
        return self.evaluate(definition, context).decision

    def compute_final_score(
        self,
        weights: EngineWeights,
        context: ScoreContext,
    ) -> Optional[float]:
        """Weighted sum of the engine scores present in a context.

        Engines without a score contribute nothing.

        Args:
            weights: Engine weights.
            context: Score context holding ``metadata.engine_details``.

        Returns:
            Composite score, or None when no engine score is present.
        """
        total = 0.0
        found = False
        for engine in Engine:
            score = self.resolve_path(context, engine_score_path(engine))
            if score is None or math.isnan(score):
                continue
            total += getattr(weights, engine.value) * score
            found = True

        return total if found else None

    def generate_signals(
        self,
        definition: StrategyDefinition,
        contexts: Mapping[str, ScoreContext],
    ) -> list[StrategySignal]:
        """Evaluate a strategy across several assets.

        Args:
            definition: Strategy to evaluate.
            contexts: Score context per asset symbol.

        Returns:
            One StrategySignal per symbol, in input order.
        """
        check = self.validate_weights(definition.engine_weights)
        if not check.valid:
            logger.warning(
                f"Evaluating strategy {definition.name or '<unnamed>'} "
                f"with engine weights summing to {check.total:.2f}"
            )

        signals = []
        for symbol, context in contexts.items():
            evaluation = self.evaluate(definition, context)
            final_score = self.resolve_path(context, "final_score")
            if final_score is None:
                final_score = self.compute_final_score(definition.engine_weights, context)

            signals.append(StrategySignal(
                symbol=symbol,
                decision=evaluation.decision,
                final_score=final_score,
                evaluation=evaluation,
            ))
            logger.debug(f"{symbol}: {evaluation.decision.value}")

        return signals
