"""Strategy definitions: engine weights plus entry and exit rule sets."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Union
import operator as _operator

from signalcore.config import Settings, get_settings

# Nested score object as delivered by the scoring service
ScoreContext = Mapping[str, Any]


class Engine(Enum):
    """Scoring engines whose weighted combination yields final_score."""
    SENTIMENT = "sentiment"
    TREND = "trend"
    FUNDAMENTAL = "fundamental"
    EVENT_RISK = "event_risk"
    LIQUIDITY = "liquidity"


class Operator(Enum):
    """Comparison operators available to a rule."""
    GT = ">"
    LT = "<"
    GE = ">="
    LE = "<="

    def compare(self, observed: float, threshold: float) -> bool:
        """Apply the operator to ``observed`` and ``threshold``."""
        return _COMPARATORS[self](observed, threshold)


_COMPARATORS = {
    Operator.GT: _operator.gt,
    Operator.LT: _operator.lt,
    Operator.GE: _operator.ge,
    Operator.LE: _operator.le,
}


class Decision(Enum):
    """Outcome of evaluating a strategy against a score context."""
    ENTER = "ENTER"
    EXIT = "EXIT"
    HOLD = "HOLD"


def engine_score_path(engine: Union[Engine, str]) -> str:
    """Field path of an engine's score inside a score context."""
    name = engine.value if isinstance(engine, Engine) else engine
    return f"metadata.engine_details.{name}.score"


@dataclass(frozen=True)
class RuleField:
    """A field path offered to strategy authors."""
    path: str
    label: str
    description: str


# Fields the signal generation service populates
RULE_FIELDS: tuple[RuleField, ...] = (
    RuleField("final_score", "Final Score", "Combined weighted score from all engines (-1 to 1)"),
    RuleField(engine_score_path(Engine.SENTIMENT), "Sentiment Score", "News & social sentiment analysis (-1 to 1)"),
    RuleField(engine_score_path(Engine.TREND), "Trend Score", "Technical trend analysis (-1 to 1)"),
    RuleField(engine_score_path(Engine.FUNDAMENTAL), "Fundamental Score", "Earnings, financials, growth metrics (-1 to 1)"),
    RuleField(engine_score_path(Engine.EVENT_RISK), "Event Risk Score", "Earnings events, news risk (-1 to 1)"),
    RuleField(engine_score_path(Engine.LIQUIDITY), "Liquidity Score", "Volume & market depth (-1 to 1)"),
)


def field_label(path: str) -> str:
    """Human label for a field path, falling back to the path itself."""
    for rule_field in RULE_FIELDS:
        if rule_field.path == path:
            return rule_field.label
    return path


def _parse_number(value: Any, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValueError(f"{what} must be a number, got {value!r}")
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{what} must be a number, got {value!r}") from None


@dataclass(frozen=True)
class Rule:
    """A single threshold comparison over one field of a score context."""
    field: str
    operator: Operator
    value: float

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Rule":
        """Build a rule from its wire form ``{field, operator, value}``.

        Args:
            data: Mapping with ``field``, ``operator`` and ``value`` keys.

        Returns:
            Parsed Rule.

        Raises:
            ValueError: If a key is missing or holds an unusable value.
        """
        if 'field' not in data or not isinstance(data['field'], str):
            raise ValueError(f"Rule is missing a field path: {dict(data)!r}")

        raw_operator = data.get('operator')
        try:
            op = Operator(raw_operator)
        except ValueError:
            allowed = ", ".join(o.value for o in Operator)
            raise ValueError(f"Unknown operator {raw_operator!r} (expected one of {allowed})") from None

        if 'value' not in data:
            raise ValueError(f"Rule on {data['field']!r} has no value")

        return cls(
            field=data['field'],
            operator=op,
            value=_parse_number(data['value'], f"Rule value for {data['field']!r}"),
        )

    def to_dict(self) -> dict:
        """Convert to the wire form."""
        return {
            'field': self.field,
            'operator': self.operator.value,
            'value': self.value,
        }

    def describe(self) -> str:
        """Readable form, e.g. ``Final Score > 0.5``."""
        return f"{field_label(self.field)} {self.operator.value} {self.value:g}"


@dataclass(frozen=True)
class EngineWeights:
    """Per-engine weights; a usable set sums to 1.0."""
    sentiment: float = 0.0
    trend: float = 0.0
    fundamental: float = 0.0
    event_risk: float = 0.0
    liquidity: float = 0.0

    @property
    def total(self) -> float:
        return sum(self.as_dict().values())

    def as_dict(self) -> dict[str, float]:
        return {engine.value: getattr(self, engine.value) for engine in Engine}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EngineWeights":
        """Build weights from a ``{engine: weight}`` mapping.

        Engines absent from ``data`` get a weight of 0.0.

        Raises:
            ValueError: On an unknown engine name or a non-numeric weight.
        """
        known = {engine.value for engine in Engine}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown engine(s) in weights: {', '.join(unknown)}")

        return cls(**{
            name: _parse_number(value, f"Weight for {name!r}")
            for name, value in data.items()
        })


@dataclass(frozen=True)
class StrategyDefinition:
    """A user-authored strategy handed over for evaluation."""
    engine_weights: EngineWeights
    entry_rules: tuple[Rule, ...]
    exit_rules: tuple[Rule, ...] = ()
    name: str = ""
    target_assets: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "StrategyDefinition":
        """Parse a strategy from the form/API payload.

        Args:
            data: Mapping using the keys ``engine_weights``, ``entry_rules``
                and ``exit_rules`` (plus optional ``name``, ``target_assets``).

        Returns:
            Parsed StrategyDefinition.

        Raises:
            ValueError: If any weight or rule cannot be parsed.
        """
        if not isinstance(data, Mapping):
            raise ValueError("Strategy must be an object")

        weights = data.get('engine_weights') or {}
        if not isinstance(weights, Mapping):
            raise ValueError("engine_weights must be an object")

        rule_sets = {}
        for key in ('entry_rules', 'exit_rules'):
            raw_rules = data.get(key) or []
            if not isinstance(raw_rules, list):
                raise ValueError(f"{key} must be a list")
            try:
                rule_sets[key] = tuple(Rule.from_dict(r) for r in raw_rules)
            except (ValueError, TypeError) as e:
                raise ValueError(f"Invalid {key}: {e}") from e

        target_assets = data.get('target_assets') or []
        if not isinstance(target_assets, list) or not all(isinstance(s, str) for s in target_assets):
            raise ValueError("target_assets must be a list of symbols")

        return cls(
            engine_weights=EngineWeights.from_dict(weights),
            entry_rules=rule_sets['entry_rules'],
            exit_rules=rule_sets['exit_rules'],
            name=str(data.get('name') or ""),
            target_assets=tuple(s.upper() for s in target_assets),
        )

    def to_dict(self) -> dict:
        """Convert to the payload accepted by the create-strategy API."""
        return {
            'name': self.name,
            'target_assets': list(self.target_assets),
            'engine_weights': self.engine_weights.as_dict(),
            'entry_rules': [r.to_dict() for r in self.entry_rules],
            'exit_rules': [r.to_dict() for r in self.exit_rules],
        }


def validate_definition(
    definition: StrategyDefinition,
    settings: Optional[Settings] = None,
) -> list[str]:
    """Collect the problems that should block submitting a strategy.

    Args:
        definition: Strategy to check.
        settings: Optional settings (weight tolerance).

    Returns:
        List of error messages; empty when the strategy is valid.
    """
    settings = settings or get_settings()
    errors = []

    total = definition.engine_weights.total
    if abs(total - 1.0) >= settings.weight_tolerance:
        errors.append(f"Engine weights must sum to 1.0 (currently {total:.2f})")

    if not definition.entry_rules:
        errors.append("At least one entry rule is required")

    for kind, rules in (("Entry", definition.entry_rules), ("Exit", definition.exit_rules)):
        for i, rule in enumerate(rules, 1):
            if not rule.field.strip():
                errors.append(f"{kind} rule {i} has an empty field path")

    return errors


def new_rule(kind: str, settings: Optional[Settings] = None) -> Rule:
    """Rule appended when the author adds an entry or exit rule.

    Args:
        kind: ``"entry"`` or ``"exit"``.
        settings: Optional settings (default thresholds).
    """
    settings = settings or get_settings()
    if kind == "entry":
        return Rule("final_score", Operator.GT, settings.new_entry_rule_threshold)
    if kind == "exit":
        return Rule("final_score", Operator.LT, settings.new_exit_rule_threshold)
    raise ValueError(f"Rule kind must be 'entry' or 'exit', got {kind!r}")


def default_strategy(settings: Optional[Settings] = None) -> StrategyDefinition:
    """Strategy a new author starts from."""
    settings = settings or get_settings()
    return StrategyDefinition(
        engine_weights=EngineWeights.from_dict(settings.default_weights()),
        entry_rules=(Rule("final_score", Operator.GT, settings.default_entry_threshold),),
        exit_rules=(Rule("final_score", Operator.LT, settings.default_exit_threshold),),
    )
