"""Strategy rule modules."""

from .engine import StrategyRuleEngine
from .strategy import Decision, StrategyDefinition

__all__ = ["StrategyRuleEngine", "Decision", "StrategyDefinition"]
