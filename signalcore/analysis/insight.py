"""Derived indicators for a single news item's sentiment reading."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional
import logging
import math

import numpy as np

from signalcore.config import Settings, get_settings

logger = logging.getLogger(__name__)


class SentimentLabel(Enum):
    """Categorical output of the sentiment model."""
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class MarketMood(Enum):
    BULLISH = "Bullish"
    BEARISH = "Bearish"
    NEUTRAL = "Neutral"


class ImpactLevel(Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class RiskRating(Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class TrendDirection(Enum):
    UP = "up"
    DOWN = "down"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class SentimentReading:
    """Sentiment model output for one news item."""
    score: float  # -1 (very negative) to +1 (very positive)
    confidence: float  # 0-1
    label: str = "neutral"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SentimentReading":
        """Build a reading from the sentiment service payload.

        Labels are lower-cased but otherwise kept as-is; anything other
        than positive/negative maps to a neutral mood downstream.

        Raises:
            ValueError: If score or confidence is missing or not numeric.
        """
        try:
            score = float(data['score'])
            confidence = float(data.get('confidence', 0.0))
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid sentiment reading {dict(data)!r}: {e}") from e

        return cls(
            score=score,
            confidence=confidence,
            label=str(data.get('label', "neutral")).lower(),
        )

    @property
    def confidence_percent(self) -> int:
        return round(self.confidence * 100) if math.isfinite(self.confidence) else 0

    def format_score(self) -> str:
        """Signed score with two decimals, e.g. ``+0.80``."""
        sign = "+" if self.score >= 0 else ""
        return f"{sign}{self.score:.2f}"


@dataclass(frozen=True)
class DerivedInsight:
    """Indicators derived from a sentiment reading."""
    market_mood: MarketMood
    impact_score: int
    impact_level: ImpactLevel
    risk_rating: RiskRating
    trend_direction: TrendDirection
    narrative: str
    sparkline: list[float] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            'market_mood': self.market_mood.value,
            'impact_score': self.impact_score,
            'impact_level': self.impact_level.value,
            'risk_rating': self.risk_rating.value,
            'trend_direction': self.trend_direction.value,
            'narrative': self.narrative,
            'sparkline': [round(v, 2) for v in self.sparkline],
        }


class InsightScorer:
    """Maps a sentiment reading to mood, impact, risk, trend and narrative.

    Everything except the sparkline is deterministic. The sparkline draws
    from an injected ``numpy.random.Generator`` when one is given, and from
    a fresh generator per call otherwise.
    """

    # Impact score thresholds (0-100)
    HIGH_IMPACT = 75
    MEDIUM_IMPACT = 50

    # Confidence above which risk drops a level
    LOW_RISK_CONFIDENCE = 0.7
    MEDIUM_RISK_CONFIDENCE = 0.4

    # Scores within this band around zero have no trend
    TREND_DEAD_BAND = 0.1

    # Narrative move range width (percentage points)
    MOVE_RANGE_WIDTH = 5

    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        settings: Optional[Settings] = None,
    ):
        """Initialize insight scorer.

        Args:
            rng: Optional random generator used for sparklines.
            settings: Optional Settings instance.
        """
        self.settings = settings or get_settings()
        self.rng = rng

    def derive_mood(self, reading: SentimentReading) -> MarketMood:
        """Mood follows the categorical label only, never the score."""
        if reading.label == SentimentLabel.POSITIVE.value:
            return MarketMood.BULLISH
        elif reading.label == SentimentLabel.NEGATIVE.value:
            return MarketMood.BEARISH
        else:
            return MarketMood.NEUTRAL

    def derive_impact(self, reading: SentimentReading) -> tuple[int, ImpactLevel]:
        """Calculate impact score and level.

        Magnitude and confidence contribute up to 50 points each. Inputs
        outside their nominal ranges are not clamped.

        Args:
            reading: Sentiment reading.

        Returns:
            Tuple of (impact score, impact level).
        """
        raw = abs(reading.score) * 50 + reading.confidence * 50
        # Half-up rounding; non-finite inputs score zero
        score = int(math.floor(raw + 0.5)) if math.isfinite(raw) else 0

        if score >= self.HIGH_IMPACT:
            level = ImpactLevel.HIGH
        elif score >= self.MEDIUM_IMPACT:
            level = ImpactLevel.MEDIUM
        else:
            level = ImpactLevel.LOW

        return score, level

    def derive_risk(self, reading: SentimentReading) -> RiskRating:
        """Higher model confidence means lower risk."""
        if reading.confidence > self.LOW_RISK_CONFIDENCE:
            return RiskRating.LOW
        elif reading.confidence > self.MEDIUM_RISK_CONFIDENCE:
            return RiskRating.MEDIUM
        else:
            return RiskRating.HIGH

    def derive_trend(self, reading: SentimentReading) -> TrendDirection:
        """Trend direction with a dead band around zero."""
        if reading.score > self.TREND_DEAD_BAND:
            return TrendDirection.UP
        elif reading.score < -self.TREND_DEAD_BAND:
            return TrendDirection.DOWN
        else:
            return TrendDirection.NEUTRAL

    def build_narrative(self, reading: SentimentReading, symbol: str) -> str:
        """Templated summary: label clause, mood clause, move-range clause.

        Args:
            reading: Sentiment reading.
            symbol: Asset symbol mentioned in the text.

        Returns:
            Narrative string.
        """
        mood = self.derive_mood(reading)
        low = abs(reading.score) * 10
        high = low + self.MOVE_RANGE_WIDTH

        return (
            f"News sentiment for {symbol} is {reading.label} "
            f"with {reading.confidence_percent}% confidence. "
            f"Market mood reads {mood.value.lower()}. "
            f"Signal strength suggests a potential {low:.1f}-{high:.1f}% move."
        )

    def build_sparkline(
        self,
        reading: SentimentReading,
        length: Optional[int] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> list[float]:
        """Generate an illustrative series drifting in the score's direction.

        Not a price history: a linear ramp from the base level towards
        ``score * 20`` plus uniform noise, clamped to [0, 100].

        Args:
            reading: Sentiment reading.
            length: Number of points (defaults to settings).
            rng: Optional generator overriding the scorer's own.

        Returns:
            List of ``length`` values.
        """
        length = self.settings.sparkline_length if length is None else length
        if length <= 0:
            return []

        rng = rng or self.rng or np.random.default_rng()
        noise_amplitude = self.settings.sparkline_noise

        # Non-finite scores draw a flat series
        trend = reading.score * 20 if math.isfinite(reading.score) else 0.0
        ramp = trend * np.arange(length) / length
        noise = rng.uniform(-noise_amplitude, noise_amplitude, size=length)
        values = np.clip(self.settings.sparkline_base + ramp + noise, 0, 100)

        return values.tolist()

    def derive(self, reading: SentimentReading, symbol: str) -> DerivedInsight:
        """Build the full insight for one reading.

        Args:
            reading: Sentiment reading.
            symbol: Asset symbol used in the narrative.

        Returns:
            DerivedInsight object.
        """
        impact_score, impact_level = self.derive_impact(reading)

        insight = DerivedInsight(
            market_mood=self.derive_mood(reading),
            impact_score=impact_score,
            impact_level=impact_level,
            risk_rating=self.derive_risk(reading),
            trend_direction=self.derive_trend(reading),
            narrative=self.build_narrative(reading, symbol),
            sparkline=self.build_sparkline(reading),
        )
        logger.debug(
            f"{symbol}: mood={insight.market_mood.value} impact={impact_score} "
            f"risk={insight.risk_rating.value}"
        )
        return insight
