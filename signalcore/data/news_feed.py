"""News feed scoring, ranking and summaries."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional
import logging

from signalcore.analysis.insight import (
    DerivedInsight,
    InsightScorer,
    MarketMood,
    SentimentReading,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NewsItem:
    """A fetched news item with its sentiment reading."""
    id: str
    headline: str
    symbol: str
    sentiment: SentimentReading
    source: str = ""
    published_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "NewsItem":
        """Build a news item from the news service payload.

        Args:
            data: Mapping with ``headline``, ``symbol`` and a ``sentiment``
                object; ``id``, ``source`` and ``published_at`` are optional.

        Returns:
            Parsed NewsItem.

        Raises:
            ValueError: If required keys are missing or malformed.
        """
        missing = [key for key in ('headline', 'symbol', 'sentiment') if key not in data]
        if missing:
            raise ValueError(f"News item missing {', '.join(missing)}")

        sentiment = data['sentiment']
        if not isinstance(sentiment, Mapping):
            raise ValueError(f"News item {data.get('id', data['headline'])!r}: sentiment must be an object")

        published_at = None
        if data.get('published_at'):
            try:
                published_at = datetime.fromisoformat(str(data['published_at']).replace('Z', '+00:00'))
            except ValueError:
                logger.debug(f"Unparseable published_at {data['published_at']!r}, ignoring")

        return cls(
            id=str(data.get('id', "")),
            headline=str(data['headline']),
            symbol=str(data['symbol']).upper(),
            sentiment=SentimentReading.from_dict(sentiment),
            source=str(data.get('source', "")),
            published_at=published_at,
        )


@dataclass(frozen=True)
class ScoredNews:
    """News item paired with its derived insight."""
    item: NewsItem
    insight: DerivedInsight

    def to_dict(self) -> dict:
        return {
            'id': self.item.id,
            'headline': self.item.headline,
            'symbol': self.item.symbol,
            'source': self.item.source,
            'published_at': self.item.published_at.isoformat() if self.item.published_at else None,
            'sentiment': {
                'label': self.item.sentiment.label,
                'score': self.item.sentiment.score,
                'confidence': self.item.sentiment.confidence,
            },
            **self.insight.to_dict(),
        }


@dataclass(frozen=True)
class NewsSummary:
    """Mood counts over a news feed."""
    total: int
    bullish: int
    bearish: int
    neutral: int

    @property
    def summary(self) -> str:
        return f"Bullish: {self.bullish}, Bearish: {self.bearish}, Neutral: {self.neutral}"


def score_feed(
    items: Iterable[NewsItem],
    scorer: Optional[InsightScorer] = None,
) -> list[ScoredNews]:
    """Derive an insight for every news item.

    Args:
        items: News items to score.
        scorer: Optional InsightScorer instance.

    Returns:
        Scored items in input order.
    """
    scorer = scorer or InsightScorer()
    return [ScoredNews(item=item, insight=scorer.derive(item.sentiment, item.symbol)) for item in items]


def rank_news_feed(scored: Iterable[ScoredNews]) -> list[ScoredNews]:
    """Sort by impact score, highest first; ties keep their input order."""
    return sorted(scored, key=lambda s: s.insight.impact_score, reverse=True)


def summarize_news(scored: Iterable[ScoredNews]) -> NewsSummary:
    """Count bullish, bearish and neutral items.

    Args:
        scored: Scored news items.

    Returns:
        NewsSummary with per-mood counts.
    """
    moods = [s.insight.market_mood for s in scored]
    bullish = moods.count(MarketMood.BULLISH)
    bearish = moods.count(MarketMood.BEARISH)

    return NewsSummary(
        total=len(moods),
        bullish=bullish,
        bearish=bearish,
        neutral=len(moods) - bullish - bearish,
    )
