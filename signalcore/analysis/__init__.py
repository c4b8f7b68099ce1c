"""News sentiment insight modules."""

from .insight import InsightScorer, SentimentReading

__all__ = ["InsightScorer", "SentimentReading"]
