"""News feed modules."""

from .news_feed import NewsItem, rank_news_feed, score_feed, summarize_news

__all__ = ["NewsItem", "rank_news_feed", "score_feed", "summarize_news"]
