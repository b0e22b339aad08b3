"""Concrete scraper adapters, one per source."""

from trendflow.ingestion.adapters.hackernews import HackerNewsAdapter
from trendflow.ingestion.adapters.mock import MockAdapter
from trendflow.ingestion.adapters.reddit import RedditAdapter
from trendflow.ingestion.adapters.twitter import TwitterAdapter
from trendflow.ingestion.adapters.v2ex import V2EXAdapter

__all__ = [
    "HackerNewsAdapter",
    "MockAdapter",
    "RedditAdapter",
    "TwitterAdapter",
    "V2EXAdapter",
]
