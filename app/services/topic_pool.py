"""
Topic pool: live feed titles, topped up with curated fallbacks when sparse.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)

# Curated fallback topics for when the feeds return too little
FALLBACK_TOPICS = [
    "Indian Space Research Organisation (ISRO) latest mission updates",
    "UPI digital payments revolution in India",
    "Indian Premier League cricket season highlights",
    "Bollywood box office trends and upcoming releases",
    "Indian startup ecosystem funding and growth",
    "Monsoon season impact on Indian agriculture",
    "Ancient Indian mythology retold for modern audiences",
    "Indian street food culture across different states",
    "Indian classical music meets contemporary fusion",
    "Wildlife conservation efforts in Indian national parks",
    "Indian women breaking barriers in tech and business",
    "Festival celebrations across India — traditions and stories",
    "Indian railway journeys — untold stories from the tracks",
    "Rise of Indian gaming and esports community",
    "Traditional Ayurveda meets modern wellness trends",
]

MIN_LIVE_TOPICS = 5
TARGET_POOL_SIZE = 10
MIN_FALLBACK_SLICE = 5
MAX_EXCLUSIONS = 30


@dataclass
class TopicPool:
    """Topics handed to the research agent."""
    news: List[str]
    trends: List[str]
    exclusions: List[str] = field(default_factory=list)
    fallback_used: List[str] = field(default_factory=list)

    @property
    def topics_analyzed(self) -> int:
        return len(self.news) + len(self.trends)

    @property
    def all_topics(self) -> List[str]:
        return self.news + self.trends


def build_topic_pool(
    news: List[str],
    trends: List[str],
    exclude_topics: Optional[Iterable[str]] = None,
    rng: Optional[random.Random] = None,
) -> TopicPool:
    """
    Merge feed titles into a pool.

    If fewer than 5 live titles came back, a shuffled slice of
    FALLBACK_TOPICS is appended to the news list, big enough to reach 10
    topics and never smaller than 5.
    """
    rng = rng or random.Random()
    news = list(news)
    trends = list(trends)

    fallback_slice: List[str] = []
    live = len(news) + len(trends)
    if live < MIN_LIVE_TOPICS:
        shuffled = list(FALLBACK_TOPICS)
        rng.shuffle(shuffled)
        needed = max(TARGET_POOL_SIZE - live, MIN_FALLBACK_SLICE)
        fallback_slice = shuffled[:needed]
        news.extend(fallback_slice)
        logger.info(f"Only {live} live topics, added {len(fallback_slice)} fallback topics")

    exclusions = [t for t in (exclude_topics or []) if t][:MAX_EXCLUSIONS]

    return TopicPool(
        news=news,
        trends=trends,
        exclusions=exclusions,
        fallback_used=fallback_slice,
    )
