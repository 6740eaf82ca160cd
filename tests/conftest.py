"""Shared fakes and sample payloads for the test suite."""

import json
import random
from datetime import datetime, timezone
from typing import List, Optional

import pytest

from app.config import Settings
from app.models import (
    ContentMode,
    GenerationParams,
    GenerationResult,
    ResearchInfo,
    ScriptLanguage,
    ScriptRecord,
    Totals,
)
from app.services.cost import estimate_cost
from app.services.llm import ModelReply
from app.services.rss import FeedTexts
from app.services.generator import ScriptGenerator


class FakeModel:
    """Returns queued replies in order and records every call."""

    def __init__(self, replies: List[object]):
        self.replies = list(replies)
        self.calls = []

    async def complete(self, prompt, temperature, max_tokens, json_mode=False):
        self.calls.append({
            "prompt": prompt,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "json_mode": json_mode,
        })
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return ModelReply(text=reply, prompt_chars=len(prompt))


class FakeFeeds:
    def __init__(self, news: str = "", trends: str = ""):
        self.texts = FeedTexts(news=news, trends=trends)
        self.fetches = 0

    async def fetch(self) -> FeedTexts:
        self.fetches += 1
        return self.texts


def rss(*titles: str) -> str:
    items = "".join(f"<item><title>{t}</title><link>http://x/{i}</link></item>"
                    for i, t in enumerate(titles))
    return f'<?xml version="1.0"?><rss><channel><title>Feed</title>{items}</channel></rss>'


def selected_topic(topic: str, content_type: str = "inform") -> dict:
    return {
        "topic": topic,
        "content_type": content_type,
        "category": "technology",
        "angle": f"The untold side of {topic}",
        "rationale": "Timely and emotional",
    }


def script(title: str, topic: Optional[str] = None, words: int = 950, minutes: float = 7.5) -> dict:
    return {
        "topic": topic or title,
        "content_type": "inform",
        "category": "technology",
        "title": title,
        "script": f"{title}. " * 50,
        "word_count": words,
        "estimated_audio_minutes": minutes,
        "hook": f"What if {title} changed everything?",
        "confidence_score": {
            "overall": 82,
            "hook_strength": 85,
            "narrative_flow": 80,
            "emotional_engagement": 78,
            "audio_readiness": 84,
        },
        "confidence_rationale": "Strong hook, slightly long middle",
    }


def research_reply(topics=("ISRO moon mission", "UPI at ten", "Monsoon farmers"), **extra) -> str:
    body = {
        "selected_topics": [selected_topic(t) for t in topics],
        "research_summary": "Space and payments dominate today.",
    }
    body.update(extra)
    return json.dumps(body)


def writer_reply(titles=("Moon Dreams", "The UPI Story", "Rain Song")) -> str:
    return json.dumps({"scripts": [script(t) for t in titles]})


def sample_result(titles=("Moon Dreams", "The UPI Story", "Rain Song")) -> GenerationResult:
    scripts = [ScriptRecord.model_validate(script(t)) for t in titles]
    return GenerationResult(
        generated_at=datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc),
        params=GenerationParams(mode=ContentMode.BOTH, language=ScriptLanguage.EN),
        research=ResearchInfo(
            summary="Space and payments dominate today.",
            topics_analyzed=12,
            sources=["Google News India", "Google Trends India"],
            selected_topics=[],
        ),
        scripts=scripts,
        totals=Totals(
            scripts_generated=len(scripts),
            total_words=950 * len(scripts),
            total_audio_minutes=7.5 * len(scripts),
        ),
        cost_analysis=estimate_cost(1400, 11000),
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, openai_api_key="sk-test", environment="test")


@pytest.fixture
def make_generator(settings):
    def _make(replies, news: str = "", trends: str = "", seed: int = 7, config: Settings = None):
        return ScriptGenerator(
            config or settings,
            llm=FakeModel(replies),
            feeds=FakeFeeds(news, trends),
            rng=random.Random(seed),
        )
    return _make
