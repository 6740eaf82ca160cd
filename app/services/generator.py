"""
Script generation pipeline:
  feeds → topic pool → research agent → writer agent → cost analysis.

States run strictly in order. The two feed fetches are concurrent; the two
model calls are sequential because the writer prompt needs the research
agent's picks. Any exception moves the run to FAILED and is re-raised as
PipelineError; nothing partial is returned.
"""

import logging
import random
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from app.config import Settings
from app.errors import ConfigurationError, DecodeFailureError, PipelineError
from app.models import (
    GenerateRequest,
    GenerationParams,
    GenerationResult,
    ResearchInfo,
    ScriptRecord,
    SelectedTopic,
    Totals,
)
from app.services.cost import estimate_cost, round_half_up
from app.services.llm import ChatModel, ModelReply
from app.services.llm_json import DecodeFailure, decode_model_json
from app.services.prompts import build_research_prompt, build_writer_prompt
from app.services.rss import TrendingFeeds, extract_titles
from app.services.topic_pool import TopicPool, build_topic_pool

logger = logging.getLogger(__name__)

SOURCES = ["Google News India", "Google Trends India"]
PRODUCT_NAME = "Kahaani AI"


class PipelineState(str, Enum):
    IDLE = "idle"
    FETCHING_FEEDS = "fetching_feeds"
    BUILDING_POOL = "building_pool"
    RESEARCH_CALL = "research_call"
    DECODING_RESEARCH = "decoding_research"
    WRITER_CALL = "writer_call"
    DECODING_WRITER = "decoding_writer"
    ESTIMATING = "estimating"
    SUCCESS = "success"
    FAILED = "failed"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _validate_each(model, items: List[Any], label: str) -> list:
    """Validate dict items one by one; anything that still fails is dropped."""
    valid = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            valid.append(model.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Dropping malformed {label}: {e.error_count()} validation errors")
    return valid


class ScriptGenerator:
    """
    Runs one generation per call to `generate`.

    All collaborators are injected. `llm` and `feeds` default to the real
    OpenAI client and Google feeds built from `settings`; `rng` drives the
    fallback-topic shuffle.
    """

    def __init__(
        self,
        settings: Settings,
        llm: Optional[ChatModel] = None,
        feeds: Optional[TrendingFeeds] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = _now,
    ):
        if llm is None:
            if not settings.openai_api_key:
                raise ConfigurationError("OPENAI_API_KEY not set")
            llm = ChatModel(
                api_key=settings.openai_api_key,
                model=settings.openai_model,
                base_url=settings.openai_base_url,
            )
        if feeds is None:
            feeds = TrendingFeeds(
                settings.news_feed_url,
                settings.trends_feed_url,
                timeout=settings.feed_timeout_sec,
            )

        self.settings = settings
        self.llm = llm
        self.feeds = feeds
        self.rng = rng or random.Random()
        self._clock = clock
        self.state = PipelineState.IDLE
        self.transitions: List[PipelineState] = [PipelineState.IDLE]

    def _enter(self, state: PipelineState):
        logger.debug(f"Pipeline state: {self.state.value} -> {state.value}")
        self.state = state
        self.transitions.append(state)

    async def generate(self, request: GenerateRequest) -> GenerationResult:
        self.state = PipelineState.IDLE
        self.transitions = [PipelineState.IDLE]
        try:
            result = await self._run(request)
        except Exception as e:
            failed_in = self.state
            self._enter(PipelineState.FAILED)
            logger.error(f"Generation failed in {failed_in.value}: {type(e).__name__}: {e}")
            raise PipelineError(failed_in.value, e) from e
        self._enter(PipelineState.SUCCESS)
        return result

    async def _run(self, request: GenerateRequest) -> GenerationResult:
        mode, language = request.mode, request.language

        # Step 1: feeds
        self._enter(PipelineState.FETCHING_FEEDS)
        texts = await self.feeds.fetch()
        news = extract_titles(texts.news)
        trends = extract_titles(texts.trends)
        logger.info(f"[1/4] Feeds: {len(news)} news titles, {len(trends)} trending titles")

        self._enter(PipelineState.BUILDING_POOL)
        pool = build_topic_pool(news, trends, request.exclude_topics, rng=self.rng)

        # Step 2: research agent
        self._enter(PipelineState.RESEARCH_CALL)
        research_reply = await self._call_model(
            "research",
            build_research_prompt(mode, language, pool),
            self.settings.research_temperature,
            self.settings.research_max_tokens,
        )

        self._enter(PipelineState.DECODING_RESEARCH)
        research = self._decode_research(research_reply.text)
        selected = self._selected_topics(research)

        # Step 3: writer agent
        self._enter(PipelineState.WRITER_CALL)
        writer_reply = await self._call_model(
            "writer",
            build_writer_prompt(language, [t.model_dump(exclude_none=True) for t in selected]),
            self.settings.writer_temperature,
            self.settings.writer_max_tokens,
        )

        self._enter(PipelineState.DECODING_WRITER)
        scripts = self._decode_scripts(writer_reply.text)

        # Step 4: totals and cost
        self._enter(PipelineState.ESTIMATING)
        cost = estimate_cost(
            len(research_reply.text),
            len(writer_reply.text),
            usd_to_inr=self.settings.usd_to_inr,
            human_per_script_inr=self.settings.human_cost_per_script_inr,
            model=self.settings.openai_model,
        )
        logger.info(f"[4/4] {len(scripts)} scripts, AI cost ₹{cost.ai.total_inr}")

        return GenerationResult(
            product=PRODUCT_NAME,
            generated_at=self._clock(),
            params=GenerationParams(mode=mode, language=language),
            research=ResearchInfo(
                summary=research.get("research_summary"),
                topics_analyzed=self._topics_analyzed(research, pool),
                sources=list(SOURCES),
                selected_topics=selected,
            ),
            source_topics=pool.all_topics,
            scripts=scripts,
            totals=self._totals(scripts),
            cost_analysis=cost,
        )

    async def _call_model(
        self, stage: str, prompt: str, temperature: float, max_tokens: int
    ) -> ModelReply:
        reply = await self.llm.complete(
            prompt,
            temperature=temperature,
            max_tokens=max_tokens,
            json_mode=self.settings.json_mode,
        )
        logger.info(
            f"{stage} agent (temperature {temperature}) replied with {len(reply.text)} characters"
        )
        return reply

    def _decode_research(self, raw: str) -> Dict[str, Any]:
        decoded = decode_model_json(raw)
        if isinstance(decoded, DecodeFailure):
            raise DecodeFailureError("research", decoded.reason, decoded.raw_excerpt)
        logger.debug(f"Research reply decoded via {decoded.strategy}")
        return decoded.value

    def _selected_topics(self, research: Dict[str, Any]) -> List[SelectedTopic]:
        items = research.get("selected_topics")
        if not isinstance(items, list):
            raise DecodeFailureError("research", "selected_topics missing", str(research)[:500])
        return _validate_each(SelectedTopic, items, "research topic")

    def _decode_scripts(self, raw: str) -> List[ScriptRecord]:
        decoded = decode_model_json(raw)
        if isinstance(decoded, DecodeFailure):
            if self.settings.strict_writer_decode:
                raise DecodeFailureError("writer", decoded.reason, decoded.raw_excerpt)
            logger.warning(f"Writer reply not parseable ({decoded.reason}), returning placeholder script")
            return [ScriptRecord(error="Parse failed", raw=decoded.raw_excerpt)]

        items = decoded.value.get("scripts") or []
        if not isinstance(items, list):
            items = []
        return _validate_each(ScriptRecord, items, "writer script")

    @staticmethod
    def _topics_analyzed(research: Dict[str, Any], pool: TopicPool) -> int:
        value = research.get("topics_analyzed")
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        return pool.topics_analyzed

    @staticmethod
    def _totals(scripts: List[ScriptRecord]) -> Totals:
        total_words = sum(s.word_count or 0 for s in scripts)
        total_minutes = sum(s.estimated_audio_minutes or 0 for s in scripts)
        return Totals(
            scripts_generated=len(scripts),
            total_words=total_words,
            total_audio_minutes=round_half_up(total_minutes, 1),
        )
