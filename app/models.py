"""Data models for Kahaani: request, script, cost and history types."""

import math
from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Enums
class ContentMode(str, Enum):
    INFORM = "inform"
    IMAGINE = "imagine"
    BOTH = "both"


class ScriptLanguage(str, Enum):
    EN = "en"
    HI = "hi"
    HINGLISH = "hinglish"


def _coerce_number(value: Any) -> Any:
    """Model output is loosely typed: "950", 7.5, None all show up."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _coerce_text(value: Any) -> Any:
    """Numbers become strings, lists are joined, objects are dropped."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list):
        return ", ".join(str(v) for v in value if v is not None and not isinstance(v, (dict, list)))
    return None


# API Request Models
class GenerateRequest(BaseModel):
    """Body of POST /api/generate. Unknown values fall back to defaults."""
    mode: ContentMode = ContentMode.BOTH
    language: ScriptLanguage = ScriptLanguage.EN
    exclude_topics: List[str] = Field(default_factory=list)

    @field_validator("mode", mode="before")
    @classmethod
    def _coerce_mode(cls, value):
        try:
            return ContentMode(value)
        except ValueError:
            return ContentMode.BOTH

    @field_validator("language", mode="before")
    @classmethod
    def _coerce_language(cls, value):
        try:
            return ScriptLanguage(value)
        except ValueError:
            return ScriptLanguage.EN

    @field_validator("exclude_topics", mode="before")
    @classmethod
    def _coerce_excludes(cls, value):
        if not isinstance(value, list):
            return []
        return [t for t in value if isinstance(t, str) and t.strip()]


# Research stage
class SelectedTopic(BaseModel):
    """One topic picked by the research agent."""
    model_config = ConfigDict(extra="allow")

    topic: Optional[str] = None
    content_type: Optional[str] = None
    category: Optional[str] = None
    angle: Optional[str] = None
    rationale: Optional[str] = None

    @field_validator("topic", "content_type", "category", "angle", "rationale", mode="before")
    @classmethod
    def _coerce_text_fields(cls, value):
        return _coerce_text(value)


# Writer stage
class ConfidenceScore(BaseModel):
    """Self-reported 0-100 quality rating from the writer agent."""
    overall: Optional[int] = None
    hook_strength: Optional[int] = None
    narrative_flow: Optional[int] = None
    emotional_engagement: Optional[int] = None
    audio_readiness: Optional[int] = None

    @field_validator("*", mode="before")
    @classmethod
    def _clamp(cls, value):
        value = _coerce_number(value)
        if value is None:
            return None
        return max(0, min(100, int(round(value))))


class ScriptRecord(BaseModel):
    """A written script. A parse failure leaves only `error` and `raw` set."""
    model_config = ConfigDict(extra="allow")

    topic: Optional[str] = None
    content_type: Optional[str] = None
    category: Optional[str] = None
    title: Optional[str] = None
    script: Optional[str] = None
    word_count: Optional[int] = None
    estimated_audio_minutes: Optional[float] = None
    hook: Optional[str] = None
    confidence_score: Optional[ConfidenceScore] = None
    confidence_rationale: Optional[str] = None
    error: Optional[str] = None
    raw: Optional[str] = None

    @field_validator(
        "topic", "content_type", "category", "title", "script", "hook",
        "confidence_rationale", mode="before",
    )
    @classmethod
    def _coerce_text_fields(cls, value):
        return _coerce_text(value)

    @field_validator("word_count", mode="before")
    @classmethod
    def _coerce_word_count(cls, value):
        value = _coerce_number(value)
        return None if value is None else int(value)

    @field_validator("estimated_audio_minutes", mode="before")
    @classmethod
    def _coerce_minutes(cls, value):
        return _coerce_number(value)

    @field_validator("confidence_score", mode="before")
    @classmethod
    def _coerce_confidence(cls, value):
        return value if isinstance(value, dict) else None

    @property
    def is_degraded(self) -> bool:
        return self.error is not None


# Cost analysis
class TokenUsage(BaseModel):
    input: int
    output: int
    total: int


class AiCost(BaseModel):
    total_usd: float
    total_inr: float
    per_script_inr: float
    tokens: TokenUsage
    model: str


class HumanCost(BaseModel):
    total_inr: float
    per_script_inr: float
    basis: str


class Savings(BaseModel):
    multiplier: str
    saved_inr: int


class CostAnalysis(BaseModel):
    """AI vs human-writer cost comparison for one generation."""
    ai: AiCost
    human: HumanCost
    savings: Savings


# Generation result
class GenerationParams(BaseModel):
    mode: ContentMode
    language: ScriptLanguage


class ResearchInfo(BaseModel):
    summary: Optional[str] = None
    topics_analyzed: int
    sources: List[str]
    selected_topics: List[SelectedTopic]


class Totals(BaseModel):
    scripts_generated: int = 0
    total_words: int = 0
    total_audio_minutes: float = 0


class GenerationResult(BaseModel):
    """Successful response of one end-to-end generation."""
    model_config = ConfigDict(frozen=True)

    status: str = "success"
    product: str = "Kahaani AI"
    generated_at: datetime
    params: GenerationParams
    research: ResearchInfo
    source_topics: List[str] = Field(default_factory=list)
    scripts: List[ScriptRecord]
    totals: Totals
    cost_analysis: CostAnalysis


# History
class HistoryScript(BaseModel):
    """Script fields kept in history: enough to re-render or dedup."""
    title: Optional[str] = None
    topic: Optional[str] = None
    category: Optional[str] = None
    content_type: Optional[str] = None
    hook: Optional[str] = None
    script: Optional[str] = None
    word_count: Optional[int] = None
    estimated_audio_minutes: Optional[float] = None
    confidence_score: Optional[ConfidenceScore] = None
    confidence_rationale: Optional[str] = None


class HistoryEntry(BaseModel):
    """A trimmed, persisted record of one past generation."""
    id: str
    timestamp: datetime
    mode: ContentMode = ContentMode.BOTH
    language: ScriptLanguage = ScriptLanguage.EN
    scripts: List[HistoryScript] = Field(default_factory=list)
    totals: Optional[Totals] = None
    cost_analysis: Optional[CostAnalysis] = None
