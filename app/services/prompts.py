"""Prompt templates for the research and writer agents."""

import json
from typing import Any, Dict, List, Sequence

from app.models import ContentMode, ScriptLanguage
from app.services.topic_pool import MAX_EXCLUSIONS, TopicPool

MODE_TEXT = {
    ContentMode.INFORM: "Educational/Knowledge content only",
    ContentMode.IMAGINE: "Fiction/Drama stories only",
    ContentMode.BOTH: "Mix of both educational and fiction",
}

RESEARCH_LANGUAGE_TEXT = {
    ScriptLanguage.EN: "English",
    ScriptLanguage.HI: "Hindi (Devanagari)",
    ScriptLanguage.HINGLISH: "Hinglish (Hindi-English mix in Roman script)",
}

WRITER_LANGUAGE_TEXT = {
    ScriptLanguage.EN: "English",
    ScriptLanguage.HI: "Hindi (use Devanagari script)",
    ScriptLanguage.HINGLISH: (
        "Hinglish (Hindi words in Roman script mixed naturally with English, "
        "like how young Indians text)"
    ),
}

JSON_SYSTEM_PROMPT = "You are a helpful assistant. Always respond with valid JSON."


def numbered(items: Sequence[str]) -> str:
    return "\n".join(f"{i}. {item}" for i, item in enumerate(items, 1))


def exclusion_block(exclusions: Sequence[str]) -> str:
    """Previously used topics, or "" when there are none."""
    if not exclusions:
        return ""
    lines = "\n".join(f"- {t}" for t in list(exclusions)[:MAX_EXCLUSIONS])
    return (
        "\n\nPREVIOUSLY USED TOPICS (do NOT select any of these or closely "
        f"related topics):\n{lines}\n"
    )


def build_research_prompt(
    mode: ContentMode,
    language: ScriptLanguage,
    pool: TopicPool,
) -> str:
    """Prompt asking the research agent to pick 3 topics from the pool."""
    return f"""You are a senior content strategist for a premium Indian audio platform. Analyze these trending topics and select 3 for audio scripts.

MODE: {MODE_TEXT[mode]}
LANGUAGE: {RESEARCH_LANGUAGE_TEXT[language]}

NEWS TOPICS (Google News India):
{numbered(pool.news)}

TRENDING SEARCHES (Google Trends India):
{numbered(pool.trends)}
{exclusion_block(pool.exclusions)}
Select exactly 3 topics with highest audio content potential for Indian audiences. Consider cultural relevance, emotional resonance, and timeliness.

Respond with this JSON structure:
{{"selected_topics":[{{"topic":"Topic title","content_type":"inform or imagine","category":"news|culture|mythology|drama|technology|sports|politics|entertainment|finance|health","angle":"Suggested creative angle","rationale":"Why high potential"}}],"research_summary":"2-line summary of trending landscape","topics_analyzed":{pool.topics_analyzed}}}"""


def build_writer_prompt(
    language: ScriptLanguage,
    selected_topics: List[Dict[str, Any]],
) -> str:
    """Prompt asking the writer agent to turn the selected topics into scripts."""
    topics = json.dumps(selected_topics, indent=2, ensure_ascii=False)

    return f"""You are a world-class audio scriptwriter creating content for Indian audiences. Your scripts are known for magnetic openings, vivid storytelling, and perfect pacing for audio.

LANGUAGE: {WRITER_LANGUAGE_TEXT[language]}
Write ALL scripts in this language.

TOPICS TO WRITE:
{topics}

For each of the 3 topics, write an audio script following these rules:
- 800-1200 words per script
- First 30 words MUST hook the listener instantly (question, bold claim, vivid scene)
- Conversational, warm tone — like a brilliant friend explaining over chai
- Short sentences. Varied rhythm. Pauses built in.
- For "inform" scripts: Make complex topics fascinating and accessible. Use analogies. End with a surprising insight.
- For "imagine" scripts: Rich characters, emotional arcs, sensory details. Draw from Indian cultural context. End with a twist or emotional payoff.
- End each script with a memorable closing line
- Rate your confidence in each script honestly

Respond with this JSON structure:
{{"scripts":[{{"topic":"Topic title","content_type":"inform or imagine","category":"category","title":"Creative compelling title","script":"Full script text...","word_count":950,"estimated_audio_minutes":7.5,"hook":"First 30 words","confidence_score":{{"overall":82,"hook_strength":85,"narrative_flow":80,"emotional_engagement":78,"audio_readiness":84}},"confidence_rationale":"Brief honest explanation of strengths and weaknesses"}}]}}"""
