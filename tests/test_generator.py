import asyncio
import json
import logging

import pytest

from app.config import Settings
from app.errors import ConfigurationError, DecodeFailureError, PipelineError, ProviderError
from app.models import ContentMode, GenerateRequest, ScriptLanguage
from app.services.generator import PipelineState, ScriptGenerator
from app.services.topic_pool import FALLBACK_TOPICS

from conftest import research_reply, rss, script, writer_reply

HAPPY_PATH = [
    PipelineState.IDLE,
    PipelineState.FETCHING_FEEDS,
    PipelineState.BUILDING_POOL,
    PipelineState.RESEARCH_CALL,
    PipelineState.DECODING_RESEARCH,
    PipelineState.WRITER_CALL,
    PipelineState.DECODING_WRITER,
    PipelineState.ESTIMATING,
    PipelineState.SUCCESS,
]


def run(generator, **request):
    return asyncio.run(generator.generate(GenerateRequest(**request)))


#============================================
def test_empty_feeds_inform_hindi(make_generator) -> None:
    """
    Both feeds empty: only fallback topics reach the research agent, and
    both model calls succeeding gives 3 scripts.
    """
    generator = make_generator([research_reply(), writer_reply()])
    result = run(generator, mode="inform", language="hi")

    assert result.status == "success"
    assert result.params.mode == ContentMode.INFORM
    assert result.params.language == ScriptLanguage.HI
    assert result.research.topics_analyzed == 10
    assert set(result.source_topics) <= set(FALLBACK_TOPICS)
    assert len(result.source_topics) == 10
    assert len(result.scripts) == 3
    assert result.totals.scripts_generated == 3
    assert result.totals.total_words == 2850
    assert result.totals.total_audio_minutes == 22.5
    assert generator.transitions == HAPPY_PATH

    research_call, writer_call = generator.llm.calls
    assert "MODE: Educational/Knowledge content only" in research_call["prompt"]
    assert "LANGUAGE: Hindi (Devanagari)" in research_call["prompt"]
    assert "LANGUAGE: Hindi (use Devanagari script)" in writer_call["prompt"]


#============================================
def test_model_call_parameters(make_generator) -> None:
    generator = make_generator([research_reply(), writer_reply()])
    run(generator)

    research_call, writer_call = generator.llm.calls
    assert (research_call["temperature"], research_call["max_tokens"]) == (0.7, 2000)
    assert (writer_call["temperature"], writer_call["max_tokens"]) == (0.8, 8000)
    assert research_call["json_mode"] and writer_call["json_mode"]


#============================================
def test_writer_prompt_gets_selected_topics(make_generator) -> None:
    generator = make_generator([research_reply(("Kumbh Mela stories",)), writer_reply()])
    result = run(generator)

    assert result.research.selected_topics[0].topic == "Kumbh Mela stories"
    assert '"topic": "Kumbh Mela stories"' in generator.llm.calls[1]["prompt"]


#============================================
def test_live_feeds_used(make_generator) -> None:
    news = rss(*[f"News headline {i}" for i in range(4)])
    trends = rss("Trend one here", "Trend two here")
    generator = make_generator([research_reply(), writer_reply()], news=news, trends=trends)
    result = run(generator)

    assert result.source_topics[:4] == [f"News headline {i}" for i in range(4)]
    assert result.research.topics_analyzed == 6
    assert "1. Trend one here" in generator.llm.calls[0]["prompt"]


#============================================
def test_model_reported_topics_analyzed_wins(make_generator) -> None:
    generator = make_generator([research_reply(topics_analyzed=27), writer_reply()])
    assert run(generator).research.topics_analyzed == 27


#============================================
def test_exclusions_reach_research_prompt(make_generator) -> None:
    generator = make_generator([research_reply(), writer_reply()])
    run(generator, exclude_topics=["moon dreams", "the upi story"])

    prompt = generator.llm.calls[0]["prompt"]
    assert "PREVIOUSLY USED TOPICS" in prompt
    assert "- moon dreams\n- the upi story\n" in prompt


#============================================
def test_fenced_research_reply(make_generator) -> None:
    fenced = "Here are my picks:\n```json\n" + research_reply() + "\n```"
    generator = make_generator([fenced, writer_reply()])
    assert len(run(generator).research.selected_topics) == 3


#============================================
def test_research_decode_failure_is_fatal(make_generator) -> None:
    generator = make_generator(["I'm sorry, I can't do that.", writer_reply()])

    with pytest.raises(PipelineError) as info:
        run(generator)

    assert info.value.state == PipelineState.DECODING_RESEARCH.value
    assert isinstance(info.value.cause, DecodeFailureError)
    assert generator.state == PipelineState.FAILED
    assert len(generator.llm.calls) == 1


#============================================
def test_research_without_selected_topics_is_fatal(make_generator) -> None:
    generator = make_generator([json.dumps({"research_summary": "nothing"}), writer_reply()])
    with pytest.raises(PipelineError) as info:
        run(generator)
    assert isinstance(info.value.cause, DecodeFailureError)


#============================================
def test_writer_decode_failure_degrades(make_generator) -> None:
    garbage = "Once upon a time in Mumbai... " * 30
    generator = make_generator([research_reply(), garbage])
    result = run(generator)

    assert len(result.scripts) == 1
    placeholder = result.scripts[0]
    assert placeholder.is_degraded
    assert placeholder.error == "Parse failed"
    assert placeholder.raw == garbage[:500]
    assert result.totals.scripts_generated == 1
    assert result.totals.total_words == 0
    assert generator.state == PipelineState.SUCCESS


#============================================
def test_writer_decode_failure_strict(make_generator) -> None:
    strict = Settings(_env_file=None, openai_api_key="sk-test", strict_writer_decode=True)
    generator = make_generator([research_reply(), "not json"], config=strict)

    with pytest.raises(PipelineError) as info:
        run(generator)
    assert info.value.state == PipelineState.DECODING_WRITER.value


#============================================
def test_provider_error_propagates_status(make_generator) -> None:
    generator = make_generator([ProviderError(429, "Rate limit reached")])

    with pytest.raises(PipelineError) as info:
        run(generator)

    assert info.value.state == PipelineState.RESEARCH_CALL.value
    assert info.value.cause.status_code == 429
    assert "429" in str(info.value)
    assert generator.transitions[-1] == PipelineState.FAILED


#============================================
def test_writer_provider_error(make_generator) -> None:
    generator = make_generator([research_reply(), ProviderError(500, "server")])
    with pytest.raises(PipelineError) as info:
        run(generator)
    assert info.value.state == PipelineState.WRITER_CALL.value


#============================================
def test_loose_script_fields_are_coerced(make_generator) -> None:
    loose = script("Loose one")
    loose.update(word_count="1,000 words", estimated_audio_minutes="8", confidence_score={"overall": 140.6})
    generator = make_generator([research_reply(), json.dumps({"scripts": [loose, "not a dict"]})])
    result = run(generator)

    assert len(result.scripts) == 1
    assert result.scripts[0].word_count is None
    assert result.scripts[0].estimated_audio_minutes == 8.0
    assert result.scripts[0].confidence_score.overall == 100


#============================================
def test_writer_text_fields_with_other_types(make_generator) -> None:
    """
    Numbers and lists in text fields become strings; objects are dropped.
    """
    loose = script("ignored")
    loose.update(title=2024, category=["drama", "culture"], hook={"text": "?"}, topic=7.5)
    generator = make_generator([research_reply(), json.dumps({"scripts": [loose]})])
    result = run(generator)

    assert generator.state == PipelineState.SUCCESS
    record = result.scripts[0]
    assert record.title == "2024"
    assert record.category == "drama, culture"
    assert record.hook is None
    assert record.topic == "7.5"


#============================================
def test_research_topic_with_number(make_generator) -> None:
    research = json.loads(research_reply())
    research["selected_topics"][0]["topic"] = 2024
    research["selected_topics"][1]["angle"] = ["money", "villages"]
    generator = make_generator([json.dumps(research), writer_reply()])
    result = run(generator)

    assert generator.state == PipelineState.SUCCESS
    assert result.research.selected_topics[0].topic == "2024"
    assert result.research.selected_topics[1].angle == "money, villages"
    assert '"topic": "2024"' in generator.llm.calls[1]["prompt"]


#============================================
@pytest.mark.parametrize("value", [float("nan"), float("inf"), "NaN"])
def test_non_finite_confidence_is_null(make_generator, value) -> None:
    loose = script("Odd score")
    loose["confidence_score"]["overall"] = value
    loose["estimated_audio_minutes"] = value
    generator = make_generator([research_reply(), json.dumps({"scripts": [loose]})])
    result = run(generator)

    assert generator.state == PipelineState.SUCCESS
    assert result.scripts[0].confidence_score.overall is None
    assert result.scripts[0].confidence_score.hook_strength == 85
    assert result.scripts[0].estimated_audio_minutes is None
    assert result.totals.total_audio_minutes == 0


#============================================
def test_invalid_script_item_is_dropped(make_generator) -> None:
    broken = script("Broken")
    broken["error"] = {"code": 1}
    generator = make_generator([research_reply(), json.dumps({"scripts": [broken, script("Fine")]})])
    result = run(generator)

    assert generator.state == PipelineState.SUCCESS
    assert [s.title for s in result.scripts] == ["Fine"]


#============================================
def test_cost_uses_reply_lengths(make_generator) -> None:
    research, writer = research_reply(), writer_reply()
    generator = make_generator([research, writer])
    result = run(generator)

    expected_output = -(-(len(research) + len(writer)) // 4)
    assert result.cost_analysis.ai.tokens.output == expected_output
    assert result.cost_analysis.ai.tokens.input == 1375


#============================================
def test_missing_key_is_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        ScriptGenerator(Settings(_env_file=None, openai_api_key=None))


#============================================
def test_model_calls_logged_with_temperature(make_generator, caplog) -> None:
    caplog.set_level(logging.INFO, logger="app.services.generator")
    run(make_generator([research_reply(), writer_reply()]))

    messages = [r.getMessage() for r in caplog.records]
    assert any(m.startswith("research agent (temperature 0.7)") for m in messages)
    assert any(m.startswith("writer agent (temperature 0.8)") for m in messages)
