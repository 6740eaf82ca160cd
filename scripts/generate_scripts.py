#!/usr/bin/env python3
"""
Generate scripts from the command line and browse local history.

  python scripts/generate_scripts.py generate --mode inform --language hi
  python scripts/generate_scripts.py generate --remote      # via the running API
  python scripts/generate_scripts.py history
  python scripts/generate_scripts.py show <entry_id>
  python scripts/generate_scripts.py clear
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import argparse
import asyncio
import json
import logging

from app.client import KahaaniClient
from app.config import settings
from app.errors import GenerationFailed, GenerationInProgress, KahaaniError
from app.models import ContentMode, GenerateRequest, GenerationResult, ScriptLanguage
from app.services.generator import ScriptGenerator
from app.services.history import HistoryStore, JsonFileBackend, to_result


def open_history() -> HistoryStore:
    return HistoryStore(
        JsonFileBackend(settings.history_path, max_bytes=settings.history_max_bytes),
        capacity=settings.history_capacity,
    )


def print_result(result: GenerationResult):
    print("=" * 60)
    print(f"Research: {result.research.summary}")
    print(f"Topics analyzed: {result.research.topics_analyzed}")
    print("=" * 60)
    for i, script in enumerate(result.scripts, 1):
        if script.is_degraded:
            print(f"\n{i}. [{script.error}] {(script.raw or '')[:200]}")
            continue
        score = script.confidence_score.overall if script.confidence_score else "?"
        print(f"\n{i}. {script.title} ({script.content_type}, {script.category})")
        print(f"   {script.word_count} words, ~{script.estimated_audio_minutes} min, confidence {score}")
        print(f"   Hook: {script.hook}")

    cost = result.cost_analysis
    print("\n" + "-" * 60)
    print(f"Total: {result.totals.total_words} words, {result.totals.total_audio_minutes} min")
    print(f"AI cost: ₹{cost.ai.total_inr} (${cost.ai.total_usd}), human: ₹{cost.human.total_inr}")
    print(f"Savings: {cost.savings.multiplier} cheaper, ₹{cost.savings.saved_inr} saved")


async def generate_local(mode: str, language: str) -> GenerationResult:
    history = open_history()
    generator = ScriptGenerator(settings)
    request = GenerateRequest(mode=mode, language=language, exclude_topics=history.used_topics())
    result = await generator.generate(request)
    history.append(result)
    return result


async def generate_remote(mode: str, language: str) -> GenerationResult:
    client = KahaaniClient.from_settings(settings)
    return await client.generate(mode, language)


def cmd_generate(args) -> int:
    runner = generate_remote if args.remote else generate_local
    try:
        result = asyncio.run(runner(args.mode, args.language))
    except (GenerationFailed, GenerationInProgress) as e:
        print(f"❌ {e}")
        return 1
    except KahaaniError as e:
        logging.getLogger(__name__).debug("Generation failed", exc_info=True)
        print(f"❌ Script generation failed: {e}")
        return 1

    if args.json:
        print(json.dumps(result.model_dump(mode="json", exclude_none=True), indent=2, ensure_ascii=False))
    else:
        print_result(result)
    return 0


def cmd_history(args) -> int:
    entries = open_history().list()
    if not entries:
        print("No history yet.")
        return 0
    for entry in entries:
        titles = ", ".join(s.title or s.topic or "?" for s in entry.scripts)
        print(f"{entry.id}  {entry.timestamp:%Y-%m-%d %H:%M}  {entry.mode.value}/{entry.language.value}  {titles}")
    return 0


def cmd_show(args) -> int:
    entry = open_history().get(args.entry_id)
    if entry is None:
        print(f"No history entry {args.entry_id}")
        return 1
    print(json.dumps(to_result(entry), indent=2, ensure_ascii=False))
    return 0


def cmd_clear(args) -> int:
    open_history().clear()
    print("History cleared.")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Kahaani AI script generator")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Research trending topics and write 3 scripts")
    gen.add_argument("--mode", choices=[m.value for m in ContentMode], default="both")
    gen.add_argument("--language", choices=[l.value for l in ScriptLanguage], default="en")
    gen.add_argument("--remote", action="store_true", help=f"Call the API at {settings.api_url}")
    gen.add_argument("--json", action="store_true", help="Print the raw result")
    gen.set_defaults(func=cmd_generate)

    sub.add_parser("history", help="List past generations").set_defaults(func=cmd_history)

    show = sub.add_parser("show", help="Print a past generation")
    show.add_argument("entry_id")
    show.set_defaults(func=cmd_show)

    sub.add_parser("clear", help="Delete local history").set_defaults(func=cmd_clear)

    args = parser.parse_args()
    logging.basicConfig(level=settings.log_level, format="%(levelname)s %(name)s: %(message)s")
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
