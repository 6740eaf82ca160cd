"""
Recover a JSON object from a language-model reply.

Models asked for bare JSON still sometimes wrap it in a ```json fence or
surround it with prose. Strategies, first success wins:
  1. the whole reply
  2. the first fenced code block
  3. the span from the first "{" to the last "}"
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

RAW_EXCERPT_CHARS = 500

_FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")


@dataclass(frozen=True)
class DecodeSuccess:
    value: Dict[str, Any]
    strategy: str  # "direct" | "fenced" | "braces"


@dataclass(frozen=True)
class DecodeFailure:
    reason: str
    raw_excerpt: str


DecodeResult = Union[DecodeSuccess, DecodeFailure]


def _load_object(text: str) -> Optional[Dict[str, Any]]:
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None
    return value if isinstance(value, dict) else None


def _fenced(raw: str) -> Optional[str]:
    match = _FENCE_RE.search(raw)
    return match.group(1) if match else None


def _braced(raw: str) -> Optional[str]:
    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end <= start:
        return None
    return raw[start:end + 1]


def decode_model_json(raw: Optional[str]) -> DecodeResult:
    """Decode a model reply into a dict, or say why it could not be done."""
    raw = raw or ""
    excerpt = raw[:RAW_EXCERPT_CHARS]

    if not raw.strip():
        return DecodeFailure("empty response", excerpt)

    value = _load_object(raw)
    if value is not None:
        return DecodeSuccess(value, "direct")

    fenced = _fenced(raw)
    if fenced is not None:
        value = _load_object(fenced)
        if value is not None:
            logger.warning("Model reply was not bare JSON, decoded from fenced block")
            return DecodeSuccess(value, "fenced")

    braced = _braced(raw)
    if braced is not None:
        value = _load_object(braced)
        if value is not None:
            logger.warning("Model reply was not bare JSON, decoded from brace span")
            return DecodeSuccess(value, "braces")

    logger.warning(f"No JSON object in model reply ({len(raw)} chars)")
    return DecodeFailure("no JSON object found in response", excerpt)
