"""
Generation history: a capped, most-recent-first log of past results.

Used to keep the research agent away from topics it already covered and to
re-display old scripts. History is best-effort: a failed write is retried
with fewer entries and then dropped, never raised.
"""

import json
import logging
import random
import string
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import ValidationError

from app.models import GenerationResult, HistoryEntry, HistoryScript

logger = logging.getLogger(__name__)

STORAGE_KEY = "kahaani_history"
DEFAULT_CAPACITY = 20  # was 50 before full script text was stored
FALLBACK_SLICE = 10

_BASE36 = string.digits + string.ascii_lowercase


class StorageFullError(Exception):
    """The backend refused a write because it is over quota."""


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------

class MemoryBackend:
    """In-process key-value store with an optional per-value size limit."""

    def __init__(self, max_bytes: Optional[int] = None):
        self.max_bytes = max_bytes
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str):
        if self.max_bytes is not None and len(value.encode("utf-8")) > self.max_bytes:
            raise StorageFullError(f"{key}: value exceeds {self.max_bytes} bytes")
        self._data[key] = value

    def remove(self, key: str):
        self._data.pop(key, None)


class JsonFileBackend:
    """Key-value store kept as one JSON object in a file."""

    def __init__(self, path: Union[str, Path], max_bytes: Optional[int] = None):
        self.path = Path(path)
        self.max_bytes = max_bytes

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable history file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Optional[str]:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str):
        if self.max_bytes is not None and len(value.encode("utf-8")) > self.max_bytes:
            raise StorageFullError(f"{key}: value exceeds {self.max_bytes} bytes")
        data = self._load()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")

    def remove(self, key: str):
        data = self._load()
        if key in data:
            del data[key]
            self.path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

def _base36(n: int) -> str:
    if n == 0:
        return "0"
    digits = []
    while n:
        n, r = divmod(n, 36)
        digits.append(_BASE36[r])
    return "".join(reversed(digits))


class HistoryStore:
    """Most-recent-first ring of HistoryEntry records."""

    def __init__(
        self,
        backend,
        capacity: int = DEFAULT_CAPACITY,
        fallback_slice: int = FALLBACK_SLICE,
        key: str = STORAGE_KEY,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
    ):
        self.backend = backend
        self.capacity = capacity
        self.fallback_slice = min(fallback_slice, capacity)
        self.key = key
        self._clock = clock
        self._rng = rng or random.Random()

    def _read(self) -> List[Dict[str, Any]]:
        try:
            raw = self.backend.get(self.key)
            entries = json.loads(raw) if raw else []
        except (OSError, ValueError) as e:
            logger.warning(f"Discarding unreadable history: {e}")
            return []
        return entries if isinstance(entries, list) else []

    def _write(self, entries: List[Dict[str, Any]]):
        try:
            self.backend.set(self.key, json.dumps(entries[:self.capacity], ensure_ascii=False))
            return
        except (StorageFullError, OSError) as e:
            logger.warning(f"History write failed ({e}), retrying with {self.fallback_slice} entries")
        try:
            self.backend.set(self.key, json.dumps(entries[:self.fallback_slice], ensure_ascii=False))
        except (StorageFullError, OSError) as e:
            logger.warning(f"History write failed again, not saved: {e}")

    def _new_id(self, now: float) -> str:
        millis = int(now * 1000)
        suffix = "".join(self._rng.choice(_BASE36) for _ in range(4))
        return _base36(millis) + suffix

    def append(self, result: Union[GenerationResult, Dict[str, Any]]) -> HistoryEntry:
        """Record a generation result and return the stored entry."""
        if not isinstance(result, GenerationResult):
            result = GenerationResult.model_validate(result)

        now = self._clock()
        entry = HistoryEntry(
            id=self._new_id(now),
            timestamp=datetime.fromtimestamp(now, tz=timezone.utc),
            mode=result.params.mode,
            language=result.params.language,
            scripts=[
                HistoryScript.model_validate(s.model_dump(include=set(HistoryScript.model_fields)))
                for s in result.scripts
            ],
            totals=result.totals,
            cost_analysis=result.cost_analysis,
        )
        entries = [entry.model_dump(mode="json")] + self._read()
        self._write(entries)
        return entry

    def list(self) -> List[HistoryEntry]:
        """All entries, most recent first. Malformed records are skipped."""
        entries = []
        for raw in self._read():
            try:
                entries.append(HistoryEntry.model_validate(raw))
            except ValidationError:
                logger.debug("Skipping malformed history entry")
        return entries

    def get(self, entry_id: str) -> Optional[HistoryEntry]:
        for entry in self.list():
            if entry.id == entry_id:
                return entry
        return None

    def used_topics(self) -> List[str]:
        """Distinct lower-cased titles and topics, most recent first."""
        seen: Dict[str, None] = {}
        for entry in self.list():
            for script in entry.scripts:
                if script.title:
                    seen.setdefault(script.title.lower(), None)
                if script.topic:
                    seen.setdefault(script.topic.lower(), None)
        return list(seen)

    def clear(self):
        try:
            self.backend.remove(self.key)
        except OSError as e:
            logger.warning(f"Could not clear history: {e}")


def to_result(entry: HistoryEntry) -> Dict[str, Any]:
    """Rebuild a displayable result from a history entry."""
    return {
        "status": "success",
        "generated_at": entry.timestamp.isoformat(),
        "params": {"mode": entry.mode.value, "language": entry.language.value},
        "scripts": [s.model_dump(mode="json", exclude_none=True) for s in entry.scripts],
        "totals": entry.totals.model_dump(mode="json") if entry.totals else None,
        "cost_analysis": entry.cost_analysis.model_dump(mode="json") if entry.cost_analysis else None,
        "from_history": entry.id,
    }
