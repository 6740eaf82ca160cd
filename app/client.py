"""
Client for the generation endpoint.

Owns the history store: used topics go out as `exclude_topics`, successful
results come back into history. One generation at a time per client.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from app.config import Settings
from app.errors import GenerationFailed, GenerationInProgress, GenerationTimeout
from app.models import ContentMode, GenerationResult, ScriptLanguage
from app.services.history import HistoryStore, JsonFileBackend

logger = logging.getLogger(__name__)

SERVER = "server"
TIMEOUT = "timeout"
CONNECTIVITY = "connectivity"
UNKNOWN = "unknown"

FRIENDLY_MESSAGES = {
    SERVER: "Our AI is taking a moment. Please try again.",
    TIMEOUT: "The request took too long. Please try again — it usually works on the second attempt.",
    CONNECTIVITY: "Please check your internet connection and try again.",
    UNKNOWN: "Something went wrong. Please try again.",
}


def failure(category: str, detail: str = "") -> GenerationFailed:
    if category == TIMEOUT:
        return GenerationTimeout(FRIENDLY_MESSAGES[TIMEOUT], detail)
    return GenerationFailed(category, FRIENDLY_MESSAGES[category], detail)


class KahaaniClient:
    """Calls POST /api/generate with a wall-clock budget."""

    def __init__(
        self,
        api_url: str,
        history: Optional[HistoryStore] = None,
        timeout: float = 180.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url
        self.history = history
        self.timeout = timeout
        self._transport = transport
        self._busy = False

    @classmethod
    def from_settings(cls, config: Settings) -> "KahaaniClient":
        history = HistoryStore(
            JsonFileBackend(config.history_path, max_bytes=config.history_max_bytes),
            capacity=config.history_capacity,
        )
        return cls(config.api_url, history=history, timeout=config.client_timeout_sec)

    @property
    def busy(self) -> bool:
        return self._busy

    async def generate(
        self,
        mode: ContentMode = ContentMode.BOTH,
        language: ScriptLanguage = ScriptLanguage.EN,
    ) -> GenerationResult:
        """
        Run one generation. Raises GenerationInProgress if one is already
        running, GenerationTimeout when the budget runs out, and
        GenerationFailed for everything else.
        """
        if self._busy:
            raise GenerationInProgress("A generation is already running")

        self._busy = True
        try:
            payload = {
                "mode": ContentMode(mode).value,
                "language": ScriptLanguage(language).value,
                "exclude_topics": self.history.used_topics() if self.history else [],
            }
            try:
                data = await asyncio.wait_for(self._post(payload), timeout=self.timeout)
            except (asyncio.TimeoutError, httpx.TimeoutException) as e:
                logger.warning(f"Generation aborted after {self.timeout}s")
                raise failure(TIMEOUT, f"timeout: {e}") from e
            except httpx.TransportError as e:
                raise failure(CONNECTIVITY, f"{type(e).__name__}: {e}") from e

            try:
                result = GenerationResult.model_validate(data)
            except ValidationError as e:
                raise failure(UNKNOWN, f"Malformed response: {e}") from e

            if self.history is not None:
                self.history.append(result)
            return result
        finally:
            self._busy = False

    async def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(self.api_url, json=payload)

        if response.status_code >= 500:
            raise failure(SERVER, f"Server error: {response.status_code}")
        if not response.is_success:
            raise failure(UNKNOWN, f"Server error: {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise failure(UNKNOWN, f"Invalid JSON: {e}") from e

        if not isinstance(data, dict) or data.get("status") != "success":
            error = data.get("error") if isinstance(data, dict) else None
            raise failure(UNKNOWN, error or "Generation failed")
        return data
