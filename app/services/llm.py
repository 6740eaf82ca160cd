"""Chat-completion client for the research and writer agents."""

import logging
from dataclasses import dataclass
from typing import Optional

import openai

from app.errors import ProviderError
from app.services.prompts import JSON_SYSTEM_PROMPT

logger = logging.getLogger(__name__)


@dataclass
class ModelReply:
    text: str
    prompt_chars: int


class ChatModel:
    """
    One chat-completion call per agent stage.

    No retries: a failed call fails the generation. Non-2xx answers become
    ProviderError carrying the HTTP status.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4.1",
        base_url: Optional[str] = None,
        timeout: float = 170.0,
    ):
        self.model = model
        self._client = openai.AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
        )

    async def complete(
        self,
        prompt: str,
        temperature: float,
        max_tokens: int,
        json_mode: bool = False,
    ) -> ModelReply:
        messages = []
        if json_mode:
            messages.append({"role": "system", "content": JSON_SYSTEM_PROMPT})
        messages.append({"role": "user", "content": prompt})

        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                **kwargs,
            )
        except openai.APIStatusError as e:
            raise ProviderError(e.status_code, str(e.message)[:500]) from e
        except openai.APIError as e:
            raise ProviderError(None, f"{type(e).__name__}: {e}") from e

        choice = response.choices[0]
        if choice.finish_reason == "length":
            logger.warning(f"{self.model} hit max tokens ({max_tokens})")

        text = choice.message.content or ""
        return ModelReply(text=text, prompt_chars=len(prompt))
