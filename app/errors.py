"""Error types raised across the generation pipeline and its client."""

from typing import Optional


class KahaaniError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(KahaaniError):
    """A required credential or setting is missing."""


class UpstreamFeedError(KahaaniError):
    """A single feed request failed. Recovered inside the feed layer."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Feed fetch failed for {url}: {reason}")
        self.url = url
        self.reason = reason


class ProviderError(KahaaniError):
    """The language-model provider answered with a non-success status."""

    def __init__(self, status_code: Optional[int], message: str):
        code = status_code if status_code is not None else "no response"
        super().__init__(f"OpenAI API error ({code}): {message}")
        self.status_code = status_code


class DecodeFailureError(KahaaniError):
    """No JSON object could be recovered from a model reply."""

    def __init__(self, stage: str, reason: str, raw_excerpt: str = ""):
        super().__init__(f"Cannot parse {stage} response: {reason}")
        self.stage = stage
        self.reason = reason
        self.raw_excerpt = raw_excerpt


class PipelineError(KahaaniError):
    """Any failure that aborted a generation, tagged with the state it hit."""

    def __init__(self, state: str, cause: BaseException):
        super().__init__(f"Generation failed during {state}: {cause}")
        self.state = state
        self.cause = cause


# Client-side conditions

class GenerationInProgress(KahaaniError):
    """A generation is already running for this client."""


class GenerationFailed(KahaaniError):
    """A generation request failed; carries a user-facing category."""

    def __init__(self, category: str, message: str, detail: str = ""):
        super().__init__(message)
        self.category = category
        self.message = message
        self.detail = detail


class GenerationTimeout(GenerationFailed):
    """The client aborted the request after its wall-clock budget."""

    def __init__(self, message: str, detail: str = ""):
        super().__init__("timeout", message, detail)
