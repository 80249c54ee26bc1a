"""Text-generation provider adapters.

Each provider takes a system prompt, user content and a temperature and
returns the raw text the model produced. Providers raise ProviderError on any
failure; the structured-output gateway decides what happens next.

Usage:
    from survey_brain.core.llm import build_providers

    providers = build_providers(get_settings())
    text = providers[0].generate(system_prompt, user_content, 0.2)
"""

import json
import time
from typing import Any, Protocol, runtime_checkable

from survey_brain.core.config import Settings
from survey_brain.core.errors import ProviderError
from survey_brain.core.logging import get_logger

logger = get_logger(__name__)


@runtime_checkable
class TextGenerationProvider(Protocol):
    """One interchangeable text-generation backend."""

    name: str

    def generate(self, system_prompt: str, user_content: str, temperature: float) -> str: ...


# =============================================================================
# OpenAI
# =============================================================================


class OpenAIProvider:
    """Chat-completions provider using the official OpenAI SDK."""

    name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout: float | None = None,
        client: Any = None,
    ):
        self.model = model
        if client is None:
            from openai import OpenAI

            kwargs: dict[str, Any] = {"api_key": api_key}
            if timeout is not None:
                kwargs["timeout"] = timeout
            client = OpenAI(**kwargs)
        self._client = client

    def generate(self, system_prompt: str, user_content: str, temperature: float) -> str:
        from openai import (
            APIConnectionError,
            APIError,
            APITimeoutError,
            InternalServerError,
            RateLimitError,
        )

        try:
            response = self._client.chat.completions.create(
                model=self.model,
                temperature=temperature,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_content},
                ],
            )
        except (APIConnectionError, APITimeoutError, InternalServerError, RateLimitError) as e:
            raise ProviderError(self.name, f"{type(e).__name__}: {e}", transient=True) from e
        except APIError as e:
            raise ProviderError(self.name, f"{type(e).__name__}: {e}") from e

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise ProviderError(self.name, "Unexpected chat.completions response envelope") from e

        if not isinstance(content, str) or not content.strip():
            raise ProviderError(self.name, "No content from model")
        return content


# =============================================================================
# Anthropic
# =============================================================================


class AnthropicProvider:
    """Messages-API provider using the official Anthropic SDK."""

    name = "anthropic"

    def __init__(
        self,
        api_key: str,
        model: str,
        max_tokens: int = 4000,
        timeout: float | None = None,
        client: Any = None,
    ):
        self.model = model
        self.max_tokens = max_tokens
        if client is None:
            from anthropic import Anthropic

            kwargs: dict[str, Any] = {"api_key": api_key}
            if timeout is not None:
                kwargs["timeout"] = timeout
            client = Anthropic(**kwargs)
        self._client = client

    def generate(self, system_prompt: str, user_content: str, temperature: float) -> str:
        from anthropic import (
            APIConnectionError,
            APIError,
            APITimeoutError,
            InternalServerError,
            RateLimitError,
        )

        try:
            response = self._client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system_prompt,
                messages=[{"role": "user", "content": user_content}],
                temperature=temperature,
            )
        except (APIConnectionError, APITimeoutError, InternalServerError, RateLimitError) as e:
            raise ProviderError(self.name, f"{type(e).__name__}: {e}", transient=True) from e
        except APIError as e:
            raise ProviderError(self.name, f"{type(e).__name__}: {e}") from e

        try:
            text = "".join(
                block.text for block in response.content if getattr(block, "type", None) == "text"
            )
        except (AttributeError, TypeError) as e:
            raise ProviderError(self.name, "Unexpected messages response envelope") from e

        if not text.strip():
            raise ProviderError(self.name, "No text content from model")
        return text


# =============================================================================
# Retry decorator
# =============================================================================


class RetryingProvider:
    """Wraps a provider and retries transient failures with exponential backoff.

    Non-transient failures (bad envelope, empty output, 4xx) are re-raised
    immediately so the gateway can fall through to the next provider.
    """

    def __init__(
        self,
        inner: TextGenerationProvider,
        max_retries: int = 2,
        initial_delay: float = 1.0,
        sleep=time.sleep,
    ):
        self.inner = inner
        self.name = inner.name
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self._sleep = sleep

    def generate(self, system_prompt: str, user_content: str, temperature: float) -> str:
        for attempt in range(self.max_retries + 1):
            try:
                return self.inner.generate(system_prompt, user_content, temperature)
            except ProviderError as e:
                if not e.transient or attempt >= self.max_retries:
                    raise
                delay = self.initial_delay * (2**attempt)
                logger.warning(
                    f"{self.name} attempt {attempt + 1}/{self.max_retries + 1} failed "
                    f"({e.message}), retrying in {delay}s"
                )
                self._sleep(delay)

        raise ProviderError(self.name, "retry loop exhausted")  # unreachable


# =============================================================================
# Factory + parsing
# =============================================================================


def build_providers(settings: Settings) -> list[TextGenerationProvider]:
    """
    Build the prioritized provider list from settings.

    Providers without an API key are skipped. Unknown names in
    PROVIDER_ORDER are logged and ignored.

    Args:
        settings: Application settings

    Returns:
        Providers in priority order (possibly empty)
    """
    providers: list[TextGenerationProvider] = []

    for name in settings.provider_order:
        provider: TextGenerationProvider | None = None
        if name == "openai":
            if settings.OPENAI_API_KEY:
                provider = OpenAIProvider(
                    api_key=settings.OPENAI_API_KEY,
                    model=settings.OPENAI_MODEL,
                    timeout=settings.PROVIDER_TIMEOUT_SECONDS,
                )
        elif name == "anthropic":
            if settings.ANTHROPIC_API_KEY:
                provider = AnthropicProvider(
                    api_key=settings.ANTHROPIC_API_KEY,
                    model=settings.ANTHROPIC_MODEL,
                    max_tokens=settings.ANTHROPIC_MAX_TOKENS,
                    timeout=settings.PROVIDER_TIMEOUT_SECONDS,
                )
        else:
            logger.warning(f"Unknown provider '{name}' in PROVIDER_ORDER, ignoring")
            continue

        if provider is None:
            logger.warning(f"Provider '{name}' has no API key configured, skipping")
            continue

        if settings.PROVIDER_MAX_RETRIES > 0:
            provider = RetryingProvider(
                provider,
                max_retries=settings.PROVIDER_MAX_RETRIES,
                initial_delay=settings.PROVIDER_RETRY_DELAY,
            )
        providers.append(provider)

    return providers


def parse_json_object(raw_output: str) -> dict:
    """
    Parse model output as a single JSON object.

    Only surrounding whitespace is tolerated: no fence stripping or other
    repair is attempted.

    Raises:
        json.JSONDecodeError: If the text is not valid JSON
        ValueError: If the JSON is valid but not an object
    """
    parsed = json.loads(raw_output.strip())
    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed
