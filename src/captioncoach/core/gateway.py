"""Provider gateway: one chat completion with bounded rate-limit retry.

:class:`ProviderGateway` is the only code that talks to the OpenAI SDK.  It
turns a message list into trimmed reply text, or raises one of the
:mod:`captioncoach.core.errors` generation errors.

Retry Policy
------------
- At most :data:`MAX_ATTEMPTS` calls per :meth:`ProviderGateway.complete`.
- Only rate limiting is retried.  The wait before the next attempt is the
  provider's ``retry-after`` hint when it is a positive number, otherwise
  :data:`DEFAULT_RETRY_AFTER_SECONDS`.  No jitter, no exponential growth.
- A rate limit on the final attempt is raised as :class:`RateLimited`.
- Every other failure (credentials, server errors, connection problems,
  empty replies) is raised immediately.

The SDK's own retry loop is disabled (``max_retries=0``) so that the attempt
ceiling above is the real one.

Error Translation
-----------------
:func:`translate_provider_error` maps SDK exceptions to the domain
taxonomy in a single place:

==============================================  ================
SDK exception                                   Domain error
==============================================  ================
``RateLimitError`` / status 429                 ``RateLimited``
``AuthenticationError``, ``PermissionDenied``   ``Unauthorized``
Any other ``openai.APIError``                   ``ProviderError``
==============================================  ================
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable
from typing import Any

import openai
from openai import AsyncOpenAI

from .config import CaptionCoachConfig
from .errors import EmptyResponse, GenerationError, ProviderError, RateLimited, Unauthorized
from .prompt_builder import PromptMessages

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
DEFAULT_RETRY_AFTER_SECONDS = 20.0

SleepFn = Callable[[float], Awaitable[Any]]


def parse_retry_after(value: str | None) -> float | None:
    """Parse a ``retry-after`` header value in seconds.

    Returns:
        The wait in seconds, or ``None`` if the value is missing, not a
        number, or not positive.
    """
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    if not math.isfinite(seconds) or seconds <= 0:
        return None
    return seconds


def translate_provider_error(exc: openai.APIError) -> GenerationError:
    """Map an OpenAI SDK exception to a domain :class:`GenerationError`."""
    status_code = getattr(exc, "status_code", None)

    if isinstance(exc, openai.RateLimitError) or status_code == 429:
        response = getattr(exc, "response", None)
        header = response.headers.get("retry-after") if response is not None else None
        return RateLimited(str(exc), retry_after=parse_retry_after(header))

    denied = (openai.AuthenticationError, openai.PermissionDeniedError)
    if isinstance(exc, denied) or status_code in (401, 403):
        return Unauthorized(str(exc))

    return ProviderError(str(exc))


def extract_reply_text(completion: Any) -> str:
    """Pull the reply text out of a chat completion.

    The message content may be a plain string or a list of content parts;
    parts are joined with newlines.  The result is stripped.

    Raises:
        EmptyResponse: If the reply has no text.
    """
    choices = getattr(completion, "choices", None) or []
    message = getattr(choices[0], "message", None) if choices else None
    content = getattr(message, "content", None)

    if isinstance(content, list):
        parts: list[str] = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict):
                parts.append(part.get("text") or "")
            else:
                parts.append(getattr(part, "text", None) or "")
        text = "\n".join(parts).strip()
    elif content:
        text = str(content).strip()
    else:
        text = ""

    if not text:
        raise EmptyResponse("Empty response from model")
    return text


def create_client(config: CaptionCoachConfig) -> AsyncOpenAI:
    """Create the async OpenAI client described by *config*."""
    return AsyncOpenAI(
        api_key=config.openai_api_key,
        base_url=config.openai_base_url,
        timeout=config.request_timeout,
        max_retries=0,
    )


class ProviderGateway:
    """Calls the chat-completions API with bounded rate-limit retry.

    The gateway holds no per-request state and can be shared by concurrent
    requests.

    Attributes:
        _client: The async OpenAI client (or a test double exposing
            ``chat.completions.create``).
        _model: Model name sent with every call.
        _temperature: Sampling temperature sent with every call.
        _sleep: Coroutine used to wait between rate-limited attempts.
    """

    def __init__(
        self,
        client: Any,
        *,
        model: str,
        temperature: float,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = temperature
        self._sleep = sleep

    @classmethod
    def from_config(
        cls, config: CaptionCoachConfig, *, sleep: SleepFn = asyncio.sleep
    ) -> ProviderGateway:
        """Build a gateway with a real OpenAI client from configuration."""
        return cls(
            create_client(config),
            model=config.openai_model,
            temperature=config.temperature,
            sleep=sleep,
        )

    async def complete(self, messages: PromptMessages) -> str:
        """Send *messages* and return the trimmed reply text.

        Args:
            messages: Chat messages in OpenAI format.

        Returns:
            Non-empty reply text.

        Raises:
            RateLimited: If every attempt was rate limited.
            Unauthorized: If the provider rejected the credentials.
            EmptyResponse: If the provider replied without text.
            ProviderError: On any other SDK error.
        """
        last_error: GenerationError | None = None

        for attempt in range(1, MAX_ATTEMPTS + 1):
            try:
                completion = await self._client.chat.completions.create(
                    model=self._model,
                    temperature=self._temperature,
                    messages=messages,
                )
            except openai.APIError as exc:
                error = translate_provider_error(exc)
                if not isinstance(error, RateLimited):
                    logger.error("Provider call failed (%s): %s", type(error).__name__, exc)
                    raise error from exc

                last_error = error
                if attempt == MAX_ATTEMPTS:
                    logger.warning("Rate limited on final attempt %d/%d.", attempt, MAX_ATTEMPTS)
                    break

                wait = error.retry_after or DEFAULT_RETRY_AFTER_SECONDS
                logger.warning(
                    "Rate limited on attempt %d/%d, waiting %.1fs before retrying.",
                    attempt,
                    MAX_ATTEMPTS,
                    wait,
                )
                await self._sleep(wait)
                continue

            return extract_reply_text(completion)

        raise last_error or ProviderError("Provider request failed")
