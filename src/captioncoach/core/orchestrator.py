"""Request orchestration: validate, prompt, generate, parse, fall back.

:class:`Orchestrator` is the single entry point for a generation request.
It sequences the other core components and converts every failure into an
HTTP-style :class:`GenerationOutcome`.

Request Lifecycle
-----------------
::

    validate mode ──invalid──> 400
        │
        ├─ no credentials ──> fallback (200)
        │
    validate fields ──invalid──> 400
        │
    build prompt ─> gateway ─> parse ──ok──> result (200)
                                 │
                          schema violation
                                 │
                 corrective prompt ─> gateway ─> parse ──ok──> result (200)
                                 │
                            any failure ──> fallback (200)

Failures of the *first* gateway call are mapped by :func:`error_outcome`:
rate limiting becomes fallback content, rejected credentials become a 500
with a credentials message, anything else becomes fallback content.  Only
when the mode is unknown do rate limits and unexpected errors reach the
caller as 429/500.

Fallback results are returned with status 200 and have the same shape as
generated ones, so callers always receive usable copy once the mode is
known.  At most one corrective re-prompt is sent per request.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from .config import CaptionCoachConfig
from .errors import InvalidInput, RateLimited, SchemaViolation, Unauthorized
from .fallback import fallback_result
from .gateway import ProviderGateway
from .models import GenerationResult, Mode, RequestParameters
from .parser import parse_reply
from .prompt_builder import build_corrective_messages, build_messages
from .validation import validate_mode, validate_request

logger = logging.getLogger(__name__)

INVALID_INPUT_MESSAGE = "Invalid input"
RATE_LIMITED_MESSAGE = "Easy there. Try again in a moment."
CREDENTIALS_MESSAGE = "Check your OpenAI credentials."
GENERIC_ERROR_MESSAGE = "Something went wrong"


@dataclass(frozen=True)
class GenerationOutcome:
    """Terminal state of a request: a result or an error, with a status.

    Attributes:
        status_code: HTTP status to answer with.
        result: Items to return on success (generated or fallback).
        error: User-facing error message when there is no result.
    """

    status_code: int
    result: GenerationResult | None = None
    error: str | None = None

    @classmethod
    def success(cls, result: GenerationResult) -> GenerationOutcome:
        return cls(status_code=200, result=result)

    @classmethod
    def failure(cls, status_code: int, error: str) -> GenerationOutcome:
        return cls(status_code=status_code, error=error)

    @property
    def body(self) -> dict:
        """JSON body for the HTTP response."""
        if self.result is not None:
            return self.result.to_dict()
        return {"error": self.error}


def error_outcome(exc: Exception, mode: Mode | None) -> GenerationOutcome:
    """Map an unrecovered failure to the response the caller receives.

    Args:
        exc: The failure that ended the pipeline.
        mode: The request mode, or ``None`` if it was never established.

    Returns:
        Fallback content when possible, otherwise an error outcome.
    """
    if isinstance(exc, InvalidInput):
        return GenerationOutcome.failure(400, INVALID_INPUT_MESSAGE)

    if isinstance(exc, RateLimited):
        if mode is not None:
            logger.warning("Rate limit persisted, serving %s fallback content.", mode.value)
            return GenerationOutcome.success(fallback_result(mode))
        return GenerationOutcome.failure(429, RATE_LIMITED_MESSAGE)

    if isinstance(exc, Unauthorized):
        return GenerationOutcome.failure(500, CREDENTIALS_MESSAGE)

    if mode is not None:
        logger.warning(
            "Generation failed (%s), serving %s fallback content.", type(exc).__name__, mode.value
        )
        return GenerationOutcome.success(fallback_result(mode))
    return GenerationOutcome.failure(500, GENERIC_ERROR_MESSAGE)


class Orchestrator:
    """Runs the generation pipeline for one request at a time.

    The orchestrator keeps no per-request state, so a single instance is
    shared by all requests.

    Attributes:
        _gateway: Provider gateway, or ``None`` when no credentials are
            configured (demo mode).
    """

    def __init__(self, gateway: ProviderGateway | None) -> None:
        self._gateway = gateway

    @classmethod
    def from_config(cls, config: CaptionCoachConfig) -> Orchestrator:
        """Build an orchestrator, in demo mode if *config* has no API key."""
        if not config.has_credentials:
            logger.info("No OpenAI API key configured, running in demo mode.")
            return cls(None)
        return cls(ProviderGateway.from_config(config))

    @property
    def demo_mode(self) -> bool:
        return self._gateway is None

    async def handle(
        self, fields: Mapping[str, Any], images: Sequence[Any] = ()
    ) -> GenerationOutcome:
        """Process one submitted form.

        Args:
            fields: Raw text fields (``mode``, ``tone``, ``guidance``,
                ``maxChars``).
            images: Every value submitted under ``image``.

        Returns:
            The outcome to send back to the caller.
        """
        mode: Mode | None = None
        try:
            mode = validate_mode(fields.get("mode"))

            if self._gateway is None:
                return GenerationOutcome.success(fallback_result(mode))

            params = validate_request(
                mode.value,
                raw_tone=fields.get("tone"),
                raw_guidance=fields.get("guidance"),
                raw_max_chars=fields.get("maxChars"),
                images=images,
            )
            result = await self.generate(params)
            return GenerationOutcome.success(result)
        except InvalidInput as exc:
            logger.info("Rejected request: %s", exc)
            return error_outcome(exc, mode)
        except Exception as exc:
            logger.exception("Generation request failed")
            return error_outcome(exc, mode)

    async def generate(self, params: RequestParameters) -> GenerationResult:
        """Generate items for validated parameters.

        Errors from the first provider call propagate to the caller.  A
        schema violation triggers exactly one corrective re-prompt; if that
        attempt fails in any way the fallback content is returned.

        Raises:
            GenerationError: If the first provider call fails.
        """
        if self._gateway is None:
            return fallback_result(params.mode)

        messages = build_messages(params)
        raw = await self._gateway.complete(messages)

        try:
            return parse_reply(raw, params.mode)
        except SchemaViolation as exc:
            logger.warning(
                "Invalid %s reply (%s), asking the model to correct it.", params.mode.value, exc
            )

        retry_messages = build_corrective_messages(params.mode, messages, raw)
        try:
            raw = await self._gateway.complete(retry_messages)
            return parse_reply(raw, params.mode)
        except Exception as exc:
            logger.warning(
                "Corrective attempt failed (%s: %s), serving %s fallback content.",
                type(exc).__name__,
                exc,
                params.mode.value,
            )
            return fallback_result(params.mode)
