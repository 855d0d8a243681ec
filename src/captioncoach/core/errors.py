"""Exception taxonomy for Caption Coach.

Each failure kind the orchestrator distinguishes has its own class:

- :class:`InvalidInput` — the caller sent something the validator rejects.
  Never retried and never reaches the provider.
- :class:`GenerationError` and its subclasses — the provider call failed.
  The gateway translates SDK exceptions into these at its boundary.
- :class:`SchemaViolation` — the provider answered, but not in the agreed
  JSON shape.
"""

from __future__ import annotations


class CaptionCoachError(Exception):
    """Base class for every error raised by Caption Coach."""


class InvalidInput(CaptionCoachError):
    """User input failed validation.

    The message records which rule failed and is meant for logs; the HTTP
    layer always answers with a generic ``"Invalid input"`` body.
    """


class GenerationError(CaptionCoachError):
    """The generation provider could not produce a reply."""


class RateLimited(GenerationError):
    """The provider is throttling requests.

    Attributes:
        retry_after: Wait advised by the provider in seconds, or ``None``
            when it sent no usable hint.
    """

    def __init__(self, message: str = "Rate limited by provider", retry_after: float | None = None):
        super().__init__(message)
        self.retry_after = retry_after


class Unauthorized(GenerationError):
    """The provider rejected our credentials (HTTP 401/403)."""


class ProviderError(GenerationError):
    """Any other provider or transport failure."""


class EmptyResponse(ProviderError):
    """The provider replied without any text content."""


class SchemaViolation(CaptionCoachError):
    """The provider reply does not match the expected JSON schema."""
