"""Core generation pipeline for Caption Coach.

This package turns a submitted form into caption or bio copy:

- **config.py**: Environment-based configuration (CAPTIONCOACH_* prefix)
- **models.py**: Modes, tones, request parameters and result items
- **errors.py**: Exception taxonomy shared by every component
- **validation.py**: Mode-dependent validation of raw form fields
- **prompt_builder.py**: Instruction templates and the corrective re-prompt
- **gateway.py**: OpenAI chat-completions call with rate-limit retry
- **parser.py**: Strict JSON schema checks on provider replies
- **fallback.py**: Canned results for demo mode and failed generations
- **orchestrator.py**: Sequences the above and maps failures to responses

Usage Example
-------------
    from captioncoach.core import Orchestrator, config

    coach = Orchestrator.from_config(config)
    outcome = await coach.handle({"mode": "bio", "guidance": "Baker of sourdough."})
    print(outcome.status_code, outcome.body)
"""

from captioncoach.core.config import CaptionCoachConfig, config
from captioncoach.core.errors import (
    CaptionCoachError,
    EmptyResponse,
    GenerationError,
    InvalidInput,
    ProviderError,
    RateLimited,
    SchemaViolation,
    Unauthorized,
)
from captioncoach.core.models import (
    BioItem,
    CaptionItem,
    GenerationResult,
    ImageUpload,
    Mode,
    RequestParameters,
    Tone,
)
from captioncoach.core.orchestrator import GenerationOutcome, Orchestrator

__all__ = [
    "BioItem",
    "CaptionCoachConfig",
    "CaptionCoachError",
    "CaptionItem",
    "EmptyResponse",
    "GenerationError",
    "GenerationOutcome",
    "GenerationResult",
    "ImageUpload",
    "InvalidInput",
    "Mode",
    "Orchestrator",
    "ProviderError",
    "RateLimited",
    "RequestParameters",
    "SchemaViolation",
    "Tone",
    "Unauthorized",
    "config",
]
