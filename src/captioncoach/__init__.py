"""Caption Coach - caption and short-bio generation API."""

__version__ = "0.1.0"

from captioncoach.core.config import CaptionCoachConfig, config
from captioncoach.core.orchestrator import GenerationOutcome, Orchestrator

__all__ = [
    "CaptionCoachConfig",
    "GenerationOutcome",
    "Orchestrator",
    "config",
]
