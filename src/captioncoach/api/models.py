"""Pydantic response models for the Caption Coach API.

These models define the JSON bodies returned by ``POST /api/captions`` and
feed FastAPI's OpenAPI documentation.  Requests are multipart forms and are
validated by :mod:`captioncoach.core.validation` instead.

Models
------
CaptionsResponse
    Success body in captions mode — five ``{text, hashtags}`` items.
BioResponse
    Success body in bio mode — three ``{text}`` items.
ErrorResponse
    Body of every non-200 response.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from captioncoach.core.models import GenerationResult, Mode
from captioncoach.core.orchestrator import GenerationOutcome


class CaptionItemModel(BaseModel):
    """One caption with its hashtag line."""

    text: str = Field(..., description="Single-sentence caption.")
    hashtags: str = Field(..., description="Space-separated lowercase hashtags.")


class BioItemModel(BaseModel):
    """One short bio."""

    text: str = Field(..., description="One to two sentence bio.")


class CaptionsResponse(BaseModel):
    """Success body for captions mode."""

    mode: Literal["captions"] = "captions"
    items: list[CaptionItemModel] = Field(..., min_length=5, max_length=5)


class BioResponse(BaseModel):
    """Success body for bio mode."""

    mode: Literal["bio"] = "bio"
    items: list[BioItemModel] = Field(..., min_length=3, max_length=3)


class ErrorResponse(BaseModel):
    """Body of an error response (400, 429 or 500)."""

    error: str = Field(..., description="User-facing error message.")


def result_to_response(result: GenerationResult) -> CaptionsResponse | BioResponse:
    """Convert a core result into its response model."""
    if result.mode is Mode.CAPTIONS:
        return CaptionsResponse.model_validate(result.to_dict())
    return BioResponse.model_validate(result.to_dict())


def outcome_to_body(outcome: GenerationOutcome) -> dict:
    """Serialise an orchestrator outcome to a JSON-ready dictionary."""
    if outcome.result is not None:
        return result_to_response(outcome.result).model_dump()
    return ErrorResponse(error=outcome.error or "Something went wrong").model_dump()
