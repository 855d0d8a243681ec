"""Strict parsing of provider replies into result items.

The reply must be a JSON object with an ``items`` array holding exactly
five ``{text, hashtags}`` objects (captions) or exactly three ``{text}``
objects (bio).  Every field must be a string.  Strings are trimmed and
must not be empty after trimming.  Extra keys are ignored.

Content rules (length caps, safety) are only requested in the prompt and
are not enforced here.

Schema checks are delegated to strict Pydantic models; any decoding or
validation failure surfaces as :class:`SchemaViolation`.
"""

from __future__ import annotations

import json
import logging

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import SchemaViolation
from .models import ITEM_COUNTS, BioItem, CaptionItem, GenerationResult, Mode

logger = logging.getLogger(__name__)


class _StrictEntry(BaseModel):
    model_config = ConfigDict(strict=True, str_strip_whitespace=True, extra="ignore")


class _CaptionEntry(_StrictEntry):
    text: str = Field(min_length=1)
    hashtags: str = Field(min_length=1)


class _BioEntry(_StrictEntry):
    text: str = Field(min_length=1)


class _CaptionsPayload(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore")

    items: list[_CaptionEntry] = Field(
        min_length=ITEM_COUNTS[Mode.CAPTIONS],
        max_length=ITEM_COUNTS[Mode.CAPTIONS],
    )


class _BioPayload(BaseModel):
    model_config = ConfigDict(strict=True, extra="ignore")

    items: list[_BioEntry] = Field(
        min_length=ITEM_COUNTS[Mode.BIO],
        max_length=ITEM_COUNTS[Mode.BIO],
    )


def parse_reply(raw: str, mode: Mode) -> GenerationResult:
    """Parse a raw provider reply for *mode*.

    Args:
        raw: Reply text returned by the gateway.
        mode: Mode of the request the reply answers.

    Returns:
        A :class:`GenerationResult` with trimmed items.

    Raises:
        SchemaViolation: If the reply is not JSON or does not match the
            mode's schema.
    """
    try:
        decoded = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        raise SchemaViolation(f"Reply is not valid JSON: {e}") from e

    try:
        if mode is Mode.CAPTIONS:
            captions = _CaptionsPayload.model_validate(decoded)
            items: tuple = tuple(
                CaptionItem(text=entry.text, hashtags=entry.hashtags) for entry in captions.items
            )
        elif mode is Mode.BIO:
            bios = _BioPayload.model_validate(decoded)
            items = tuple(BioItem(text=entry.text) for entry in bios.items)
        else:
            raise SchemaViolation(f"Unhandled mode: {mode!r}")
    except ValidationError as e:
        logger.debug("Schema validation errors: %s", e.errors())
        raise SchemaViolation(f"Reply does not match the {mode.value} schema") from e

    return GenerationResult(mode=mode, items=items)
