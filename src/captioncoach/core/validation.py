"""Validation of raw form input into :class:`RequestParameters`.

The validator is a set of pure functions: no network, no logging side
effects beyond debug output, no shared state.  Rules are applied in a fixed
order and the first failure wins:

1. ``mode`` must be exactly ``"captions"`` or ``"bio"``.
2. ``maxChars``, when present and non-empty, must be an integer in [40, 220].
3. Captions: tone required, guidance at most 280 characters, exactly one
   PNG/JPEG image of at most 3 MiB.
4. Bio: guidance between 10 and 400 characters, tone optional (defaults to
   Classy).

Raw values are whatever the multipart parser produced.  Non-string values in
text fields are treated as absent, matching how browsers submit forms.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Sequence
from typing import Any

from .errors import InvalidInput
from .models import DEFAULT_BIO_TONE, ImageUpload, Mode, RequestParameters, Tone

logger = logging.getLogger(__name__)

MAX_CAPTION_GUIDANCE_LENGTH = 280
MIN_BIO_GUIDANCE_LENGTH = 10
MAX_BIO_GUIDANCE_LENGTH = 400
MAX_CHARS_MIN = 40
MAX_CHARS_MAX = 220
ALLOWED_IMAGE_TYPES = frozenset({"image/png", "image/jpeg"})
MAX_IMAGE_BYTES = 3 * 1024 * 1024

# ASCII decimal digits only; float() would also take "1_00" and full-width digits.
_MAX_CHARS_PATTERN = re.compile(r"\s*[+-]?[0-9]+(?:\.[0-9]*)?\s*")


def validate_mode(raw_mode: Any) -> Mode:
    """Resolve the request mode.

    Args:
        raw_mode: Raw ``mode`` field value.

    Returns:
        The matching :class:`Mode`.

    Raises:
        InvalidInput: Unless the value is exactly ``"captions"`` or ``"bio"``.
    """
    if raw_mode == Mode.CAPTIONS.value:
        return Mode.CAPTIONS
    if raw_mode == Mode.BIO.value:
        return Mode.BIO
    raise InvalidInput(f"Unknown mode: {raw_mode!r}")


def parse_max_chars(raw_max_chars: Any) -> int | None:
    """Parse the optional per-item character cap.

    Numeric strings such as ``"120"`` or ``"120.0"`` are accepted as long as
    they denote a whole number.  Empty or absent values mean "no cap".

    Raises:
        InvalidInput: If the value is not a whole number in [40, 220].
    """
    if not isinstance(raw_max_chars, str) or raw_max_chars == "":
        return None

    if not _MAX_CHARS_PATTERN.fullmatch(raw_max_chars):
        raise InvalidInput(f"maxChars is not numeric: {raw_max_chars!r}")

    number = float(raw_max_chars)

    if not math.isfinite(number) or not number.is_integer():
        raise InvalidInput(f"maxChars must be a whole number, got {raw_max_chars!r}")

    value = int(number)
    if value < MAX_CHARS_MIN or value > MAX_CHARS_MAX:
        raise InvalidInput(f"maxChars must be {MAX_CHARS_MIN}-{MAX_CHARS_MAX}, got {value}")
    return value


def parse_tone(raw_tone: Any) -> Tone | None:
    """Parse an optional tone, case-insensitively.

    Returns:
        The matching :class:`Tone`, or ``None`` if no tone (or an empty one)
        was sent.

    Raises:
        InvalidInput: If a tone was sent but is not one of the allowed values.
    """
    if not isinstance(raw_tone, str) or raw_tone == "":
        return None
    try:
        return Tone(raw_tone.lower())
    except ValueError as e:
        raise InvalidInput(f"Unknown tone: {raw_tone!r}") from e


def validate_image(images: Sequence[Any]) -> ImageUpload:
    """Check the uploaded image for captions mode.

    Args:
        images: Every value submitted under the ``image`` field.

    Returns:
        The single valid :class:`ImageUpload`.

    Raises:
        InvalidInput: If there is not exactly one file, or its type or size
            is not allowed.
    """
    if len(images) != 1 or not isinstance(images[0], ImageUpload):
        raise InvalidInput(f"Expected exactly one image file, got {len(images)} value(s)")

    image = images[0]
    if image.mime_type not in ALLOWED_IMAGE_TYPES:
        raise InvalidInput(f"Unsupported image type: {image.mime_type!r}")
    if image.size_bytes > MAX_IMAGE_BYTES:
        raise InvalidInput(f"Image too large: {image.size_bytes} bytes")
    return image


def validate_request(
    raw_mode: Any,
    *,
    raw_tone: Any = None,
    raw_guidance: Any = None,
    raw_max_chars: Any = None,
    images: Sequence[Any] = (),
) -> RequestParameters:
    """Validate raw form fields and build :class:`RequestParameters`.

    Args:
        raw_mode: Raw ``mode`` field.
        raw_tone: Raw ``tone`` field, or ``None``.
        raw_guidance: Raw ``guidance`` field, or ``None``.
        raw_max_chars: Raw ``maxChars`` field, or ``None``.
        images: All values submitted under ``image``.

    Returns:
        Validated, immutable request parameters.

    Raises:
        InvalidInput: On the first rule that fails.
    """
    mode = validate_mode(raw_mode)
    max_chars = parse_max_chars(raw_max_chars)
    guidance = raw_guidance.strip() if isinstance(raw_guidance, str) else ""

    if mode is Mode.CAPTIONS:
        tone = parse_tone(raw_tone)
        if tone is None:
            raise InvalidInput("Tone is required for captions")
        if len(guidance) > MAX_CAPTION_GUIDANCE_LENGTH:
            raise InvalidInput(f"Caption guidance too long: {len(guidance)} characters")
        image = validate_image(images)
        return RequestParameters(
            mode=mode,
            tone=tone,
            guidance=guidance,
            max_chars=max_chars,
            image=image,
        )

    if mode is Mode.BIO:
        if not MIN_BIO_GUIDANCE_LENGTH <= len(guidance) <= MAX_BIO_GUIDANCE_LENGTH:
            raise InvalidInput(
                f"Bio guidance must be {MIN_BIO_GUIDANCE_LENGTH}-{MAX_BIO_GUIDANCE_LENGTH} "
                f"characters, got {len(guidance)}"
            )
        tone = parse_tone(raw_tone) or DEFAULT_BIO_TONE
        return RequestParameters(mode=mode, tone=tone, guidance=guidance, max_chars=max_chars)

    raise InvalidInput(f"Unhandled mode: {mode!r}")
