"""Data models for Caption Coach requests and results.

Every object here lives for a single request/response cycle.  Parameters
are frozen once the validator has built them, and results are frozen once
the parser (or the fallback catalog) has produced them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Mode(str, Enum):
    """Operating mode of a generation request."""

    CAPTIONS = "captions"
    BIO = "bio"


class Tone(str, Enum):
    """Voice the generated copy should take."""

    FUNNY = "funny"
    POETIC = "poetic"
    CLASSY = "classy"
    BRANDED = "branded"

    @property
    def label(self) -> str:
        """Capitalised form used inside prompts (e.g. ``"Funny"``)."""
        return self.value.capitalize()


# Tone applied to bios when the caller does not pick one.
DEFAULT_BIO_TONE = Tone.CLASSY

# Exact number of items a result must carry for each mode.
ITEM_COUNTS: dict[Mode, int] = {
    Mode.CAPTIONS: 5,
    Mode.BIO: 3,
}


@dataclass(frozen=True)
class ImageUpload:
    """An uploaded image part from the multipart request.

    Attributes:
        mime_type: Content type declared by the client.
        data: Raw image bytes.
        filename: Original filename, if the client sent one.
    """

    mime_type: str
    data: bytes
    filename: str | None = None

    @property
    def size_bytes(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class RequestParameters:
    """Fully validated parameters for one generation request.

    ``tone`` is always set after validation: captions require it and bios
    default to :data:`DEFAULT_BIO_TONE`.  ``image`` is only set in captions
    mode.
    """

    mode: Mode
    tone: Tone
    guidance: str = ""
    max_chars: int | None = None
    image: ImageUpload | None = None


@dataclass(frozen=True)
class CaptionItem:
    """One generated caption and its hashtag line."""

    text: str
    hashtags: str

    def to_dict(self) -> dict[str, str]:
        return {"text": self.text, "hashtags": self.hashtags}


@dataclass(frozen=True)
class BioItem:
    """One generated short bio."""

    text: str

    def to_dict(self) -> dict[str, str]:
        return {"text": self.text}


@dataclass(frozen=True)
class GenerationResult:
    """The items produced for a request, tagged with their mode.

    Results coming from the provider and from the fallback catalog share this
    type, so callers cannot tell them apart.

    Raises:
        ValueError: On construction, if the item count or item type does not
            match the mode.
    """

    mode: Mode
    items: tuple[CaptionItem, ...] | tuple[BioItem, ...]

    def __post_init__(self) -> None:
        expected = ITEM_COUNTS[self.mode]
        if len(self.items) != expected:
            raise ValueError(
                f"{self.mode.value} results need exactly {expected} items, got {len(self.items)}"
            )
        item_type = CaptionItem if self.mode is Mode.CAPTIONS else BioItem
        if not all(isinstance(item, item_type) for item in self.items):
            raise ValueError(f"{self.mode.value} results must contain {item_type.__name__} items")

    def to_dict(self) -> dict:
        """Serialise to the JSON body returned to callers."""
        return {"mode": self.mode.value, "items": [item.to_dict() for item in self.items]}
