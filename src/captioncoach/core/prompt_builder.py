"""Prompt construction for caption and bio generation.

Each mode has one fixed instruction template.  The template spells out the
exact JSON schema the reply must follow, because the provider is a black box
and the literal schema is what keeps its output parseable.

Message Structure
-----------------
Captions::

    system:    shared copywriter directive
    user:      [text instruction, image_url data URL]

Bio::

    system:    shared copywriter directive
    user:      text instruction

Corrective re-prompt (either mode)::

    ...original messages...
    assistant: the invalid reply
    user:      "The previous reply was invalid. Respond again with VALID JSON..."

Messages use the OpenAI chat-completions format so they can be passed to the
SDK unchanged.

Usage
-----
::

    messages = build_messages(params)
    retry_messages = build_corrective_messages(params.mode, messages, raw_reply)
"""

from __future__ import annotations

import base64
from typing import Any

from .models import ImageUpload, Mode, RequestParameters

PromptMessages = list[dict[str, Any]]

SYSTEM_PROMPT = (
    "You are Caption Coach, a sharp and safe social media copywriter. You write concise, "
    "engaging, brand-safe captions or short bios. Keep everything family-friendly and "
    "culturally respectful. Avoid medical/financial claims, controversial topics, and "
    "disallowed hashtags."
)

CAPTIONS_CORRECTION = (
    "The previous reply was invalid. Respond again with VALID JSON matching the exact schema. "
    "Include no commentary."
)

BIO_CORRECTION = (
    "The previous reply was invalid. Respond again with VALID JSON matching the schema. "
    "Include no commentary."
)

_CAPTIONS_SCHEMA = "\n".join(
    [
        "{",
        '  "items": [',
        '    { "text": "caption #1", "hashtags": "#tag1 #tag2 #tag3 ..." },',
        '    { "text": "caption #2", "hashtags": "..." },',
        '    { "text": "caption #3", "hashtags": "..." },',
        '    { "text": "caption #4", "hashtags": "..." },',
        '    { "text": "caption #5", "hashtags": "..." }',
        "  ]",
        "}",
    ]
)

_BIO_SCHEMA = "\n".join(
    [
        "{",
        '  "items": [',
        '    { "text": "bio #1" },',
        '    { "text": "bio #2" },',
        '    { "text": "bio #3" }',
        "  ]",
        "}",
    ]
)


def _format_max_chars(max_chars: int | None) -> str:
    return str(max_chars) if max_chars is not None else "none"


def build_captions_instruction(params: RequestParameters) -> str:
    """Build the user instruction for captions mode."""
    return "\n".join(
        [
            "Task: Create exactly FIVE distinct, platform-ready captions for the provided image "
            "with the chosen tone and optional character limit. If guidance is provided, weave "
            "it naturally.",
            "",
            "Parameters:",
            f"- Tone: {params.tone.label}",
            f"- Max characters: {_format_max_chars(params.max_chars)}",
            f"- Guidance (optional): {params.guidance or 'none'}",
            "",
            "Constraints for each caption:",
            "- One sentence only. If Max characters is set, do not exceed it.",
            "- Avoid emoji unless Tone=Funny (max 2).",
            "- No brand claims or sensitive content.",
            "- Make the five captions meaningfully different in angle (humor, vibe, CTA).",
            "- If Guidance is provided, incorporate it naturally in at least two captions.",
            "",
            "Hashtags:",
            "- After each caption, create one line with 8–12 relevant hashtags.",
            "- Lowercase; no spammy/banned tags; avoid repetition.",
            "",
            "Output EXACTLY in JSON:",
            _CAPTIONS_SCHEMA,
        ]
    )


def build_bio_instruction(params: RequestParameters) -> str:
    """Build the user instruction for bio mode.

    The guidance text is the "About" source material for the bios.
    """
    return "\n".join(
        [
            "Task: Create exactly THREE concise, polished bios/captions crafted from the "
            "user's About text.",
            "If a tone is provided, match it. Optionally respect a character limit.",
            "",
            "Parameters:",
            f"- Tone (optional): {params.tone.label}",
            f"- Max characters: {_format_max_chars(params.max_chars)}",
            f"- About: {params.guidance}",
            "",
            "Constraints:",
            "- Each output is one to two short sentences.",
            "- If Max characters is set, do not exceed it.",
            "- Keep it brand-safe, inclusive, and specific to the provided About text.",
            "- Vary the three options in angle (professional, personable, playful) while "
            "respecting Tone.",
            "",
            "Output EXACTLY in JSON:",
            _BIO_SCHEMA,
        ]
    )


def image_data_url(image: ImageUpload) -> str:
    """Encode an uploaded image as a base64 ``data:`` URL."""
    encoded = base64.b64encode(image.data).decode("ascii")
    return f"data:{image.mime_type};base64,{encoded}"


def build_messages(params: RequestParameters) -> PromptMessages:
    """Build the chat messages for a validated request.

    Args:
        params: Validated request parameters.

    Returns:
        A system directive followed by the mode's user instruction.  In
        captions mode the image is attached as an ``image_url`` part.

    Raises:
        ValueError: If captions parameters carry no image.
    """
    system = {"role": "system", "content": SYSTEM_PROMPT}

    if params.mode is Mode.CAPTIONS:
        if params.image is None:
            raise ValueError("Captions prompts require an image")
        user = {
            "role": "user",
            "content": [
                {"type": "text", "text": build_captions_instruction(params)},
                {"type": "image_url", "image_url": {"url": image_data_url(params.image)}},
            ],
        }
        return [system, user]

    if params.mode is Mode.BIO:
        return [system, {"role": "user", "content": build_bio_instruction(params)}]

    raise ValueError(f"Unhandled mode: {params.mode!r}")


def build_corrective_messages(
    mode: Mode, messages: PromptMessages, invalid_reply: str
) -> PromptMessages:
    """Extend a conversation with the invalid reply and a request to fix it.

    Args:
        mode: Mode of the original request.
        messages: The messages originally sent to the provider.
        invalid_reply: The raw reply that failed schema validation.

    Returns:
        A new message list; ``messages`` is not modified.
    """
    if mode is Mode.CAPTIONS:
        correction: Any = [{"type": "text", "text": CAPTIONS_CORRECTION}]
    elif mode is Mode.BIO:
        correction = BIO_CORRECTION
    else:
        raise ValueError(f"Unhandled mode: {mode!r}")

    return [
        *messages,
        {"role": "assistant", "content": invalid_reply},
        {"role": "user", "content": correction},
    ]
