"""Static fallback content served when live generation is unavailable.

The catalog holds one hand-written result per mode.  It is returned when no
API key is configured (demo mode) and whenever generation fails in a way the
orchestrator absorbs.  The entries satisfy the same schema as provider
output: five captions with hashtags, three bios.
"""

from __future__ import annotations

from .models import BioItem, CaptionItem, GenerationResult, Mode

FALLBACK_CAPTIONS: tuple[CaptionItem, ...] = (
    CaptionItem(
        text="Fresh perspective coming your way—stay tuned for the full story behind this shot.",
        hashtags=(
            "#behindthescenes #brandmoments #staytuned #socialready #captioncoach "
            "#storyteaser #creativepulse #shareworthy"
        ),
    ),
    CaptionItem(
        text="Setting the scene with style while we polish the perfect caption for your feed.",
        hashtags=(
            "#freshcaption #feedgoals #styleinspo #captioncoach #brandvibes "
            "#contentcrew #socialspark #stayready"
        ),
    ),
    CaptionItem(
        text=(
            "A dose of personality is on deck—your tailored caption will land the moment "
            "the coach is ready."
        ),
        hashtags=(
            "#captionscoming #brandvoice #socialenergy #captioncoach #contentmagic "
            "#creativeflow #onbrand #watchthisspace"
        ),
    ),
    CaptionItem(
        text=(
            "We are lining up details that hit the right tone—this placeholder keeps the "
            "post warm."
        ),
        hashtags=(
            "#tonecheck #brandready #captioncoach #socialsuite #creativeprep "
            "#marketingmadeeasy #contentqueue #comingsoon"
        ),
    ),
    CaptionItem(
        text=(
            "This space is saving your prime caption real estate while the coach finalizes "
            "the perfect copy."
        ),
        hashtags=(
            "#captioncoach #socialcaption #brandspotlight #contentstudio #marketingflow "
            "#creativeprep #stayposted #copyinprogress"
        ),
    ),
)

FALLBACK_BIOS: tuple[BioItem, ...] = (
    BioItem(
        text="Creating feel-good moments while celebrating the details that make this story unique."
    ),
    BioItem(
        text="Sharing the highlights with warmth, purpose, and a spark of personality in every line."
    ),
    BioItem(text="Telling the brand story with heart, clarity, and a voice that feels true to you."),
)


def fallback_result(mode: Mode) -> GenerationResult:
    """Return the canned result for *mode*."""
    if mode is Mode.CAPTIONS:
        return GenerationResult(mode=mode, items=FALLBACK_CAPTIONS)
    if mode is Mode.BIO:
        return GenerationResult(mode=mode, items=FALLBACK_BIOS)
    raise ValueError(f"No fallback content for mode: {mode!r}")
