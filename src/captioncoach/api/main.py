"""Caption Coach — FastAPI Application.

This module is the single entry point for the web application.  It defines
the FastAPI ``app`` instance, the REST API routes, and the ``main()`` CLI
function that launches the uvicorn server.

Architecture
------------
The application is stateless between requests:

- **Generation** is delegated to :class:`~captioncoach.core.orchestrator.Orchestrator`,
  created once in the lifespan handler and stored on ``app.state.coach``.
- **Request parsing** reads the raw multipart form; field validation lives in
  :mod:`captioncoach.core.validation` so the HTTP layer stays thin.
- **Demo mode** is active when no OpenAI key is configured; every valid mode
  then receives the static fallback content.

Endpoints
---------
========  ==================  ==========================================
Method    Path                Purpose
========  ==================  ==========================================
POST      ``/api/captions``   Generate captions (image) or bios (text)
GET       ``/api/config``     Modes, tones and input limits for a form
GET       ``/api/health``     Liveness check
========  ==================  ==========================================

Usage
-----
CLI (installed entry point)::

    caption-coach

Direct invocation::

    python -m captioncoach.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Union

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
# request.form() yields starlette UploadFile instances; fastapi.UploadFile is a
# subclass that those instances do not match.
from starlette.datastructures import UploadFile

from captioncoach import __version__
from captioncoach.api.models import BioResponse, CaptionsResponse, ErrorResponse, outcome_to_body
from captioncoach.core import validation
from captioncoach.core.config import config
from captioncoach.core.models import DEFAULT_BIO_TONE, ImageUpload, Mode, Tone
from captioncoach.core.orchestrator import Orchestrator, error_outcome

logger = logging.getLogger(__name__)

TEXT_FIELDS = ("mode", "tone", "guidance", "maxChars")


# ---------------------------------------------------------------------------
# Application lifecycle.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the shared orchestrator on startup.

    Tests may replace ``app.state.coach`` after startup to inject a fake
    provider client.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    app.state.coach = Orchestrator.from_config(config)
    logger.info(
        "Caption Coach %s ready (model=%s, demo_mode=%s).",
        __version__,
        config.openai_model,
        app.state.coach.demo_mode,
    )
    yield


app = FastAPI(
    title="Caption Coach",
    description="Generates social media captions from images and short bios from text.",
    version=__version__,
    lifespan=lifespan,
)

# Allow the form UI to be served from a different origin during development.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Multipart helpers.
# ---------------------------------------------------------------------------


async def _read_image_parts(values: list) -> list:
    """Convert uploaded ``image`` parts into :class:`ImageUpload` objects.

    At most ``MAX_IMAGE_BYTES + 1`` bytes are read from each part, which is
    enough for the validator to reject oversized files without buffering
    them.  Non-file values are passed through unchanged so the validator can
    reject them.
    """
    limit = validation.MAX_IMAGE_BYTES + 1
    images: list = []
    for value in values:
        if isinstance(value, UploadFile):
            data = await value.read(limit)
            images.append(
                ImageUpload(
                    mime_type=value.content_type or "",
                    data=data,
                    filename=value.filename,
                )
            )
        else:
            images.append(value)
    return images


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@app.post(
    "/api/captions",
    response_model=Union[CaptionsResponse, BioResponse],
    responses={
        400: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def create_copy(request: Request) -> JSONResponse:
    """Generate captions or bios from a multipart form.

    Form fields:

    - ``mode`` — ``"captions"`` or ``"bio"`` (required).
    - ``tone`` — funny, poetic, classy or branded (required for captions).
    - ``guidance`` — optional caption guidance, or the bio source text.
    - ``maxChars`` — optional per-item character cap (40–220).
    - ``image`` — PNG or JPEG up to 3 MiB (captions only).

    Returns:
        200 with ``{mode, items}`` (generated or fallback content), or an
        ``{error}`` body with status 400, 429 or 500.
    """
    coach: Orchestrator = request.app.state.coach

    try:
        form = await request.form()
        fields = {name: form.get(name) for name in TEXT_FIELDS}
        images: list = []
        # Images only matter for live captions requests.
        if fields["mode"] == Mode.CAPTIONS.value and not coach.demo_mode:
            images = await _read_image_parts(form.getlist("image"))
    except Exception as exc:
        logger.exception("Could not read the submitted form")
        outcome = error_outcome(exc, mode=None)
    else:
        outcome = await coach.handle(fields, images)

    return JSONResponse(outcome_to_body(outcome), status_code=outcome.status_code)


@app.get("/api/config")
async def get_config(request: Request) -> dict:
    """Return the input contract for a form renderer.

    Returns:
        Dictionary with the version, modes, tones, input bounds, accepted
        image types and whether the server is running in demo mode.
    """
    return {
        "version": __version__,
        "modes": [mode.value for mode in Mode],
        "tones": [tone.value for tone in Tone],
        "default_bio_tone": DEFAULT_BIO_TONE.value,
        "caption_guidance_max": validation.MAX_CAPTION_GUIDANCE_LENGTH,
        "bio_guidance_min": validation.MIN_BIO_GUIDANCE_LENGTH,
        "bio_guidance_max": validation.MAX_BIO_GUIDANCE_LENGTH,
        "max_chars_min": validation.MAX_CHARS_MIN,
        "max_chars_max": validation.MAX_CHARS_MAX,
        "image_types": sorted(validation.ALLOWED_IMAGE_TYPES),
        "max_image_bytes": validation.MAX_IMAGE_BYTES,
        "demo_mode": request.app.state.coach.demo_mode,
    }


@app.get("/api/health")
async def health() -> dict:
    """Liveness check."""
    return {"status": "ok", "version": __version__}


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :data:`~captioncoach.core.config.config`
    (``CAPTIONCOACH_SERVER_HOST``, ``CAPTIONCOACH_SERVER_PORT``,
    ``CAPTIONCOACH_LOG_LEVEL``).  Defaults to ``0.0.0.0:8000``.

    This function is registered as the ``caption-coach`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(
        "captioncoach.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
