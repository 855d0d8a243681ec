"""Shared pytest fixtures for Caption Coach tests.

The OpenAI client is replaced by :class:`FakeOpenAI`, an in-memory double
that replays scripted replies (strings) or raises scripted exceptions, and
records every call.  Sleeps between rate-limited attempts are recorded by
:class:`RecordingSleep` instead of actually waiting.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Generator
from types import SimpleNamespace
from typing import Any

import httpx
import openai
import pytest
from fastapi.testclient import TestClient

from captioncoach.api.main import app
from captioncoach.core.config import CaptionCoachConfig
from captioncoach.core.gateway import ProviderGateway
from captioncoach.core.models import ImageUpload, Mode, RequestParameters, Tone
from captioncoach.core.orchestrator import Orchestrator

# Smallest byte string the tests treat as "a PNG": the 8-byte signature.
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

_OPENAI_URL = "https://api.openai.com/v1/chat/completions"


# ---------------------------------------------------------------------------
# Provider test doubles.
# ---------------------------------------------------------------------------


def make_completion(content: Any) -> SimpleNamespace:
    """Build an object shaped like an OpenAI ``ChatCompletion``."""
    message = SimpleNamespace(role="assistant", content=content)
    return SimpleNamespace(choices=[SimpleNamespace(index=0, message=message)])


class FakeCompletions:
    """Stand-in for ``client.chat.completions``."""

    def __init__(self, replies: list[Any]) -> None:
        self._replies = list(replies)
        self.calls: list[dict[str, Any]] = []

    async def create(self, **kwargs: Any) -> SimpleNamespace:
        self.calls.append(kwargs)
        if not self._replies:
            raise AssertionError("FakeOpenAI ran out of scripted replies")
        reply = self._replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return make_completion(reply)


class FakeOpenAI:
    """Minimal async OpenAI client double exposing ``chat.completions.create``."""

    def __init__(self, *replies: Any) -> None:
        self.completions = FakeCompletions(list(replies))
        self.chat = SimpleNamespace(completions=self.completions)

    @property
    def calls(self) -> list[dict[str, Any]]:
        return self.completions.calls


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def _error_response(status_code: int, headers: dict[str, str] | None = None) -> httpx.Response:
    request = httpx.Request("POST", _OPENAI_URL)
    return httpx.Response(status_code, headers=headers or {}, request=request)


class OpenAIErrors:
    """Factories for real OpenAI SDK exceptions."""

    @staticmethod
    def rate_limit(retry_after: str | None = None) -> openai.RateLimitError:
        headers = {"retry-after": retry_after} if retry_after is not None else None
        return openai.RateLimitError(
            "Rate limit reached", response=_error_response(429, headers), body=None
        )

    @staticmethod
    def unauthorized() -> openai.AuthenticationError:
        return openai.AuthenticationError(
            "Incorrect API key provided", response=_error_response(401), body=None
        )

    @staticmethod
    def forbidden() -> openai.PermissionDeniedError:
        return openai.PermissionDeniedError(
            "Project does not have access", response=_error_response(403), body=None
        )

    @staticmethod
    def server_error() -> openai.InternalServerError:
        return openai.InternalServerError(
            "The server had an error", response=_error_response(500), body=None
        )

    @staticmethod
    def connection_error() -> openai.APIConnectionError:
        return openai.APIConnectionError(request=httpx.Request("POST", _OPENAI_URL))


# ---------------------------------------------------------------------------
# Reply payloads.
# ---------------------------------------------------------------------------


def captions_payload(count: int = 5) -> dict:
    return {
        "items": [
            {"text": f"  Caption number {i}.  ", "hashtags": f" #tag{i} #sunset #vibes "}
            for i in range(1, count + 1)
        ]
    }


def bio_payload(count: int = 3) -> dict:
    return {"items": [{"text": f" Bio option {i}. "} for i in range(1, count + 1)]}


@pytest.fixture
def captions_reply() -> str:
    """A schema-valid captions reply (with padding to be trimmed)."""
    return json.dumps(captions_payload())


@pytest.fixture
def bio_reply() -> str:
    """A schema-valid bio reply (with padding to be trimmed)."""
    return json.dumps(bio_payload())


@pytest.fixture
def openai_errors() -> type[OpenAIErrors]:
    """Factories for OpenAI SDK exceptions."""
    return OpenAIErrors


# ---------------------------------------------------------------------------
# Configuration and request fixtures.
# ---------------------------------------------------------------------------


@pytest.fixture
def test_config() -> CaptionCoachConfig:
    """Configuration with a dummy API key, isolated from any .env file."""
    return CaptionCoachConfig(openai_api_key="sk-test", _env_file=None)


@pytest.fixture
def png_image() -> ImageUpload:
    """A small PNG upload."""
    return ImageUpload(mime_type="image/png", data=PNG_SIGNATURE + b"\x00" * 64, filename="shot.png")


@pytest.fixture
def caption_params(png_image: ImageUpload) -> RequestParameters:
    """Valid captions parameters."""
    return RequestParameters(
        mode=Mode.CAPTIONS,
        tone=Tone.FUNNY,
        guidance="Summer launch at the beach",
        max_chars=120,
        image=png_image,
    )


@pytest.fixture
def bio_params() -> RequestParameters:
    """Valid bio parameters."""
    return RequestParameters(
        mode=Mode.BIO,
        tone=Tone.CLASSY,
        guidance="Pastry chef who bakes sourdough every morning in Lisbon.",
    )


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    """Sleep replacement that records delays instead of waiting."""
    return RecordingSleep()


@pytest.fixture
def make_gateway(recording_sleep: RecordingSleep) -> Callable[..., tuple[ProviderGateway, FakeOpenAI]]:
    """Factory building a gateway over a scripted :class:`FakeOpenAI`."""

    def _make(*replies: Any) -> tuple[ProviderGateway, FakeOpenAI]:
        client = FakeOpenAI(*replies)
        gateway = ProviderGateway(client, model="gpt-4o-mini", temperature=0.8, sleep=recording_sleep)
        return gateway, client

    return _make


@pytest.fixture
def make_coach(make_gateway) -> Callable[..., tuple[Orchestrator, FakeOpenAI]]:
    """Factory building an orchestrator over a scripted :class:`FakeOpenAI`."""

    def _make(*replies: Any) -> tuple[Orchestrator, FakeOpenAI]:
        gateway, client = make_gateway(*replies)
        return Orchestrator(gateway), client

    return _make


# ---------------------------------------------------------------------------
# HTTP fixtures.
# ---------------------------------------------------------------------------


@pytest.fixture
def test_client() -> Generator[TestClient, None, None]:
    """FastAPI TestClient with the lifespan handler run.

    The orchestrator created at startup is restored afterwards so tests can
    swap ``app.state.coach`` freely.
    """
    with TestClient(app) as client:
        original = app.state.coach
        try:
            yield client
        finally:
            app.state.coach = original


@pytest.fixture
def install_coach(test_client: TestClient, make_coach) -> Callable[..., FakeOpenAI]:
    """Install an orchestrator with scripted replies on the running app."""

    def _install(*replies: Any) -> FakeOpenAI:
        coach, client = make_coach(*replies)
        test_client.app.state.coach = coach
        return client

    return _install


@pytest.fixture
def demo_mode(test_client: TestClient) -> None:
    """Run the app without provider credentials."""
    test_client.app.state.coach = Orchestrator(None)
