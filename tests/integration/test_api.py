"""Integration tests for captioncoach.api.main: FastAPI REST API endpoints.

All tests use the FastAPI TestClient with a scripted FakeOpenAI client so
that no network access occurs.  Tests cover every endpoint:

- ``POST /api/captions``: multipart generation in both modes.
- ``GET /api/config``: input contract delivery.
- ``GET /api/health``: liveness.
"""

from __future__ import annotations

import pytest

from captioncoach.api import main as api_main
from captioncoach.core.fallback import FALLBACK_BIOS, FALLBACK_CAPTIONS
from captioncoach.core.models import ImageUpload
from captioncoach.core.validation import MAX_IMAGE_BYTES

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 128
BIO_FORM = {"mode": "bio", "guidance": "Pastry chef who bakes sourdough in Lisbon."}
MIB = 1024 * 1024


def _image(data: bytes = PNG_BYTES, content_type: str = "image/png"):
    return {"image": ("shot.png", data, content_type)}


@pytest.fixture
def image_reads(monkeypatch) -> list[list[int]]:
    """Record the byte count of every image part the route reads."""
    reads: list[list[int]] = []
    original = api_main._read_image_parts

    async def _recording(values):
        images = await original(values)
        reads.append([image.size_bytes for image in images if isinstance(image, ImageUpload)])
        return images

    monkeypatch.setattr(api_main, "_read_image_parts", _recording)
    return reads


# ---------------------------------------------------------------------------
# Generation endpoint tests.
# ---------------------------------------------------------------------------


class TestCaptionsEndpoint:
    """Test POST /api/captions in captions mode."""

    def test_generates_captions(self, test_client, install_coach, captions_reply):
        """A valid form returns the five parsed captions."""
        client = install_coach(captions_reply)
        resp = test_client.post(
            "/api/captions",
            data={"mode": "captions", "tone": "Funny", "maxChars": "120"},
            files=_image(),
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["mode"] == "captions"
        assert len(body["items"]) == 5
        assert body["items"][0]["text"] == "Caption number 1."
        assert len(client.calls) == 1

    def test_image_sent_as_data_url(self, test_client, install_coach, captions_reply):
        """The uploaded image reaches the provider as a data URL."""
        client = install_coach(captions_reply)
        test_client.post("/api/captions", data={"mode": "captions", "tone": "poetic"}, files=_image())
        user_content = client.calls[0]["messages"][1]["content"]
        assert user_content[1]["image_url"]["url"].startswith("data:image/png;base64,")

    def test_missing_image_rejected(self, test_client, install_coach):
        """Captions without an image return 400 without a provider call."""
        client = install_coach()
        resp = test_client.post("/api/captions", data={"mode": "captions", "tone": "funny"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid input"}
        assert client.calls == []

    def test_gif_rejected(self, test_client, install_coach):
        """GIF uploads return 400."""
        install_coach()
        resp = test_client.post(
            "/api/captions",
            data={"mode": "captions", "tone": "funny"},
            files=_image(b"GIF89a", "image/gif"),
        )
        assert resp.status_code == 400

    def test_oversized_image_rejected(self, test_client, install_coach):
        """A 4 MiB upload returns 400."""
        install_coach()
        resp = test_client.post(
            "/api/captions",
            data={"mode": "captions", "tone": "funny"},
            files=_image(b"\x00" * (4 * MIB)),
        )
        assert resp.status_code == 400

    def test_oversized_image_read_is_bounded(self, test_client, install_coach, image_reads):
        """Only one byte past the limit is read from an oversized upload."""
        client = install_coach()
        resp = test_client.post(
            "/api/captions",
            data={"mode": "captions", "tone": "funny"},
            files=_image(b"\x00" * (20 * MIB)),
        )
        assert resp.status_code == 400
        assert image_reads == [[MAX_IMAGE_BYTES + 1]]
        assert client.calls == []

    def test_unauthorized_returns_500(self, test_client, install_coach, openai_errors):
        """Rejected credentials return 500 with the credentials message."""
        install_coach(openai_errors.unauthorized())
        resp = test_client.post(
            "/api/captions", data={"mode": "captions", "tone": "funny"}, files=_image()
        )
        assert resp.status_code == 500
        assert resp.json() == {"error": "Check your OpenAI credentials."}

    def test_provider_error_serves_fallback(self, test_client, install_coach, openai_errors):
        """A provider 500 serves the fallback captions with status 200."""
        install_coach(openai_errors.server_error())
        resp = test_client.post(
            "/api/captions", data={"mode": "captions", "tone": "funny"}, files=_image()
        )
        assert resp.status_code == 200
        assert resp.json()["items"][0]["text"] == FALLBACK_CAPTIONS[0].text


class TestBioEndpoint:
    """Test POST /api/captions in bio mode."""

    def test_generates_bios(self, test_client, install_coach, bio_reply):
        """A valid bio form returns the three parsed bios."""
        install_coach(bio_reply)
        resp = test_client.post("/api/captions", data=BIO_FORM)
        assert resp.status_code == 200
        assert resp.json() == {
            "mode": "bio",
            "items": [{"text": "Bio option 1."}, {"text": "Bio option 2."}, {"text": "Bio option 3."}],
        }

    def test_image_part_not_read(self, test_client, install_coach, bio_reply, image_reads):
        """An image sent with a bio request is never read into memory."""
        client = install_coach(bio_reply)
        resp = test_client.post("/api/captions", data=BIO_FORM, files=_image(b"\x00" * (20 * MIB)))
        assert resp.status_code == 200
        assert resp.json()["mode"] == "bio"
        assert image_reads == []
        assert len(client.calls) == 1

    def test_malformed_twice_serves_fallback(self, test_client, install_coach):
        """Two invalid replies serve the fallback bios."""
        client = install_coach("nope", "still nope")
        resp = test_client.post("/api/captions", data=BIO_FORM)
        assert resp.status_code == 200
        assert [item["text"] for item in resp.json()["items"]] == [b.text for b in FALLBACK_BIOS]
        assert len(client.calls) == 2

    def test_rate_limited_serves_fallback(self, test_client, install_coach, openai_errors):
        """Three rate limits serve fallback after three provider calls."""
        client = install_coach(*(openai_errors.rate_limit("1") for _ in range(3)))
        resp = test_client.post("/api/captions", data=BIO_FORM)
        assert resp.status_code == 200
        assert resp.json()["mode"] == "bio"
        assert len(client.calls) == 3

    @pytest.mark.parametrize("guidance", ["short", "x" * 401])
    def test_guidance_length_rejected(self, test_client, install_coach, guidance):
        """About text outside 10-400 characters returns 400."""
        install_coach()
        resp = test_client.post("/api/captions", data={"mode": "bio", "guidance": guidance})
        assert resp.status_code == 400

    @pytest.mark.parametrize("max_chars", ["1_00", "１００"])
    def test_non_ascii_max_chars_rejected(self, test_client, install_coach, max_chars):
        """maxChars must be written with plain ASCII digits."""
        client = install_coach()
        resp = test_client.post("/api/captions", data={**BIO_FORM, "maxChars": max_chars})
        assert resp.status_code == 400
        assert client.calls == []


class TestModeHandling:
    """Mode validation and demo mode."""

    def test_unknown_mode(self, test_client, install_coach):
        """An unknown mode returns 400 without a provider call."""
        client = install_coach()
        resp = test_client.post("/api/captions", data={"mode": "weather"})
        assert resp.status_code == 400
        assert client.calls == []

    def test_missing_mode(self, test_client, install_coach):
        """A form without a mode returns 400."""
        install_coach()
        assert test_client.post("/api/captions", data={"tone": "funny"}).status_code == 400

    def test_demo_mode_serves_fallback(self, test_client, demo_mode):
        """Demo mode serves fallback captions without an image."""
        resp = test_client.post("/api/captions", data={"mode": "captions"})
        assert resp.status_code == 200
        assert len(resp.json()["items"]) == 5

    def test_demo_mode_skips_image_read(self, test_client, demo_mode, image_reads):
        """Demo mode never reads uploaded images."""
        resp = test_client.post(
            "/api/captions", data={"mode": "captions"}, files=_image(b"\x00" * (20 * MIB))
        )
        assert resp.status_code == 200
        assert image_reads == []

    def test_demo_mode_rejects_unknown_mode(self, test_client, demo_mode):
        """Demo mode still rejects unknown modes."""
        assert test_client.post("/api/captions", data={"mode": "x"}).status_code == 400


# ---------------------------------------------------------------------------
# Configuration and health endpoint tests.
# ---------------------------------------------------------------------------


class TestConfigEndpoint:
    """Test GET /api/config."""

    def test_contract(self, test_client, install_coach):
        """The config endpoint publishes modes, tones and limits."""
        install_coach()
        body = test_client.get("/api/config").json()
        assert body["modes"] == ["captions", "bio"]
        assert body["tones"] == ["funny", "poetic", "classy", "branded"]
        assert body["default_bio_tone"] == "classy"
        assert body["max_chars_min"] == 40
        assert body["max_chars_max"] == 220
        assert body["image_types"] == ["image/jpeg", "image/png"]
        assert body["max_image_bytes"] == 3 * MIB
        assert body["demo_mode"] is False

    def test_demo_flag(self, test_client, demo_mode):
        """The config endpoint reports demo mode."""
        assert test_client.get("/api/config").json()["demo_mode"] is True


class TestHealthEndpoint:
    """Test GET /api/health."""

    def test_health(self, test_client):
        """The health endpoint answers 200 ok."""
        resp = test_client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"
