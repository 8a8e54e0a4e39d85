"""Tests for the HTTP routes: validation, SSE streaming and the JSON endpoint."""

from __future__ import annotations

import base64
import json

import pytest
from httpx import ASGITransport, AsyncClient
from starlette.applications import Starlette
from starlette.routing import Route

import animspec_mcp.tools.http as http_routes
from animspec_mcp.errors import ProviderRejectionError
from animspec_mcp.sse import SSEParser
from animspec_mcp.storage import MemoryBlobStore

VIDEO_B64 = base64.b64encode(b"tiny clip").decode()


@pytest.fixture
def use_provider(monkeypatch):
    def _use(provider):
        monkeypatch.setattr(http_routes, "get_provider", lambda name: provider)
        return provider
    return _use


@pytest.fixture
async def client():
    app = Starlette(routes=[Route(path, handler, methods=["POST"]) for path, handler in http_routes.ROUTES])
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
def relay_store():
    """Fresh relay store installed through set_relay_store, restored afterwards."""
    previous = http_routes._relay_store
    store = MemoryBlobStore()
    http_routes.set_relay_store(store)
    yield store
    http_routes.set_relay_store(previous)


def _frames(body: str) -> list[dict]:
    parser = SSEParser()
    return [json.loads(data) for data in parser.feed(body) + parser.flush()]


class TestValidation:
    async def test_invalid_format_is_400(self, client, use_provider, make_provider):
        provider = use_provider(make_provider())
        resp = await client.post("/v1/analyze/stream", json={"videoBase64": VIDEO_B64, "format": "gif"})

        assert resp.status_code == 400
        assert resp.headers["content-type"].startswith("application/json")
        assert "Invalid format: gif" in resp.json()["error"]
        assert provider.calls == []

    async def test_missing_video_is_400(self, client):
        resp = await client.post("/v1/analyze", json={"format": "clone_component"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Missing video data"

    async def test_two_sources_is_400(self, client):
        resp = await client.post(
            "/v1/analyze", json={"videoBase64": VIDEO_B64, "fileUri": "https://f", "format": "clone_component"},
        )
        assert resp.status_code == 400

    async def test_bad_base64_is_400(self, client):
        resp = await client.post("/v1/analyze", json={"videoBase64": "%%%", "format": "clone_component"})
        assert resp.status_code == 400
        assert "base64" in resp.json()["error"]

    async def test_non_json_is_400(self, client):
        resp = await client.post("/v1/analyze", content=b"not json", headers={"content-type": "application/json"})
        assert resp.status_code == 400

    async def test_bad_field_type_is_400(self, client):
        resp = await client.post("/v1/analyze", json={"videoBase64": VIDEO_B64, "format": "clone_component", "agentic": "maybe"})
        assert resp.status_code == 400
        assert "agentic" in resp.json()["error"]


class TestStreamRoute:
    async def test_single_pass_stream(self, client, use_provider, make_provider, thought):
        use_provider(make_provider([thought("hidden"), "Hello ", "world"]))
        resp = await client.post(
            "/v1/analyze/stream",
            json={"videoBase64": VIDEO_B64, "mimeType": "video/mp4", "format": "clone_ui_animation", "trigger": "hover"},
        )

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/event-stream")
        frames = _frames(resp.text)
        assert [f["type"] for f in frames] == ["progress", "chunk", "chunk", "complete"]
        assert frames[-1]["data"] == "Hello world"
        assert "hidden" not in resp.text

    async def test_stream_error_after_output(self, client, use_provider, make_provider):
        use_provider(make_provider(["partial", ProviderRejectionError("Gemini stopped generation: SAFETY")]))
        resp = await client.post("/v1/analyze/stream", json={"videoBase64": VIDEO_B64, "format": "clone_component"})

        frames = _frames(resp.text)
        assert [f["type"] for f in frames] == ["progress", "chunk", "error"]
        assert frames[-1]["message"] == "Gemini stopped generation: SAFETY"

    async def test_agentic_stream(self, client, use_provider, make_provider, thought):
        use_provider(make_provider([thought("t"), "{}"], ["m"], ["```tsx\n<A />\n```"], ['{"overallScore": 70}']))
        resp = await client.post(
            "/v1/analyze/stream",
            json={"videoBase64": VIDEO_B64, "format": "clone_component", "quality": "precise", "agentic": True},
        )

        frames = _frames(resp.text)
        assert frames[0]["type"] == "pass_start"
        assert frames[1] == {"type": "thinking", "pass": 1, "passName": "Scene Decomposition", "totalPasses": 4, "data": "t"}
        assert frames[-1]["type"] == "complete"
        assert frames[-1]["verification"]["overallScore"] == 70

    async def test_relayed_video(self, client, use_provider, make_provider, drain_cleanup, relay_store):
        store = relay_store
        await store.put("uploads/clip.mp4", b"relayed", "video/mp4")
        provider = use_provider(make_provider(["ok"]))

        resp = await client.post("/v1/analyze/stream", json={"storageKey": "uploads/clip.mp4", "format": "qa_clone_checklist"})
        await drain_cleanup()

        assert _frames(resp.text)[-1]["type"] == "complete"
        assert provider.calls[0].video.data == b"relayed"
        assert "uploads/clip.mp4" not in store

    async def test_unknown_storage_key_is_400(self, client, relay_store):
        resp = await client.post("/v1/analyze/stream", json={"storageKey": "missing", "format": "qa_clone_checklist"})
        assert resp.status_code == 400


class TestJsonRoute:
    async def test_returns_result(self, client, use_provider, make_provider):
        use_provider(make_provider(["**Animation Overview:**\nSpin.\n\n```css\n.s {}\n```"]))
        frame_grid = {"base64": base64.b64encode(b"grid").decode(), "frameCount": 12, "columns": 4, "width": 960, "height": 540}
        resp = await client.post(
            "/v1/analyze",
            json={
                "videoBase64": f"data:video/mp4;base64,{VIDEO_B64}",
                "format": "tailwind_animate",
                "metadata": {"duration": 1.2, "width": 390, "height": 844},
                "frameGrid": frame_grid,
            },
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["overview"] == "Spin."
        assert body["code"] == ".s {}"
        assert body["rawAnalysis"].startswith("**Animation Overview:**")

    async def test_grid_and_metadata_reach_prompt(self, client, use_provider, make_provider):
        provider = use_provider(make_provider(["ok"]))
        await client.post(
            "/v1/analyze",
            json={
                "videoBase64": VIDEO_B64,
                "format": "qa_clone_checklist",
                "metadata": {"duration": 1.2, "width": 390, "height": 844},
                "frameGrid": {"base64": base64.b64encode(b"grid").decode(), "frameCount": 12, "columns": 4},
            },
        )
        call = provider.calls[0]
        assert call.images[0].data == b"grid"
        assert "Keyframe grid (12 frames, 4 columns, unknownxunknown)" in call.prompt
        assert "Resolution: 390x844 px" in call.prompt
        assert "MIME type: video/mp4" in call.prompt

    async def test_provider_failure_status(self, client, use_provider, make_provider):
        use_provider(make_provider([ProviderRejectionError("blocked")]))
        resp = await client.post("/v1/analyze", json={"videoBase64": VIDEO_B64, "format": "clone_component"})
        assert resp.status_code == 502
        assert resp.json() == {"error": "blocked", "category": "PROVIDER_REJECTED"}

    async def test_remote_uri_for_inline_only_tier(self, client, use_provider, make_provider):
        use_provider(make_provider(supports_remote=False))
        resp = await client.post(
            "/v1/analyze", json={"fileUri": "https://g/files/x", "fileMimeType": "video/mp4", "format": "clone_component", "quality": "kimi"},
        )
        assert resp.status_code == 400



class TestUploadRoute:
    async def test_upload_then_analyze_by_key(self, client, use_provider, make_provider, drain_cleanup, relay_store):
        provider = use_provider(make_provider(["**Animation Overview:**\nFade.\n\n```css\n.f {}\n```"]))
        upload = await client.post("/v1/uploads", content=b"relayed clip", headers={"Content-Type": "video/webm"})

        assert upload.status_code == 201
        key = upload.json()["storageKey"]
        assert key.startswith("uploads/")
        assert key in relay_store

        resp = await client.post("/v1/analyze", json={"storageKey": key, "mimeType": "video/webm", "format": "tailwind_animate"})
        await drain_cleanup()

        assert resp.status_code == 200
        assert resp.json()["code"] == ".f {}"
        assert provider.calls[0].video.data == b"relayed clip"
        assert key not in relay_store

    async def test_non_video_content_type_is_400(self, client, relay_store):
        resp = await client.post("/v1/uploads", content=b"{}", headers={"Content-Type": "application/json"})
        assert resp.status_code == 400
        assert resp.json()["category"] == "INVALID_INPUT"

    async def test_empty_body_is_400(self, client, relay_store):
        resp = await client.post("/v1/uploads", content=b"", headers={"Content-Type": "video/mp4"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Upload body is empty"

    async def test_oversized_body_is_400(self, client, relay_store, monkeypatch):
        monkeypatch.setenv("ANIMSPEC_MAX_UPLOAD_BYTES", "4")
        resp = await client.post("/v1/uploads", content=b"12345", headers={"Content-Type": "video/mp4"})
        assert resp.status_code == 400
        assert "the limit is" in resp.json()["error"]
