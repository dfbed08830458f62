from __future__ import annotations

import importlib
import json
import os
import sys
from typing import Any

import pytest

fastapi = pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

from app.xmedia.cache import CacheStore
from app.xmedia.client import FetchQuery
from app.xmedia.errors import UpstreamUnavailable
from app.xmedia.service import RefreshController


class _FakeFetch:
    def __init__(self, response: Any) -> None:
        self.response = response
        self.calls = 0

    def __call__(self, query: FetchQuery) -> Any:
        self.calls += 1
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def _build_client(cache_path, fetch) -> tuple[TestClient, Any]:
    sys.modules.pop("api.main", None)
    module = importlib.import_module("api.main")
    module.app.router.on_startup.clear()
    module.app.router.on_shutdown.clear()
    store = CacheStore(cache_path)
    module.app.state.store = store
    module.app.state.controller = RefreshController(
        store,
        fetch,
        FetchQuery(subject_id="12345", cookie="auth_token=abc"),
        ttl_seconds=600,
    )
    return TestClient(module.app), module


def test_api_videos_returns_normalized_records(cache_path, legacy_timeline_payload) -> None:
    fetch = _FakeFetch(legacy_timeline_payload)
    client, _module = _build_client(cache_path, fetch)

    response = client.get("/api/videos")
    again = client.get("/api/videos")

    assert response.status_code == 200
    body = response.json()
    assert [item["id"] for item in body] == ["1700000000000000001", "1700000000000000002"]
    assert set(body[0]) == {"id", "text", "date", "thumbnail", "video_url"}
    assert again.json() == body
    assert fetch.calls == 1


def test_api_videos_serves_stale_records_when_upstream_fails(cache_path) -> None:
    cache_path.write_text(
        json.dumps([{"id": "old", "text": "", "date": "", "thumbnail": "", "video_url": "https://v/old.mp4"}]),
        encoding="utf-8",
    )
    os.utime(cache_path, (0, 0))
    client, module = _build_client(cache_path, _FakeFetch(UpstreamUnavailable("down")))
    module.app.state.store.load()

    response = client.get("/api/videos", headers={"Origin": "https://example.test"})

    assert response.status_code == 200
    assert [item["video_url"] for item in response.json()] == ["https://v/old.mp4"]
    assert response.headers["access-control-allow-origin"] == "*"


def test_videos_json_serves_durable_file(cache_path, legacy_timeline_payload) -> None:
    client, _module = _build_client(cache_path, _FakeFetch(legacy_timeline_payload))

    response = client.get("/videos.json")

    assert response.status_code == 200
    assert response.json() == json.loads(cache_path.read_text(encoding="utf-8"))
    assert len(response.json()) == 2


def test_videos_json_serves_memory_when_file_cannot_be_written(tmp_path, legacy_timeline_payload) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("x", encoding="utf-8")
    cache_path = blocker / "videos.json"
    client, module = _build_client(cache_path, _FakeFetch(legacy_timeline_payload))

    response = client.get("/videos.json")

    assert response.status_code == 200
    expected = [record.to_dict() for record in module.app.state.store.current().records]
    assert len(expected) == 2
    assert response.json() == expected
    assert not cache_path.exists()


def test_videos_json_not_available_yet(cache_path) -> None:
    client, _module = _build_client(cache_path, _FakeFetch(UpstreamUnavailable("down")))

    response = client.get("/videos.json")

    assert response.status_code == 404
    assert response.json() == {"error": "No cache available"}


def test_api_videos_renders_text_with_lone_surrogate(cache_path, legacy_timeline_payload) -> None:
    cut_text = json.loads('"cut emoji \\ud83d"')
    legacy_timeline_payload["globalObjects"]["tweets"]["1700000000000000001"]["full_text"] = cut_text
    client, _module = _build_client(cache_path, _FakeFetch(legacy_timeline_payload))

    response = client.get("/api/videos")

    assert response.status_code == 200
    assert "\\ud83d" in response.text
    assert response.json()[0]["text"] == cut_text


def test_health_reports_cache_state(cache_path, legacy_timeline_payload) -> None:
    client, _module = _build_client(cache_path, _FakeFetch(legacy_timeline_payload))

    before = client.get("/_health").json()
    client.get("/api/videos")
    after = client.get("/_health").json()

    assert before == {"ok": True, "cached_count": 0, "fetched_at": 0.0, "last_outcome": None}
    assert after["ok"] is True
    assert after["cached_count"] == 2
    assert after["fetched_at"] > 0
    assert after["last_outcome"] == "refreshed"
