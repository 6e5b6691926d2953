"""
Tests for `clients/kie_client.py` against `httpx.MockTransport`.

Time is simulated: `sleep` advances a fake monotonic clock, so deadline
handling is deterministic.
"""

from __future__ import annotations

import json
from typing import Callable, List

import httpx
import pytest

from clients.kie_client import (
    ImageGenerationError,
    ImageGenerationTimeout,
    KieImageClient,
    extract_result_url,
    resolve_public_url,
)

BASE = "https://api.kie.test/api/v1/jobs"
RESULT_URL = "https://tempfile.kie.test/result.png"


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += seconds


def _client(handler: Callable[[httpx.Request], httpx.Response], clock: FakeClock) -> KieImageClient:
    return KieImageClient(
        "kie-key",
        base_url=BASE,
        model="nano-banana-pro",
        poll_interval=1.0,
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        sleep=clock.sleep,
        clock=clock,
    )


def _record(state: str, **data) -> httpx.Response:
    return httpx.Response(200, json={"code": 200, "data": {"taskId": "task-1", "state": state, **data}})


def _handler(states: List[httpx.Response], seen: List[httpx.Request]):
    def handle(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.url.path.endswith("/createTask"):
            return httpx.Response(200, json={"code": 200, "msg": "success", "data": {"taskId": "task-1"}})
        if request.url.path.endswith("/recordInfo"):
            return states.pop(0)
        if str(request.url) == RESULT_URL:
            return httpx.Response(200, content=b"\x89PNG")
        return httpx.Response(404)

    return handle


def test_generate_image_happy_path() -> None:
    clock = FakeClock()
    seen: List[httpx.Request] = []
    states = [
        _record("queuing"),
        _record("generating"),
        _record("success", resultJson=json.dumps({"resultUrls": [RESULT_URL]})),
    ]
    client = _client(_handler(states, seen), clock)

    image = client.generate_image(["https://x.test/photo.jpg"], "Dress as a pirate", deadline=60.0)

    assert image.url == RESULT_URL
    assert image.content == b"\x89PNG"

    create = seen[0]
    assert create.headers["Authorization"] == "Bearer kie-key"
    assert json.loads(create.content) == {
        "model": "nano-banana-pro",
        "input": {"prompt": "Dress as a pirate", "image_input": ["https://x.test/photo.jpg"]},
    }
    assert seen[1].url.params["taskId"] == "task-1"
    assert clock.now == 3.0


def test_create_task_rejected() -> None:
    def handle(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"code": 402, "msg": "insufficient credits"})

    with pytest.raises(ImageGenerationError, match="insufficient credits"):
        _client(handle, FakeClock()).generate_image(["https://x.test/p.jpg"], "p", deadline=60.0)


def test_create_task_http_error() -> None:
    def handle(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    with pytest.raises(ImageGenerationError, match="500"):
        _client(handle, FakeClock()).generate_image(["https://x.test/p.jpg"], "p", deadline=60.0)


def test_task_failure_reports_reason() -> None:
    states = [_record("fail", failMsg="content policy")]
    client = _client(_handler(states, []), FakeClock())

    with pytest.raises(ImageGenerationError, match="content policy") as exc:
        client.generate_image(["https://x.test/p.jpg"], "p", deadline=60.0)

    assert not isinstance(exc.value, ImageGenerationTimeout)


def test_poll_http_errors_are_retried() -> None:
    states = [
        httpx.Response(503),
        _record("success", resultJson=RESULT_URL),
    ]
    client = _client(_handler(states, []), FakeClock())

    assert client.generate_image(["https://x.test/p.jpg"], "p", deadline=60.0).url == RESULT_URL


def test_polling_stops_at_deadline() -> None:
    clock = FakeClock()
    states = [_record("generating") for _ in range(100)]
    client = _client(_handler(states, []), clock)

    with pytest.raises(ImageGenerationTimeout):
        client.generate_image(["https://x.test/p.jpg"], "p", deadline=5.0)

    assert clock.now <= 5.0


def test_success_without_result_is_error() -> None:
    client = _client(_handler([_record("success")], []), FakeClock())

    with pytest.raises(ImageGenerationError, match="resultJson"):
        client.generate_image(["https://x.test/p.jpg"], "p", deadline=60.0)


def test_missing_api_key() -> None:
    with pytest.raises(RuntimeError, match="KIE_API_KEY"):
        KieImageClient("", base_url=BASE, model="nano-banana-pro")


@pytest.mark.parametrize(
    "result_json",
    [
        json.dumps({"resultUrls": [RESULT_URL]}),
        json.dumps(RESULT_URL),
        json.dumps([RESULT_URL]),
        json.dumps([{"url": RESULT_URL}]),
        json.dumps([{"image_url": RESULT_URL}]),
        json.dumps({"image": RESULT_URL}),
        RESULT_URL,
    ],
)
def test_extract_result_url_formats(result_json: str) -> None:
    assert extract_result_url(result_json) == RESULT_URL


@pytest.mark.parametrize("result_json", [json.dumps({"resultUrls": []}), json.dumps({}), json.dumps([])])
def test_extract_result_url_rejects_empty(result_json: str) -> None:
    with pytest.raises(ImageGenerationError):
        extract_result_url(result_json)


def test_resolve_public_url() -> None:
    assert resolve_public_url("/templates/pirata.jpg", "https://event.test/") == "https://event.test/templates/pirata.jpg"
    assert resolve_public_url("templates/pirata.jpg", "https://event.test") == "https://event.test/templates/pirata.jpg"
    assert resolve_public_url("https://cdn.test/p.jpg", "https://event.test") == "https://cdn.test/p.jpg"
