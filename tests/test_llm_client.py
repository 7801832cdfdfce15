from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from conftest import collect, run

from convoflow.core.errors import GenerationBackendError
from convoflow.core.routing_types import ChatTurn, GenerationRequest
from convoflow.llm.client import StreamingChatClient

BACKENDS = {
    "groq": {
        "url": "https://llm.test/v1/chat/completions",
        "key_file": "config/groq.key",
        "model": "llama-3.3-70b-versatile",
    },
    "local": {
        "url": "http://local.test/v1/chat/completions",
        "key_file": None,
        "model": "qwen2.5:3b",
    },
}


def _sse(*frames: Any) -> bytes:
    lines = []
    for frame in frames:
        body = frame if isinstance(frame, str) else json.dumps(frame)
        lines.append(f"data: {body}\n\n")
    return "".join(lines).encode("utf-8")


def _delta(text: str) -> dict[str, Any]:
    return {"choices": [{"index": 0, "delta": {"content": text}}]}


def _request(model: str = "groq") -> GenerationRequest:
    return GenerationRequest(
        model=model,
        messages=(ChatTurn("user", "hi"),),
        system_prompt="be brief",
        temperature=0.7,
        max_tokens=1000,
    )


@pytest.fixture(autouse=True)
def _groq_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GROQ_API_KEY", "test-key")


def test_streams_deltas_and_sends_bound_payload() -> None:
    seen: dict[str, Any] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["payload"] = json.loads(request.content)
        body = _sse(_delta("Hel"), _delta("lo"), {"choices": [{"delta": {}}]}, "[DONE]")
        return httpx.Response(200, content=body)

    client = StreamingChatClient(backends=BACKENDS, timeout=None, transport=httpx.MockTransport(handler))
    chunks = run(collect(client.stream_chat(_request())))

    assert chunks == ["Hel", "lo"]
    assert seen["url"] == "https://llm.test/v1/chat/completions"
    assert seen["auth"] == "Bearer test-key"
    payload = seen["payload"]
    assert payload["model"] == "llama-3.3-70b-versatile"
    assert payload["temperature"] == 0.7
    assert payload["max_tokens"] == 1000
    assert payload["stream"] is True
    assert payload["messages"] == [
        {"role": "system", "content": "be brief"},
        {"role": "user", "content": "hi"},
    ]


def test_ignores_comment_and_blank_lines() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        body = b": keep-alive\n\n" + _sse(_delta("ok"), "[DONE]")
        return httpx.Response(200, content=body)

    client = StreamingChatClient(backends=BACKENDS, timeout=None, transport=httpx.MockTransport(handler))
    assert run(collect(client.stream_chat(_request()))) == ["ok"]


def test_status_error_is_sanitized() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="upstream secret detail")

    client = StreamingChatClient(backends=BACKENDS, timeout=None, transport=httpx.MockTransport(handler))

    with pytest.raises(GenerationBackendError) as exc_info:
        run(collect(client.stream_chat(_request())))

    assert exc_info.value.status_code == 503
    assert str(exc_info.value) == "GROQ HTTP ERROR (503)"
    assert "secret" not in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)


def test_transport_error_is_wrapped() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = StreamingChatClient(backends=BACKENDS, timeout=None, transport=httpx.MockTransport(handler))

    with pytest.raises(GenerationBackendError, match="GROQ REQUEST FAILED"):
        run(collect(client.stream_chat(_request())))


def test_malformed_frame_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=_sse(_delta("a"), "{not json"))

    client = StreamingChatClient(backends=BACKENDS, timeout=None, transport=httpx.MockTransport(handler))

    with pytest.raises(GenerationBackendError, match="MALFORMED STREAM FRAME"):
        run(collect(client.stream_chat(_request())))


def test_error_frame_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=_sse({"error": {"message": "rate limited"}}))

    client = StreamingChatClient(backends=BACKENDS, timeout=None, transport=httpx.MockTransport(handler))

    with pytest.raises(GenerationBackendError, match="STREAM ERROR"):
        run(collect(client.stream_chat(_request())))


def test_unknown_backend_raises() -> None:
    client = StreamingChatClient(backends=BACKENDS, timeout=None)

    with pytest.raises(GenerationBackendError, match="UNKNOWN BACKEND"):
        run(collect(client.stream_chat(_request("nope"))))


def test_missing_key_raises(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    monkeypatch.chdir(tmp_path)
    client = StreamingChatClient(backends=BACKENDS, timeout=None)

    with pytest.raises(GenerationBackendError, match="GROQ KEY NOT CONFIGURED"):
        run(collect(client.stream_chat(_request())))


def test_key_file_is_read_when_env_missing(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "groq.key").write_text("file-key\n", encoding="utf-8")
    seen: dict[str, str | None] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, content=_sse(_delta("x"), "[DONE]"))

    client = StreamingChatClient(backends=BACKENDS, timeout=None, transport=httpx.MockTransport(handler))
    run(collect(client.stream_chat(_request())))

    assert seen["auth"] == "Bearer file-key"


def test_keyless_backend_sends_no_authorization() -> None:
    seen: dict[str, str | None] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, content=_sse(_delta("x"), "[DONE]"))

    client = StreamingChatClient(backends=BACKENDS, timeout=None, transport=httpx.MockTransport(handler))
    run(collect(client.stream_chat(_request("local"))))

    assert seen["auth"] is None
