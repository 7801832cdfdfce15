from __future__ import annotations

import builtins

import pytest

from conftest import FakeInvoker, RecordingRecorder

from convoflow.api import cli
from convoflow.core.engine import ChatOrchestrator
from convoflow.core.routing_types import ChatTurn


def _feed(monkeypatch: pytest.MonkeyPatch, *lines: str) -> None:
    pending = iter(lines)

    def fake_input(prompt: str = "") -> str:
        try:
            return next(pending)
        except StopIteration:
            raise EOFError

    monkeypatch.setattr(builtins, "input", fake_input)
    monkeypatch.setattr(cli, "setup_logging", lambda: None)


def test_cli_streams_reply_and_keeps_history(monkeypatch, capsys, recorder) -> None:
    invoker = FakeInvoker()
    _feed(monkeypatch, "hello there", "", "Tell me more", "exit")

    cli.main(ChatOrchestrator(invoker=invoker, recorder=recorder))

    out = capsys.readouterr().out
    assert "Hello world" in out
    assert "Shutting down." in out
    assert len(invoker.calls) == 2
    assert invoker.calls[1]["messages"] == [
        ChatTurn("user", "hello there"),
        ChatTurn("assistant", "Hello world"),
        ChatTurn("user", "Tell me more"),
    ]


def test_cli_clear_chat_resets_history(monkeypatch, recorder) -> None:
    invoker = FakeInvoker()
    _feed(monkeypatch, "hello there", "clear chat", "Tell me more", "quit")

    cli.main(ChatOrchestrator(invoker=invoker, recorder=recorder))

    assert invoker.calls[1]["messages"] == [ChatTurn("user", "Tell me more")]


def test_cli_prints_apology_and_skips_history_on_failure(monkeypatch, capsys) -> None:
    recorder = RecordingRecorder()
    invoker = FakeInvoker(fail_at=0)
    _feed(monkeypatch, "Tell me a story", "Tell me another")

    cli.main(ChatOrchestrator(invoker=invoker, recorder=recorder))

    out = capsys.readouterr().out
    assert "technical difficulties" in out
    assert "Session ended." in out
    assert invoker.calls[1]["messages"] == [ChatTurn("user", "Tell me another")]
    assert len(recorder.errors) == 2


def test_cli_image_reply_is_printed_whole(monkeypatch, capsys, recorder) -> None:
    invoker = FakeInvoker()
    _feed(monkeypatch, "draw a cat", "exit")

    cli.main(ChatOrchestrator(invoker=invoker, recorder=recorder))

    assert "![Generated Image](" in capsys.readouterr().out
    assert invoker.calls == []
