from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator, Iterable

import pytest

from convoflow.core.errors import GenerationBackendError
from convoflow.core.routing_types import ChatTurn, ConversationMetrics


class RecordingRecorder:
    """Metrics recorder that keeps every record in memory."""

    def __init__(self) -> None:
        self.conversations: list[ConversationMetrics] = []
        self.errors: list[tuple[BaseException, str]] = []

    async def track_conversation(self, metrics: ConversationMetrics) -> None:
        self.conversations.append(metrics)

    async def track_error(self, error: BaseException, context: str) -> None:
        self.errors.append((error, context))


class FakeInvoker:
    """Stands in for `GenerationInvoker`; optionally fails at a chunk index."""

    def __init__(
        self,
        chunks: Iterable[str] = ("Hello", " world"),
        fail_at: int | None = None,
        error: Exception | None = None,
    ) -> None:
        self.chunks = list(chunks)
        self.fail_at = fail_at
        self.error = error or GenerationBackendError("GROQ HTTP ERROR (503)", 503)
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    def generate(self, messages: Iterable[ChatTurn], model_id: str, system_prompt: str) -> AsyncIterator[str]:
        self.calls.append(
            {"messages": list(messages), "model_id": model_id, "system_prompt": system_prompt}
        )
        return self._stream()

    async def _stream(self) -> AsyncIterator[str]:
        try:
            for index, chunk in enumerate(self.chunks):
                if self.fail_at == index:
                    raise self.error
                yield chunk
            if self.fail_at is not None and self.fail_at >= len(self.chunks):
                raise self.error
        finally:
            self.closed = True


async def collect(chunks: AsyncIterator[str]) -> list[str]:
    return [chunk async for chunk in chunks]


def run(coro):
    return asyncio.run(coro)


def drive(orchestrator, request) -> tuple[Any, list[str] | None]:
    """Handle a request and drain any stream inside one event loop."""

    async def _go():
        reply = await orchestrator.handle(request)
        chunks = await collect(reply.chunks) if reply.chunks is not None else None
        return reply, chunks

    return asyncio.run(_go())


@pytest.fixture
def recorder() -> RecordingRecorder:
    return RecordingRecorder()


@pytest.fixture
def invoker() -> FakeInvoker:
    return FakeInvoker()
