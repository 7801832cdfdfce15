"""Generation invoker binding sampling defaults to every model call.

Architectural role:
    Provides the text-generation entrypoint used by core orchestration. Bridges
    prompt assembly (`convoflow.prompting`) to transport (`convoflow.llm.client`).

Model call flow:
    messages + backend id + system prompt -> `GenerationRequest`
    -> `StreamingChatClient.stream_chat(...)` -> async chunk stream.

Parameter semantics:
    - `temperature=0.7` and `max_tokens=1000` on every call (`provider_config`).

Stream contract:
    `generate` returns a lazy, single-pass async iterator. Nothing is sent to the
    backend until the first chunk is requested, and a drained or closed stream
    cannot be restarted; call `generate` again instead. Backend failures raise
    `GenerationBackendError` from the iterator.
"""

from typing import AsyncIterator, Iterable

from convoflow.core.routing_types import ChatTurn, GenerationRequest
from convoflow.llm.client import StreamingChatClient
from convoflow.llm.provider_config import MAX_TOKENS, TEMPERATURE


class GenerationInvoker:
    """Wraps a streaming client with the fixed sampling parameters."""

    def __init__(self, client: StreamingChatClient | None = None) -> None:
        self.client = client if client is not None else StreamingChatClient()

    @staticmethod
    def build_request(
        messages: Iterable[ChatTurn],
        model_id: str,
        system_prompt: str,
    ) -> GenerationRequest:
        """Bind messages, backend, and system prompt into a fresh request."""
        return GenerationRequest(
            model=model_id,
            messages=tuple(messages),
            system_prompt=system_prompt,
            temperature=TEMPERATURE,
            max_tokens=MAX_TOKENS,
        )

    def generate(
        self,
        messages: Iterable[ChatTurn],
        model_id: str,
        system_prompt: str,
    ) -> AsyncIterator[str]:
        """Start a streaming generation and return its chunk iterator."""
        request = self.build_request(messages, model_id, system_prompt)
        return self.client.stream_chat(request)

    async def generate_text(
        self,
        messages: Iterable[ChatTurn],
        model_id: str,
        system_prompt: str,
    ) -> str:
        """Non-streamed equivalent of `generate`: the concatenation of all chunks."""
        chunks: list[str] = []
        async for chunk in self.generate(messages, model_id, system_prompt):
            chunks.append(chunk)
        return "".join(chunks)
