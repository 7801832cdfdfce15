"""Core request orchestration for image short-circuit, enhancement, and generation.

Architectural role:
    Provides the execution pipeline used by the HTTP and CLI adapters to turn one
    `InboundRequest` into a `ChatReply`: a live chunk stream, a complete text,
    a validation rejection, or the fallback envelope.

Control-flow model:
    1. Reject empty messages (`Message is required`).
    2. Image requests short-circuit to `synthesize_image`; no generation call.
    3. Otherwise: enhance -> classify (enhanced text) -> select backend ->
       build messages (history + enhanced turn) -> start generation.
    4. Await the first chunk before replying, so backend failures that happen
       before any byte is produced still become the fallback envelope.
    5. Relay the remaining chunks one by one; emit metrics when the stream ends.

Metrics:
    Exactly one terminal record per accepted request: `track_conversation` on
    success (image or stream) or `track_error` on failure. Response time runs
    from receipt to the last relayed chunk (or the failure). Rejected requests
    and client disconnects mid-stream record nothing.

Error handling strategy:
    `handle` never raises. Any exception before streaming starts (including a
    conversation history that cannot be mapped to turns) becomes a
    `failed` reply carrying the apology envelope; a failure after streaming
    started is recorded and ends the stream, since the status line is already
    committed. Raw backend text stays in the logs.

Concurrency:
    The orchestrator holds only injected, stateless collaborators. One instance
    can serve any number of concurrent requests.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable

from convoflow.analytics.tracker import LoggingMetricsRecorder, MetricsRecorder
from convoflow.core.routing_types import (
    ClassificationResult,
    ConversationMetrics,
    InboundRequest,
    Intent,
)
from convoflow.image.service import (
    IMAGE_CONFIDENCE,
    IMAGE_ENTITIES,
    IMAGE_MODEL_ID,
    is_image_request,
    synthesize_image,
)
from convoflow.llm.model_selector import FixedModelSelector, ModelSelector
from convoflow.llm.service import GenerationInvoker
from convoflow.nlp.intent_router import classify_intent
from convoflow.prompting.prompt_builder import ENHANCED_SYSTEM_PROMPT, build_generation_messages
from convoflow.retrieval.context_builder import SearchProvider, enhance_with_context


logger = logging.getLogger(__name__)

MESSAGE_REQUIRED = "Message is required"
FALLBACK_ERROR_MESSAGE = "I'm experiencing technical difficulties. Please try again in a moment."
UNKNOWN_MODEL = "unknown"

REPLY_STREAM = "stream"
REPLY_TEXT = "text"
REPLY_REJECTED = "rejected"
REPLY_FAILED = "failed"

_STATUS_BY_KIND = {
    REPLY_STREAM: 200,
    REPLY_TEXT: 200,
    REPLY_REJECTED: 400,
    REPLY_FAILED: 500,
}


@dataclass
class ChatReply:
    """Outcome of one handled request.

    Attributes:
        kind: One of `stream`, `text`, `rejected`, `failed`.
        text: Complete body for `text` and `rejected` replies.
        chunks: Single-consumer chunk stream for `stream` replies.
        envelope: Fallback payload for `failed` replies.
        source: Backend stream behind `chunks`, already started.

    A `stream` reply holds an open backend response until `chunks` is
    exhausted or `aclose` is called. Adapters that may drop the reply without
    iterating it (for example on client disconnect before the body starts)
    must call `aclose`.
    """

    kind: str
    text: str = ""
    chunks: AsyncIterator[str] | None = None
    envelope: dict[str, Any] | None = None
    source: AsyncIterator[str] | None = None

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND[self.kind]

    async def aclose(self) -> None:
        """Release the backend stream. Safe to call more than once."""
        for stream in (self.chunks, self.source):
            if stream is not None and hasattr(stream, "aclose"):
                await stream.aclose()


def _elapsed_ms(clock: Callable[[], float], started: float) -> int:
    return max(0, int((clock() - started) * 1000))


class ChatOrchestrator:
    """End-to-end chat request handler.

    Args:
        invoker: Generation invoker. Defaults to the configured HTTP backend.
        selector: Model-selection policy. Defaults to `FixedModelSelector`.
        recorder: Metrics sink. Defaults to `LoggingMetricsRecorder`.
        search: Context search provider. Defaults to the placeholder provider.
        system_prompt: System prompt sent with every generation call.
        clock: Monotonic clock in seconds.
    """

    def __init__(
        self,
        invoker: GenerationInvoker | None = None,
        selector: ModelSelector | None = None,
        recorder: MetricsRecorder | None = None,
        search: SearchProvider | None = None,
        system_prompt: str = ENHANCED_SYSTEM_PROMPT,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.invoker = invoker if invoker is not None else GenerationInvoker()
        self.selector = selector if selector is not None else FixedModelSelector()
        self.recorder = recorder if recorder is not None else LoggingMetricsRecorder()
        self.search = search
        self.system_prompt = system_prompt
        self.clock = clock

    async def handle(self, request: InboundRequest) -> ChatReply:
        """Process one request. Never raises."""
        started = self.clock()

        if not request.message:
            logger.info("Rejected chat request: empty message")
            return ChatReply(REPLY_REJECTED, text=MESSAGE_REQUIRED)

        selected_model: str | None = None

        try:
            if is_image_request(request.message):
                return await self._handle_image(request.message, started)

            enhanced_message = await enhance_with_context(request.message, self.search)
            classification = classify_intent(enhanced_message)
            selected_model = self.selector.select(classification.intent, len(enhanced_message))

            logger.info(
                "Enhanced processing: intent=%s confidence=%.2f entities=%s model=%s enhanced=%r",
                classification.intent.value,
                classification.confidence,
                list(classification.entities),
                selected_model,
                enhanced_message[:100],
            )

            messages = build_generation_messages(request.conversation_history, enhanced_message)
            stream = self.invoker.generate(messages, selected_model, self.system_prompt)

            # Prime the stream so pre-first-byte failures still reach the envelope.
            try:
                first_chunk = await stream.__anext__()
                has_first = True
            except StopAsyncIteration:
                first_chunk, has_first = "", False

        except Exception as err:
            return await self._fail(err, selected_model, started)

        return ChatReply(
            REPLY_STREAM,
            chunks=self._relay(stream, first_chunk, has_first, classification, selected_model, started),
            source=stream,
        )

    async def _handle_image(self, message: str, started: float) -> ChatReply:
        """Short-circuit path: complete placeholder image reply, no generation."""
        reply_text = synthesize_image(message)
        await self._track_conversation(
            ConversationMetrics(
                response_time_ms=_elapsed_ms(self.clock, started),
                model_used=IMAGE_MODEL_ID,
                confidence=IMAGE_CONFIDENCE,
                intent=Intent.IMAGE,
                entities=IMAGE_ENTITIES,
            )
        )
        return ChatReply(REPLY_TEXT, text=reply_text)

    async def _relay(
        self,
        stream: AsyncIterator[str],
        first_chunk: str,
        has_first: bool,
        classification: ClassificationResult,
        model_id: str,
        started: float,
    ) -> AsyncIterator[str]:
        """Forward chunks as they arrive, then record the terminal metrics.

        Edge cases:
            - Closing this generator early closes the backend stream and skips
              metrics.
            - A backend failure mid-stream records one error and ends the stream.
        """
        try:
            if has_first:
                yield first_chunk
            async for chunk in stream:
                yield chunk
        except Exception as err:
            elapsed = _elapsed_ms(self.clock, started)
            logger.error("Generation stream failed after first chunk: model=%s elapsed=%dms", model_id, elapsed)
            await self._track_error(err, model_id, elapsed)
            return
        finally:
            if hasattr(stream, "aclose"):
                await stream.aclose()

        await self._track_conversation(
            ConversationMetrics(
                response_time_ms=_elapsed_ms(self.clock, started),
                model_used=model_id,
                confidence=classification.confidence,
                intent=classification.intent,
                entities=classification.entities,
            )
        )

    async def _fail(self, err: Exception, model_id: str | None, started: float) -> ChatReply:
        """Convert a pipeline exception into the fallback envelope."""
        elapsed = _elapsed_ms(self.clock, started)
        logger.error(
            "Chat pipeline failed: model=%s status=%s elapsed=%dms error=%s",
            model_id,
            getattr(err, "status_code", None),
            elapsed,
            err,
        )
        await self._track_error(err, model_id, elapsed)
        return ChatReply(
            REPLY_FAILED,
            envelope={
                "error": FALLBACK_ERROR_MESSAGE,
                "fallback": True,
                "modelUsed": model_id or UNKNOWN_MODEL,
                "responseTime": elapsed,
            },
        )

    async def _track_conversation(self, metrics: ConversationMetrics) -> None:
        try:
            await self.recorder.track_conversation(metrics)
        except Exception:
            logger.exception("Metrics recorder failed to track conversation")

    async def _track_error(self, err: Exception, model_id: str | None, elapsed_ms: int) -> None:
        context = f"Model: {model_id or UNKNOWN_MODEL}, ResponseTime: {elapsed_ms}ms"
        try:
            await self.recorder.track_error(err, context)
        except Exception:
            logger.exception("Metrics recorder failed to track error")
