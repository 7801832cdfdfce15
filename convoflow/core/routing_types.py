"""Request, classification, and metrics data contracts for `convoflow.core.engine`.

Architectural role:
    Defines the immutable value types passed between the adapter layer
    (`convoflow.api`), the classification/enhancement helpers, the generation
    invoker, and the metrics recorder.

Control-flow interaction:
    - Adapters build one `InboundRequest` per call.
    - `nlp.intent_router.classify_intent` produces a `ClassificationResult`.
    - `llm.service.GenerationInvoker` builds one `GenerationRequest` per call.
    - `core.engine.ChatOrchestrator` emits one `ConversationMetrics` per request.

Determinism:
    All types are frozen and state-free. Nothing here performs I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Intent(str, Enum):
    """Coarse purpose of a user message."""

    QUESTION = "question"
    REQUEST = "request"
    GREETING = "greeting"
    COMPLAINT = "complaint"
    COMPLIMENT = "compliment"
    TECHNICAL = "technical"
    GENERAL = "general"
    IMAGE = "image"


@dataclass(frozen=True)
class ChatTurn:
    """One role/content pair of conversation history."""

    role: str
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class InboundRequest:
    """One chat call as received by an adapter.

    Attributes:
        message: Current user message. Must be non-empty to enter the pipeline.
        conversation_history: Prior turns in order, as received: `ChatTurn`
            values or role/content mappings. Neither length nor shape is
            validated here; unusable entries fail inside the pipeline.
        user_context: Optional opaque caller context, passed through untouched.
    """

    message: str
    conversation_history: Any = ()
    user_context: dict[str, Any] | None = None


@dataclass(frozen=True)
class ClassificationResult:
    """Intent label, confidence score, and entity tags for one message.

    `entities` has set semantics (no duplicates) but keeps insertion order so
    log output stays stable.
    """

    intent: Intent
    confidence: float
    entities: tuple[str, ...] = ()


@dataclass(frozen=True)
class GenerationRequest:
    """Fully bound streaming completion request for one backend call."""

    model: str
    messages: tuple[ChatTurn, ...]
    system_prompt: str
    temperature: float
    max_tokens: int

    def to_payload(self) -> dict[str, Any]:
        """Render as an OpenAI-compatible chat-completions payload."""
        return {
            "model": self.model,
            "messages": [{"role": "system", "content": self.system_prompt}]
            + [turn.to_dict() for turn in self.messages],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "stream": True,
        }


@dataclass(frozen=True)
class ConversationMetrics:
    """Terminal per-request record handed to the metrics recorder."""

    response_time_ms: int
    model_used: str
    confidence: float
    intent: Intent | None = None
    entities: tuple[str, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "responseTime": self.response_time_ms,
            "modelUsed": self.model_used,
            "confidence": self.confidence,
            "intent": self.intent.value if self.intent is not None else None,
            "entities": list(self.entities) if self.entities is not None else None,
        }
