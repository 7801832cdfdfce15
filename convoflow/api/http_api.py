"""
HTTP API adapter for the convoflow chat pipeline.

Architectural role:
- Expose the chat endpoint and a health probe over FastAPI.
- Enforce adapter-level input validation.
- Delegate all request handling to `convoflow.core.engine.ChatOrchestrator`.
- Map `ChatReply` kinds to HTTP responses.

Endpoint responsibilities:
- `GET /health`: liveness plus the default backend id.
- `POST /api/chat`: validate input, invoke the orchestrator, stream or return
  the reply.

API request lifecycle (`POST /api/chat`):
1. Parse request JSON (`message`, optional `conversationHistory`, `userContext`).
2. Validate `message` (non-empty string).
3. Build an immutable `InboundRequest` (history as received) and call
   `ChatOrchestrator.handle`.
4. Format the reply:
   - stream -> 200 `text/plain` streaming body, chunk by chunk,
   - text   -> 200 `text/plain` complete body (image short-circuit),
   - failed -> 500 JSON fallback envelope.

Input validation behavior:
- Missing/empty/non-string `message`, or a body that is not a JSON object
  -> HTTP 400 `Message is required`.
- History is not validated here. Entries are forwarded as role/content pairs
  (extra fields such as `id` are dropped); a history the pipeline cannot use
  becomes the 500 fallback envelope with one error record.

Streaming and disconnects:
- Chunks are forwarded as they arrive; nothing is buffered.
- On client disconnect the server cancels the body iterator; closing it closes
  the orchestrator stream and the backend response.
- A background task calls `ChatReply.aclose` after the response, which also
  releases a primed backend stream whose body never started.

Side effects:
- Loads environment variables at import time via `load_dotenv()`.
- Configures root logging at import time.
- Emits request debug logs only when `DEBUG == "true"`.
"""

from dotenv import load_dotenv

load_dotenv()

import logging
import os
from typing import Any, AsyncIterator

from fastapi import BackgroundTasks, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse
from pydantic import BaseModel, ValidationError

from convoflow.common.logging_setup import setup_logging
from convoflow.core.engine import (
    MESSAGE_REQUIRED,
    REPLY_FAILED,
    REPLY_STREAM,
    ChatOrchestrator,
    ChatReply,
)
from convoflow.core.errors import RequestValidationError
from convoflow.core.routing_types import InboundRequest
from convoflow.llm.provider_config import DEFAULT_BACKEND

LOGGER = logging.getLogger("convoflow.api")
setup_logging()

# Sensitive request debug logging is opt-in.
DEBUG = os.getenv("DEBUG") == "true"


# ============================================================
# Request Schema
# ============================================================

class ChatRequest(BaseModel):
    """Chat body as sent by the UI. History entries are kept as received."""
    message: str
    conversationHistory: Any = None
    userContext: Any = None


def parse_chat_request(body: Any) -> InboundRequest:
    """
    Validate a decoded JSON body and build the inbound request.

    Only `message` is checked here. `conversationHistory` is forwarded as
    received; entries are reduced to role/content pairs by the pipeline, which
    also turns an unusable history into the fallback envelope.

    Raises:
        RequestValidationError: With the client-facing message as its text.
    """
    if not isinstance(body, dict):
        raise RequestValidationError(MESSAGE_REQUIRED)

    message = body.get("message")
    if not isinstance(message, str) or not message:
        raise RequestValidationError(MESSAGE_REQUIRED)

    try:
        parsed = ChatRequest.model_validate(body)
    except ValidationError as err:
        raise RequestValidationError(MESSAGE_REQUIRED) from err

    history = parsed.conversationHistory
    if history is None:
        history = ()
    elif isinstance(history, list):
        history = tuple(history)
    user_context = parsed.userContext if isinstance(parsed.userContext, dict) else None

    return InboundRequest(
        message=parsed.message,
        conversation_history=history,
        user_context=user_context,
    )


# ============================================================
# Reply Formatting
# ============================================================

async def _stream_body(reply: ChatReply) -> AsyncIterator[str]:
    """Forward orchestrator chunks and always close the source stream."""
    try:
        async for chunk in reply.chunks:
            yield chunk
    finally:
        await reply.aclose()


def to_response(reply: ChatReply):
    """Map a `ChatReply` onto the HTTP response contract."""
    if reply.kind == REPLY_STREAM:
        # The body may never start (early disconnect); release the stream after
        # the response either way.
        release = BackgroundTasks()
        release.add_task(reply.aclose)
        return StreamingResponse(
            _stream_body(reply),
            media_type="text/plain; charset=utf-8",
            background=release,
        )

    if reply.kind == REPLY_FAILED:
        return JSONResponse(status_code=reply.status_code, content=reply.envelope)

    return PlainTextResponse(reply.text, status_code=reply.status_code)


# ============================================================
# Application
# ============================================================

def create_app(orchestrator: ChatOrchestrator | None = None) -> FastAPI:
    """
    Build the FastAPI application around one stateless orchestrator.

    Args:
        orchestrator: Injected orchestrator; defaults to the configured backend.
    """
    app = FastAPI()
    app.state.orchestrator = orchestrator if orchestrator is not None else ChatOrchestrator()

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "model": DEFAULT_BACKEND}

    @app.post("/api/chat")
    async def chat(request: Request):
        """
        Chat endpoint.

        Error handling strategy:
        - Validation failures return plain-text 400 responses.
        - All pipeline failures are converted by the orchestrator into the
          500 fallback envelope; nothing else is caught here.
        """
        try:
            body = await request.json()
        except ValueError:
            body = None

        try:
            inbound = parse_chat_request(body)
        except RequestValidationError as err:
            LOGGER.info("Rejected chat request: %s", err)
            return PlainTextResponse(str(err), status_code=400)

        if DEBUG:
            LOGGER.info(
                "Incoming chat request: message=%r history=%s",
                inbound.message,
                type(inbound.conversation_history).__name__,
            )

        reply = await request.app.state.orchestrator.handle(inbound)

        if DEBUG:
            LOGGER.info("Chat reply kind=%s status=%d", reply.kind, reply.status_code)

        return to_response(reply)

    return app


app = create_app()
