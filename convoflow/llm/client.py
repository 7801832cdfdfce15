"""Streaming transport client for OpenAI-compatible chat-completion backends.

Architectural role:
    Executes one streaming HTTP request per `GenerationRequest` and yields text
    deltas as they arrive.

Model invocation flow:
    `service.GenerationInvoker.generate` -> `StreamingChatClient.stream_chat`
    -> `POST <backend url>` with `stream: true` -> SSE `data:` frames -> deltas.

Retry behavior:
    None. Each call is attempted once. A timeout applies only when
    `LLM_TIMEOUT_SECONDS` is configured.

Failure handling model:
    Every backend failure raises `GenerationBackendError` carrying a sanitized,
    provider-labeled message; the httpx exception is chained as the cause.
    Nothing is converted into stream text, so callers can tell a failure apart
    from an empty answer.

Resource handling:
    The httpx client and response are scoped to the async generator. Closing the
    generator early (`aclose`) closes the HTTP response.
"""

import json
from typing import Any, AsyncIterator

import httpx

from convoflow.core.errors import GenerationBackendError
from convoflow.core.routing_types import GenerationRequest
from convoflow.llm.provider_config import BACKENDS, LLM_TIMEOUT_SECONDS, load_key


_UNSET = object()


def _build_sanitized_http_error(backend_id: str, err: httpx.HTTPStatusError) -> GenerationBackendError:
    """Build a backend-labeled status error without exposing the response body."""
    status_code = err.response.status_code if err.response is not None else None
    label = str(backend_id or "backend").upper()
    if status_code:
        return GenerationBackendError(f"{label} HTTP ERROR ({status_code})", status_code)
    return GenerationBackendError(f"{label} HTTP ERROR")


def _sanitize_transport_error(backend_id: str) -> GenerationBackendError:
    """Build a generic backend-labeled transport failure."""
    label = str(backend_id or "backend").upper()
    return GenerationBackendError(f"{label} REQUEST FAILED")


def _extract_delta(data: dict[str, Any]) -> str | None:
    """Pull the text delta out of one decoded stream frame."""
    if "choices" in data and data["choices"]:
        choice = data["choices"][0]

        if "delta" in choice and "content" in choice["delta"]:
            return choice["delta"]["content"]

        if "message" in choice and "content" in choice["message"]:
            return choice["message"]["content"]

        if "text" in choice:
            return choice["text"]

    elif "message" in data and "content" in data["message"]:
        return data["message"]["content"]

    return None


class StreamingChatClient:
    """OpenAI-compatible streaming client.

    Args:
        backends: Backend map (see `provider_config.BACKENDS`).
        timeout: httpx timeout in seconds, `None` for unbounded.
        transport: Optional httpx transport, used to substitute the network.
    """

    def __init__(
        self,
        backends: dict[str, dict[str, Any]] | None = None,
        timeout: Any = _UNSET,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.backends = backends if backends is not None else BACKENDS
        self.timeout = LLM_TIMEOUT_SECONDS if timeout is _UNSET else timeout
        self.transport = transport

    def _resolve(self, backend_id: str) -> tuple[str, dict[str, str], str]:
        """Return `(url, headers, model_name)` for a backend id."""
        config = self.backends.get(backend_id)
        if not config:
            raise GenerationBackendError(f"UNKNOWN BACKEND: {backend_id}")

        headers = {"Content-Type": "application/json"}

        key_file = config.get("key_file")
        if key_file:
            api_key = load_key(key_file)
            if not api_key:
                raise GenerationBackendError(f"{backend_id.upper()} KEY NOT CONFIGURED")
            headers["Authorization"] = f"Bearer {api_key}"

        return config["url"], headers, config["model"]

    async def stream_chat(self, request: GenerationRequest) -> AsyncIterator[str]:
        """Yield incremental text deltas for one generation request.

        Raises:
            GenerationBackendError: On unknown backend, missing key, HTTP status
                errors, transport errors, or undecodable stream frames.
        """
        url, headers, model_name = self._resolve(request.model)
        payload = {**request.to_payload(), "model": model_name}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                async with client.stream("POST", url, headers=headers, json=payload) as response:
                    response.raise_for_status()

                    async for line in response.aiter_lines():
                        line = line.strip()

                        if not line or line.startswith(":"):
                            continue

                        if line.startswith("data:"):
                            line = line[5:].strip()

                        if line == "[DONE]":
                            break

                        try:
                            data = json.loads(line)
                        except json.JSONDecodeError as err:
                            raise GenerationBackendError(
                                f"{request.model.upper()} MALFORMED STREAM FRAME"
                            ) from err

                        if isinstance(data, dict) and data.get("error"):
                            raise GenerationBackendError(f"{request.model.upper()} STREAM ERROR")

                        delta = _extract_delta(data) if isinstance(data, dict) else None
                        if delta:
                            yield delta

        except httpx.HTTPStatusError as err:
            raise _build_sanitized_http_error(request.model, err) from err

        except httpx.RequestError as err:
            raise _sanitize_transport_error(request.model) from err
