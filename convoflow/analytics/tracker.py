"""Per-request metrics side channel.

Architectural role:
    Receives exactly one terminal record per handled request from
    `convoflow.core.engine`: a `ConversationMetrics` on success, or an error
    context on failure.

Persistence:
    None. Records are written to the `convoflow.analytics` logger and are
    transient by design of the deployment; any log shipping is external.

Failure handling:
    Recorders may raise. The orchestrator guards every call so a recorder
    failure never changes the response sent to the caller.
"""

import logging
from datetime import datetime, timezone
from typing import Protocol

from convoflow.core.routing_types import ConversationMetrics


ANALYTICS_LOGGER_NAME = "convoflow.analytics"


class MetricsRecorder(Protocol):
    """Sink for terminal per-request records.

    Calls are awaited on the request path (after the image reply is built,
    after the last stream chunk, or before the fallback envelope is returned),
    so implementations must not block: return promptly and hand any slow
    delivery (network, disk) to a background task or queue.
    """

    async def track_conversation(self, metrics: ConversationMetrics) -> None:
        ...

    async def track_error(self, error: BaseException, context: str) -> None:
        ...


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


class LoggingMetricsRecorder:
    """Writes metrics records to the analytics logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger if logger is not None else logging.getLogger(ANALYTICS_LOGGER_NAME)

    async def track_conversation(self, metrics: ConversationMetrics) -> None:
        self.logger.info(
            "Conversation analytics: %s",
            {"timestamp": _timestamp(), **metrics.to_dict()},
        )

    async def track_error(self, error: BaseException, context: str) -> None:
        # Traceback goes to the log only; callers never see it.
        self.logger.error(
            "Error tracked: %s",
            {"timestamp": _timestamp(), "context": context, "error": str(error)},
            exc_info=(type(error), error, error.__traceback__),
        )
