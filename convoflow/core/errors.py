"""Exception types raised inside the chat pipeline.

Only unrecoverable conditions are modelled as exceptions. Enhancement and image
synthesis failures are recovered inside their own modules and never surface here.
"""


class ChatPipelineError(Exception):
    """Base class for pipeline errors."""


class RequestValidationError(ChatPipelineError, ValueError):
    """Inbound request rejected before any pipeline stage runs."""


class GenerationBackendError(ChatPipelineError, RuntimeError):
    """The generation backend failed (network, status, or malformed stream).

    The message is sanitized and safe to log; the original exception is kept
    as `__cause__`.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
