"""Model-selection policy.

The orchestrator asks a `ModelSelector` for a backend id once per request and
never names a backend itself. Only one backend is wired today, so the sole
strategy returns a constant; new strategies can branch on intent or message
length without touching the orchestrator.
"""

from typing import Protocol

from convoflow.core.routing_types import Intent
from convoflow.llm.provider_config import DEFAULT_BACKEND


class ModelSelector(Protocol):
    """Maps a classified request to a backend id from `provider_config.BACKENDS`."""

    def select(self, intent: Intent, message_length: int) -> str:
        ...


class FixedModelSelector:
    """Always selects the same backend."""

    def __init__(self, model_id: str = DEFAULT_BACKEND) -> None:
        self.model_id = model_id

    def select(self, intent: Intent, message_length: int) -> str:
        return self.model_id
