from __future__ import annotations

from convoflow.core.routing_types import Intent
from convoflow.llm.model_selector import FixedModelSelector


def test_default_selector_returns_groq_for_every_input() -> None:
    selector = FixedModelSelector()
    picks = {selector.select(intent, length) for intent in Intent for length in (0, 12, 5000)}
    assert picks == {"groq"}


def test_selector_model_is_configurable() -> None:
    assert FixedModelSelector("local").select(Intent.QUESTION, 10) == "local"
