"""Prompt assembly helpers used by core orchestration.

This module only builds the system prompt and the ordered message list for one
generation call. Enhancement, classification, model selection, and invocation
happen outside this module.

Design constraints:
    - Deterministic construction for identical inputs.
    - Prior turns keep their order; only `role` and `content` survive.
    - Roles are forwarded as given; the backend decides what it accepts.
    - The current (enhanced) user turn is always last.
    - No I/O, no global state mutation.
"""

from collections.abc import Mapping
from typing import Any

from convoflow.core.routing_types import ChatTurn


# =========================================================
# SYSTEM PROMPT (GLOBAL)
# =========================================================
# Sent as the system message on every normal-pipeline generation call.

ENHANCED_SYSTEM_PROMPT = (
    "You are an advanced conversational AI assistant with search, analysis, and "
    "image generation capabilities.\n\n"
    "SEARCH & ANALYSIS:\n"
    "- Synthesize information from the additional context supplied with a message.\n"
    "- Give detailed explanations with supporting evidence and examples.\n"
    "- Present multiple perspectives when relevant.\n\n"
    "IMAGE GENERATION:\n"
    "- Describe visual ideas clearly and suggest visual aids when they help.\n\n"
    "RESPONSE GUIDELINES:\n"
    "1. Answer thoroughly and address every part of the question.\n"
    "2. Connect theory to practical applications.\n"
    "3. Anticipate related follow-up questions.\n"
    "4. Prioritize factual correctness and state limitations when uncertain.\n"
    "5. Keep complex topics accessible and engaging.\n"
)


# =========================================================
# MESSAGE LIST
# =========================================================
# Component order:
#   1) prior conversation turns, as given by the caller
#   2) current user turn (enhanced message)

def _as_turn(entry: Any) -> ChatTurn:
    """Reduce one history entry to its role/content pair."""
    if isinstance(entry, ChatTurn):
        return ChatTurn(role=entry.role, content=entry.content)
    if isinstance(entry, Mapping):
        return ChatTurn(role=entry["role"], content=entry["content"])
    raise TypeError(f"unusable conversation history entry: {type(entry).__name__}")


def build_generation_messages(history: Any, user_message: str) -> list[ChatTurn]:
    """Build the ordered message list for one generation call.

    Args:
        history: Prior turns supplied by the caller, as `ChatTurn` values or
            role/content mappings. Length is not limited here.
        user_message: Current user turn after context enhancement.

    Returns:
        New list of role/content turns ending with the current user turn.

    Raises:
        TypeError: If `history` is not a list/tuple or holds a non-turn entry.
        KeyError: If a mapping entry lacks `role` or `content`.
    """
    if not isinstance(history, (list, tuple)):
        raise TypeError(f"conversation history must be a list, got {type(history).__name__}")

    messages = [_as_turn(entry) for entry in history]
    messages.append(ChatTurn(role="user", content=user_message))
    return messages
