"""Lookup-style context enhancement for the normal generation pipeline.

Architectural role:
    Decides whether a user message asks for lookup-style information and, if so,
    appends an `Additional Context` block produced by a search provider. The
    enhanced text is what `convoflow.core.engine` classifies and sends to the
    model as the current user turn.

Retrieval strategy:
    - Trigger: `?` anywhere in the message, or `search` / `find` / `research` as a
      case-insensitive substring.
    - Provider: any object implementing `SearchProvider.aretrieve_context`.
      The default `PlaceholderSearch` returns synthetic text and performs no I/O.

Failure handling:
    `enhance_with_context` never raises. Provider failures are logged and the
    context block carries `SEARCH_UNAVAILABLE_MESSAGE` instead, so the original
    message is always preserved as the prefix of the returned text.

Determinism:
    Deterministic with the default provider.
"""

import logging
from typing import Protocol


logger = logging.getLogger(__name__)

SEARCH_TRIGGERS = ("search", "find", "research")
CONTEXT_SEPARATOR = "\n\nAdditional Context: "
SEARCH_UNAVAILABLE_MESSAGE = "Search functionality temporarily unavailable."


class SearchProvider(Protocol):
    """Minimal async interface required for context enhancement."""

    async def aretrieve_context(self, query: str) -> str:
        """Retrieve and return context text for a query."""
        ...


class PlaceholderSearch:
    """Stand-in provider returning synthetic context for any query."""

    async def aretrieve_context(self, query: str) -> str:
        return (
            f'Based on comprehensive search results for "{query}":\n\n'
            "Recent findings and authoritative sources indicate multiple perspectives on this topic.\n"
            "Key insights from academic papers, industry reports, and expert analyses suggest...\n"
            "[This would integrate with actual search APIs in production]"
        )


_DEFAULT_SEARCH = PlaceholderSearch()


def needs_enhancement(message: str) -> bool:
    """Return whether `message` should receive an additional context block."""
    if not message:
        return False
    if "?" in message:
        return True
    lowered = message.lower()
    return any(trigger in lowered for trigger in SEARCH_TRIGGERS)


async def enhance_with_context(message: str, search: SearchProvider | None = None) -> str:
    """Append search context to `message` when it looks like a lookup request.

    Args:
        message: Original user message.
        search: Provider override. Defaults to `PlaceholderSearch`.

    Returns:
        `message` unchanged when no trigger matches, otherwise
        `message + CONTEXT_SEPARATOR + context`.

    Edge cases:
        - Provider exceptions yield `SEARCH_UNAVAILABLE_MESSAGE` as the context.
    """
    if not needs_enhancement(message):
        return message

    provider = search if search is not None else _DEFAULT_SEARCH

    try:
        context = await provider.aretrieve_context(message)
    except Exception:
        logger.exception("Context search failed")
        context = SEARCH_UNAVAILABLE_MESSAGE

    return f"{message}{CONTEXT_SEPARATOR}{context}"
