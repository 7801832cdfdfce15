from __future__ import annotations

from conftest import run

from convoflow.retrieval.context_builder import (
    CONTEXT_SEPARATOR,
    SEARCH_UNAVAILABLE_MESSAGE,
    enhance_with_context,
    needs_enhancement,
)


class _StaticSearch:
    def __init__(self, text: str) -> None:
        self.text = text
        self.queries: list[str] = []

    async def aretrieve_context(self, query: str) -> str:
        self.queries.append(query)
        return self.text


class _BrokenSearch:
    async def aretrieve_context(self, query: str) -> str:
        raise RuntimeError("search backend down")


def test_needs_enhancement_triggers() -> None:
    assert needs_enhancement("What is 2+2?") is True
    assert needs_enhancement("Search for cheap flights") is True
    assert needs_enhancement("FIND my keys") is True
    assert needs_enhancement("do some research on bees") is True


def test_needs_enhancement_negative() -> None:
    assert needs_enhancement("Thanks!") is False
    assert needs_enhancement("") is False


def test_enhance_is_identity_without_trigger() -> None:
    message = "Thanks for the chat."
    assert run(enhance_with_context(message)) == message


def test_enhance_appends_context_block_after_original() -> None:
    message = "What is 2+2?"
    enhanced = run(enhance_with_context(message))
    assert enhanced.startswith(message + CONTEXT_SEPARATOR)
    assert len(enhanced) > len(message + CONTEXT_SEPARATOR)
    assert "What is 2+2?" in enhanced[len(message):]


def test_enhance_uses_supplied_provider() -> None:
    search = _StaticSearch("Four.")
    enhanced = run(enhance_with_context("What is 2+2?", search))
    assert enhanced == "What is 2+2?\n\nAdditional Context: Four."
    assert search.queries == ["What is 2+2?"]


def test_enhance_substitutes_notice_on_provider_failure() -> None:
    enhanced = run(enhance_with_context("find the docs", _BrokenSearch()))
    assert enhanced == "find the docs" + CONTEXT_SEPARATOR + SEARCH_UNAVAILABLE_MESSAGE
