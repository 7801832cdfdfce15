from __future__ import annotations

import pytest

from convoflow.core.routing_types import ChatTurn
from convoflow.prompting.prompt_builder import build_generation_messages


def test_turns_and_mappings_keep_order_and_drop_extra_fields() -> None:
    history = [
        ChatTurn("user", "hi"),
        {"id": "2", "role": "assistant", "content": "hello", "timestamp": "t"},
        {"role": "system", "content": "stay on topic"},
    ]

    assert build_generation_messages(history, "next") == [
        ChatTurn("user", "hi"),
        ChatTurn("assistant", "hello"),
        ChatTurn("system", "stay on topic"),
        ChatTurn("user", "next"),
    ]


def test_empty_history_yields_only_user_turn() -> None:
    assert build_generation_messages((), "hello") == [ChatTurn("user", "hello")]


@pytest.mark.parametrize("history", ["abc", {"role": "user", "content": "x"}, 7])
def test_non_list_history_is_rejected(history) -> None:
    with pytest.raises(TypeError):
        build_generation_messages(history, "hello")


def test_non_mapping_entry_is_rejected() -> None:
    with pytest.raises(TypeError):
        build_generation_messages(["just text"], "hello")


def test_entry_missing_role_is_rejected() -> None:
    with pytest.raises(KeyError):
        build_generation_messages([{"content": "x"}], "hello")
