"""Tests for the UI-facing MessageLog."""

import pytest

from orchestria.chat.log import MessageLog, MessageRole, TurnHandle
from orchestria.errors import MessageLogError


def test_greeting_is_first_entry():
    log = MessageLog(greeting="Hello.")
    [greeting] = log.messages
    assert greeting.role is MessageRole.ASSISTANT
    assert greeting.text == "Hello."
    assert not greeting.streaming


def test_append_user_and_assistant_in_order():
    log = MessageLog()
    log.append_user("hi")
    log.append_assistant("hello")
    assert [(m.role, m.text) for m in log.messages] == [
        (MessageRole.USER, "hi"),
        (MessageRole.ASSISTANT, "hello"),
    ]
    assert len(log) == 2


def test_streaming_turn_grows_then_freezes():
    log = MessageLog()
    handle, opened = log.begin_assistant_turn()
    assert opened.message.streaming
    assert opened.message.text == ""

    log.append_delta(handle, "Hel")
    update = log.append_delta(handle, "lo")
    assert update.message.text == "Hello"
    assert update.message.streaming

    final = log.finalize(handle)
    assert final.message.text == "Hello"
    assert not final.message.streaming
    assert log.open_entry is None
    assert log.messages[-1].id == handle.message_id


def test_only_one_open_turn():
    log = MessageLog()
    log.begin_assistant_turn()
    with pytest.raises(MessageLogError):
        log.begin_assistant_turn()


def test_stale_handle_rejected():
    log = MessageLog()
    handle, _ = log.begin_assistant_turn()
    log.finalize(handle)
    with pytest.raises(MessageLogError):
        log.append_delta(handle, "late")
    with pytest.raises(MessageLogError):
        log.finalize(TurnHandle("nope"))


def test_updates_are_snapshots():
    log = MessageLog()
    handle, first = log.begin_assistant_turn()
    log.append_delta(handle, "abc")
    assert first.message.text == ""

    snapshot = log.messages
    snapshot[0].text = "mutated"
    assert log.messages[0].text == "abc"


def test_subscribe_and_unsubscribe():
    log = MessageLog()
    seen = []
    unsubscribe = log.subscribe(lambda u: seen.append(u.message.text))
    log.append_user("one")
    unsubscribe()
    log.append_user("two")
    assert seen == ["one"]


def test_failing_listener_does_not_break_log():
    log = MessageLog()

    def boom(update):
        raise RuntimeError("listener bug")

    log.subscribe(boom)
    update = log.append_user("still works")
    assert update.message.text == "still works"
    assert len(log) == 1
