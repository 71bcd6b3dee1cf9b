from __future__ import annotations

from datetime import UTC, datetime

from chat_bridge.core.types import ConversationThread, Message, Role, ThreadState


def test_thread_state_satisfies_protocol() -> None:
    assert isinstance(ThreadState(), ConversationThread)


def test_new_bot_message_is_not_appended() -> None:
    thread = ThreadState(messages=(Message(role=Role.user, content='hi'),))
    stamp = datetime(2024, 1, 1, tzinfo=UTC)

    reply = thread.new_message_from_bot(stamp, 'hello')

    assert reply == Message(role=Role.assistant, content='hello', timestamp=stamp)
    assert len(thread.messages) == 1


def test_with_message_returns_new_thread() -> None:
    thread = ThreadState(thread_id='t-1')
    longer = thread.with_message(thread.new_message_from_user(datetime.now(UTC), 'hi'))

    assert thread.messages == ()
    assert longer.thread_id == 't-1'
    assert longer.tail is not None
    assert longer.tail.role is Role.user
