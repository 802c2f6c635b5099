from unittest.mock import MagicMock

import pytest
import requests

from spendwise_bot.telegram import TelegramClient


@pytest.fixture
def session():
    s = MagicMock()
    s.post.return_value = MagicMock(status_code=200, text='{"ok":true}')
    return s


@pytest.fixture
def client(session):
    return TelegramClient("123:abc", session=session)


def test_send_message(client, session):
    assert client.send_message(1001, "hi", parse_mode="Markdown")
    url = session.post.call_args.args[0]
    assert url == "https://api.telegram.org/bot123:abc/sendMessage"
    assert session.post.call_args.kwargs["json"] == {"chat_id": 1001, "text": "hi", "parse_mode": "Markdown"}


def test_send_message_passes_options_through(client, session):
    client.send_message(1001, "hi", disable_notification=True)
    assert session.post.call_args.kwargs["json"]["disable_notification"] is True


def test_set_reaction_payload(client, session):
    assert client.set_reaction(1001, 42, "👍")
    assert session.post.call_args.args[0].endswith("/setMessageReaction")
    assert session.post.call_args.kwargs["json"] == {
        "chat_id": 1001,
        "message_id": 42,
        "reaction": [{"type": "emoji", "emoji": "👍"}],
    }


def test_answer_callback_uses_short_timeout(client, session):
    client.answer_callback("cb1", "Processing...")
    assert session.post.call_args.kwargs["timeout"] == 5
    assert session.post.call_args.kwargs["json"] == {"callback_query_id": "cb1", "text": "Processing..."}


def test_edit_message(client, session):
    client.edit_message(1001, 42, "done")
    assert session.post.call_args.kwargs["json"] == {"chat_id": 1001, "message_id": 42, "text": "done"}


def test_set_webhook(client, session):
    assert client.set_webhook("https://bot.example.com/webhook")
    assert session.post.call_args.kwargs["json"] == {"url": "https://bot.example.com/webhook"}


def test_non_200_returns_false(client, session):
    session.post.return_value = MagicMock(status_code=400, text="Bad Request: chat not found")
    assert client.send_message(1001, "hi") is False


def test_transport_error_returns_false(client, session):
    session.post.side_effect = requests.Timeout("slow")
    assert client.set_reaction(1001, 42, "👍") is False
