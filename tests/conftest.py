from datetime import datetime
from unittest.mock import MagicMock

import pytest

from spendwise_bot.backend import ApiSuccess, NotificationPayload
from spendwise_bot.bot import SpendWiseBot
from spendwise_bot.config import BotConfig

CHAT_ID = 1001


@pytest.fixture
def config():
    return BotConfig(
        bot_token="123:abc",
        bot_url="https://bot.example.com",
        api_secret="s3cret",
        api_url="https://api.example.com",
        allowed_ids=frozenset({str(CHAT_ID)}),
        user_names={str(CHAT_ID): "Asha"},
    )


@pytest.fixture
def telegram():
    fake = MagicMock()
    fake.send_message.return_value = True
    fake.edit_message.return_value = True
    fake.answer_callback.return_value = True
    fake.set_reaction.return_value = True
    return fake


@pytest.fixture
def backend():
    fake = MagicMock()
    fake.create_expenses.return_value = ApiSuccess(message="")
    fake.get_summary.return_value = "*Today*: ₹100"
    fake.get_reminders.return_value = NotificationPayload()
    fake.mark_reminder_done.return_value = ApiSuccess(message="")
    return fake


@pytest.fixture
def bot(config, telegram, backend):
    return SpendWiseBot(
        config,
        telegram=telegram,
        backend=backend,
        clock=lambda: datetime(2026, 10, 18, 9, 30),
    )


def make_message(text, chat_id=CHAT_ID, message_id=42, sender=None):
    return {
        "message_id": message_id,
        "chat": {"id": chat_id},
        "from": sender if sender is not None else {"id": 7, "username": "asha_k", "first_name": "Asha"},
        "text": text,
    }


def sent_texts(telegram):
    return [c.args[1] for c in telegram.send_message.call_args_list]
