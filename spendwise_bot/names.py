"""Display-name lookup for the person who sent a message.

Strategies run in order and the first non-empty answer wins.
"""
import logging

logger = logging.getLogger(__name__)


def configured_name(config, chat_id, sender):
    return config.user_names.get(str(chat_id))


def telegram_username(config, chat_id, sender):
    return sender.get("username")


def full_name(config, chat_id, sender):
    first = sender.get("first_name") or ""
    last = sender.get("last_name") or ""
    return f"{first} {last}".strip()


def placeholder_name(config, chat_id, sender):
    return f"User_{chat_id}"


NAME_STRATEGIES = (configured_name, telegram_username, full_name, placeholder_name)


def resolve_user_name(config, chat_id, sender, strategies=NAME_STRATEGIES):
    """Return the display name for ``sender`` (a Telegram ``from`` object)"""
    sender = sender or {}
    for strategy in strategies:
        name = strategy(config, chat_id, sender)
        if name and name.strip():
            logger.debug(f"Resolved name for chat {chat_id} via {strategy.__name__}: {name}")
            return name.strip()
    return None
