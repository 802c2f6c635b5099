import logging

import requests

logger = logging.getLogger(__name__)

API_BASE = "https://api.telegram.org"


class TelegramClient:
    """Calls to the Telegram Bot API.

    Failures are logged and reported as False so a broken reply never takes
    down update handling.
    """

    def __init__(self, token, session=None):
        self.token = token
        self.session = session or requests.Session()

    def _post(self, method, payload, timeout=10):
        url = f"{API_BASE}/bot{self.token}/{method}"
        try:
            resp = self.session.post(url, json=payload, timeout=timeout)
        except requests.RequestException as e:
            logger.error(f"Telegram {method} error: {e}")
            return False
        if resp.status_code != 200:
            logger.warning(f"Telegram {method} failed ({resp.status_code}): {resp.text}")
            return False
        return True

    def send_message(self, chat_id, text, parse_mode=None, reply_markup=None, **options):
        """Send a message; extra options go straight into the payload"""
        payload = dict(options)
        payload.update({"chat_id": chat_id, "text": text})
        if parse_mode:
            payload["parse_mode"] = parse_mode
        if reply_markup:
            payload["reply_markup"] = reply_markup
        return self._post("sendMessage", payload)

    def edit_message(self, chat_id, message_id, text, parse_mode=None):
        """Edit an existing message"""
        payload = {"chat_id": chat_id, "message_id": message_id, "text": text}
        if parse_mode:
            payload["parse_mode"] = parse_mode
        return self._post("editMessageText", payload)

    def answer_callback(self, callback_id, text=None):
        """Acknowledge a callback query"""
        payload = {"callback_query_id": callback_id}
        if text:
            payload["text"] = text
        return self._post("answerCallbackQuery", payload, timeout=5)

    def set_reaction(self, chat_id, message_id, emoji):
        """React to a message with a single emoji"""
        payload = {
            "chat_id": chat_id,
            "message_id": message_id,
            "reaction": [{"type": "emoji", "emoji": emoji}],
        }
        return self._post("setMessageReaction", payload)

    def set_webhook(self, url):
        logger.info(f"Setting webhook to: {url}")
        return self._post("setWebhook", {"url": url})
