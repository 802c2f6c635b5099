import logging
import time
from datetime import datetime
from zoneinfo import ZoneInfo

from . import messages
from .backend import SpendWiseClient
from .exceptions import BackendError, NoValidExpensesError
from .names import resolve_user_name
from .parser import CallerContext, aggregate, contains_number
from .telegram import TelegramClient

logger = logging.getLogger(__name__)

CALLBACK_PREFIX_MARK_DONE = "mark_done:"
SUCCESS_REACTION = "👍"
# set from the request itself, never from backend-supplied options
RESERVED_SEND_OPTIONS = frozenset({"chat_id", "text"})


class SpendWiseBot:
    """Routes Telegram updates to commands, expense logging and callbacks"""

    def __init__(self, config, telegram=None, backend=None, clock=None):
        self.config = config
        self.telegram = telegram or TelegramClient(config.bot_token)
        self.backend = backend or SpendWiseClient(config)
        self.clock = clock or (lambda: datetime.now(ZoneInfo(config.timezone)))
        self.commands = [
            ("/start", self.handle_start),
            ("/help", self.handle_help),
            ("/expense", self.handle_expense_help),
            ("/reminders", self.handle_reminders),
            ("/summary", self.handle_summary),
            ("/month", self.handle_month),
        ]

    def today(self):
        return self.clock().date()

    def reply(self, chat_id, text, parse_mode=None):
        if not self.telegram.send_message(chat_id, text, parse_mode=parse_mode):
            logger.error(f"Failed to send reply to ChatID {chat_id}")

    # --- UPDATES ---
    def handle_update(self, update):
        """Dispatch one webhook update"""
        if "message" in update:
            self.handle_message(update["message"])
        elif "callback_query" in update:
            self.handle_callback_query(update["callback_query"])
        else:
            logger.warning(f"Received unsupported update type: {sorted(update)}")

    def handle_message(self, msg):
        started = time.monotonic()
        chat_id = msg.get("chat", {}).get("id")
        sender = msg.get("from") or {}
        text = (msg.get("text") or "").strip()

        if chat_id is None:
            logger.warning("Received message without a chat ID")
            return
        if not self.config.is_allowed(chat_id):
            logger.warning(f"Unauthorized message from ChatID {chat_id}, user {sender.get('id')}")
            return
        if not text:
            logger.info(f"Ignoring non-text message from ChatID {chat_id}")
            return

        logger.info(f"Processing message - ChatID: {chat_id}, Text: {text}")
        try:
            self.route_text(msg, chat_id, text)
        finally:
            elapsed_ms = (time.monotonic() - started) * 1000
            logger.info(f"Message processing completed in {elapsed_ms:.0f} ms for ChatID {chat_id}")

    def route_text(self, msg, chat_id, text):
        if text.startswith("/"):
            for prefix, command in self.commands:
                if text.startswith(prefix):
                    command(msg, chat_id, text)
                    return
            self.handle_unknown(msg, chat_id, text)
        elif contains_number(text):
            self.handle_quick_expense(msg, chat_id, text)
        else:
            self.handle_unknown(msg, chat_id, text)

    # --- COMMANDS ---
    def handle_start(self, msg, chat_id, text):
        self.reply(chat_id, messages.WELCOME_TEXT)

    def handle_help(self, msg, chat_id, text):
        self.reply(chat_id, messages.HELP_TEXT)

    def handle_expense_help(self, msg, chat_id, text):
        self.reply(chat_id, messages.EXPENSE_HELP_TEXT)

    def handle_unknown(self, msg, chat_id, text):
        logger.info(f"Unknown command from ChatID {chat_id}: {text}")
        self.reply(chat_id, messages.UNKNOWN_COMMAND_TEXT)

    def handle_summary(self, msg, chat_id, text):
        period = "month" if "month" in text.lower() else "today"
        self.send_summary(chat_id, period)

    def handle_month(self, msg, chat_id, text):
        self.send_summary(chat_id, "month")

    def send_summary(self, chat_id, period):
        label = "monthly" if period == "month" else "daily"
        try:
            markdown = self.backend.get_summary(period)
        except BackendError as e:
            logger.error(f"Error fetching {label} summary: {e}")
            self.reply(chat_id, f"Sorry, I couldn't fetch your {label} summary: {e}")
            return
        self.reply(chat_id, markdown, parse_mode="Markdown")

    def handle_reminders(self, msg, chat_id, text):
        try:
            payload = self.backend.get_reminders()
        except BackendError as e:
            logger.error(f"Error fetching reminders: {e}")
            self.reply(chat_id, f"❌ Error fetching reminders: {e}")
            return
        logger.info(f"Found {len(payload.reminders)} reminders for ChatID {chat_id}")
        self.reply(chat_id, messages.format_reminders(payload.reminders, self.today()))

    # --- EXPENSES ---
    def caller_context(self, msg, chat_id):
        return CallerContext(
            date=self.today().isoformat(),
            user_name=resolve_user_name(self.config, chat_id, msg.get("from")),
            channel_id=str(chat_id),
        )

    def handle_quick_expense(self, msg, chat_id, text):
        """Parse one or more expense lines and send them to the backend"""
        try:
            result = aggregate(text, self.caller_context(msg, chat_id))
        except NoValidExpensesError as e:
            logger.info(f"No valid expenses from ChatID {chat_id} ({len(e.failures)} failed lines)")
            self.reply(chat_id, messages.format_no_valid_expenses(e.failures))
            return

        for failure in result.failures:
            logger.info(f"Skipping line {failure.line_number} ({failure.text!r}): {failure.reason.message}")
        logger.info(f"Sending {len(result.records)} expenses to API for ChatID {chat_id}")

        try:
            api_result = self.backend.create_expenses(result.records)
        except BackendError as e:
            logger.error(f"API call failed for ChatID {chat_id}: {e}")
            self.reply(chat_id, f"❌ Error saving expenses: {e}")
            return

        if not api_result.ok:
            logger.warning(f"API rejected expenses for ChatID {chat_id}: {api_result.error}")
            self.reply(chat_id, f"❌ {api_result.describe()}")
            return

        if len(result.records) == 1 and not result.failures:
            message_id = msg.get("message_id")
            if message_id is not None and self.telegram.set_reaction(chat_id, message_id, SUCCESS_REACTION):
                return
            logger.warning(f"Reaction failed, falling back to message for ChatID {chat_id}")
            self.reply(chat_id, messages.SINGLE_EXPENSE_TEXT)
            return

        self.reply(chat_id, messages.format_batch_reply(result, api_result.message))

    # --- CALLBACKS ---
    def handle_callback_query(self, cb):
        """Handle the mark-as-done button on reminder notifications"""
        message = cb.get("message") or {}
        chat_id = message.get("chat", {}).get("id")
        message_id = message.get("message_id")
        data = cb.get("data") or ""

        if chat_id is None or not self.config.is_allowed(chat_id):
            logger.warning(f"Unauthorized callback query from ChatID {chat_id}")
            return

        if not data.startswith(CALLBACK_PREFIX_MARK_DONE):
            logger.warning(f"Invalid callback action: {data}")
            self.telegram.answer_callback(cb["id"], "Invalid action.")
            return

        parts = data.split(":")
        if len(parts) != 3:
            logger.warning(f"Invalid callback format: {data}")
            self.telegram.answer_callback(cb["id"], "Invalid format.")
            return

        _, reminder_id, reminder_type = parts
        logger.info(f"Marking reminder as done - ID: {reminder_id}, Type: {reminder_type}, ChatID: {chat_id}")
        self.telegram.answer_callback(cb["id"], "Processing...")

        try:
            result = self.backend.mark_reminder_done(reminder_id, reminder_type, chat_id)
        except BackendError as e:
            logger.error(f"Failed to mark reminder {reminder_id} as done: {e}")
            self.telegram.edit_message(chat_id, message_id, f"❌ Error: {e}")
            return

        if result.message:
            self.telegram.edit_message(chat_id, message_id, f"✅ {result.message}", parse_mode="Markdown")
        else:
            self.telegram.edit_message(chat_id, message_id, "✅ Marked as done.")

    # --- INTERNAL API ---
    def send_internal_message(self, chat_id, text, options=None):
        """Deliver a backend-initiated notification"""
        logger.info(f"Sending internal message to ChatID {chat_id}")
        options = dict(options or {})
        for key in RESERVED_SEND_OPTIONS.intersection(options):
            logger.warning(f"Ignoring '{key}' in internal message options for ChatID {chat_id}")
            del options[key]
        return self.telegram.send_message(chat_id, text, **options)
