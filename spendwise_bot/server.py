import json
import logging
from datetime import datetime, timezone
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import urlsplit

from .backend import SECRET_HEADER
from .bot import SpendWiseBot
from .config import load_config

logger = logging.getLogger(__name__)

_bot = None


def get_bot():
    """Lazily build the bot from the environment"""
    global _bot
    if _bot is None:
        _bot = SpendWiseBot(load_config())
        logger.info("Bot initialized successfully")
    return _bot


def set_bot(bot):
    global _bot
    _bot = bot


def health():
    return 200, {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


def handle_webhook(bot, body):
    try:
        update = json.loads(body or b"")
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("Invalid webhook update received")
        return 400, {"error": "invalid update"}
    if not isinstance(update, dict):
        logger.warning("Webhook update is not a JSON object")
        return 400, {"error": "invalid update"}

    try:
        bot.handle_update(update)
    except Exception as e:
        # Telegram redelivers on non-2xx, so a failing update is still acknowledged
        logger.error(f"Webhook handler error: {e}", exc_info=True)
    return 200, {"status": "ok"}


def handle_send_message(bot, headers, body):
    if headers.get(SECRET_HEADER) != bot.config.api_secret:
        logger.warning("Unauthorized internal API request")
        return 401, {"error": "unauthorized"}

    try:
        data = json.loads(body or b"")
    except (json.JSONDecodeError, UnicodeDecodeError):
        data = None
    if not isinstance(data, dict):
        return 400, {"error": "missing fields"}

    chat_id = data.get("chatId")
    message = data.get("message")
    options = data.get("options") or {}
    if not chat_id or not message or not isinstance(options, dict):
        logger.warning(f"Invalid send-message request: chatId={chat_id!r}, message empty={not message}")
        return 400, {"error": "missing fields"}

    if not bot.send_internal_message(chat_id, message, options):
        logger.error(f"Failed to send internal message to ChatID {chat_id}")
        return 500, {"error": "failed to send message"}
    return 200, {"success": True}


def route_request(bot, method, path, headers, body):
    """Route one HTTP request; returns (status, json_payload)"""
    path = urlsplit(path or "/").path.rstrip("/")
    headers = {str(k).lower(): v for k, v in (headers or {}).items()}

    if method == "GET" and (path == "" or path.endswith(("/health", "/webhook"))):
        return health()
    if method == "POST" and path.endswith("/internal/send-message"):
        return handle_send_message(bot, headers, body)
    if method == "POST" and path.endswith("/webhook"):
        return handle_webhook(bot, body)
    return 404, {"error": "not found"}


# --- MAIN HANDLER ---
class handler(BaseHTTPRequestHandler):
    """HTTP entry point, usable as a Vercel function or under serve()"""

    def _respond(self, status, payload):
        data = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def _dispatch(self, body=b""):
        try:
            status, payload = route_request(get_bot(), self.command, self.path, self.headers, body)
        except Exception as e:
            logger.error(f"Request handler error: {e}", exc_info=True)
            status, payload = 500, {"error": "internal error"}
        self._respond(status, payload)

    def do_GET(self):
        self._dispatch()

    def do_POST(self):
        content_length = int(self.headers.get("Content-Length", 0) or 0)
        self._dispatch(self.rfile.read(content_length))

    def log_message(self, format, *args):
        logger.info(f"{self.address_string()} - {format % args}")


def serve(bot, host="", port=None):
    """Run a threaded HTTP server in front of ``bot`` until interrupted"""
    set_bot(bot)
    port = int(port or bot.config.port)
    httpd = ThreadingHTTPServer((host, port), handler)
    logger.info(f"Server is running on port {port}")
    logger.info(f"Configured for {len(bot.config.allowed_ids)} allowed chats")
    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        httpd.server_close()
