import argparse
import logging
import os

from .bot import SpendWiseBot
from .config import load_config
from .server import serve

logger = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run the SpendWise Telegram bot server")
    parser.add_argument("--port", help="port to listen on (defaults to PORT / config)")
    parser.add_argument("--no-webhook", action="store_true",
                        help="do not register the webhook with Telegram on startup")
    args = parser.parse_args(argv)

    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))
    logger.info("Starting SpendWise Telegram Bot")

    config = load_config()
    logger.info(f"Configuration loaded - Port: {config.port}, API URL: {config.api_url}")
    bot = SpendWiseBot(config)

    if not args.no_webhook:
        if not bot.telegram.set_webhook(config.webhook_url):
            raise SystemExit(f"Failed to set webhook to {config.webhook_url}")
        logger.info(f"Webhook set successfully to: {config.webhook_url}")

    serve(bot, port=args.port)


if __name__ == "__main__":
    main()
