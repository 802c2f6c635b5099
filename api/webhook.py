"""Vercel serverless entry point.

Vercel instantiates ``handler`` per request; the bot itself is built once
per cold start from the environment (see spendwise_bot.config).
"""
import logging
import os

from spendwise_bot.server import handler  # noqa: F401

logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))
