import base64
import json
import logging
import os

from spendwise_bot.server import get_bot, route_request

logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))
logger = logging.getLogger(__name__)


def handler(event, context):
    """Netlify function entry: webhook, internal send-message and health"""
    body = event.get("body") or ""
    if event.get("isBase64Encoded"):
        body = base64.b64decode(body)
    elif isinstance(body, str):
        body = body.encode("utf-8")

    try:
        status, payload = route_request(
            get_bot(),
            event.get("httpMethod", "GET"),
            event.get("path", "/"),
            event.get("headers") or {},
            body,
        )
    except Exception as e:
        logger.error(f"Function error: {e}", exc_info=True)
        status, payload = 500, {"error": "internal error"}

    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(payload),
    }
