import json
import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from .exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:3000"
DEFAULT_PORT = "8080"
DEFAULT_TIMEZONE = "Asia/Kolkata"


@dataclass(frozen=True)
class BotConfig:
    """Everything the bot needs from its environment"""

    bot_token: str
    bot_url: str
    api_secret: str
    api_url: str = DEFAULT_API_URL
    port: str = DEFAULT_PORT
    allowed_ids: frozenset = field(default_factory=frozenset)
    user_names: dict = field(default_factory=dict)
    timezone: str = DEFAULT_TIMEZONE

    def is_allowed(self, chat_id):
        return str(chat_id) in self.allowed_ids

    @property
    def webhook_url(self):
        return self.bot_url.rstrip("/") + "/webhook"


def parse_allowed_ids(value):
    """Accept either a comma-separated string or a list of ids"""
    if not value:
        return frozenset()
    if isinstance(value, str):
        value = value.split(",")
    return frozenset(str(item).strip() for item in value if str(item).strip())


def parse_user_names(value):
    """Parse "chatID1:name1,chatID2:name2" into a dict"""
    user_names = {}
    if not value:
        return user_names
    for mapping in value.split(","):
        parts = mapping.split(":")
        if len(parts) != 2:
            continue
        chat_id, name = parts[0].strip(), parts[1].strip()
        if chat_id and name:
            user_names[chat_id] = name
    return user_names


def _require(name, value):
    if not value:
        raise ConfigError(f"{name} is required in configuration")
    return value


def _finish(config):
    if not config.allowed_ids:
        logger.warning("Allowed ids list is empty - bot will ignore all chats")
    return config


JSON_FIELD_TYPES = {
    "botToken": (str,),
    "botUrl": (str,),
    "apiSecret": (str,),
    "apiUrl": (str,),
    "port": (str, int),
    "allowedIds": (list,),
    "userNames": (dict,),
    "timezone": (str,),
}


def _check_json_types(data):
    """Raise TypeError when CONFIG_JSON does not have the expected shape"""
    if not isinstance(data, dict):
        raise TypeError("CONFIG_JSON must be a JSON object")
    for key, types in JSON_FIELD_TYPES.items():
        value = data.get(key)
        if value is not None and (isinstance(value, bool) or not isinstance(value, types)):
            raise TypeError(f"CONFIG_JSON field {key} has the wrong type ({type(value).__name__})")
    if not all(isinstance(item, (str, int)) for item in data.get("allowedIds") or []):
        raise TypeError("CONFIG_JSON field allowedIds must hold strings or numbers")
    if not all(isinstance(v, str) for v in (data.get("userNames") or {}).values()):
        raise TypeError("CONFIG_JSON field userNames must map ids to names")


def config_from_json(raw):
    """Build a BotConfig from the CONFIG_JSON secret document"""
    data = json.loads(raw)
    _check_json_types(data)
    user_names = {
        str(k).strip(): v.strip()
        for k, v in (data.get("userNames") or {}).items()
        if v.strip()
    }
    return _finish(BotConfig(
        bot_token=_require("botToken", data.get("botToken")),
        bot_url=_require("botUrl", data.get("botUrl")),
        api_secret=_require("apiSecret", data.get("apiSecret")),
        api_url=data.get("apiUrl") or DEFAULT_API_URL,
        port=str(data.get("port") or DEFAULT_PORT),
        allowed_ids=parse_allowed_ids(data.get("allowedIds")),
        user_names=user_names,
        timezone=data.get("timezone") or DEFAULT_TIMEZONE,
    ))


def config_from_env(environ):
    """Build a BotConfig from individual environment variables"""
    return _finish(BotConfig(
        bot_token=_require("BOT_TOKEN", environ.get("BOT_TOKEN")),
        bot_url=_require("BOT_URL", environ.get("BOT_URL")),
        api_secret=_require("API_SECRET", environ.get("API_SECRET")),
        api_url=environ.get("API_URL") or DEFAULT_API_URL,
        port=environ.get("PORT") or DEFAULT_PORT,
        allowed_ids=parse_allowed_ids(environ.get("ALLOWED_IDS")),
        user_names=parse_user_names(environ.get("USER_NAMES")),
        timezone=environ.get("TIMEZONE") or DEFAULT_TIMEZONE,
    ))


def load_config(environ=None):
    """Load configuration from CONFIG_JSON, falling back to plain env vars.

    When ``environ`` is omitted, a local ``.env`` file is loaded into
    ``os.environ`` first.
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    raw = environ.get("CONFIG_JSON")
    if raw:
        try:
            config = config_from_json(raw)
            logger.info("Configuration loaded from CONFIG_JSON")
            return config
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning(f"Failed to parse CONFIG_JSON ({e}), falling back to environment variables")

    config = config_from_env(environ)
    logger.info("Configuration loaded from environment variables")
    return config
