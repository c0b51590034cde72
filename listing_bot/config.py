"""Configuration helpers for the listing alert bot."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVEL = logging.INFO
ENV_TOKEN_KEY = "TELEGRAM_BOT_TOKEN"

DEFAULT_API_URL = "https://mainnet.zklighter.elliot.ai/api/v1/orderBookDetails"
DEFAULT_TRADE_URL_TEMPLATE = "https://app.lighter.xyz/trade/{symbol}"
DEFAULT_CHECK_INTERVAL_MINUTES = 5
DEFAULT_SYMBOLS_FILE = "symbols.json"
DEFAULT_SUBSCRIBERS_FILE = "subscribers.json"
DEFAULT_SYMBOLS_CHUNK_SIZE = 50
DEFAULT_FETCH_TIMEOUT_SECONDS = 10
DEFAULT_SEND_TIMEOUT_SECONDS = 15


@dataclass(frozen=True)
class BotSettings:
    """Runtime settings read from the environment."""

    token: str
    admin_chat_id: Optional[str]
    api_url: str
    trade_url_template: str
    check_interval_minutes: int
    symbols_file: str
    subscribers_file: str
    symbols_chunk_size: int
    fetch_timeout: int
    send_timeout: int


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Configure logging and return the package logger."""
    level_name = (level or os.getenv("LOG_LEVEL") or "").upper()
    logging.basicConfig(format=LOG_FORMAT, level=getattr(logging, level_name, LOG_LEVEL))
    # httpx logs every Bot API request URL, and those URLs embed the token.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logging.getLogger("listing_bot")


def load_bot_token(env_var: str = ENV_TOKEN_KEY) -> str:
    """Read the bot token from the environment or raise an error."""
    token = os.getenv(env_var)
    if not token:
        raise RuntimeError(f"环境变量 {env_var} 没有设置！")
    return token


def _positive_int(env_var: str, default: int) -> int:
    raw = os.getenv(env_var)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"环境变量 {env_var} 必须是整数，当前值：{raw!r}") from None
    if value <= 0:
        raise RuntimeError(f"环境变量 {env_var} 必须大于 0，当前值：{value}")
    return value


def _trade_url_template(env_var: str = "TRADE_URL_TEMPLATE") -> str:
    template = os.getenv(env_var) or DEFAULT_TRADE_URL_TEMPLATE
    try:
        template.format(symbol="BTC")
    except (KeyError, IndexError, ValueError):
        raise RuntimeError(
            f"环境变量 {env_var} 格式不正确，只能包含 {{symbol}} 占位符，当前值：{template!r}"
        ) from None
    return template


def load_settings() -> BotSettings:
    """Collect every setting the bot needs, failing fast on bad values."""
    admin_chat_id = (os.getenv("ADMIN_CHAT_ID") or "").strip() or None
    return BotSettings(
        token=load_bot_token(),
        admin_chat_id=admin_chat_id,
        api_url=os.getenv("LISTING_API_URL") or DEFAULT_API_URL,
        trade_url_template=_trade_url_template(),
        check_interval_minutes=_positive_int(
            "CHECK_INTERVAL_MINUTES", DEFAULT_CHECK_INTERVAL_MINUTES
        ),
        symbols_file=os.getenv("SYMBOLS_FILE") or DEFAULT_SYMBOLS_FILE,
        subscribers_file=os.getenv("SUBSCRIBERS_FILE") or DEFAULT_SUBSCRIBERS_FILE,
        symbols_chunk_size=_positive_int("SYMBOLS_CHUNK_SIZE", DEFAULT_SYMBOLS_CHUNK_SIZE),
        fetch_timeout=_positive_int("FETCH_TIMEOUT_SECONDS", DEFAULT_FETCH_TIMEOUT_SECONDS),
        send_timeout=_positive_int("SEND_TIMEOUT_SECONDS", DEFAULT_SEND_TIMEOUT_SECONDS),
    )
