"""Telegram delivery adapter with failure classification."""

from __future__ import annotations

import asyncio
from typing import Optional, Sequence, Tuple, Union

from telegram import Bot, InlineKeyboardButton, InlineKeyboardMarkup
from telegram.error import BadRequest, ChatMigrated, Forbidden, TelegramError

ChatId = Union[int, str]
Action = Tuple[str, str]

# BadRequest descriptions that mean the chat itself is gone or invalid.
UNREACHABLE_MARKERS = (
    "chat not found",
    "user not found",
    "peer_id_invalid",
    "user is deactivated",
    "group chat was deactivated",
    "chat_id is empty",
    "bot was blocked",
)


class DeliveryError(Exception):
    """A message could not be delivered to one chat."""

    def __init__(self, chat_id: ChatId, reason: str) -> None:
        super().__init__(f"chat_id={chat_id}: {reason}")
        self.chat_id = chat_id
        self.reason = reason


class RecipientUnreachable(DeliveryError):
    """The chat blocked the bot, was deleted, or never existed."""


class RecipientMigrated(DeliveryError):
    """The group was upgraded to a supergroup and now lives under a new id."""

    def __init__(self, chat_id: ChatId, new_chat_id: int) -> None:
        super().__init__(chat_id, f"migrated to {new_chat_id}")
        self.new_chat_id = new_chat_id


class TransientDeliveryError(DeliveryError):
    """Timeouts, rate limits and other failures worth trying again later."""


def classify_error(chat_id: ChatId, error: Exception) -> DeliveryError:
    """Map a Telegram/asyncio failure onto the delivery error hierarchy."""
    if isinstance(error, ChatMigrated):
        return RecipientMigrated(chat_id, error.new_chat_id)
    if isinstance(error, Forbidden):
        return RecipientUnreachable(chat_id, error.message)
    if isinstance(error, BadRequest):
        description = error.message.lower()
        if any(marker in description for marker in UNREACHABLE_MARKERS):
            return RecipientUnreachable(chat_id, error.message)
        return TransientDeliveryError(chat_id, error.message)
    if isinstance(error, asyncio.TimeoutError):
        return TransientDeliveryError(chat_id, "发送超时")
    if isinstance(error, TelegramError):
        return TransientDeliveryError(chat_id, error.message)
    return TransientDeliveryError(chat_id, repr(error))


def build_keyboard(actions: Sequence[Action]) -> InlineKeyboardMarkup:
    """One URL button per row, in the given order."""
    return InlineKeyboardMarkup(
        [[InlineKeyboardButton(text=label, url=url)] for label, url in actions]
    )


class TelegramNotifier:
    """Send alert messages through the Bot API with a per-chat timeout."""

    def __init__(self, bot: Bot, timeout: float) -> None:
        self._bot = bot
        self._timeout = timeout

    async def send(self, chat_id: ChatId, text: str) -> None:
        await self._deliver(chat_id, text, None)

    async def send_with_actions(
        self, chat_id: ChatId, text: str, actions: Sequence[Action]
    ) -> None:
        await self._deliver(chat_id, text, build_keyboard(actions))

    async def _deliver(
        self, chat_id: ChatId, text: str, reply_markup: Optional[InlineKeyboardMarkup]
    ) -> None:
        try:
            await asyncio.wait_for(
                self._bot.send_message(
                    chat_id=chat_id,
                    text=text,
                    reply_markup=reply_markup,
                    read_timeout=self._timeout,
                    write_timeout=self._timeout,
                ),
                timeout=self._timeout,
            )
        except Exception as exc:
            raise classify_error(chat_id, exc) from exc
