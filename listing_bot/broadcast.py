"""Fan-out of one alert to every subscribed chat."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Protocol, Sequence

from .notifier import (
    Action,
    ChatId,
    RecipientMigrated,
    RecipientUnreachable,
    TransientDeliveryError,
)
from .subscriptions import SubscriptionRegistry


class Notifier(Protocol):
    async def send(self, chat_id: ChatId, text: str) -> None:
        ...

    async def send_with_actions(
        self, chat_id: ChatId, text: str, actions: Sequence[Action]
    ) -> None:
        ...


class BroadcastManager:
    """Deliver a message to all subscribers and prune the dead ones."""

    def __init__(self, notifier: Notifier, registry: SubscriptionRegistry, logger) -> None:
        self._notifier = notifier
        self._registry = registry
        self._logger = logger

    async def broadcast(
        self,
        message: str,
        actions: Optional[Sequence[Action]] = None,
        recipients: Optional[Iterable[ChatId]] = None,
    ) -> int:
        """Send ``message`` to each recipient and return the subscriber count left.

        The return value counts chats still subscribed after unreachable ones
        were removed, not the chats that actually received the message.
        Pruning and migrations are applied once the loop has finished.
        """
        targets = sorted(
            self._registry.snapshot() if recipients is None else set(recipients), key=str
        )
        unreachable: List[ChatId] = []
        migrated: Dict[ChatId, int] = {}
        delivered = 0
        transient = 0

        for chat_id in targets:
            try:
                if actions:
                    await self._notifier.send_with_actions(chat_id, message, actions)
                else:
                    await self._notifier.send(chat_id, message)
            except RecipientMigrated as exc:
                self._logger.warning("群组已迁移 chat_id=%s -> %s", chat_id, exc.new_chat_id)
                migrated[chat_id] = exc.new_chat_id
            except RecipientUnreachable as exc:
                self._logger.warning("推送失败，订阅者不可达 chat_id=%s 原因=%s", chat_id, exc.reason)
                unreachable.append(chat_id)
            except TransientDeliveryError as exc:
                self._logger.warning("推送暂时失败，保留订阅 chat_id=%s 原因=%s", chat_id, exc.reason)
                transient += 1
            except Exception:
                self._logger.exception("推送出现未知错误，保留订阅 chat_id=%s", chat_id)
                transient += 1
            else:
                delivered += 1
                self._logger.debug("已推送 chat_id=%s", chat_id)

        if unreachable:
            removed = self._registry.discard_many(unreachable)
            self._logger.info("已移除 %s 个失效订阅者", removed)
        for old_chat_id, new_chat_id in migrated.items():
            self._registry.replace(old_chat_id, new_chat_id)

        self._logger.info(
            "推送完成：成功 %s，暂时失败 %s，移除 %s，迁移 %s",
            delivered,
            transient,
            len(unreachable),
            len(migrated),
        )
        return len(self._registry)
