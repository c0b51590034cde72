"""Utility classes for managing chat subscriptions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Set, Union

from .storage import PersistentSet

ChatId = Union[int, str]


@dataclass
class SubscriptionRegistry:
    """Manage the set of chat IDs that receive listing alerts.

    Every call that changes membership rewrites the backing store straight
    away; calls that change nothing do not touch the disk.
    """

    store: PersistentSet
    _subscribers: Set[ChatId] = field(default_factory=set, init=False)

    def __post_init__(self) -> None:
        self._subscribers = self.store.load()

    def subscribe(self, chat_id: ChatId) -> bool:
        if chat_id in self._subscribers:
            return False
        self._subscribers.add(chat_id)
        self.store.save(self._subscribers)
        return True

    def unsubscribe(self, chat_id: ChatId) -> bool:
        if chat_id not in self._subscribers:
            return False
        self._subscribers.discard(chat_id)
        self.store.save(self._subscribers)
        return True

    def is_subscribed(self, chat_id: ChatId) -> bool:
        return chat_id in self._subscribers

    def discard_many(self, chat_ids: Iterable[ChatId]) -> int:
        """Remove several chats with a single save; returns how many were members."""
        removed = self._subscribers.intersection(chat_ids)
        if not removed:
            return 0
        self._subscribers.difference_update(removed)
        self.store.save(self._subscribers)
        return len(removed)

    def replace(self, old_chat_id: ChatId, new_chat_id: ChatId) -> bool:
        """Move a subscription to a new chat id (group upgraded to supergroup)."""
        if old_chat_id not in self._subscribers:
            return False
        self._subscribers.discard(old_chat_id)
        self._subscribers.add(new_chat_id)
        self.store.save(self._subscribers)
        return True

    def snapshot(self) -> Set[ChatId]:
        return set(self._subscribers)

    def __len__(self) -> int:
        return len(self._subscribers)

    def __bool__(self) -> bool:  # pragma: no cover - trivial
        return bool(self._subscribers)

    def __iter__(self) -> Iterator[ChatId]:  # pragma: no cover - convenience
        return iter(self._subscribers)
