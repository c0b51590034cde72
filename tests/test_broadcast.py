from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional

from listing_bot.broadcast import BroadcastManager
from listing_bot.notifier import RecipientMigrated, RecipientUnreachable, TransientDeliveryError
from listing_bot.storage import CHAT_ID_ENTRIES, PersistentSet
from listing_bot.subscriptions import SubscriptionRegistry

LOGGER = logging.getLogger("test_broadcast")


class FakeNotifier:
    def __init__(self, failures: Optional[dict] = None) -> None:
        self.failures = failures or {}
        self.sent: list[tuple] = []

    async def send(self, chat_id, text: str) -> None:
        self._maybe_fail(chat_id)
        self.sent.append((chat_id, text, None))

    async def send_with_actions(self, chat_id, text: str, actions) -> None:
        self._maybe_fail(chat_id)
        self.sent.append((chat_id, text, list(actions)))

    def _maybe_fail(self, chat_id) -> None:
        error = self.failures.get(chat_id)
        if error is not None:
            raise error


def _registry(tmp_path, *chat_ids) -> SubscriptionRegistry:
    registry = SubscriptionRegistry(
        PersistentSet(str(tmp_path / "subscribers.json"), "subscribers", LOGGER, CHAT_ID_ENTRIES)
    )
    for chat_id in chat_ids:
        registry.subscribe(chat_id)
    return registry


def test_no_recipients_reports_zero(tmp_path) -> None:
    notifier = FakeNotifier()
    manager = BroadcastManager(notifier, _registry(tmp_path), LOGGER)

    assert asyncio.run(manager.broadcast("hello")) == 0
    assert notifier.sent == []


def test_permanent_failure_unsubscribes_after_loop(tmp_path) -> None:
    registry = _registry(tmp_path, 1, 2)
    notifier = FakeNotifier({1: RecipientUnreachable(1, "bot was blocked by the user")})
    manager = BroadcastManager(notifier, registry, LOGGER)

    remaining = asyncio.run(manager.broadcast("hello"))

    assert remaining == 1
    assert registry.snapshot() == {2}
    assert [chat_id for chat_id, _, _ in notifier.sent] == [2]
    on_disk = json.loads((tmp_path / "subscribers.json").read_text(encoding="utf-8"))
    assert on_disk == [2]


def test_transient_failure_keeps_recipient(tmp_path) -> None:
    registry = _registry(tmp_path, 1, 2)
    notifier = FakeNotifier({2: TransientDeliveryError(2, "timed out")})
    manager = BroadcastManager(notifier, registry, LOGGER)

    assert asyncio.run(manager.broadcast("hello")) == 2
    assert registry.snapshot() == {1, 2}


def test_migrated_chat_is_rekeyed(tmp_path) -> None:
    registry = _registry(tmp_path, -5, 3)
    notifier = FakeNotifier({-5: RecipientMigrated(-5, -1005)})
    manager = BroadcastManager(notifier, registry, LOGGER)

    assert asyncio.run(manager.broadcast("hello")) == 2
    assert registry.snapshot() == {-1005, 3}


def test_actions_are_forwarded_in_order(tmp_path) -> None:
    notifier = FakeNotifier()
    manager = BroadcastManager(notifier, _registry(tmp_path, 1), LOGGER)
    actions = [("Trade SOL", "https://x/SOL"), ("Trade ARB", "https://x/ARB")]

    asyncio.run(manager.broadcast("new", actions))

    assert notifier.sent == [(1, "new", actions)]


def test_explicit_recipients_override_registry(tmp_path) -> None:
    notifier = FakeNotifier()
    manager = BroadcastManager(notifier, _registry(tmp_path, 1, 2), LOGGER)

    asyncio.run(manager.broadcast("hi", recipients=[2]))

    assert [chat_id for chat_id, _, _ in notifier.sent] == [2]


def test_unexpected_error_does_not_stop_the_loop(tmp_path) -> None:
    registry = _registry(tmp_path, 1, 2, 3)
    notifier = FakeNotifier(
        {
            1: RecipientUnreachable(1, "chat not found"),
            2: RuntimeError("unexpected"),
        }
    )
    manager = BroadcastManager(notifier, registry, LOGGER)

    remaining = asyncio.run(manager.broadcast("hello"))

    assert [chat_id for chat_id, _, _ in notifier.sent] == [3]
    assert remaining == 2
    assert registry.snapshot() == {2, 3}
