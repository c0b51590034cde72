"""One polling cycle: fetch, diff, notify, persist."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Protocol, Sequence, Set

from listing_service import FetchError

from .broadcast import BroadcastManager
from .diff import diff_snapshot
from .notifier import Action, ChatId
from .storage import PersistentSet
from .subscriptions import SubscriptionRegistry


class SnapshotSource(Protocol):
    def fetch(self) -> Sequence[str]:
        ...


@dataclass
class CycleResult:
    """Outcome of one call to :meth:`ListingMonitor.run_cycle`."""

    status: str  # "skipped" | "fetch_failed" | "no_changes" | "notified"
    new_items: List[str] = field(default_factory=list)
    remaining_recipients: Optional[int] = None
    saved: Optional[bool] = None


@dataclass(frozen=True)
class MonitorStatus:
    item_count: int
    recipient_count: int
    last_check_time: Optional[datetime]


@dataclass(frozen=True)
class AdminStats:
    recipient_count: int
    item_count: int
    uptime_seconds: int
    cycles_run: int
    fetch_failures: int
    last_check_time: Optional[datetime]


def build_listing_message(new_items: Sequence[str], total: int) -> str:
    lines = "\n".join(f"• {symbol}" for symbol in new_items)
    return f"🚨 zklighter 上新资产！\n\n{lines}\n\n资产总数：{total}"


def build_trade_actions(new_items: Sequence[str], url_template: str) -> List[Action]:
    return [(f"🔗 交易 {symbol}", url_template.format(symbol=symbol)) for symbol in new_items]


def chunk_items(items: Sequence[str], size: int) -> List[List[str]]:
    if size <= 0:
        raise ValueError("chunk size must be positive")
    ordered = sorted(items)
    return [ordered[start:start + size] for start in range(0, len(ordered), size)]


class ListingMonitor:
    """Own the known-symbol set and run non-overlapping check cycles."""

    def __init__(
        self,
        source: SnapshotSource,
        store: PersistentSet,
        registry: SubscriptionRegistry,
        broadcaster: BroadcastManager,
        logger,
        *,
        trade_url_template: str,
        fetch_timeout: float = 10,
        admin_chat_id: Optional[str] = None,
    ) -> None:
        self._source = source
        self._store = store
        self._registry = registry
        self._broadcaster = broadcaster
        self._logger = logger
        self._trade_url_template = trade_url_template
        self._fetch_timeout = fetch_timeout
        self._admin_chat_id = admin_chat_id

        self._known: Set[str] = store.load()
        self._running = False
        self._started_at = time.monotonic()
        self._last_check_time: Optional[datetime] = None
        self._cycles_run = 0
        self._fetch_failures = 0

    @property
    def known_items(self) -> Set[str]:
        return set(self._known)

    async def run_cycle(self) -> CycleResult:
        if self._running:
            self._logger.warning("上一轮检查仍在进行，跳过本次触发")
            return CycleResult(status="skipped")

        self._running = True
        try:
            return await self._check()
        finally:
            self._running = False

    async def _check(self) -> CycleResult:
        self._cycles_run += 1
        self._logger.info("开始检查新上架资产...")

        try:
            snapshot = await asyncio.wait_for(
                asyncio.to_thread(self._source.fetch),
                timeout=self._fetch_timeout + 5,
            )
        except FetchError as exc:
            self._fetch_failures += 1
            self._logger.warning("获取交易对列表失败，跳过本次检查：%s", exc)
            return CycleResult(status="fetch_failed")
        except asyncio.TimeoutError:
            self._fetch_failures += 1
            self._logger.warning("获取交易对列表超时，跳过本次检查")
            return CycleResult(status="fetch_failed")

        self._last_check_time = datetime.now(timezone.utc)
        new_items, updated = diff_snapshot(snapshot, self._known)
        if not new_items:
            self._logger.info("没有发现新资产（共 %s 个）", len(self._known))
            return CycleResult(status="no_changes")

        self._known = updated
        self._logger.info("发现 %s 个新资产：%s", len(new_items), ", ".join(new_items))

        remaining: Optional[int] = None
        saved: Optional[bool] = None
        try:
            message = build_listing_message(new_items, len(self._known))
            actions = build_trade_actions(new_items, self._trade_url_template)
            remaining = await self._broadcaster.broadcast(message, actions)
            self._logger.info("通知已推送，当前订阅者 %s 个", remaining)
        except Exception:
            self._logger.exception("推送新资产通知失败")
        finally:
            # Discovered symbols are persisted even if the notify stage blew up.
            saved = self._store.save(self._known)
        return CycleResult(
            status="notified",
            new_items=new_items,
            remaining_recipients=remaining,
            saved=saved,
        )

    def status(self) -> MonitorStatus:
        return MonitorStatus(
            item_count=len(self._known),
            recipient_count=len(self._registry),
            last_check_time=self._last_check_time,
        )

    def item_chunks(self, size: int) -> List[List[str]]:
        """Known symbols sorted lexicographically and split into pages of ``size``."""
        return chunk_items(list(self._known), size)

    def is_admin(self, chat_id: ChatId) -> bool:
        return self._admin_chat_id is not None and str(chat_id) == self._admin_chat_id

    def admin_stats(self, chat_id: ChatId) -> Optional[AdminStats]:
        """Stats for the configured admin chat, ``None`` for everyone else."""
        if not self.is_admin(chat_id):
            return None
        return AdminStats(
            recipient_count=len(self._registry),
            item_count=len(self._known),
            uptime_seconds=int(time.monotonic() - self._started_at),
            cycles_run=self._cycles_run,
            fetch_failures=self._fetch_failures,
            last_check_time=self._last_check_time,
        )
