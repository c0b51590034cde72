"""Telegram command handlers."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from telegram import Update
from telegram.ext import ContextTypes

from .monitor import AdminStats, ListingMonitor, MonitorStatus
from .subscriptions import SubscriptionRegistry

COMMAND_LINES: List[str] = [
    "命令：",
    "/status      - 查看当前状态",
    "/symbols     - 列出所有监控中的交易对",
    "/unsubscribe - 停止接收通知",
]


def _format_time(value: Optional[datetime]) -> str:
    if value is None:
        return "尚未完成"
    return value.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def format_status(status: MonitorStatus) -> str:
    lines = [
        "📊 Bot 状态",
        "",
        f"• 监控交易对总数：{status.item_count}",
        f"• 订阅者总数：{status.recipient_count}",
        f"• 上次检查：{_format_time(status.last_check_time)}",
        "• 监控：运行中",
    ]
    return "\n".join(lines)


def format_symbol_chunks(chunks: List[List[str]]) -> List[str]:
    total = sum(len(chunk) for chunk in chunks)
    messages: List[str] = []
    start = 1
    for chunk in chunks:
        end = start + len(chunk) - 1
        messages.append(f"📋 交易对（{start}-{end} / 共 {total}）：\n\n{', '.join(chunk)}")
        start = end + 1
    return messages


def format_admin_stats(stats: AdminStats) -> str:
    lines = [
        "👑 管理面板",
        "",
        f"• 订阅者总数：{stats.recipient_count}",
        f"• 交易对总数：{stats.item_count}",
        f"• 运行时长：{stats.uptime_seconds}s",
        f"• 已执行检查：{stats.cycles_run} 次（获取失败 {stats.fetch_failures} 次）",
        f"• 上次检查：{_format_time(stats.last_check_time)}",
    ]
    return "\n".join(lines)


class CommandHandlers:
    """Container for bot command callbacks."""

    def __init__(
        self,
        subscriptions: SubscriptionRegistry,
        monitor: ListingMonitor,
        logger,
        *,
        check_interval_minutes: int,
        symbols_chunk_size: int,
    ) -> None:
        self._subscriptions = subscriptions
        self._monitor = monitor
        self._logger = logger
        self._check_interval_minutes = check_interval_minutes
        self._symbols_chunk_size = symbols_chunk_size

    async def start(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        chat_id = update.effective_chat.id
        if self._subscriptions.subscribe(chat_id):
            self._logger.info("新订阅者 chat_id=%s", chat_id)
            text_lines = [
                "🤖 欢迎使用 LighterBot！",
                "",
                "✅ 已为你订阅 zklighter 新资产上架通知！",
                "",
                f"我会每 {self._check_interval_minutes} 分钟检查一次，发现新资产立即通知你。",
                "",
            ]
        else:
            text_lines = [
                "🤖 欢迎回来！",
                "",
                "你已经订阅了 zklighter 新资产上架通知。",
                "",
            ]
        await update.effective_message.reply_text("\n".join(text_lines + COMMAND_LINES))

    async def help(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await update.effective_message.reply_text(
            "\n".join(["/start       - 订阅新资产通知"] + COMMAND_LINES)
        )

    async def unsubscribe(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        chat_id = update.effective_chat.id
        if self._subscriptions.unsubscribe(chat_id):
            self._logger.info("订阅者已退订 chat_id=%s", chat_id)
            await update.effective_message.reply_text(
                "❌ 已取消 LighterBot 通知。\n\n如需重新订阅，请再次发送 /start。"
            )
        else:
            await update.effective_message.reply_text("❌ 你当前没有订阅 LighterBot 通知。")

    async def status(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        await update.effective_message.reply_text(format_status(self._monitor.status()))

    async def symbols(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        chunks = self._monitor.item_chunks(self._symbols_chunk_size)
        if not chunks:
            await update.effective_message.reply_text("还没有加载任何交易对，请等待首次检查完成。")
            return
        for message in format_symbol_chunks(chunks):
            await update.effective_message.reply_text(message)

    async def admin(self, update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
        chat_id = update.effective_chat.id
        stats = self._monitor.admin_stats(chat_id)
        if stats is None:
            self._logger.info("拒绝非管理员访问 /admin chat_id=%s", chat_id)
            await update.effective_message.reply_text("❌ 无权限，仅管理员可用。")
            return
        await update.effective_message.reply_text(format_admin_stats(stats))

    async def error(self, update: object, context: ContextTypes.DEFAULT_TYPE) -> None:
        self._logger.error("处理更新时出错", exc_info=context.error)
