"""Application factory for the Telegram bot."""

from __future__ import annotations

from telegram.ext import Application, CommandHandler

from listing_service import ListingSource

from .broadcast import BroadcastManager
from .commands import CommandHandlers
from .config import BotSettings
from .jobs import JobHandlers, register_jobs
from .monitor import ListingMonitor
from .notifier import TelegramNotifier
from .storage import CHAT_ID_ENTRIES, PersistentSet
from .subscriptions import SubscriptionRegistry


def create_application(settings: BotSettings, logger) -> Application:
    """Create and configure the Telegram application."""
    application = Application.builder().token(settings.token).build()

    subscriptions = SubscriptionRegistry(
        PersistentSet(settings.subscribers_file, "订阅者", logger, CHAT_ID_ENTRIES)
    )
    notifier = TelegramNotifier(application.bot, timeout=settings.send_timeout)
    broadcaster = BroadcastManager(notifier, subscriptions, logger)
    monitor = ListingMonitor(
        ListingSource(settings.api_url, timeout=settings.fetch_timeout),
        PersistentSet(settings.symbols_file, "交易对", logger),
        subscriptions,
        broadcaster,
        logger,
        trade_url_template=settings.trade_url_template,
        fetch_timeout=settings.fetch_timeout,
        admin_chat_id=settings.admin_chat_id,
    )

    handlers = CommandHandlers(
        subscriptions,
        monitor,
        logger,
        check_interval_minutes=settings.check_interval_minutes,
        symbols_chunk_size=settings.symbols_chunk_size,
    )
    job_handlers = JobHandlers(monitor, logger)

    application.add_handler(CommandHandler("start", handlers.start))
    application.add_handler(CommandHandler("help", handlers.help))
    application.add_handler(CommandHandler("unsubscribe", handlers.unsubscribe))
    application.add_handler(CommandHandler("status", handlers.status))
    application.add_handler(CommandHandler("symbols", handlers.symbols))
    application.add_handler(CommandHandler("admin", handlers.admin))
    application.add_error_handler(handlers.error)

    register_jobs(application, job_handlers, logger, settings.check_interval_minutes)

    logger.info(
        "监控 %s 个交易对，当前订阅者 %s 个",
        len(monitor.known_items),
        len(subscriptions),
    )
    return application
