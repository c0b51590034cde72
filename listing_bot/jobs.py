"""Background job callbacks for the listing alert bot."""

from __future__ import annotations

from telegram.ext import Application, ContextTypes

from .monitor import ListingMonitor


class JobHandlers:
    """Container for scheduled job callbacks."""

    def __init__(self, monitor: ListingMonitor, logger) -> None:
        self._monitor = monitor
        self._logger = logger

    async def check_listings(self, context: ContextTypes.DEFAULT_TYPE) -> None:
        try:
            result = await self._monitor.run_cycle()
        except Exception:
            self._logger.exception("定时检查任务异常")
            return
        self._logger.debug("本轮检查结束 status=%s", result.status)


def register_jobs(
    application: Application, job_handlers: JobHandlers, logger, interval_minutes: int
) -> None:
    job_queue = application.job_queue
    if job_queue is None:
        logger.warning(  # pragma: no cover - runtime safeguard
            "JobQueue 未启用，定时检查功能不可用。请确认安装的是 "
            "python-telegram-bot[job-queue]>=20.0"
        )
        return

    # first=0 runs the initial check as soon as the application starts.
    job_queue.run_repeating(
        job_handlers.check_listings,
        interval=interval_minutes * 60,
        first=0,
        name="listing_check",
        job_kwargs={"max_instances": 1, "coalesce": True},
    )
    logger.info("已安排定时检查：每 %s 分钟一次", interval_minutes)
