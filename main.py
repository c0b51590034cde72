"""Entry point for the listing alert bot."""

from __future__ import annotations

import sys

from dotenv import load_dotenv

from listing_bot import create_application
from listing_bot.config import load_settings, setup_logging


def main() -> None:
    load_dotenv()
    logger = setup_logging()
    try:
        settings = load_settings()
    except RuntimeError as exc:
        logger.critical("启动失败：%s", exc)
        sys.exit(1)

    application = create_application(settings, logger)

    logger.info("🤖 Bot 已启动，开始轮询 Telegram 消息...")
    application.run_polling()


if __name__ == "__main__":
    main()
