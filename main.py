#!/usr/bin/env python3
"""
Pet Training Bot - NPC training timers and rental reminders on Telegram
"""

import logging

from trainer_bot.api.health_check import start_health_server
from trainer_bot.bot.main import build_service, run_bot
from trainer_bot.core.config import Config

logger = logging.getLogger(__name__)


def main():
    """Main function"""
    logger.info("🤖 Starting Pet Training Bot...")

    # Missing token or owner id is the only fatal startup error
    Config.validate()

    logger.info("🔧 Initializing database...")
    service = build_service()

    if Config.ENABLE_HEALTH_SERVER:
        start_health_server(Config.PORT, service)

    logger.info("✅ Starting Telegram bot...")
    run_bot(service)


if __name__ == "__main__":
    main()
