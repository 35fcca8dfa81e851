import logging
from telegram.ext import Application, CallbackQueryHandler, CommandHandler, MessageHandler, filters

from trainer_bot.bot import handlers
from trainer_bot.bot.notifier import TelegramNotifier
from trainer_bot.core.config import Config
from trainer_bot.core.database import TrainingStore
from trainer_bot.training.engine import TrainingEngine
from trainer_bot.training.models import NpcKind
from trainer_bot.training.policy import TimePolicy
from trainer_bot.training.scheduler import NotificationScheduler
from trainer_bot.training.service import TrainerService

logger = logging.getLogger(__name__)


def build_service():
    """Create the store, engine and service from the current configuration"""
    store = TrainingStore(Config.DATABASE_PATH, owner_id=Config.OWNER_TELEGRAM_ID)
    engine = TrainingEngine(store, TimePolicy(accelerated=Config.initial_test_mode()))
    return TrainerService(engine, production=Config.is_production())


def register_handlers(application):
    # Logging runs before the command handlers
    application.add_handler(MessageHandler(filters.ALL, handlers.log_message), group=-1)

    application.add_handler(CommandHandler("start", handlers.handle_start))
    application.add_handler(CommandHandler("help", handlers.handle_help))
    application.add_handler(CommandHandler("status", handlers.handle_status))
    application.add_handler(CommandHandler("testmode", handlers.handle_test_mode))

    for kind in NpcKind.ordered():
        suffix = kind.command_suffix
        application.add_handler(CommandHandler(f"train_{suffix}", handlers.make_train_handler(kind)))
        application.add_handler(CommandHandler(f"stop_{suffix}", handlers.make_stop_handler(kind)))
        application.add_handler(CommandHandler(f"rental_{suffix}", handlers.make_rental_handler(kind)))

    application.add_handler(CallbackQueryHandler(handlers.handle_button_click))

    logger.info("✅ Bot handlers setup completed")


async def _start_scheduler(application):
    service = application.bot_data[handlers.SERVICE_KEY]
    service.scheduler = NotificationScheduler(
        service.engine,
        TelegramNotifier(application.bot),
        application.job_queue,
    )
    service.scheduler.start()


async def _stop_scheduler(application):
    service = application.bot_data[handlers.SERVICE_KEY]
    if service.scheduler is not None:
        await service.scheduler.stop()


def create_application(service):
    application = (
        Application.builder()
        .token(Config.TELEGRAM_TOKEN)
        .post_init(_start_scheduler)
        .post_shutdown(_stop_scheduler)
        .build()
    )
    application.bot_data[handlers.SERVICE_KEY] = service
    register_handlers(application)
    return application


def run_bot(service=None):
    """Run the bot with long polling until interrupted"""
    try:
        if service is None:
            Config.validate()
            service = build_service()
        application = create_application(service)

        if service.policy.accelerated:
            logger.info("🧪 TEST MODE ENABLED - Using accelerated timers")
        logger.info("🤖 Starting bot polling...")

        application.run_polling(
            drop_pending_updates=True,
            allowed_updates=['message', 'callback_query']
        )

    except Exception as e:
        logger.error(f"❌ Bot failed: {e}")
        raise


if __name__ == "__main__":
    run_bot()
