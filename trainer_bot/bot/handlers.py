import logging
from telegram import Update
from telegram.ext import ContextTypes

from trainer_bot.bot import menus
from trainer_bot.core.config import Config
from trainer_bot.training.errors import InvalidCallbackData, NotInitialized, StorageError, TrainerError
from trainer_bot.training.models import CallbackAction
from trainer_bot.training.policy import utcnow

logger = logging.getLogger(__name__)

SERVICE_KEY = "service"


def get_user_info(update: Update):
    """Safely extract user information from update"""
    user = update.effective_user
    if user:
        return {
            'id': user.id,
            'username': user.username or user.first_name or 'Unknown',
        }
    return {'id': 0, 'username': 'Unknown'}


def get_service(context: ContextTypes.DEFAULT_TYPE):
    return context.bot_data[SERVICE_KEY]


def _log_error(error, action):
    if isinstance(error, StorageError):
        logger.error(f"❌ Storage error while {action}: {error}")
    else:
        logger.warning(f"⚠️ {action} refused: {error}")


async def _authorized(update: Update):
    user_info = get_user_info(update)
    if Config.is_authorized(user_info['id']):
        return user_info

    logger.warning(f"🚫 Unauthorized user {user_info['id']} ({user_info['username']})")
    if update.message:
        await update.message.reply_text(menus.NOT_AUTHORIZED_TEXT)
    return None


async def log_message(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Log every incoming message with the sender's authorization status"""
    if not update.message:
        return
    user_info = get_user_info(update)
    icon = '✅' if Config.is_authorized(user_info['id']) else '🚫'
    text = update.message.text or '[non-text message]'
    logger.info(f"📨 {user_info['username']} ({user_info['id']}) {icon}: {text}")


async def handle_start(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /start command"""
    user_info = await _authorized(update)
    if not user_info:
        return

    service = get_service(context)
    try:
        service.init(user_info['id'])
    except TrainerError as e:
        _log_error(e, "initializing user")
        await update.message.reply_text(menus.error_message(e))
        return

    await update.message.reply_text(menus.welcome_text(service.policy))
    logger.info(f"👤 User started: {user_info['id']} - {user_info['username']}")


async def handle_help(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /help command"""
    if not await _authorized(update):
        return
    await update.message.reply_text(menus.welcome_text(get_service(context).policy))


async def handle_status(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /status command"""
    user_info = await _authorized(update)
    if not user_info:
        return

    try:
        statuses = get_service(context).status(user_info['id'], utcnow())
    except TrainerError as e:
        _log_error(e, "reading status")
        await update.message.reply_text(menus.error_message(e))
        return

    await update.message.reply_text(menus.status_text(statuses))


def make_train_handler(kind):
    async def handle_train(update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /train_<kind> command"""
        user_info = await _authorized(update)
        if not user_info:
            return

        service = get_service(context)
        now = utcnow()
        try:
            record, estimate = service.start_session(user_info['id'], kind, now)
        except TrainerError as e:
            _log_error(e, f"starting training for NPC {kind.value}")
            await update.message.reply_text(menus.error_message(e))
            return

        await update.message.reply_text(menus.training_started_text(record, estimate, now, service.policy))

    return handle_train


def make_stop_handler(kind):
    async def handle_stop(update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /stop_<kind> command"""
        user_info = await _authorized(update)
        if not user_info:
            return

        try:
            record = get_service(context).stop_session(user_info['id'], kind)
        except TrainerError as e:
            _log_error(e, f"stopping training for NPC {kind.value}")
            await update.message.reply_text(menus.error_message(e))
            return

        if record is None:
            await update.message.reply_text(menus.error_message(NotInitialized(user_info['id'], kind)))
            return

        await update.message.reply_text(menus.training_stopped_text(kind))

    return handle_stop


def make_rental_handler(kind):
    async def handle_rental(update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /rental_<kind> command"""
        user_info = await _authorized(update)
        if not user_info:
            return

        service = get_service(context)
        try:
            record = service.set_rental(user_info['id'], kind)
        except TrainerError as e:
            _log_error(e, f"setting rental for NPC {kind.value}")
            await update.message.reply_text(menus.error_message(e))
            return

        await update.message.reply_text(menus.rental_set_text(record, service.policy))

    return handle_rental


async def handle_test_mode(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /testmode command"""
    if not await _authorized(update):
        return

    try:
        policy = await get_service(context).toggle_accelerated_mode()
    except TrainerError as e:
        _log_error(e, "toggling test mode")
        await update.message.reply_text(menus.error_message(e))
        return

    await update.message.reply_text(menus.test_mode_text(policy))


async def handle_button_click(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle reset/stop buttons attached to training reminders"""
    query = update.callback_query
    user_info = get_user_info(update)
    data = query.data

    authorized = Config.is_authorized(user_info['id'])
    logger.info(f"🔘 {user_info['username']} ({user_info['id']}) {'✅' if authorized else '🚫'}: {data}")

    if not authorized:
        await query.answer(text="❌ Not authorized", show_alert=True)
        return

    if not data:
        await query.answer()
        return

    service = get_service(context)
    now = utcnow()
    try:
        token, result = service.handle_callback(user_info['id'], data, now)
    except InvalidCallbackData as e:
        _log_error(e, "button")
        await query.answer(text=menus.error_message(e))
        return
    except StorageError as e:
        _log_error(e, f"handling button {data}")
        await query.answer(text=menus.GENERIC_ERROR_TEXT, show_alert=True)
        return
    except TrainerError as e:
        _log_error(e, f"handling button {data}")
        text = menus.error_message(e)
        await query.answer(text=text, show_alert=True)
        if query.message:
            await query.edit_message_text(text)
        return

    if token.action == CallbackAction.RESET:
        record, estimate = result
        await query.edit_message_text(
            menus.training_started_text(record, estimate, now, service.policy, reset=True)
        )
        await query.answer(text=f"Training reset for NPC {token.kind.value}")
    elif result is None:
        await query.answer(
            text=menus.error_message(NotInitialized(user_info['id'], token.kind)),
            show_alert=True,
        )
    else:
        await query.edit_message_text(menus.tracking_stopped_text(token.kind))
        await query.answer(text=f"Tracking stopped for NPC {token.kind.value}")
