import logging

from telegram.error import TelegramError

from trainer_bot.bot.menus import notification_markup, notification_text
from trainer_bot.training.errors import NotificationDeliveryError

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Delivers scheduler notifications as Telegram messages"""

    def __init__(self, bot):
        self.bot = bot

    async def send(self, notification):
        try:
            await self.bot.send_message(
                chat_id=notification.user_id,
                text=notification_text(notification),
                reply_markup=notification_markup(notification),
            )
        except TelegramError as e:
            raise NotificationDeliveryError(
                f"Failed to send message to user {notification.user_id}: {e}"
            ) from e

        logger.info(f"📨 Sent {notification.type.value} to user {notification.user_id} for NPC {notification.kind.value}")
