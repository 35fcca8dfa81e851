import logging

from trainer_bot.training.errors import AcceleratedModeForbidden
from trainer_bot.training.models import CallbackAction, CallbackToken

logger = logging.getLogger(__name__)


class TrainerService:
    """Operations behind the bot commands and inline buttons"""

    def __init__(self, engine, scheduler=None, production=False):
        self.engine = engine
        self.scheduler = scheduler
        self.production = production

    @property
    def policy(self):
        return self.engine.policy

    def init(self, user_id):
        self.engine.init_user(user_id)

    def status(self, user_id, now=None):
        return self.engine.status(user_id, now)

    def start_session(self, user_id, kind, now=None):
        """Start training and return the record with its interruption estimate (if any)"""
        record = self.engine.start_session(user_id, kind, now)
        return record, self.engine.estimate_interruption(record, now)

    def stop_session(self, user_id, kind, now=None):
        return self.engine.stop_session(user_id, kind, now)

    def set_rental(self, user_id, kind, now=None):
        return self.engine.set_rental(user_id, kind, now)

    def handle_callback(self, user_id, data, now=None):
        """
        Apply an inline button payload.

        Malformed payloads raise ``InvalidCallbackData`` before any state is
        touched. Returns the parsed token together with the operation result.
        """
        token = CallbackToken.parse(data)

        if token.action == CallbackAction.RESET:
            return token, self.start_session(user_id, token.kind, now)
        return token, self.stop_session(user_id, token.kind, now)

    async def toggle_accelerated_mode(self):
        """Switch timer mode and restart the scheduler on the new tick period"""
        new_policy = self.engine.policy.toggled()
        if new_policy.accelerated and self.production:
            logger.warning("⚠️  Test mode cannot be enabled in production environment")
            raise AcceleratedModeForbidden()

        self.engine.policy = new_policy
        logger.info(f"🧪 Test mode {'ENABLED' if new_policy.accelerated else 'DISABLED'}")

        if self.scheduler is not None:
            await self.scheduler.restart()

        return new_policy
