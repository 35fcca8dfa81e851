import os
import logging
from dotenv import load_dotenv

load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def _parse_id_list(raw, name):
    """Parse a comma separated list of Telegram ids, ignoring it when invalid"""
    if not raw:
        return []
    try:
        return [int(item.strip()) for item in raw.split(",") if item.strip()]
    except ValueError:
        logger.warning(f"Invalid {name} format")
        return []


def _parse_optional_int(raw, name):
    if not raw:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        logger.warning(f"Invalid {name} value: {raw!r}")
        return None


class Config:
    """Core configuration for the Pet Trainer bot"""

    # ==================== BOT CONFIGURATION ====================
    TELEGRAM_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN", "").strip()
    DATABASE_PATH = os.getenv("DATABASE_PATH", "data/training.db")
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    PORT = int(os.getenv("PORT", "8000"))

    # ==================== ACCESS CONFIGURATION ====================
    OWNER_TELEGRAM_ID = _parse_optional_int(os.getenv("OWNER_TELEGRAM_ID", ""), "OWNER_TELEGRAM_ID")
    AUTHORIZED_USERS = _parse_id_list(os.getenv("AUTHORIZED_USERS", ""), "AUTHORIZED_USERS")

    # ==================== FEATURE FLAGS ====================
    # Test mode (accelerated timers) is never honoured in production
    TEST_MODE = os.getenv("TEST_MODE", "false").lower() == "true"
    ENABLE_HEALTH_SERVER = os.getenv("ENABLE_HEALTH_SERVER", "true").lower() == "true"

    @classmethod
    def is_production(cls):
        return cls.ENVIRONMENT == "production"

    @classmethod
    def initial_test_mode(cls):
        """Accelerated timers requested at startup, after the production guard"""
        if cls.TEST_MODE and cls.is_production():
            logger.warning("⚠️ TEST_MODE ignored in production environment")
            return False
        return cls.TEST_MODE

    @classmethod
    def is_authorized(cls, user_id):
        """Check a Telegram user against the static allow-list"""
        if not user_id:
            return False
        if cls.OWNER_TELEGRAM_ID is not None and user_id == cls.OWNER_TELEGRAM_ID:
            return True
        return user_id in cls.AUTHORIZED_USERS

    # ==================== VALIDATION METHODS ====================
    @classmethod
    def validate(cls):
        """Validate essential configuration"""
        errors = []

        if not cls.TELEGRAM_TOKEN:
            errors.append("TELEGRAM_BOT_TOKEN is required")

        if cls.OWNER_TELEGRAM_ID is None:
            errors.append("OWNER_TELEGRAM_ID is required and must be a valid number")

        if not cls.DATABASE_PATH:
            errors.append("DATABASE_PATH is required")

        if errors:
            error_msg = "Configuration errors:\n- " + "\n- ".join(errors)
            logger.error(error_msg)
            raise ValueError(error_msg)

        logger.info("✅ Configuration validated successfully")
        logger.info(f"🤖 Bot Environment: {cls.ENVIRONMENT}")
        logger.info(f"👤 Owner ID: {cls.OWNER_TELEGRAM_ID}")
        logger.info(f"👥 Authorized Users: {len(cls.AUTHORIZED_USERS)} extra")
        logger.info(f"🗄️ Database: {cls.DATABASE_PATH}")

        return True
