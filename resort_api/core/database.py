import logging
from typing import Optional

from tortoise import Tortoise
from tortoise.expressions import Q

from resort_api.core.config import settings
from resort_api.models import MODEL_MODULES

logger = logging.getLogger(__name__)


def get_tortoise_config(db_url: Optional[str] = None) -> dict:
    """
    Get Tortoise ORM config for the application, tests and CLI tooling

    Args:
        db_url: Connection string; defaults to RESORT_DATABASE_URL

    Returns:
        Tortoise ORM config dictionary
    """
    return {
        "connections": {
            "default": db_url or settings.DATABASE_URL,
        },
        "apps": {
            "models": {
                "models": list(MODEL_MODULES),
                "default_connection": "default",
            },
        },
        "use_tz": True,
        "timezone": settings.TIME_ZONE,
    }


async def init_db(db_url: Optional[str] = None, create_schema: bool = False) -> None:
    """
    Initialize database connection

    Args:
        db_url: Connection string; defaults to RESORT_DATABASE_URL
        create_schema: Whether to create database schema if it doesn't exist
    """
    logger.info("Initializing database connection")

    await Tortoise.init(config=get_tortoise_config(db_url))

    if create_schema:
        logger.info("Creating database schema")
        await Tortoise.generate_schemas(safe=True)

    await ensure_initial_admin()


async def ensure_initial_admin() -> None:
    """
    Create the configured initial admin user if it does not exist yet

    Without a first admin nobody could reach the admin-only endpoints, so the
    RESORT_ADMIN_* settings seed one at startup.
    """
    if not settings.initial_admin_configured:
        return

    from resort_api.models.users import User, UserRole
    from resort_api.utils.validators import normalize_phone_number

    username = settings.ADMIN_USERNAME.lower()
    email = settings.ADMIN_EMAIL.lower()

    admin_exists = await User.filter(Q(username=username) | Q(email=email)).exists()
    if admin_exists:
        return

    logger.info("Creating initial admin user: %s", username)
    admin = User(
        name=settings.ADMIN_NAME,
        username=username,
        email=email,
        phone=normalize_phone_number(settings.ADMIN_PHONE),
        role=UserRole.ADMIN,
        is_active=True,
    )
    admin.set_password(settings.ADMIN_PASSWORD)
    await admin.save()


async def close_db() -> None:
    """
    Close database connection
    """
    logger.info("Closing database connection")
    await Tortoise.close_connections()
