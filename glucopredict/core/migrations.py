"""Database migration utilities."""

from pathlib import Path

from alembic import command
from alembic.config import Config
from alembic.script import ScriptDirectory
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from glucopredict.database import get_engine
from glucopredict.logging_config import get_logger

logger = get_logger(__name__)

# Repository root, holding alembic.ini and migrations/
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


def get_alembic_config() -> Config:
    """Alembic configuration rooted at the project directory."""
    alembic_ini = PROJECT_ROOT / "alembic.ini"
    if not alembic_ini.exists():
        raise FileNotFoundError(f"alembic.ini not found at {alembic_ini}")

    config = Config(str(alembic_ini))
    config.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    return config


def get_head_revision() -> str | None:
    """Latest revision known to the migration scripts."""
    script = ScriptDirectory.from_config(get_alembic_config())
    return script.get_current_head()


def run_migrations() -> None:
    """Upgrade the database to head.

    Synchronous; run it before the server starts, not from the event loop.
    """
    logger.info("Running database migrations")
    config = get_alembic_config()
    config.attributes["configure_logger"] = False
    command.upgrade(config, "head")
    logger.info("Database migrations completed", revision=get_head_revision())


async def check_migrations_current() -> bool:
    """True if the database is stamped with the head revision."""
    try:
        async with get_engine().connect() as conn:
            result = await conn.execute(
                text("SELECT version_num FROM alembic_version LIMIT 1")
            )
            row = result.fetchone()
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Could not read alembic_version", error=str(e))
        return False

    if row is None:
        return False
    return row[0] == get_head_revision()


if __name__ == "__main__":
    from glucopredict.config import settings
    from glucopredict.logging_config import setup_logging

    setup_logging(settings.log_format, settings.log_level, settings.service_name)
    run_migrations()
