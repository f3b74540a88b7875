"""Alembic environment for the ParkShare schema."""

from __future__ import annotations

from logging.config import fileConfig
from os import environ

from sqlalchemy import engine_from_config, pool
from sqlalchemy.engine import URL, make_url
from alembic import context

from parkshare.core.config import get_settings
from parkshare.db.base import Base
from parkshare.models import *  # noqa: F401,F403

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# Migrations run synchronously; map the async drivers the app uses.
_SYNC_DRIVERS = {
    "postgresql": "postgresql+psycopg",
    "postgresql+asyncpg": "postgresql+psycopg",
    "sqlite+aiosqlite": "sqlite",
}


def _migration_url() -> URL:
    raw = environ.get("SYNC_DATABASE_URL") or environ.get("DATABASE_URL")
    if not raw:
        settings = get_settings()
        raw = settings.sync_database_url or settings.database_url
    url = make_url(raw)
    return url.set(drivername=_SYNC_DRIVERS.get(url.drivername, url.drivername))


config.set_main_option(
    "sqlalchemy.url", _migration_url().render_as_string(hide_password=False)
)


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=connection.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
