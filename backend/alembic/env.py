"""Alembic environment for the Morrow schema.

The URL comes from ``app.config.settings`` unless ``-x url=...`` is given.
Callers that already hold a connection (tests, scripts) pass it through
``config.attributes["connection"]`` and the migration runs on it.
"""
from logging.config import fileConfig

from alembic import context

from app.config import settings
from app.database import Base, create_db_engine

# Import all models so they register with Base.metadata
from app.models.user import User                # noqa: F401
from app.models.event import Event              # noqa: F401
from app.models.participant import Participant  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def database_url() -> str:
    return context.get_x_argument(as_dictionary=True).get("url") or settings.DATABASE_URL


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of running it."""
    context.configure(
        url=database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        render_as_batch=connection.dialect.name == "sqlite",
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connection = config.attributes.get("connection")
    if connection is not None:
        do_run_migrations(connection)
        return

    engine = create_db_engine(database_url())
    try:
        with engine.connect() as connection:
            do_run_migrations(connection)
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
