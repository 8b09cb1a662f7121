import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine

from app.platform.config import settings
from app.platform.db.base import Base

# Import every model so its table is registered on Base.metadata
from app.features.applications.models.application import Application, ApplicationStatusChange  # noqa: F401
from app.features.auth.models.user import User  # noqa: F401
from app.features.scoring.models import ApplicationScore, ScoringConfiguration, ScoringCriteria  # noqa: F401
from app.features.support.models import SupportResponse, SupportTicket  # noqa: F401
from app.features.verification.models.verification_code import VerificationCode  # noqa: F401

# Alembic Config
config = context.config

# Override sqlalchemy.url using settings
config.set_main_option("sqlalchemy.url", str(settings.DATABASE_URL))

# Logging
if config.config_file_name:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline():
    """Run migrations in 'offline' mode."""
    url = config.get_main_option("sqlalchemy.url")

    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection):
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        render_as_batch=connection.dialect.name == "sqlite",
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online():
    """Run migrations in 'online' mode over the async driver."""
    connectable = create_async_engine(
        config.get_main_option("sqlalchemy.url"),
        poolclass=pool.NullPool,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
