# infra/migrations/env.py
import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import create_async_engine

from carebook.core.config import settings
from carebook.db.base import Base
from carebook.modules.appointments import models as _appointments_models  # noqa: F401
from carebook.modules.doctors import models as _doctors_models  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def _configure(**kw) -> None:
    context.configure(target_metadata=Base.metadata, compare_type=True, **kw)


def run_offline() -> None:
    _configure(url=settings.SQL_DSN, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def _run_sync(connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_online() -> None:
    engine = create_async_engine(settings.SQL_DSN, poolclass=pool.NullPool)
    async with engine.connect() as conn:
        await conn.run_sync(_run_sync)
    await engine.dispose()


if context.is_offline_mode():
    run_offline()
else:
    asyncio.run(run_online())
