"""Migration environment for the storefront schema (users and products)."""

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine
from sqlalchemy.pool import NullPool

# Migrations never issue tokens, so an unset JWT_SECRET must not block them.
os.environ.setdefault("APP_ENV", "dev")
from storefront.core.config import get_settings
from storefront.models import Base, Product, User  # noqa: F401  registers both tables

config = context.config
# A trimmed alembic.ini without logger sections makes fileConfig raise KeyError.
if config.config_file_name is not None:
    try:
        fileConfig(config.config_file_name)
    except KeyError:
        pass

target_metadata = Base.metadata


def database_url() -> str:
    return get_settings().DATABASE_URL


def run_migrations_offline() -> None:
    """Emit the migration SQL to stdout instead of executing it."""
    context.configure(
        url=database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    # SQLite cannot ALTER most constraints in place, so alembic rebuilds tables in batch mode there.
    engine = create_engine(database_url(), poolclass=NullPool)
    with engine.connect() as connection:
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
