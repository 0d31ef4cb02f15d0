"""Alembic environment for the checkout store. The URL comes from blane_checkout settings (backend/.env)."""
from logging.config import fileConfig

from alembic import context

from blane_checkout.config import settings
from blane_checkout.db.base import Base
from blane_checkout.db.session import make_engine
from blane_checkout.db.tables import ALL_TABLE_NAMES
import blane_checkout.models  # noqa: F401  (register models on Base.metadata)

# Models and ALL_TABLE_NAMES must describe the same tables.
_registered = set(Base.metadata.tables)
_expected = set(ALL_TABLE_NAMES)
assert _registered == _expected, (
    f"Model tables {_registered} must match blane_checkout.db.tables.ALL_TABLE_NAMES {_expected}."
)

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)


def run_migrations_offline(url: str) -> None:
    context.configure(
        url=url,
        target_metadata=Base.metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=url.startswith("sqlite"),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online(url: str) -> None:
    # Same engine options as the running store (sqlite thread flag, pool sizing)
    engine = make_engine(url)
    try:
        with engine.connect() as connection:
            context.configure(
                connection=connection,
                target_metadata=Base.metadata,
                render_as_batch=connection.dialect.name == "sqlite",
            )
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline(settings.database_url)
else:
    run_migrations_online(settings.database_url)
