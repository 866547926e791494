"""Migration runner for the Invito schema.

Alembic is pointed at ``settings.DATABASE_URL`` rather than a URL in an ini
file, so the API and its migrations can never disagree about the target.
Importing each model module populates ``Base.metadata`` for autogenerate.
"""
from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool
from alembic import context

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from app.config import settings
from app.database import Base

from app.models.user import User                                     # noqa: F401
from app.models.circle import Circle, CircleMember, CircleInviteLink  # noqa: F401
from app.models.invite import Invite, RSVP                           # noqa: F401
from app.models.feed import EventFeedItem                            # noqa: F401
from app.models.media import MediaItem                               # noqa: F401

alembic_config = context.config
alembic_config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

if alembic_config.config_file_name is not None:
    fileConfig(alembic_config.config_file_name)

target_metadata = Base.metadata

# shared by both modes so offline SQL matches what online runs would do
MIGRATION_OPTIONS = {"target_metadata": target_metadata, "compare_type": True}


def migrate_offline() -> None:
    """Render the migration SQL without a database connection."""
    context.configure(
        url=alembic_config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **MIGRATION_OPTIONS,
    )
    with context.begin_transaction():
        context.run_migrations()


def migrate_online() -> None:
    engine = engine_from_config(
        alembic_config.get_section(alembic_config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with engine.connect() as connection:
        context.configure(
            connection=connection,
            # SQLite cannot ALTER constraints in place
            render_as_batch=connection.dialect.name == "sqlite",
            **MIGRATION_OPTIONS,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    migrate_offline()
else:
    migrate_online()
