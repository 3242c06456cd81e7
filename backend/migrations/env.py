from logging.config import fileConfig
from alembic import context

from config import DATABASE_URL, get_sync_engine
from models import Base


config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# Schemas and tables owned by Supabase itself, never autogenerated against
SUPABASE_SCHEMAS = {
    'auth', 'storage', 'realtime', 'vault', 'supabase_functions', 'extensions',
    'graphql', 'graphql_public', 'pgsodium', 'pgsodium_masks',
}
SUPABASE_TABLES = {'schema_migrations', 'supabase_migrations'}


def include_object(object, name, type_, reflected, compare_to):
    if getattr(object, 'schema', None) in SUPABASE_SCHEMAS:
        return False
    if type_ == "table" and name in SUPABASE_TABLES:
        return False
    return True


def run_migrations_offline() -> None:
    """Emit SQL for the migrations without a live connection."""
    if not DATABASE_URL:
        raise ValueError("DATABASE_URL environment variable is required for migrations")

    context.configure(
        url=DATABASE_URL.replace("postgresql+asyncpg://", "postgresql://"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        include_object=include_object,
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations against the sync engine built from DATABASE_URL."""
    with get_sync_engine().connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            include_object=include_object,
            compare_type=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
