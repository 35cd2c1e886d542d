from logging.config import fileConfig
from alembic import context
import os
import sys

# --- raíz del repositorio en sys.path para `from app import create_app`
THIS_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(THIS_DIR, os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# configuración de Alembic (alembic.ini)
config = context.config

# logging de Alembic
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# --- app Flask y metadata de extensions.db
from app import create_app            # noqa: E402
from extensions import db             # noqa: E402

app = create_app()
app.app_context().push()

# sin sqlalchemy.url en alembic.ini se usa la URL de la app
engine_url = str(db.engine.url)
if not config.get_main_option("sqlalchemy.url"):
    config.set_main_option("sqlalchemy.url", engine_url)

target_metadata = db.metadata

def run_migrations_offline():
    """Offline: genera SQL sin conexión."""
    url = config.get_main_option("sqlalchemy.url") or engine_url
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,  # SQLite no soporta ALTER completo
    )
    with context.begin_transaction():
        context.run_migrations()

def run_migrations_online():
    """Online: aplica las migraciones sobre la base real."""
    connectable = db.engine
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=True,  # SQLite no soporta ALTER completo
        )
        with context.begin_transaction():
            context.run_migrations()

if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
