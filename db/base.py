from typing import Optional

from peewee import DatabaseProxy, Model
from playhouse.db_url import connect

from core.settings import settings

# Bound to a concrete database by init_db() (sqlite, postgres, ... via URL)
db = DatabaseProxy()


class BaseModel(Model):
    class Meta:
        database = db


def bind_db(database_url: Optional[str] = None) -> None:
    """Point the proxy at the database named by ``database_url``."""
    db.initialize(connect(database_url or settings.database_url))


# Function to initialize database connection
def init_db(database_url: Optional[str] = None) -> None:
    """Bind the database, connect and create tables if they don't exist."""
    bind_db(database_url)
    db.connect(reuse_if_open=True)

    from .models.pipeline_run import PipelineRun
    from .models.snapshot import SnapshotRecord

    # safe=True is idempotent
    db.create_tables([PipelineRun, SnapshotRecord], safe=True)


# Function to close database connection
def close_db() -> None:
    """Close database connection."""
    if db.obj is not None and not db.is_closed():
        db.close()
