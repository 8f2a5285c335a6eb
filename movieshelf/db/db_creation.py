import logging

from sqlalchemy.engine import Engine

from movieshelf.db.database_session import Base, engine

# Import every model so its table is registered on Base.metadata
from movieshelf.db.models.users import User  # noqa: F401
from movieshelf.db.models.collections import Collection  # noqa: F401
from movieshelf.db.models.collection_items import CollectionItem  # noqa: F401
from movieshelf.db.models.ratings import Rating  # noqa: F401


logger = logging.getLogger(__name__)


def create_tables(bind: Engine = engine) -> None:
    '''
    Creates all missing tables of the server schema. Existing tables are left untouched,
    so it is safe to call on every startup.
    '''
    Base.metadata.create_all(bind=bind)
    logger.info("Database tables ensured on %s", bind.url.render_as_string(hide_password=True))
