"""Create all tables. Run on app startup."""
import logging

from sqlalchemy.engine import Engine

from duesbook.db.base import Base
from duesbook.db.session import engine as default_engine
from duesbook.models import auth_session, customer, transaction, user  # noqa: F401 - register models

logger = logging.getLogger(__name__)


def init_db(engine: Engine = None):
    engine = engine or default_engine
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready")
