import logging

from sqlmodel import SQLModel, Session, create_engine

from .config import settings
from .seed import seed_categories

logger = logging.getLogger(__name__)

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO, connect_args=connect_args)


def create_db_and_tables(bind=None):
    """Create all tables and seed the default categories."""
    bind = bind if bind is not None else engine
    SQLModel.metadata.create_all(bind)
    with Session(bind) as session:
        added = seed_categories(session)
    if added:
        logger.info("Seeded %d default categories", added)


def get_session():
    with Session(engine) as session:
        yield session
