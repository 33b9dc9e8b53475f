"""Build the database engine and session factory"""

import logging
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from src.core.config import Settings
from src.db.schema import Base

logger = logging.getLogger(__name__)


def build_session_factory(settings: Settings) -> sessionmaker[Session]:
    """Create the engine for the configured URL and make sure all tables exist."""
    url = make_url(settings.database_url)
    connect_args = {}
    if url.get_backend_name() == "sqlite":
        # requests are served from a thread pool
        connect_args["check_same_thread"] = False
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(url, echo=settings.sql_echo, connect_args=connect_args)

    # Ensure all tables are created
    Base.metadata.create_all(bind=engine)
    logger.info("Database ready at %s", url.render_as_string(hide_password=True))
    return sessionmaker(bind=engine, expire_on_commit=False)
