# database.py
import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

logger = logging.getLogger(__name__)

# Tables in orm.py register themselves here
Base = declarative_base()


class Database:
    """Owns the engine and hands out sessions.

    Built once by the app factory and disposed on shutdown.
    """

    def __init__(self, url: str) -> None:
        connect_args = {}
        if url.startswith("sqlite"):
            # needed for SQLite + threads
            connect_args["check_same_thread"] = False
        self.url = url
        self.engine = create_engine(url, connect_args=connect_args)
        self.SessionLocal = sessionmaker(autoflush=False, bind=self.engine)

    def create_all(self) -> None:
        """Create all tables."""
        from . import orm  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self.SessionLocal()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def dispose(self) -> None:
        logger.info("Closing database engine")
        self.engine.dispose()
