"""Engine and unit-of-work sessions for the identity store, ledger and campaigns."""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from referly.logging_config import get_logger
from referly.storage.models import Base

logger = get_logger(__name__)

# Seconds a SQLite writer waits on a locked database before failing
SQLITE_BUSY_TIMEOUT = 15


class Database:
    """Owns one engine; hands out one session per unit of work."""

    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url
        connect_args = {}
        if database_url.startswith("sqlite"):
            # Sessions are used from FastAPI threadpool workers; concurrent writers queue on the lock
            connect_args = {"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT}

        self.engine = create_engine(
            database_url,
            echo=echo,
            pool_pre_ping=True,
            connect_args=connect_args,
        )
        self.SessionLocal = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)
        logger.info("database_initialized", dialect=self.engine.dialect.name)

    def create_tables(self) -> None:
        Base.metadata.create_all(bind=self.engine)
        logger.info("tables_created")

    def ping(self) -> bool:
        """Return True if the store answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error("database_unreachable", error=str(e))
            return False
        return True

    def dispose(self) -> None:
        self.engine.dispose()

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Transactional scope: commit on success, roll back and re-raise on error.

        Objects stay readable after the block since commits do not expire them.
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
