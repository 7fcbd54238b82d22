"""Store handle: engine, connection pool and transactional sessions.

A ``Database`` is created once at process start, handed to every
component that needs the store, and disposed at shutdown. There is no
module-level connection state.
"""

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from datavault.database.models import Base
from datavault.errors import StoreUnavailable, ValidationFailed
from datavault.settings import DatabaseSettings, settings
from datavault.utils.logger import setup_logger

logger = setup_logger("database.connection")


class Database:
    """Owns the engine and session factory for one relational store.

    On PostgreSQL, cascades rely on ``SELECT ... FOR UPDATE`` row locks.
    On SQLite, every transaction opens with ``BEGIN IMMEDIATE`` so
    writers are serialized by the database lock.

    Attributes:
        _engine: SQLAlchemy engine.
        _session_factory: Session factory bound to the engine.

    Example:
        ```python
        db = Database("sqlite:///data/datavault.db")
        db.create_all()
        with db.session() as session:
            session.execute(text("SELECT 1"))
        db.dispose()
        ```
    """

    def __init__(
        self,
        url: str,
        *,
        echo: bool = False,
        pool_size: int = 5,
        pool_overflow: int = 10,
        pool_timeout: int = 30,
        sqlite_busy_timeout: float = 15.0,
    ) -> None:
        """Create the engine and session factory.

        Args:
            url: SQLAlchemy connection URL.
            echo: Log emitted SQL.
            pool_size: Persistent connections kept in the pool.
            pool_overflow: Extra connections allowed under load.
            pool_timeout: Seconds to wait for a pooled connection.
            sqlite_busy_timeout: Seconds a SQLite writer waits for the lock.
        """
        self._url = make_url(url)
        self._engine = self._create_engine(
            echo=echo,
            pool_size=pool_size,
            pool_overflow=pool_overflow,
            pool_timeout=pool_timeout,
            sqlite_busy_timeout=sqlite_busy_timeout,
        )
        self._session_factory = sessionmaker(
            bind=self._engine,
            autoflush=False,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, db_settings: DatabaseSettings | None = None) -> "Database":
        """Build a store handle from configuration.

        Args:
            db_settings: Database section, defaults to global settings.

        Returns:
            New Database instance.
        """
        db = db_settings or settings.database
        return cls(
            db.sync_url,
            echo=settings.debug,
            pool_size=db.pool_size,
            pool_overflow=db.pool_overflow,
            pool_timeout=db.pool_timeout,
            sqlite_busy_timeout=db.sqlite_busy_timeout,
        )

    @property
    def is_sqlite(self) -> bool:
        """Whether the store is SQLite."""
        return self._url.get_backend_name() == "sqlite"

    @property
    def engine(self) -> Engine:
        """Get the underlying engine."""
        return self._engine

    def _create_engine(
        self,
        *,
        echo: bool,
        pool_size: int,
        pool_overflow: int,
        pool_timeout: int,
        sqlite_busy_timeout: float,
    ) -> Engine:
        """Create the engine with backend-specific pooling.

        Returns:
            Configured SQLAlchemy Engine.
        """
        options: dict[str, Any] = {"echo": echo, "pool_pre_ping": True}

        if not self.is_sqlite:
            options.update(
                pool_size=pool_size,
                max_overflow=pool_overflow,
                pool_timeout=pool_timeout,
            )
            return create_engine(self._url, **options)

        options["connect_args"] = {
            "check_same_thread": False,
            "timeout": sqlite_busy_timeout,
        }
        if self._url.database in (None, "", ":memory:"):
            # One shared connection, otherwise each checkout sees an empty database
            options["poolclass"] = StaticPool
        engine = create_engine(self._url, **options)
        _install_sqlite_locking(engine)
        return engine

    # =========================================================================
    # SESSIONS
    # =========================================================================

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Provide a transactional session scope.

        Commits on success, rolls back on exception, and closes the
        session when done. Driver failures surface as domain errors.

        Yields:
            SQLAlchemy Session instance.

        Raises:
            ValidationFailed: A storage constraint rejected the data.
            StoreUnavailable: The store could not complete the transaction.
        """
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except IntegrityError as e:
            session.rollback()
            logger.warning(f"Constraint violation: {e.orig}")
            raise ValidationFailed("Record violates a storage constraint") from e
        except DBAPIError as e:
            session.rollback()
            logger.error(f"Store failure: {e.orig}")
            raise StoreUnavailable() from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @contextmanager
    def transaction(self, session: Session | None = None) -> Generator[Session, None, None]:
        """Join the caller's transaction or open a new one.

        Components call this so a coordinator can run several of their
        operations inside a single unit of work.

        Args:
            session: Active session to join, or None to start one.

        Yields:
            Session to use for the operation.
        """
        if session is not None:
            yield session
            return
        with self.session() as own:
            yield own

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def create_all(self) -> None:
        """Create every table that does not exist yet."""
        Base.metadata.create_all(self._engine)

    def drop_all(self) -> None:
        """Drop every DataVault table."""
        Base.metadata.drop_all(self._engine)

    def check_connection(self) -> bool:
        """Test database connectivity with a simple query.

        Returns:
            True if connection successful, False otherwise.
        """
        try:
            with self.session() as session:
                session.execute(text("SELECT 1"))
            return True
        except StoreUnavailable:
            return False

    def dispose(self) -> None:
        """Dispose the connection pool and release resources.

        Should be called during application shutdown.
        """
        self._engine.dispose()
        logger.info("Database connections closed")


# =============================================================================
# SQLITE LOCKING
# =============================================================================


def _install_sqlite_locking(engine: Engine) -> None:
    """Make every SQLite transaction take the write lock up front.

    pysqlite's own transaction handling is disabled so SQLAlchemy
    controls BEGIN, which is then emitted as BEGIN IMMEDIATE.

    Args:
        engine: SQLite engine to configure.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection: Any, _record: Any) -> None:
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(connection: Any) -> None:
        connection.exec_driver_sql("BEGIN IMMEDIATE")
