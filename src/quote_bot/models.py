"""
Data models and database operations for quote-bot.
"""

import logging
import queue
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, date, datetime
from pathlib import Path

from .migrations import get_current_version, run_migrations

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Base class for quote store failures."""


class StoreIOError(StoreError):
    """The database could not be reached or the statement did not complete."""


class PoolTimeoutError(StoreIOError):
    """No pooled connection became free within the configured timeout."""


class MalformedEntryError(StoreError):
    """A stored row is missing data every quote must have."""

    def __init__(self, message: str = "An entry was malformed, and didn't contain necessary data"):
        super().__init__(message)


class InvalidQuoteError(ValueError):
    """Quote text was empty or only whitespace."""


@dataclass(frozen=True)
class Quote:
    """A quote attributed to a Discord user."""

    user_id: str
    quote_date: date
    quote_text: str

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Quote":
        """Build a Quote from a ``quotes`` row, rejecting incomplete rows."""
        user_id = row["user_id"]
        raw_date = row["quote_date"]
        text = row["quote"]
        if user_id is None or raw_date is None or text is None:
            raise MalformedEntryError()

        try:
            quote_date = raw_date if isinstance(raw_date, date) else date.fromisoformat(str(raw_date))
        except ValueError as e:
            raise MalformedEntryError(f"Unreadable quote_date {raw_date!r}") from e

        return cls(user_id=str(user_id), quote_date=quote_date, quote_text=str(text))


class ConnectionPool:
    """A bounded pool of SQLite connections.

    Connections are opened lazily up to ``max_connections``. When every
    connection is checked out, ``acquire`` blocks until one is released, or
    raises ``PoolTimeoutError`` once ``timeout`` seconds pass.
    """

    def __init__(
        self,
        db_path: Path,
        max_connections: int = 5,
        timeout: float | None = None,
        busy_timeout: float = 5.0,
    ):
        if max_connections < 1:
            raise ValueError("max_connections must be at least 1")

        self.db_path = db_path
        self.max_connections = max_connections
        self.timeout = timeout
        self.busy_timeout = busy_timeout

        # None is put on close to wake blocked acquirers
        self._idle: queue.LifoQueue[sqlite3.Connection | None] = queue.LifoQueue()
        self._lock = threading.Lock()
        self._opened = 0
        self._closed = False

    @property
    def size(self) -> int:
        """Number of physical connections currently open. For diagnostics."""
        with self._lock:
            return self._opened

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, timeout=self.busy_timeout, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def acquire(self) -> sqlite3.Connection:
        """Check out a connection, opening or waiting for one as needed."""
        with self._lock:
            if self._closed:
                raise StoreIOError("Connection pool is closed")
            try:
                return self._idle.get_nowait()
            except queue.Empty:
                pass
            open_new = self._opened < self.max_connections
            if open_new:
                self._opened += 1

        if open_new:
            try:
                return self._connect()
            except sqlite3.Error as e:
                with self._lock:
                    self._opened -= 1
                raise StoreIOError(f"Could not open database {self.db_path}: {e}") from e

        try:
            conn = self._idle.get(timeout=self.timeout)
        except queue.Empty:
            raise PoolTimeoutError(
                f"No database connection free after {self.timeout} seconds"
            ) from None

        if conn is None:
            # Pass the wake-up on to the next waiter
            self._idle.put(None)
            raise StoreIOError("Connection pool is closed")
        return conn

    def release(self, conn: sqlite3.Connection) -> None:
        """Return a connection to the pool."""
        with self._lock:
            if self._closed:
                self._opened -= 1
                conn.close()
                return
            self._idle.put(conn)

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        conn = self.acquire()
        try:
            yield conn
        finally:
            self.release(conn)

    def close(self) -> None:
        """Close idle connections; checked-out ones close when released."""
        with self._lock:
            self._closed = True
            while True:
                try:
                    conn = self._idle.get_nowait()
                except queue.Empty:
                    break
                if conn is not None:
                    self._opened -= 1
                    conn.close()
            self._idle.put(None)


class QuoteStore:
    """Persistence for quotes, backed by a SQLite file.

    The database file and schema are created on construction if missing.
    Every operation is a single statement on one pooled connection, so
    the store can be shared by concurrent command invocations.
    """

    def __init__(self, db_path: Path, max_connections: int = 5, timeout: float | None = None):
        self.db_path = Path(db_path)
        try:
            applied = run_migrations(self.db_path)
            self.schema_version = get_current_version(self.db_path)
        except sqlite3.Error as e:
            raise StoreIOError(f"Could not prepare database {self.db_path}: {e}") from e
        if applied:
            logger.info(f"Applied {len(applied)} migration(s) to {self.db_path}")
        logger.info(f"Database {self.db_path} at schema version {self.schema_version}")

        self.pool = ConnectionPool(self.db_path, max_connections=max_connections, timeout=timeout)

    def __enter__(self) -> "QuoteStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.pool.close()

    @staticmethod
    def _check_user_id(user_id: str) -> None:
        if not isinstance(user_id, str) or not user_id:
            raise ValueError("user_id must be a non-empty string")

    def add_quote(self, user_id: str, text: str) -> None:
        """Store a quote for a user, dated with today's UTC date."""
        self._check_user_id(user_id)
        if not text or not text.strip():
            raise InvalidQuoteError("Quote text must not be empty")

        today = datetime.now(UTC).date()
        try:
            with self.pool.connection() as conn, conn:
                conn.execute(
                    "INSERT INTO quotes (user_id, quote_date, quote) VALUES (?, ?, ?)",
                    (user_id, today.isoformat(), text),
                )
        except sqlite3.Error as e:
            raise StoreIOError(f"Could not store quote for user {user_id}: {e}") from e

        logger.debug(f"Stored quote for user {user_id}")

    def random_quote_for_user(self, user_id: str) -> Quote | None:
        """Pick one of the user's quotes uniformly at random.

        Returns None if the user has no quotes.
        """
        self._check_user_id(user_id)
        try:
            with self.pool.connection() as conn:
                cursor = conn.execute(
                    """
                    SELECT user_id, quote_date, quote FROM quotes
                    WHERE user_id = ?
                    ORDER BY RANDOM()
                    LIMIT 1
                    """,
                    (user_id,),
                )
                row = cursor.fetchone()
                cursor.close()
        except sqlite3.Error as e:
            raise StoreIOError(f"Could not read quotes for user {user_id}: {e}") from e

        return Quote.from_row(row) if row else None

    def count_quotes(self, user_id: str) -> int:
        """Number of quotes stored for a user. For diagnostics and tests."""
        self._check_user_id(user_id)
        try:
            with self.pool.connection() as conn:
                cursor = conn.execute(
                    "SELECT COUNT(*) FROM quotes WHERE user_id = ?",
                    (user_id,),
                )
                row = cursor.fetchone()
                cursor.close()
        except sqlite3.Error as e:
            raise StoreIOError(f"Could not count quotes for user {user_id}: {e}") from e

        return row[0]
