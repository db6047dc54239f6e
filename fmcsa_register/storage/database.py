"""
SQLite database for FMCSA Register entry storage and querying.
"""
import sqlite3
import logging
from datetime import date
from pathlib import Path
from typing import List, Optional, Dict, Any, Union
from contextlib import contextmanager

from ..core.config import settings
from ..core.exceptions import PersistenceFailure
from ..core.models import RegisterEntry, RegisterStatistics

logger = logging.getLogger(__name__)

DateLike = Union[date, str]


def _iso(value: Optional[DateLike]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, date):
        return value.isoformat()
    return date.fromisoformat(value).isoformat()


class RegisterDB:
    """SQLite store keyed by (docket number, fetch date)."""

    def __init__(self, db_path: Optional[str] = None):
        self.db_path = Path(db_path or settings.database_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_database()

    def _init_database(self):
        """Initialize database tables."""
        with self.get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS fmcsa_register (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    number TEXT NOT NULL,
                    title TEXT NOT NULL,
                    decided TEXT NOT NULL,
                    category TEXT,
                    date_fetched DATE NOT NULL,
                    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                    UNIQUE(number, date_fetched)
                )
            """)

            conn.execute("CREATE INDEX IF NOT EXISTS idx_register_date ON fmcsa_register(date_fetched)")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_register_category ON fmcsa_register(category)")

            conn.commit()
            logger.info("Database initialized successfully")

    @contextmanager
    def get_connection(self):
        """Get database connection with proper cleanup.

        sqlite errors are re-raised as PersistenceFailure.
        """
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            raise PersistenceFailure(f"Could not open database {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row  # Enable dict-like access
        try:
            yield conn
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Database error: {e}")
            raise PersistenceFailure(f"Database error: {e}") from e
        finally:
            conn.close()

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> RegisterEntry:
        return RegisterEntry(
            number=row['number'],
            title=row['title'],
            decided=row['decided'],
            category=row['category'],
            fetch_date=date.fromisoformat(row['date_fetched']),
        )

    def upsert_entries(self, entries: List[RegisterEntry], fetch_date: DateLike) -> int:
        """Store entries for a fetch date, replacing rows with the same docket number."""
        if not entries:
            return 0

        fetched = _iso(fetch_date)
        records = [
            (entry.number, entry.title, entry.decided, entry.category.value, fetched)
            for entry in entries
        ]

        with self.get_connection() as conn:
            conn.executemany("""
                INSERT INTO fmcsa_register (number, title, decided, category, date_fetched)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(number, date_fetched) DO UPDATE SET
                    title = excluded.title,
                    decided = excluded.decided,
                    category = excluded.category,
                    updated_at = CURRENT_TIMESTAMP
            """, records)
            conn.commit()

        logger.info(f"Stored {len(records)} register entries for {fetched}")
        return len(records)

    def query_entries(self,
                      category: Optional[str] = None,
                      date_from: Optional[DateLike] = None,
                      date_to: Optional[DateLike] = None,
                      search_term: Optional[str] = None,
                      limit: Optional[int] = None) -> List[RegisterEntry]:
        """Query entries, newest fetch date first then by docket number."""
        clauses = []
        params: List[Any] = []

        if category and category != 'all':
            clauses.append("category = ?")
            params.append(category)

        if date_from:
            clauses.append("date_fetched >= ?")
            params.append(_iso(date_from))

        if date_to:
            clauses.append("date_fetched <= ?")
            params.append(_iso(date_to))

        if search_term:
            pattern = f"%{search_term}%"
            clauses.append("(number LIKE ? OR title LIKE ?)")
            params.extend([pattern, pattern])

        query = "SELECT number, title, decided, category, date_fetched FROM fmcsa_register"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " ORDER BY date_fetched DESC, number ASC LIMIT ?"
        params.append(limit or settings.default_query_limit)

        with self.get_connection() as conn:
            cursor = conn.execute(query, params)
            return [self._row_to_entry(row) for row in cursor.fetchall()]

    def get_entries_by_date(self, fetch_date: DateLike) -> List[RegisterEntry]:
        """Get all entries stored for one fetch date."""
        with self.get_connection() as conn:
            cursor = conn.execute("""
                SELECT number, title, decided, category, date_fetched
                FROM fmcsa_register
                WHERE date_fetched = ?
                ORDER BY number ASC
            """, (_iso(fetch_date),))
            return [self._row_to_entry(row) for row in cursor.fetchall()]

    def get_categories(self) -> List[str]:
        """Get the distinct categories present in the store."""
        with self.get_connection() as conn:
            cursor = conn.execute("""
                SELECT DISTINCT category FROM fmcsa_register
                WHERE category IS NOT NULL
                ORDER BY category
            """)
            return [row['category'] for row in cursor.fetchall()]

    def get_statistics(self, date_from: Optional[DateLike] = None,
                       date_to: Optional[DateLike] = None) -> RegisterStatistics:
        """Count entries per category over a fetch date range."""
        clauses = []
        params = []
        if date_from:
            clauses.append("date_fetched >= ?")
            params.append(_iso(date_from))
        if date_to:
            clauses.append("date_fetched <= ?")
            params.append(_iso(date_to))

        query = "SELECT COALESCE(category, 'UNCATEGORIZED') AS category, COUNT(*) AS count FROM fmcsa_register"
        if clauses:
            query += " WHERE " + " AND ".join(clauses)
        query += " GROUP BY 1"

        with self.get_connection() as conn:
            cursor = conn.execute(query, params)
            by_category = {row['category']: row['count'] for row in cursor.fetchall()}

        return RegisterStatistics(
            total_entries=sum(by_category.values()),
            by_category=by_category,
            date_from=_iso(date_from),
            date_to=_iso(date_to),
        )

    def delete_entries_before(self, fetch_date: DateLike) -> int:
        """Delete entries fetched before a date."""
        with self.get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM fmcsa_register WHERE date_fetched < ?",
                (_iso(fetch_date),)
            )
            conn.commit()
            deleted = cursor.rowcount
        logger.info(f"Deleted {deleted} register entries fetched before {_iso(fetch_date)}")
        return deleted

    def get_stats(self) -> Dict[str, int]:
        """Get database statistics."""
        with self.get_connection() as conn:
            stats = {}

            cursor = conn.execute("SELECT COUNT(*) as count FROM fmcsa_register")
            stats['total_entries'] = cursor.fetchone()['count']

            cursor = conn.execute("SELECT COUNT(DISTINCT date_fetched) as count FROM fmcsa_register")
            stats['fetch_dates'] = cursor.fetchone()['count']

            cursor = conn.execute("SELECT COUNT(DISTINCT category) as count FROM fmcsa_register")
            stats['categories'] = cursor.fetchone()['count']

            return stats

    def health_check(self) -> bool:
        try:
            with self.get_connection() as conn:
                conn.execute("SELECT 1")
            return True
        except PersistenceFailure as e:
            logger.error(f"Database health check failed: {e}")
            return False
