import json
import logging
import sqlite3
from typing import Optional

from use_cases.errors import StorageCorruptionError
from use_cases.session_models import Session

log = logging.getLogger(__name__)

SESSION_KEY = "user"


class SQLiteSessionStore:
    """Single-slot session persistence. One JSON record under SESSION_KEY."""

    def __init__(self, db_path: str, key: str = SESSION_KEY):
        self.db_path = db_path
        self.key = key

    def _conn(self):
        return sqlite3.connect(self.db_path)

    def _get_current_version(self, conn) -> int:
        row = conn.execute("SELECT version FROM schema_info").fetchone()
        return row[0] if row else 0

    def _migrate_v1(self, conn):
        """Baseline schema (v1)."""
        conn.execute("""
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        """)

    def init_db(self):
        MIGRATIONS = [self._migrate_v1]

        with self._conn() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_info (
                    version INTEGER NOT NULL
                )
            """)
            current_version = self._get_current_version(conn)
            has_version_row = conn.execute("SELECT COUNT(*) FROM schema_info").fetchone()[0] > 0
            if not has_version_row:
                conn.execute("INSERT INTO schema_info (version) VALUES (?)", (current_version,))

            for i in range(current_version, len(MIGRATIONS)):
                target_version = i + 1
                try:
                    MIGRATIONS[i](conn)
                    conn.execute("UPDATE schema_info SET version = ?", (target_version,))
                except sqlite3.Error as e:
                    raise RuntimeError(f"Session store migration to v{target_version} failed: {e}") from e
            conn.commit()

    def save(self, session: Session):
        value = json.dumps(session.to_record(), ensure_ascii=False)
        with self._conn() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO kv_store (key, value) VALUES (?, ?)",
                (self.key, value),
            )
            conn.commit()

    def load_raw(self) -> Optional[str]:
        with self._conn() as conn:
            row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (self.key,)).fetchone()
            return row[0] if row else None

    def load(self) -> Optional[Session]:
        """Returns the stored Session, or None when absent or unreadable. Never raises on bad content."""
        return self.decode_record(self.load_raw())

    def decode_record(self, raw: Optional[str]) -> Optional[Session]:
        """Parses a raw slot value. None for an absent or unreadable record."""
        if raw is None:
            return None
        try:
            return self._deserialize(raw)
        except StorageCorruptionError as e:
            log.warning(f"Stored session record is unreadable: {e}")
            return None

    def _deserialize(self, raw: str) -> Session:
        try:
            record = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise StorageCorruptionError(f"Session record is not JSON: {e}") from e
        return Session.from_record(record)

    def clear(self):
        with self._conn() as conn:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (self.key,))
            conn.commit()
