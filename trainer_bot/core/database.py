import sqlite3
import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from trainer_bot.training.errors import NotInitialized, StorageError
from trainer_bot.training.models import NpcKind, TrainingRecord

logger = logging.getLogger(__name__)

TABLE_NAME = "trainings"

CREATE_TRAININGS_SQL = f"""
    CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
        user_id INTEGER NOT NULL,
        npc_type TEXT NOT NULL,
        start_iso TEXT,
        duration_hours REAL,
        end_iso TEXT,
        is_active INTEGER DEFAULT 0,
        last_notified_iso TEXT,
        npc_rental_start_iso TEXT,
        npc_rental_end_iso TEXT,
        rental_expiry_notified_iso TEXT,
        PRIMARY KEY (user_id, npc_type)
    )
"""

# Columns shared by the single-user and the multi-user layouts
LEGACY_COLUMNS = (
    "npc_type", "start_iso", "duration_hours", "end_iso", "is_active",
    "last_notified_iso", "npc_rental_start_iso", "npc_rental_end_iso",
    "rental_expiry_notified_iso",
)

KIND_ORDER_SQL = "CASE npc_type WHEN 'C' THEN 0 WHEN 'B' THEN 1 WHEN 'A' THEN 2 ELSE 3 END"


def _to_iso(value):
    return value.isoformat() if value is not None else None


def _from_iso(value):
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _row_to_record(row):
    try:
        return TrainingRecord(
            user_id=row["user_id"],
            kind=NpcKind(row["npc_type"]),
            start_time=_from_iso(row["start_iso"]),
            duration_hours=row["duration_hours"] or 0.0,
            end_time=_from_iso(row["end_iso"]),
            is_active=row["is_active"] == 1,
            last_notified_time=_from_iso(row["last_notified_iso"]),
            rental_start_time=_from_iso(row["npc_rental_start_iso"]),
            rental_end_time=_from_iso(row["npc_rental_end_iso"]),
            rental_expiry_notified_time=_from_iso(row["rental_expiry_notified_iso"]),
        )
    except (ValueError, TypeError, AttributeError) as e:
        raise StorageError(
            f"Unreadable training row for user {row['user_id']} NPC {row['npc_type']!r}: {e}"
        ) from e


def _rows_to_records(rows):
    """Decode rows, logging and skipping the ones that cannot be read"""
    records = []
    for row in rows:
        try:
            records.append(_row_to_record(row))
        except StorageError as e:
            logger.error(f"❌ Skipping {e}")
    return records


class TrainingStore:
    """SQLite store for per-user NPC training rows"""

    def __init__(self, db_path: str = "data/training.db", owner_id: int = None):
        self.db_path = db_path
        self.owner_id = owner_id
        self._lock = threading.RLock()
        self._ensure_data_dir()
        self._init_tables()

    def _ensure_data_dir(self):
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

    def _init_tables(self):
        with self._lock, self.get_connection() as conn:
            if self._needs_migration(conn):
                self._migrate_single_user_table(conn)
            else:
                conn.execute(CREATE_TRAININGS_SQL)
            logger.info("✅ Database schema initialized")

    @staticmethod
    def _needs_migration(conn):
        columns = [row["name"] for row in conn.execute(f"PRAGMA table_info({TABLE_NAME})")]
        # No table yet, or already keyed by user
        return bool(columns) and "user_id" not in columns

    def _migrate_single_user_table(self, conn):
        """Move a single-user table to the multi-user layout, assigning every row to the owner"""
        if self.owner_id is None:
            raise StorageError("Cannot migrate single-user database: OWNER_TELEGRAM_ID not set")

        logger.info("🔄 Migrating old database to multi-user schema...")
        columns = ", ".join(LEGACY_COLUMNS)

        conn.execute("BEGIN")
        conn.execute(f"ALTER TABLE {TABLE_NAME} RENAME TO {TABLE_NAME}_old")
        conn.execute(CREATE_TRAININGS_SQL)
        conn.execute(
            f"INSERT INTO {TABLE_NAME} (user_id, {columns}) "
            f"SELECT ?, {columns} FROM {TABLE_NAME}_old",
            (self.owner_id,)
        )
        conn.execute(f"DROP TABLE {TABLE_NAME}_old")

        logger.info(f"✅ Migration complete! Old data assigned to user {self.owner_id}")

    @contextmanager
    def get_connection(self):
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Database error: {e}")
            raise StorageError(str(e)) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get(self, user_id: int, kind: NpcKind):
        with self.get_connection() as conn:
            row = conn.execute(
                f"SELECT * FROM {TABLE_NAME} WHERE user_id = ? AND npc_type = ?",
                (user_id, kind.value)
            ).fetchone()
            return _row_to_record(row) if row else None

    def get_all(self):
        with self.get_connection() as conn:
            rows = conn.execute(
                f"SELECT * FROM {TABLE_NAME} ORDER BY user_id, {KIND_ORDER_SQL}"
            ).fetchall()
            return _rows_to_records(rows)

    def get_for_user(self, user_id: int):
        with self.get_connection() as conn:
            rows = conn.execute(
                f"SELECT * FROM {TABLE_NAME} WHERE user_id = ? ORDER BY {KIND_ORDER_SQL}",
                (user_id,)
            ).fetchall()
            return _rows_to_records(rows)

    def count(self):
        with self.get_connection() as conn:
            return conn.execute(f"SELECT COUNT(*) AS count FROM {TABLE_NAME}").fetchone()["count"]

    def upsert_defaults(self, user_id: int):
        """Create the missing C, B and A rows for a user in one transaction"""
        with self._lock, self.get_connection() as conn:
            conn.executemany(
                f"INSERT OR IGNORE INTO {TABLE_NAME} (user_id, npc_type, is_active) VALUES (?, ?, 0)",
                [(user_id, kind.value) for kind in NpcKind.ordered()]
            )
        logger.info(f"   ✅ Initialized 3 NPCs for user {user_id}")

    def write(self, record: TrainingRecord):
        """Replace every mutable column of an existing row"""
        with self._lock, self.get_connection() as conn:
            cursor = conn.execute(f"""
                UPDATE {TABLE_NAME}
                SET start_iso = ?,
                    duration_hours = ?,
                    end_iso = ?,
                    is_active = ?,
                    last_notified_iso = ?,
                    npc_rental_start_iso = ?,
                    npc_rental_end_iso = ?,
                    rental_expiry_notified_iso = ?
                WHERE user_id = ? AND npc_type = ?
            """, (
                _to_iso(record.start_time),
                record.duration_hours,
                _to_iso(record.end_time),
                1 if record.is_active else 0,
                _to_iso(record.last_notified_time),
                _to_iso(record.rental_start_time),
                _to_iso(record.rental_end_time),
                _to_iso(record.rental_expiry_notified_time),
                record.user_id,
                record.kind.value,
            ))
            if cursor.rowcount == 0:
                raise NotInitialized(record.user_id, record.kind)
        return record
