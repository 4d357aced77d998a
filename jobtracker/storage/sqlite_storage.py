from __future__ import annotations
import logging
import re
import sqlite3
import threading
from contextlib import contextmanager, nullcontext
from typing import Iterator, List, Optional

from filelock import FileLock

from ..errors import DuplicateRecordError, StorageError, ValidationError
from ..schemas import COLUMNS, JobApplication
from ..utils.dates import today

logger = logging.getLogger(__name__)

MEMORY = ":memory:"
DEFAULT_LIMIT = 20

_DATA_COLUMNS = [c for c in COLUMNS if c != "id"]

_SCHEMA = """
CREATE TABLE IF NOT EXISTS apps (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    company VARCHAR(255) NOT NULL,
    position VARCHAR(255) NOT NULL,
    location VARCHAR(255) NOT NULL DEFAULT '',
    salary_range VARCHAR(100) NOT NULL DEFAULT '',
    workplace_type VARCHAR(50) NOT NULL DEFAULT '',
    status VARCHAR(50) NOT NULL DEFAULT 'SUBMITTED',
    notes TEXT NOT NULL DEFAULT '',
    website VARCHAR(500) NOT NULL DEFAULT '',
    date_applied VARCHAR(10),
    UNIQUE (company, position, date_applied)
);
CREATE INDEX IF NOT EXISTS idx_apps_date_applied ON apps (date_applied);
CREATE VIRTUAL TABLE IF NOT EXISTS apps_fts USING fts5(company, position, notes);
"""

_TERM_RE = re.compile(r'"([^"]*)"|(\S+)')


def build_match_query(query: str) -> str:
    """Turn user input into an FTS5 MATCH expression.

    Bare words and "quoted phrases" are each quoted so FTS5 operators in the
    input are matched literally; all of them must match.
    """
    parts: List[str] = []
    for phrase, word in _TERM_RE.findall(query or ""):
        text = (phrase or word).strip()
        if text:
            parts.append('"' + text.replace('"', '""') + '"')
    return " ".join(parts)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqliteStorage:
    """SQLite-backed store for job applications with a parallel FTS5 index.

    Each instance owns one connection. Writes hold a thread lock and, for
    file databases, a lock file next to the database so the duplicate check
    and insert happen as one transaction even across processes.
    """

    def __init__(self, path: str = MEMORY, result_limit: int = DEFAULT_LIMIT, lock_timeout: float = 10):
        self.path = path
        self.result_limit = result_limit
        self._lock = threading.RLock()
        self._file_lock = None if path == MEMORY else FileLock(f"{path}.lock", timeout=lock_timeout)
        try:
            self._conn = sqlite3.connect(path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.executescript(_SCHEMA)
        except sqlite3.Error as exc:
            raise StorageError("open database", exc) from exc
        logger.debug("Opened database at %s", path)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "SqliteStorage":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @contextmanager
    def _write(self, operation: str) -> Iterator[sqlite3.Connection]:
        file_lock = self._file_lock if self._file_lock is not None else nullcontext()
        with self._lock, file_lock:
            try:
                with self._conn:
                    yield self._conn
            except sqlite3.IntegrityError:
                raise
            except sqlite3.Error as exc:
                raise StorageError(operation, exc) from exc

    def _query(self, operation: str, sql: str, params: tuple = ()) -> List[JobApplication]:
        with self._lock:
            try:
                rows = self._conn.execute(sql, params).fetchall()
            except sqlite3.Error as exc:
                raise StorageError(operation, exc) from exc
        return [JobApplication.from_row(row) for row in rows]

    def _limit(self, limit: Optional[int]) -> int:
        return self.result_limit if limit is None or limit <= 0 else min(limit, self.result_limit)

    @staticmethod
    def _check_required(job: JobApplication) -> None:
        missing = [name for name in ("company", "position") if not getattr(job, name).strip()]
        if missing:
            raise ValidationError(f"Missing required field(s): {', '.join(missing)}")

    @staticmethod
    def _index(conn: sqlite3.Connection, job: JobApplication) -> None:
        conn.execute("DELETE FROM apps_fts WHERE rowid = ?", (job.id,))
        conn.execute(
            "INSERT INTO apps_fts (rowid, company, position, notes) VALUES (?, ?, ?, ?)",
            (job.id, job.company, job.position, job.notes),
        )

    def create(self, job: JobApplication) -> JobApplication:
        """Insert a new record and assign its id.

        Raises DuplicateRecordError when company, position and date applied
        already exist together.
        """
        self._check_required(job)
        if job.date_applied is None:
            job.date_applied = today()
        row = job.to_row()
        placeholders = ", ".join("?" for _ in _DATA_COLUMNS)
        try:
            with self._write("create application") as conn:
                cur = conn.execute(
                    f"INSERT INTO apps ({', '.join(_DATA_COLUMNS)}) VALUES ({placeholders})",
                    tuple(row[c] for c in _DATA_COLUMNS),
                )
                job.id = cur.lastrowid
                self._index(conn, job)
        except sqlite3.IntegrityError as exc:
            job.id = None
            raise DuplicateRecordError(job.company, job.position, row["date_applied"]) from exc
        logger.info("Saved #%s %s at %s", job.id, job.position, job.company)
        return job

    def get(self, record_id: int) -> Optional[JobApplication]:
        found = self._query("get application", "SELECT * FROM apps WHERE id = ?", (int(record_id),))
        return found[0] if found else None

    def update(self, job: JobApplication) -> Optional[JobApplication]:
        """Overwrite every field of an existing record. Returns None if the id is unknown."""
        if job.id is None:
            raise ValidationError("Cannot update an application that has no id")
        if job.date_applied is None:
            raise ValidationError("Cannot update an application without a date applied")
        self._check_required(job)
        row = job.to_row()
        assignments = ", ".join(f"{c} = ?" for c in _DATA_COLUMNS)
        try:
            with self._write("update application") as conn:
                cur = conn.execute(
                    f"UPDATE apps SET {assignments} WHERE id = ?",
                    tuple(row[c] for c in _DATA_COLUMNS) + (job.id,),
                )
                if cur.rowcount == 0:
                    return None
                self._index(conn, job)
        except sqlite3.IntegrityError as exc:
            raise DuplicateRecordError(job.company, job.position, row["date_applied"]) from exc
        logger.info("Updated #%s status=%s", job.id, job.status.value)
        return job

    def delete(self, record_id: int) -> Optional[JobApplication]:
        with self._lock:
            existing = self.get(record_id)
            if existing is None:
                return None
            with self._write("delete application") as conn:
                conn.execute("DELETE FROM apps WHERE id = ?", (existing.id,))
                conn.execute("DELETE FROM apps_fts WHERE rowid = ?", (existing.id,))
        logger.info("Removed #%s", existing.id)
        return existing

    def list_all(self, limit: Optional[int] = None, offset: int = 0) -> List[JobApplication]:
        """Most recent applications first, at most ``result_limit`` of them."""
        return self._query(
            "list applications",
            "SELECT * FROM apps ORDER BY date_applied DESC, id DESC LIMIT ? OFFSET ?",
            (self._limit(limit), max(offset, 0)),
        )

    def search_by_company(self, company: str, limit: Optional[int] = None) -> List[JobApplication]:
        pattern = f"%{_escape_like(company.strip())}%"
        return self._query(
            "search by company",
            "SELECT * FROM apps WHERE LOWER(company) LIKE LOWER(?) ESCAPE '\\' "
            "ORDER BY date_applied DESC, id DESC LIMIT ?",
            (pattern, self._limit(limit)),
        )

    def full_text_search(self, query: str, limit: Optional[int] = None) -> List[JobApplication]:
        """Rank applications whose company, position or notes match ``query``.

        Best match (lowest bm25) first.
        """
        match = build_match_query(query)
        if not match:
            return []
        sql = (
            "SELECT a.* FROM apps a JOIN apps_fts ON a.id = apps_fts.rowid "
            "WHERE apps_fts MATCH ? ORDER BY bm25(apps_fts), a.id DESC"
        )
        params: tuple = (match,)
        if limit is not None and limit > 0:
            sql += " LIMIT ?"
            params += (limit,)
        return self._query("full-text search", sql, params)

    def iter_records(self) -> Iterator[JobApplication]:
        yield from self._query("read all applications", "SELECT * FROM apps ORDER BY id")
