from __future__ import annotations
import logging
import threading
from typing import List, Optional, Protocol, Union

from .domain import Platform
from .parsing import parse_job_from_text
from .schemas import JobApplication
from .storage.export import export_to_csv, export_to_excel
from .storage.sqlite_storage import MEMORY, SqliteStorage

logger = logging.getLogger(__name__)

EXPORT_FORMATS = {"excel", "csv"}


class BackupSink(Protocol):
    def backup_database(self, db_path: str) -> str: ...


class JobTracker:
    """Entry point for the CLI: parse pasted pages, store and query them.

    Storage and the optional backup sink are injected. Errors from either are
    passed through unchanged.
    """

    def __init__(self, storage: SqliteStorage, backup: Optional[BackupSink] = None):
        self.storage = storage
        self.backup = backup

    @property
    def has_backup(self) -> bool:
        return self.backup is not None

    def extract(self, raw_text: str, platform: Union[Platform, str, None] = None) -> JobApplication:
        return parse_job_from_text(raw_text, platform)

    def save(self, job: JobApplication) -> int:
        return self.storage.create(job).id

    def get(self, record_id: int) -> Optional[JobApplication]:
        return self.storage.get(record_id)

    def update(self, job: JobApplication) -> Optional[JobApplication]:
        return self.storage.update(job)

    def delete(self, record_id: int) -> Optional[JobApplication]:
        return self.storage.delete(record_id)

    def list_all(self, limit: Optional[int] = None, offset: int = 0) -> List[JobApplication]:
        return self.storage.list_all(limit=limit, offset=offset)

    def search_by_company(self, company: str, limit: Optional[int] = None) -> List[JobApplication]:
        return self.storage.search_by_company(company, limit=limit)

    def full_text_search(self, query: str, limit: Optional[int] = None) -> List[JobApplication]:
        return self.storage.full_text_search(query, limit=limit)

    def export(self, out_path: str, fmt: str = "excel") -> int:
        if fmt not in EXPORT_FORMATS:
            raise ValueError(f"Unknown export format {fmt!r}, expected one of {sorted(EXPORT_FORMATS)}")
        records = self.storage.iter_records()
        if fmt == "csv":
            return export_to_csv(records, out_path)
        return export_to_excel(records, out_path)

    def backup_now(self) -> Optional[str]:
        """Upload the database right away. Returns the remote id, or None without a sink."""
        if self.backup is None or self.storage.path == MEMORY:
            return None
        return self.backup.backup_database(self.storage.path)

    def shutdown(self, timeout: Optional[float] = 30) -> None:
        """Close storage and run the backup in the background.

        Waits at most ``timeout`` seconds for the upload; a failed or slow
        backup is logged and never raised.
        """
        self.storage.close()
        if self.backup is None or self.storage.path == MEMORY:
            return

        def _run() -> None:
            try:
                self.backup.backup_database(self.storage.path)
            except Exception:
                logger.exception("Backup on shutdown failed")

        worker = threading.Thread(target=_run, name="jobtracker-backup", daemon=True)
        worker.start()
        worker.join(timeout)
        if worker.is_alive():
            logger.warning("Backup still running after %ss, not waiting any longer", timeout)
