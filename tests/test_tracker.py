from __future__ import annotations
import threading
import time

import pandas as pd
import pytest

from jobtracker.errors import DuplicateRecordError
from jobtracker.storage.sqlite_storage import SqliteStorage
from jobtracker.tracker import JobTracker


class RecordingBackup:
    def __init__(self):
        self.paths = []

    def backup_database(self, db_path: str) -> str:
        self.paths.append(db_path)
        return "remote-id"


class FailingBackup:
    def backup_database(self, db_path: str) -> str:
        raise RuntimeError("drive is down")


class SlowBackup:
    def __init__(self):
        self.release = threading.Event()

    def backup_database(self, db_path: str) -> str:
        self.release.wait(5)
        return "late"


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "apps.db")


def test_extract_then_save(storage, linkedin_text):
    tracker = JobTracker(storage)
    job = tracker.extract(linkedin_text, "linkedin")
    record_id = tracker.save(job)
    assert tracker.get(record_id).company == "Acme Inc"
    assert [j.id for j in tracker.search_by_company("acme")] == [record_id]
    assert [j.id for j in tracker.full_text_search("senior developer")] == [record_id]
    assert [j.id for j in tracker.list_all()] == [record_id]


def test_saving_same_paste_twice_is_duplicate(storage, greenhouse_html):
    tracker = JobTracker(storage)
    tracker.save(tracker.extract(greenhouse_html, "greenhouse"))
    with pytest.raises(DuplicateRecordError):
        tracker.save(tracker.extract(greenhouse_html, "greenhouse"))
    assert len(tracker.list_all()) == 1


def test_update_and_delete_pass_through(storage, make_job):
    tracker = JobTracker(storage)
    job = make_job()
    tracker.save(job)
    job.add_note("Recruiter called")
    assert tracker.update(job).notes == "Recruiter called"
    assert tracker.delete(job.id).id == job.id
    assert tracker.get(job.id) is None


def test_backup_is_optional(storage):
    tracker = JobTracker(storage)
    assert not tracker.has_backup
    assert tracker.backup_now() is None
    tracker.shutdown()


def test_backup_now(db_path):
    backup = RecordingBackup()
    tracker = JobTracker(SqliteStorage(db_path), backup=backup)
    assert tracker.has_backup
    assert tracker.backup_now() == "remote-id"
    assert backup.paths == [db_path]
    tracker.shutdown()


def test_shutdown_uploads_database(db_path, make_job):
    backup = RecordingBackup()
    tracker = JobTracker(SqliteStorage(db_path), backup=backup)
    tracker.save(make_job())
    tracker.shutdown()
    assert backup.paths == [db_path]


def test_shutdown_survives_backup_failure(db_path):
    tracker = JobTracker(SqliteStorage(db_path), backup=FailingBackup())
    tracker.shutdown()


def test_shutdown_does_not_wait_forever(db_path):
    backup = SlowBackup()
    tracker = JobTracker(SqliteStorage(db_path), backup=backup)
    started = time.monotonic()
    tracker.shutdown(timeout=0.1)
    assert time.monotonic() - started < 2
    backup.release.set()


def test_in_memory_storage_is_never_backed_up(storage):
    backup = RecordingBackup()
    JobTracker(storage, backup=backup).shutdown()
    assert backup.paths == []


def test_export_csv(storage, make_job, tmp_path):
    tracker = JobTracker(storage)
    tracker.save(make_job(company="Acme Inc"))
    tracker.save(make_job(company="Globex", workplace_type="Hybrid"))
    out = tmp_path / "apps.csv"

    assert tracker.export(str(out), fmt="csv") == 2
    df = pd.read_csv(out)
    assert list(df["company"]) == ["Acme Inc", "Globex"]
    assert list(df["date_applied"]) == ["2025-09-10", "2025-09-10"]
    assert list(df["status"]) == ["SUBMITTED", "SUBMITTED"]


def test_export_excel(storage, make_job, tmp_path):
    tracker = JobTracker(storage)
    tracker.save(make_job())
    out = tmp_path / "apps.xlsx"

    assert tracker.export(str(out)) == 1
    df = pd.read_excel(out, sheet_name="Applications")
    assert df.loc[0, "position"] == "Senior Developer"


def test_export_empty_database(storage, tmp_path):
    out = tmp_path / "empty.csv"
    assert JobTracker(storage).export(str(out), fmt="csv") == 0
    assert list(pd.read_csv(out).columns)[:3] == ["id", "company", "position"]


def test_export_rejects_unknown_format(storage, make_job, tmp_path):
    tracker = JobTracker(storage)
    tracker.save(make_job())
    out = tmp_path / "apps.pdf"

    with pytest.raises(ValueError, match="pdf"):
        tracker.export(str(out), fmt="pdf")
    assert not out.exists()
