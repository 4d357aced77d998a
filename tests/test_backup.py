from __future__ import annotations
from unittest.mock import MagicMock

import pytest

from jobtracker.backup.drive import DriveBackup, resolve_backup
from jobtracker.config import Settings
from jobtracker.errors import BackupError


@pytest.fixture
def db_file(tmp_path):
    path = tmp_path / "apps.db"
    path.write_bytes(b"SQLite format 3\x00")
    return str(path)


def test_existing_backup_is_overwritten(db_file):
    service = MagicMock()
    files = service.files.return_value
    files.list.return_value.execute.return_value = {"files": [{"id": "abc", "name": "job_apps_backup.db"}]}

    assert DriveBackup(service).backup_database(db_file) == "abc"
    assert files.update.call_args.kwargs["fileId"] == "abc"
    files.create.assert_not_called()


def test_first_backup_creates_file(db_file):
    service = MagicMock()
    files = service.files.return_value
    files.list.return_value.execute.return_value = {"files": []}
    files.create.return_value.execute.return_value = {"id": "new-id"}

    assert DriveBackup(service, file_name="mine.db").backup_database(db_file) == "new-id"
    assert files.create.call_args.kwargs["body"] == {"name": "mine.db"}
    assert "name='mine.db'" in files.list.call_args.kwargs["q"]
    files.update.assert_not_called()


def test_missing_database_file(tmp_path):
    with pytest.raises(BackupError):
        DriveBackup(MagicMock()).backup_database(str(tmp_path / "nope.db"))


def test_resolve_backup_disabled_by_default(tmp_path):
    assert resolve_backup(Settings(BACKUP_ENABLED=False)) is None


def test_resolve_backup_without_credentials(tmp_path):
    settings = Settings(
        BACKUP_ENABLED=True,
        BACKUP_CREDENTIALS_PATH=str(tmp_path / "credentials.json"),
        BACKUP_TOKEN_PATH=str(tmp_path / "token.json"),
    )
    assert resolve_backup(settings) is None
