"""Upload the SQLite database to Google Drive."""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Any, Optional

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaFileUpload
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..config import Settings
from ..errors import BackupError

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/drive.file"]


def get_credentials(credentials_path: Path, token_path: Path) -> Credentials:
    """Load cached OAuth credentials, refreshing or running the browser flow as needed."""
    creds = None

    if token_path.exists():
        creds = Credentials.from_authorized_user_file(str(token_path), SCOPES)

    if not creds or not creds.valid:
        if creds and creds.expired and creds.refresh_token:
            logger.info("Refreshing expired Drive credentials")
            creds.refresh(Request())
        else:
            if not credentials_path.exists():
                raise FileNotFoundError(
                    f"Credentials file not found: {credentials_path}. "
                    "Download credentials.json from Google Cloud Console."
                )
            logger.info("Starting OAuth flow for Google Drive")
            flow = InstalledAppFlow.from_client_secrets_file(str(credentials_path), SCOPES)
            creds = flow.run_local_server(port=0)

        with open(token_path, "w") as token:
            token.write(creds.to_json())
            logger.info("Saved Drive credentials to %s", token_path)

    return creds


class DriveBackup:
    """Keeps a single copy of the database on Drive, overwriting it on each run."""

    def __init__(self, service: Any, file_name: str = "job_apps_backup.db"):
        self.service = service
        self.file_name = file_name

    def _find_existing(self) -> Optional[str]:
        name = self.file_name.replace("'", "\\'")
        result = (
            self.service.files()
            .list(q=f"name='{name}' and trashed=false", fields="files(id, name)")
            .execute()
        )
        files = result.get("files", [])
        return files[0]["id"] if files else None

    @retry(
        retry=retry_if_exception_type(HttpError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        reraise=True,
    )
    def _upload(self, db_path: str) -> str:
        media = MediaFileUpload(db_path, mimetype="application/x-sqlite3", resumable=False)
        try:
            existing_id = self._find_existing()
        except HttpError as e:
            logger.warning("Could not check for an existing backup: %s", e)
            existing_id = None

        if existing_id:
            self.service.files().update(fileId=existing_id, media_body=media).execute()
            logger.info("Database backup updated on Drive")
            return existing_id
        created = (
            self.service.files()
            .create(body={"name": self.file_name}, media_body=media, fields="id")
            .execute()
        )
        logger.info("Database backup created on Drive")
        return created["id"]

    def backup_database(self, db_path: str) -> str:
        """Upload ``db_path`` and return the Drive file id."""
        if not Path(db_path).is_file():
            raise BackupError(f"Database file not found: {db_path}")
        try:
            return self._upload(db_path)
        except (HttpError, OSError) as e:
            raise BackupError(f"Drive upload failed: {e}") from e


def resolve_backup(settings: Settings) -> Optional[DriveBackup]:
    """Build the Drive backup once at startup, or None when unavailable.

    Missing credentials or a failed login only disable backups.
    """
    if not settings.BACKUP_ENABLED:
        return None
    try:
        creds = get_credentials(
            Path(settings.BACKUP_CREDENTIALS_PATH), Path(settings.BACKUP_TOKEN_PATH)
        )
        service = build("drive", "v3", credentials=creds, cache_discovery=False)
    except (OSError, ValueError, GoogleAuthError, HttpError) as e:
        logger.warning("Drive backup disabled: %s", e)
        return None
    return DriveBackup(service, file_name=settings.BACKUP_FILE_NAME)
