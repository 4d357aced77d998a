from __future__ import annotations
import pytest

from jobtracker.config import get_settings
from jobtracker.schemas import JobApplication
from jobtracker.storage.sqlite_storage import SqliteStorage

LINKEDIN_LINES = [
    "Acme Inc",
    "Senior Developer",
    "San Francisco, CA · Remote",
    "$100,000 - $150,000",
    "Full-time",
    "Share",
    "Show more options",
    "Matches your job preferences, workplace type is Remote",
]

GREENHOUSE_HTML = """
<div class="job__header">
    <div class="job__title">
        <h1 class="section-header section-header--large font-primary">Senior Software Engineer</h1>
        <div class="job__location">
            <svg class="svg-icon"></svg>
            <div>Remote</div>
        </div>
    </div>
</div>
<div>
    <p>Salary: $120,000 - $180,000 per year</p>
    <p>Additional compensation: $150,000-$200,000 equity</p>
</div>
<img alt="TestCompany Logo" src="test.png">
mf-URL: https://example.com/job/123
"""


@pytest.fixture
def linkedin_text() -> str:
    return "\n".join(LINKEDIN_LINES)


@pytest.fixture
def greenhouse_html() -> str:
    return GREENHOUSE_HTML


@pytest.fixture
def storage():
    store = SqliteStorage()
    yield store
    store.close()


@pytest.fixture
def make_job():
    def _make(company: str = "Acme Inc", position: str = "Senior Developer", **kwargs) -> JobApplication:
        kwargs.setdefault("date_applied", "2025-09-10")
        return JobApplication(company=company, position=position, **kwargs)

    return _make


@pytest.fixture
def settings_env(tmp_path, monkeypatch):
    """Point get_settings() at a throwaway database."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("JOBTRACKER_DB_PATH", str(tmp_path / "apps.db"))
    monkeypatch.setenv("JOBTRACKER_BACKUP_ENABLED", "false")
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()
