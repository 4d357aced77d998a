from __future__ import annotations
from typing import List

from ...domain import Status
from ...schemas import JobApplication
from ...utils.dates import today

BOILERPLATE_LINES = {"Share", "Show more options"}
WORKPLACE_MARKER = "Matches your job preferences, workplace type is"
LOCATION_SEPARATOR = "·"


def _content_lines(raw_text: str) -> List[str]:
    return [
        line
        for line in raw_text.split("\n")
        if line.strip() and line.strip() not in BOILERPLATE_LINES
    ]


def parse_linkedin_text(raw_text: str) -> JobApplication:
    """Extract fields from text copied off a LinkedIn job page.

    After dropping blank and boilerplate lines the layout is positional:
    company, position, then "location · ...". Salary is the last line with a
    "$" in it and the workplace type follows the preferences marker.
    """
    job = JobApplication()
    for i, line in enumerate(_content_lines(raw_text)):
        if "$" in line:
            job.salary_range = line.strip()

        marker_at = line.find(WORKPLACE_MARKER)
        if marker_at != -1:
            job.workplace_type = line[marker_at + len(WORKPLACE_MARKER):].strip()

        if i == 0:
            job.company = line.strip()
        elif i == 1:
            job.position = line.strip()
        elif i == 2:
            job.location = line.split(LOCATION_SEPARATOR)[0].strip()

    job.status = Status.submitted
    job.date_applied = today()
    return job
