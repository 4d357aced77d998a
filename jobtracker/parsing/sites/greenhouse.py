from __future__ import annotations
import re
from typing import List

from ...domain import Status
from ...schemas import JobApplication
from ...utils.dates import today
from ..html_text import clean_html_tags

_TITLE_RE = re.compile(
    r"""<[a-zA-Z][\w-]*[^>]*class=["'][^"']*job__title[^"']*["'][^>]*>.*?<h1[^>]*>(.*?)</h1>""",
    re.DOTALL,
)
_LOCATION_RE = re.compile(
    r"""<[a-zA-Z][\w-]*[^>]*class=["'][^"']*job__location[^"']*["'][^>]*>.*?<div[^>]*>(.*?)</div>""",
    re.DOTALL,
)
_AMOUNT = r"\$(\d+(?:,\d{3})*)"
_SALARY_PATTERNS = [
    re.compile(_AMOUNT + r"\s*-\s*" + _AMOUNT),
    re.compile(_AMOUNT + r"\s+to\s+" + _AMOUNT),
]
_SOURCE_URL_RE = re.compile(r"mf-URL:\s*(.+)")
_LOGO_ALT_RE = re.compile(r'<img[^>]*alt="([^"]*Logo)"')


def _salary_ranges(html: str) -> List[str]:
    ranges: List[str] = []
    for pat in _SALARY_PATTERNS:
        for low, high in pat.findall(html):
            ranges.append(f"${low} - ${high}")
    return ranges


def parse_greenhouse_html(raw_text: str) -> JobApplication:
    """Extract fields from a Greenhouse job board page.

    The browser extension copies ``document.body.innerHTML`` followed by an
    ``mf-URL: <page url>`` line. Every field is an independent regex search;
    a field that does not match stays empty.
    """
    html = raw_text
    job = JobApplication()

    m = _TITLE_RE.search(html)
    if m:
        job.position = clean_html_tags(m.group(1))

    m = _LOCATION_RE.search(html)
    if m:
        job.location = clean_html_tags(m.group(1))

    ranges = _salary_ranges(html)
    if ranges:
        job.salary_range = ", ".join(ranges)

    m = _SOURCE_URL_RE.search(html)
    if m:
        job.add_note(f"Source URL: {m.group(1).strip()}")

    m = _LOGO_ALT_RE.search(html)
    if m:
        job.company = m.group(1).replace(" Logo", "", 1).strip()

    job.status = Status.submitted
    job.date_applied = today()
    return job
