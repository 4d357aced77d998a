from __future__ import annotations
import logging
from typing import Callable, Dict, Union

from ..domain import Platform
from ..errors import ExtractionError
from ..schemas import JobApplication
from .sites.greenhouse import parse_greenhouse_html
from .sites.linkedin import parse_linkedin_text

logger = logging.getLogger(__name__)

Parser = Callable[[str], JobApplication]

PARSERS: Dict[Platform, Parser] = {
    Platform.linkedin: parse_linkedin_text,
    Platform.greenhouse: parse_greenhouse_html,
}

# Unknown platform tags are parsed as LinkedIn text rather than rejected.
DEFAULT_PLATFORM = Platform.linkedin


def resolve_platform(tag: Union[Platform, str, None]) -> Platform:
    if isinstance(tag, Platform):
        return tag
    key = (tag or "").strip().lower()
    try:
        return Platform(key)
    except ValueError:
        logger.debug("Unknown platform %r, using %s parser", tag, DEFAULT_PLATFORM.value)
        return DEFAULT_PLATFORM


def parse_job_from_text(raw_text: str, platform: Union[Platform, str, None] = None) -> JobApplication:
    """Turn pasted page content into a JobApplication.

    Missing fields come back as empty strings. Only input that is not text at
    all raises ExtractionError.
    """
    if not isinstance(raw_text, str):
        raise ExtractionError(f"Expected pasted text, got {type(raw_text).__name__}")
    resolved = resolve_platform(platform)
    job = PARSERS[resolved](raw_text)
    logger.debug(
        "Parsed %s content: company=%r position=%r", resolved.value, job.company, job.position
    )
    return job

