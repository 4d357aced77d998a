from .parse_common import DEFAULT_PLATFORM, parse_job_from_text, resolve_platform

__all__ = ["DEFAULT_PLATFORM", "parse_job_from_text", "resolve_platform"]
