from __future__ import annotations
import re

_TAG_RE = re.compile(r"<[^>]*>")

# Order matters: &amp; is decoded first.
_ENTITIES = [
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&nbsp;", " "),
]


def clean_html_tags(html: str) -> str:
    """Strip tags, decode the handful of entities job boards use, and trim."""
    cleaned = _TAG_RE.sub("", html)
    for entity, char in _ENTITIES:
        cleaned = cleaned.replace(entity, char)
    return cleaned.strip()
