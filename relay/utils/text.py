"""Markup scrubbing for reposted text."""

import re

MARKUP_CHARS = "*_~`|"

_MARKUP_RE = re.compile(r"[*_~`|]")


def sanitize_text(text: str | None) -> str:
    """Remove Markdown-ish markup characters and surrounding whitespace."""
    if not text:
        return ""
    return _MARKUP_RE.sub("", text).strip()
