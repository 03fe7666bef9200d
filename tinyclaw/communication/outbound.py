"""Outbound text processing: universal post-processing before delivery.

Handles:
- media:// reference extraction (attachments announced inline by tools)
- Consecutive newline cleanup

These operations are channel-agnostic. The gateway applies them before
splitting and platform delivery.
"""

import re

from ..media.store import MEDIA_SCHEME


# ============================================================
# MEDIA REFERENCE EXTRACTION
# ============================================================
# Tools announce attachments by writing "MEDIA: media://<id>" on its own
# line. The gateway sends them with the channel's media capability.

_MEDIA_LINE_RE = re.compile(
    r'^[ \t]*MEDIA:[ \t]*(' + re.escape(MEDIA_SCHEME) + r'[A-Za-z0-9\-]+)[ \t]*$\n?',
    re.MULTILINE,
)


def extract_media_refs(text: str) -> tuple[str, list[str]]:
    """Pull MEDIA: lines out of response text.

    Args:
        text: Response text (may contain "MEDIA: media://..." lines)

    Returns:
        Tuple of (text_without_media_lines, refs_in_order)
    """
    if not text or "MEDIA:" not in text:
        return text, []

    refs = [m.group(1) for m in _MEDIA_LINE_RE.finditer(text)]
    if not refs:
        return text, []

    text = _MEDIA_LINE_RE.sub('', text)
    return collapse_blank_lines(text), refs


def collapse_blank_lines(text: str) -> str:
    """Collapse runs of 3+ newlines into one blank line and trim the ends."""
    if not text:
        return text
    return re.sub(r'\n{3,}', '\n\n', text).strip()
