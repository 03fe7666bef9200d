"""Communication sub-core: channel-agnostic outbound text handling.

- Splitting: fence-aware chunking for platform length limits
- Outbound: media:// reference extraction, whitespace cleanup
"""

from .outbound import collapse_blank_lines, extract_media_refs
from .split import CHANNEL_MAX_LENGTH, DEFAULT_MAX_LENGTH, channel_max_length, split_message

__all__ = [
    # Splitting
    "split_message",
    "channel_max_length",
    "CHANNEL_MAX_LENGTH",
    "DEFAULT_MAX_LENGTH",
    # Outbound
    "extract_media_refs",
    "collapse_blank_lines",
]
