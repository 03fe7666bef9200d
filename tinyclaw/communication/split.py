"""Message splitting: fence-aware chunking for platform length limits.

Long agent responses are cut into chunks that each fit a channel's
message limit. Cuts prefer newlines, then spaces, then a hard cut.
A fenced code block is never left dangling: it is either kept whole,
or closed at the cut and reopened (with its language header) in the
next chunk.

All lengths are counted in code points (Python ``str`` indices),
never bytes.
"""

import logging
from typing import Optional

logger = logging.getLogger("tinyclaw.split")

FENCE = "```"

# Per-platform message length limits (code points). 0 = unlimited.
CHANNEL_MAX_LENGTH = {
    "telegram": 4096,
    "discord": 2000,
    "slack": 40000,
    "whatsapp": 4096,
    "console": 0,
}

DEFAULT_MAX_LENGTH = 4000

_NEWLINE_WINDOW = 200
_SPACE_WINDOW = 100
# Minimum body (code points past the fence header) worth splitting inside
_MIN_FENCE_BODY = 20
# Room left for the injected "\n```"
_FENCE_CLOSE_ROOM = 5
# Below this limit a closing + reopening fence cannot make progress
_MIN_FENCE_AWARE_LEN = 10


def channel_max_length(channel: str, overrides: Optional[dict[str, int]] = None,
                       default: int = DEFAULT_MAX_LENGTH) -> int:
    """Resolve the message length limit for a channel.

    Args:
        channel: Channel name (e.g. "telegram")
        overrides: Per-channel limits from settings, checked first
        default: Limit for channels nobody knows about

    Returns:
        Max chunk length in code points (0 or less = unlimited)
    """
    if overrides and channel in overrides:
        return overrides[channel]
    return CHANNEL_MAX_LENGTH.get(channel, default)


def split_message(content: str, max_len: int) -> list[str]:
    """Split a long message into chunks, preserving code block integrity.

    Reserves a buffer (10% of max_len, at least 50, at most half) below
    max_len for natural cuts, but may extend up to max_len to keep a code
    block together.

    Args:
        content: Full message text
        max_len: Maximum chunk length in code points (<= 0 disables splitting)

    Returns:
        List of message chunks, each at most max_len code points long
    """
    if max_len <= 0:
        return [content] if content else []

    buffer = max(max_len // 10, 50)
    if buffer > max_len // 2:
        buffer = max_len // 2

    effective_limit = max_len - buffer
    if effective_limit < max_len // 2:
        effective_limit = max_len // 2

    fence_aware = max_len >= _MIN_FENCE_AWARE_LEN

    chunks: list[str] = []
    remaining = content

    while remaining:
        if len(remaining) <= max_len:
            chunks.append(remaining)
            break

        msg_end = _find_last_newline(remaining[:effective_limit], _NEWLINE_WINDOW)
        if msg_end <= 0:
            msg_end = _find_last_space(remaining[:effective_limit], _SPACE_WINDOW)
        if msg_end <= 0:
            msg_end = effective_limit

        unclosed = _find_last_unclosed_fence(remaining[:msg_end]) if fence_aware else -1

        if unclosed >= 0:
            closing = _find_next_closing_fence(remaining, msg_end)
            if 0 < closing <= max_len:
                # Whole block fits once extended
                msg_end = closing
            else:
                header, header_end = _fence_header(remaining, unclosed)

                if msg_end > header_end + _MIN_FENCE_BODY:
                    inner_limit = max_len - _FENCE_CLOSE_ROOM
                    better = _find_last_newline(remaining[:inner_limit], _NEWLINE_WINDOW)
                    if better > header_end and better > len(header) + 1:
                        msg_end = better
                    else:
                        msg_end = inner_limit
                    chunk, remaining = _cut_inside_fence(remaining, msg_end, header)
                    chunks.append(chunk)
                    continue

                # Not enough body yet: try to cut before the block opens
                new_end = _find_last_newline(remaining[:unclosed], _NEWLINE_WINDOW)
                if new_end <= 0:
                    new_end = _find_last_space(remaining[:unclosed], _SPACE_WINDOW)

                if new_end > 0:
                    msg_end = new_end
                elif unclosed > _MIN_FENCE_BODY:
                    msg_end = unclosed
                else:
                    chunk, remaining = _cut_inside_fence(
                        remaining, max_len - _FENCE_CLOSE_ROOM, header,
                    )
                    chunks.append(chunk)
                    continue

        if msg_end <= 0:
            msg_end = effective_limit

        chunk = remaining[:msg_end].rstrip()
        if chunk:
            chunks.append(chunk)
        remaining = remaining[msg_end:].strip()

    if len(chunks) > 1:
        logger.debug(f"Split {len(content)} code points into {len(chunks)} chunks (max {max_len})")
    return chunks


def _cut_inside_fence(text: str, cut: int, header: str) -> tuple[str, str]:
    """Close the open block at ``cut`` and reopen it in the remainder.

    Returns (chunk, remainder).
    """
    # A header as long as the cut would never let the remainder shrink
    if len(header) + 1 >= cut:
        header = FENCE
    chunk = text[:cut].rstrip() + "\n" + FENCE
    remainder = (header + "\n" + text[cut:]).strip()
    return chunk, remainder


def _fence_header(text: str, fence_idx: int) -> tuple[str, int]:
    """Return the opening line of the block at ``fence_idx`` and where it ends.

    The header is the fence plus its language tag (e.g. "```python").
    With no newline after the fence, it is just the backticks.
    """
    newline = text.find("\n", fence_idx)
    if newline == -1:
        header = text[fence_idx:fence_idx + 3].strip()
        return header, fence_idx + len(header)
    return text[fence_idx:newline].strip(), newline


def _find_last_unclosed_fence(text: str) -> int:
    """Find the last opening fence without a matching closing fence.

    Returns the index of the opening fence, or -1 if all blocks are closed.
    """
    in_block = False
    last_open = -1
    i = 0
    n = len(text)
    while i < n:
        if text.startswith(FENCE, i):
            if not in_block:
                last_open = i
            in_block = not in_block
            i += 3
            continue
        i += 1
    return last_open if in_block else -1


def _find_next_closing_fence(text: str, start: int) -> int:
    """Return the index just past the next fence at or after ``start``, or -1."""
    idx = text.find(FENCE, start)
    if idx == -1:
        return -1
    return idx + 3


def _find_last_newline(text: str, window: int) -> int:
    """Find the last newline within the final ``window`` code points, or -1."""
    return text.rfind("\n", max(0, len(text) - window))


def _find_last_space(text: str, window: int) -> int:
    """Find the last space or tab within the final ``window`` code points, or -1."""
    start = max(0, len(text) - window)
    return max(text.rfind(" ", start), text.rfind("\t", start))
