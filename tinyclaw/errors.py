"""Error taxonomy for the delivery core and user-facing classification."""

import asyncio

import httpx


# ============================================================
# Exception hierarchy: callers branch on type, never on message
# ============================================================

class TinyclawError(Exception):
    """Base class for all TinyClaw errors."""


class MediaError(TinyclawError):
    """Base class for media store errors."""


class MediaFileNotFoundError(MediaError, FileNotFoundError):
    """The local file handed to the media store does not exist."""


class UnknownMediaRefError(MediaError):
    """The media reference was never stored or has been released."""

    def __init__(self, ref: str):
        super().__init__(f"media store: unknown ref: {ref}")
        self.ref = ref


class ChannelError(TinyclawError):
    """Base class for channel errors."""


class UnknownChannelError(ChannelError):
    """No channel registered under the given name."""

    def __init__(self, name: str):
        super().__init__(f"unknown channel: {name}")
        self.name = name


class DeliveryError(ChannelError):
    """A channel failed to deliver one chunk of a response."""

    def __init__(self, channel: str, chat_id: str, chunk_index: int, cause: Exception):
        super().__init__(
            f"{channel}:{chat_id}: delivery of chunk {chunk_index} failed: {cause}"
        )
        self.channel = channel
        self.chat_id = chat_id
        self.chunk_index = chunk_index
        self.cause = cause

    @property
    def user_message(self) -> str:
        """Short text safe to show the user in place of the failed reply."""
        return classify_error(self.cause)


def classify_error(e: Exception) -> str:
    """Classify a delivery or dispatch exception into a short user-facing message.

    Works for every channel. The result is safe to send directly to the user;
    details stay in the logs.
    """
    if isinstance(e, DeliveryError):
        e = e.cause

    if isinstance(e, UnknownChannelError):
        return f"Channel '{e.name}' is not available."
    if isinstance(e, MediaFileNotFoundError):
        return "Attachment could not be found."
    if isinstance(e, UnknownMediaRefError):
        return "Attachment is no longer available."

    if isinstance(e, httpx.HTTPStatusError):
        code = e.response.status_code
        if code == 429:
            return "Rate limited. Please wait a moment and try again."
        if code in (401, 403):
            return "Authentication error. Owner may need to refresh credentials."
        if code == 400:
            return "The platform rejected the message."
        if 500 <= code < 600:
            return "The platform is having server issues. Please try again later."
        return f"The platform returned HTTP {code}. Please try again later."

    if isinstance(e, httpx.ConnectError):
        return "Cannot connect to the platform. Please check connectivity and try again."
    if isinstance(e, (httpx.ReadTimeout, httpx.WriteTimeout, httpx.PoolTimeout, httpx.ConnectTimeout)):
        return "Request timed out. Please try again."

    if isinstance(e, asyncio.TimeoutError):
        return "Request timed out. Please try again."

    if isinstance(e, NotImplementedError):
        return "This feature is not supported by the current channel."

    # Fallback: include type name for debugging
    type_name = type(e).__name__
    return f"Something went wrong ({type_name}). Check logs for details."
