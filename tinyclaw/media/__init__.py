"""Media sub-core: transient files attached to a processing scope."""

from .store import MEDIA_SCHEME, MediaEntry, MediaMeta, MediaStore, ReleaseResult

__all__ = [
    "MEDIA_SCHEME",
    "MediaEntry",
    "MediaMeta",
    "MediaStore",
    "ReleaseResult",
]
