"""Media store: lifecycle of transient files attached to a processing scope.

Files are created elsewhere (a channel downloads an inbound photo, a tool
renders a chart) and registered here under a scope, typically one
conversation turn. The store hands out opaque ``media://`` references and
is the only component allowed to delete the files: ``release_all`` removes
every file of a scope once the turn is delivered.

Both indexes (ref → entry, scope → refs) live under one lock, so a ref is
always in both or in neither.
"""

import logging
import os
import threading
import uuid
from dataclasses import dataclass, field

from ..errors import MediaError, MediaFileNotFoundError, UnknownMediaRefError

logger = logging.getLogger("tinyclaw.media")

MEDIA_SCHEME = "media://"


@dataclass(frozen=True)
class MediaMeta:
    """Metadata about a stored media file."""
    filename: str = ""
    content_type: str = ""
    source: str = ""        # "telegram", "discord", "tool:image_gen", ...


@dataclass(frozen=True)
class MediaEntry:
    ref: str
    path: str
    meta: MediaMeta
    scope: str


@dataclass
class ReleaseResult:
    """Outcome of releasing one scope."""
    scope: str
    released: int = 0       # entries removed from the store
    missing: int = 0        # files already gone (not an error)
    failed: int = 0         # files that could not be deleted
    errors: list[str] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return self.failed == 0


class MediaStore:
    """In-memory media registry over files that already exist on disk.

    ``store`` never copies or moves a file; it validates the path and
    records the mapping. Safe for concurrent callers from threads and
    asyncio tasks (every critical section is a few dict operations).
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._refs: dict[str, MediaEntry] = {}
        self._scopes: dict[str, set[str]] = {}

    def store(self, local_path: str, meta: MediaMeta | None = None, scope: str = "") -> str:
        """Register an existing local file under a scope.

        Args:
            local_path: Path of a file that must already exist
            meta: Filename / content type / source tag
            scope: Processing scope the file belongs to (e.g. a turn id)

        Returns:
            A fresh reference, e.g. "media://3f2c..."

        Raises:
            MediaFileNotFoundError: local_path does not exist
            MediaError: local_path could not be checked (e.g. permission denied)
        """
        try:
            os.stat(local_path)
        except (FileNotFoundError, NotADirectoryError) as e:
            raise MediaFileNotFoundError(
                e.errno, f"media store: {local_path}: {e.strerror}", local_path,
            ) from e
        except OSError as e:
            raise MediaError(f"media store: {local_path}: {e.strerror or e}") from e

        ref = MEDIA_SCHEME + str(uuid.uuid4())
        entry = MediaEntry(ref=ref, path=local_path, meta=meta or MediaMeta(), scope=scope)

        with self._lock:
            self._refs[ref] = entry
            self._scopes.setdefault(scope, set()).add(ref)

        logger.debug(f"Stored {ref} -> {local_path} (scope={scope})")
        return ref

    def resolve(self, ref: str) -> str:
        """Return the local path for a ref.

        Raises:
            UnknownMediaRefError: ref was never stored or was released
        """
        return self._lookup(ref).path

    def resolve_with_meta(self, ref: str) -> tuple[str, MediaMeta]:
        """Return (local_path, meta) for a ref.

        Raises:
            UnknownMediaRefError: ref was never stored or was released
        """
        entry = self._lookup(ref)
        return entry.path, entry.meta

    def _lookup(self, ref: str) -> MediaEntry:
        with self._lock:
            entry = self._refs.get(ref)
        if entry is None:
            raise UnknownMediaRefError(ref)
        return entry

    def release_all(self, scope: str) -> ReleaseResult:
        """Delete every file registered under a scope and forget its refs.

        Best effort: a file that is already gone counts as ``missing``, any
        other OS error is logged and counted as ``failed``; neither stops the
        remaining deletions. Unknown scopes and repeated calls are no-ops.
        """
        with self._lock:
            refs = self._scopes.pop(scope, None)
            if not refs:
                return ReleaseResult(scope=scope)
            entries = [self._refs.pop(ref) for ref in refs if ref in self._refs]

        # Refs are already unresolvable; file removal needs no lock
        result = ReleaseResult(scope=scope, released=len(entries))
        for entry in entries:
            try:
                os.remove(entry.path)
            except FileNotFoundError:
                result.missing += 1
            except OSError as e:
                result.failed += 1
                result.errors.append(f"{entry.path}: {e}")
                logger.warning(f"Failed to delete media file {entry.path} ({entry.ref}): {e}")

        logger.info(
            f"Released scope {scope}: {result.released} entries "
            f"({result.missing} already gone, {result.failed} failed)"
        )
        return result

    # ── Introspection ──

    def refs_in_scope(self, scope: str) -> list[str]:
        """Refs currently registered under a scope (sorted)."""
        with self._lock:
            return sorted(self._scopes.get(scope, ()))

    def scopes(self) -> list[str]:
        """Scopes that currently hold at least one ref (sorted)."""
        with self._lock:
            return sorted(s for s, refs in self._scopes.items() if refs)

    def orphan_count(self) -> int:
        """Count broken links between the two indexes.

        A ref listed under a scope but missing from the ref map, or a ref
        in the ref map not listed under its own scope, is one orphan.
        Always 0 unless the store is broken; used by tests and diagnostics.
        """
        with self._lock:
            orphans = 0
            listed = set()
            for scope, refs in self._scopes.items():
                for ref in refs:
                    listed.add(ref)
                    entry = self._refs.get(ref)
                    if entry is None or entry.scope != scope:
                        orphans += 1
            orphans += sum(1 for ref in self._refs if ref not in listed)
            return orphans

    def __len__(self) -> int:
        with self._lock:
            return len(self._refs)

    def __contains__(self, ref: str) -> bool:
        with self._lock:
            return ref in self._refs
