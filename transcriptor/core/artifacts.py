"""Temporary artifact ownership: collision-safe names, guaranteed release.

WHY: Both acquisition paths work through the filesystem: yt-dlp writes
caption or audio files next to an output template we choose, and we then
search for what it produced. Concurrent requests (even for the same
video) must never see or delete each other's files, and nothing may
outlive the call that created it, whatever way that call ends.

HOW: ArtifactManager.allocate() derives a unique base path from a SHA-256
of the key (usually the resource id) plus a nanosecond timestamp. Nothing
is created on disk; the collaborator writes files named "<base>.<...>".
ArtifactManager.scoped() pairs allocation with release in a context
manager, so cleanup runs on success, on error, on timeout, and on task
cancellation alike. release() removes every file belonging to the base.

RULES:
- A file belongs to an artifact iff its name is the base or starts with "<base>."
- Allocation takes no lock; uniqueness comes from hash + timestamp
- release() is best-effort: failures are logged, never raised
- release() is idempotent; releasing twice is harmless
"""

from __future__ import annotations

import hashlib
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

logger = logging.getLogger(__name__)

_HASH_CHARS = 16


@dataclass(frozen=True)
class TemporaryArtifact:
    """Handle to the path prefix owned by one acquisition attempt.

    RULES:
    - base: directory / "<prefix>_<hash>_<timestamp>" (not created on disk)
    - template: yt-dlp output template that keeps every output under base
    """

    base: Path

    @property
    def name(self) -> str:
        return self.base.name

    @property
    def directory(self) -> Path:
        return self.base.parent

    @property
    def template(self) -> str:
        return "{}.%(ext)s".format(self.base)

    def with_suffix(self, suffix: str) -> Path:
        """Path for a file owned by this artifact, e.g. ".txt" → "<base>.txt"."""
        return self.directory / (self.name + suffix)

    def owns(self, filename: str) -> bool:
        return filename == self.name or filename.startswith(self.name + ".")

    def files(self) -> List[Path]:
        """All existing files belonging to this artifact, sorted by name."""
        try:
            entries = list(self.directory.iterdir())
        except OSError:
            logger.warning("Cannot list temp directory %s", self.directory)
            return []
        return sorted(p for p in entries if self.owns(p.name) and p.is_file())

    def find(
        self,
        suffixes: Sequence[str],
        preferred: Optional[str] = None,
    ) -> Optional[Path]:
        """Locate a produced file with one of the given suffixes.

        WHY: yt-dlp decides the final name ("<base>.en.srt", "<base>.m4a"),
        so callers search by prefix rather than trusting a reported path.

        HOW: Candidate files are those owned by this artifact whose name
        ends with one of suffixes. The preferred suffix wins; otherwise the
        order of suffixes decides.

        Args:
            suffixes: Accepted endings, e.g. (".srt", ".vtt").
            preferred: Suffix to try first, e.g. ".vtt".

        Returns:
            Path of the best candidate, or None.
        """
        candidates = [p for p in self.files() if p.name.endswith(tuple(suffixes))]
        if not candidates:
            return None

        order = list(suffixes)
        if preferred and preferred in order:
            order.remove(preferred)
            order.insert(0, preferred)

        for suffix in order:
            for path in candidates:
                if path.name.endswith(suffix):
                    return path
        return candidates[0]


class ArtifactManager:
    """Hands out TemporaryArtifacts under one temp directory and reclaims them.

    WHY: Centralizes naming and cleanup so call sites never hand-roll
    try/except unlink blocks.

    HOW: Stateless apart from the directory. Use scoped() for the
    allocate/release pairing; allocate() and release() are available for
    callers that manage the lifetime themselves.
    """

    def __init__(self, temp_dir: Path) -> None:
        self._temp_dir = Path(temp_dir)

    @property
    def temp_dir(self) -> Path:
        return self._temp_dir

    def allocate(self, prefix: str, key: str) -> TemporaryArtifact:
        """Return a fresh, unique artifact path for key.

        Args:
            prefix: Human-readable kind, e.g. "subtitles" or "audio".
            key: Value hashed into the name (the resource id).
        """
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:_HASH_CHARS]
        name = "{}_{}_{}".format(prefix, digest, time.time_ns())
        return TemporaryArtifact(base=self._temp_dir / name)

    def release(self, artifact: TemporaryArtifact) -> int:
        """Delete every file belonging to artifact. Never raises.

        Returns:
            Number of files removed.
        """
        removed = 0
        for path in artifact.files():
            try:
                path.unlink()
                removed += 1
            except FileNotFoundError:
                continue
            except OSError:
                logger.warning("Failed to remove temp file: %s", path)
        if removed:
            logger.debug("Released %d file(s) for %s", removed, artifact.name)
        return removed

    @contextmanager
    def scoped(self, prefix: str, key: str) -> Iterator[TemporaryArtifact]:
        """Allocate an artifact for the duration of a with-block."""
        artifact = self.allocate(prefix, key)
        try:
            yield artifact
        finally:
            self.release(artifact)
