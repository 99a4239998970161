"""yt-dlp subprocess adapter: caption and audio downloads, video metadata.

WHY: yt-dlp is the extraction tool behind both acquisition paths. It is an
external program with awkward failure modes: it can exit non-zero after
already writing the caption file, it can hang on a slow network, and it
picks final file names itself. This adapter hides the process handling so
the orchestrator only sees "what ran, and what file is on disk now".

HOW: Every invocation goes through _run(), which spawns the binary with
asyncio.create_subprocess_exec, bounds it with a timeout and kills the
process on expiry or task cancellation. Arguments come from
YtDlpArgsBuilder. After a caption run the temp directory is searched for
files owned by the TemporaryArtifact, whatever the exit status was.

RULES:
- The process never outlives the call (killed on timeout and cancellation)
- Exit status is reported, never trusted: callers always get the path found on disk
- A missing or unstartable binary is reported as ToolRun.missing, not raised
- A read-only cookies file is copied into a temporary artifact first
  (yt-dlp writes cookies back) and the copy is released afterwards
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import shutil
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

from transcriptor.config import Settings
from transcriptor.core.artifacts import ArtifactManager, TemporaryArtifact
from transcriptor.core.ir import SubtitleFormat, TrackKind
from transcriptor.errors import AcquisitionTimeoutError, ToolNotFoundError
from transcriptor.extraction.args import YtDlpArgsBuilder
from transcriptor.extraction.models import VideoChapter, VideoInfo

logger = logging.getLogger(__name__)

SUBTITLE_SUFFIXES = (".srt", ".vtt", ".ass", ".lrc")
AUDIO_SUFFIXES = (".m4a", ".webm", ".mp3")

_STDERR_LOG_CHARS = 500


@dataclass(frozen=True)
class ToolRun:
    """What one yt-dlp invocation did.

    RULES:
    - returncode is None when the process never ran or was killed
    - output_path is the file found on disk, independent of returncode
    """

    returncode: Optional[int]
    output_path: Optional[Path] = None
    timed_out: bool = False
    missing: bool = False
    stdout: str = ""
    stderr: str = ""

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0


class YtDlpTool:
    """Extraction tool collaborator backed by the yt-dlp binary.

    Args:
        settings: Process settings (binary, timeouts, cookies, flags).
        artifacts: Manager used for the writable cookies copy.
        builder: Argument builder; built from settings when omitted.
    """

    def __init__(
        self,
        settings: Settings,
        artifacts: ArtifactManager,
        builder: Optional[YtDlpArgsBuilder] = None,
    ) -> None:
        self._settings = settings
        self._artifacts = artifacts
        self._builder = builder or YtDlpArgsBuilder(settings)

    @property
    def binary(self) -> str:
        return self._settings.yt_dlp.binary

    # ------------------------------------------------------------------
    # Extraction tool contract
    # ------------------------------------------------------------------

    async def extract_captions(
        self,
        resource_id: str,
        track_kind: TrackKind,
        language: str,
        fmt: SubtitleFormat,
        artifact: TemporaryArtifact,
        timeout: float,
    ) -> ToolRun:
        """Download one caption track into files owned by artifact.

        HOW: Runs yt-dlp with --skip-download, waits briefly so a file
        written just before exit becomes visible, then searches for
        "<base>.<lang>.<ext>" preferring the requested extension.

        Returns:
            ToolRun whose output_path is the caption file found, if any.
        """
        logger.info(
            "Downloading %s subtitles for %s in language %s (format %s)",
            track_kind.value, resource_id, language, fmt.value,
        )
        async with self._cookies(resource_id) as cookies:
            args = self._builder.subtitles(
                resource_id, track_kind, language, fmt, artifact.template, cookies
            )
            run = await self._run(args, timeout)

        if run.missing:
            return run

        if self._settings.file_visibility_delay_s > 0:
            await asyncio.sleep(self._settings.file_visibility_delay_s)

        found = artifact.find(SUBTITLE_SUFFIXES, preferred=fmt.extension)
        logger.debug("Subtitle file search for %s: %s", artifact.name, found)
        return ToolRun(
            returncode=run.returncode,
            output_path=found,
            timed_out=run.timed_out,
            stdout=run.stdout,
            stderr=run.stderr,
        )

    async def extract_audio(
        self,
        resource_id: str,
        artifact: TemporaryArtifact,
        timeout: float,
    ) -> Optional[Path]:
        """Download the audio track; return the produced file or None.

        Raises:
            AcquisitionTimeoutError: the download ran past timeout.
            ToolNotFoundError: the yt-dlp binary could not be started.
        """
        logger.info("Downloading audio for %s", resource_id)
        async with self._cookies(resource_id) as cookies:
            args = self._builder.audio(resource_id, artifact.template, cookies)
            run = await self._run(args, timeout)

        if run.missing:
            raise ToolNotFoundError("yt-dlp binary not available: {}".format(self.binary))
        if run.timed_out:
            raise AcquisitionTimeoutError(
                "yt-dlp audio download for {} timed out after {:.1f}s".format(resource_id, timeout)
            )
        if self._settings.file_visibility_delay_s > 0:
            await asyncio.sleep(self._settings.file_visibility_delay_s)

        found = artifact.find(AUDIO_SUFFIXES)
        if found is None:
            logger.warning("Audio file not found after yt-dlp for %s", resource_id)
        return found

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    async def fetch_json(self, resource_id: str) -> Optional[Dict[str, Any]]:
        """yt-dlp's metadata document for one video, or None.

        Returns None when yt-dlp failed, printed nothing, or printed
        something that is not a JSON object.
        """
        async with self._cookies(resource_id) as cookies:
            args = self._builder.metadata(resource_id, cookies)
            run = await self._run(args, self._settings.yt_dlp.timeout_s)

        if not run.succeeded or not run.stdout.strip():
            return None
        try:
            data = json.loads(run.stdout)
        except ValueError:
            logger.warning("yt-dlp printed invalid JSON for %s", resource_id)
            return None
        if not isinstance(data, dict):
            logger.warning("yt-dlp metadata for %s is not an object", resource_id)
            return None
        return data

    async def list_subtitles(self, resource_id: str) -> Optional[Dict[str, List[str]]]:
        """Language codes of the official and auto-generated tracks.

        Returns:
            {"official": [...], "auto": [...]} with sorted codes, or None
            when the metadata could not be read.
        """
        info = await self.fetch_json(resource_id)
        if info is None:
            return None
        return {
            "official": sorted((info.get("subtitles") or {}).keys()),
            "auto": sorted((info.get("automatic_captions") or {}).keys()),
        }

    async def video_info(self, resource_id: str) -> Optional[VideoInfo]:
        """Title, channel, duration and the other descriptive fields."""
        data = await self.fetch_json(resource_id)
        if data is None:
            return None
        return VideoInfo.from_ytdlp(data)

    async def chapters(
        self,
        resource_id: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> Optional[List[VideoChapter]]:
        """Chapter markers of a video.

        Args:
            resource_id: Video to look up.
            data: Metadata already fetched with fetch_json(); skips the call.

        Returns:
            The chapters in order, [] when the video has none, or None when
            the metadata could not be read.
        """
        if data is None:
            data = await self.fetch_json(resource_id)
        if data is None:
            return None
        raw = data.get("chapters")
        if not isinstance(raw, list):
            return []
        chapters = (VideoChapter.from_ytdlp(item) for item in raw if isinstance(item, dict))
        return [chapter for chapter in chapters if chapter is not None]

    async def version(self, timeout: float = 10.0) -> Optional[str]:
        """Installed yt-dlp version string, or None when not installed."""
        run = await self._run(self._builder.version(), timeout)
        if not run.succeeded:
            return None
        return run.stdout.strip() or None

    # ------------------------------------------------------------------
    # Process handling
    # ------------------------------------------------------------------

    async def _run(self, args: Sequence[str], timeout: float) -> ToolRun:
        """Spawn yt-dlp and wait at most timeout seconds for it."""
        try:
            proc = await asyncio.create_subprocess_exec(
                self.binary,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            logger.error("yt-dlp binary not found: %s", self.binary)
            return ToolRun(returncode=None, missing=True)
        except OSError as exc:
            logger.error(
                "Cannot start yt-dlp binary %s (errno %s): %s", self.binary, exc.errno, exc.strerror
            )
            return ToolRun(returncode=None, missing=True)

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout)
        except asyncio.TimeoutError:
            await _kill(proc)
            logger.warning("yt-dlp timed out after %.1fs", timeout)
            return ToolRun(returncode=None, timed_out=True)
        except asyncio.CancelledError:
            await _kill(proc)
            raise

        out = stdout.decode("utf-8", errors="replace")
        err = stderr.decode("utf-8", errors="replace")
        if proc.returncode != 0:
            logger.warning(
                "yt-dlp exited with %s: %s", proc.returncode, err.strip()[:_STDERR_LOG_CHARS]
            )
        elif err.strip():
            logger.debug("yt-dlp stderr: %s", err.strip()[:_STDERR_LOG_CHARS])
        return ToolRun(returncode=proc.returncode, stdout=out, stderr=err)

    @asynccontextmanager
    async def _cookies(self, resource_id: str) -> AsyncIterator[Optional[Path]]:
        """Yield a cookies path yt-dlp may write to, or None."""
        source = self._settings.yt_dlp.cookies_file
        if source is None:
            yield None
            return
        if not source.is_file():
            logger.warning("Cookies file not found: %s", source)
            yield None
            return
        if os.access(source, os.W_OK):
            yield source
            return

        with self._artifacts.scoped("cookies", resource_id) as artifact:
            copy: Optional[Path] = artifact.with_suffix(".txt")
            try:
                shutil.copyfile(source, copy)
                logger.debug("Using writable cookies copy %s", copy)
            except OSError:
                logger.warning("Cannot copy read-only cookies file %s", source)
                copy = None
            yield copy


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is not None:
        return
    try:
        proc.kill()
    except ProcessLookupError:
        return
    await proc.wait()
