"""Typed yt-dlp command-line builder.

WHY: yt-dlp takes dozens of flags, most of them driven by deployment
configuration (cookies, proxy, retries, sleeps, audio tuning). Splicing
them into lists at each call site is error-prone and untestable. This
builder assembles the argument vector from Settings plus the few
request-specific values, and can be unit tested without a process.

HOW: One public method per invocation kind (subtitles, audio, metadata,
version). Each starts from its required flags, appends the shared
deployment flags, then the kind-specific tuning flags, and always ends
with the video identifier.

RULES:
- The video identifier is always the last argument
- "official" tracks use --write-subs, "auto" tracks --write-auto-subs
- LRC is requested as --sub-format best + --convert-subs lrc
- Optional settings that are unset add no flags
- The builder never reads the environment; it only sees Settings
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from transcriptor.config import Settings
from transcriptor.core.ir import SubtitleFormat, TrackKind

AUDIO_CONTAINER = "m4a"


class YtDlpArgsBuilder:
    """Builds argument lists (without the binary) for yt-dlp invocations."""

    def __init__(self, settings: Settings) -> None:
        self._yt = settings.yt_dlp
        self._audio = settings.audio

    # ------------------------------------------------------------------
    # Invocation kinds
    # ------------------------------------------------------------------

    def subtitles(
        self,
        resource_id: str,
        track_kind: TrackKind,
        language: str,
        fmt: SubtitleFormat,
        output_template: str,
        cookies_file: Optional[Path] = None,
    ) -> List[str]:
        """Arguments to download one caption track without the media."""
        sub_flag = "--write-subs" if track_kind == TrackKind.OFFICIAL else "--write-auto-subs"
        args = [
            sub_flag,
            "--skip-download",
            "--sub-lang",
            language,
        ]
        args.extend(self.sub_format_args(fmt))
        args.extend(["--output", output_template, "--no-playlist"])
        args.extend(self._common_args(cookies_file))
        if self._yt.encoding:
            args.extend(["--encoding", self._yt.encoding])
        args.append(resource_id)
        return args

    def audio(
        self,
        resource_id: str,
        output_template: str,
        cookies_file: Optional[Path] = None,
    ) -> List[str]:
        """Arguments to download the audio track only, as m4a."""
        audio = self._audio
        args = [
            "-f",
            audio.format,
            "--extract-audio",
            "--audio-format",
            AUDIO_CONTAINER,
            "--audio-quality",
            audio.quality,
            "--output",
            output_template,
            "--no-playlist",
        ]
        if audio.max_filesize:
            args.extend(["--max-filesize", audio.max_filesize])
        args.extend(self._common_args(cookies_file))
        args.extend(self._audio_tuning_args())
        args.append(resource_id)
        return args

    def metadata(
        self,
        resource_id: str,
        cookies_file: Optional[Path] = None,
    ) -> List[str]:
        """Arguments to print the video's info JSON (used to list tracks)."""
        args = [
            "--dump-single-json",
            "--skip-download",
            "--no-playlist",
            "--ignore-no-formats-error",
        ]
        args.extend(self._common_args(cookies_file))
        args.append(resource_id)
        return args

    @staticmethod
    def version() -> List[str]:
        return ["--version"]

    # ------------------------------------------------------------------
    # Flag groups
    # ------------------------------------------------------------------

    @staticmethod
    def sub_format_args(fmt: SubtitleFormat) -> List[str]:
        """--sub-format (and --convert-subs for LRC, which no site serves natively)."""
        if fmt == SubtitleFormat.LRC:
            return ["--sub-format", "best", "--convert-subs", "lrc"]
        return ["--sub-format", fmt.value]

    def _common_args(self, cookies_file: Optional[Path]) -> List[str]:
        yt = self._yt
        args = ["--no-progress", "--quiet"]
        if yt.no_warnings:
            args.append("--no-warnings")
        if cookies_file is not None:
            args.extend(["--cookies", str(cookies_file)])
        if yt.proxy:
            args.extend(["--proxy", yt.proxy])
        if yt.js_runtimes:
            args.extend(["--js-runtimes", yt.js_runtimes])
        if yt.remote_components:
            args.extend(["--remote-components", yt.remote_components])

        optional = (
            ("-R", yt.retries),
            ("--retry-sleep", yt.retry_sleep),
            ("--sleep-requests", yt.sleep_requests),
            ("--sleep-interval", yt.sleep_interval),
            ("--max-sleep-interval", yt.max_sleep_interval),
            ("--sleep-subtitles", yt.sleep_subtitles),
        )
        for flag, value in optional:
            if value:
                args.extend([flag, value])

        args.extend(yt.extra_args)
        return args

    def _audio_tuning_args(self) -> List[str]:
        audio = self._audio
        optional = (
            ("-N", audio.concurrent_fragments),
            ("-r", audio.limit_rate),
            ("--throttled-rate", audio.throttled_rate),
            ("-R", audio.retries),
            ("--fragment-retries", audio.fragment_retries),
            ("--retry-sleep", audio.retry_sleep),
            ("--buffer-size", audio.buffer_size),
            ("--http-chunk-size", audio.http_chunk_size),
            ("--downloader", audio.downloader),
            ("--downloader-args", audio.downloader_args),
        )
        args: List[str] = []
        for flag, value in optional:
            if value:
                args.extend([flag, value])
        return args
