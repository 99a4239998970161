"""Configuration loading: .env file, environment overrides, immutable Settings.

WHY: yt-dlp and Whisper need a long tail of tunables (timeouts, proxy,
cookies, retry and sleep intervals, audio quality). Reading them ad hoc
throughout the code makes the orchestrator impossible to test and the
behaviour impossible to reason about. Everything is read once, here.

HOW: python-dotenv loads the .env file on import. load_settings() reads a
mapping (os.environ by default) and builds a tree of frozen dataclasses.
The resulting Settings object is constructed once at process start and
passed by parameter into every component that needs it.

RULES:
- Core modules never read os.environ; they receive Settings (or a part of it)
- Timeouts are configured in milliseconds (env) and stored in seconds
- Malformed numeric values fall back to the documented default
- Optional string values are stripped; empty strings become None
- Unknown WHISPER_MODE values mean "off"
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

from transcriptor.core.ir import SubtitleFormat

# Load .env from the project root (where the tool is run from)
load_dotenv()

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_YT_DLP_TIMEOUT_MS = 60_000
DEFAULT_WHISPER_TIMEOUT_MS = 120_000
DEFAULT_FILE_VISIBILITY_DELAY_MS = 100
DEFAULT_REMOTE_COMPONENTS = "ejs:github"
DEFAULT_AUDIO_FORMAT = "bestaudio[abr<=192]/bestaudio"
DEFAULT_AUDIO_QUALITY = "5"
OPENAI_API_BASE = "https://api.openai.com/v1"

DEFAULT_RESPONSE_LIMIT = 50_000
MIN_RESPONSE_LIMIT = 1_000
MAX_RESPONSE_LIMIT = 200_000

WHISPER_MODES = ("off", "local", "api")


# ---------------------------------------------------------------------------
# Settings dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class YtDlpSettings:
    """Options shared by every yt-dlp invocation plus subtitle-specific ones.

    RULES:
    - timeout_s bounds one subtitle download; the process is killed on expiry
    - sub_format is the default dialect asked for when a request has no preference
    - extra_args are appended verbatim before the URL
    """

    binary: str = "yt-dlp"
    timeout_s: float = DEFAULT_YT_DLP_TIMEOUT_MS / 1000
    sub_format: SubtitleFormat = SubtitleFormat.SRT
    js_runtimes: Optional[str] = None
    remote_components: Optional[str] = DEFAULT_REMOTE_COMPONENTS
    cookies_file: Optional[Path] = None
    proxy: Optional[str] = None
    no_warnings: bool = False
    retries: Optional[str] = None
    retry_sleep: Optional[str] = None
    sleep_requests: Optional[str] = None
    sleep_interval: Optional[str] = None
    max_sleep_interval: Optional[str] = None
    sleep_subtitles: Optional[str] = None
    encoding: Optional[str] = None
    extra_args: Tuple[str, ...] = ()
    required: bool = True
    skip_version_check: bool = False


@dataclass(frozen=True)
class AudioSettings:
    """Options for the audio download used by the transcription fallback."""

    format: str = DEFAULT_AUDIO_FORMAT
    quality: str = DEFAULT_AUDIO_QUALITY
    timeout_s: float = DEFAULT_YT_DLP_TIMEOUT_MS / 1000
    max_filesize: Optional[str] = None
    concurrent_fragments: Optional[str] = None
    limit_rate: Optional[str] = None
    throttled_rate: Optional[str] = None
    retries: Optional[str] = None
    fragment_retries: Optional[str] = None
    retry_sleep: Optional[str] = None
    buffer_size: Optional[str] = None
    http_chunk_size: Optional[str] = None
    downloader: Optional[str] = None
    downloader_args: Optional[str] = None


@dataclass(frozen=True)
class WhisperSettings:
    """Transcription service configuration.

    RULES:
    - mode "off" disables the fallback path entirely (no audio download)
    - mode "local" needs base_url; mode "api" needs api_key
    """

    mode: str = "off"
    base_url: Optional[str] = None
    timeout_s: float = DEFAULT_WHISPER_TIMEOUT_MS / 1000
    api_key: Optional[str] = None
    api_base_url: str = OPENAI_API_BASE

    @property
    def enabled(self) -> bool:
        return self.mode != "off"


@dataclass(frozen=True)
class PaginationSettings:
    """Bounds for the response window size."""

    default_limit: int = DEFAULT_RESPONSE_LIMIT
    min_limit: int = MIN_RESPONSE_LIMIT
    max_limit: int = MAX_RESPONSE_LIMIT

    def clamp(self, requested: Optional[int]) -> int:
        """Bound a caller-requested window size to [min_limit, max_limit]."""
        if requested is None:
            requested = self.default_limit
        return max(self.min_limit, min(requested, self.max_limit))


@dataclass(frozen=True)
class Settings:
    """Complete, immutable process configuration."""

    yt_dlp: YtDlpSettings = field(default_factory=YtDlpSettings)
    audio: AudioSettings = field(default_factory=AudioSettings)
    whisper: WhisperSettings = field(default_factory=WhisperSettings)
    pagination: PaginationSettings = field(default_factory=PaginationSettings)
    temp_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))
    file_visibility_delay_s: float = DEFAULT_FILE_VISIBILITY_DELAY_MS / 1000
    log_level: str = "INFO"


# ---------------------------------------------------------------------------
# Environment parsing helpers (module-private)
# ---------------------------------------------------------------------------


def _opt(env: Mapping[str, str], name: str) -> Optional[str]:
    value = env.get(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = _opt(env, name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _ms_to_s(env: Mapping[str, str], name: str, default_ms: int) -> float:
    value = _int(env, name, default_ms)
    if value <= 0:
        value = default_ms
    return value / 1000


def resolve_subtitle_format(
    preferred: Optional[SubtitleFormat] = None,
    default: Optional[str] = None,
) -> SubtitleFormat:
    """Pick the dialect to ask yt-dlp for.

    WHY: The request may name a preferred dialect; deployments may set a
    default via YT_DLP_SUB_FORMAT. Anything unrecognised falls back to SRT.

    RULES:
    - preferred wins over default
    - default is matched case-insensitively against the closed enum
    - the result never influences how the downloaded content is classified
    """
    if preferred is not None:
        return preferred
    if default:
        try:
            return SubtitleFormat(default.strip().lower())
        except ValueError:
            pass
    return SubtitleFormat.SRT


def _audio_quality(raw: Optional[str]) -> str:
    """yt-dlp accepts 0 (best) to 9 (worst); anything else uses the default."""
    if raw is None:
        return DEFAULT_AUDIO_QUALITY
    try:
        quality = int(raw)
    except ValueError:
        return DEFAULT_AUDIO_QUALITY
    if quality < 0 or quality > 9:
        return DEFAULT_AUDIO_QUALITY
    return str(quality)


def _whisper_mode(raw: Optional[str]) -> str:
    mode = (raw or "").lower()
    return mode if mode in WHISPER_MODES else "off"


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build the immutable Settings tree from environment variables.

    WHY: One explicit read of the environment at startup replaces the
    scattered process.env lookups of a typical script. Tests pass their own
    mapping instead of patching os.environ.

    HOW: Each group is built by a small block of lookups below. Values the
    environment does not set take the dataclass defaults.

    Args:
        environ: Mapping to read from. Defaults to os.environ.

    Returns:
        A frozen Settings instance.
    """
    env = os.environ if environ is None else environ

    subtitle_timeout_ms = _int(env, "YT_DLP_TIMEOUT", DEFAULT_YT_DLP_TIMEOUT_MS)
    if subtitle_timeout_ms <= 0:
        subtitle_timeout_ms = DEFAULT_YT_DLP_TIMEOUT_MS

    extra = _opt(env, "YT_DLP_EXTRA_ARGS")
    cookies = _opt(env, "COOKIES_FILE_PATH")

    yt_dlp = YtDlpSettings(
        binary=_opt(env, "YT_DLP_BINARY") or "yt-dlp",
        timeout_s=subtitle_timeout_ms / 1000,
        sub_format=resolve_subtitle_format(None, _opt(env, "YT_DLP_SUB_FORMAT")),
        js_runtimes=_opt(env, "YT_DLP_JS_RUNTIMES"),
        remote_components=_opt(env, "YT_DLP_REMOTE_COMPONENTS") or DEFAULT_REMOTE_COMPONENTS,
        cookies_file=Path(cookies) if cookies else None,
        proxy=_opt(env, "YT_DLP_PROXY"),
        no_warnings=_opt(env, "YT_DLP_NO_WARNINGS") == "1",
        retries=_opt(env, "YT_DLP_RETRIES"),
        retry_sleep=_opt(env, "YT_DLP_RETRY_SLEEP"),
        sleep_requests=_opt(env, "YT_DLP_SLEEP_REQUESTS"),
        sleep_interval=_opt(env, "YT_DLP_SLEEP_INTERVAL"),
        max_sleep_interval=_opt(env, "YT_DLP_MAX_SLEEP_INTERVAL"),
        sleep_subtitles=_opt(env, "YT_DLP_SLEEP_SUBTITLES"),
        encoding=_opt(env, "YT_DLP_ENCODING"),
        extra_args=tuple(extra.split()) if extra else (),
        required=_opt(env, "YT_DLP_REQUIRED") != "0",
        skip_version_check=_opt(env, "YT_DLP_SKIP_VERSION_CHECK") == "1",
    )

    audio = AudioSettings(
        format=_opt(env, "YT_DLP_AUDIO_FORMAT") or DEFAULT_AUDIO_FORMAT,
        quality=_audio_quality(_opt(env, "YT_DLP_AUDIO_QUALITY")),
        timeout_s=_ms_to_s(env, "YT_DLP_AUDIO_TIMEOUT", subtitle_timeout_ms),
        max_filesize=_opt(env, "YT_DLP_MAX_FILESIZE"),
        concurrent_fragments=_opt(env, "YT_DLP_AUDIO_CONCURRENT_FRAGMENTS"),
        limit_rate=_opt(env, "YT_DLP_AUDIO_LIMIT_RATE"),
        throttled_rate=_opt(env, "YT_DLP_AUDIO_THROTTLED_RATE"),
        retries=_opt(env, "YT_DLP_AUDIO_RETRIES"),
        fragment_retries=_opt(env, "YT_DLP_AUDIO_FRAGMENT_RETRIES"),
        retry_sleep=_opt(env, "YT_DLP_AUDIO_RETRY_SLEEP"),
        buffer_size=_opt(env, "YT_DLP_AUDIO_BUFFER_SIZE"),
        http_chunk_size=_opt(env, "YT_DLP_AUDIO_HTTP_CHUNK_SIZE"),
        downloader=_opt(env, "YT_DLP_AUDIO_DOWNLOADER"),
        downloader_args=_opt(env, "YT_DLP_AUDIO_DOWNLOADER_ARGS"),
    )

    whisper = WhisperSettings(
        mode=_whisper_mode(_opt(env, "WHISPER_MODE")),
        base_url=_opt(env, "WHISPER_BASE_URL"),
        timeout_s=_ms_to_s(env, "WHISPER_TIMEOUT", DEFAULT_WHISPER_TIMEOUT_MS),
        api_key=_opt(env, "WHISPER_API_KEY"),
        api_base_url=(_opt(env, "WHISPER_API_BASE_URL") or OPENAI_API_BASE).rstrip("/"),
    )

    pagination = PaginationSettings(
        default_limit=_int(env, "RESPONSE_LIMIT_DEFAULT", DEFAULT_RESPONSE_LIMIT),
        min_limit=_int(env, "RESPONSE_LIMIT_MIN", MIN_RESPONSE_LIMIT),
        max_limit=_int(env, "RESPONSE_LIMIT_MAX", MAX_RESPONSE_LIMIT),
    )

    temp_dir = _opt(env, "TRANSCRIPTOR_TEMP_DIR")
    delay_ms = _int(env, "FILE_VISIBILITY_DELAY_MS", DEFAULT_FILE_VISIBILITY_DELAY_MS)

    return Settings(
        yt_dlp=yt_dlp,
        audio=audio,
        whisper=whisper,
        pagination=pagination,
        temp_dir=Path(temp_dir) if temp_dir else Path(tempfile.gettempdir()),
        file_visibility_delay_s=max(delay_ms, 0) / 1000,
        log_level=(_opt(env, "LOG_LEVEL") or "INFO").upper(),
    )
