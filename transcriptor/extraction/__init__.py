"""Extraction tool package: the yt-dlp side of caption acquisition.

WHY: Both acquisition paths start by running yt-dlp, once for a caption
track and, when that fails, once for the audio handed to the
transcription service. This package owns everything about that program.

HOW: YtDlpArgsBuilder turns Settings into argument lists, YtDlpTool runs
them as bounded subprocesses and searches the filesystem for what was
written. It also reads video metadata (caption languages, descriptive
fields, chapters) into the models in extraction.models. check_yt_dlp
verifies the installation at startup.

RULES:
- Only this package spawns yt-dlp
- Nothing here decides between acquisition paths (see acquisition)
"""

from transcriptor.extraction.args import YtDlpArgsBuilder
from transcriptor.extraction.check import ToolStatus, check_yt_dlp
from transcriptor.extraction.models import VideoChapter, VideoInfo
from transcriptor.extraction.ytdlp import ToolRun, YtDlpTool

__all__ = [
    "ToolRun",
    "ToolStatus",
    "VideoChapter",
    "VideoInfo",
    "YtDlpArgsBuilder",
    "YtDlpTool",
    "check_yt_dlp",
]
