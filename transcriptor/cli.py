"""Command-line interface for transcriptor.

WHY: Users want the text of a YouTube video from the terminal, one page
at a time or all at once, without running a server. The CLI wires
together settings, the yt-dlp adapter, the Whisper client, the
acquisition orchestrator and the pagination pipeline behind one command.

HOW: argparse accepts a URL or bare video id plus track, language,
format and paging options. The async pipeline runs under asyncio.run().
The transcript (or raw captions with --raw) goes to stdout; status lines
and logs go to stderr so the output can be piped.

RULES:
- Positional argument: YouTube URL or video id
- --type official|auto (default auto), --lang (default en)
- --response-limit is clamped to the configured bounds
- --cursor continues from a previous page's next cursor
- --all follows cursors to the end; --json prints each page as JSON
- --list-subtitles, --info, --chapters and --check-tool are standalone actions
- yt-dlp is checked before any download; a missing binary is fatal only
  when YT_DLP_REQUIRED is on
- Exit codes: 0 ok, 1 invalid input or tool failure, 2 no captions found,
  130 interrupted
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from transcriptor import __version__
from transcriptor.acquisition.orchestrator import AcquisitionOrchestrator
from transcriptor.api.client import WhisperClient
from transcriptor.config import Settings, load_settings
from transcriptor.core.artifacts import ArtifactManager
from transcriptor.core.ir import CaptionRequest, SubtitleFormat, TrackKind
from transcriptor.errors import InvalidCursorError, NotFoundError, ToolNotFoundError
from transcriptor.extraction.check import check_yt_dlp
from transcriptor.extraction.models import VideoInfo
from transcriptor.extraction.ytdlp import YtDlpTool
from transcriptor.pipeline import (
    acquire_text,
    build_page,
    get_raw_subtitles,
    get_transcript,
    iter_windows,
)
from transcriptor.validation import resolve_resource_id, sanitize_lang

logger = logging.getLogger(__name__)


def _status(msg: str) -> None:
    """Print a status message to stderr.

    WHY: Status output must not pollute stdout so the CLI can be piped.
    """
    print(msg, file=sys.stderr, flush=True)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


async def _check_tool(settings: Settings, tool: YtDlpTool) -> None:
    try:
        status = await check_yt_dlp(
            tool,
            required=settings.yt_dlp.required,
            skip_version_check=settings.yt_dlp.skip_version_check,
        )
    except ToolNotFoundError as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)

    if status.missing:
        print("Error: yt-dlp is not installed ({})".format(tool.binary), file=sys.stderr)
        sys.exit(1)

    print("yt-dlp {}".format(status.installed))
    if status.latest:
        if status.outdated:
            _status("  Newer release available: {}".format(status.latest))
        else:
            _status("  Up to date (latest: {})".format(status.latest))


async def _ensure_tool(settings: Settings, tool: YtDlpTool) -> None:
    """Startup check run before any yt-dlp work.

    RULES:
    - A missing binary exits 1 when YT_DLP_REQUIRED is on
    - Otherwise it is reported and the run continues
    """
    try:
        status = await check_yt_dlp(
            tool,
            required=settings.yt_dlp.required,
            skip_version_check=settings.yt_dlp.skip_version_check,
        )
    except ToolNotFoundError as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)

    if status.missing:
        _status("Warning: yt-dlp is not available; captions and audio cannot be downloaded.")


async def _list_subtitles(args: argparse.Namespace, tool: YtDlpTool, resource_id: str) -> None:
    _status("Listing subtitle tracks for {}...".format(resource_id))
    tracks = await tool.list_subtitles(resource_id)
    if tracks is None:
        print("Error: Could not read video info for {}".format(resource_id), file=sys.stderr)
        sys.exit(1)

    if args.json:
        print(json.dumps({"resource_id": resource_id, **tracks}, indent=2))
        return
    print("official: {}".format(", ".join(tracks["official"]) or "-"))
    print("auto: {}".format(", ".join(tracks["auto"]) or "-"))


def _format_seconds(seconds: float) -> str:
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return "{}:{:02d}:{:02d}".format(hours, minutes, secs)
    return "{}:{:02d}".format(minutes, secs)


async def _show_info(args: argparse.Namespace, tool: YtDlpTool, resource_id: str) -> None:
    """Print video metadata (--info) and/or chapter markers (--chapters)."""
    _status("Reading video info for {}...".format(resource_id))
    data = await tool.fetch_json(resource_id)
    if data is None:
        print("Error: Could not read video info for {}".format(resource_id), file=sys.stderr)
        sys.exit(1)

    info = VideoInfo.from_ytdlp(data) if args.info else None
    chapters = await tool.chapters(resource_id, data) if args.chapters else None

    if args.json:
        output = {"resource_id": resource_id}
        if info is not None:
            output["info"] = info.model_dump(mode="json")
        if chapters is not None:
            output["chapters"] = [chapter.model_dump(mode="json") for chapter in chapters]
        print(json.dumps(output, indent=2))
        return

    if info is not None:
        print("title: {}".format(info.title or "-"))
        print("channel: {}".format(info.channel or info.uploader or "-"))
        if info.duration is not None:
            print("duration: {}".format(_format_seconds(info.duration)))
        if info.upload_date:
            print("uploaded: {}".format(info.upload_date))
        if info.view_count is not None:
            print("views: {}".format(info.view_count))
        if info.webpage_url:
            print("url: {}".format(info.webpage_url))
    if chapters is not None:
        if not chapters:
            print("chapters: -")
        for chapter in chapters:
            print("{} {}".format(_format_seconds(chapter.start_time), chapter.title))


async def _fetch(
    args: argparse.Namespace,
    settings: Settings,
    orchestrator: AcquisitionOrchestrator,
    request: CaptionRequest,
) -> None:
    """Acquire the captions and print one page, or every page with --all."""
    pagination = settings.pagination

    if args.all:
        acquired = await acquire_text(orchestrator, request, raw=args.raw)
        window_size = pagination.clamp(args.response_limit)
        if args.json:
            cursor = args.cursor
            while True:
                page = build_page(request, acquired, pagination, args.response_limit, cursor)
                print(page.model_dump_json())
                if page.window.next_cursor is None:
                    break
                cursor = page.window.next_cursor
        else:
            for window in iter_windows(acquired.text, window_size, args.cursor):
                sys.stdout.write(window.chunk)
            sys.stdout.write("\n")
        _status("Source: {} ({})".format(
            acquired.payload.provenance.value, acquired.payload.format.value,
        ))
        return

    fetch = get_raw_subtitles if args.raw else get_transcript
    page = await fetch(orchestrator, request, pagination, args.response_limit, args.cursor)
    if args.json:
        print(page.model_dump_json(indent=2))
    else:
        print(page.window.chunk)

    window = page.window
    _status("Source: {} ({}), chars {}-{} of {}".format(
        page.provenance.value, page.format.value,
        window.start_offset, window.end_offset, window.total_length,
    ))
    if window.next_cursor is not None:
        _status("More text available: --cursor {}".format(window.next_cursor))


async def _run(args: argparse.Namespace) -> None:
    """Execute the requested action.

    RULES:
    - Settings are loaded once, here, and passed down
    - The Whisper client is opened for the whole acquisition
    - Every temp file is removed by the orchestrator before returning
    """
    settings = load_settings()
    _configure_logging(settings.log_level)
    logger.debug("Temp directory: %s, whisper mode: %s", settings.temp_dir, settings.whisper.mode)
    artifacts = ArtifactManager(settings.temp_dir)
    tool = YtDlpTool(settings, artifacts)

    if args.check_tool:
        await _check_tool(settings, tool)
        return

    if not args.source:
        print("Error: A YouTube URL or video id is required.", file=sys.stderr)
        sys.exit(1)

    try:
        resource_id = resolve_resource_id(args.source)
    except ValueError as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)

    language = sanitize_lang(args.lang)
    if language is None:
        print("Error: Invalid language code: {!r}".format(args.lang), file=sys.stderr)
        sys.exit(1)

    await _ensure_tool(settings, tool)

    if args.list_subtitles:
        await _list_subtitles(args, tool, resource_id)
        return

    if args.info or args.chapters:
        await _show_info(args, tool, resource_id)
        return

    request = CaptionRequest(
        resource_id=resource_id,
        track_kind=TrackKind(args.type),
        language=language,
        preferred_format=SubtitleFormat(args.format) if args.format else None,
    )
    _status("Fetching {} captions for {} ({})...".format(
        request.track_kind.value, resource_id, language,
    ))

    try:
        async with WhisperClient(settings.whisper) as whisper:
            orchestrator = AcquisitionOrchestrator(settings, tool, whisper, artifacts)
            await _fetch(args, settings, orchestrator, request)
    except NotFoundError as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(2)
    except InvalidCursorError as e:
        print("Error: {}".format(e), file=sys.stderr)
        sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    WHY: Separating parser construction from main() makes the CLI
    testable; tests can inspect the parser without running anything.
    """
    parser = argparse.ArgumentParser(
        prog="transcriptor",
        description="Fetch YouTube captions (or a Whisper transcript when there are "
                    "none) as clean text, in pages.",
    )

    parser.add_argument(
        "source",
        nargs="?",
        help="YouTube video URL or bare video id.",
    )

    parser.add_argument(
        "--type",
        choices=[kind.value for kind in TrackKind],
        default=TrackKind.AUTO.value,
        help="Caption track: uploaded (official) or auto-generated (default: %(default)s).",
    )

    parser.add_argument(
        "--lang",
        default="en",
        help="Caption language code, e.g. en, ru, en-US (default: %(default)s).",
    )

    parser.add_argument(
        "--format",
        choices=[fmt.value for fmt in SubtitleFormat],
        default=None,
        help="Caption format to ask yt-dlp for (default: YT_DLP_SUB_FORMAT or srt).",
    )

    parser.add_argument(
        "--response-limit",
        type=int,
        default=None,
        help="Maximum characters per page; clamped to the configured bounds.",
    )

    parser.add_argument(
        "--cursor",
        default=None,
        help="Continue from a previous page's next cursor.",
    )

    parser.add_argument(
        "--raw",
        action="store_true",
        help="Print the caption file as downloaded instead of plain text.",
    )

    parser.add_argument(
        "--all",
        action="store_true",
        help="Print every page, following cursors to the end.",
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print pages (or the subtitle list, info and chapters) as JSON.",
    )

    parser.add_argument(
        "--list-subtitles",
        action="store_true",
        help="List available official and auto caption languages and exit.",
    )

    parser.add_argument(
        "--info",
        action="store_true",
        help="Print video metadata (title, channel, duration, ...) and exit.",
    )

    parser.add_argument(
        "--chapters",
        action="store_true",
        help="Print chapter markers and exit; combines with --info.",
    )

    parser.add_argument(
        "--check-tool",
        action="store_true",
        help="Check the installed yt-dlp version and exit.",
    )

    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s {}".format(__version__),
    )

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        asyncio.run(_run(args))
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        sys.exit(130)


if __name__ == "__main__":
    main()
