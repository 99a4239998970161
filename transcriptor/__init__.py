"""Transcriptor: caption acquisition and normalization for remote videos.

WHY: Callers (LLM tools, scripts, the CLI) want the spoken text of a video
as clean prose. Providers publish caption tracks in several dialects, and
some videos have no track at all. This package hides that behind one
pipeline: get a caption track, or transcribe the audio when there is none,
then strip every timestamp and markup and hand the text back in pages.

HOW: Three stages: acquire (yt-dlp primary path, Whisper fallback path),
normalize (format detection + one parser per dialect), paginate (stateless
offset cursors). Each stage is independently testable.

RULES:
- All parsers converge on the same output: cleaned fragments joined by spaces
- Adding a dialect = one new parser module, no orchestrator changes
- Configuration is read once into an immutable Settings object
"""

__version__ = "0.2.0"
