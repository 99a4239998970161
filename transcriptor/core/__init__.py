"""Core data model and leaf utilities.

WHY: The core package holds the pieces every stage depends on: the data
model, the line cleaner, the format detector, pagination, and temporary
artifact ownership. None of them do I/O beyond the local filesystem.

HOW: ir.py defines the data structures, cleaner.py and detector.py are
pure text functions, pagination.py slices finished transcripts, and
artifacts.py hands out and reclaims temp file paths.

RULES:
- Everything here is usable without yt-dlp or a transcription service
- Pure functions stay pure, with no logging side effects in cleaner/detector
"""
