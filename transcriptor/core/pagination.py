"""Stateless offset-cursor pagination over a finished transcript.

WHY: Transcripts of long videos run to hundreds of kilobytes, far beyond
what an LLM tool response or a terminal page should carry. Clients fetch
them in bounded windows. Keeping the cursor a plain character offset
means no session store, no server affinity, and restartable reads.

HOW: paginate_text() parses the cursor as an integer offset (0 when
absent), slices [start, min(start + window, total)), and emits the end
offset as the next cursor when text remains.

RULES:
- start_offset <= end_offset <= total_length, always
- next_cursor is present iff end_offset < total_length
- Chaining next_cursor from offset 0 reconstructs the text exactly
- Unparsable, negative, or past-the-end cursors raise InvalidCursorError
- window_size must be at least 1 (callers clamp it to configured bounds)
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from transcriptor.errors import InvalidCursorError


class PaginationWindow(BaseModel):
    """One bounded slice of a transcript plus the cursor to continue.

    Computed fresh per call; carries no server-side state.
    """

    model_config = ConfigDict(frozen=True)

    chunk: str = Field(description="Text in [start_offset, end_offset).")
    start_offset: int = Field(ge=0, description="Character offset where this chunk starts.")
    end_offset: int = Field(ge=0, description="Character offset just past this chunk.")
    total_length: int = Field(ge=0, description="Length of the full text in characters.")
    is_truncated: bool = Field(description="True when text remains after this chunk.")
    next_cursor: Optional[str] = Field(
        default=None,
        description="Opaque token for the next page; absent on the last page.",
    )


def parse_cursor(cursor: Optional[str], total_length: int) -> int:
    """Decode a cursor into a start offset.

    RULES:
    - None or "" means the beginning of the text
    - Only plain decimal digits are accepted (no sign, no suffix)
    - The offset may equal total_length (an empty final page) but not exceed it
    """
    if cursor is None or cursor.strip() == "":
        return 0
    raw = cursor.strip()
    if not (raw.isascii() and raw.isdigit()):
        raise InvalidCursorError("Invalid next_cursor value: {!r}".format(cursor))
    offset = int(raw)
    if offset > total_length:
        raise InvalidCursorError(
            "Invalid next_cursor value: {} exceeds text length {}".format(offset, total_length)
        )
    return offset


def paginate_text(
    full_text: str,
    window_size: int,
    cursor: Optional[str] = None,
) -> PaginationWindow:
    """Return the window of full_text that starts at cursor.

    Args:
        full_text: The complete transcript (or raw subtitle) text.
        window_size: Maximum characters per window, >= 1.
        cursor: next_cursor from a previous call, or None for the first page.

    Returns:
        PaginationWindow for the requested slice.
    """
    if window_size < 1:
        raise ValueError("window_size must be >= 1, got {}".format(window_size))

    total_length = len(full_text)
    start_offset = parse_cursor(cursor, total_length)
    end_offset = min(start_offset + window_size, total_length)
    is_truncated = end_offset < total_length

    return PaginationWindow(
        chunk=full_text[start_offset:end_offset],
        start_offset=start_offset,
        end_offset=end_offset,
        total_length=total_length,
        is_truncated=is_truncated,
        next_cursor=str(end_offset) if is_truncated else None,
    )
