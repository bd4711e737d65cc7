"""SRT caption parsing, track validation and clip-window text selection.

Parsing is delegated to pysubs2's SubRip reader.  Files that are not
UTF-8 are detected with charset-normalizer before a second decode attempt;
any failure surfaces as ``SubtitleParseError`` carrying the underlying
message, never as a partial caption list.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Sequence

import pysubs2
from charset_normalizer import from_bytes

from storyclip.errors import InvalidInputError, SubtitleParseError
from storyclip.models import Caption
from storyclip.timecode import format_timestamp

logger = logging.getLogger(__name__)


def parse_captions(raw_text: str) -> list[Caption]:
    """Parse SRT *raw_text* into captions, preserving block order.

    Parameters
    ----------
    raw_text:
        Subtitle track text: ``index``, ``start --> end`` and one or more
        text lines per block, blocks separated by blank lines.

    Returns
    -------
    list[Caption]
        One caption per block, in input order (not re-sorted).  Times are
        pysubs2 milliseconds divided by 1000.  ``id`` is the block's own
        index line (its position when the line is missing) and ``text`` is
        the block's text lines joined by ``\\n``, unmodified.

    Raises
    ------
    InvalidInputError
        If *raw_text* is not a string or is empty.
    SubtitleParseError
        If the text holds no well-formed caption block.
    """
    if not isinstance(raw_text, str) or not raw_text.strip():
        raise InvalidInputError("subtitle content is empty or not a string")

    try:
        subs = pysubs2.SSAFile.from_string(raw_text, format_="srt", keep_html_tags=True)
    except Exception as exc:
        raise SubtitleParseError(str(exc)) from exc

    if not subs.events:
        raise SubtitleParseError("no 'HH:MM:SS,mmm --> HH:MM:SS,mmm' caption blocks found")

    # pysubs2 rewrites event text into ASS markup, so index and text are
    # taken from the raw blocks and only the timing from the events.
    blocks = _raw_blocks(raw_text)
    if len(blocks) != len(subs.events):
        raise SubtitleParseError(
            f"found {len(blocks)} timing lines but parsed {len(subs.events)} captions"
        )

    return [
        Caption(
            id=index if index is not None else position,
            start_s=event.start / 1000.0,
            end_s=event.end / 1000.0,
            text=text,
        )
        for position, (event, (index, text)) in enumerate(zip(subs.events, blocks), start=1)
    ]


def load_captions(subtitle_path: Path) -> list[Caption]:
    """Read *subtitle_path* (UTF-8, falling back to detected encoding) and parse it."""
    try:
        data = subtitle_path.read_bytes()
    except OSError as exc:
        raise SubtitleParseError(str(exc), subtitle_path) from exc

    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError:
        best = from_bytes(data).best()
        if best is None:
            raise SubtitleParseError(
                "Could not determine file encoding. Re-save as UTF-8.",
                subtitle_path,
            )
        text = str(best)

    try:
        return parse_captions(text)
    except SubtitleParseError as exc:
        raise SubtitleParseError(exc.detail, subtitle_path) from exc


def validate_captions(captions: Sequence[Caption], media_duration_s: float) -> bool:
    """Return True if *captions* may be attached to media of *media_duration_s*.

    A track is rejected (False, never an exception) when it is empty, when
    its last caption ends after the media does, or when any caption starts
    before its predecessor ends.  Callers must discard a rejected track
    entirely.
    """
    if not captions:
        logger.warning("Subtitle track rejected: no captions")
        return False

    last = captions[-1]
    if last.end_s > media_duration_s:
        logger.warning(
            "Subtitle track rejected: last caption ends at %.3fs, media is %.3fs long",
            last.end_s,
            media_duration_s,
        )
        return False

    for prev, cur in zip(captions, captions[1:]):
        if cur.start_s < prev.end_s:
            logger.warning(
                "Subtitle track rejected: caption %d starts at %.3fs before caption %d ends at %.3fs",
                cur.id,
                cur.start_s,
                prev.id,
                prev.end_s,
            )
            return False

    return True


def captions_in_window(captions: Sequence[Caption], start_s: float, end_s: float) -> str:
    """Render the captions touching ``[start_s, end_s]`` as text blocks.

    A caption is selected when its start or end falls inside the window
    (bounds inclusive) or when it spans the whole window.  Each selected
    caption becomes ``[HH:MM:SS,mmm -> HH:MM:SS,mmm]\\n<text>``; blocks are
    joined by a blank line in input order.  No match yields ``""``.
    """
    return "\n\n".join(
        f"[{format_timestamp(c.start_s)} -> {format_timestamp(c.end_s)}]\n{c.text}"
        for c in captions
        if _touches_window(c, start_s, end_s)
    )


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

_TIMESTAMP = re.compile(r"(\d+):(\d+):(\d+)[.,](\d+)")
_INDEX_LINE = re.compile(r"^\s*(\d+)\s*$")


def _raw_blocks(raw_text: str) -> list[tuple[int | None, str]]:
    """Split *raw_text* into ``(index, text)`` pairs, one per timing line.

    A timing line is any line carrying two timestamps, the same rule the
    SubRip reader applies.  The index is the digit-only line right before
    the timing line, or None when absent.  Text lines are kept as written.
    """
    lines = raw_text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    timing_rows = [i for i, line in enumerate(lines) if len(_TIMESTAMP.findall(line)) == 2]

    blocks = []
    for n, row in enumerate(timing_rows):
        index = None
        if row > 0:
            match = _INDEX_LINE.match(lines[row - 1])
            if match:
                index = int(match.group(1))

        stop = timing_rows[n + 1] if n + 1 < len(timing_rows) else len(lines)
        body = lines[row + 1:stop]
        # Drop the next block's index line and the blank separator before it.
        if n + 1 < len(timing_rows) and body and _INDEX_LINE.match(body[-1]):
            body = body[:-1]
        while body and not body[-1].strip():
            body.pop()
        while body and not body[0].strip():
            body.pop(0)
        blocks.append((index, "\n".join(body)))
    return blocks


def _touches_window(caption: Caption, start_s: float, end_s: float) -> bool:
    return (
        start_s <= caption.start_s <= end_s
        or start_s <= caption.end_s <= end_s
        or (caption.start_s <= start_s and caption.end_s >= end_s)
    )
