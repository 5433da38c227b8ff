"""Per-line signal extraction for TTML caption files.

Each pattern sits behind its own function returning an optional signal so it
can be exercised in isolation. Extraction never looks past the current line:
a cue whose text spans several physical lines is seen one line at a time.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta
from typing import Optional

from .models import (
    CaptionTextSignal,
    CueLine,
    HtmlEntitySignal,
    LanguageSignal,
    LineSignals,
    TimeRangeSignal,
    parse_file_locale,
)

_LANGUAGE_PATTERN = re.compile(r"[_\"']([a-z]{2}-[a-z]{2})(?=[^a-z])", re.IGNORECASE)
_TIME_RANGE_PATTERN = re.compile(
    r"(\d{2}:\d{2}:\d{2}\.\d{2,3})[\"']?\s+end=[\"']?(\d{2}:\d{2}:\d{2}\.\d{2,3})"
)
_CAPTION_PATTERN = re.compile(r".*'>(.*)</p>")
_HTML_ENTITY_PATTERN = re.compile(r"&[^\s]*;")
_LOCALE_SUFFIX_PATTERN = re.compile(r"_[a-z]{2}-[a-z]{2}", re.IGNORECASE)
_TIME_FORMAT = "%H:%M:%S.%f"


def extract_language(line: str, line_number: int = 0) -> Optional[LanguageSignal]:
    """Return the first embedded ``_xx-xx`` / ``"xx-xx`` tag on the line."""
    match = _LANGUAGE_PATTERN.search(line)
    if match is None:
        return None
    return LanguageSignal(locale=match.group(1).lower(), line_number=line_number)


def parse_time_of_day(value: str) -> Optional[timedelta]:
    """Parse ``HH:MM:SS.ff[f]`` into an offset from midnight, or ``None``."""
    try:
        parsed = datetime.strptime(value, _TIME_FORMAT)
    except ValueError:
        return None
    return timedelta(
        hours=parsed.hour,
        minutes=parsed.minute,
        seconds=parsed.second,
        microseconds=parsed.microsecond,
    )


def extract_time_range(line: str, line_number: int = 0) -> Optional[TimeRangeSignal]:
    match = _TIME_RANGE_PATTERN.search(line)
    if match is None:
        return None
    raw_start, raw_end = match.group(1), match.group(2)
    return TimeRangeSignal(
        start=parse_time_of_day(raw_start),
        end=parse_time_of_day(raw_end),
        line_number=line_number,
        raw_start=raw_start,
        raw_end=raw_end,
    )


def extract_caption_text(line: str, line_number: int = 0) -> Optional[CaptionTextSignal]:
    """Return the text between ``'>`` and the closing ``</p>`` of a cue."""
    match = _CAPTION_PATTERN.search(line)
    if match is None:
        return None
    return CaptionTextSignal(text=match.group(1), line_number=line_number)


def extract_html_entity(line: str, line_number: int = 0) -> Optional[HtmlEntitySignal]:
    match = _HTML_ENTITY_PATTERN.search(line)
    if match is None:
        return None
    return HtmlEntitySignal(entity=match.group(0), line_number=line_number)


def extract_signals(line: CueLine) -> LineSignals:
    """Run every extractor against one line; patterns are not exclusive."""
    text = line.raw_text
    number = line.line_number
    return LineSignals(
        line=line,
        language=extract_language(text, number),
        time_range=extract_time_range(text, number),
        caption=extract_caption_text(text, number),
        html_entity=extract_html_entity(text, number),
    )


def normalize_file_name(name: str) -> str:
    """Strip embedded ``_xx-xx`` locale suffixes so names compare across locales."""
    # Removing one suffix can splice together a new one, so repeat to a fixed point.
    previous = None
    current = name
    while current != previous:
        previous = current
        current = _LOCALE_SUFFIX_PATTERN.sub("", current)
    return current


__all__ = [
    "extract_caption_text",
    "extract_html_entity",
    "extract_language",
    "extract_signals",
    "extract_time_range",
    "normalize_file_name",
    "parse_file_locale",
    "parse_time_of_day",
]
