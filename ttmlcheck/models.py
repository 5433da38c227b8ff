"""Core data models shared across ttmlcheck components."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import Any, Dict, FrozenSet, Mapping, Optional

_BREAK_MARKER = re.compile(r"<br\s*/?>", re.IGNORECASE)
_FILE_LOCALE_PATTERN = re.compile(r"([a-z]{2}-[a-z]{2})\.[^.]+$", re.IGNORECASE)


class FindingCategory(str, Enum):
    """Kinds of rule violations and diff results reported by the checker."""

    LANGUAGE_MISMATCH = "LanguageMismatch"
    DURATION_TOO_SHORT = "DurationTooShort"
    SHOULD_WRAP_TWO_LINES = "ShouldWrapTwoLines"
    CAPTION_TOO_LONG = "CaptionTooLong"
    CONTAINS_HTML_ENTITY = "ContainsHtmlEntity"
    FILE_COUNT_MISMATCH = "FileCountMismatch"
    MALFORMED_TIMESTAMP = "MalformedTimestamp"


def parse_file_locale(name: str) -> Optional[str]:
    """Return the ``xx-xx`` locale right before the extension of ``name``."""
    match = _FILE_LOCALE_PATTERN.search(Path(name).name)
    if match is None:
        return None
    return match.group(1).lower()


@dataclass(frozen=True)
class CaptionFile:
    """A discovered caption file and the locale declared by its name."""

    path: str
    declared_locale: Optional[str]

    @classmethod
    def from_path(cls, path: str | Path) -> "CaptionFile":
        return cls(path=str(path), declared_locale=parse_file_locale(str(path)))


@dataclass(frozen=True)
class CueLine:
    """One physical line of a caption file."""

    line_number: int
    raw_text: str


@dataclass(frozen=True)
class LanguageSignal:
    locale: str
    line_number: int


@dataclass(frozen=True)
class TimeRangeSignal:
    """Begin/end pair captured from a cue; unparsable values are ``None``."""

    start: Optional[timedelta]
    end: Optional[timedelta]
    line_number: int
    raw_start: str
    raw_end: str

    @property
    def is_valid(self) -> bool:
        return self.start is not None and self.end is not None

    @property
    def duration(self) -> Optional[timedelta]:
        if self.start is None or self.end is None:
            return None
        return self.end - self.start


@dataclass(frozen=True)
class CaptionTextSignal:
    """Display text of a single cue line, break markers included."""

    text: str
    line_number: int

    @property
    def has_break(self) -> bool:
        return _BREAK_MARKER.search(self.text) is not None

    @property
    def joined_text(self) -> str:
        return _BREAK_MARKER.sub(" ", self.text)


@dataclass(frozen=True)
class HtmlEntitySignal:
    entity: str
    line_number: int


@dataclass(frozen=True)
class LineSignals:
    """Every signal extracted from one line; absent signals are ``None``."""

    line: CueLine
    language: Optional[LanguageSignal] = None
    time_range: Optional[TimeRangeSignal] = None
    caption: Optional[CaptionTextSignal] = None
    html_entity: Optional[HtmlEntitySignal] = None

    @property
    def is_empty(self) -> bool:
        return not any((self.language, self.time_range, self.caption, self.html_entity))


@dataclass(frozen=True)
class Finding:
    """Structured report of a single rule violation or file-set difference."""

    file_path: str
    line_number: Optional[int]
    category: FindingCategory
    message: str
    evidence_line: str
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_path": self.file_path,
            "line_number": self.line_number,
            "category": self.category.value,
            "message": self.message,
            "evidence_line": self.evidence_line,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class LocaleFileSet:
    """Normalized file names found under one locale directory."""

    locale: str
    path: str
    normalized_names: FrozenSet[str] = frozenset()
    exists: bool = True
    # Set when the directory exists but could not be listed.
    error: Optional[str] = None


@dataclass(frozen=True)
class SkippedFile:
    """A file that could not be scanned, kept apart from clean results."""

    path: str
    reason: str
