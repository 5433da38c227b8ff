"""Authoring rules applied to every line of a caption file."""

from __future__ import annotations

from datetime import timedelta
from typing import Iterable, Iterator, List, Optional, Sequence, Union

from ..config import DEFAULT_LANGUAGE_HEADER_LINES, DEFAULT_MIN_DURATION, InvalidConfigurationError
from ..extractor import extract_signals
from ..logging import get_logger
from ..models import CaptionFile, CueLine, Finding, FindingCategory, LineSignals
from .base import LineRule, code_unit_length, format_seconds, make_finding

logger = get_logger("validators.caption")


class LanguageRule:
    """Embedded language tags near the top must match the file-name locale."""

    name = "language"

    def __init__(self, header_lines: int = DEFAULT_LANGUAGE_HEADER_LINES) -> None:
        self._header_lines = header_lines

    def check(self, caption_file: CaptionFile, signals: LineSignals) -> Iterable[Finding]:
        signal = signals.language
        if signal is None or signal.line_number >= self._header_lines:
            return []
        declared = caption_file.declared_locale
        if declared is None:
            logger.debug(
                "No locale in file name %s; skipping language check on line %d",
                caption_file.path,
                signal.line_number,
            )
            return []
        if signal.locale == declared:
            return []
        return [
            make_finding(
                caption_file,
                signals,
                FindingCategory.LANGUAGE_MISMATCH,
                "The language definition in the filename does not match the language definition in the file.",
                locale=signal.locale,
                declared_locale=declared,
            )
        ]


class DurationRule:
    """Cues must stay on screen for at least the minimum duration."""

    name = "duration"

    def __init__(self, min_duration: timedelta = timedelta(seconds=DEFAULT_MIN_DURATION)) -> None:
        self._min_duration = min_duration

    def check(self, caption_file: CaptionFile, signals: LineSignals) -> Iterable[Finding]:
        signal = signals.time_range
        if signal is None:
            return []
        line_number = signals.line.line_number
        duration = signal.duration
        if duration is None:
            pairs = ((signal.raw_start, signal.start), (signal.raw_end, signal.end))
            bad = [raw for raw, value in pairs if value is None]
            return [
                make_finding(
                    caption_file,
                    signals,
                    FindingCategory.MALFORMED_TIMESTAMP,
                    f"The timestamp on line {line_number} is not a valid time of day: {', '.join(bad)}",
                    start=signal.raw_start,
                    end=signal.raw_end,
                )
            ]
        if duration >= self._min_duration:
            return []
        seconds = duration.total_seconds()
        return [
            make_finding(
                caption_file,
                signals,
                FindingCategory.DURATION_TOO_SHORT,
                f"The duration for caption on line {line_number} is too short, "
                f"it is only {format_seconds(seconds)} seconds.",
                duration=seconds,
                minimum=self._min_duration.total_seconds(),
            )
        ]


class CaptionLengthRule:
    """Long single-line captions must be wrapped; wrapped captions have a total cap."""

    name = "length"

    def __init__(self, max_line_length: int) -> None:
        self._max_line_length = max_line_length
        self._max_caption_length = 2 * max_line_length

    def check(self, caption_file: CaptionFile, signals: LineSignals) -> Iterable[Finding]:
        caption = signals.caption
        if caption is None:
            return []
        line_number = signals.line.line_number
        length = code_unit_length(caption.text)
        if length > self._max_line_length and not caption.has_break:
            return [
                make_finding(
                    caption_file,
                    signals,
                    FindingCategory.SHOULD_WRAP_TWO_LINES,
                    f"The caption on line {line_number} should be on two lines",
                    length=length,
                    limit=self._max_line_length,
                )
            ]
        joined = caption.joined_text
        joined_length = code_unit_length(joined)
        if joined_length > self._max_caption_length:
            return [
                make_finding(
                    caption_file,
                    signals,
                    FindingCategory.CAPTION_TOO_LONG,
                    f"The caption on line {line_number} is too long it is {joined_length} characters long",
                    length=joined_length,
                    limit=self._max_caption_length,
                    caption=joined,
                )
            ]
        return []


class HtmlEntityRule:
    """Caption text must not carry encoded HTML entities."""

    name = "html_entity"

    def check(self, caption_file: CaptionFile, signals: LineSignals) -> Iterable[Finding]:
        if signals.caption is None or signals.html_entity is None:
            return []
        return [
            make_finding(
                caption_file,
                signals,
                FindingCategory.CONTAINS_HTML_ENTITY,
                f"The caption on line {signals.line.line_number} has html entities",
                entity=signals.html_entity.entity,
            )
        ]


LineInput = Union[str, CueLine]


class CaptionValidator:
    """Evaluates every rule against each line and yields findings lazily."""

    def __init__(
        self,
        max_line_length: int,
        *,
        min_duration: timedelta = timedelta(seconds=DEFAULT_MIN_DURATION),
        language_header_lines: int = DEFAULT_LANGUAGE_HEADER_LINES,
        rules: Optional[Sequence[LineRule]] = None,
    ) -> None:
        if isinstance(max_line_length, bool) or not isinstance(max_line_length, int) or max_line_length <= 0:
            raise InvalidConfigurationError(
                f"Maximum single-line caption length must be a positive integer, got {max_line_length!r}"
            )
        self.max_line_length = max_line_length
        self.max_caption_length = 2 * max_line_length
        if rules is None:
            rules = (
                LanguageRule(language_header_lines),
                DurationRule(min_duration),
                CaptionLengthRule(max_line_length),
                HtmlEntityRule(),
            )
        self._rules: List[LineRule] = list(rules)

    @property
    def rules(self) -> Sequence[LineRule]:
        return tuple(self._rules)

    def validate(self, caption_file: CaptionFile, lines: Iterable[LineInput]) -> Iterator[Finding]:
        """Yield findings in line order; every applicable rule runs on every line."""
        for index, line in enumerate(lines):
            cue = line if isinstance(line, CueLine) else CueLine(line_number=index, raw_text=line)
            yield from self.validate_line(caption_file, cue)

    def validate_line(self, caption_file: CaptionFile, line: CueLine) -> Iterator[Finding]:
        signals = extract_signals(line)
        if signals.is_empty:
            return
        for rule in self._rules:
            yield from rule.check(caption_file, signals)


__all__ = [
    "CaptionLengthRule",
    "CaptionValidator",
    "DurationRule",
    "HtmlEntityRule",
    "LanguageRule",
]
