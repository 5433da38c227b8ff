"""Core rule protocol and helpers shared by caption validators."""

from __future__ import annotations

from typing import Any, Iterable, Protocol

from ..models import CaptionFile, Finding, FindingCategory, LineSignals


class LineRule(Protocol):
    """Protocol implemented by per-line authoring rules."""

    name: str

    def check(self, caption_file: CaptionFile, signals: LineSignals) -> Iterable[Finding]:
        """Return findings for one line's signals (possibly none)."""


def make_finding(
    caption_file: CaptionFile,
    signals: LineSignals,
    category: FindingCategory,
    message: str,
    **metadata: Any,
) -> Finding:
    """Build a finding anchored to the line the signals came from."""
    return Finding(
        file_path=caption_file.path,
        line_number=signals.line.line_number,
        category=category,
        message=message,
        evidence_line=signals.line.raw_text,
        metadata=metadata,
    )


def code_unit_length(text: str) -> int:
    """Length in UTF-16 code units; characters outside the BMP count twice."""
    return len(text.encode("utf-16-le", errors="surrogatepass")) // 2


def format_seconds(value: float) -> str:
    """Render seconds the way the report prints them (``1``, ``1.5``, ``0.25``)."""
    return f"{value:g}"


__all__ = ["LineRule", "code_unit_length", "format_seconds", "make_finding"]
