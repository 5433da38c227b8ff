"""Validation package for caption files and locale file sets."""

from .base import LineRule, code_unit_length, make_finding
from .caption import (
    CaptionLengthRule,
    CaptionValidator,
    DurationRule,
    HtmlEntityRule,
    LanguageRule,
)
from .locale_set import LocaleSetDiffer, build_locale_file_set

__all__ = [
    "CaptionLengthRule",
    "CaptionValidator",
    "DurationRule",
    "HtmlEntityRule",
    "LanguageRule",
    "LineRule",
    "LocaleSetDiffer",
    "build_locale_file_set",
    "code_unit_length",
    "make_finding",
]
