"""Cross-locale comparison of caption file sets."""

from __future__ import annotations

from typing import Iterable, Iterator, List, Optional, Sequence

from ..extractor import normalize_file_name
from ..models import Finding, FindingCategory, LocaleFileSet


def build_locale_file_set(
    locale: str,
    directory: str,
    names: Iterable[str],
    *,
    exists: bool = True,
    error: Optional[str] = None,
) -> LocaleFileSet:
    """Normalize ``names`` so the same logical file compares equal across locales."""
    return LocaleFileSet(
        locale=locale,
        path=directory,
        normalized_names=frozenset(normalize_file_name(name) for name in names),
        exists=exists,
        error=error,
    )


class LocaleSetDiffer:
    """Reports files missing from, or extra in, each target locale."""

    name = "locale_set"

    def diff(self, reference: LocaleFileSet, targets: Sequence[LocaleFileSet]) -> Iterator[Finding]:
        if not reference.exists:
            yield self._absent(reference, reference)
            return
        if reference.error is not None:
            yield self._unreadable(reference, reference)
            return
        for target in targets:
            yield from self.diff_one(reference, target)

    def diff_one(self, reference: LocaleFileSet, target: LocaleFileSet) -> Iterator[Finding]:
        if not target.exists:
            yield self._absent(reference, target)
            return
        if target.error is not None:
            yield self._unreadable(reference, target)
            return
        for name in self.missing(reference, target):
            yield self._difference(reference, target, name, "missing")
        for name in self.extra(reference, target):
            yield self._difference(reference, target, name, "extra")

    @staticmethod
    def missing(reference: LocaleFileSet, target: LocaleFileSet) -> List[str]:
        return sorted(reference.normalized_names - target.normalized_names)

    @staticmethod
    def extra(reference: LocaleFileSet, target: LocaleFileSet) -> List[str]:
        return sorted(target.normalized_names - reference.normalized_names)

    @staticmethod
    def _absent(reference: LocaleFileSet, target: LocaleFileSet) -> Finding:
        return Finding(
            file_path=target.path,
            line_number=None,
            category=FindingCategory.FILE_COUNT_MISMATCH,
            message=f"Path to {target.locale} does not exist.",
            evidence_line=target.path,
            metadata={
                "locale": target.locale,
                "reference_locale": reference.locale,
                "direction": "absent",
            },
        )

    @staticmethod
    def _unreadable(reference: LocaleFileSet, target: LocaleFileSet) -> Finding:
        return Finding(
            file_path=target.path,
            line_number=None,
            category=FindingCategory.FILE_COUNT_MISMATCH,
            message=f"Files in {target.locale} could not be listed: {target.error}",
            evidence_line=target.path,
            metadata={
                "locale": target.locale,
                "reference_locale": reference.locale,
                "direction": "unreadable",
                "reason": target.error,
            },
        )

    @staticmethod
    def _difference(
        reference: LocaleFileSet, target: LocaleFileSet, name: str, direction: str
    ) -> Finding:
        heading = "Missing files in" if direction == "missing" else "Extra files in"
        return Finding(
            file_path=target.path,
            line_number=None,
            category=FindingCategory.FILE_COUNT_MISMATCH,
            message=f"{heading} {target.locale}: {name}",
            evidence_line=name,
            metadata={
                "locale": target.locale,
                "reference_locale": reference.locale,
                "direction": direction,
                "name": name,
            },
        )


__all__ = ["LocaleSetDiffer", "build_locale_file_set"]
