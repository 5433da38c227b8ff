"""Run orchestration: discovery, per-file validation and locale comparison."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from .config import CheckerConfig
from .logging import get_logger
from .models import CaptionFile, Finding, SkippedFile
from .reporting import FindingSink
from .scanner import CaptionScanner, UnreadableFileError
from .validators import CaptionValidator, LocaleSetDiffer


@dataclass
class CheckResult:
    """Outcome of a full run; an empty ``findings`` list means every scanned file passed."""

    root: Path
    findings: List[Finding] = field(default_factory=list)
    scanned: List[str] = field(default_factory=list)
    skipped: List[SkippedFile] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.findings and not self.skipped


class Checker:
    """Coordinates scanning and validation for a file or a locale tree."""

    def __init__(
        self,
        config: CheckerConfig,
        scanner: CaptionScanner | None = None,
        validator: CaptionValidator | None = None,
        differ: LocaleSetDiffer | None = None,
    ) -> None:
        self.config = config.validate()
        self.scanner = scanner or CaptionScanner(
            extensions=config.extensions,
            exclude_paths=config.exclude_paths,
        )
        self.validator = validator or CaptionValidator(
            config.require_max_line_length(),
            min_duration=config.min_duration_delta,
            language_header_lines=config.language_header_lines,
        )
        self.differ = differ or LocaleSetDiffer()
        self.logger = get_logger("checker")
        self.scanned: List[str] = []
        self.skipped: List[SkippedFile] = []

    def iter_findings(self, path: str | Path) -> Iterator[Finding]:
        """Lazily yield locale-set findings, then per-file findings in traversal order.

        ``scanned`` and ``skipped`` are reset on each call and filled in as the
        stream is consumed.
        """
        root = Path(path).expanduser()
        self.scanned = []
        self.skipped = []
        self.logger.info("Checking captions under %s", root)
        if self.config.count_files and root.is_dir():
            yield from self.iter_locale_findings(root)
        for file_path in self.scanner.iter_files(root, on_skip=self._record_skip):
            yield from self._check_file(file_path)

    def iter_locale_findings(self, root: Path) -> Iterator[Finding]:
        locales = self.config.locales
        self.logger.debug(
            "Comparing %s against %d target locale(s)", locales.reference, len(locales.targets)
        )
        reference = self.scanner.list_locale_files(root, locales.reference)
        targets = [self.scanner.list_locale_files(root, code) for code in locales.targets]
        yield from self.differ.diff(reference, targets)

    def run(self, path: str | Path) -> CheckResult:
        """Scan everything eagerly; with ``jobs > 1`` files are validated in a thread pool."""
        root = Path(path).expanduser()
        if self.config.jobs <= 1:
            findings = list(self.iter_findings(root))
            return CheckResult(
                root=root, findings=findings, scanned=list(self.scanned), skipped=list(self.skipped)
            )

        self.scanned = []
        self.skipped = []
        self.logger.info("Checking captions under %s with %d workers", root, self.config.jobs)
        sink = FindingSink()
        if self.config.count_files and root.is_dir():
            sink.extend(self.iter_locale_findings(root))

        files = list(self.scanner.iter_files(root, on_skip=self._record_skip))
        with ThreadPoolExecutor(max_workers=self.config.jobs) as pool:
            outcomes = list(pool.map(self._check_file_isolated, files))
        # Merge in traversal order regardless of completion order.
        for file_path, (file_findings, skipped) in zip(files, outcomes):
            if skipped is not None:
                self.skipped.append(skipped)
                continue
            self.scanned.append(str(file_path))
            sink.extend(file_findings)
        return CheckResult(
            root=root, findings=sink.snapshot(), scanned=list(self.scanned), skipped=list(self.skipped)
        )

    def check_file(self, file_path: str | Path) -> List[Finding]:
        """Validate a single file; raises UnreadableFileError if it cannot be read."""
        path = Path(file_path)
        lines = self.scanner.read_lines(path)
        return list(self.validator.validate(CaptionFile.from_path(path), lines))

    def _record_skip(self, skipped: SkippedFile) -> None:
        self.skipped.append(skipped)

    def _check_file(self, file_path: Path) -> Iterator[Finding]:
        try:
            lines = self.scanner.read_lines(file_path)
        except UnreadableFileError as exc:
            self.logger.warning("Skipping %s: %s", file_path, exc.reason)
            self._record_skip(SkippedFile(path=str(file_path), reason=exc.reason))
            return
        self.logger.debug("Validating %s (%d lines)", file_path, len(lines))
        self.scanned.append(str(file_path))
        yield from self.validator.validate(CaptionFile.from_path(file_path), lines)

    def _check_file_isolated(self, file_path: Path) -> Tuple[List[Finding], Optional[SkippedFile]]:
        try:
            findings = self.check_file(file_path)
        except UnreadableFileError as exc:
            self.logger.warning("Skipping %s: %s", file_path, exc.reason)
            return [], SkippedFile(path=str(file_path), reason=exc.reason)
        self.logger.debug("Validated %s (%d findings)", file_path, len(findings))
        return findings, None


__all__ = ["CheckResult", "Checker"]
