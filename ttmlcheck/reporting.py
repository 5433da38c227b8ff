"""Finding sinks and renderers for console and JSON output."""

from __future__ import annotations

import json
import threading
from collections import Counter
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Iterable, Iterator, List, Optional, Tuple

from .models import Finding, FindingCategory

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from .checker import CheckResult


class FindingSink:
    """Append-only collection whose writes are serialized by a lock."""

    def __init__(self) -> None:
        self._findings: List[Finding] = []
        self._lock = threading.Lock()

    def append(self, finding: Finding) -> None:
        with self._lock:
            self._findings.append(finding)

    def extend(self, findings: Iterable[Finding]) -> None:
        batch = list(findings)
        with self._lock:
            self._findings.extend(batch)

    def snapshot(self) -> List[Finding]:
        with self._lock:
            return list(self._findings)

    def __len__(self) -> int:
        with self._lock:
            return len(self._findings)

    def __iter__(self) -> Iterator[Finding]:
        return iter(self.snapshot())


def render_console(findings: Iterable[Finding]) -> str:
    """Render findings as plain text blocks.

    Caption findings print the file path, the message and the offending line.
    File-set differences are grouped under ``Missing files in xx-xx:`` style
    headings, one file name per line.
    """
    lines: List[str] = []
    current_group: Optional[Tuple[str, str]] = None
    for finding in findings:
        if finding.category is FindingCategory.FILE_COUNT_MISMATCH:
            direction = str(finding.metadata.get("direction", ""))
            locale = str(finding.metadata.get("locale", ""))
            if direction in {"absent", "unreadable"}:
                current_group = None
                lines.append(finding.message)
                continue
            group = (direction, locale)
            if group != current_group:
                heading = "Missing files in" if direction == "missing" else "Extra files in"
                lines.append(f"{heading} {locale}:")
                current_group = group
            lines.append(finding.evidence_line)
            continue
        current_group = None
        lines.append(finding.file_path)
        lines.append(finding.message)
        lines.append(finding.evidence_line)
    return "\n".join(lines)


def summarize(findings: Iterable[Finding]) -> Dict[str, int]:
    """Count findings per category, in category declaration order."""
    counts = Counter(finding.category for finding in findings)
    return {category.value: counts[category] for category in FindingCategory if counts[category]}


def write_json_report(path: Path, result: "CheckResult") -> Path:
    """Persist a machine-readable report of a run and return its path."""
    payload = {
        "generated_at": datetime.now(UTC).isoformat(),
        "root": str(result.root),
        "scanned_files": len(result.scanned),
        "finding_count": len(result.findings),
        "counts": summarize(result.findings),
        "findings": [finding.to_dict() for finding in result.findings],
        "skipped": [{"path": item.path, "reason": item.reason} for item in result.skipped],
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    return path


__all__ = ["FindingSink", "render_console", "summarize", "write_json_report"]
