"""End-to-end tests for ttmlcheck.checker."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

import pytest

from ttmlcheck.checker import Checker
from ttmlcheck.config import CheckerConfig, InvalidConfigurationError, LocaleOptions
from ttmlcheck.models import FindingCategory
from ttmlcheck.scanner import CaptionScanner

from tests._fixtures.caption_builder import FIRST_CUE_LINE, CaptionTreeBuilder, ttml_document

_GOOD_CUE = ("00:00:01.000", "00:00:04.000", "Hello there")


def _config(**overrides) -> CheckerConfig:
    values = {"max_line_length": 48}
    values.update(overrides)
    return CheckerConfig(**values)


def test_embedded_language_mismatch_reported_once(caption_tree: CaptionTreeBuilder) -> None:
    caption_tree.write(
        {
            "en-us/greeting_en-us.ttml": """
                <?xml version="1.0" encoding="utf-8"?>
                <tt xml:lang="en-us" xmlns="http://www.w3.org/ns/ttml">
                  <head><metadata ref="greeting_fr-fr"/></head>
                  <body>
                  </body>
                </tt>
            """,
        }
    )

    findings = list(Checker(_config()).iter_findings(caption_tree.path()))

    assert [f.category for f in findings] == [FindingCategory.LANGUAGE_MISMATCH]
    assert findings[0].line_number == 2
    assert findings[0].file_path.endswith("greeting_en-us.ttml")
    assert '"greeting_fr-fr"' in findings[0].evidence_line


def test_findings_follow_traversal_and_line_order(caption_tree: CaptionTreeBuilder) -> None:
    caption_tree.write(
        {
            "en-us/a_en-us.ttml": ttml_document(
                "en-us",
                [("00:00:01.000", "00:00:02.000", "Short"), ("00:00:03.000", "00:00:06.000", "x" * 60)],
            ),
            "fr-fr/b_fr-fr.ttml": ttml_document(
                "fr-fr", [("00:00:01.000", "00:00:05.000", "Caf&eacute;")]
            ),
        }
    )

    result = Checker(_config()).run(caption_tree.path())

    assert [(Path(f.file_path).name, f.line_number, f.category) for f in result.findings] == [
        ("a_en-us.ttml", FIRST_CUE_LINE, FindingCategory.DURATION_TOO_SHORT),
        ("a_en-us.ttml", FIRST_CUE_LINE + 1, FindingCategory.SHOULD_WRAP_TWO_LINES),
        ("b_fr-fr.ttml", FIRST_CUE_LINE, FindingCategory.CONTAINS_HTML_ENTITY),
    ]
    assert len(result.scanned) == 2
    assert result.skipped == []


def test_clean_tree_passes(caption_tree: CaptionTreeBuilder) -> None:
    caption_tree.write_locale("en-us", ["greeting", "outro"], [_GOOD_CUE])

    result = Checker(_config()).run(caption_tree.path())

    assert result.findings == []
    assert result.passed
    assert len(result.scanned) == 2


def test_unreadable_file_is_skipped_and_scan_continues(caption_tree: CaptionTreeBuilder) -> None:
    caption_tree.write_locale("en-us", ["good"], [("00:00:01.000", "00:00:01.500", "Hi")])
    broken = caption_tree.path("en-us/broken_en-us.ttml")
    broken.write_bytes(b"<p xml:id='c1'>\xff\xfe</p>\n")

    result = Checker(_config()).run(caption_tree.path())

    assert [s.path for s in result.skipped] == [str(broken)]
    assert [f.category for f in result.findings] == [FindingCategory.DURATION_TOO_SHORT]
    assert not result.passed


def test_count_files_reports_differences_before_file_findings(caption_tree: CaptionTreeBuilder) -> None:
    caption_tree.write_locale("en-us", ["greeting", "outro"], [_GOOD_CUE])
    caption_tree.write_locale("fr-fr", ["greeting", "bonus"], [_GOOD_CUE])
    caption_tree.write_locale("de-de", ["greeting", "outro"], [_GOOD_CUE])
    config = _config(
        count_files=True,
        locales=LocaleOptions(reference="en-us", targets=["fr-fr", "de-de", "it-it"]),
    )

    findings = list(Checker(config).iter_findings(caption_tree.path()))

    assert [(f.metadata["locale"], f.metadata["direction"]) for f in findings] == [
        ("fr-fr", "missing"),
        ("fr-fr", "extra"),
        ("it-it", "absent"),
    ]
    assert findings[0].metadata["name"] == "outro.ttml"
    assert findings[1].metadata["name"] == "bonus.ttml"


def test_count_files_skipped_for_single_file_input(caption_tree: CaptionTreeBuilder) -> None:
    caption_tree.write_locale("en-us", ["greeting"], [_GOOD_CUE])
    config = _config(count_files=True)

    result = Checker(config).run(caption_tree.path("en-us/greeting_en-us.ttml"))

    assert result.findings == []
    assert len(result.scanned) == 1


def test_parallel_run_matches_sequential_order(caption_tree: CaptionTreeBuilder) -> None:
    for locale in ("en-us", "fr-fr", "de-de"):
        caption_tree.write_locale(
            locale,
            ["a", "b", "c"],
            [("00:00:01.000", "00:00:02.000", "x" * 50), _GOOD_CUE],
        )

    sequential = Checker(_config()).run(caption_tree.path())
    parallel = Checker(_config(jobs=4)).run(caption_tree.path())

    assert parallel.findings == sequential.findings
    assert parallel.scanned == sequential.scanned
    assert len(parallel.findings) == 18


def test_iter_findings_records_scanned_files_lazily(caption_tree: CaptionTreeBuilder) -> None:
    caption_tree.write_locale("en-us", ["a", "b"], [_GOOD_CUE])
    checker = Checker(_config())

    stream = checker.iter_findings(caption_tree.path())
    assert checker.scanned == []

    assert list(stream) == []
    assert len(checker.scanned) == 2


class _ExplodingScanner(CaptionScanner):
    def iter_files(self, root: Path, on_skip=None) -> Iterator[Path]:  # pragma: no cover - must not run
        raise AssertionError("scanner should not run with invalid configuration")


def test_invalid_configuration_fails_before_scanning() -> None:
    with pytest.raises(InvalidConfigurationError):
        Checker(CheckerConfig(), scanner=_ExplodingScanner())


def test_missing_input_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        Checker(_config()).run(tmp_path / "missing")


@pytest.mark.parametrize("jobs", [1, 3])
def test_unlistable_directory_is_skipped_not_clean(
    caption_tree: CaptionTreeBuilder, monkeypatch: pytest.MonkeyPatch, jobs: int
) -> None:
    caption_tree.write_locale("en-us", ["greeting"], [_GOOD_CUE])
    caption_tree.write_locale("fr-fr", ["greeting"], [_GOOD_CUE])
    blocked = caption_tree.path("fr-fr")
    real_scandir = os.scandir

    def guarded(path="."):
        if Path(path) == blocked:
            raise PermissionError(13, "Permission denied", str(path))
        return real_scandir(path)

    monkeypatch.setattr(os, "scandir", guarded)

    result = Checker(_config(jobs=jobs)).run(caption_tree.path())

    assert result.findings == []
    assert len(result.scanned) == 1
    assert [(s.path, s.reason) for s in result.skipped] == [(str(blocked), "Permission denied")]
    assert not result.passed


def test_count_files_reports_unlistable_locale(
    caption_tree: CaptionTreeBuilder, monkeypatch: pytest.MonkeyPatch
) -> None:
    caption_tree.write_locale("en-us", ["greeting"], [_GOOD_CUE])
    caption_tree.write_locale("fr-fr", ["greeting"], [_GOOD_CUE])
    blocked = caption_tree.path("fr-fr")
    real_iterdir = Path.iterdir

    def guarded(self: Path):
        if self == blocked:
            raise PermissionError(13, "Permission denied", str(self))
        return real_iterdir(self)

    monkeypatch.setattr(Path, "iterdir", guarded)
    config = _config(count_files=True, locales=LocaleOptions(reference="en-us", targets=["fr-fr"]))

    findings = list(Checker(config).iter_findings(caption_tree.path()))

    assert [(f.metadata["locale"], f.metadata["direction"]) for f in findings] == [
        ("fr-fr", "unreadable")
    ]
