"""Caption file discovery and reading."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Sequence

from .config import DEFAULT_EXTENSIONS
from .logging import get_logger
from .models import LocaleFileSet, SkippedFile
from .validators.locale_set import build_locale_file_set

logger = get_logger("scanner")

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    ".idea",
    ".vscode",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    "__MACOSX",
}

IncludePredicate = Callable[[Path], bool]
SkipHandler = Callable[[SkippedFile], None]


class UnreadableFileError(OSError):
    """Raised when a caption file cannot be opened or decoded."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Cannot read {path}: {reason}")
        self.path = path
        self.reason = reason


@dataclass(frozen=True)
class ExcludeRule:
    """One ``exclude_paths`` entry: ``drafts/`` prunes a folder, ``*_old.ttml`` a file name."""

    pattern: str
    directory_only: bool
    anchored: bool

    @classmethod
    def parse(cls, raw: str) -> Optional["ExcludeRule"]:
        pattern = raw.strip()
        directory_only = pattern.endswith("/")
        anchored = pattern.startswith("/")
        pattern = pattern.strip("/")
        if not pattern:
            return None
        return cls(pattern=pattern, directory_only=directory_only, anchored=anchored or "/" in pattern)

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if self.directory_only and not is_dir:
            return False
        if self.anchored:
            return fnmatchcase(rel_path, self.pattern)
        return fnmatchcase(rel_path.rsplit("/", 1)[-1], self.pattern)


def split_lines(text: str) -> List[str]:
    """Split on newlines only; other Unicode separators stay inside the line."""
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def _os_error_reason(exc: OSError) -> str:
    return exc.strerror or str(exc)


class CaptionScanner:
    """Walks a directory tree and yields caption files in traversal order."""

    def __init__(
        self,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
        exclude_paths: Sequence[str] = (),
        include: Optional[IncludePredicate] = None,
    ) -> None:
        self.extensions = tuple(ext.lower() for ext in extensions)
        self.rules = [rule for rule in map(ExcludeRule.parse, exclude_paths) if rule is not None]
        self._include = include

    def is_included(self, path: Path) -> bool:
        if self._include is not None:
            return self._include(path)
        return path.suffix.lower() in self.extensions

    def is_excluded(self, rel_path: str, is_dir: bool) -> bool:
        return any(rule.matches(rel_path, is_dir) for rule in self.rules)

    def iter_files(self, root: Path, on_skip: Optional[SkipHandler] = None) -> Iterator[Path]:
        """Yield a directory's own files (sorted) before descending into subdirectories.

        Directories that cannot be listed are logged and reported through
        ``on_skip`` so callers can tell them apart from clean folders.
        """
        root = root.expanduser()
        if not root.exists():
            raise FileNotFoundError(f"Input path not found: {root}")
        if root.is_file():
            if self.is_included(root):
                yield root
            return

        def _unlistable(exc: OSError) -> None:
            path = exc.filename if exc.filename is not None else root
            reason = _os_error_reason(exc)
            logger.warning("Cannot list %s: %s", path, reason)
            if on_skip is not None:
                on_skip(SkippedFile(path=str(path), reason=reason))

        for dirpath, dirnames, filenames in os.walk(root, onerror=_unlistable):
            current = Path(dirpath)
            rel_dir = current.relative_to(root).as_posix() if current != root else ""

            kept = []
            for name in sorted(dirnames):
                if name in _EXCLUDED_DIRS:
                    continue
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                if self.is_excluded(rel_path, True):
                    logger.debug("Excluded directory %s", rel_path)
                    continue
                kept.append(name)
            dirnames[:] = kept

            for filename in sorted(filenames):
                path = current / filename
                if not self.is_included(path):
                    continue
                rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
                if self.is_excluded(rel_path, False):
                    continue
                yield path

    def read_lines(self, path: Path) -> List[str]:
        try:
            with path.open("r", encoding="utf-8-sig") as handle:
                text = handle.read()
        except UnicodeDecodeError as exc:
            raise UnreadableFileError(path, f"not valid UTF-8 ({exc.reason})") from exc
        except OSError as exc:
            raise UnreadableFileError(path, _os_error_reason(exc)) from exc
        return split_lines(text)

    def list_locale_files(self, root: Path, locale: str) -> LocaleFileSet:
        """Collect the top-level caption file names of ``root/locale``."""
        directory = root / locale
        if not directory.is_dir():
            return build_locale_file_set(locale, str(directory), [], exists=False)
        try:
            names = [
                entry.name
                for entry in sorted(directory.iterdir())
                if entry.is_file() and self.is_included(entry)
            ]
        except OSError as exc:
            reason = _os_error_reason(exc)
            logger.warning("Cannot list %s: %s", directory, reason)
            return build_locale_file_set(locale, str(directory), [], error=reason)
        return build_locale_file_set(locale, str(directory), names)


__all__ = ["CaptionScanner", "ExcludeRule", "UnreadableFileError", "split_lines"]
