"""Configuration loading for ttmlcheck (.ttmlcheck.yml)."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field, replace
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import yaml

CONFIG_FILENAME = ".ttmlcheck.yml"

DEFAULT_REFERENCE_LOCALE = "en-us"
DEFAULT_TARGET_LOCALES: Tuple[str, ...] = (
    "da-dk",
    "de-de",
    "es-es",
    "fi-fi",
    "fr-fr",
    "it-it",
    "ja-jp",
    "nb-no",
    "nl-nl",
    "pt-br",
    "sv-se",
)
DEFAULT_EXTENSIONS: Tuple[str, ...] = (".ttml",)
DEFAULT_MIN_DURATION = 2.0
DEFAULT_LANGUAGE_HEADER_LINES = 5

_LOCALE_CODE = re.compile(r"^[a-z]{2}-[a-z]{2}$")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be read or parsed."""


class InvalidConfigurationError(ConfigError):
    """Raised when settings are missing or out of range; fatal before scanning."""


@dataclass
class LocaleOptions:
    """Reference and target locales used for file-count comparison."""

    reference: str = DEFAULT_REFERENCE_LOCALE
    targets: List[str] = field(default_factory=lambda: list(DEFAULT_TARGET_LOCALES))


@dataclass
class CheckerConfig:
    """Effective settings for a validation run (file values plus CLI overrides)."""

    max_line_length: Optional[int] = None
    min_duration: float = DEFAULT_MIN_DURATION
    language_header_lines: int = DEFAULT_LANGUAGE_HEADER_LINES
    count_files: bool = False
    locales: LocaleOptions = field(default_factory=LocaleOptions)
    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    exclude_paths: List[str] = field(default_factory=list)
    jobs: int = 1
    source: Optional[Path] = None

    @property
    def max_caption_length(self) -> int:
        return 2 * self.require_max_line_length()

    @property
    def min_duration_delta(self) -> timedelta:
        return timedelta(seconds=self.min_duration)

    def require_max_line_length(self) -> int:
        value = self.max_line_length
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidConfigurationError(
                "Maximum single-line caption length is required (use --length or max_line_length)"
            )
        if value <= 0:
            raise InvalidConfigurationError(
                f"Maximum single-line caption length must be positive, got {value}"
            )
        return value

    def validate(self) -> "CheckerConfig":
        """Raise InvalidConfigurationError unless every setting is usable."""
        self.require_max_line_length()
        if not math.isfinite(self.min_duration):
            raise InvalidConfigurationError(
                f"Minimum caption duration must be a finite number, got {self.min_duration}"
            )
        if self.min_duration < 0:
            raise InvalidConfigurationError(
                f"Minimum caption duration cannot be negative, got {self.min_duration}"
            )
        if self.language_header_lines < 0:
            raise InvalidConfigurationError(
                f"language_header_lines cannot be negative, got {self.language_header_lines}"
            )
        if self.jobs < 1:
            raise InvalidConfigurationError(f"jobs must be at least 1, got {self.jobs}")
        if not self.extensions:
            raise InvalidConfigurationError("At least one caption file extension is required")
        if self.count_files:
            for code in [self.locales.reference, *self.locales.targets]:
                if not _LOCALE_CODE.match(code):
                    raise InvalidConfigurationError(
                        f"Locale codes must look like 'xx-xx', got '{code}'"
                    )
        return self

    def with_overrides(self, **overrides: Any) -> "CheckerConfig":
        """Return a copy where non-None overrides replace file values."""
        locale_reference = overrides.pop("reference_locale", None)
        locale_targets = overrides.pop("target_locales", None)
        values = {key: value for key, value in overrides.items() if value is not None}
        updated = replace(self, **values)
        if locale_reference is not None or locale_targets is not None:
            updated.locales = LocaleOptions(
                reference=_normalise_locale(locale_reference) or self.locales.reference,
                targets=[_normalise_locale(code) for code in locale_targets]
                if locale_targets is not None
                else list(self.locales.targets),
            )
        return updated


def find_config(start: Path) -> Optional[Path]:
    """Return the config file governing ``start`` (a file or directory), if any."""
    start = start.expanduser()
    directory = start if start.is_dir() else start.parent
    candidate = directory / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def load_config(config_path: Optional[Path]) -> CheckerConfig:
    """Load configuration from disk; a missing path yields defaults."""
    if config_path is None:
        return CheckerConfig()
    config_file = config_path.expanduser()
    if config_file.is_dir():
        config_file = config_file / CONFIG_FILENAME
    if not config_file.exists():
        return CheckerConfig()

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file.name} must contain a mapping at the root")

    config = CheckerConfig(source=config_file.resolve())
    if "max_line_length" in data:
        config.max_line_length = _as_int(data.get("max_line_length"))
        if config.max_line_length is None:
            raise InvalidConfigurationError("max_line_length must be an integer")
    min_duration = _as_float(data.get("min_duration"))
    if min_duration is not None:
        config.min_duration = min_duration
    header_lines = _as_int(data.get("language_header_lines"))
    if header_lines is not None:
        config.language_header_lines = header_lines
    count_files = _as_bool(data.get("count_files"))
    if count_files is not None:
        config.count_files = count_files
    jobs = _as_int(data.get("jobs"))
    if jobs is not None:
        config.jobs = jobs

    extensions = _as_str_list(data.get("extensions"))
    if extensions:
        config.extensions = [_normalise_extension(ext) for ext in extensions]
    config.exclude_paths = _as_str_list(data.get("exclude_paths"))

    locale_data = _as_dict(data.get("locales"))
    if locale_data:
        reference = _as_str(locale_data.get("reference"))
        targets = locale_data.get("targets")
        config.locales = LocaleOptions(
            reference=_normalise_locale(reference) if reference else DEFAULT_REFERENCE_LOCALE,
            targets=[_normalise_locale(code) for code in _as_str_list(targets)]
            if targets is not None
            else list(DEFAULT_TARGET_LOCALES),
        )

    return config


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read {path}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _normalise_locale(code: Optional[str]) -> str:
    return (code or "").strip().lower()


def _normalise_extension(ext: str) -> str:
    ext = ext.strip().lower()
    return ext if ext.startswith(".") else f".{ext}"


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "CheckerConfig",
    "ConfigError",
    "DEFAULT_REFERENCE_LOCALE",
    "DEFAULT_TARGET_LOCALES",
    "InvalidConfigurationError",
    "LocaleOptions",
    "find_config",
    "load_config",
]
