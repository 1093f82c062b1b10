"""
Settings for a pack run.

A :class:`PackSettings` snapshot is built once per invocation (defaults,
then the settings file, then command-line overrides) and the walk-related
part of it is handed to the core as an immutable :class:`WalkConfig`.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional, Tuple

from .errors import ConfigFileError

DEFAULT_DELIMITER = "<<< FILE: ${file} >>>"
DEFAULT_END_DELIMITER = "<<< EOF >>>"
# Extension given to saved pack documents; never packed again.
OUTPUT_SUFFIX = ".pack4llm"
SETTINGS_FILENAME = ".packforllm.toml"
SETTINGS_TABLE = "packforllm"


def parse_ignore_extensions(raw: str) -> FrozenSet[str]:
    """``"log, .TMP,,"`` -> ``{".log", ".tmp"}``."""
    exts = (ext.strip().lower() for ext in raw.split(","))
    return frozenset(ext if ext.startswith(".") else f".{ext}" for ext in exts if ext)


@dataclass(frozen=True)
class WalkConfig:
    ignore_extensions: FrozenSet[str] = frozenset()
    ignore_hidden: bool = False
    # Even when False, ".git/" and reserved suffixes stay excluded.
    use_gitignore: bool = True


@dataclass(frozen=True)
class PackSettings:
    use_gitignore: bool = True
    ignore_extensions: str = ""
    ignore_hidden: bool = False
    delimiter: str = DEFAULT_DELIMITER
    end_delimiter: Optional[str] = DEFAULT_END_DELIMITER
    reserved_suffixes: Tuple[str, ...] = field(default=(OUTPUT_SUFFIX,))

    def walk_config(self) -> WalkConfig:
        return WalkConfig(
            ignore_extensions=parse_ignore_extensions(self.ignore_extensions),
            ignore_hidden=self.ignore_hidden,
            use_gitignore=self.use_gitignore,
        )

    def with_overrides(self, **overrides: Any) -> "PackSettings":
        """Return a copy with every non-``None`` override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def as_toml(self) -> str:
        lines = [f"[{SETTINGS_TABLE}]"]
        for key, attr in _KEYS.items():
            value = getattr(self, attr)
            lines.append(f"{key} = {_toml_value('' if value is None else value)}")
        return "\n".join(lines) + "\n"


# settings-file key -> PackSettings attribute
_KEYS: Dict[str, str] = {
    "useGitignore": "use_gitignore",
    "ignoreExtensions": "ignore_extensions",
    "ignoreHidden": "ignore_hidden",
    "delimiter": "delimiter",
    "endDelimiter": "end_delimiter",
    "reservedSuffixes": "reserved_suffixes",
}
_TYPES: Dict[str, type] = {f.name: type(getattr(PackSettings(), f.name)) for f in fields(PackSettings)}


def _toml_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, tuple):
        return "[" + ", ".join(_toml_value(v) for v in value) + "]"
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def load_settings(path: Path, *, required: bool = True) -> PackSettings:
    """Read the ``[packforllm]`` table of a TOML settings file.

    ``endDelimiter = ""`` turns the end line off. A missing file is an error
    only when *required*.
    """
    if not path.exists():
        if required:
            raise ConfigFileError(f"Settings file '{path}' does not exist")
        return PackSettings()
    if not path.is_file():
        raise ConfigFileError(f"'{path}' is not a file")
    try:
        with path.open("rb") as fh:
            data = tomllib.load(fh)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigFileError(f"Could not read settings file '{path}': {e}")

    table = data.get(SETTINGS_TABLE, {})
    if not isinstance(table, dict):
        raise ConfigFileError(f"'{SETTINGS_TABLE}' in '{path}' must be a table")

    values: Dict[str, Any] = {}
    for key, value in table.items():
        attr = _KEYS.get(key)
        if attr is None:
            raise ConfigFileError(f"Unknown setting '{key}' in '{path}'")
        if attr == "reserved_suffixes":
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ConfigFileError(f"'{key}' in '{path}' must be a list of strings")
            value = tuple(value)
        elif attr == "end_delimiter" and value == "":
            value = None
        elif not isinstance(value, _TYPES[attr]):
            raise ConfigFileError(
                f"'{key}' in '{path}' must be {_TYPES[attr].__name__}, got {type(value).__name__}"
            )
        values[attr] = value
    return PackSettings(**values)


def find_workspace_root(path: Path) -> Path:
    """Nearest ancestor holding a ``.git`` entry, else the selection's folder."""
    path = path.resolve()
    start = path if path.is_dir() else path.parent
    for candidate in (start, *start.parents):
        if (candidate / ".git").exists():
            return candidate
    return start
