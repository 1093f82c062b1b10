"""
File-system access used by the walker and the renderers.

The core never touches ``os`` directly: it goes through a :class:`FileSystem`
so tests can inject failures, and it passes locations around as
:class:`PathRef` values.
"""

from __future__ import annotations

import enum
import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Protocol, Tuple


class EntryKind(enum.Enum):
    FILE = "file"
    DIRECTORY = "directory"
    OTHER = "other"


@dataclass(frozen=True)
class PathRef:
    """An absolute location on disk. Never mutated."""

    path: Path

    @classmethod
    def of(cls, path: str | os.PathLike[str]) -> "PathRef":
        return cls(Path(path).resolve())

    @property
    def name(self) -> str:
        # basename of a drive or "/" is empty, fall back to the full path
        return self.path.name or str(self.path)

    def to_absolute(self) -> Path:
        return self.path

    def join(self, name: str) -> "PathRef":
        return PathRef(self.path / name)

    def relative_to(self, root: PathRef | Path) -> str:
        """Forward-slash path relative to *root*, ``""`` for *root* itself."""
        base = root.path if isinstance(root, PathRef) else Path(root).resolve()
        rel = self.path.relative_to(base).as_posix()
        return "" if rel == "." else rel


class FileSystem(Protocol):
    def stat(self, ref: PathRef) -> EntryKind: ...

    def list_dir(self, ref: PathRef) -> List[Tuple[str, Optional[EntryKind]]]: ...

    def read_bytes(self, ref: PathRef) -> bytes: ...

    def identity(self, ref: PathRef) -> Tuple[int, int]: ...


def _kind_of(st_mode: int) -> EntryKind:
    if stat.S_ISDIR(st_mode):
        return EntryKind.DIRECTORY
    if stat.S_ISREG(st_mode):
        return EntryKind.FILE
    return EntryKind.OTHER


class LocalFileSystem:
    """The real disk. Symlinks are followed; loops surface as ``OSError``."""

    def stat(self, ref: PathRef) -> EntryKind:
        return _kind_of(os.stat(ref.path).st_mode)

    def list_dir(self, ref: PathRef) -> List[Tuple[str, Optional[EntryKind]]]:
        entries: List[Tuple[str, Optional[EntryKind]]] = []
        with os.scandir(ref.path) as it:
            for entry in it:
                try:
                    kind: Optional[EntryKind] = _kind_of(entry.stat().st_mode)
                except OSError:
                    # unknown; the caller stats it again and reports the error
                    kind = None
                entries.append((entry.name, kind))
        return entries

    def read_bytes(self, ref: PathRef) -> bytes:
        return ref.path.read_bytes()

    def identity(self, ref: PathRef) -> Tuple[int, int]:
        """(device, inode) of the target, after following links."""
        st = os.stat(ref.path)
        return st.st_dev, st.st_ino
