"""
packforllm - pack a selection of project files into one text document.

The selection is walked with ``.gitignore`` rules, an extension denylist and
an optional hidden-file filter, then either concatenated with per-file
delimiters or rendered as an ASCII directory tree, ready to paste into a
language-model prompt.
"""

__version__ = "0.3.0"

from .config import PackSettings, WalkConfig, parse_ignore_extensions
from .errors import (
    ConfigFileError,
    EmptyResultError,
    InvalidRootError,
    OutputError,
    PackError,
    WalkCancelled,
)
from .fs import EntryKind, LocalFileSystem, PathRef
from .ignore import IgnoreSpec, compile_ignore_spec, is_excluded, load_ignore_spec
from .render import concatenate, pack, pack_tree, render_tree
from .trace import Trace
from .walker import TreeNode, build_tree, gather_files

__all__ = [
    "ConfigFileError",
    "EmptyResultError",
    "EntryKind",
    "IgnoreSpec",
    "InvalidRootError",
    "LocalFileSystem",
    "OutputError",
    "PackError",
    "PackSettings",
    "PathRef",
    "Trace",
    "TreeNode",
    "WalkCancelled",
    "WalkConfig",
    "build_tree",
    "compile_ignore_spec",
    "concatenate",
    "gather_files",
    "is_excluded",
    "load_ignore_spec",
    "pack",
    "pack_tree",
    "parse_ignore_extensions",
    "render_tree",
]
