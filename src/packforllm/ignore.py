"""
Include/exclude decisions for workspace-relative paths.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from pathlib import Path
from typing import AbstractSet, FrozenSet, Iterable, Optional

import pathspec

from .config import OUTPUT_SUFFIX
from .trace import Trace

# Always excluded, whatever the pattern file says or whether it is used.
VCS_PATTERNS = [".git/"]


@dataclass(frozen=True)
class IgnoreSpec:
    patterns: pathspec.PathSpec
    reserved_suffixes: FrozenSet[str] = frozenset({OUTPUT_SUFFIX})


def compile_ignore_spec(
    pattern_text: Optional[str] = None,
    reserved_suffixes: Iterable[str] = (OUTPUT_SUFFIX,),
) -> IgnoreSpec:
    """Compile gitignore-style *pattern_text* plus the always-on VCS rule.

    The VCS rule goes last so a ``!.git`` line in the file cannot re-include it.
    """
    lines = pattern_text.splitlines() if pattern_text else []
    spec = pathspec.GitIgnoreSpec.from_lines([*lines, *VCS_PATTERNS])
    return IgnoreSpec(spec, frozenset(reserved_suffixes))


def load_ignore_spec(
    workspace_root: Path,
    use_gitignore: bool,
    trace: Trace,
    reserved_suffixes: Iterable[str] = (OUTPUT_SUFFIX,),
) -> IgnoreSpec:
    """Build the spec for one invocation from ``<workspace_root>/.gitignore``.

    A missing file is normal. A file that cannot be read or parsed is
    reported on *trace* and the run continues with the VCS rule only.
    """
    if not use_gitignore:
        trace.info("Skipping .gitignore rules (still ignoring .git).")
        return compile_ignore_spec(None, reserved_suffixes)

    gitignore_path = workspace_root / ".gitignore"
    if not gitignore_path.is_file():
        return compile_ignore_spec(None, reserved_suffixes)
    try:
        text = gitignore_path.read_text(encoding="utf-8")
        spec = compile_ignore_spec(text, reserved_suffixes)
    except (OSError, UnicodeDecodeError, ValueError) as e:
        # pathspec raises GitWildMatchPatternError (a ValueError) on bad lines
        trace.warn(f"Could not load {gitignore_path}: {e}")
        return compile_ignore_spec(None, reserved_suffixes)
    trace.info(f"Loaded ignore rules from {gitignore_path}")
    return spec


def is_excluded(
    rel_path: str,
    spec: IgnoreSpec,
    ignore_extensions: AbstractSet[str],
    ignore_hidden: bool,
    *,
    is_dir: bool = False,
) -> bool:
    """Return True if *rel_path* (forward slashes) must be left out.

    Checks run in a fixed order and the first hit wins: hidden name,
    pattern rules, extension denylist, reserved output suffix. Directories
    are matched with a trailing slash so ``build/`` style rules apply to
    them. The workspace root itself (``""``) is never excluded.
    """
    if not rel_path:
        return False

    base = posixpath.basename(rel_path)
    if ignore_hidden and base.startswith("."):
        return True

    if spec.patterns.match_file(rel_path + "/" if is_dir else rel_path):
        return True

    if ignore_extensions:
        ext = posixpath.splitext(base)[1].lower()
        if ext in ignore_extensions:
            return True

    return any(rel_path.endswith(suffix) for suffix in spec.reserved_suffixes)
