"""
Turn walk results into the text handed back to the user: a concatenation of
delimited file contents, or box-drawing tree art.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from .config import PackSettings
from .errors import EmptyResultError
from .fs import FileSystem, LocalFileSystem, PathRef
from .ignore import load_ignore_spec
from .trace import Trace
from .walker import CancelCheck, TreeNode, build_tree, gather_files

PLACEHOLDER = "${file}"


def concatenate(
    files: Sequence[PathRef],
    workspace_root: PathRef,
    start_template: str,
    end_template: Optional[str] = None,
    *,
    fs: Optional[FileSystem] = None,
    trace: Optional[Trace] = None,
) -> str:
    """Wrap each file's text in delimiters, in the order given.

    ``${file}`` in either template becomes the workspace-relative path.
    Files that cannot be read or are not valid UTF-8 are skipped with a
    warning on *trace*; the rest are still packed.
    """
    fs = fs if fs is not None else LocalFileSystem()
    trace = trace if trace is not None else Trace()
    parts: List[str] = []
    for ref in files:
        rel = ref.relative_to(workspace_root)
        trace.info(f"Reading file: {rel}")
        try:
            content = fs.read_bytes(ref).decode("utf-8")
        except OSError as e:
            trace.warn(f"Could not read {rel}: {e.strerror or e}")
            continue
        except UnicodeDecodeError:
            trace.warn(f"Skipping {rel}: not valid UTF-8 text")
            continue

        parts.append(start_template.replace(PLACEHOLDER, rel) + "\n")
        parts.append(content + "\n")
        if end_template is not None:
            parts.append(end_template.replace(PLACEHOLDER, rel) + "\n")
        parts.append("\n")
    return "".join(parts)


def render_tree(root: TreeNode) -> str:
    """Render *root* like the Unix ``tree`` utility, directories with a ``/``."""
    lines: List[str] = [root.name + ("/" if root.is_dir else "")]

    def _walk(node: TreeNode, prefix: str) -> None:
        for idx, child in enumerate(node.children):
            last = idx == len(node.children) - 1
            connector = "└── " if last else "├── "
            lines.append(f"{prefix}{connector}{child.name}{'/' if child.is_dir else ''}")
            if child.is_dir:
                _walk(child, prefix + ("    " if last else "│   "))

    _walk(root, "")
    return "\n".join(lines)


def _log_settings(settings: PackSettings, trace: Trace) -> None:
    walk = settings.walk_config()
    trace.info(f"Use .gitignore? {str(settings.use_gitignore).lower()}")
    exts = ", ".join(sorted(walk.ignore_extensions)) or "(none)"
    trace.info(f"Ignoring extensions: {exts}")
    trace.info(f"Ignore hidden files? {str(settings.ignore_hidden).lower()}")


def pack(
    selections: Sequence[PathRef],
    workspace_root: PathRef,
    settings: PackSettings = PackSettings(),
    *,
    fs: Optional[FileSystem] = None,
    trace: Optional[Trace] = None,
    cancel: CancelCheck = None,
) -> str:
    """Walk *selections* and concatenate every included file."""
    trace = trace if trace is not None else Trace()
    trace.info(f'Using start-delimiter: "{settings.delimiter}"')
    if settings.end_delimiter is None:
        trace.info("No end-delimiter.")
    else:
        trace.info(f'Using end-delimiter:   "{settings.end_delimiter}"')
    _log_settings(settings, trace)

    spec = load_ignore_spec(
        workspace_root.to_absolute(), settings.use_gitignore, trace, settings.reserved_suffixes
    )
    files = gather_files(
        selections, workspace_root, spec, settings.walk_config(), fs=fs, trace=trace, cancel=cancel
    )
    text = concatenate(
        files, workspace_root, settings.delimiter, settings.end_delimiter, fs=fs, trace=trace
    )
    if not text:
        raise EmptyResultError("No readable files found (every selected file failed to read).")
    return text


def pack_tree(
    root: PathRef,
    workspace_root: PathRef,
    settings: PackSettings = PackSettings(),
    *,
    fs: Optional[FileSystem] = None,
    trace: Optional[Trace] = None,
    cancel: CancelCheck = None,
) -> str:
    """Walk *root* and render the filtered hierarchy as tree art."""
    trace = trace if trace is not None else Trace()
    _log_settings(settings, trace)
    spec = load_ignore_spec(
        workspace_root.to_absolute(), settings.use_gitignore, trace, settings.reserved_suffixes
    )
    node = build_tree(
        root, workspace_root, spec, settings.walk_config(), fs=fs, trace=trace, cancel=cancel
    )
    return render_tree(node)
