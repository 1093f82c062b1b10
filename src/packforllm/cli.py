"""
CLI entrypoint for packforllm.
"""
import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from colorama import just_fix_windows_console

from . import __version__
from .config import SETTINGS_FILENAME, PackSettings, find_workspace_root, load_settings
from .errors import InvalidRootError, OutputError, PackError
from .fs import PathRef
from .render import pack, pack_tree
from .trace import Trace


def _common_options() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(add_help=False)
    p.add_argument(
        "--root",
        type=Path,
        help="Workspace root (default: nearest folder with .git above the first selection)",
    )
    p.add_argument(
        "--settings",
        type=Path,
        help=f"TOML settings file (default: <root>/{SETTINGS_FILENAME} if present)",
    )
    p.add_argument(
        "--no-gitignore",
        dest="use_gitignore",
        action="store_const",
        const=False,
        help="Do not apply .gitignore rules (.git is still excluded)",
    )
    p.add_argument("--ignore-extensions", help="Comma-separated extensions to skip, e.g. 'log,.tmp'")
    p.add_argument(
        "--ignore-hidden",
        action="store_const",
        const=True,
        help="Skip files and folders whose name starts with '.'",
    )
    p.add_argument(
        "--no-ignore-hidden",
        dest="ignore_hidden",
        action="store_const",
        const=False,
        help="Include hidden files even if the settings file skips them",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Print the walk trace to stderr")
    return p


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    common = _common_options()
    p = argparse.ArgumentParser(
        prog="packforllm",
        description="Pack project files, or their tree, into one text document for an LLM.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = p.add_subparsers(dest="command", required=True)

    pk = sub.add_parser("pack", parents=[common], help="Concatenate file contents with delimiters")
    pk.add_argument("paths", nargs="*", type=Path, help="Files or folders to pack (default: root)")
    pk.add_argument("--delimiter", help="Start line template; ${file} is the relative path")
    pk.add_argument("--end-delimiter", help="End line template; ${file} is the relative path")
    pk.add_argument(
        "--no-end-delimiter",
        action="store_true",
        help="Emit no end line after each file",
    )
    pk.add_argument("--out", type=Path, default=Path("-"), help="Output file, '-' for stdout (default)")

    tr = sub.add_parser("tree", parents=[common], help="Render the filtered directory tree")
    tr.add_argument("path", nargs="?", type=Path, help="Folder to render (default: root)")
    tr.add_argument("--out", type=Path, default=Path("-"), help="Output file, '-' for stdout (default)")

    sub.add_parser("config", parents=[common], help="Print the effective settings as TOML")
    return p.parse_args(argv)


def _resolve_root(ns: argparse.Namespace, selections: List[Path]) -> Path:
    if ns.root is not None:
        root = ns.root.resolve()
    else:
        root = find_workspace_root(selections[0] if selections else Path("."))
    if not root.exists():
        raise InvalidRootError(f"Root directory '{root}' does not exist")
    if not root.is_dir():
        raise InvalidRootError(f"Root path '{root}' is not a directory")
    for sel in selections:
        if not sel.resolve().is_relative_to(root):
            raise InvalidRootError(f"'{sel}' is not inside the root '{root}'")
    return root


def _settings(ns: argparse.Namespace, root: Path) -> PackSettings:
    if ns.settings is not None:
        base = load_settings(ns.settings.resolve())
    else:
        base = load_settings(root / SETTINGS_FILENAME, required=False)
    end_delimiter = getattr(ns, "end_delimiter", None)
    no_end = getattr(ns, "no_end_delimiter", False) or end_delimiter == ""
    settings = base.with_overrides(
        use_gitignore=ns.use_gitignore,
        ignore_extensions=ns.ignore_extensions,
        ignore_hidden=ns.ignore_hidden,
        delimiter=getattr(ns, "delimiter", None),
        end_delimiter=None if no_end else end_delimiter,
    )
    if no_end:
        settings = replace(settings, end_delimiter=None)
    return settings


def _write(text: str, out: Path, trace: Trace) -> None:
    if str(out) == "-":
        sys.stdout.write(text if text.endswith("\n") else text + "\n")
        return
    try:
        out_path = out.resolve()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text, encoding="utf-8", newline="\n")
    except (OSError, RuntimeError) as e:
        raise OutputError(f"Could not write to output file '{out}': {e}")
    trace.done(f"Done → {out_path}")


def main(argv: Optional[List[str]] = None) -> None:
    try:
        ns = _parse_args(argv)
        just_fix_windows_console()
        trace = Trace(stream=sys.stderr if ns.verbose else None)

        try:
            if ns.command == "pack":
                selections = ns.paths
                root = _resolve_root(ns, selections)
                settings = _settings(ns, root)
                refs = [PathRef.of(p) for p in selections] or [PathRef.of(root)]
                trace.info(f"Selected {len(refs)} resource(s).")
                text = pack(refs, PathRef.of(root), settings, trace=trace)
                _write(text, ns.out, trace)
            elif ns.command == "tree":
                selections = [ns.path] if ns.path is not None else []
                root = _resolve_root(ns, selections)
                settings = _settings(ns, root)
                tree_root = PathRef.of(ns.path) if ns.path is not None else PathRef.of(root)
                text = pack_tree(tree_root, PathRef.of(root), settings, trace=trace)
                _write(text, ns.out, trace)
            else:
                root = _resolve_root(ns, [])
                sys.stdout.write(_settings(ns, root).as_toml())
        except PackError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

    except KeyboardInterrupt:
        print("\nOperation cancelled by user.", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
