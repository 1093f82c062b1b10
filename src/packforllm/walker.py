"""
Filtered recursive walk of a selection.

Both walks visit entries one at a time in a fixed order: each directory
listing is sorted by name before anything is filtered, traced or descended
into, so the trace and the result are identical across runs on an unchanged
tree. Every entry is judged on its own workspace-relative path; an excluded
directory is never listed.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, List, Optional, Set, Tuple

from .config import WalkConfig
from .errors import EmptyResultError, WalkCancelled
from .fs import EntryKind, FileSystem, LocalFileSystem, PathRef
from .ignore import IgnoreSpec, is_excluded
from .trace import Trace

CancelCheck = Optional[Callable[[], bool]]


def _listing_order(entry: Tuple[str, Optional[EntryKind]]) -> Tuple[str, str]:
    # case-insensitive first, then lowercase before uppercase (a.txt, b.txt, B.txt)
    name = entry[0]
    return name.casefold(), name.swapcase()


@dataclass(frozen=True)
class TreeNode:
    name: str
    kind: EntryKind
    rel_path: str
    children: Tuple["TreeNode", ...] = field(default=())

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY


class _Walk:
    """State shared by one invocation: policy, file system, trace."""

    def __init__(
        self,
        workspace_root: PathRef,
        spec: IgnoreSpec,
        config: WalkConfig,
        fs: Optional[FileSystem],
        trace: Optional[Trace],
        cancel: CancelCheck,
    ) -> None:
        self.root = workspace_root
        self.spec = spec
        self.config = config
        self.fs = fs if fs is not None else LocalFileSystem()
        self.trace = trace if trace is not None else Trace()
        self.cancel = cancel
        # (device, inode) of every directory on the current descent path
        self.open_dirs: Set[Tuple[int, int]] = set()

    def excluded(self, rel: str, kind: EntryKind) -> bool:
        return is_excluded(
            rel,
            self.spec,
            self.config.ignore_extensions,
            self.config.ignore_hidden,
            is_dir=kind is EntryKind.DIRECTORY,
        )

    def stat(self, ref: PathRef) -> Optional[EntryKind]:
        try:
            return self.fs.stat(ref)
        except OSError as e:
            self.warn_inaccessible(ref, e)
            return None

    def warn_inaccessible(self, ref: PathRef, err: OSError) -> None:
        reason = err.strerror or str(err)
        self.trace.warn(f"Unable to access {ref.to_absolute()}: {reason}")

    def entries(self, directory: PathRef, rel: str) -> Optional[List[Tuple[PathRef, str, EntryKind]]]:
        """Sorted, filtered children of *directory*; ``None`` if unlistable."""
        if self.cancel is not None and self.cancel():
            raise WalkCancelled(f"Cancelled while listing {rel or directory.name}")
        self.trace.info(f"Entering directory: {rel}")
        try:
            listing = self.fs.list_dir(directory)
        except OSError as e:
            self.warn_inaccessible(directory, e)
            return None

        kept: List[Tuple[PathRef, str, EntryKind]] = []
        for name, kind in sorted(listing, key=_listing_order):
            child = directory.join(name)
            child_rel = child.relative_to(self.root)
            if kind is None:
                kind = self.stat(child)
                if kind is None:
                    continue
            if kind is EntryKind.OTHER:
                continue
            if self.excluded(child_rel, kind):
                self.trace.info(f"  Skipping: {child_rel}")
                continue
            kept.append((child, child_rel, kind))
        return kept

    @contextmanager
    def inside(self, directory: PathRef, rel: str) -> Iterator[Optional[List[Tuple[PathRef, str, EntryKind]]]]:
        """Children of *directory* while it sits on the descent path.

        Yields ``None`` when the directory cannot be read or is already an
        ancestor of itself (a symlink pointing back up the tree).
        """
        try:
            ident = self.fs.identity(directory)
        except OSError as e:
            self.warn_inaccessible(directory, e)
            yield None
            return
        if ident in self.open_dirs:
            self.trace.warn(f"Unable to access {directory.to_absolute()}: symlink loop")
            yield None
            return
        self.open_dirs.add(ident)
        try:
            yield self.entries(directory, rel)
        finally:
            self.open_dirs.discard(ident)

    def files(self, directory: PathRef, rel: str) -> List[PathRef]:
        found: List[PathRef] = []
        with self.inside(directory, rel) as entries:
            for child, child_rel, kind in entries or []:
                if kind is EntryKind.DIRECTORY:
                    found.extend(self.files(child, child_rel))
                else:
                    self.trace.info(f"  Found file: {child_rel}")
                    found.append(child)
        return found

    def node(self, ref: PathRef, rel: str, kind: EntryKind) -> TreeNode:
        if kind is not EntryKind.DIRECTORY:
            return TreeNode(ref.name, kind, rel)
        with self.inside(ref, rel) as entries:
            children = tuple(
                self.node(child, child_rel, child_kind)
                for child, child_rel, child_kind in entries or []
            )
        return TreeNode(ref.name, kind, rel, children)

    def start(self, ref: PathRef) -> Optional[Tuple[str, EntryKind]]:
        """Stat and judge a selected root; ``None`` means skip it entirely."""
        try:
            rel = ref.relative_to(self.root)
        except ValueError:
            self.trace.warn(f"{ref.to_absolute()} is outside the workspace root {self.root.to_absolute()}")
            return None
        kind = self.stat(ref)
        if kind is None or kind is EntryKind.OTHER:
            return None
        if self.excluded(rel, kind):
            self.trace.info(f"Ignored: {rel}")
            return None
        return rel, kind


def gather_files(
    roots: Iterable[PathRef],
    workspace_root: PathRef,
    spec: IgnoreSpec,
    config: WalkConfig,
    *,
    fs: Optional[FileSystem] = None,
    trace: Optional[Trace] = None,
    cancel: CancelCheck = None,
) -> List[PathRef]:
    """Every included file under *roots*, depth-first in sorted name order.

    Roots are processed in the order given and their results concatenated;
    overlapping roots are not deduplicated. Raises :class:`EmptyResultError`
    if nothing survives.
    """
    walk = _Walk(workspace_root, spec, config, fs, trace, cancel)
    found: List[PathRef] = []
    for ref in roots:
        walk.trace.info(f"Processing selection: {ref.to_absolute()}")
        started = walk.start(ref)
        if started is None:
            continue
        rel, kind = started
        if kind is EntryKind.DIRECTORY:
            found.extend(walk.files(ref, rel))
        else:
            walk.trace.info(f"Found file: {rel}")
            found.append(ref)

    walk.trace.info(f"Total files collected: {len(found)}")
    if not found:
        raise EmptyResultError()
    return found


def build_tree(
    root: PathRef,
    workspace_root: PathRef,
    spec: IgnoreSpec,
    config: WalkConfig,
    *,
    fs: Optional[FileSystem] = None,
    trace: Optional[Trace] = None,
    cancel: CancelCheck = None,
) -> TreeNode:
    """The filtered hierarchy under *root*, children sorted by name.

    Raises :class:`EmptyResultError` if *root* itself is excluded or cannot
    be read. An included but empty directory is a valid, childless node.
    """
    walk = _Walk(workspace_root, spec, config, fs, trace, cancel)
    started = walk.start(root)
    if started is None:
        raise EmptyResultError(f"Nothing to show: {root.name} is ignored or inaccessible.")
    rel, kind = started
    return walk.node(root, rel, kind)
