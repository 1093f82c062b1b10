from pathlib import Path

from conftest import make_file
from packforllm.config import parse_ignore_extensions
from packforllm.ignore import compile_ignore_spec, is_excluded, load_ignore_spec
from packforllm.trace import Trace

NO_EXT: frozenset = frozenset()


def test_is_excluded_is_pure():
    spec = compile_ignore_spec("*.log\n")
    exts = parse_ignore_extensions("tmp")
    for path in ["a.log", "src/b.tmp", "keep.txt", ".env"]:
        first = is_excluded(path, spec, exts, True)
        assert all(is_excluded(path, spec, exts, True) == first for _ in range(3))


def test_hidden_policy():
    spec = compile_ignore_spec(None)
    assert is_excluded(".env", spec, NO_EXT, True)
    assert is_excluded("src/.cache", spec, NO_EXT, True, is_dir=True)
    assert not is_excluded(".env", spec, NO_EXT, False)


def test_extension_denylist_is_case_insensitive():
    spec = compile_ignore_spec(None)
    exts = parse_ignore_extensions("log, .tmp")
    assert is_excluded("app.log", spec, exts, False)
    assert is_excluded("cache.tmp", spec, exts, False)
    assert is_excluded("logs/REPORT.LOG", spec, exts, False)
    assert not is_excluded("app.py", spec, exts, False)
    # a dotfile has no extension
    assert not is_excluded(".log", spec, exts, False)


def test_vcs_directory_always_excluded():
    spec = compile_ignore_spec(None)
    assert is_excluded(".git", spec, NO_EXT, False, is_dir=True)
    assert is_excluded(".git/config", spec, NO_EXT, False)
    assert is_excluded("vendor/lib/.git/HEAD", spec, NO_EXT, False)


def test_vcs_directory_cannot_be_reincluded():
    spec = compile_ignore_spec("!.git/\n!.git/config\n")
    assert is_excluded(".git/config", spec, NO_EXT, False)


def test_directory_pattern_only_matches_directories():
    spec = compile_ignore_spec("build/\n")
    assert is_excluded("build", spec, NO_EXT, False, is_dir=True)
    assert is_excluded("build/out.txt", spec, NO_EXT, False)
    assert not is_excluded("build", spec, NO_EXT, False, is_dir=False)


def test_negation_reincludes_and_last_rule_wins():
    spec = compile_ignore_spec("*.log\n!keep.log\n")
    assert is_excluded("debug.log", spec, NO_EXT, False)
    assert not is_excluded("keep.log", spec, NO_EXT, False)

    spec = compile_ignore_spec("!keep.log\n*.log\n")
    assert is_excluded("keep.log", spec, NO_EXT, False)


def test_reserved_suffix_always_excluded():
    spec = compile_ignore_spec("!*.pack4llm\n")
    assert is_excluded("notes/previous.pack4llm", spec, NO_EXT, False)

    custom = compile_ignore_spec(None, reserved_suffixes=[".pack4llm", ".llm.txt"])
    assert is_excluded("dump.llm.txt", custom, NO_EXT, False)
    assert not is_excluded("dump.txt", custom, NO_EXT, False)


def test_workspace_root_itself_is_never_excluded():
    spec = compile_ignore_spec("*\n")
    assert not is_excluded("", spec, NO_EXT, True, is_dir=True)


def test_load_ignore_spec_reads_gitignore(tmp_path: Path):
    make_file(tmp_path / ".gitignore", "dist/\n")
    trace = Trace()
    spec = load_ignore_spec(tmp_path, True, trace)
    assert is_excluded("dist", spec, NO_EXT, False, is_dir=True)
    assert trace.warnings == []


def test_load_ignore_spec_without_gitignore_keeps_vcs_rule(tmp_path: Path):
    make_file(tmp_path / ".gitignore", "dist/\n")
    trace = Trace()
    spec = load_ignore_spec(tmp_path, False, trace)
    assert not is_excluded("dist", spec, NO_EXT, False, is_dir=True)
    assert is_excluded(".git", spec, NO_EXT, False, is_dir=True)


def test_missing_gitignore_is_not_an_error(tmp_path: Path):
    trace = Trace()
    spec = load_ignore_spec(tmp_path, True, trace)
    assert not is_excluded("anything.txt", spec, NO_EXT, False)
    assert trace.warnings == []


def test_unreadable_gitignore_degrades_to_vcs_rule(tmp_path: Path):
    (tmp_path / ".gitignore").write_bytes(b"dist/\n\xff\xfe\xfa\n")
    trace = Trace()
    spec = load_ignore_spec(tmp_path, True, trace)
    assert not is_excluded("dist", spec, NO_EXT, False, is_dir=True)
    assert is_excluded(".git/config", spec, NO_EXT, False)
    assert len(trace.warnings) == 1
    assert trace.warnings[0].startswith("Warning: Could not load")
