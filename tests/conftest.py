from pathlib import Path

import pytest


def make_file(p: Path, content: str = "x") -> Path:
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(content, encoding="utf-8")
    return p


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A small workspace with a repo folder, a build dir and a hidden file."""
    make_file(tmp_path / ".git" / "config", "[core]")
    make_file(tmp_path / ".env", "SECRET=1")
    make_file(tmp_path / "README.md", "# readme")
    make_file(tmp_path / "src" / "app.py", "print('app')")
    make_file(tmp_path / "src" / "util.py", "def f(): ...")
    make_file(tmp_path / "build" / "out.txt", "artifact")
    make_file(tmp_path / "app.log", "log line")
    return tmp_path
