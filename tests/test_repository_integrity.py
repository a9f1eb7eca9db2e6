"""Repository-level integrity checks."""

from __future__ import annotations

import re
from pathlib import Path

CONFLICT_PATTERN = re.compile(r"^(<<<<<<<|=======|>>>>>>>)", re.MULTILINE)
IGNORED_PARTS = {".git", "__pycache__", ".mypy_cache", ".pytest_cache", ".venv"}
SOURCE_SUFFIXES = {".py", ".toml", ".md", ".txt"}


def _source_files(repo_root: Path) -> list[Path]:
    return [
        path
        for path in repo_root.rglob("*")
        if path.is_file()
        and path.suffix in SOURCE_SUFFIXES
        and not any(part in IGNORED_PARTS for part in path.parts)
    ]


def test_repository_has_no_merge_conflict_markers() -> None:
    """Ensure no source files still contain git conflict markers."""

    repo_root = Path(__file__).resolve().parents[1]
    offending = [
        path.relative_to(repo_root)
        for path in _source_files(repo_root)
        if CONFLICT_PATTERN.search(path.read_text(encoding="utf-8", errors="ignore"))
    ]

    assert not offending, (
        "The following files still contain git conflict markers: "
        + ", ".join(str(path) for path in offending)
    )


def test_every_package_directory_has_an_init() -> None:
    """Subpackages must be importable once installed."""

    package_root = Path(__file__).resolve().parents[1] / "reelsync"
    missing = [
        directory.relative_to(package_root)
        for directory in [package_root, *package_root.rglob("*")]
        if directory.is_dir()
        and directory.name != "__pycache__"
        and not (directory / "__init__.py").exists()
    ]

    assert not missing
