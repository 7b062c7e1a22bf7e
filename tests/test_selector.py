"""Tests for linty.engine.selector — candidate enumeration and per-rule scope."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

import pytest

from linty.engine import selector as selector_mod
from linty.engine.rule_engine import RuleDefinition, Severity, compile_rule
from linty.engine.selector import (
    CandidateFile,
    SelectionOptions,
    canonical_path,
    in_scope,
    iter_candidates,
    resolve_paths,
)
from linty.errors import SelectionError

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from linty.engine.rule_engine import CompiledRule


def _no_git(_root: Path) -> None:
    return None


def _displays(root: Path, options: SelectionOptions, **kwargs: object) -> list[str]:
    errors: list[str] = []
    kwargs.setdefault("list_unignored", _no_git)
    return [
        c.display
        for c in iter_candidates(root, options, on_error=errors.append, **kwargs)  # type: ignore[arg-type]
    ]


def _rule(
    includes: tuple[str, ...] | None = None, excludes: tuple[str, ...] | None = None
) -> CompiledRule:
    return compile_rule(
        RuleDefinition(
            id="r",
            message="m",
            regex="x",
            severity=Severity.WARNING,
            includes=includes,
            excludes=excludes,
        )
    )


@pytest.fixture()
def tree(tmp_path: Path) -> Path:
    """Layout::

        a.txt
        b.md
        .hidden.txt
        .cache/x.txt
        src/c.py
        src/deep/d.py
        .git/config
    """
    root = tmp_path / "tree"
    (root / "src" / "deep").mkdir(parents=True)
    (root / ".cache").mkdir()
    (root / ".git").mkdir()
    (root / "a.txt").write_text("a")
    (root / "b.md").write_text("b")
    (root / ".hidden.txt").write_text("h")
    (root / ".cache" / "x.txt").write_text("x")
    (root / "src" / "c.py").write_text("c")
    (root / "src" / "deep" / "d.py").write_text("d")
    (root / ".git" / "config").write_text("[core]")
    return root


# ---------------------------------------------------------------------------
# TestIterCandidates
# ---------------------------------------------------------------------------


class TestIterCandidates:
    """Tests for iter_candidates() — the directory walk."""

    def test_default_skips_hidden(self, tree: Path) -> None:
        assert _displays(tree, SelectionOptions()) == [
            "a.txt",
            "b.md",
            "src/c.py",
            "src/deep/d.py",
        ]

    def test_include_hidden(self, tree: Path) -> None:
        shown = _displays(tree, SelectionOptions(include_hidden=True))
        assert ".hidden.txt" in shown
        assert ".cache/x.txt" in shown
        assert "a.txt" in shown

    def test_git_dir_always_skipped(self, tree: Path) -> None:
        shown = _displays(tree, SelectionOptions(include_hidden=True, include_ignored=True))
        assert not any(s.startswith(".git/") for s in shown)

    def test_never_yields_directories(self, tree: Path) -> None:
        shown = _displays(tree, SelectionOptions(include_hidden=True))
        assert "src" not in shown
        assert "src/deep" not in shown

    def test_vcs_ignored_files_skipped(self, tree: Path) -> None:
        root = tree.resolve()
        allowed = {root / "a.txt", root / "src" / "c.py"}
        shown = _displays(tree, SelectionOptions(), list_unignored=lambda _r: allowed)
        assert shown == ["a.txt", "src/c.py"]

    def test_listed_directory_admits_subtree(self, tree: Path) -> None:
        root = tree.resolve()
        allowed = {root / "a.txt", root / "src"}
        shown = _displays(tree, SelectionOptions(), list_unignored=lambda _r: allowed)
        assert shown == ["a.txt", "src/c.py", "src/deep/d.py"]

    def test_unlisted_directories_not_descended(
        self, tree: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        root = tree.resolve()
        (root / "node_modules" / "pkg").mkdir(parents=True)
        (root / "node_modules" / "pkg" / "index.js").write_text("x")
        allowed = {root / "a.txt", root / "src" / "c.py"}
        visited: set[str] = set()
        real_walk = os.walk

        def recording_walk(*args: Any, **kwargs: Any) -> Iterator[tuple[str, list[str], list[str]]]:
            for entry in real_walk(*args, **kwargs):
                visited.add(os.fspath(entry[0]))
                yield entry

        monkeypatch.setattr(selector_mod.os, "walk", recording_walk)
        shown = _displays(tree, SelectionOptions(), list_unignored=lambda _r: allowed)
        assert shown == ["a.txt", "src/c.py"]
        assert str(root / "src") in visited
        assert str(root / "node_modules") not in visited
        assert str(root / "src" / "deep") not in visited

    def test_include_ignored_does_not_consult_git(self, tree: Path) -> None:
        def _fail(_root: Path) -> set[Path]:
            msg = "git listing should not be requested"
            raise AssertionError(msg)

        shown = _displays(tree, SelectionOptions(include_ignored=True), list_unignored=_fail)
        assert len(shown) == 4

    def test_only_restricts_walk(self, tree: Path) -> None:
        only = resolve_paths([tree / "b.md", tree / "src" / "deep" / "d.py"])
        assert _displays(tree, SelectionOptions(only=only)) == ["b.md", "src/deep/d.py"]

    def test_only_does_not_add_hidden_files(self, tree: Path) -> None:
        only = resolve_paths([tree / ".hidden.txt"])
        assert _displays(tree, SelectionOptions(only=only)) == []

    def test_traversal_errors_reported_and_walk_continues(
        self, tree: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def fake_walk(top: str, onerror=None) -> Iterator[tuple[str, list[str], list[str]]]:  # noqa: ANN001
            onerror(PermissionError(13, "Permission denied", str(top) + "/locked"))
            yield str(top), [], ["a.txt"]

        monkeypatch.setattr(selector_mod.os, "walk", fake_walk)
        errors: list[str] = []
        shown = [
            c.display
            for c in iter_candidates(
                tree, SelectionOptions(), on_error=errors.append, list_unignored=_no_git
            )
        ]
        assert shown == ["a.txt"]
        assert len(errors) == 1
        assert "Permission denied" in errors[0]


# ---------------------------------------------------------------------------
# TestCandidateFile
# ---------------------------------------------------------------------------


class TestCandidateFile:
    """Tests for CandidateFile — lazy, read-once text buffer."""

    def test_reads_once(self, tmp_path: Path) -> None:
        path = tmp_path / "f.txt"
        path.write_text("first")
        candidate = CandidateFile(path=path, display="f.txt")
        assert candidate.read_text() == "first"
        path.write_text("second")
        assert candidate.read_text() == "first"

    def test_invalid_utf8_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "bin.dat"
        path.write_bytes(b"\xff\xfe\x00")
        with pytest.raises(UnicodeDecodeError):
            CandidateFile(path=path, display="bin.dat").read_text()

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            CandidateFile(path=tmp_path / "gone", display="gone").read_text()


# ---------------------------------------------------------------------------
# TestResolvePaths
# ---------------------------------------------------------------------------


class TestResolvePaths:
    """Tests for resolve_paths() — explicit path canonicalization."""

    def test_relative_to_base(self, tree: Path) -> None:
        resolved = resolve_paths(["a.txt", "src/c.py"], base=tree)
        assert resolved == frozenset(
            {canonical_path(tree / "a.txt"), canonical_path(tree / "src" / "c.py")}
        )

    def test_dot_segments_normalized(self, tree: Path) -> None:
        resolved = resolve_paths(["src/../a.txt"], base=tree)
        assert resolved == frozenset({tree.resolve() / "a.txt"})

    def test_missing_path_is_fatal(self, tree: Path) -> None:
        with pytest.raises(SelectionError, match="nope.txt"):
            resolve_paths(["nope.txt"], base=tree)


# ---------------------------------------------------------------------------
# TestInScope
# ---------------------------------------------------------------------------


class TestInScope:
    """Tests for in_scope() — include/exclude semantics."""

    @pytest.mark.parametrize("path", ["a.txt", "src/deep/d.py", ".env", "Makefile"])
    def test_no_filters_selects_everything(self, path: str) -> None:
        assert in_scope(_rule(), path)

    def test_include_restricts(self) -> None:
        rule = _rule(includes=("*.md",))
        assert in_scope(rule, "docs/readme.md")
        assert not in_scope(rule, "notes.txt")

    def test_exclude_only(self) -> None:
        rule = _rule(excludes=("vendor/**",))
        assert in_scope(rule, "src/a.py")
        assert not in_scope(rule, "vendor/lib.py")

    def test_exclude_wins_over_include(self) -> None:
        rule = _rule(includes=("*.py",), excludes=("*_test.py",))
        assert in_scope(rule, "pkg/mod.py")
        assert not in_scope(rule, "pkg/mod_test.py")

    def test_empty_include_list_is_unrestricted(self) -> None:
        assert in_scope(_rule(includes=()), "anything.bin")
