# linty:domain=engine
"""File selection: enumerate candidate files and decide per-rule scope."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from linty.errors import SelectionError
from linty.infrastructure.git_files import unignored_files

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator

    from linty.engine.rule_engine import CompiledRule

logger = logging.getLogger(__name__)

# Directories never descended into, regardless of the hidden/ignored switches.
ALWAYS_SKIP_DIRS: frozenset[str] = frozenset({".git"})

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SelectionOptions:
    """Switches controlling which files the walk visits.

    ``only`` holds canonical paths; when set, walked files outside it are
    skipped (explicit file arguments or staged files).
    """

    include_ignored: bool = False
    include_hidden: bool = False
    only: frozenset[Path] | None = None


@dataclass
class CandidateFile:
    """A visited file with a lazily-read, cached text buffer."""

    path: Path
    display: str
    _text: str | None = field(default=None, repr=False)

    def read_text(self) -> str:
        """Read and decode the file once; later calls return the cached text.

        Raises ``OSError`` or ``UnicodeDecodeError`` on failure.
        """
        if self._text is None:
            self._text = self.path.read_bytes().decode("utf-8")
        return self._text


# ---------------------------------------------------------------------------
# Explicit paths
# ---------------------------------------------------------------------------


def canonical_path(path: Path) -> Path:
    """Absolute path with symlinked directories resolved but the final name kept."""
    absolute = path if path.is_absolute() else Path.cwd() / path
    if absolute.name in ("", ".", ".."):
        return absolute.resolve()
    return absolute.parent.resolve() / absolute.name


def resolve_paths(paths: Iterable[Path | str], *, base: Path | None = None) -> frozenset[Path]:
    """Canonicalize explicitly requested paths.

    Relative paths are taken relative to *base* (default: the current
    directory).  Raises ``SelectionError`` for a path that does not exist.
    """
    base_dir = base or Path.cwd()
    resolved: set[Path] = set()
    for raw in paths:
        path = Path(raw)
        if not path.is_absolute():
            path = base_dir / path
        if not (path.exists() or path.is_symlink()):
            msg = f"Cannot resolve path: {raw}"
            raise SelectionError(msg)
        resolved.add(canonical_path(path))
    return frozenset(resolved)


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def _within(path: Path, allowed: set[Path]) -> bool:
    """True if *path* or one of its ancestors is listed in *allowed*.

    Git lists a submodule or a nested repository as a single directory
    entry; everything beneath such an entry is admitted.
    """
    return path in allowed or any(parent in allowed for parent in path.parents)


def _listed_ancestors(allowed: set[Path]) -> set[Path]:
    """Every directory that contains at least one allowed entry."""
    ancestors: set[Path] = set()
    for path in allowed:
        ancestors.update(path.parents)
    return ancestors


def iter_candidates(
    root: Path,
    options: SelectionOptions,
    *,
    on_error: Callable[[str], None],
    list_unignored: Callable[[Path], set[Path] | None] = unignored_files,
) -> Iterator[CandidateFile]:
    """Walk *root* depth-first in sorted order, yielding every eligible file.

    Directories are never yielded.  Directories holding nothing git lists are
    not descended into.  Traversal errors are passed to *on_error* and the
    walk continues with the remaining entries.
    """
    root = root.resolve()
    allowed: set[Path] | None = None
    ancestors: set[Path] = set()
    if not options.include_ignored:
        allowed = list_unignored(root)
        if allowed is not None:
            ancestors = _listed_ancestors(allowed)

    def _walk_error(exc: OSError) -> None:
        on_error(f"Error: {exc}")

    def _keep_dir(current: Path, name: str) -> bool:
        if name in ALWAYS_SKIP_DIRS:
            return False
        if not options.include_hidden and _is_hidden(name):
            return False
        if allowed is None:
            return True
        path = current / name
        if path in ancestors or _within(path, allowed):
            return True
        logger.debug("Skipping VCS-ignored directory %s", path)
        return False

    for dirpath, dirnames, filenames in os.walk(root, onerror=_walk_error):
        current = Path(dirpath)
        dirnames[:] = sorted(d for d in dirnames if _keep_dir(current, d))
        for name in sorted(filenames):
            if not options.include_hidden and _is_hidden(name):
                continue
            path = current / name
            if allowed is not None and not _within(path, allowed):
                logger.debug("Skipping VCS-ignored file %s", path)
                continue
            if options.only is not None and path not in options.only:
                continue
            yield CandidateFile(path=path, display=path.relative_to(root).as_posix())


# ---------------------------------------------------------------------------
# Scope
# ---------------------------------------------------------------------------


def in_scope(rule: CompiledRule, path: str) -> bool:
    """Return True if *rule* applies to the file at display *path*.

    Exclusion wins over inclusion; an empty include set admits every file.
    """
    if rule.excludes.is_match(path):
        return False
    return rule.includes.is_empty() or rule.includes.is_match(path)
