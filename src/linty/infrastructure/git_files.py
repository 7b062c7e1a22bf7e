"""Git file listings: staged files and the set of files git does not ignore.

Both listings shell out to ``git`` and return canonical absolute paths so they
can be compared directly against walked candidates.
"""

# linty:domain=infrastructure

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from linty.errors import GitError

logger = logging.getLogger(__name__)

_GIT_TIMEOUT = 30


def _run_git(args: list[str], cwd: Path) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        ["git", *args],  # noqa: S607
        cwd=str(cwd),
        capture_output=True,
        text=True,
        timeout=_GIT_TIMEOUT,
    )


def _repo_toplevel(cwd: Path) -> Path | None:
    """Return the work-tree root containing *cwd*, or None outside a repo."""
    try:
        result = _run_git(["rev-parse", "--show-toplevel"], cwd)
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    return Path(result.stdout.strip())


def _resolve_listing(output: str, toplevel: Path) -> set[Path]:
    return {toplevel / entry for entry in output.split("\0") if entry}


def staged_files(cwd: Path) -> list[Path]:
    """List files staged for the next commit.

    Runs ``git diff --name-only --cached`` from the repository top level.
    Raises ``GitError`` when git is unavailable, *cwd* is not inside a work
    tree, or the command fails.
    """
    toplevel = _repo_toplevel(cwd)
    if toplevel is None:
        msg = f"Cannot list staged files: {cwd} is not inside a git repository"
        raise GitError(msg)

    try:
        result = _run_git(["diff", "--name-only", "--cached", "-z"], toplevel)
    except (FileNotFoundError, subprocess.TimeoutExpired) as exc:
        msg = f"Cannot list staged files: {exc}"
        raise GitError(msg) from exc

    if result.returncode != 0:
        msg = f"git diff --cached failed: {result.stderr.strip()}"
        raise GitError(msg)

    paths = sorted(_resolve_listing(result.stdout, toplevel))
    logger.debug("git reports %d staged files", len(paths))
    return paths


def unignored_files(cwd: Path) -> set[Path] | None:
    """Return every tracked or untracked-but-not-ignored file under the repo.

    Submodules and nested repositories appear as a single directory entry;
    callers treat such an entry as admitting its whole subtree.

    Returns None when git is unavailable or *cwd* is not inside a work tree;
    callers then apply no VCS ignore filtering at all.
    """
    toplevel = _repo_toplevel(cwd)
    if toplevel is None:
        logger.debug("%s is not inside a git work tree; ignore rules not applied", cwd)
        return None

    try:
        result = _run_git(
            ["ls-files", "-z", "--cached", "--others", "--exclude-standard"],
            toplevel,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None

    if result.returncode != 0:
        logger.debug("git ls-files failed: %s", result.stderr.strip())
        return None

    return _resolve_listing(result.stdout, toplevel)
