"""Infrastructure domain: git-backed file listings."""

from linty.infrastructure.git_files import staged_files, unignored_files

__all__ = [
    "staged_files",
    "unignored_files",
]
