"""Exception hierarchy shared by the config, engine and infrastructure layers."""

# linty:domain=core

from __future__ import annotations


class LintyError(Exception):
    """Base class for fatal linty errors (abort before or instead of a scan)."""


class ConfigError(LintyError):
    """Raised when the config file is missing, unparsable, or malformed."""


class RuleCompileError(LintyError):
    """Raised when a rule's regex or glob patterns cannot be compiled."""


class SelectionError(LintyError):
    """Raised when an explicitly requested path cannot be resolved."""


class GitError(LintyError):
    """Raised when listing staged files through git fails."""
