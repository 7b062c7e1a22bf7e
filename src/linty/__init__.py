"""linty - simple, language-agnostic regex linter."""

__version__ = "0.5.0"
