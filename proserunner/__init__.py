"""proserunner: an incremental prose linter."""

__version__ = "0.1.0"
