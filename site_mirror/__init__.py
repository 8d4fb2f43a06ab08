# site_mirror/__init__.py
"""
SiteMirror package initializer.
Defines the package version and exposes the CLI.
"""
__version__ = "0.1.0"

# Expose CLI entry point
from site_mirror.cli import cli  # noqa: E402

__all__ = ["__version__", "cli"]
