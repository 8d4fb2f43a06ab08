# File: site_mirror/report/__init__.py
"""site_mirror.report: JSON and HTML renderings of a MirrorReport, used by the CLI."""

from __future__ import annotations

from site_mirror.report.html_report import render_html
from site_mirror.report.json_report import render_json

__all__ = ["render_json", "render_html"]
