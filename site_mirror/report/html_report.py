# File: site_mirror/report/html_report.py
"""site_mirror.report.html_report: HTML report rendered with Jinja2."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional, Union

from jinja2 import BaseLoader, Environment, FileSystemLoader, PackageLoader, select_autoescape

from site_mirror.aggregator import MirrorReport
from site_mirror.mirror_path import mirror_target

TEMPLATE_NAME = "report.html.j2"


def _loader(template_dir: Optional[Union[Path, str]]) -> BaseLoader:
    if template_dir is None:
        return PackageLoader("site_mirror", "templates")
    return FileSystemLoader(str(template_dir))


def render_html(
    report: MirrorReport,
    output_path: Union[Path, str],
    template_dir: Optional[Union[Path, str]] = None,
) -> Path:
    """Render the HTML report and save it at *output_path*.

    Args:
        report: MirrorReport of a finished run.
        output_path: path of the resulting HTML file.
        template_dir: directory holding ``report.html.j2``; the template
            shipped with the package is used when omitted.

    Returns:
        Path of the saved HTML file.

    Every written page is linked to its local copy, relative to the report
    file, so the report doubles as an index of the mirror.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    env = Environment(loader=_loader(template_dir), autoescape=select_autoescape(["html", "xml", "j2"]))
    template = env.get_template(TEMPLATE_NAME)

    output_dir = Path(report.output_directory or ".")
    pages = [
        {
            "url": url,
            "local": Path(
                os.path.relpath(mirror_target(url, report.root_url).under(output_dir), output_path.parent)
            ).as_posix(),
        }
        for url in sorted(report.pages_written + report.pages_skipped)
    ]
    context: dict[str, Any] = {
        "root_url": report.root_url,
        "output_directory": report.output_directory,
        "summary": report.summary(),
        "pages": pages,
        "assets": sorted(report.assets_written),
        "failures": report.failures,
        "elapsed": report.elapsed,
    }

    output_path.write_text(template.render(**context), encoding="utf-8")
    return output_path
