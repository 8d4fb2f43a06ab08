# site_mirror/report/json_report.py

"""
JSON report generation for SiteMirror.

Serializes a MirrorReport to a file.
"""
from pathlib import Path

from site_mirror.aggregator import MirrorReport


def render_json(report: MirrorReport, output_path: Path | str, *, pretty: bool = True) -> Path:
    """
    Save *report* as JSON at *output_path*.

    :param report: MirrorReport of a finished run
    :param output_path: path of the JSON file
    :param pretty: indent the output by two spaces
    :return: Path of the saved file

    Example:
    ```python
    from site_mirror.report.json_report import render_json
    report_path = render_json(report, 'reports/mirror.json')
    print(f"JSON report saved to: {report_path}")
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(report.json(pretty=pretty), encoding='utf-8')
    return output
