# === FILE: site_mirror/cli.py ===
#!/usr/bin/env python3
"""
Command-line entry point of SiteMirror.

Commands:
  mirror    Discover the site and mirror every page with its assets
  discover  Only discover in-site pages and print their URLs
  config    Show the effective configuration

Global options:
  --config PATH       YAML/JSON config (default: configs/default.yaml when present)
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Log file (stderr only when omitted)
  --log-format FORMAT Logging format string

Run options (mirror, discover, config) override the config file:
  --root-url URL, --output DIR, --parallel N, --max-requests N,
  --retries N, --timeout SEC, --rewrite-links/--keep-links

Example:
  site-mirror mirror --root-url https://books.toscrape.com/ -o ./DownloadOutput --json report.json
"""
import asyncio
import json
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from site_mirror import __version__
from site_mirror.config import build_config
from site_mirror.engine import start_discovery, start_mirror
from site_mirror.logger import init_logging
from site_mirror.report.html_report import render_html
from site_mirror.report.json_report import render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


_RUN_OPTIONS = (
    click.option('--root-url', '-u', 'root_url', default=None, help='Root URL: crawl origin and mirror scope.'),
    click.option(
        '--output', '-o', 'output_directory',
        default=None,
        type=click.Path(file_okay=False, path_type=Path),
        help='Mirror destination directory.'
    ),
    click.option('--parallel', 'max_parallel_activities', type=int, default=None, help='Worker tasks per phase.'),
    click.option(
        '--max-requests', 'max_concurrent_requests', type=int, default=None,
        help='Simultaneous requests across all workers.'
    ),
    click.option('--retries', 'max_retries', type=int, default=None, help='Attempts per request (timeouts only).'),
    click.option('--timeout', 'per_request_timeout', type=float, default=None, help='Per-attempt timeout (seconds).'),
    click.option(
        '--rewrite-links/--keep-links', 'rewrite_links', default=None,
        help='Rewrite in-site links of saved pages to local relative paths.'
    ),
)


def run_options(func):
    for option in reversed(_RUN_OPTIONS):
        func = option(func)
    return func


def _load(ctx, overrides):
    try:
        return build_config(ctx.obj['config_path'], **overrides)
    except (ValidationError, OSError, ValueError, TypeError) as e:
        print_error(f'Failed to load configuration: {e}')


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteMirror, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Path to a YAML or JSON config file.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Logging level'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Log file (stderr only when omitted)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Logging format string'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """SiteMirror command group."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path


@cli.command('mirror', context_settings=CONTEXT_SETTINGS)
@run_options
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save a JSON run report to this file'
)
@click.option(
    '--html', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save an HTML run report to this file'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Directory with a custom report.html.j2'
)
@click.option('--no-progress', is_flag=True, help='Do not draw the progress line')
@click.option('--run-timeout', 'run_timeout', type=float, default=None, help='Timeout of the whole run (seconds)')
@click.pass_context
def mirror(ctx, json_output, html_output, template_dir, no_progress, run_timeout, **overrides):
    """Discover the site and mirror it to disk."""
    cfg = _load(ctx, overrides)
    click.echo(f'Mirroring {cfg.root} into {cfg.output_directory}')
    try:
        coro = start_mirror(cfg, show_progress=not no_progress)
        if run_timeout:
            report = asyncio.run(asyncio.wait_for(coro, timeout=run_timeout))
        else:
            report = asyncio.run(coro)
    except asyncio.TimeoutError:
        print_error(f'Mirroring did not finish within {run_timeout} seconds')
    except Exception as e:
        print_error(f'Mirroring failed: {e}')

    summary = report.summary()
    click.echo(
        'Done: {discovered} discovered, {pages_written} pages written, {pages_skipped} skipped, '
        '{pages_failed} failed; {assets_written} assets written'.format(**summary)
    )

    if json_output:
        try:
            click.echo(f'JSON report: {render_json(report, json_output)}')
        except OSError as e:
            print_error(f'Failed to save JSON report: {e}')

    if html_output:
        try:
            click.echo(f'HTML report: {render_html(report, html_output, template_dir)}')
        except Exception as e:
            print_error(f'Failed to save HTML report: {e}')


@cli.command('discover', context_settings=CONTEXT_SETTINGS)
@run_options
@click.option('--json-output', 'as_json', is_flag=True, help='Print a JSON array instead of one URL per line')
@click.option('--no-progress', is_flag=True, help='Do not draw the progress line')
@click.pass_context
def discover(ctx, as_json, no_progress, **overrides):
    """Discover in-site pages without downloading assets."""
    cfg = _load(ctx, overrides)
    try:
        urls = asyncio.run(start_discovery(cfg, show_progress=not no_progress))
    except Exception as e:
        print_error(f'Discovery failed: {e}')

    if as_json:
        click.echo(json.dumps(urls, ensure_ascii=False, indent=2))
        return
    for url in urls:
        click.echo(url)


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@run_options
@click.pass_context
def show_config(ctx, **overrides):
    """Show the effective configuration as JSON."""
    cfg = _load(ctx, overrides)
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()
