"""site_mirror.parser: HTML parsing helpers."""
