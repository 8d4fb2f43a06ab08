"""site_mirror.crawler: fetch gate, frontier and the two worker pools."""
