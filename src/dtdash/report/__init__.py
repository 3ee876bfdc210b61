"""Markdown dashboard generation from cached status records."""

from dtdash.report.site import load_records, natural_key, render_site, write_site

__all__ = [
    "load_records",
    "natural_key",
    "render_site",
    "write_site",
]
