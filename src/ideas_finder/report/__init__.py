"""Report export -- markdown with YAML frontmatter."""

from .markdown import render_report, write_report

__all__ = ["render_report", "write_report"]
