"""Markdown report writer with YAML frontmatter for finished analyses.

Renders an AnalysisRecord as one markdown document: run metadata in the
frontmatter, then one heading per section in pipeline order.  Sections that
never reached DONE are listed under their heading as still in progress, so
a partial run reads as partial.

Public API:
    render_report(record) -> str
    write_report(record, report_dir) -> Path
"""

from __future__ import annotations

import datetime
import logging
from pathlib import Path
from typing import Any

import frontmatter

from ideas_finder.analyzer.schemas import AnalysisRecord

logger = logging.getLogger(__name__)

SECTION_TITLES = {
    "likes": "What Users Like",
    "dislikes": "What Users Dislike or Want Changed",
    "recommendations": "Recommendations",
    "keywords": "Keywords",
    "definitely_include": "Features to Definitely Include",
    "backlog": "Backlog",
    "description": "Description",
    "app_names": "Name Ideas",
    "prp": "Product Requirements Prompt",
    "similar_apps": "Similar Apps",
    "competitors": "Competitors",
    "pricing_model": "Pricing Model",
    "market_viability": "Market Viability",
}

_IDEA_TITLES = {
    "likes": "What Customers Would Value",
    "dislikes": "Customer Challenges and Concerns",
}


def _render_value(key: str, value: Any) -> str:
    if key == "keywords" and isinstance(value, list):
        return ", ".join(str(v) for v in value)
    if key == "backlog" and isinstance(value, list):
        return "\n".join(
            f"{i}. [{item.get('priority', 'Medium')}] {item.get('content', '')}"
            for i, item in enumerate(value, start=1)
        )
    if key == "similar_apps" and isinstance(value, list):
        return "\n".join(
            f"- {app.get('track_name') or app.get('collection_name')}"
            f" ({app.get('formatted_price') or 'Free'},"
            f" {app.get('rating') or 'N/A'}★)"
            for app in value
        )
    if isinstance(value, list):
        return "\n".join(f"- {item}" for item in value)
    return str(value)


def render_report(record: AnalysisRecord) -> str:
    """Markdown document (frontmatter + body) for *record*."""
    titles = {**SECTION_TITLES, **(_IDEA_TITLES if record.domain == "idea" else {})}
    keys = list(record.statuses) or list(record.sections)

    body: list[str] = [f"# {record.subject_name}"]
    for key in keys:
        body.append(f"## {titles.get(key, key.replace('_', ' ').title())}")
        if key in record.sections:
            body.append(_render_value(key, record.sections[key]))
        else:
            body.append(f"_{record.statuses.get(key, 'PENDING')}_")

    post = frontmatter.Post("\n\n".join(body) + "\n")
    post.metadata["subject"] = record.subject_name
    post.metadata["subject_id"] = record.subject_id
    post.metadata["domain"] = record.domain
    post.metadata["share_slug"] = record.share_slug
    post.metadata["sentiment"] = record.sentiment
    post.metadata["review_count"] = record.review_count
    post.metadata["api_cost_usd"] = record.api_cost
    post.metadata["model_calls"] = record.call_count
    post.metadata["analysis_time_seconds"] = record.analysis_time_seconds
    post.metadata["manual_task_hours"] = record.manual_task_hours
    post.metadata["cached"] = record.cached
    post.metadata["statuses"] = dict(record.statuses)
    post.metadata["report_date"] = datetime.datetime.now(datetime.UTC).isoformat()
    return frontmatter.dumps(post)


def write_report(record: AnalysisRecord, report_dir: Path) -> Path:
    """Write *record* to ``<report_dir>/<domain>-<slug or subject id>.md``."""
    stem = record.share_slug or record.subject_id
    path = Path(report_dir) / f"{record.domain}-{stem}.md"
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        f.write(render_report(record))

    logger.info(
        "Wrote report for %s to %s (%d sections)",
        record.subject_name,
        path,
        len(record.sections),
    )
    return path
