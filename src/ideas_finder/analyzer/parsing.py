"""Response parsers: semi-structured model prose -> typed section values.

Every parser is a pure function ``str -> ParseResult``.  A parser never
raises on odd model output: when the requested format is missing it either
falls back to a heuristic (``fallback_used=True``) or reports a ``failure``
reason with an empty value, so callers can tell "model followed the format"
from "heuristic engaged" from "nothing usable".
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ideas_finder.analyzer.types import (
    BacklogItem,
    ParseResult,
    Priority,
    RecommendationTier,
    SentimentSplit,
)

_BULLET_MARKERS = ("•", "-", "*")
_BULLET_PREFIX_RE = re.compile(r"^[•\-*]\s*")
_NUMBER_PREFIX_RE = re.compile(r"^\d+[.)]\s*")
_PRIORITY_TAG_RE = re.compile(r"\[(High|Medium|Low)\]", re.IGNORECASE)
_BACKLOG_LINE_RE = re.compile(r"^(\d+[.)]|\[(High|Medium|Low)\]|[•\-*])", re.IGNORECASE)
_RECOMMENDATION_RE = re.compile(r"^\[(CRITICAL|HIGH|MEDIUM)\]")

_TIER_ORDER = {tier.value: rank for rank, tier in enumerate(RecommendationTier)}


# ---------------------------------------------------------------------------
# Bullet lists
# ---------------------------------------------------------------------------

def _is_bullet(line: str) -> bool:
    return line.strip().startswith(_BULLET_MARKERS)


def _strip_bullet(line: str) -> str:
    return _BULLET_PREFIX_RE.sub("", line.strip()).strip()


def bullet_lines(text: str) -> list[str]:
    """Lines starting with a bullet marker, markers stripped, empties dropped.

    Horizontal rules (``---``, ``***``) are not bullets.
    """
    items = (_strip_bullet(line) for line in text.split("\n") if _is_bullet(line))
    return [item for item in items if item.strip("•-* ")]


def _heading_body(text: str, heading: str) -> str | None:
    """Body under a ``### <heading>`` line up to the next ``###`` or the end."""
    pattern = re.compile(
        r"###\s*" + heading + r"\s*\n([\s\S]*?)(?=###|$)", re.IGNORECASE
    )
    match = pattern.search(text)
    return match.group(1).strip() if match else None


def parse_bullet_section(text: str, *headings: str) -> ParseResult[list[str]]:
    """Bullets under the first matching heading pattern.

    Args:
        text: Model completion.
        headings: Regex fragments tried in order (``\\s+`` between words).

    Returns:
        The bullets, or an empty list with ``failure`` set when no heading
        matched.
    """
    for heading in headings:
        body = _heading_body(text, heading)
        if body is not None:
            return ParseResult(bullet_lines(body))
    return ParseResult([], failure="heading not found")


def parse_bullet_list(text: str) -> ParseResult[list[str]]:
    """Bullet-marked lines; plain non-empty lines when the model used none."""
    text = text.strip()
    if not text:
        return ParseResult([], failure="empty completion")
    items = bullet_lines(text)
    if items:
        return ParseResult(items)
    plain = [line.strip() for line in text.split("\n") if line.strip()]
    return ParseResult(plain, fallback_used=True)


def _half_lines(lines: list[str]) -> list[str]:
    bullets = bullet_lines("\n".join(lines))
    if bullets:
        return bullets
    return [
        line.strip() for line in lines
        if line.strip("•-* \t") and not line.strip().startswith("#")
    ]


def split_halves(text: str) -> tuple[list[str], list[str]]:
    """Heuristic likes/dislikes split: first half of lines, second half.

    Bullet lines are preferred within each half; a half with no bullets
    contributes its non-heading lines instead.
    """
    lines = text.split("\n")
    middle = len(lines) // 2
    return _half_lines(lines[:middle]), _half_lines(lines[middle:])


# ---------------------------------------------------------------------------
# Sentiment (first stage)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SentimentFormat:
    """Headings and placeholders for one domain's sentiment completion."""

    like_headings: tuple[str, ...]
    dislike_headings: tuple[str, ...]
    likes_placeholder: str
    dislikes_placeholder: str
    empty_summary: str


APP_SENTIMENT = SentimentFormat(
    like_headings=(r"What\s+Do\s+Users\s+Like\s+About\s+the\s+App",),
    dislike_headings=(
        r"What\s+Do\s+Users\s+Dislike\s+About\s+This\s+App\s+and\s+What\s+"
        r"Features\s+Do\s+They\s+Want\s+Added\s+or\s+Changed",
    ),
    likes_placeholder="No specific likes identified",
    dislikes_placeholder="No specific dislikes identified",
    empty_summary="Unable to analyze reviews.",
)

IDEA_SENTIMENT = SentimentFormat(
    like_headings=(
        r"What\s+Would\s+Customers\s+Value\s+About\s+This\s+Business\s+Idea",
        r"What\s+Do\s+Customers\s+Value",
        r"What\s+Customers\s+Would\s+Value",
    ),
    dislike_headings=(
        r"What\s+Challenges\s+or\s+Concerns\s+Might\s+Customers\s+Have",
        r"Challenges\s+or\s+Concerns",
    ),
    likes_placeholder="No specific value propositions identified",
    dislikes_placeholder="No specific concerns identified",
    empty_summary="Unable to analyze business idea.",
)


def sentiment_label(like_count: int, dislike_count: int) -> str:
    """Overall label: a side wins only when it has more than twice the other."""
    if like_count > dislike_count * 2:
        return "Mostly Positive"
    if dislike_count > like_count * 2:
        return "Mostly Negative"
    return "Mixed"


def parse_sentiment(text: str, fmt: SentimentFormat) -> ParseResult[SentimentSplit]:
    """Parse the likes/dislikes completion.

    Never fails: a missing heading engages the half-split heuristic for that
    side, an empty side gets a one-element placeholder list, and an empty
    completion yields only placeholders with ``fmt.empty_summary``.
    """
    summary = text.strip()
    if not summary:
        return ParseResult(
            SentimentSplit(
                likes=[fmt.likes_placeholder],
                dislikes=[fmt.dislikes_placeholder],
                summary=fmt.empty_summary,
                label=sentiment_label(0, 0),
            ),
            fallback_used=True,
        )

    first_half, second_half = split_halves(summary)
    fallback_used = False

    likes = parse_bullet_section(summary, *fmt.like_headings)
    if likes.ok:
        like_items = likes.value
    else:
        like_items = first_half
        fallback_used = True

    dislikes = parse_bullet_section(summary, *fmt.dislike_headings)
    if dislikes.ok:
        dislike_items = dislikes.value
    else:
        dislike_items = second_half
        fallback_used = True

    return ParseResult(
        SentimentSplit(
            likes=like_items or [fmt.likes_placeholder],
            dislikes=dislike_items or [fmt.dislikes_placeholder],
            summary=summary,
            label=sentiment_label(len(like_items), len(dislike_items)),
        ),
        fallback_used=fallback_used,
    )


# ---------------------------------------------------------------------------
# Structured sections
# ---------------------------------------------------------------------------

def parse_comma_list(text: str) -> ParseResult[list[str]]:
    """Comma-separated values, trimmed, empties dropped (keywords)."""
    items = [part.strip() for part in text.split(",")]
    items = [item for item in items if item]
    if not items:
        return ParseResult([], failure="empty completion")
    return ParseResult(items)


def parse_name_lines(text: str) -> ParseResult[list[str]]:
    """One name per line; stray bullets and numbering are stripped."""
    names = []
    for line in text.split("\n"):
        name = _NUMBER_PREFIX_RE.sub("", _strip_bullet(line)).strip()
        if name:
            names.append(name)
    if not names:
        return ParseResult([], failure="empty completion")
    return ParseResult(names)


def parse_backlog_line(line: str) -> BacklogItem | None:
    """``N. [Priority] text`` -> BacklogItem; None when no content remains."""
    match = _PRIORITY_TAG_RE.search(line)
    priority = Priority(match.group(1).capitalize()) if match else Priority.MEDIUM

    content = _NUMBER_PREFIX_RE.sub("", _strip_bullet(line))
    content = re.sub(r"^\[(High|Medium|Low)\]\s*", "", content, flags=re.IGNORECASE)
    content = content.strip()
    if not content.strip("•-* "):
        return None
    return BacklogItem(content=content, priority=priority)


def parse_backlog(text: str) -> ParseResult[list[BacklogItem]]:
    """Prioritized backlog items.

    Numbered, tagged or bulleted lines are items; untagged items default to
    Medium.  When the model used none of those markers, every non-empty
    line becomes an item and ``fallback_used`` is set.
    """
    lines = [line.strip() for line in text.split("\n") if line.strip()]
    if not lines:
        return ParseResult([], failure="empty completion")

    candidates = [line for line in lines if _BACKLOG_LINE_RE.match(line)]
    fallback_used = not candidates
    items = [parse_backlog_line(line) for line in (candidates or lines)]
    items = [item for item in items if item is not None]
    if not items:
        return ParseResult([], failure="no backlog items")
    return ParseResult(items, fallback_used=fallback_used)


def sort_recommendations(recommendations: list[str]) -> list[str]:
    """Stable sort by tier: CRITICAL, then HIGH, then MEDIUM."""
    def tier_rank(rec: str) -> int:
        match = _RECOMMENDATION_RE.match(rec)
        return _TIER_ORDER[match.group(1)] if match else len(_TIER_ORDER)

    return sorted(recommendations, key=tier_rank)


def parse_recommendations(text: str) -> ParseResult[list[str]]:
    """Only ``[CRITICAL]``/``[HIGH]``/``[MEDIUM]`` lines survive, tier-sorted."""
    kept = [
        line.strip() for line in text.split("\n")
        if _RECOMMENDATION_RE.match(line.strip())
    ]
    if not kept:
        return ParseResult([], failure="no tagged recommendation lines")
    return ParseResult(sort_recommendations(kept))


def parse_free_text(text: str) -> ParseResult[str]:
    """The trimmed completion itself."""
    value = text.strip()
    if not value:
        return ParseResult("", failure="empty completion")
    return ParseResult(value)


# ---------------------------------------------------------------------------
# Local (no model call) recommendations for app analyses
# ---------------------------------------------------------------------------

_DISLIKE_RULES: tuple[tuple[re.Pattern[str], str, str], ...] = (
    (re.compile(r"\b(bug|crash|error)"), "Stability",
     "Fix bugs and improve app stability"),
    (re.compile(r"\b(slow|performance)"), "Performance",
     "Optimize app performance and speed"),
    (re.compile(r"\b(expensive|price|pricing|cost)"), "Pricing",
     "Review pricing strategy and offer more affordable options"),
    (re.compile(r"\b(interface|ui|design)\b"), "Design",
     "Improve user interface and design"),
    (re.compile(r"\b(feature|functionality)"), "Features",
     "Add missing features and functionality"),
    (re.compile(r"\b(support|help)"), "Support",
     "Enhance customer support and help system"),
)

_GENERIC_RECOMMENDATIONS = (
    ("Quality", "Continue improving overall app quality"),
    ("Experience", "Maintain current positive user experience"),
    ("Feedback", "Regular user feedback collection and implementation"),
)


def derive_recommendations(dislikes: list[str], minimum: int = 3) -> list[str]:
    """Recommendations from keyword rules over the dislikes, padded to *minimum*.

    Rule hits are tagged ``[HIGH]``; generic padding is tagged ``[MEDIUM]``.
    Padding picks the generic recommendation at the current list position,
    so one rule hit is followed by the second and third generic entries.
    """
    joined = " ".join(dislikes).lower()
    recommendations = [
        f"[HIGH] {title}: {sentence}."
        for pattern, title, sentence in _DISLIKE_RULES
        if pattern.search(joined)
    ]
    while len(recommendations) < min(minimum, len(_GENERIC_RECOMMENDATIONS)):
        title, sentence = _GENERIC_RECOMMENDATIONS[len(recommendations)]
        recommendations.append(f"[MEDIUM] {title}: {sentence}.")
    return recommendations
