"""httpx-based client for the public iTunes lookup, search, and review feeds.

Lookup and search are single calls wrapped in tenacity retry for transient
HTTP errors.  Review pagination deliberately does NOT retry: the first page
that fails, is empty, or cannot be parsed ends pagination and whatever was
accumulated so far is returned.

All public functions return data, ``None``, or an empty list -- they never
raise on network/parse errors so the caller decides whether a missing
subject is fatal.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from typing import Any

import httpx
from pydantic import ValidationError
from tenacity import (
    RetryError,
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random_exponential,
)

from ideas_finder.config.settings import StoreSettings
from ideas_finder.fetcher.models import AppMeta, Review

logger = logging.getLogger(__name__)

_APP_ID_RE = re.compile(r"id(\d+)")

# Description words too generic to make useful App Store search terms.
_STOP_WORDS = frozenset({
    "this", "that", "with", "from", "they", "have", "been", "will", "were",
    "said", "each", "which", "their", "time", "would", "there", "could",
    "other", "after", "first", "well", "also", "where", "much", "some",
    "very", "when", "here", "just", "into", "your", "work", "life", "only",
    "over", "think", "back", "even", "before", "move", "right", "being",
    "good", "make", "most", "useful", "great", "best", "help", "easy",
    "simple", "new", "app", "apps",
})


# ---------------------------------------------------------------------------
# Retry-wrapped fetch function (lookup + search only)
# ---------------------------------------------------------------------------

@retry(
    stop=stop_after_attempt(3),
    wait=wait_random_exponential(multiplier=1, min=1, max=10),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    retry=retry_if_exception_type(
        (httpx.HTTPStatusError, httpx.TimeoutException, httpx.ConnectError)
    ),
)
def _fetch_json(client: httpx.Client, url: str, params: dict[str, Any]) -> dict:
    """GET *url* with *params* and return the parsed JSON body."""
    response = client.get(url, params=params)
    response.raise_for_status()
    return response.json()


def _fetch_json_with_retries(
    client: httpx.Client, url: str, params: dict[str, Any], retries: int
) -> dict | None:
    """Call :func:`_fetch_json` with ``retries`` extra attempts; None on failure."""
    fetch = _fetch_json.retry_with(stop=stop_after_attempt(max(retries, 0) + 1))
    try:
        return fetch(client, url, params)
    except (RetryError, httpx.HTTPError, ValueError) as exc:
        logger.warning("Request to %s failed: %s", url, exc)
        return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract_app_id(raw_input: str) -> str:
    """Pull a numeric App Store id out of a bare id or an App Store URL.

    ``"1234"`` -> ``"1234"``; ``"https://apps.apple.com/us/app/x/id1234"``
    -> ``"1234"``; anything else -> ``""``.
    """
    if not raw_input:
        return ""
    raw_input = raw_input.strip()
    if raw_input.isdigit():
        return raw_input
    match = _APP_ID_RE.search(raw_input)
    return match.group(1) if match else ""


def lookup_app(
    client: httpx.Client, app_id: str, settings: StoreSettings
) -> AppMeta | None:
    """Resolve *app_id* to its App Store metadata with a single lookup call.

    Returns:
        The AppMeta, or None if the id does not resolve or the call fails.
    """
    data = _fetch_json_with_retries(
        client,
        settings.lookup_url,
        {"id": app_id, "country": settings.country},
        settings.lookup_retries,
    )
    if not data or not data.get("resultCount") or not data.get("results"):
        logger.info("App %s not found via lookup", app_id)
        return None

    try:
        meta = AppMeta.model_validate(data["results"][0])
    except ValidationError:
        logger.warning("App %s lookup returned an unusable record", app_id, exc_info=True)
        return None

    logger.info("Resolved app %s: %s by %s", app_id, meta.name, meta.developer)
    return meta


def _entry_label(entry: dict[str, Any], *path: str) -> str:
    node: Any = entry
    for key in path:
        if not isinstance(node, dict):
            return ""
        node = node.get(key)
    if isinstance(node, dict):
        node = node.get("label")
    return str(node) if node is not None else ""


def _parse_review_page(data: dict[str, Any]) -> list[Review]:
    """Turn one RSS feed page into reviews (the first entry is app metadata)."""
    feed = data.get("feed") or {}
    entries = feed.get("entry")
    if not entries:
        return []
    if not isinstance(entries, list):
        entries = [entries]

    return [
        Review(
            title=_entry_label(e, "title"),
            author=_entry_label(e, "author", "name"),
            rating=_entry_label(e, "im:rating"),
            date=_entry_label(e, "updated"),
            text=_entry_label(e, "content"),
        )
        for e in entries[1:]
        if isinstance(e, dict)
    ]


def fetch_all_reviews(
    client: httpx.Client, app_id: str, settings: StoreSettings
) -> list[Review]:
    """Fetch every review page for *app_id* until an empty page or the ceiling.

    Pages are requested in order starting at 1.  Pagination stops at the
    first page with zero entries, at ``settings.max_review_pages``, or at the
    first failed request (partial results are returned, not an error).
    """
    reviews: list[Review] = []

    for page in range(1, settings.max_review_pages + 1):
        url = settings.reviews_url_template.format(
            country=settings.country,
            page=page,
            sort=settings.review_sort,
            app_id=app_id,
        )
        try:
            response = client.get(url)
            response.raise_for_status()
            page_reviews = _parse_review_page(response.json())
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(
                "Review page %d for app %s failed, stopping pagination: %s",
                page,
                app_id,
                exc,
            )
            break

        if not page_reviews:
            logger.debug("Review page %d for app %s is empty", page, app_id)
            break

        reviews.extend(page_reviews)
        logger.debug(
            "Review page %d for app %s: %d reviews (%d total)",
            page,
            app_id,
            len(page_reviews),
            len(reviews),
        )

    logger.info("Fetched %d reviews for app %s", len(reviews), app_id)
    return reviews


def search_apps(
    client: httpx.Client, term: str, settings: StoreSettings, limit: int = 10
) -> list[AppMeta]:
    """Search the App Store for software matching *term*.

    Terms shorter than two characters are not searched.  Records that fail
    validation are skipped individually.
    """
    if not term or len(term.strip()) < 2:
        return []

    data = _fetch_json_with_retries(
        client,
        settings.search_url,
        {
            "term": term,
            "country": settings.country,
            "entity": "software",
            "limit": limit,
        },
        settings.lookup_retries,
    )
    if not data:
        return []

    results: list[AppMeta] = []
    for item in data.get("results") or []:
        try:
            results.append(AppMeta.model_validate(item))
        except ValidationError:
            logger.debug("Skipping unusable search result for %r", term)
    return results


def extract_search_terms(app_name: str, description: str, limit: int = 8) -> list[str]:
    """Derive App Store search terms from an app's name and description.

    Terms, in order: the full name, the name's words longer than two
    characters, then the five most frequent description words longer than
    three characters that are not stop words.  Duplicates are removed
    (first occurrence wins) and the list is capped at *limit*.
    """
    terms: list[str] = []

    if app_name:
        terms.append(app_name)
        terms.extend(w for w in app_name.lower().split() if len(w) > 2)

    if description:
        words = re.sub(r"[^\w\s]", " ", description.lower()).split()
        counts = Counter(
            w for w in words if len(w) > 3 and w not in _STOP_WORDS
        )
        terms.extend(word for word, _ in counts.most_common(5))

    return list(dict.fromkeys(terms))[:limit]


def find_similar_apps(
    client: httpx.Client, subject: AppMeta, settings: StoreSettings
) -> list[AppMeta]:
    """Collect up to ``similar_apps_limit`` distinct apps similar to *subject*.

    Searches each extracted term in order, skipping the subject itself and
    apps already collected, and stops as soon as the limit is reached.
    """
    terms = extract_search_terms(
        subject.track_name or subject.collection_name or "",
        subject.description,
        settings.search_terms_limit,
    )
    logger.debug("Similar-app search terms for %s: %s", subject.track_id, terms)

    similar: list[AppMeta] = []
    seen: set[int] = {subject.track_id}

    for term in terms:
        for app in search_apps(client, term, settings, settings.search_results_per_term):
            if app.track_id in seen:
                continue
            seen.add(app.track_id)
            similar.append(app)
            if len(similar) >= settings.similar_apps_limit:
                break
        if len(similar) >= settings.similar_apps_limit:
            break

    logger.info("Found %d similar apps for %s", len(similar), subject.name)
    return similar[: settings.similar_apps_limit]
