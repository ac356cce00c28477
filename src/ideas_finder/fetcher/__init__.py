"""Source fetcher -- resolves an analysis subject and its raw corpus.

Public API
----------
fetch_app(client, app_id, settings) -> FetchedApp | None
    Single lookup call, then review pagination.  ``None`` means the id did
    not resolve; the caller must halt before any paid model call.

idea_corpus(subject) -> str
    For business ideas the free-text idea *is* the corpus.

Lower-level helpers (``lookup_app``, ``fetch_all_reviews``, ``search_apps``,
``find_similar_apps``, ``extract_app_id``) are re-exported for the run
service and the similar-apps stage.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import httpx

from ideas_finder.config.settings import StoreSettings
from ideas_finder.fetcher.itunes_client import (
    extract_app_id,
    extract_search_terms,
    fetch_all_reviews,
    find_similar_apps,
    lookup_app,
    search_apps,
)
from ideas_finder.fetcher.models import AppMeta, IdeaSubject, Review

logger = logging.getLogger(__name__)

# Separator between reviews in the sentiment-stage corpus.
CORPUS_SEPARATOR = "\n\n---\n\n"

# The public review feed stops serving around 500 reviews per app.
REVIEW_FEED_LIMIT = 490

__all__ = [
    "AppMeta",
    "CORPUS_SEPARATOR",
    "FetchedApp",
    "REVIEW_FEED_LIMIT",
    "IdeaSubject",
    "Review",
    "extract_app_id",
    "extract_search_terms",
    "fetch_all_reviews",
    "fetch_app",
    "find_similar_apps",
    "idea_corpus",
    "lookup_app",
    "search_apps",
]


@dataclass
class FetchedApp:
    """A resolved app plus every review fetched for it."""

    meta: AppMeta
    reviews: list[Review] = field(default_factory=list)

    @property
    def corpus(self) -> str:
        """All reviews joined into the single sentiment-stage corpus."""
        return CORPUS_SEPARATOR.join(r.as_corpus_entry() for r in self.reviews)


def fetch_app(
    client: httpx.Client, app_id: str, settings: StoreSettings
) -> FetchedApp | None:
    """Resolve *app_id* and fetch its reviews.

    Returns None when the lookup does not resolve.  An app with zero reviews
    is still returned; the run service decides what to do with it.
    """
    meta = lookup_app(client, app_id, settings)
    if meta is None:
        return None

    reviews = fetch_all_reviews(client, app_id, settings)
    if len(reviews) >= REVIEW_FEED_LIMIT:
        logger.info(
            "App %s: %d reviews fetched (review feed limit reached)",
            app_id,
            len(reviews),
        )
    return FetchedApp(meta=meta, reviews=reviews)


def idea_corpus(subject: IdeaSubject) -> str:
    """Return the corpus for a business idea (the idea text itself)."""
    return subject.idea
