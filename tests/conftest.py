"""Shared test helpers."""

import logging

import pytest

from ideas_finder.analyzer.client import CompletionResult
from ideas_finder.analyzer.schemas import Usage


APP_SENTIMENT_TEXT = """Here is the summary.

### What Do Users Like About the App
• Fast sync across devices
• Clean layout

### What Do Users Dislike About This App and What Features Do They Want Added or Changed
• Crashes on startup after the last update
• Too expensive for what it offers
"""

IDEA_SENTIMENT_TEXT = """### What Would Customers Value About This Business Idea
• Saves time planning meals
• Local ingredients

### What Challenges or Concerns Might Customers Have
• Price compared to grocery stores
"""


class FakeModelClient:
    """Returns canned completions in order and records every prompt.

    A response that is an Exception instance is raised instead of returned.
    Once the list is exhausted, ``default`` is returned.
    """

    def __init__(self, responses=None, default="• placeholder", usage=None):
        self.responses = list(responses or [])
        self.default = default
        self.usage = usage or Usage(prompt_tokens=100, completion_tokens=50, total_tokens=160)
        self.prompts = []

    def complete(self, prompt):
        self.prompts.append(prompt)
        response = self.responses.pop(0) if self.responses else self.default
        if isinstance(response, Exception):
            raise response
        return CompletionResult(text=response, usage=self.usage, model="fake-model")

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return None


@pytest.fixture
def model_settings():
    from ideas_finder.config.settings import ModelSettings

    return ModelSettings(
        api_key="test-key",
        endpoint="https://model.test/v1/chat/completions",
        model_id="test-model",
        input_rate_per_token=0.000001,
        output_rate_per_token=0.000002,
    )


@pytest.fixture
def store_settings():
    from ideas_finder.config.settings import StoreSettings

    return StoreSettings(
        lookup_url="https://store.test/lookup",
        search_url="https://store.test/search",
        reviews_url_template=(
            "https://store.test/{country}/rss/customerreviews"
            "/page={page}/sortBy={sort}/id={app_id}/json"
        ),
        country="us",
        max_review_pages=5,
        lookup_retries=0,
        similar_apps_limit=3,
        search_terms_limit=4,
        search_results_per_term=10,
    )


@pytest.fixture
def sample_app():
    from ideas_finder.fetcher.models import AppMeta

    return AppMeta(
        trackId=1234,
        trackName="Sync Notes",
        artistName="Acme",
        averageUserRating=4.2,
        formattedPrice="Free",
        description="Take notes and sync them everywhere. Notes stay private.",
    )


@pytest.fixture
def fake_client():
    return FakeModelClient


@pytest.fixture
def db_session_factory():
    from ideas_finder.db.engine import get_engine, get_session_factory, init_db

    engine = get_engine(":memory:")
    init_db(engine)
    yield get_session_factory(engine)
    engine.dispose()


@pytest.fixture
def app_sentiment_text():
    return APP_SENTIMENT_TEXT


@pytest.fixture
def idea_sentiment_text():
    return IDEA_SENTIMENT_TEXT


@pytest.fixture
def isolated_logging():
    """Restore the root and cost loggers after a test calls setup_logging()."""
    from ideas_finder.logging.setup import COST_LOGGER_NAME

    root = logging.getLogger()
    cost_logger = logging.getLogger(COST_LOGGER_NAME)
    saved_handlers, saved_level = list(root.handlers), root.level
    yield
    for logger in (root, cost_logger):
        for handler in list(logger.handlers):
            if handler not in saved_handlers:
                handler.close()
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)
    cost_logger.handlers.clear()
