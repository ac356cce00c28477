"""Exceptions raised across the analysis pipeline.

Only the fatal cases cross a stage boundary: an unresolvable subject, a
refused entitlement, and a failed first (sentiment) stage.  Model call
errors from later stages are caught by the orchestrator and logged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ideas_finder.analyzer.context import AnalysisContext


class ModelCallError(Exception):
    """The model provider answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Model API error: {status_code} - {body}")


class ModelResponseError(Exception):
    """A 2xx response body did not match the chat-completion schema."""


class SubjectNotFoundError(Exception):
    """The analysis subject could not be resolved (unknown app, empty idea)."""

    def __init__(self, subject: str, reason: Any = "not found") -> None:
        self.subject = subject
        super().__init__(f"{subject}: {reason}")


class EntitlementError(Exception):
    """The user may not start another analysis run."""

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__(
            f"User {user_id} has no active subscription or has used all searches"
        )


class AnalysisAbortedError(Exception):
    """The first stage failed, so no later stage can build its context.

    ``context`` holds whatever was accumulated before the abort, including
    the cost already spent.
    """

    def __init__(self, message: str, context: AnalysisContext) -> None:
        self.context = context
        super().__init__(message)
