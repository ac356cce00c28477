"""Pydantic v2 models for the chat-completion wire format and run records.

The chat schemas define the contract with the hosted text-generation
endpoint.  Requests are serialised from ChatCompletionRequest; every 2xx
response body must validate against ChatCompletionResponse before its
content and usage counters are trusted.

AnalysisRecord is the flattened output of one run, shared by the result
cache, the database layer and the report writer.
"""

import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """One chat message.  Every stage sends a single user-role message."""

    role: Literal["system", "user", "assistant"] = "user"
    content: str


class ChatCompletionRequest(BaseModel):
    """Request body: ``{model, messages, temperature, max_tokens}``."""

    model: str
    messages: list[ChatMessage]
    temperature: float = 0.2
    max_tokens: int = 5000


class Usage(BaseModel):
    """Token usage counters.

    ``total_tokens`` may exceed ``prompt_tokens + completion_tokens``; the
    difference is provider overhead ("system" tokens).  When the provider
    omits the total, it is taken as the sum of the other two.
    """

    model_config = ConfigDict(extra="ignore")

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int | None = None

    @property
    def effective_total(self) -> int:
        if self.total_tokens is None:
            return self.prompt_tokens + self.completion_tokens
        return self.total_tokens


class ResponseMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    role: str = "assistant"
    content: str | None = None


class Choice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    index: int = 0
    message: ResponseMessage


class ChatCompletionResponse(BaseModel):
    """Response body: ``{choices[0].message.content, usage}``."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    model: str | None = None
    choices: list[Choice] = Field(default_factory=list)
    usage: Usage | None = None

    @property
    def content(self) -> str:
        """First choice's content, or an empty string when absent."""
        if not self.choices:
            return ""
        return self.choices[0].message.content or ""


class AnalysisRecord(BaseModel):
    """Flattened result of one run, as persisted, cached and reported.

    ``sections`` holds only sections that reached DONE; ``statuses`` holds
    every section that was started, so stuck sections stay visible.
    """

    id: int | None = None
    share_slug: str | None = None
    domain: Literal["app", "idea"]
    subject_id: str
    subject_name: str
    user_id: str | None = None
    sections: dict[str, Any] = Field(default_factory=dict)
    statuses: dict[str, str] = Field(default_factory=dict)
    review_count: int = 0
    analysis_time_seconds: float = 0.0
    api_cost: float = 0.0
    call_count: int = 0
    manual_task_hours: float = 0.0
    sentiment: str = ""
    calls: list[dict[str, Any]] = Field(default_factory=list)
    created_at: datetime.datetime | None = None
    cached: bool = False
