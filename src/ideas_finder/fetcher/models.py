"""Pydantic models for raw analysis subjects.

AppMeta represents App Store metadata returned by the iTunes lookup and search
endpoints (field aliases match the iTunes JSON keys).  Review is a single
customer review from the paginated RSS feed.  IdeaSubject is a free-text
business idea with an optional working name.
"""

from __future__ import annotations

import hashlib
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AppMeta(BaseModel):
    """App Store metadata for one app (the subject, or a similar app)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    track_id: int = Field(alias="trackId")
    track_name: Optional[str] = Field(default=None, alias="trackName")
    collection_name: Optional[str] = Field(default=None, alias="collectionName")
    developer: Optional[str] = Field(default=None, alias="artistName")
    rating: Optional[float] = Field(default=None, alias="averageUserRating")
    rating_count: Optional[int] = Field(default=None, alias="userRatingCount")
    icon_url: Optional[str] = Field(default=None, alias="artworkUrl100")
    store_url: Optional[str] = Field(default=None, alias="trackViewUrl")
    description: str = ""
    genre: Optional[str] = Field(default=None, alias="primaryGenreName")
    formatted_price: Optional[str] = Field(default=None, alias="formattedPrice")

    @field_validator("description", mode="before")
    @classmethod
    def description_none_to_empty(cls, v: object) -> object:
        return "" if v is None else v

    @property
    def name(self) -> str:
        """Display name, falling back to the collection name."""
        return self.track_name or self.collection_name or "this app"


class Review(BaseModel):
    """A single App Store customer review."""

    title: str = ""
    author: str = ""
    rating: str = ""
    date: str = ""
    text: str = ""

    def as_corpus_entry(self) -> str:
        """Render as one corpus block: ``title -- text (by author, rating N)``."""
        prefix = f"{self.title} -- " if self.title else ""
        return f"{prefix}{self.text} (by {self.author}, rating {self.rating})"


class IdeaSubject(BaseModel):
    """A free-text business idea submitted for analysis."""

    idea: str
    name: Optional[str] = None

    @field_validator("idea")
    @classmethod
    def idea_must_not_be_empty(cls, v: str) -> str:
        """Validate that the idea text is non-blank."""
        if not v.strip():
            raise ValueError("idea must be a non-empty string")
        return v.strip()

    @property
    def display_name(self) -> str:
        return self.name or "Unnamed Business"

    @property
    def subject_id(self) -> str:
        """Stable cache key: SHA-256 prefix of the normalised name + idea."""
        normalised = f"{(self.name or '').strip().lower()}\n{' '.join(self.idea.lower().split())}"
        return "idea-" + hashlib.sha256(normalised.encode("utf-8")).hexdigest()[:24]
