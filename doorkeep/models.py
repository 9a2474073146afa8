"""Data model: search results, their identity key and their stored form."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Separator used when a backend needs the key as a single string.
KEY_SEPARATOR = "\x1f"

# SearchResult field -> stored attribute name
_STORAGE_NAMES = {
    "title": "title",
    "link": "link",
    "displayed_link": "displayedLink",
    "snippet": "snippet",
    "position": "position",
    "snippet_highlights": "snippetHighlights",
    "cached_link": "cachedLink",
    "source": "source",
}


class SearchResult(BaseModel):
    """One organic result returned by the search provider."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    title: str
    link: str
    displayed_link: str = ""
    snippet: str = ""
    position: Optional[int] = None
    snippet_highlights: Optional[str] = Field(None, alias="snippet_highlighted_words")
    cached_link: Optional[str] = Field(None, alias="cached_page_link")
    source: Optional[str] = None

    @field_validator("snippet_highlights", mode="before")
    @classmethod
    def join_highlights(cls, v):
        # SerpAPI returns the highlighted words as a list
        if isinstance(v, list):
            return ", ".join(str(w) for w in v)
        return v

    @field_validator("displayed_link", "snippet", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return "" if v is None else v


@dataclass(frozen=True)
class ResultKey:
    """Deduplication identity of a search result: ``(title, link)``.

    ``position`` is the rank within one query response and is not part of
    the identity.
    """

    title: str
    link: str

    @classmethod
    def from_result(cls, result: SearchResult) -> "ResultKey":
        return cls(title=result.title, link=result.link)

    def render(self) -> str:
        """Single-string form for backends keyed by one scalar."""
        return f"{self.title}{KEY_SEPARATOR}{self.link}"

    @classmethod
    def parse(cls, rendered: str) -> "ResultKey":
        title, sep, link = rendered.partition(KEY_SEPARATOR)
        if not sep:
            raise ValueError(f"not a rendered result key: {rendered!r}")
        return cls(title=title, link=link)

    def __str__(self) -> str:
        return f"({self.title!r}, {self.link!r})"


@dataclass(frozen=True)
class StoredRecord:
    """Persisted form of a search result, created once when first seen."""

    key: ResultKey
    attributes: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_result(
        cls,
        result: SearchResult,
        *,
        query: Optional[str] = None,
        first_seen: Optional[datetime] = None,
    ) -> "StoredRecord":
        attributes: Dict[str, Any] = {}
        for name, storage_name in _STORAGE_NAMES.items():
            value = getattr(result, name)
            if value is not None:
                attributes[storage_name] = value
        if query is not None:
            attributes["query"] = query
        seen_at = first_seen or datetime.now(timezone.utc)
        attributes["firstSeen"] = seen_at.isoformat()
        return cls(key=ResultKey.from_result(result), attributes=attributes)

    @property
    def title(self) -> str:
        return self.key.title

    @property
    def link(self) -> str:
        return self.key.link

    @property
    def snippet(self) -> str:
        return self.attributes.get("snippet", "")

    def to_result(self) -> SearchResult:
        """Rebuild the SearchResult carried by this record."""
        data = {
            name: self.attributes[storage_name]
            for name, storage_name in _STORAGE_NAMES.items()
            if storage_name in self.attributes
        }
        data["title"] = self.key.title
        data["link"] = self.key.link
        return SearchResult.model_validate(data)

    def to_item(self) -> Dict[str, Any]:
        """Flat mapping used by the storage backends."""
        return {**self.attributes, "title": self.key.title, "link": self.key.link}

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> "StoredRecord":
        """Inverse of :meth:`to_item`. Raises KeyError/TypeError on malformed items."""
        attributes = dict(item)
        key = ResultKey(title=str(attributes["title"]), link=str(attributes["link"]))
        return cls(key=key, attributes=attributes)


# Slack Block Kit message, e.g. {"blocks": [{"type": ..., "text": {...}}]}
AlertMessage = Dict[str, List[Dict[str, Any]]]
