from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class ArticleSource(BaseModel):
    name: Optional[str] = None


class NewsArticle(BaseModel):
    """One normalized provider article; every field may be null.

    Field names follow the provider's JSON (camelCase) so the API response
    matches what the browser client already consumes.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    urlToImage: Optional[str] = None
    publishedAt: Optional[str] = None
    author: Optional[str] = None
    source: Optional[ArticleSource] = Field(default=None)

    @field_validator("publishedAt", mode="before")
    @classmethod
    def render_timestamp(cls, v: Any) -> Any:
        if isinstance(v, datetime):
            return v.isoformat()
        return v
