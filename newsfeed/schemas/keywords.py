from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from newsfeed.models.keyword_models import KEYWORD_MAX_LENGTH


class KeywordFields(BaseModel):
    keyword: str = Field(min_length=1, max_length=KEYWORD_MAX_LENGTH)

    @field_validator("keyword")
    @classmethod
    def not_blank(cls, v: str) -> str:
        # stored as typed; whitespace-only input is rejected, not trimmed
        if not v.strip():
            raise ValueError("keyword can't be blank")
        return v


class KeywordCreateRequest(BaseModel):
    """Body of ``POST /keywords``: ``{"keyword": {"keyword": "..."}}``."""

    keyword: KeywordFields


class KeywordOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    keyword: str
    created_at: datetime
    updated_at: datetime


class KeywordDeleted(BaseModel):
    message: str = "Keyword deleted successfully."
