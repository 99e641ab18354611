from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from newsfeed.core.deps import get_current_user, get_owned_keyword
from newsfeed.db.sa import get_session
from newsfeed.models.auth_models import User
from newsfeed.models.keyword_models import Keyword
from newsfeed.schemas.keywords import KeywordCreateRequest, KeywordDeleted, KeywordOut


router = APIRouter(prefix="/keywords", tags=["keywords"])
logger = logging.getLogger("newsfeed.keywords")

DUPLICATE_DETAIL = "Keyword already exists for this user"


@router.get("", response_model=list[KeywordOut])
async def list_keywords(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> list[KeywordOut]:
    stmt = select(Keyword).where(Keyword.user_id == current_user.id).order_by(Keyword.created_at.desc())
    res = await session.execute(stmt)
    return [KeywordOut.model_validate(k) for k in res.scalars().all()]


@router.post("", response_model=KeywordOut, status_code=201)
async def create_keyword(
    payload: KeywordCreateRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> KeywordOut:
    text = payload.keyword.keyword
    res = await session.execute(
        select(Keyword).where(Keyword.user_id == current_user.id, Keyword.keyword == text)
    )
    if res.scalar_one_or_none() is not None:
        raise HTTPException(status_code=422, detail=DUPLICATE_DETAIL)

    keyword = Keyword(user_id=current_user.id, keyword=text)
    session.add(keyword)
    try:
        await session.flush()
        await session.refresh(keyword)
        await session.commit()
    except IntegrityError:
        # concurrent insert of the same text won the unique constraint
        await session.rollback()
        raise HTTPException(status_code=422, detail=DUPLICATE_DETAIL)
    logger.info(
        "Keyword created",
        extra={"event": "keyword_created", "user_id": str(current_user.id), "keyword_id": keyword.id},
    )
    return KeywordOut.model_validate(keyword)


@router.delete("/{keyword_id}", response_model=KeywordDeleted)
async def delete_keyword(
    keyword: Keyword = Depends(get_owned_keyword),
    session: AsyncSession = Depends(get_session),
) -> KeywordDeleted:
    await session.delete(keyword)
    await session.commit()
    logger.info(
        "Keyword deleted",
        extra={"event": "keyword_deleted", "user_id": str(keyword.user_id), "keyword_id": keyword.id},
    )
    return KeywordDeleted()
