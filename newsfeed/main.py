from contextlib import asynccontextmanager

import logging

from fastapi import FastAPI

from newsfeed.api import articles
from newsfeed.api import auth as auth_api
from newsfeed.api import keywords as keywords_api
from newsfeed.config import LOG_LEVEL, ROOT_PATH
from newsfeed.core import deps
from newsfeed.db import sa as db_sa


@asynccontextmanager
async def lifespan(app: FastAPI):
    await db_sa.init_sa_engine()
    await db_sa.create_tables()
    try:
        yield
    finally:
        await deps.close_news_service()
        await db_sa.close_sa_engine()


app = FastAPI(title="newsfeed", lifespan=lifespan, root_path=ROOT_PATH)
app.include_router(auth_api.router)
app.include_router(keywords_api.router)
app.include_router(articles.router)


@app.get("/up", tags=["health"])
async def health() -> dict:
    return {"status": "ok"}


# Basic logging configuration (can be overridden by server config)
logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
# Suppress noisy bcrypt version warning from passlib when using bcrypt>=4
logging.getLogger("passlib.handlers.bcrypt").setLevel(logging.ERROR)
