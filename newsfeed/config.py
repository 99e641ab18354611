# newsfeed/config.py
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv
load_dotenv()

DB_DSN = os.getenv("DATABASE_URL")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
ROOT_PATH = os.getenv("ROOT_PATH", "")


@dataclass(frozen=True)
class NewsApiSettings:
    # api_key=None means the provider is not configured; the feed is then empty
    api_key: Optional[str] = None
    base_url: str = "https://newsapi.org/v2"
    timeout: float = 10.0

    @classmethod
    def from_env(cls) -> "NewsApiSettings":
        return cls(
            api_key=os.getenv("NEWS_API_KEY") or None,
            base_url=os.getenv("NEWS_API_BASE_URL", "https://newsapi.org/v2").rstrip("/"),
            timeout=float(os.getenv("NEWS_API_TIMEOUT", "10")),
        )


NEWS_API = NewsApiSettings.from_env()
