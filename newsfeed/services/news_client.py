from __future__ import annotations

from typing import Any, Optional

import httpx


MAX_PAGE_SIZE = 100


class NewsApiError(Exception):
    """newsapi.org answered with ``{"status": "error", ...}``."""

    def __init__(self, code: Optional[str], message: Optional[str]) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message


class NewsApiClient:
    """Thin async client for the newsapi.org ``/everything`` endpoint."""

    def __init__(self, api_key: str, base_url: str = "https://newsapi.org/v2", timeout: float = 10.0) -> None:
        if not api_key:
            raise ValueError("NewsApiClient requires an API key")
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"X-Api-Key": self._api_key},
                timeout=httpx.Timeout(self.timeout),
            )
        return self._client

    async def get_everything(
        self,
        q: str,
        sort_by: str = "publishedAt",
        language: str = "en",
        page_size: int = 20,
    ) -> Any:
        params = {
            "q": q,
            "sortBy": sort_by,
            "language": language,
            "pageSize": page_size,
        }
        resp = await self._get_client().get("/everything", params=params)
        resp.raise_for_status()
        payload = resp.json()
        if isinstance(payload, dict) and payload.get("status") == "error":
            raise NewsApiError(payload.get("code"), payload.get("message"))
        return payload

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
