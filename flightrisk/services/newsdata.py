"""
Newsdata Client - disruption and security news search
"""

import logging
from typing import Any, List, Optional

from flightrisk.models.signals import NewsHeadline, parse_news_results
from flightrisk.services.providers import BaseProviderClient, ProviderError

logger = logging.getLogger(__name__)


class NewsdataError(ProviderError):
    """Custom exception for Newsdata API errors"""
    pass


class NewsdataClient(BaseProviderClient):
    """Client for the Newsdata.io `news` endpoint (English results only)"""

    BASE_URL = "https://newsdata.io/api/1"
    PROVIDER_NAME = "newsdata"
    error_class = NewsdataError

    def __init__(
        self,
        api_key: str,
        timeout: float = 15,
        cache_ttl: float = 600,
        session: Optional[Any] = None
    ):
        super().__init__(timeout=timeout, cache_ttl=cache_ttl, session=session)
        self.api_key = api_key

    def search(self, query: str) -> List[NewsHeadline]:
        """
        Search recent news

        Args:
            query: Free-text query (supports OR)

        Returns:
            Headlines, newest first as returned by the API

        Raises:
            NewsdataError: If the request fails or the API reports an error
        """
        logger.info(f"Fetching news for query: {query}")
        raw = self._cached_request("news", {"apikey": self.api_key, "q": query, "language": "en"})
        headlines = parse_news_results(raw)
        logger.info(f"Retrieved {len(headlines)} news articles")
        return headlines

    def _check_payload(self, payload: Any) -> None:
        if isinstance(payload, dict) and payload.get("status") == "error":
            results = payload.get("results")
            message = results.get("message") if isinstance(results, dict) else payload.get("message")
            raise NewsdataError(f"Newsdata error: {message}")
