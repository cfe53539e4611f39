"""
Provider base - shared request handling for the upstream data feeds
"""

import logging
from typing import Any, Dict, Optional, Type

import requests

from flightrisk.services.cache import TTLCache

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """Base exception for upstream provider failures"""
    pass


class BaseProviderClient:
    """
    JSON-over-HTTP provider client with timeouts and a response cache

    Subclasses set BASE_URL, PROVIDER_NAME and error_class.
    """

    BASE_URL = ""
    PROVIDER_NAME = "provider"
    error_class: Type[ProviderError] = ProviderError

    def __init__(
        self,
        timeout: float = 15,
        cache_ttl: float = 0,
        session: Optional[Any] = None
    ):
        """
        Args:
            timeout: Request timeout in seconds
            cache_ttl: Seconds a successful response is reused (0 disables)
            session: requests.Session-like object (defaults to the requests module)
        """
        self.timeout = timeout
        self.cache = TTLCache(default_ttl=cache_ttl)
        self.http = session or requests

    def _cache_key(self, endpoint: str, params: Optional[Dict[str, Any]]) -> tuple:
        return (endpoint, tuple(sorted((params or {}).items())))

    def _make_request(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None
    ) -> Any:
        """
        GET an endpoint and decode its JSON body

        Raises:
            ProviderError subclass: On HTTP errors, network errors or a non-JSON body
        """
        url = f"{self.BASE_URL}/{endpoint}"

        try:
            response = self.http.get(
                url,
                params=params,
                headers={"Accept": "application/json"},
                timeout=timeout or self.timeout
            )
            response.raise_for_status()
            return response.json()

        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else "?"
            logger.error(f"{self.PROVIDER_NAME} HTTP error: {status}")
            raise self.error_class(f"{self.PROVIDER_NAME} request failed: {status}")

        except requests.exceptions.RequestException as e:
            logger.error(f"{self.PROVIDER_NAME} request error: {str(e)}")
            raise self.error_class(f"{self.PROVIDER_NAME} request failed: {str(e)}")

        except ValueError as e:
            logger.error(f"{self.PROVIDER_NAME} returned a non-JSON body: {str(e)}")
            raise self.error_class(f"{self.PROVIDER_NAME} returned invalid JSON")

    def _check_payload(self, payload: Any) -> None:
        """Raise error_class when a 200 response carries an error body"""
        return None

    def _cached_request(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        ttl: Optional[float] = None
    ) -> Any:
        """_make_request behind the response cache"""
        key = self._cache_key(endpoint, params)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"{self.PROVIDER_NAME} cache hit: {endpoint}")
            return cached

        payload = self._make_request(endpoint, params)
        self._check_payload(payload)
        self.cache.set(key, payload, ttl)
        return payload
