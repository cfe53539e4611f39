"""
MyTSA Client - crowdsourced checkpoint wait times (legacy endpoint)
Example: https://apps.tsa.dhs.gov/MyTSAWebService/GetWaitTimes.ashx?ap=SFO&output=json
"""

import logging
from typing import Any, List, Optional

from flightrisk.models.signals import CheckpointWaitRecord, parse_wait_times
from flightrisk.services.providers import BaseProviderClient, ProviderError

logger = logging.getLogger(__name__)


class TSAError(ProviderError):
    """Custom exception for MyTSA errors"""
    pass


class TSAClient(BaseProviderClient):
    """
    Client for the MyTSA wait-time feed

    No key is needed. Only non-empty answers are cached; an empty series is
    what triggers the news fallback and must not be pinned for an hour.
    """

    BASE_URL = "https://apps.tsa.dhs.gov/MyTSAWebService"
    PROVIDER_NAME = "mytsa"
    error_class = TSAError

    def __init__(
        self,
        timeout: float = 5.0,
        cache_ttl: float = 3600,
        session: Optional[Any] = None
    ):
        super().__init__(timeout=timeout, cache_ttl=cache_ttl, session=session)

    def get_wait_times(self, iata: str) -> List[CheckpointWaitRecord]:
        """
        Fetch checkpoint wait records for an airport

        Returns:
            Parsed records (possibly empty)

        Raises:
            TSAError: If the request fails or times out
        """
        params = {"ap": iata.upper(), "output": "json"}
        key = self._cache_key("GetWaitTimes.ashx", params)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        logger.info(f"Fetching wait times for {iata}")
        records = parse_wait_times(self._make_request("GetWaitTimes.ashx", params))

        if records:
            self.cache.set(key, records)
        else:
            logger.warning(f"No wait time data for {iata}")
        return records
