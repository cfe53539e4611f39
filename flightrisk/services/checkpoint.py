"""
Checkpoint Wait Resolver - telemetry first, news intelligence as a fallback

The resolver alone decides which evidence backs the "tsa" risk component and
tags its result with that provenance:

    primary      telemetry answered with at least one usable record
    fallback     telemetry failed, timed out or was empty, and a headline
                 search found something to read
    unavailable  neither source produced anything
"""

import asyncio
import logging
from typing import Any, List, Optional, Tuple

from flightrisk.models.signals import (
    CheckpointWaitResult,
    FallbackCheckpointResult,
    NewsHeadline,
    PrimaryCheckpointResult,
    UnavailableCheckpointResult,
)
from flightrisk.services.cache import TTLCache
from flightrisk.services.intelligence import SecurityIntelligenceExtractor

logger = logging.getLogger(__name__)

HEADLINES_PER_QUERY = 3

QUERY_TEMPLATES = (
    "{code} airport security line",
    "{name} TSA",
    "{code} checkpoint",
    "{name} security wait",
)


def build_fallback_queries(airport_code: str, airport_name: Optional[str] = None) -> List[str]:
    """Code- and name-keyed query variants to widen recall"""
    name = airport_name or airport_code
    return [template.format(code=airport_code, name=name) for template in QUERY_TEMPLATES]


def dedupe_headlines(headlines: List[NewsHeadline]) -> List[NewsHeadline]:
    """Drop repeated titles, keeping the first occurrence and the original order"""
    seen = set()
    unique = []
    for headline in headlines:
        if headline.title in seen:
            continue
        seen.add(headline.title)
        unique.append(headline)
    return unique


class CheckpointWaitResolver:
    """
    Resolves checkpoint evidence for one airport

    Args:
        telemetry: Object with `get_wait_times(iata)` (TSAClient), or None
        news: Object with `search(query)` (NewsdataClient), or None
        airports: Object with `get_airport(iata)` (AviationstackClient), or None
        extractor: Turns fallback headlines into an estimate
        timeout: Hard limit on the telemetry fetch, in seconds
        fallback_cache_ttl: Seconds a fallback/unavailable answer is reused. An
            unavailable answer is not cached when every headline search failed.
    """

    def __init__(
        self,
        telemetry: Optional[Any] = None,
        news: Optional[Any] = None,
        airports: Optional[Any] = None,
        extractor: Optional[SecurityIntelligenceExtractor] = None,
        timeout: float = 5.0,
        fallback_cache_ttl: float = 1800
    ):
        self.telemetry = telemetry
        self.news = news
        self.airports = airports
        self.extractor = extractor or SecurityIntelligenceExtractor()
        self.timeout = timeout
        self.fallback_cache = TTLCache(default_ttl=fallback_cache_ttl)

    async def resolve(
        self,
        airport_code: str,
        airport_name: Optional[str] = None,
        lookup_airport: bool = True
    ) -> CheckpointWaitResult:
        """
        Resolve checkpoint evidence for an airport

        Never raises; every upstream failure lands in one of the three states.

        Args:
            airport_code: IATA code of the departure airport
            airport_name: Name for the query variants, when the caller already has it
            lookup_airport: Look the name up when none was given; callers that
                already tried set this False
        """
        code = airport_code.upper()

        records = await self._fetch_telemetry(code)
        if records:
            logger.info(f"Checkpoint telemetry for {code}: {len(records)} records")
            return PrimaryCheckpointResult(airport_code=code, records=records)

        cached = self.fallback_cache.get(code)
        if cached is not None:
            return cached

        if airport_name is None and lookup_airport and self.news is not None:
            airport_name = await self._lookup_airport_name(code)

        result, answered = await self._resolve_fallback(code, airport_name)
        if answered:
            self.fallback_cache.set(code, result)
        else:
            logger.info(f"Not caching checkpoint result for {code}: every headline search failed")
        return result

    async def _fetch_telemetry(self, code: str) -> list:
        if self.telemetry is None:
            return []
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.telemetry.get_wait_times, code),
                timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.warning(f"Checkpoint telemetry timed out for {code} after {self.timeout}s, falling back to news")
        except Exception as e:
            logger.warning(f"Checkpoint telemetry failed for {code}, falling back to news: {str(e)}")
        return []

    async def _lookup_airport_name(self, code: str) -> Optional[str]:
        if self.airports is None:
            return None
        try:
            airport = await asyncio.to_thread(self.airports.get_airport, code)
            return airport.name if airport is not None else None
        except Exception as e:
            logger.info(f"Airport lookup failed for {code}, searching by code only: {str(e)}")
            return None

    async def _search(self, query: str) -> Optional[List[NewsHeadline]]:
        """Up to HEADLINES_PER_QUERY headlines, or None if the search failed"""
        try:
            results = await asyncio.to_thread(self.news.search, query)
            return list(results or [])[:HEADLINES_PER_QUERY]
        except Exception as e:
            logger.warning(f"Headline search failed for '{query}': {str(e)}")
            return None

    async def _resolve_fallback(
        self,
        code: str,
        airport_name: Optional[str]
    ) -> Tuple[CheckpointWaitResult, bool]:
        """Fallback result, and whether any source actually answered"""
        if self.news is None:
            return UnavailableCheckpointResult(airport_code=code), True

        queries = build_fallback_queries(code, airport_name)
        batches = await asyncio.gather(*(self._search(q) for q in queries))
        answered = [batch for batch in batches if batch is not None]

        headlines = dedupe_headlines([h for batch in answered for h in batch])
        logger.info(f"Checkpoint fallback for {code}: {len(headlines)} unique headlines "
                    f"({len(answered)}/{len(queries)} searches answered)")

        if not headlines:
            return UnavailableCheckpointResult(airport_code=code), bool(answered)

        estimate = await asyncio.to_thread(self.extractor.extract, headlines, code, airport_name)
        return FallbackCheckpointResult(
            airport_code=code,
            airport_name=airport_name,
            estimate=estimate,
            headlines=headlines
        ), True
