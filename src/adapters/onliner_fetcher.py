"""Onliner search feed adapter.

Implements the core ListingFetcherPort with an async httpx client. Every
fetch failure is logged and turned into an empty result so one subscriber's
feed outage never aborts a dispatch run.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import httpx

from adapters.onliner_mapper import listings_from_response
from core.config import FeedConfig
from core.models import Listing

LOGGER = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Accept": "application/json, text/plain, */*",
}


def search_query(search_url: str) -> str:
    """Return the ``?...`` portion of a saved search URL, or "" if it has none.

    Onliner keeps part of the filter state after ``#``, so every ``#`` is
    treated as another parameter separator.
    """

    index = search_url.find("?")
    if index == -1:
        return ""
    query = search_url[index + 1 :].replace("#", "&")
    if not query.strip("&"):
        return ""
    return "?" + query


class OnlinerFetcher:
    """Fetch the first page of apartments for a saved search URL."""

    def __init__(self, config: FeedConfig, client: Optional[httpx.AsyncClient] = None) -> None:
        self._endpoint = config.search_endpoint
        self._client = client or httpx.AsyncClient(
            headers=DEFAULT_HEADERS,
            timeout=config.timeout_seconds,
        )

    async def fetch(self, search_url: str) -> List[Listing]:
        query = search_query(search_url)
        if not query:
            LOGGER.warning("Saved URL has no query, skipping: %s", search_url)
            return []

        # TODO: follow the feed's page links once pagination is supported.
        try:
            response = await self._client.get(
                self._endpoint + query,
                headers={"Referer": search_url},
            )
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as exc:
            LOGGER.error("Can't get the apartments by the url = %s: %s", search_url, exc)
            return []

        if response.status_code != 200:
            LOGGER.error(
                "Can't get the apartments by the url = %s: status %s",
                search_url,
                response.status_code,
            )
            return []

        try:
            return listings_from_response(response.json())
        except ValueError as exc:
            LOGGER.error("Can't parse the apartments for url = %s: %s", search_url, exc)
            return []

    async def close(self) -> None:
        await self._client.aclose()
