"""Client for the Cheshire East "My Collection Day" web service.

Two calls are needed to get a schedule: an address search that yields the
property reference (UPRN), then the bin job list for that reference.
"""

from __future__ import annotations

import logging

import httpx

from binday.errors import ParseError, UpstreamError
from binday.metrics import PARSE_ERRORS_TOTAL, UPSTREAM_FETCH_TOTAL
from binday.parsers.schedule import parse_property_id

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://online.cheshireeast.gov.uk/MyCollectionDay/SearchByAjax"


class CheshireEastSource:
    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        user_agent: str = "BinCollectionDay/1.0",
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            follow_redirects=True,
            timeout=timeout,
            headers={"User-Agent": user_agent},
        )
        self._base_url = base_url.rstrip("/")

    async def __aenter__(self) -> CheshireEastSource:
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch_property_id(self, address_line: str, postal_code: str) -> str:
        # The search matches on house name/number, i.e. the first word of the address
        property_name = address_line.strip().split(" ")[0]
        logger.info("Looking up property reference for %s, %s", property_name, postal_code)
        body = await self._get(
            "search", "/Search", {"postcode": postal_code, "propertyname": property_name}
        )
        try:
            property_id = parse_property_id(body)
        except ParseError:
            PARSE_ERRORS_TOTAL.labels(endpoint="search").inc()
            raise
        logger.info("Property reference is %s", property_id)
        return property_id

    async def fetch_raw_schedule(self, property_id: str) -> str:
        logger.info("Fetching bin collection days for property %s", property_id)
        return await self._get("job_list", "/GetBartecJobList", {"uprn": property_id})

    async def _get(self, endpoint: str, path: str, params: dict[str, str]) -> str:
        url = f"{self._base_url}{path}"
        try:
            resp = await self._client.get(url, params=params)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Council web service call to %s failed: %s", url, e)
            UPSTREAM_FETCH_TOTAL.labels(endpoint=endpoint, status="error").inc()
            raise UpstreamError(f"{endpoint} request failed: {e}") from e

        UPSTREAM_FETCH_TOTAL.labels(endpoint=endpoint, status="ok").inc()
        logger.info("Got %s response (%d chars)", endpoint, len(resp.text))
        return resp.text
