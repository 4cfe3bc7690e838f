"""
OpenFoodFacts search client.

Handles free-text product searches against the OpenFoodFacts database.
"""

import asyncio
from typing import List, Optional

import aiohttp
import structlog

from mealwise.domain.meal.product.mapper import OpenFoodFactsMapper
from mealwise.domain.meal.product.models import ExternalProductRecord
from mealwise.domain.shared.errors import (
    ExternalServiceError,
    ProductLookupError,
    TimeoutError,
)

logger = structlog.get_logger(__name__)


class OpenFoodFactsSearchClient:
    """OpenFoodFacts text search client (implements IProductSearch)."""

    SEARCH_URL = "https://world.openfoodfacts.org/cgi/search.pl"
    USER_AGENT = "Mealwise/1.0"

    def __init__(
        self,
        timeout_seconds: int = 10,
        max_retries: int = 3,
        page_size: int = 20,
    ) -> None:
        """Initialize search client.

        Args:
            timeout_seconds: Request timeout
            max_retries: Max retry attempts
            page_size: Number of candidates requested per search
        """
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.page_size = page_size
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "OpenFoodFactsSearchClient":
        """Async context manager entry."""
        self._session = aiohttp.ClientSession(headers={"User-Agent": self.USER_AGENT})
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        if self._session:
            await self._session.close()
            self._session = None

    async def search(self, query: str) -> List[ExternalProductRecord]:
        """Search products by free text.

        Args:
            query: Search terms, typically "brand product"

        Returns:
            Candidates in database ranking order (empty for a blank query)

        Raises:
            TimeoutError: If every attempt times out
            ExternalServiceError: If the API answers with an error status
            ProductLookupError: If the response body is not JSON

        Example:
            >>> async def example():
            ...     async with OpenFoodFactsSearchClient() as client:
            ...         return await client.search("Acme Protein Bar")
        """
        terms = query.strip()
        if not terms:
            return []

        params: dict[str, str | int] = {
            "search_terms": terms,
            "search_simple": 1,
            "json": 1,
            "page_size": self.page_size,
        }

        for attempt in range(self.max_retries):
            try:
                if not self._session:
                    msg = "Client not initialized, use async with"
                    raise ExternalServiceError(msg)

                async with self._session.get(
                    self.SEARCH_URL,
                    params=params,
                    timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
                ) as response:
                    if response.status >= 400:
                        msg = f"OpenFoodFacts API error: {response.status}"
                        raise ExternalServiceError(msg)

                    try:
                        data = await response.json(content_type=None)
                    except ValueError as e:
                        msg = f"Undecodable OpenFoodFacts payload for '{terms}'"
                        raise ProductLookupError(msg) from e
                    results = OpenFoodFactsMapper.parse_search_response(data)

                    logger.info(
                        "OFF search completed",
                        query=terms,
                        results=len(results),
                    )
                    return results

            except asyncio.TimeoutError as e:
                if attempt == self.max_retries - 1:
                    msg = "OpenFoodFacts API timeout"
                    raise TimeoutError(msg) from e

                wait = 2**attempt
                logger.warning(
                    f"Timeout, retrying in {wait}s",
                    attempt=attempt + 1,
                )
                await asyncio.sleep(wait)

            except aiohttp.ClientError as e:
                if attempt == self.max_retries - 1:
                    msg = f"OpenFoodFacts API client error: {e}"
                    raise ExternalServiceError(msg) from e

                wait = 2**attempt
                await asyncio.sleep(wait)

        return []
