"""
Unit tests for the OpenFoodFacts search client.

HTTP is mocked at ``aiohttp.ClientSession.get``.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from mealwise.domain.shared.errors import (
    ExternalServiceError,
    ProductLookupError,
    TimeoutError,
)
from mealwise.infrastructure.openfoodfacts.search_client import OpenFoodFactsSearchClient


def json_response(status: int, payload: dict) -> MagicMock:
    response = MagicMock()
    response.status = status
    response.json = AsyncMock(return_value=payload)
    return response


class TestOpenFoodFactsSearchClient:
    """Search requests, parsing and retry behavior."""

    @pytest.fixture
    def search_payload(self) -> dict:
        return {
            "count": 2,
            "products": [
                {
                    "code": "0000000000001",
                    "product_name": "Acme Chocolate Protein Bar",
                    "brands": "Acme Foods",
                    "serving_size": "60 g",
                    "nutriments": {
                        "energy-kcal_serving": 210,
                        "proteins_serving": 20,
                        "carbohydrates_serving": 22,
                        "fat_serving": 8,
                    },
                },
                {"code": "0000000000002", "product_name": "Acme Granola", "brands": "Acme"},
            ],
        }

    async def test_search_success(self, search_payload: dict) -> None:
        with patch("aiohttp.ClientSession.get") as mock_get:
            mock_get.return_value.__aenter__.return_value = json_response(200, search_payload)

            async with OpenFoodFactsSearchClient(page_size=5) as client:
                results = await client.search("  Acme Protein Bar ")

        assert [r.product_name for r in results] == [
            "Acme Chocolate Protein Bar",
            "Acme Granola",
        ]
        assert results[0].nutriments.energy_kcal_serving == 210
        params = mock_get.call_args.kwargs["params"]
        assert params["search_terms"] == "Acme Protein Bar"
        assert params["page_size"] == 5
        assert params["json"] == 1

    async def test_user_agent_header(self) -> None:
        async with OpenFoodFactsSearchClient() as client:
            assert client._session is not None
            assert client._session.headers["User-Agent"] == "Mealwise/1.0"
        assert client._session is None

    async def test_blank_query_skips_request(self) -> None:
        with patch("aiohttp.ClientSession.get") as mock_get:
            async with OpenFoodFactsSearchClient() as client:
                assert await client.search("   ") == []
        mock_get.assert_not_called()

    async def test_error_status(self) -> None:
        with patch("aiohttp.ClientSession.get") as mock_get:
            mock_get.return_value.__aenter__.return_value = json_response(503, {})

            async with OpenFoodFactsSearchClient() as client:
                with pytest.raises(ExternalServiceError, match="503"):
                    await client.search("Acme")

    async def test_not_initialized(self) -> None:
        client = OpenFoodFactsSearchClient()

        with pytest.raises(ExternalServiceError, match="not initialized"):
            await client.search("Acme")

    async def test_timeout_retries_then_raises(self) -> None:
        with patch("aiohttp.ClientSession.get") as mock_get, patch(
            "asyncio.sleep", new=AsyncMock()
        ) as mock_sleep:
            mock_get.return_value.__aenter__.side_effect = asyncio.TimeoutError()

            async with OpenFoodFactsSearchClient(max_retries=3) as client:
                with pytest.raises(TimeoutError):
                    await client.search("Acme")

        assert mock_get.call_count == 3
        assert [c.args[0] for c in mock_sleep.await_args_list] == [1, 2]

    async def test_client_error_recovers(self, search_payload: dict) -> None:
        with patch("aiohttp.ClientSession.get") as mock_get, patch(
            "asyncio.sleep", new=AsyncMock()
        ):
            mock_get.return_value.__aenter__.side_effect = [
                aiohttp.ClientConnectionError("reset"),
                json_response(200, search_payload),
            ]

            async with OpenFoodFactsSearchClient() as client:
                results = await client.search("Acme")

        assert len(results) == 2

    async def test_undecodable_payload(self) -> None:
        response = MagicMock()
        response.status = 200
        response.json = AsyncMock(side_effect=ValueError("Expecting value"))

        with patch("aiohttp.ClientSession.get") as mock_get:
            mock_get.return_value.__aenter__.return_value = response

            async with OpenFoodFactsSearchClient() as client:
                with pytest.raises(ProductLookupError):
                    await client.search("Acme")
