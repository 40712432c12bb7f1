"""Async HTTP client for the Google Maps Distance Matrix API."""
import asyncio

import httpx
from django.conf import settings

from api.services.optimizer import INFINITY

# Per-request limits of the Distance Matrix API
MAX_PLACES_PER_REQUEST = 25
MAX_ELEMENTS_PER_REQUEST = 100


class DistanceMatrixError(Exception):
    """Google answered, but with a request-level status other than OK."""

    def __init__(self, status: str, message: str = ""):
        self.status = status
        self.message = message
        super().__init__(f"{status}: {message}" if message else status)


def _get_client() -> httpx.AsyncClient:
    """Create a one-shot async client bound to the configured Google Maps URL."""
    return httpx.AsyncClient(base_url=settings.GOOGLE_MAPS_URL, timeout=30.0)


def _blocks(n: int) -> list[tuple[range, range]]:
    """
    Split an N×N matrix into (origins, destinations) index ranges.

    Each block stays within the 25-place and 100-element request limits.
    """
    dest_size = min(n, MAX_PLACES_PER_REQUEST)
    origin_size = max(1, min(MAX_PLACES_PER_REQUEST, MAX_ELEMENTS_PER_REQUEST // dest_size))
    return [
        (range(o, min(o + origin_size, n)), range(d, min(d + dest_size, n)))
        for o in range(0, n, origin_size)
        for d in range(0, n, dest_size)
    ]


async def _fetch_block(
    client: httpx.AsyncClient, origins: list[str], destinations: list[str]
) -> list[list[float]]:
    params = {
        "origins": "|".join(origins),
        "destinations": "|".join(destinations),
        "key": settings.GOOGLE_MAPS_API_KEY,
    }
    response = await client.get("/maps/api/distancematrix/json", params=params)
    response.raise_for_status()

    data = response.json()
    status = data.get("status", "UNKNOWN_ERROR")
    if status != "OK":
        raise DistanceMatrixError(status, data.get("error_message", ""))

    return [
        [
            element["distance"]["value"] if element.get("status") == "OK" else INFINITY
            for element in row["elements"]
        ]
        for row in data["rows"]
    ]


async def get_distance_matrix(addresses: list[str]) -> list[list[float]]:
    """
    Call the Distance Matrix API for every pair of addresses.

    Returns an N×N matrix of driving distances in metres; pairs Google
    cannot route between are INFINITY.
    """
    n = len(addresses)
    if n == 0:
        return []
    blocks = _blocks(n)

    async with _get_client() as client:
        results = await asyncio.gather(
            *[
                _fetch_block(
                    client,
                    [addresses[i] for i in origins],
                    [addresses[j] for j in destinations],
                )
                for origins, destinations in blocks
            ]
        )

    matrix = [[INFINITY] * n for _ in range(n)]
    for (origins, destinations), rows in zip(blocks, results):
        for i, row in zip(origins, rows):
            for j, distance in zip(destinations, row):
                matrix[i][j] = distance

    return matrix
