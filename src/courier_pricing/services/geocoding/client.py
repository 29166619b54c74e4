"""HTTP client for the Nominatim address search service."""

from __future__ import annotations

import logging

import httpx

from ...config import settings
from ...models.domain import Coordinates, GeocodingResult

logger = logging.getLogger(__name__)


class NominatimClient:
    def __init__(
        self,
        base_url: str | None = None,
        user_agent: str | None = None,
        timeout: float | None = None,
        min_address_length: int | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or settings.geocoding_base_url
        if not self.base_url:
            raise ValueError("Geocoding base URL is not configured.")
        self.user_agent = user_agent or settings.geocoding_user_agent
        self.timeout = timeout if timeout is not None else settings.geocoding_timeout_seconds
        self.min_address_length = (
            min_address_length if min_address_length is not None else settings.min_address_length
        )
        self._transport = transport

    def _get_client(self) -> httpx.Client:
        return httpx.Client(
            timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 5.0)),
            headers={"User-Agent": self.user_agent},
            transport=self._transport,
        )

    def geocode(self, address: str) -> GeocodingResult | None:
        """Return the single best match for ``address`` or None.

        Short addresses are rejected without a network call. Timeouts, network
        errors, non-success statuses and empty result lists all map to None so
        the caller can ask the user to correct the address.
        """
        if not address or len(address.strip()) < self.min_address_length:
            return None

        params = {
            "q": address,
            "format": "json",
            "limit": 1,
            "addressdetails": 1,
        }
        try:
            with self._get_client() as client:
                response = client.get(self.base_url, params=params)
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as exc:
            logger.warning(f"Geocoding request timed out for '{address}': {exc}")
            return None
        except httpx.HTTPStatusError as exc:
            logger.warning(f"Geocoding API error {exc.response.status_code} for '{address}'")
            return None
        except httpx.HTTPError as exc:
            logger.warning(f"Geocoding request failed for '{address}': {exc}")
            return None
        except ValueError as exc:
            logger.warning(f"Geocoding returned malformed JSON for '{address}': {exc}")
            return None

        if not isinstance(data, list) or not data:
            logger.info(f"No results found for address: '{address}'")
            return None

        best = data[0]
        try:
            coordinates = Coordinates(latitude=float(best["lat"]), longitude=float(best["lon"]))
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning(f"Geocoding result missing coordinates for '{address}': {exc}")
            return None
        return GeocodingResult(
            coordinates=coordinates,
            formatted_address=best.get("display_name") or address,
        )


def check_health(base_url: str | None = None) -> bool:
    """Check the geocoding provider answers a minimal search."""
    base = base_url or settings.geocoding_base_url
    if not base:
        return False
    try:
        response = httpx.get(
            base,
            params={"q": "Lagos", "format": "json", "limit": 1},
            headers={"User-Agent": settings.geocoding_user_agent},
            timeout=5.0,
        )
        response.raise_for_status()
        return isinstance(response.json(), list)
    except httpx.HTTPError:
        return False
    except ValueError:
        return False
