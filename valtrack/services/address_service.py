# =======================================================================================
# valtrack/services/address_service.py - PSGC Address Lookup
# =======================================================================================
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import config
from ..utils.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Request timed out. Please check your internet connection."


class AddressService:
    """Region / province / city / barangay options from the PSGC API."""

    def __init__(self, base_url: Optional[str] = None, client: Optional[httpx.Client] = None):
        self.base_url = (base_url or config.PSGC_BASE_URL).rstrip("/")
        self.client = client or httpx.Client(timeout=config.PSGC_TIMEOUT)

    @staticmethod
    def to_options(data: List[Dict[str, Any]]) -> List[Dict[str, str]]:
        options = [{"label": item["name"], "value": item["code"]} for item in data]
        return sorted(options, key=lambda o: o["label"])

    def _fetch(self, path: str, what: str) -> List[Dict[str, str]]:
        try:
            response = self.client.get(f"{self.base_url}{path}")
        except httpx.TimeoutException:
            logger.warning("PSGC request timed out: %s", path)
            raise ExternalServiceError(TIMEOUT_MESSAGE)
        except httpx.RequestError as e:
            logger.error("PSGC request failed: %s (%s)", path, e)
            raise ExternalServiceError(f"Failed to fetch {what}")

        if not response.is_success:
            logger.error("PSGC %s returned %s", path, response.status_code)
            raise ExternalServiceError(f"Failed to fetch {what}")
        try:
            return self.to_options(response.json())
        except (ValueError, KeyError, TypeError):
            raise ExternalServiceError(f"Failed to fetch {what}")

    def get_regions(self) -> List[Dict[str, str]]:
        return self._fetch("/regions/", "regions")

    def get_provinces_by_region(self, region_code: str) -> List[Dict[str, str]]:
        return self._fetch(f"/regions/{region_code}/provinces/", "provinces")

    def get_cities_by_region(self, region_code: str) -> List[Dict[str, str]]:
        """For regions without provinces, e.g. NCR."""
        return self._fetch(f"/regions/{region_code}/cities-municipalities/", "cities")

    def get_cities_by_province(self, province_code: str) -> List[Dict[str, str]]:
        return self._fetch(f"/provinces/{province_code}/cities-municipalities/", "cities")

    def get_barangays_by_city(self, city_code: str) -> List[Dict[str, str]]:
        return self._fetch(f"/cities-municipalities/{city_code}/barangays/", "barangays")
