"""Tractian demo API manager that fetches companies, locations and assets."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

import httpx

from domain_types import (
    AssetRecord,
    Company,
    LocationRecord,
    asset_from_payload,
    company_from_payload,
    location_from_payload,
)

T = TypeVar("T")

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://fake-api.tractian.com"

# Default timeout (in seconds) for API requests.
DEFAULT_TIMEOUT = 30

DEFAULT_PAGE_SIZE = 50


@dataclass
class TractianApiManager:
    """Read-only helper around the companies/locations/assets endpoints."""

    base_url: str = DEFAULT_BASE_URL
    timeout: int = DEFAULT_TIMEOUT
    transport: httpx.BaseTransport | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        base_clean = (self.base_url or "").rstrip("/")
        if not base_clean:
            raise RuntimeError("Tractian API base URL is required.")

        self.base_url = base_clean
        self._client = httpx.Client(
            base_url=base_clean,
            timeout=httpx.Timeout(self.timeout),
            transport=self.transport,
        )
        self._asset_cache: dict[str, list[AssetRecord]] = {}

    @property
    def http_client(self) -> httpx.Client:
        """Expose the underlying client for advanced use cases."""

        return self._client

    def close(self) -> None:
        self._client.close()

    def list_companies(self) -> list[Company]:
        """Return companies as domain objects."""

        return self._get_list("/companies", company_from_payload)

    def list_locations(self, company_id: str) -> list[LocationRecord]:
        """Return the full, unpaginated location list of a company."""

        return self._get_list(
            f"/companies/{company_id}/locations", location_from_payload
        )

    def list_assets(self, company_id: str) -> list[AssetRecord]:
        """Return every asset of a company, cached after the first call."""

        cached = self._asset_cache.get(company_id)
        if cached is None:
            cached = self._get_list(
                f"/companies/{company_id}/assets", asset_from_payload
            )
            self._asset_cache[company_id] = cached
        return cached

    def list_assets_page(
        self,
        company_id: str,
        page: int,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> list[AssetRecord]:
        """Return one 1-based page of assets; an empty list ends paging.

        The demo API has no server-side paging, so the full asset list is
        fetched once per company and sliced here.
        """

        if page < 1 or page_size < 1:
            raise ValueError("page and page_size must be positive.")
        assets = self.list_assets(company_id)
        start = (page - 1) * page_size
        return assets[start:start + page_size]

    def forget_company(self, company_id: str) -> None:
        """Drop cached assets so the next page fetch hits the API again."""

        self._asset_cache.pop(company_id, None)

    def _get_list(self, path: str, convert: Callable[[dict[str, Any]], T]) -> list[T]:
        response = self._client.get(path)
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, list):
            raise RuntimeError(
                f"Unexpected response for {path}: expected a list, "
                f"got {type(payload).__name__}."
            )
        items = [convert(entry) for entry in payload if isinstance(entry, dict)]
        logger.debug("GET %s returned %d records", path, len(items))
        return items
