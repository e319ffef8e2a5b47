"""Company selection, paging and filtering state around the tree builder."""

from __future__ import annotations

import logging
import threading

from domain_types import AssetTree, Company
from tractian_api import DEFAULT_PAGE_SIZE, TractianApiManager
from tree_builder import AssetTreeBuilder
from tree_filters import FilterCriteria, apply_filters

__all__ = ["AssetTreeSession"]

logger = logging.getLogger(__name__)


class AssetTreeSession:
    """Drives one browsing session against a ``TractianApiManager``.

    The session owns the in-flight guard for page loads and a generation
    counter that changes on every company switch. A page that finishes
    loading for an older generation is dropped instead of merged.
    """

    def __init__(
        self,
        api_manager: TractianApiManager,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        if page_size < 1:
            raise RuntimeError("Page size must be a positive integer.")
        self._api = api_manager
        self._page_size = page_size
        self._builder = AssetTreeBuilder()
        self._lock = threading.Lock()
        self._company_id: str | None = None
        self._generation = 0
        self._next_page = 1
        self._exhausted = False
        self._in_flight = False
        self._criteria = FilterCriteria()

    @property
    def company_id(self) -> str | None:
        return self._company_id

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def pages_loaded(self) -> int:
        return self._next_page - 1

    @property
    def exhausted(self) -> bool:
        return self._exhausted

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def criteria(self) -> FilterCriteria:
        return self._criteria

    @property
    def tree(self) -> AssetTree:
        return self._builder.tree

    def list_companies(self) -> list[Company]:
        return self._api.list_companies()

    def select_company(self, company_id: str) -> AssetTree:
        """Start a fresh tree for ``company_id`` with its locations.

        The company only counts as selected once its locations are in the
        tree, so a failed fetch leaves nothing selected and can be retried.
        """

        with self._lock:
            self._generation += 1
            generation = self._generation
            self._builder.reset()
            self._company_id = None
            self._next_page = 1
            self._exhausted = False
            self._in_flight = False
            self._criteria = FilterCriteria()

        self._api.forget_company(company_id)
        locations = self._api.list_locations(company_id)

        with self._lock:
            if generation != self._generation:
                logger.debug("Dropping stale locations for %s", company_id)
                return self._builder.tree
            tree = self._builder.initialize(locations)
            self._company_id = company_id
        logger.info("Selected company %s (%d locations)", company_id, len(locations))
        return tree

    def clear_selection(self) -> None:
        """Return to the company list, discarding the current tree."""

        with self._lock:
            self._generation += 1
            self._builder.reset()
            self._company_id = None
            self._next_page = 1
            self._exhausted = False
            self._in_flight = False
            self._criteria = FilterCriteria()

    def load_more(self) -> bool:
        """Fetch and merge the next asset page.

        Returns ``True`` when records were merged. Calls made while a page is
        outstanding, without a selected company, or after the last page are
        ignored. Fetch errors propagate after the in-flight flag is cleared.
        """

        with self._lock:
            if self._in_flight or self._exhausted or self._company_id is None:
                return False
            self._in_flight = True
            generation = self._generation
            company_id = self._company_id
            page = self._next_page

        try:
            assets = self._api.list_assets_page(company_id, page, self._page_size)
        except Exception:
            with self._lock:
                if generation == self._generation:
                    self._in_flight = False
            raise

        with self._lock:
            if generation != self._generation:
                logger.debug("Dropping stale page %d for %s", page, company_id)
                return False
            self._in_flight = False
            if not assets:
                self._exhausted = True
                return False
            self._builder.merge(assets)
            self._next_page = page + 1
        logger.debug("Merged page %d for %s (%d assets)", page, company_id, len(assets))
        return True

    def load_all(self) -> AssetTree:
        """Load pages until the API reports no more assets."""

        while self.load_more():
            pass
        return self.tree

    def set_filters(self, criteria: FilterCriteria) -> AssetTree:
        with self._lock:
            self._criteria = criteria
        return self.visible_tree()

    def visible_tree(self) -> AssetTree:
        """Current tree with the active filters applied."""

        with self._lock:
            return apply_filters(self._builder.tree, self._criteria)
