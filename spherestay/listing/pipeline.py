"""normalize -> gate -> filter -> sort -> paginate."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from spherestay.api.normalize import normalize_entities
from spherestay.api.query import QueryCache
from spherestay.listing.filters import apply_filters, filter_options
from spherestay.listing.paginate import Page, clamp_page, paginate, total_pages
from spherestay.listing.sorting import sort_entities
from spherestay.listing.url_params import ListingState, state_from_query, to_query_string
from spherestay.listing.views import VIEWS, ListingView
from spherestay.models.entity import Entity

logger = logging.getLogger(__name__)


@dataclass
class ListingResult:
    view: str
    state: ListingState
    page: Page[Entity]
    filtered_count: int
    total_count: int
    query_string: str
    options: dict[str, list[str]] = field(default_factory=dict)
    is_stale: bool = False

    @property
    def is_empty(self) -> bool:
        """True when no entity survives the filters."""
        return self.filtered_count == 0


def run_listing(raw: Any, state: ListingState, view: ListingView, clamp: bool = False) -> ListingResult:
    """Turn a raw API response into one page of a listing view.

    Args:
        raw: Response body in any of the shapes the backend returns
        state: Filter, sort and page state
        view: Listing view supplying the gate, predicates and page size
        clamp: Pull an out-of-range page back to the last page

    Returns:
        ListingResult for the requested page
    """
    entities = [e for e in normalize_entities(raw) if view.admits(e)]
    filtered = apply_filters(entities, state.filters, view.predicates)
    ordered = sort_entities(filtered, state.sort)

    page_number = state.page
    if clamp and ordered:
        page_number = clamp_page(page_number, total_pages(len(ordered), view.page_size))
        if page_number != state.page:
            state = ListingState(filters=state.filters, sort=state.sort, page=page_number)

    return ListingResult(
        view=view.name,
        state=state,
        page=paginate(ordered, page_number, view.page_size),
        filtered_count=len(filtered),
        total_count=len(entities),
        query_string=to_query_string(state, view),
        options=filter_options(entities),
    )


class ListingService:
    """Load listing pages through the query cache."""

    def __init__(self, cache: QueryCache, views: Mapping[str, ListingView] | None = None):
        self.cache = cache
        self.views = dict(views) if views is not None else dict(VIEWS)

    def get_view(self, name: str) -> ListingView:
        view = self.views.get(name.lower())
        if view is None:
            raise KeyError(f"Unknown listing view: {name}")
        return view

    async def load(
        self,
        view_name: str,
        query: Mapping[str, str] | str | None = None,
        clamp: bool = False,
    ) -> ListingResult:
        """Fetch a view's collection and run it through the pipeline.

        A failed refetch falls back to the last good data when there is some;
        otherwise the ApiError is raised.
        """
        view = self.get_view(view_name)
        state = state_from_query(query, view)

        result = await self.cache.fetch(view.endpoint, view.fetch_params or None)
        if result.error is not None:
            if result.updated_at is None:
                raise result.error
            logger.warning(
                f"Serving stale '{view.name}' listing after {result.error.kind.value} error"
            )

        listing = run_listing(result.data, state, view, clamp=clamp)
        listing.is_stale = result.is_stale
        logger.info(
            f"Listing '{view.name}': {listing.filtered_count}/{listing.total_count} match, "
            f"page {listing.page.page} of {listing.page.total_pages}"
        )
        return listing
