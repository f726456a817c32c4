from spherestay.listing.filters import apply_filters, filter_options, matches
from spherestay.listing.paginate import Page, clamp_page, paginate
from spherestay.listing.pipeline import ListingResult, ListingService, run_listing
from spherestay.listing.sorting import sort_entities
from spherestay.listing.url_params import ListingState, state_from_query, state_to_query, to_query_string
from spherestay.listing.views import VIEWS, ListingView, configure_views

__all__ = [
    "apply_filters",
    "filter_options",
    "matches",
    "Page",
    "clamp_page",
    "paginate",
    "ListingResult",
    "ListingService",
    "run_listing",
    "sort_entities",
    "ListingState",
    "state_from_query",
    "state_to_query",
    "to_query_string",
    "VIEWS",
    "ListingView",
    "configure_views",
]
