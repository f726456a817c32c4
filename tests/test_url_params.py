from spherestay.listing.url_params import ListingState, state_from_query, state_to_query, to_query_string
from spherestay.listing.views import PROPERTIES, PUBLIC_PROPERTIES, TRANSPORT


def test_empty_query_gives_defaults():
    state = state_from_query("", PROPERTIES)
    assert state.sort == "featured"
    assert state.page == 1
    assert state.filters["type"] == "all"
    assert state.filters["min_price"] is None
    assert state.filters["amenities"] == []
    assert state_to_query(state, PROPERTIES) == {}


def test_parses_recognized_params():
    state = state_from_query(
        "?search=villa&type=house&minPrice=2000&maxPrice=6000&bedrooms=2&amenities=wifi,pool&sort=rating&page=3",
        PROPERTIES,
    )
    assert state.filters["search"] == "villa"
    assert state.filters["type"] == "house"
    assert state.filters["min_price"] == 2000
    assert state.filters["max_price"] == 6000
    assert state.filters["min_bedrooms"] == 2
    assert state.filters["amenities"] == ["wifi", "pool"]
    assert state.sort == "rating"
    assert state.page == 3


def test_malformed_values_fall_back_to_defaults():
    state = state_from_query({"minPrice": "cheap", "bedrooms": "two", "page": "x", "sort": "bogus"}, PROPERTIES)
    assert state.filters["min_price"] is None
    assert state.filters["min_bedrooms"] == 0
    assert state.page == 1
    assert state.sort == "featured"


def test_unknown_keys_are_ignored():
    state = state_from_query({"utm_source": "mail", "search": "lamu"}, PROPERTIES)
    assert "utm_source" not in state.filters
    assert to_query_string(state, PROPERTIES) == "search=lamu"


def test_canonical_query_omits_defaults():
    state = state_from_query("type=all&page=1&sort=featured&search=", PROPERTIES)
    assert to_query_string(state, PROPERTIES) == ""


def test_round_trip_of_non_default_state():
    query = "vehicleType=car&transmission=automatic&capacity=medium&sort=price_low&page=2"
    state = state_from_query(query, TRANSPORT)
    assert state_from_query(to_query_string(state, TRANSPORT), TRANSPORT) == state


def test_public_properties_bool_and_default_sort():
    state = state_from_query("freeEntry=true&county=Mombasa", PUBLIC_PROPERTIES)
    assert state.filters["free_entry"] is True
    assert state.sort == "alphabetical"
    assert state_to_query(state, PUBLIC_PROPERTIES) == {"county": "Mombasa", "freeEntry": "true"}


def test_integral_floats_render_without_decimals():
    state = ListingState(filters={"min_price": 2500.0, "rating": 4.5}, sort="featured")
    assert state_to_query(state, PROPERTIES) == {"minPrice": "2500", "rating": "4.5"}


def test_filter_change_resets_page():
    state = ListingState(filters={"search": ""}, sort="featured", page=4)
    assert state.update(search="lamu").page == 1
    assert state.update(sort="rating").page == 1
    assert state.update(sort="featured").page == 4
    assert state.update(page=2).page == 2


def test_explicit_page_wins_over_reset():
    state = ListingState(page=4)
    updated = state.update(search="lamu", page=3)
    assert updated.page == 3
    assert updated.filters == {"search": "lamu"}
