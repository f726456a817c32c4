from datetime import date, datetime
from decimal import Decimal

import pytest

from spherestay.api.services import BookingService
from spherestay.booking import BookingDraft, InvalidBookingError, round_half_up
from tests.factories import Recorder, entity, json_response


def draft(**overrides) -> BookingDraft:
    fields = {
        "property_id": "p1",
        "check_in": date(2025, 12, 20),
        "check_out": date(2025, 12, 23),
        "guests": 2,
        "base_price": 12500,
    }
    fields.update(overrides)
    return BookingDraft(**fields)


def test_price_breakdown():
    d = draft()
    assert d.nights == 3
    assert d.subtotal == Decimal("37500")
    assert d.service_fee == 5250
    assert d.taxes == 6840
    assert d.total == Decimal("49590")


def test_partial_day_counts_as_a_night():
    d = draft(check_in=datetime(2025, 12, 20, 14), check_out=datetime(2025, 12, 21, 16))
    assert d.nights == 2


def test_fee_rate_is_configurable():
    assert draft(service_fee_rate=0.10).service_fee == 3750


@pytest.mark.parametrize("amount,expected", [(0.5, 1), (1.5, 2), (2.5, 3), (2.49, 2)])
def test_round_half_up(amount, expected):
    assert round_half_up(amount) == expected


def test_iso_strings_are_accepted():
    d = draft(check_in="2025-12-20T00:00:00.000Z", check_out="2025-12-22T00:00:00.000Z")
    assert d.nights == 2


@pytest.mark.parametrize(
    "overrides",
    [
        {"check_out": date(2025, 12, 20)},
        {"check_out": date(2025, 12, 19)},
        {"guests": 0},
        {"base_price": -1},
        {"check_in": "not a date"},
        {"check_in": None},
    ],
)
def test_invalid_drafts(overrides):
    with pytest.raises(InvalidBookingError):
        draft(**overrides)


def test_invalid_booking_error_is_a_value_error():
    with pytest.raises(ValueError):
        draft(guests=0)


def test_for_entity_checks_guest_limit():
    villa = entity("v1", pricing={"basePrice": 8000}, capacity={"maxGuests": 4})
    assert BookingDraft.for_entity(villa, "2025-01-01", "2025-01-03", 4).subtotal == Decimal("16000")
    with pytest.raises(InvalidBookingError):
        BookingDraft.for_entity(villa, "2025-01-01", "2025-01-03", 5)


def test_payload_shape():
    assert draft().to_payload() == {
        "propertyId": "p1",
        "checkInDate": "2025-12-20T00:00:00Z",
        "checkOutDate": "2025-12-23T00:00:00Z",
        "guests": 2,
    }


@pytest.mark.parametrize(
    "check_in,check_out",
    [
        ("2025-12-20", "2025-12-22T00:00:00Z"),
        (date(2025, 12, 20), "2025-12-22T00:00:00.000Z"),
        ("2025-12-20T03:00:00+03:00", datetime(2025, 12, 22)),
    ],
)
def test_mixed_naive_and_aware_dates(check_in, check_out):
    d = draft(check_in=check_in, check_out=check_out)
    assert d.nights == 2
    assert d.check_in.utcoffset().total_seconds() == 0


def test_mixed_dates_still_reject_reversed_range():
    with pytest.raises(InvalidBookingError):
        draft(check_in="2025-12-22T00:00:00Z", check_out="2025-12-20")


async def test_booking_service_posts_payload(make_client):
    recorder = Recorder(json_response({"status": "success", "data": {"booking": {"_id": "b1"}}}, status=201))
    await BookingService(make_client(recorder)).create(draft())
    assert recorder.requests[0].url.path == "/api/bookings"
    assert recorder.body()["propertyId"] == "p1"
