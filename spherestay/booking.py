"""Booking drafts and their price breakdown."""

import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from spherestay.models.entity import Entity

SERVICE_FEE_RATE = 0.14
TAX_RATE = 0.16


class BookingError(Exception):
    """A booking could not be submitted."""


class InvalidBookingError(BookingError, ValueError):
    """The draft itself is invalid (bad dates or guest count)."""


def round_half_up(amount: float | Decimal) -> int:
    """Round to whole shillings, halves away from zero."""
    return int(Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _as_datetime(value: date | datetime | str) -> datetime:
    """Parse a date into an aware UTC datetime; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except (AttributeError, ValueError) as e:
            raise InvalidBookingError(f"Invalid date: {value!r}") from e
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _iso(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


@dataclass
class BookingDraft:
    property_id: str
    check_in: datetime
    check_out: datetime
    guests: int
    base_price: float
    service_fee_rate: float = SERVICE_FEE_RATE

    def __post_init__(self):
        self.check_in = _as_datetime(self.check_in)
        self.check_out = _as_datetime(self.check_out)
        if self.check_out <= self.check_in:
            raise InvalidBookingError("Check-out must be after check-in")
        if self.guests < 1:
            raise InvalidBookingError("At least one guest is required")
        if self.base_price < 0:
            raise InvalidBookingError("Price cannot be negative")

    @classmethod
    def for_entity(
        cls,
        entity: Entity,
        check_in: date | datetime | str,
        check_out: date | datetime | str,
        guests: int,
        service_fee_rate: float = SERVICE_FEE_RATE,
    ) -> "BookingDraft":
        """Create a draft priced from an entity, checking its guest limit."""
        max_guests = entity.capacity.max_guests
        if max_guests and guests > max_guests:
            raise InvalidBookingError(f"This property hosts at most {max_guests} guests")
        return cls(
            property_id=entity.id,
            check_in=check_in,
            check_out=check_out,
            guests=guests,
            base_price=entity.pricing.base_price,
            service_fee_rate=service_fee_rate,
        )

    @property
    def nights(self) -> int:
        """Whole nights, rounding a partial day up."""
        return math.ceil((self.check_out - self.check_in).total_seconds() / 86400)

    @property
    def subtotal(self) -> Decimal:
        return Decimal(str(self.base_price)) * self.nights

    @property
    def service_fee(self) -> int:
        return round_half_up(self.subtotal * Decimal(str(self.service_fee_rate)))

    @property
    def taxes(self) -> int:
        return round_half_up((self.subtotal + self.service_fee) * Decimal(str(TAX_RATE)))

    @property
    def total(self) -> Decimal:
        return self.subtotal + self.service_fee + self.taxes

    def to_payload(self) -> dict:
        """Request body for POST /api/bookings."""
        return {
            "propertyId": self.property_id,
            "checkInDate": _iso(self.check_in),
            "checkOutDate": _iso(self.check_out),
            "guests": self.guests,
        }

    def quote(self) -> dict:
        return {
            "propertyId": self.property_id,
            "nights": self.nights,
            "guests": self.guests,
            "basePrice": self.base_price,
            "subtotal": float(self.subtotal),
            "serviceFee": self.service_fee,
            "taxes": self.taxes,
            "total": float(self.total),
        }
