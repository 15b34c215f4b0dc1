"""Unit tests for Event, TicketTier, User and Booking."""

from decimal import Decimal

import pytest

from booking_core import Booking, Event, TicketTier, User
from booking_errors import InsufficientInventoryError


class TestEvent:

    def test_add_tier_overwrites_existing_name(self):
        """Re-adding a tier replaces price and quantity instead of merging."""
        event = Event(1, "Gala", "Hall", "15-06-2025")
        event.add_tier("VIP", Decimal("100"), 5)
        event.add_tier("VIP", Decimal("80"), 3)
        assert len(event.tiers) == 1
        assert event.get_tier("VIP").price == Decimal("80")
        assert event.get_tier("VIP").quantity == 3

    def test_total_available_sums_tiers(self):
        event = Event(1, "Gala", "Hall", "15-06-2025")
        event.add_tier("VIP", Decimal("100"), 5)
        event.add_tier("Balcony", Decimal("30"), 7)
        assert event.total_available() == 12

    def test_sorted_tiers_ordered_by_name(self):
        event = Event(1, "Gala", "Hall", "15-06-2025")
        for name in ("VIP", "Balcony", "Standard"):
            event.add_tier(name, Decimal("1"), 1)
        assert [name for name, _ in event.sorted_tiers()] == ["Balcony", "Standard", "VIP"]

    def test_unknown_tier_lookup_returns_none(self):
        assert Event(1, "Gala", "Hall", "15-06-2025").get_tier("VIP") is None

    def test_record_round_trip(self):
        event = Event(4, "Gala", "Hall", "15-06-2025")
        event.add_tier("VIP", Decimal("100"), 2)
        fields = event.to_record()
        assert fields == ["4", "Gala", "Hall", "15-06-2025", "VIP:100.00:2"]
        restored = Event.from_record(fields)
        assert restored.event_id == 4
        assert restored.get_tier("VIP").quantity == 2

    def test_from_record_ignores_tier_tokens_without_two_colons(self):
        event = Event.from_record(["1", "Gala", "Hall", "15-06-2025", "junk", "GA:10.00:5"])
        assert list(event.tiers) == ["GA"]

    def test_from_record_rejects_short_lines(self):
        with pytest.raises(ValueError):
            Event.from_record(["1", "Gala"])


class TestTicketTier:

    def test_take_decrements(self):
        tier = TicketTier(Decimal("10"), 5)
        tier.take(3)
        assert tier.quantity == 2

    @pytest.mark.parametrize("quantity", [0, -1, 6])
    def test_take_rejects_invalid_quantity_without_change(self, quantity):
        tier = TicketTier(Decimal("10"), 5)
        with pytest.raises(InsufficientInventoryError):
            tier.take(quantity)
        assert tier.quantity == 5


class TestBooking:

    def test_new_booking_is_confirmed(self):
        booking = Booking(1, 1, 1, 2, Decimal("200.00"), "VIP")
        assert booking.is_confirmed

    def test_cancel_is_idempotent(self):
        booking = Booking(1, 1, 1, 2, Decimal("200.00"), "VIP")
        booking.cancel()
        booking.cancel()
        assert booking.status == "Cancelled"

    def test_record_layout(self):
        booking = Booking(3, 1, 2, 2, Decimal("200"), "VIP")
        assert booking.to_record() == ["3", "1", "2", "2", "200.00", "Confirmed", "VIP"]

    def test_from_record_rejects_unknown_status(self):
        with pytest.raises(ValueError):
            Booking.from_record(["1", "1", "1", "1", "10.00", "Pending", "VIP"])


class TestUser:

    def test_user_is_immutable(self):
        user = User(1, "Alice")
        with pytest.raises(AttributeError):
            user.name = "Bob"

    def test_from_record_keeps_commas_in_name(self):
        assert User.from_record(["2", "Smith", " John"]).name == "Smith, John"
