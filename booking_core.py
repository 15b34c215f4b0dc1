"""
Event Booking Manager - core

Ticket tier inventory and the booking lifecycle: events with named
pricing tiers, self-registered users, and bookings that move from
Confirmed to Cancelled exactly once.
"""

import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from booking_config import (
    DATE_FORMAT_HINT,
    DEFAULT_TIER_NAME,
    MIN_EVENT_YEAR,
    STATUS_CANCELLED,
    STATUS_CONFIRMED,
)
from booking_errors import (
    BookingNotFoundError,
    EventNotFoundError,
    InsufficientInventoryError,
    PersistenceError,
    TierNotFoundError,
    UserNotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r'^(0[1-9]|[12][0-9]|3[01])-(0[1-9]|1[0-2])-([0-9]{4})$')
THIRTY_DAY_MONTHS = (4, 6, 9, 11)
RESERVED_TIER_CHARS = (':', ',', '\n', '\r')
TWO_PLACES = Decimal("0.01")


# ============================================================================
# SECTION 1: VALIDATION
# ============================================================================

class Validators:
    """Input validation for dates, names, prices and quantities."""

    @staticmethod
    def is_leap_year(year: int) -> bool:
        return year % 400 == 0 or (year % 100 != 0 and year % 4 == 0)

    @staticmethod
    def days_in_month(month: int, year: int) -> int:
        if month == 2:
            return 29 if Validators.is_leap_year(year) else 28
        if month in THIRTY_DAY_MONTHS:
            return 30
        return 31

    @staticmethod
    def validate_date(date: str) -> Tuple[bool, str]:
        """
        Validate an event date against DD-MM-YYYY and the real calendar.
        Years before MIN_EVENT_YEAR are rejected.
        Returns: (is_valid, error_message)
        """
        match = DATE_PATTERN.fullmatch(date)
        if not match:
            return False, f"Date must be in {DATE_FORMAT_HINT} format (e.g., 15-06-2025)"

        day, month, year = (int(part) for part in match.groups())

        if year < MIN_EVENT_YEAR:
            return False, f"Invalid year! Events can only be created for {MIN_EVENT_YEAR} or later"

        if month < 1 or month > 12:
            return False, "Invalid month! Month must be between 01 and 12"

        if day < 1 or day > 31:
            return False, "Invalid day! Day must be between 01 and 31"

        if month in THIRTY_DAY_MONTHS and day > 30:
            return False, "Invalid day! This month only has 30 days"

        if month == 2:
            limit = Validators.days_in_month(month, year)
            if day > limit:
                return False, f"Invalid day! February only has {limit} days in {year}"

        return True, ""

    @staticmethod
    def is_valid_date(date: str) -> bool:
        return Validators.validate_date(date)[0]

    @staticmethod
    def validate_name(name: str, label: str = "Name") -> str:
        """Return the stripped name, or raise ValidationError when blank."""
        cleaned = "" if name is None else str(name).strip()
        if not cleaned:
            raise ValidationError(f"{label} cannot be empty")
        if '\n' in cleaned or '\r' in cleaned:
            raise ValidationError(f"{label} cannot contain line breaks")
        return cleaned

    @staticmethod
    def validate_tier_name(name: str) -> str:
        cleaned = Validators.validate_name(name, "Tier name")
        if any(char in cleaned for char in RESERVED_TIER_CHARS):
            raise ValidationError("Tier name cannot contain ':' or ','")
        return cleaned

    @staticmethod
    def parse_price(value) -> Decimal:
        """Parse a non-negative price into a Decimal."""
        try:
            price = Decimal(str(value).strip())
        except InvalidOperation:
            raise ValidationError("Invalid input. Please enter a number for the price")
        if not price.is_finite():
            raise ValidationError("Invalid input. Please enter a number for the price")
        if price < 0:
            raise ValidationError("Prices must be non-negative")
        return price

    @staticmethod
    def parse_int(value, label: str = "value") -> int:
        text = str(value).strip()
        if not re.fullmatch(r'-?[0-9]+', text):
            raise ValidationError(f"Invalid input. Please enter a whole number for {label}")
        return int(text)

    @staticmethod
    def parse_quantity(value) -> int:
        quantity = Validators.parse_int(value, "the quantity")
        if quantity < 0:
            raise ValidationError("Quantities must be non-negative")
        return quantity


# ============================================================================
# SECTION 2: IDENTIFIER ALLOCATION
# ============================================================================

def next_id(existing_ids: Iterable[int]) -> int:
    """Return 1 for an empty collection, else the largest id plus one."""
    return max(existing_ids, default=0) + 1


def format_money(amount: Decimal) -> str:
    """Format an amount with exactly two decimal digits."""
    return f"{Decimal(amount).quantize(TWO_PLACES):.2f}"


# ============================================================================
# SECTION 3: DATA MODELS
# ============================================================================

class TicketTier:
    """Price and remaining quantity of one named tier."""

    def __init__(self, price: Decimal, quantity: int):
        self.price = Decimal(price)
        self.quantity = quantity

    def take(self, quantity: int):
        """Remove sold tickets from the remaining quantity."""
        if quantity <= 0 or quantity > self.quantity:
            raise InsufficientInventoryError(quantity, self.quantity)
        self.quantity -= quantity

    def restore(self, quantity: int):
        """Put cancelled tickets back."""
        self.quantity += quantity

    def __repr__(self) -> str:
        return f"TicketTier(price={format_money(self.price)}, quantity={self.quantity})"


class Event:
    """Event with an inventory of named ticket tiers."""

    def __init__(self, event_id: int, name: str, location: str, date: str):
        self.event_id = event_id
        self.name = name
        self.location = location
        self.date = date
        self.tiers: Dict[str, TicketTier] = {}

    def add_tier(self, tier_name: str, price: Decimal, quantity: int):
        """Insert a tier, replacing any existing tier with the same name."""
        self.tiers[tier_name] = TicketTier(price, quantity)

    def get_tier(self, tier_name: str) -> Optional[TicketTier]:
        return self.tiers.get(tier_name)

    def sorted_tiers(self) -> List[Tuple[str, TicketTier]]:
        """Tiers ordered by name. Display numbering follows this order."""
        return sorted(self.tiers.items(), key=lambda item: item[0])

    def total_available(self) -> int:
        return sum(tier.quantity for tier in self.tiers.values())

    def to_record(self) -> List[str]:
        """Convert event to the fields of one stored line."""
        fields = [str(self.event_id), self.name, self.location, self.date]
        for tier_name, tier in self.sorted_tiers():
            fields.append(f"{tier_name}:{format_money(tier.price)}:{tier.quantity}")
        return fields

    @staticmethod
    def from_record(fields: Sequence[str]) -> 'Event':
        """
        Create event from stored fields.
        Tier tokens without two colons are ignored; anything else that
        does not parse raises ValueError.
        """
        if len(fields) < 4:
            raise ValueError(f"expected at least 4 fields, got {len(fields)}")
        event = Event(int(fields[0]), fields[1], fields[2], fields[3])
        for token in fields[4:]:
            first = token.find(':')
            last = token.rfind(':')
            if first == -1 or first == last:
                continue
            tier_name = token[:first]
            if not tier_name.strip():
                raise ValueError(f"blank tier name in {token!r}")
            try:
                price = Decimal(token[first + 1:last])
            except InvalidOperation:
                raise ValueError(f"bad tier price in {token!r}")
            quantity = int(token[last + 1:])
            if not price.is_finite() or price < 0 or quantity < 0:
                raise ValueError(f"negative tier value in {token!r}")
            event.add_tier(tier_name, price, quantity)
        return event


@dataclass(frozen=True)
class User:
    """Registered user. Names need not be unique."""

    user_id: int
    name: str

    def to_record(self) -> List[str]:
        return [str(self.user_id), self.name]

    @staticmethod
    def from_record(fields: Sequence[str]) -> 'User':
        if len(fields) < 2:
            raise ValueError("expected id and name")
        # unquoted commas in a name split it into extra fields
        return User(int(fields[0]), ",".join(fields[1:]))


class Booking:
    """Tickets booked by one user on one tier of one event."""

    def __init__(self, booking_id: int, user_id: int, event_id: int,
                 tickets: int, total_price: Decimal, tier_name: str,
                 status: str = STATUS_CONFIRMED):
        self.booking_id = booking_id
        self.user_id = user_id
        self.event_id = event_id
        self.tickets = tickets
        self.total_price = Decimal(total_price)
        self.tier_name = tier_name
        self.status = status

    @property
    def is_confirmed(self) -> bool:
        return self.status == STATUS_CONFIRMED

    def cancel(self):
        """Move to Cancelled. Has no effect on a cancelled booking."""
        if self.is_confirmed:
            self.status = STATUS_CANCELLED

    def to_record(self) -> List[str]:
        return [
            str(self.booking_id),
            str(self.user_id),
            str(self.event_id),
            str(self.tickets),
            format_money(self.total_price),
            self.status,
            self.tier_name,
        ]

    @staticmethod
    def from_record(fields: Sequence[str]) -> 'Booking':
        if len(fields) != 7:
            raise ValueError(f"expected 7 fields, got {len(fields)}")
        status = fields[5]
        if status not in (STATUS_CONFIRMED, STATUS_CANCELLED):
            raise ValueError(f"unknown status {status!r}")
        try:
            total_price = Decimal(fields[4])
        except InvalidOperation:
            raise ValueError(f"bad total price {fields[4]!r}")
        if not total_price.is_finite() or total_price < 0:
            raise ValueError(f"negative total price {fields[4]!r}")
        tickets = int(fields[3])
        if tickets <= 0:
            raise ValueError(f"ticket count must be positive, got {tickets}")
        return Booking(
            int(fields[0]),
            int(fields[1]),
            int(fields[2]),
            tickets,
            total_price,
            fields[6],
            status,
        )


# ============================================================================
# SECTION 4: SESSION STATE
# ============================================================================

@dataclass
class BookingSession:
    """In-memory collections for one run, plus the running booking id counter."""

    events: List[Event] = field(default_factory=list)
    users: List[User] = field(default_factory=list)
    bookings: List[Booking] = field(default_factory=list)
    next_booking_id: int = 1

    @classmethod
    def from_collections(cls, events: List[Event], users: List[User],
                         bookings: List[Booking]) -> 'BookingSession':
        """Seed the booking counter once from what was loaded."""
        return cls(
            events=events,
            users=users,
            bookings=bookings,
            next_booking_id=next_id(b.booking_id for b in bookings),
        )

    def allocate_booking_id(self) -> int:
        booking_id = self.next_booking_id
        self.next_booking_id += 1
        return booking_id


# ============================================================================
# SECTION 5: BOOKING ENGINE
# ============================================================================

class TicketService:
    """Handles event setup, registration, booking and cancellation."""

    def __init__(self, session: BookingSession, storage=None):
        self.session = session
        self.storage = storage
        self.warnings: List[str] = []

    @classmethod
    def load(cls, storage) -> 'TicketService':
        """Build a service over everything currently in the record store."""
        storage.initialize_storage()
        session = BookingSession.from_collections(
            storage.load_events(),
            storage.load_users(),
            storage.load_bookings(),
        )
        return cls(session, storage)

    # ------------------------------------------------------------------
    # persistence
    # ------------------------------------------------------------------

    def _sync(self, *collections: str):
        """Save the named collections. Failures are reported, never rolled back."""
        if self.storage is None:
            return
        for collection in collections:
            records = getattr(self.session, collection)
            try:
                getattr(self.storage, f"save_{collection}")(records)
            except PersistenceError as e:
                logger.error("%s", e)
                self.warnings.append(e.message)

    def save_all(self):
        self._sync("users", "events", "bookings")

    def drain_warnings(self) -> List[str]:
        """Return and clear the persistence warnings collected so far."""
        warnings, self.warnings = self.warnings, []
        return warnings

    # ------------------------------------------------------------------
    # lookups
    # ------------------------------------------------------------------

    def find_user(self, user_id: int) -> Optional[User]:
        for user in self.session.users:
            if user.user_id == user_id:
                return user
        return None

    def find_event(self, event_id: int) -> Optional[Event]:
        for event in self.session.events:
            if event.event_id == event_id:
                return event
        return None

    def find_booking(self, booking_id: int) -> Optional[Booking]:
        for booking in self.session.bookings:
            if booking.booking_id == booking_id:
                return booking
        return None

    def get_user(self, user_id: int) -> User:
        user = self.find_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def get_event(self, event_id: int) -> Event:
        event = self.find_event(event_id)
        if event is None:
            raise EventNotFoundError(event_id)
        return event

    def get_booking(self, booking_id: int) -> Booking:
        booking = self.find_booking(booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id)
        return booking

    # ------------------------------------------------------------------
    # registration
    # ------------------------------------------------------------------

    def create_event(self, name: str, location: str, date: str,
                     tiers: Iterable[Tuple[str, object, object]] = (),
                     default_price=None, default_quantity=None) -> Event:
        """
        Register a new event (admin only).
        With no tiers given, a Standard tier is built from the defaults.
        """
        name = Validators.validate_name(name, "Event name")
        location = "" if location is None else str(location).strip()
        date = "" if date is None else str(date).strip()
        if any(char in location for char in ('\n', '\r')):
            raise ValidationError("Location cannot contain line breaks")

        is_valid, error = Validators.validate_date(date)
        if not is_valid:
            raise ValidationError(error)

        definitions = [
            (Validators.validate_tier_name(tier_name),
             Validators.parse_price(price),
             Validators.parse_quantity(quantity))
            for tier_name, price, quantity in tiers
        ]
        if not definitions:
            if default_price is None or default_quantity is None:
                raise ValidationError("A default ticket price and quantity are required")
            definitions.append((
                DEFAULT_TIER_NAME,
                Validators.parse_price(default_price),
                Validators.parse_quantity(default_quantity),
            ))

        event = Event(
            next_id(e.event_id for e in self.session.events),
            name,
            location,
            date,
        )
        for tier_name, price, quantity in definitions:
            event.add_tier(tier_name, price, quantity)

        self.session.events.append(event)
        logger.info("Registered event %s (%s) with %d tiers",
                    event.event_id, event.name, len(event.tiers))
        self._sync("events")
        return event

    def register_user(self, name: str) -> User:
        user = User(
            next_id(u.user_id for u in self.session.users),
            Validators.validate_name(name, "User name"),
        )
        self.session.users.append(user)
        logger.info("Registered user %s", user.user_id)
        self._sync("users")
        return user

    # ------------------------------------------------------------------
    # booking lifecycle
    # ------------------------------------------------------------------

    def book_ticket(self, user_id: int, event_id: int, tier_name: str,
                    quantity: int) -> Booking:
        """
        Book `quantity` tickets of one tier.

        Raises:
            UserNotFoundError, EventNotFoundError, TierNotFoundError,
            InsufficientInventoryError. Nothing changes when any is raised.
        """
        self.get_user(user_id)
        event = self.get_event(event_id)
        tier = event.get_tier(tier_name)
        if tier is None:
            raise TierNotFoundError(event_id, tier_name)

        tier.take(quantity)
        booking = Booking(
            booking_id=self.session.allocate_booking_id(),
            user_id=user_id,
            event_id=event_id,
            tickets=quantity,
            total_price=quantity * tier.price,
            tier_name=tier_name,
        )
        self.session.bookings.append(booking)
        logger.info("Booking %s confirmed: user %s, event %s, %d x %s",
                    booking.booking_id, user_id, event_id, quantity, tier_name)

        self._sync("events", "bookings")
        return booking

    def cancel_booking(self, booking_id: int) -> Booking:
        """
        Cancel a confirmed booking and release its tickets.

        A booking that is already cancelled is reported the same way as
        a missing one.
        """
        booking = self.find_booking(booking_id)
        if booking is None or not booking.is_confirmed:
            raise BookingNotFoundError(booking_id)

        event = self.find_event(booking.event_id)
        if event is not None:
            tier = event.get_tier(booking.tier_name)
            if tier is not None:
                tier.restore(booking.tickets)
            else:
                logger.warning("Tier %r missing on event %s, %d tickets not restored",
                               booking.tier_name, event.event_id, booking.tickets)

        booking.cancel()
        logger.info("Booking %s cancelled, %d tickets released",
                    booking.booking_id, booking.tickets)

        self._sync("events", "bookings")
        return booking

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------

    def available_events(self) -> List[Event]:
        return [event for event in self.session.events if event.total_available() > 0]

    def available_tiers(self, event_id: int) -> List[Tuple[str, TicketTier]]:
        """Tiers with tickets left, in name order. Position N is menu choice N+1."""
        event = self.get_event(event_id)
        return [(name, tier) for name, tier in event.sorted_tiers() if tier.quantity > 0]

    def user_bookings(self, user_id: int) -> List[Booking]:
        return [b for b in self.session.bookings if b.user_id == user_id]

    def bookings_by_user(self) -> Dict[int, List[Booking]]:
        grouped: Dict[int, List[Booking]] = {}
        for booking in sorted(self.session.bookings, key=lambda b: b.user_id):
            grouped.setdefault(booking.user_id, []).append(booking)
        return grouped

    @staticmethod
    def summarize(bookings: Iterable[Booking]) -> Dict:
        """Ticket and revenue totals over confirmed bookings only."""
        bookings = list(bookings)
        confirmed = [b for b in bookings if b.is_confirmed]
        return {
            'total_bookings': len(bookings),
            'confirmed_bookings': len(confirmed),
            'cancelled_bookings': len(bookings) - len(confirmed),
            'confirmed_tickets': sum(b.tickets for b in confirmed),
            'total_revenue': sum((b.total_price for b in confirmed), Decimal("0")),
        }

    def user_totals(self, user_id: int) -> Dict:
        return self.summarize(self.user_bookings(user_id))

    def system_totals(self) -> Dict:
        return self.summarize(self.session.bookings)
