"""
Flat-file record store for events, users and bookings.

Each collection lives in its own comma-delimited text file, one record
per line. Loading is tolerant: a line that does not parse is skipped.
Saving rewrites the whole file.
"""

import csv
import logging
import os
from decimal import InvalidOperation
from typing import Callable, List, Sequence, TypeVar

from booking_config import BOOKINGS_FILENAME, EVENTS_FILENAME, USERS_FILENAME, settings
from booking_core import Booking, Event, User
from booking_errors import PersistenceError

logger = logging.getLogger(__name__)

T = TypeVar('T')


class StorageManager:
    """Handles all file I/O for the three record collections."""

    def __init__(self, data_dir: str = None):
        self.data_dir = data_dir if data_dir is not None else settings.data_dir
        self.users_file = os.path.join(self.data_dir, USERS_FILENAME)
        self.events_file = os.path.join(self.data_dir, EVENTS_FILENAME)
        self.bookings_file = os.path.join(self.data_dir, BOOKINGS_FILENAME)

    def initialize_storage(self):
        """Create the data directory and empty files if they don't exist."""
        try:
            os.makedirs(self.data_dir, exist_ok=True)
            for path in (self.users_file, self.events_file, self.bookings_file):
                if not os.path.exists(path):
                    open(path, 'a', encoding='utf-8').close()
        except OSError as e:
            logger.error("Could not initialize storage in %s: %s", self.data_dir, e)

    # ------------------------------------------------------------------
    # line codec
    # ------------------------------------------------------------------

    @staticmethod
    def _read_records(path: str, parse: Callable[[Sequence[str]], T]) -> List[T]:
        records = []
        try:
            with open(path, 'r', encoding='utf-8', newline='') as f:
                lines = f.read().splitlines()
        except FileNotFoundError:
            return records
        except (OSError, UnicodeDecodeError) as e:
            logger.error("Could not read %s: %s", path, e)
            return records

        for line_number, line in enumerate(lines, 1):
            if not line.strip() or line.startswith('#'):
                continue
            try:
                fields = next(csv.reader([line]))
                records.append(parse(fields))
            except (csv.Error, ValueError, IndexError, InvalidOperation) as e:
                logger.warning("Skipping malformed line %d in %s: %s", line_number, path, e)

        logger.debug("Loaded %d records from %s", len(records), path)
        return records

    @staticmethod
    def _write_records(path: str, collection: str, records: Sequence) -> None:
        try:
            with open(path, 'w', encoding='utf-8', newline='') as f:
                writer = csv.writer(f, lineterminator='\n')
                for record in records:
                    writer.writerow(record.to_record())
        except OSError as e:
            raise PersistenceError(collection, str(e)) from e

    # ------------------------------------------------------------------
    # collections
    # ------------------------------------------------------------------

    def load_users(self) -> List[User]:
        """Load all users. Returns an empty list if the file is missing."""
        return self._read_records(self.users_file, User.from_record)

    def save_users(self, users: Sequence[User]):
        self._write_records(self.users_file, "users", users)

    def load_events(self) -> List[Event]:
        """Load all events with their ticket tiers."""
        return self._read_records(self.events_file, Event.from_record)

    def save_events(self, events: Sequence[Event]):
        self._write_records(self.events_file, "events", events)

    def load_bookings(self) -> List[Booking]:
        """Load all bookings, confirmed and cancelled."""
        return self._read_records(self.bookings_file, Booking.from_record)

    def save_bookings(self, bookings: Sequence[Booking]):
        self._write_records(self.bookings_file, "bookings", bookings)
