"""
Event Booking Manager - console application

Menu-driven front end: users register, browse events, book and cancel
tickets; administrators register events and review users and bookings.
"""

import hmac
import logging
import os
import sys
from getpass import getpass
from typing import List, Optional

from booking_config import DATE_FORMAT_HINT, settings, setup_logging
from booking_core import Booking, Event, TicketService, Validators, format_money
from booking_errors import BookingError, BookingNotFoundError, ValidationError
from booking_storage import StorageManager

logger = logging.getLogger(__name__)


def shorten(text: str, limit: int, keep: int) -> str:
    return text[:keep] + "..." if len(text) > limit else text


class CLIInterface:
    """Text-based user interface for the booking system."""

    def __init__(self, service: TicketService):
        self.service = service
        self.running = False

    # ------------------------------------------------------------------
    # screen helpers
    # ------------------------------------------------------------------

    def clear_screen(self):
        """Clear the terminal screen."""
        os.system('cls' if os.name == 'nt' else 'clear')

    def print_header(self, title: str):
        self.clear_screen()
        print(f"\n===== {title} =====")

    def print_line(self, width: int = 60):
        print("-" * width)

    def pause(self):
        input("\nPress Enter to return...")

    def show_warnings(self):
        for warning in self.service.drain_warnings():
            print(f"Warning: {warning}")

    # ------------------------------------------------------------------
    # input helpers
    # ------------------------------------------------------------------

    def prompt(self, text: str) -> str:
        return input(text).strip()

    def get_menu_choice(self, text: str, min_choice: int, max_choice: int) -> int:
        """Prompt until the answer is a number in range."""
        while True:
            answer = self.prompt(text)
            if not answer:
                continue
            try:
                choice = Validators.parse_int(answer, "your choice")
            except ValidationError:
                print(f"Invalid input! Please enter a number between {min_choice} and {max_choice}.")
                continue
            if choice < min_choice or choice > max_choice:
                print(f"Please enter a number between {min_choice} and {max_choice}.")
                continue
            return choice

    def prompt_int(self, text: str, label: str = "the value") -> int:
        while True:
            try:
                return Validators.parse_int(self.prompt(text), label)
            except ValidationError as e:
                print(e.message)

    def prompt_price(self, text: str):
        while True:
            try:
                return Validators.parse_price(self.prompt(text))
            except ValidationError as e:
                print(e.message)

    def prompt_quantity(self, text: str) -> int:
        while True:
            try:
                return Validators.parse_quantity(self.prompt(text))
            except ValidationError as e:
                print(e.message)

    def confirm(self, text: str) -> bool:
        while True:
            answer = self.prompt(text).upper()
            if answer in ("Y", "N"):
                return answer == "Y"

    # ------------------------------------------------------------------
    # main loop
    # ------------------------------------------------------------------

    def run(self):
        """Main application loop. Returns when the user chooses Exit."""
        self.running = True
        while self.running:
            self.main_menu()

    def main_menu(self):
        self.print_header("EVENT TICKETING SYSTEM")
        print("1. Register User")
        print("2. View All Events")
        print("3. Book Tickets")
        print("4. Cancel Booking")
        print("5. View My Bookings")
        print("6. Admin Login")
        print("7. Exit")

        choice = self.get_menu_choice("Enter your choice: ", 1, 7)

        if choice == 1:
            self.register_user_screen()
        elif choice == 2:
            self.view_events_screen("AVAILABLE EVENTS")
        elif choice == 3:
            self.book_tickets_screen()
        elif choice == 4:
            self.cancel_booking_screen()
        elif choice == 5:
            self.view_my_bookings_screen()
        elif choice == 6:
            if self.admin_login():
                self.admin_menu()
        elif choice == 7:
            self.exit_application()

    def exit_application(self):
        self.service.save_all()
        self.show_warnings()
        print("\nExiting program. Goodbye!")
        self.running = False

    # ------------------------------------------------------------------
    # user screens
    # ------------------------------------------------------------------

    def register_user_screen(self):
        self.print_header("USER REGISTRATION")
        while True:
            try:
                user = self.service.register_user(self.prompt("Enter User Name: "))
                break
            except ValidationError as e:
                print(e.message)

        print(f"Your User ID: {user.user_id}")
        print("\n✓ User registered successfully!")
        self.show_warnings()
        self.pause()

    def view_events_screen(self, title: str):
        self.print_header(title)
        self.display_events(self.service.session.events)
        self.pause()

    def display_events(self, events: List[Event]):
        """Compact table: the first two tiers of each event are listed."""
        if not events:
            print("No events registered yet.")
            return

        print("\n" + "=" * 102)
        print(f"{'ID':<6}{'EVENT NAME':<30}{'LOCATION':<26}{'DATE':<17}{'TOTAL TICKETS AVAILABLE':<22}")
        print("=" * 102)

        for event in events:
            print(f"{event.event_id:<6}"
                  f"{shorten(event.name, 24, 21):<30}"
                  f"{shorten(event.location, 19, 16):<26}"
                  f"{event.date:<17}"
                  f"{event.total_available():<22}")
            tiers = event.sorted_tiers()
            for tier_name, tier in tiers[:2]:
                print(f"     - {tier_name:<12}${format_money(tier.price)} ({tier.quantity})")
            if len(tiers) > 2:
                print(f"     + {len(tiers) - 2} more tiers...")
            print("-" * 102)

    def book_tickets_screen(self):
        self.print_header("BOOK TICKETS")
        session = self.service.session

        if not session.events:
            print("No events available for booking.")
            self.pause()
            return
        if not session.users:
            print("No users registered. Please register first.")
            self.pause()
            return

        try:
            user = self.service.get_user(self.prompt_int("Enter User ID: ", "the user ID"))

            print("\n===== Available Events =====")
            for event in self.service.available_events():
                print(f"ID: {event.event_id} | {event.name} ({event.date} at {event.location})")

            event = self.service.get_event(self.prompt_int("\nEnter Event ID to book: ", "the event ID"))
        except BookingError as e:
            print(f"\n✗ {e.message}")
            self.pause()
            return

        if event.total_available() <= 0:
            print("This event is sold out.")
            self.pause()
            return

        tiers = self.service.available_tiers(event.event_id)
        print("\n===== Available Ticket Tiers =====")
        print("0. Go back")
        for index, (tier_name, tier) in enumerate(tiers, 1):
            print(f"{index}. {tier_name} - ${format_money(tier.price)} ({tier.quantity} available)")

        choice = self.get_menu_choice(f"\nSelect ticket tier (0-{len(tiers)}): ", 0, len(tiers))
        if choice == 0:
            print("Returning to menu.")
            self.pause()
            return

        tier_name, tier = tiers[choice - 1]
        while True:
            quantity = self.prompt_int("Number of tickets to book: ", "the number of tickets")
            if quantity <= 0:
                print("Please enter at least 1 ticket.")
            elif quantity > tier.quantity:
                print(f"Only {tier.quantity} tickets available.")
            else:
                break

        print("\n===== Booking Summary =====")
        print(f"Event: {event.name}")
        print(f"Date: {event.date}")
        print(f"Location: {event.location}")
        print(f"Ticket Tier: {tier_name}")
        print(f"Quantity: {quantity}")
        print(f"Price per Ticket: ${format_money(tier.price)}")
        print(f"Total Price: ${format_money(quantity * tier.price)}")

        if not self.confirm("\nConfirm booking? (Y/N): "):
            print("Booking cancelled.")
            self.pause()
            return

        try:
            booking = self.service.book_ticket(user.user_id, event.event_id, tier_name, quantity)
        except BookingError as e:
            print(f"\n✗ {e.message}")
        else:
            print("\n✓ Booking confirmed!")
            print(f"Booking ID: {booking.booking_id}")
            self.show_warnings()
        self.pause()

    def cancel_booking_screen(self):
        self.print_header("CANCEL BOOKING")

        if not self.service.session.bookings:
            print("No bookings to cancel.")
            self.pause()
            return

        booking_id = self.prompt_int("Enter Booking ID to cancel: ", "the booking ID")
        try:
            booking = self.service.cancel_booking(booking_id)
        except BookingNotFoundError as e:
            print(f"\n✗ {e.message}")
        else:
            print("\n===== Cancellation Summary =====")
            print(f"Booking ID: {booking.booking_id} cancelled")
            print(f"{booking.tickets} tickets released")
            self.show_warnings()
        self.pause()

    def view_my_bookings_screen(self):
        self.print_header("MY BOOKINGS")

        if not self.service.session.bookings:
            print("No bookings found.")
            self.pause()
            return

        user_id = self.prompt_int("Enter your User ID: ", "the user ID")
        user = self.service.find_user(user_id)
        user_name = user.name if user else "No user found with this id"
        print(f"\nUser: {user_name} (ID: {user_id})\n")

        print(f"{'Booking ID':<12}{'Status':<15}{'Event':<15}{'Date':<12}"
              f"{'Location':<15}{'Tier':<12}{'Tickets':<8}{'Total Price':<12}")
        print("-" * 95)

        bookings = self.service.user_bookings(user_id)
        for booking in bookings:
            event = self.service.find_event(booking.event_id)
            print(f"{booking.booking_id:<12}{booking.status:<15}"
                  f"{event.name if event else 'Unknown':<15}"
                  f"{event.date if event else 'Unknown':<12}"
                  f"{event.location if event else 'Unknown':<15}"
                  f"{booking.tier_name:<12}{booking.tickets:<8}"
                  f"${format_money(booking.total_price):<11}")

        if not bookings:
            print(f"No bookings found for User ID: {user_id}")
        self.pause()

    # ------------------------------------------------------------------
    # admin screens
    # ------------------------------------------------------------------

    def admin_login(self) -> bool:
        self.print_header("ADMIN LOGIN")
        username = self.prompt("Username: ")
        password = getpass("Password: ")

        valid_user = hmac.compare_digest(username.encode(), settings.admin_username.encode())
        valid_password = hmac.compare_digest(password.encode(), settings.admin_password.encode())
        if not (valid_user and valid_password):
            logger.warning("Failed admin login for %r", username)
            print("Access denied! Invalid credentials.")
            self.pause()
            return False
        return True

    def admin_menu(self):
        while True:
            self.print_header("ADMIN PANEL")
            print("1. Register New Event")
            print("2. View All Events")
            print("3. View All Users")
            print("4. View All Bookings")
            print("5. Return to Main Menu")

            choice = self.get_menu_choice("Enter your choice: ", 1, 5)

            if choice == 1:
                self.register_event_screen()
            elif choice == 2:
                self.view_events_screen("ALL EVENTS")
            elif choice == 3:
                self.view_users_screen()
            elif choice == 4:
                self.view_all_bookings_screen()
            elif choice == 5:
                return

    def register_event_screen(self):
        self.print_header("REGISTER NEW EVENT")

        while True:
            name = self.prompt("Enter Event Name: ")
            if name:
                break
            print("Event name cannot be empty.")
        location = self.prompt("Enter Event Location: ")

        while True:
            date = self.prompt(f"Enter Event Date ({DATE_FORMAT_HINT}): ")
            is_valid, error = Validators.validate_date(date)
            if is_valid:
                break
            print(f"Error: {error}.")

        tiers = []
        while True:
            print("\nAdd Ticket Category (or 'done' to finish):")
            tier_name = self.prompt("Enter Category Name: ")
            if tier_name == "done":
                break
            try:
                tier_name = Validators.validate_tier_name(tier_name)
            except ValidationError as e:
                print(e.message)
                continue
            price = self.prompt_price("Enter price for this category: $")
            quantity = self.prompt_quantity("Enter available quantity of tickets: ")
            tiers.append((tier_name, price, quantity))

        default_price = default_quantity = None
        if not tiers:
            print("\nAdding default ticket category...")
            default_price = self.prompt_price("Enter default ticket price: $")
            default_quantity = self.prompt_quantity("Enter available quantity: ")

        try:
            event = self.service.create_event(name, location, date, tiers,
                                              default_price, default_quantity)
        except BookingError as e:
            print(f"\n✗ {e.message}")
        else:
            print(f"\n✓ Event registered successfully! Event ID: {event.event_id}")
            self.show_warnings()
        self.pause()

    def view_users_screen(self):
        self.print_header("ALL USERS")
        users = self.service.session.users

        if not users:
            print("No users registered.")
        else:
            print("\n" + "=" * 40)
            print(f"{'USER ID':<10}{'USER NAME':<30}")
            print("=" * 40)
            for user in users:
                print(f"{user.user_id:<10}{user.name:<30}")
                print("-" * 40)
            print(f"\nTotal Users: {len(users)}")
        self.pause()

    def view_all_bookings_screen(self):
        """Bookings grouped by user, with per-user and system totals."""
        self.print_header("ALL BOOKINGS - ADMIN VIEW")

        if not self.service.session.bookings:
            print("No bookings found.")
            self.pause()
            return

        for user_id, bookings in self.service.bookings_by_user().items():
            user = self.service.find_user(user_id)
            print(f"\n===== USER: {user.name if user else 'Unknown'} (ID: {user_id}) =====")
            self.print_line(105)
            print(f"{'Booking ID':<12}{'Event ID':<10}{'Event Name':<20}{'Date':<12}"
                  f"{'Ticket Tier':<15}{'Tickets':<8}{'Total Price':<16}{'Status':<12}")
            self.print_line(105)
            for booking in bookings:
                self.print_booking_row(booking)
            self.print_line(105)

            totals = self.service.summarize(bookings)
            print(f"USER TOTALS: {totals['confirmed_tickets']} tickets | "
                  f"${format_money(totals['total_revenue'])}")

        totals = self.service.system_totals()
        print("\n===== SYSTEM TOTALS =====")
        print(f"TOTAL BOOKINGS: {totals['total_bookings']} "
              f"(Confirmed: {totals['confirmed_bookings']}, "
              f"Cancelled: {totals['cancelled_bookings']})")
        print(f"TOTAL CONFIRMED TICKETS: {totals['confirmed_tickets']}")
        print(f"TOTAL REVENUE: ${format_money(totals['total_revenue'])}")
        self.pause()

    def print_booking_row(self, booking: Booking):
        event: Optional[Event] = self.service.find_event(booking.event_id)
        print(f"{booking.booking_id:<12}{booking.event_id:<10}"
              f"{shorten(event.name, 19, 16) if event else 'Unknown':<20}"
              f"{event.date if event else 'Unknown':<12}"
              f"{booking.tier_name:<15}{booking.tickets:<8}"
              f"${format_money(booking.total_price):<15}{booking.status:<12}")


def main():
    """Main entry point of the application."""
    setup_logging(settings.log_level, settings.log_file or None)
    service = TicketService.load(StorageManager())
    app = CLIInterface(service)
    try:
        app.run()
    except (KeyboardInterrupt, EOFError):
        service.save_all()
        print("\n\nApplication terminated by user.")
        sys.exit(0)


if __name__ == "__main__":
    main()
