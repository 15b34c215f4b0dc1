"""Console flows driven with scripted input."""

from decimal import Decimal

import pytest

import event_booking_system
from booking_config import settings
from booking_core import TicketService, User
from booking_storage import StorageManager
from event_booking_system import CLIInterface


@pytest.fixture
def admin_password(monkeypatch):
    monkeypatch.setattr(settings, "admin_username", "admin")
    monkeypatch.setattr(settings, "admin_password", "secret")
    monkeypatch.setattr(event_booking_system, "getpass", lambda prompt="": "secret")


class TestUserFlows:

    def test_register_user(self, cli, scripted_input, storage):
        scripted_input("1", "Bob", "7")
        cli.run()
        assert [u.name for u in cli.service.session.users] == ["Alice", "Bob"]
        with open(storage.users_file) as f:
            assert f.read() == "1,Alice\n2,Bob\n"

    def test_blank_name_is_reprompted(self, cli, scripted_input):
        scripted = scripted_input("1", "  ", "Bob", "7")
        cli.run()
        assert cli.service.session.users[-1].name == "Bob"
        assert scripted.prompts.count("Enter User Name: ") == 2

    def test_menu_rejects_non_numeric_and_out_of_range(self, cli, scripted_input, capsys):
        scripted_input("abc", "9", "", "7")
        cli.run()
        out = capsys.readouterr().out
        assert "Invalid input! Please enter a number between 1 and 7." in out
        assert "Please enter a number between 1 and 7." in out
        assert not cli.running

    def test_book_tickets(self, cli, scripted_input, capsys):
        # tiers are listed by name: 1 = Standard, 2 = VIP
        scripted_input("3", "1", "1", "2", "5", "2", "x", "y", "7")
        cli.run()
        booking = cli.service.session.bookings[0]
        assert (booking.tier_name, booking.tickets) == ("VIP", 2)
        assert booking.total_price == Decimal("200.00")
        out = capsys.readouterr().out
        assert "Only 2 tickets available." in out
        assert "Total Price: $200.00" in out
        assert "Booking ID: 1" in out

    def test_declined_confirmation_books_nothing(self, cli, scripted_input):
        scripted_input("3", "1", "1", "1", "1", "N", "7")
        cli.run()
        assert cli.service.session.bookings == []
        assert cli.service.get_event(1).get_tier("Standard").quantity == 10

    def test_unknown_user_abandons_booking(self, cli, scripted_input, capsys):
        scripted_input("3", "42", "7")
        cli.run()
        assert "User ID 42 not found" in capsys.readouterr().out
        assert cli.service.session.bookings == []

    def test_go_back_from_tier_menu(self, cli, scripted_input, capsys):
        scripted_input("3", "1", "1", "0", "7")
        cli.run()
        assert "Returning to menu." in capsys.readouterr().out
        assert cli.service.session.bookings == []

    def test_cancel_booking_twice(self, cli, scripted_input, capsys):
        cli.service.book_ticket(1, 1, "VIP", 2)
        scripted_input("4", "1", "4", "1", "7")
        cli.run()
        out = capsys.readouterr().out
        assert "2 tickets released" in out
        assert "Booking not found or already cancelled" in out
        assert cli.service.get_event(1).get_tier("VIP").quantity == 2

    def test_view_my_bookings(self, cli, scripted_input, capsys):
        booking = cli.service.book_ticket(1, 1, "Standard", 2)
        cli.service.cancel_booking(booking.booking_id)
        scripted_input("5", "1", "7")
        cli.run()
        out = capsys.readouterr().out
        assert "User: Alice (ID: 1)" in out
        assert "Cancelled" in out
        assert "$100.00" in out

    def test_view_events_lists_two_tiers_then_summary(self, cli, scripted_input, capsys):
        cli.service.create_event("Fest", "Park", "01-08-2025",
                                 [("A", "1", 1), ("B", "2", 2), ("C", "3", 3), ("D", "4", 4)])
        scripted_input("2", "7")
        cli.run()
        out = capsys.readouterr().out
        assert "Gala" in out
        assert "+ 2 more tiers..." in out


class TestAdminFlows:

    def test_wrong_password_denied(self, cli, scripted_input, monkeypatch, capsys):
        monkeypatch.setattr(settings, "admin_password", "secret")
        monkeypatch.setattr(event_booking_system, "getpass", lambda prompt="": "nope")
        scripted_input("6", "admin", "7")
        cli.run()
        assert "Access denied!" in capsys.readouterr().out

    def test_register_event_with_default_tier(self, cli, scripted_input, admin_password, capsys):
        scripted_input(
            "6", "admin",
            "1", "Concert", "Arena", "31-04-2025", "30-04-2025",
            "done", "25", "100",
            "5", "7",
        )
        cli.run()
        event = cli.service.get_event(2)
        assert event.name == "Concert"
        assert event.date == "30-04-2025"
        assert event.get_tier("Standard").price == Decimal("25")
        assert event.get_tier("Standard").quantity == 100
        assert "This month only has 30 days" in capsys.readouterr().out

    def test_register_event_with_tiers(self, cli, scripted_input, admin_password):
        scripted_input(
            "6", "admin",
            "1", "Concert", "Arena", "01-09-2025",
            "Floor:1", "Floor", "abc", "40", "-1", "300",
            "Box", "120.5", "10",
            "done",
            "5", "7",
        )
        cli.run()
        event = cli.service.get_event(2)
        assert sorted(event.tiers) == ["Box", "Floor"]
        assert event.get_tier("Floor").quantity == 300
        assert event.get_tier("Box").price == Decimal("120.5")

    def test_view_all_bookings_shows_totals(self, cli, scripted_input, admin_password, capsys):
        cli.service.register_user("Bob")
        first = cli.service.book_ticket(1, 1, "VIP", 1)
        cli.service.book_ticket(2, 1, "Standard", 2)
        cli.service.cancel_booking(first.booking_id)
        scripted_input("6", "admin", "4", "3", "5", "7")
        cli.run()
        out = capsys.readouterr().out
        assert "===== USER: Alice (ID: 1) =====" in out
        assert "===== USER: Bob (ID: 2) =====" in out
        assert "TOTAL BOOKINGS: 2 (Confirmed: 1, Cancelled: 1)" in out
        assert "TOTAL CONFIRMED TICKETS: 2" in out
        assert "TOTAL REVENUE: $100.00" in out
        assert "Total Users: 2" in out


class TestExit:

    def test_exit_saves_all_collections(self, cli, scripted_input, storage):
        cli.service.session.users.append(User(2, "Offline"))
        scripted_input("7")
        cli.run()
        with open(storage.users_file) as f:
            assert "2,Offline" in f.read()

    def test_main_saves_on_end_of_input(self, tmp_path, monkeypatch, scripted_input):
        storage = StorageManager(str(tmp_path / "data"))
        monkeypatch.setattr(event_booking_system, "StorageManager", lambda: storage)
        monkeypatch.setattr(CLIInterface, "clear_screen", lambda self: None)
        scripted_input("1", "Zoe")
        with pytest.raises(SystemExit) as exc:
            event_booking_system.main()
        assert exc.value.code == 0
        assert [u.name for u in TicketService.load(storage).session.users] == ["Zoe"]
