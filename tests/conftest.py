"""Pytest configuration and shared fixtures."""

import pytest

from booking_core import TicketService
from booking_storage import StorageManager
from booking_web import create_app
from event_booking_system import CLIInterface


class ScriptedInput:
    """Stands in for input(): answers prompts in order, Enter on pauses."""

    def __init__(self, answers):
        self.answers = list(answers)
        self.prompts = []

    def __call__(self, prompt=""):
        self.prompts.append(prompt)
        if "Press Enter" in prompt:
            return ""
        if not self.answers:
            raise EOFError
        return self.answers.pop(0)


@pytest.fixture
def storage(tmp_path) -> StorageManager:
    return StorageManager(str(tmp_path / "data"))


@pytest.fixture
def service(storage) -> TicketService:
    return TicketService.load(storage)


@pytest.fixture
def seeded_service(service) -> TicketService:
    """One user (Alice, id 1) and one event (Gala, id 1) with VIP and Standard tiers."""
    service.register_user("Alice")
    service.create_event(
        "Gala", "Hall", "15-06-2025",
        [("VIP", "100.00", 2), ("Standard", "50", 10)],
    )
    return service


@pytest.fixture
def cli(monkeypatch, seeded_service) -> CLIInterface:
    monkeypatch.setattr(CLIInterface, "clear_screen", lambda self: None)
    return CLIInterface(seeded_service)


@pytest.fixture
def scripted_input(monkeypatch):
    def install(*answers) -> ScriptedInput:
        scripted = ScriptedInput(answers)
        monkeypatch.setattr("builtins.input", scripted)
        return scripted
    return install


@pytest.fixture
def client(seeded_service):
    app = create_app(seeded_service)
    app.config['TESTING'] = True
    return app.test_client()


@pytest.fixture
def admin_client(client, monkeypatch):
    from booking_config import settings
    monkeypatch.setattr(settings, "admin_username", "admin")
    monkeypatch.setattr(settings, "admin_password", "admin123")
    response = client.post('/api/admin/login', json={'username': 'admin', 'password': 'admin123'})
    assert response.status_code == 200
    return client
