"""
Event Booking Manager - web API
Flask JSON front end over the same booking engine as the console app.
"""

import hmac
import logging
from functools import wraps
from typing import Dict

from flask import Flask, jsonify, request, session

from booking_config import settings, setup_logging
from booking_core import Booking, Event, TicketService, User, Validators, format_money
from booking_errors import (
    BookingError,
    InsufficientInventoryError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from booking_storage import StorageManager

logger = logging.getLogger(__name__)


# ============================================================================
# SERIALIZATION
# ============================================================================

def event_to_json(event: Event) -> Dict:
    return {
        'event_id': event.event_id,
        'name': event.name,
        'location': event.location,
        'date': event.date,
        'total_available': event.total_available(),
        'tiers': [
            {'name': name, 'price': format_money(tier.price), 'available': tier.quantity}
            for name, tier in event.sorted_tiers()
        ],
    }


def user_to_json(user: User) -> Dict:
    return {'user_id': user.user_id, 'name': user.name}


def booking_to_json(booking: Booking) -> Dict:
    return {
        'booking_id': booking.booking_id,
        'user_id': booking.user_id,
        'event_id': booking.event_id,
        'tier_name': booking.tier_name,
        'tickets': booking.tickets,
        'total_price': format_money(booking.total_price),
        'status': booking.status,
    }


def totals_to_json(totals: Dict) -> Dict:
    return dict(totals, total_revenue=format_money(totals['total_revenue']))


def error_status(error: BookingError) -> int:
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, InsufficientInventoryError):
        return 409
    if isinstance(error, PersistenceError):
        return 500
    return 400


# ============================================================================
# APPLICATION FACTORY
# ============================================================================

def create_app(service: TicketService = None) -> Flask:
    """Build the Flask app around a loaded TicketService."""
    if service is None:
        service = TicketService.load(StorageManager())

    app = Flask(__name__)
    app.secret_key = settings.secret_key
    app.config['TICKET_SERVICE'] = service

    def admin_required(f):
        """Decorator to require admin access for a route."""
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not session.get('is_admin'):
                return jsonify({'success': False, 'message': 'Admin login required'}), 403
            return f(*args, **kwargs)
        return decorated_function

    def respond(data, status: int = 200):
        body = {'success': True, 'data': data}
        warnings = service.drain_warnings()
        if warnings:
            body['warnings'] = warnings
        return jsonify(body), status

    def request_data() -> Dict:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        return data

    @app.errorhandler(BookingError)
    def handle_booking_error(error: BookingError):
        return jsonify({
            'success': False,
            'message': error.message,
            'code': error.code.value,
        }), error_status(error)

    # ------------------------------------------------------------------
    # admin session
    # ------------------------------------------------------------------

    @app.route('/api/admin/login', methods=['POST'])
    def api_admin_login():
        data = request_data()
        username = str(data.get('username', '')).encode()
        password = str(data.get('password', '')).encode()
        valid_user = hmac.compare_digest(username, settings.admin_username.encode())
        valid_password = hmac.compare_digest(password, settings.admin_password.encode())
        if not (valid_user and valid_password):
            logger.warning("Failed admin login over web API")
            return jsonify({'success': False, 'message': 'Invalid credentials'}), 401
        session['is_admin'] = True
        return jsonify({'success': True, 'message': 'Login successful!'})

    @app.route('/api/admin/logout', methods=['POST'])
    def api_admin_logout():
        session.clear()
        return jsonify({'success': True, 'message': 'Logged out'})

    # ------------------------------------------------------------------
    # events
    # ------------------------------------------------------------------

    @app.route('/api/events', methods=['GET'])
    def api_events():
        """List events. ?available=1 limits to events with tickets left."""
        if request.args.get('available') in ('1', 'true', 'yes'):
            events = service.available_events()
        else:
            events = service.session.events
        return respond([event_to_json(event) for event in events])

    @app.route('/api/events/<int:event_id>', methods=['GET'])
    def api_event(event_id: int):
        return respond(event_to_json(service.get_event(event_id)))

    @app.route('/api/events', methods=['POST'])
    @admin_required
    def api_create_event():
        data = request_data()
        raw_tiers = data.get('tiers') or []
        if not isinstance(raw_tiers, list) or not all(isinstance(t, dict) for t in raw_tiers):
            raise ValidationError("tiers must be a list of objects")
        tiers = [
            (tier.get('name', ''), tier.get('price', ''), tier.get('quantity', ''))
            for tier in raw_tiers
        ]
        event = service.create_event(
            data.get('name', ''),
            data.get('location', ''),
            data.get('date', ''),
            tiers,
            data.get('default_price'),
            data.get('default_quantity'),
        )
        return respond(event_to_json(event), 201)

    # ------------------------------------------------------------------
    # users
    # ------------------------------------------------------------------

    @app.route('/api/users', methods=['POST'])
    def api_register_user():
        user = service.register_user(request_data().get('name', ''))
        return respond(user_to_json(user), 201)

    @app.route('/api/users', methods=['GET'])
    @admin_required
    def api_users():
        return respond([user_to_json(user) for user in service.session.users])

    @app.route('/api/users/<int:user_id>/bookings', methods=['GET'])
    def api_user_bookings(user_id: int):
        return respond({
            'bookings': [booking_to_json(b) for b in service.user_bookings(user_id)],
            'totals': totals_to_json(service.user_totals(user_id)),
        })

    # ------------------------------------------------------------------
    # bookings
    # ------------------------------------------------------------------

    @app.route('/api/bookings', methods=['POST'])
    def api_book():
        data = request_data()
        booking = service.book_ticket(
            Validators.parse_int(data.get('user_id', ''), "the user ID"),
            Validators.parse_int(data.get('event_id', ''), "the event ID"),
            str(data.get('tier_name', '')),
            Validators.parse_int(data.get('quantity', ''), "the number of tickets"),
        )
        return respond(booking_to_json(booking), 201)

    @app.route('/api/bookings/<int:booking_id>/cancel', methods=['POST'])
    def api_cancel(booking_id: int):
        return respond(booking_to_json(service.cancel_booking(booking_id)))

    @app.route('/api/bookings', methods=['GET'])
    @admin_required
    def api_all_bookings():
        """All bookings grouped by user, with system totals (admin only)."""
        groups = []
        for user_id, bookings in service.bookings_by_user().items():
            user = service.find_user(user_id)
            groups.append({
                'user_id': user_id,
                'user_name': user.name if user else 'Unknown',
                'bookings': [booking_to_json(b) for b in bookings],
                'totals': totals_to_json(service.summarize(bookings)),
            })
        return respond({
            'users': groups,
            'totals': totals_to_json(service.system_totals()),
        })

    return app


# ============================================================================
# MAIN EXECUTION
# ============================================================================

if __name__ == "__main__":
    setup_logging(settings.log_level, settings.log_file or None)
    print("=" * 60)
    print("Event Booking Manager - Web API")
    print("=" * 60)
    print(f"Server starting on http://{settings.web_host}:{settings.web_port}")
    print("=" * 60)
    create_app().run(host=settings.web_host, port=settings.web_port, debug=False)
