"""Event routes: public browsing and organizer CRUD."""

from flask import Blueprint, request, jsonify
from hopaba import db
from hopaba.models import Event, WishlistItem
from hopaba.utils import token_required, token_optional, is_admin_user
from hopaba.utils.sanitize import sanitize_text, sanitize_url
from hopaba.utils.validation import validate_event_data, parse_date
from datetime import date
import logging

events_bp = Blueprint('events', __name__)

logger = logging.getLogger(__name__)


def _extract_event_fields(data):
    fields = {}
    for field in ('title', 'description', 'time', 'location'):
        if field in data:
            fields[field] = sanitize_text(data[field] or '')
    if 'date' in data:
        fields['date'] = parse_date(data['date'])
    if 'image' in data:
        fields['image'] = sanitize_url(data['image']) or ''
    if 'attendees' in data:
        fields['attendees'] = int(float(data['attendees'])) if data['attendees'] not in (None, '') else 0
    if 'price_per_person' in data:
        fields['price_per_person'] = float(data['price_per_person']) if data['price_per_person'] not in (None, '') else 0
    return fields


def order_upcoming_first(events, today=None):
    """Upcoming events soonest first, then past events most recent first."""
    today = today or date.today()
    upcoming = sorted((e for e in events if e.date >= today), key=lambda e: (e.date, e.id))
    past = sorted((e for e in events if e.date < today), key=lambda e: (e.date, e.id), reverse=True)
    return upcoming + past


@events_bp.route('', methods=['GET'])
def get_events():
    """Approved events, upcoming first."""
    try:
        include_past = request.args.get('include_past', 'true').lower() != 'false'
        query = Event.query.filter_by(approval_status='approved')
        if not include_past:
            query = query.filter(Event.date >= date.today())
        events = order_upcoming_first(query.all())
        return jsonify({
            'events': [e.to_dict() for e in events],
            'total': len(events)
        }), 200
    except Exception as e:
        return jsonify({'error': str(e)}), 500


@events_bp.route('/mine', methods=['GET'])
@token_required
def my_events(current_user_id):
    events = Event.query.filter_by(user_id=current_user_id).order_by(Event.date.desc()).all()
    return jsonify({
        'events': [e.to_dict() for e in events],
        'total': len(events)
    }), 200


@events_bp.route('/<int:event_id>', methods=['GET'])
@token_optional
def get_event(current_user_id, event_id):
    event = Event.query.get(event_id)
    if not event:
        return jsonify({'error': 'Event not found'}), 404
    if event.approval_status != 'approved' and event.user_id != current_user_id \
            and not is_admin_user(current_user_id):
        return jsonify({'error': 'Event not found'}), 404
    return jsonify(event.to_dict()), 200


@events_bp.route('', methods=['POST'])
@token_required
def create_event(current_user_id):
    data = request.get_json(silent=True) or {}
    error = validate_event_data(data)
    if error:
        return jsonify({'error': error}), 400

    try:
        event = Event(user_id=current_user_id, approval_status='pending', **_extract_event_fields(data))
        db.session.add(event)
        db.session.commit()
        logger.info(f'Event {event.id} created by user {current_user_id}')
        return jsonify({'message': 'Event submitted for approval', 'event': event.to_dict()}), 201
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@events_bp.route('/<int:event_id>', methods=['PUT'])
@token_required
def update_event(current_user_id, event_id):
    event = Event.query.get(event_id)
    if not event:
        return jsonify({'error': 'Event not found'}), 404
    if event.user_id != current_user_id:
        return jsonify({'error': 'You can only edit your own events'}), 403

    data = request.get_json(silent=True) or {}
    error = validate_event_data(data, partial=True)
    if error:
        return jsonify({'error': error}), 400

    try:
        for key, value in _extract_event_fields(data).items():
            setattr(event, key, value)
        db.session.commit()
        return jsonify({'message': 'Event updated successfully', 'event': event.to_dict()}), 200
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@events_bp.route('/<int:event_id>', methods=['DELETE'])
@token_required
def delete_event(current_user_id, event_id):
    event = Event.query.get(event_id)
    if not event:
        return jsonify({'error': 'Event not found'}), 404
    if event.user_id != current_user_id and not is_admin_user(current_user_id):
        return jsonify({'error': 'You can only delete your own events'}), 403

    try:
        WishlistItem.query.filter_by(item_type='event', item_id=event.id).delete(synchronize_session=False)
        db.session.delete(event)
        db.session.commit()
        return jsonify({'message': 'Event deleted successfully'}), 200
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500
