"""Service request CRUD routes."""

from flask import request, jsonify
from hopaba import db
from hopaba.constants import is_all_categories, same_category
from hopaba.models import ServiceRequest, ServiceProvider, Conversation, Message, SavedQuotation
from hopaba.routes.providers.helpers import check_category
from hopaba.routes.service_requests import service_requests_bp
from hopaba.routes.service_requests.matching import notify_providers_for_request
from hopaba.utils.auth import token_required, token_optional, is_admin_user
from hopaba.utils.sanitize import sanitize_text, sanitize_url
from hopaba.utils.validation import validate_request_data, parse_date, normalize_phone
import logging

logger = logging.getLogger(__name__)

TEXT_FIELDS = ('title', 'description', 'subcategory', 'city', 'area')


def _extract_request_fields(data):
    fields = {}
    for field in TEXT_FIELDS:
        if field in data:
            fields[field] = sanitize_text(data[field] or '') or None
    if 'category' in data:
        fields['category'] = data['category']
    if 'postal_code' in data:
        fields['postal_code'] = str(data['postal_code']).strip()
    if 'budget' in data:
        fields['budget'] = float(data['budget']) if data['budget'] not in (None, '') else None
    for field in ('date_range_start', 'date_range_end'):
        if field in data:
            fields[field] = parse_date(data[field])
    if 'contact_phone' in data:
        fields['contact_phone'] = normalize_phone(data['contact_phone']) if data['contact_phone'] else None
    if 'images' in data:
        fields['images'] = [url for url in (sanitize_url(u) for u in data['images'] or []) if url]
    return fields


def delete_request_cascade(service_request):
    """Remove a request with its conversations, messages and saved quotations.

    Runs inside the caller's transaction; the caller commits or rolls back.
    """
    conversation_ids = [c.id for c in service_request.conversations]
    SavedQuotation.query.filter_by(request_id=service_request.id).delete(synchronize_session=False)
    if conversation_ids:
        Message.query.filter(
            Message.conversation_id.in_(conversation_ids)
        ).delete(synchronize_session=False)
        Conversation.query.filter(
            Conversation.id.in_(conversation_ids)
        ).delete(synchronize_session=False)
    db.session.delete(service_request)


def _get_owned_request(request_id, current_user_id):
    """Return (service_request, error_response)."""
    service_request = ServiceRequest.query.get(request_id)
    if not service_request:
        return None, (jsonify({'error': 'Request not found'}), 404)
    if service_request.user_id != current_user_id:
        return None, (jsonify({'error': 'You can only manage your own requests'}), 403)
    return service_request, None


@service_requests_bp.route('', methods=['POST'])
@token_required
def create_request(current_user_id):
    """Post a service request and alert matching providers."""
    data = request.get_json(silent=True) or {}

    error = validate_request_data(data) or check_category(data)
    if error:
        return jsonify({'error': error}), 400

    try:
        service_request = ServiceRequest(user_id=current_user_id, status='open',
                                         **_extract_request_fields(data))
        db.session.add(service_request)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500

    logger.info(f'Service request {service_request.id} created by user {current_user_id}')
    notification = notify_providers_for_request(service_request)

    return jsonify({
        'message': 'Request posted successfully',
        'request': service_request.to_dict(),
        'notification': notification
    }), 201


@service_requests_bp.route('/mine', methods=['GET'])
@token_required
def my_requests(current_user_id):
    requests_ = ServiceRequest.query.filter_by(user_id=current_user_id).order_by(
        ServiceRequest.created_at.desc()
    ).all()
    return jsonify({
        'requests': [r.to_dict() for r in requests_],
        'total': len(requests_)
    }), 200


@service_requests_bp.route('/open', methods=['GET'])
def open_requests():
    """Open requests, filterable by category, subcategory and city."""
    try:
        page = request.args.get('page', 1, type=int)
        per_page = min(request.args.get('per_page', 20, type=int), 100)
        category = request.args.get('category')
        subcategory = request.args.get('subcategory')
        city = request.args.get('city')

        query = ServiceRequest.query.filter_by(status='open')
        if not is_all_categories(category):
            query = query.filter(db.func.lower(ServiceRequest.category) == category.strip().lower())
        if subcategory:
            query = query.filter(db.func.lower(ServiceRequest.subcategory) == subcategory.strip().lower())
        if city:
            query = query.filter(db.func.lower(ServiceRequest.city) == city.strip().lower())

        paginated = query.order_by(ServiceRequest.created_at.desc()).paginate(
            page=page, per_page=per_page, error_out=False
        )
        return jsonify({
            'requests': [r.to_dict() for r in paginated.items],
            'total': paginated.total,
            'pages': paginated.pages,
            'current_page': page
        }), 200
    except Exception as e:
        return jsonify({'error': str(e)}), 500


@service_requests_bp.route('/for-provider/<int:provider_id>', methods=['GET'])
@token_required
def requests_for_provider(current_user_id, provider_id):
    """Open requests a provider could answer (provider inbox)."""
    provider = ServiceProvider.query.get(provider_id)
    if not provider:
        return jsonify({'error': 'Provider not found'}), 404
    if provider.user_id != current_user_id:
        return jsonify({'error': 'Access denied'}), 403

    candidates = ServiceRequest.query.filter(
        ServiceRequest.status == 'open',
        ServiceRequest.user_id != current_user_id
    ).order_by(ServiceRequest.created_at.desc()).all()

    city = (provider.city or '').strip().lower()
    matches = [
        r for r in candidates
        if same_category(r.category, provider.category)
        and provider.has_subcategory(r.subcategory)
        and (r.city or '').strip().lower() == city
    ]
    return jsonify({
        'requests': [r.to_dict() for r in matches],
        'total': len(matches)
    }), 200


@service_requests_bp.route('/<int:request_id>', methods=['GET'])
@token_optional
def get_request(current_user_id, request_id):
    service_request = ServiceRequest.query.get(request_id)
    if not service_request:
        return jsonify({'error': 'Request not found'}), 404

    data = service_request.to_dict()
    # Contact details only for the owner and admins
    if service_request.user_id != current_user_id and not is_admin_user(current_user_id):
        data.pop('contact_phone', None)
    return jsonify(data), 200


@service_requests_bp.route('/<int:request_id>', methods=['PUT'])
@token_required
def update_request(current_user_id, request_id):
    service_request, error_response = _get_owned_request(request_id, current_user_id)
    if error_response:
        return error_response

    data = request.get_json(silent=True) or {}
    error = validate_request_data(data, partial=True) or check_category(data)
    if error:
        return jsonify({'error': error}), 400

    fields = _extract_request_fields(data)
    start = fields.get('date_range_start', service_request.date_range_start)
    end = fields.get('date_range_end', service_request.date_range_end)
    if start and end and start > end:
        return jsonify({'error': 'date_range_start must be before date_range_end'}), 400

    try:
        for key, value in fields.items():
            setattr(service_request, key, value)
        db.session.commit()
        return jsonify({
            'message': 'Request updated successfully',
            'request': service_request.to_dict()
        }), 200
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


def _set_status(current_user_id, request_id, status):
    service_request, error_response = _get_owned_request(request_id, current_user_id)
    if error_response:
        return error_response
    try:
        service_request.status = status
        db.session.commit()
        return jsonify({'message': f'Request {status}', 'request': service_request.to_dict()}), 200
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@service_requests_bp.route('/<int:request_id>/close', methods=['POST'])
@token_required
def close_request(current_user_id, request_id):
    return _set_status(current_user_id, request_id, 'closed')


@service_requests_bp.route('/<int:request_id>/reopen', methods=['POST'])
@token_required
def reopen_request(current_user_id, request_id):
    return _set_status(current_user_id, request_id, 'open')


@service_requests_bp.route('/<int:request_id>', methods=['DELETE'])
@token_required
def delete_request(current_user_id, request_id):
    """Delete a request together with its conversations, all or nothing."""
    service_request, error_response = _get_owned_request(request_id, current_user_id)
    if error_response:
        return error_response

    try:
        delete_request_cascade(service_request)
        db.session.commit()
        return jsonify({'message': 'Request deleted successfully'}), 200
    except Exception as e:
        db.session.rollback()
        logger.error(f'Failed to delete request {request_id}: {e}')
        return jsonify({'error': str(e)}), 500
