"""Provider matching for service requests."""

from flask import jsonify
from hopaba.models import ServiceRequest
from hopaba.routes.service_requests import service_requests_bp
from hopaba.services.provider_notifications import find_matching_providers, notify_matching_providers
from hopaba.services.push_notifications import notify_request_match
from hopaba.utils.auth import token_required, is_admin_user
from hopaba.utils.user_helpers import send_safe
import logging

logger = logging.getLogger(__name__)


def notify_providers_for_request(service_request):
    """WhatsApp and push alerts to providers matching a new request.

    Never raises: the request is already saved when this runs. Returns the
    WhatsApp summary, or None if the notification step itself failed.
    """
    result = send_safe(notify_matching_providers, service_request)

    owner_ids = {
        p.user_id for p in send_safe(find_matching_providers, service_request) or []
        if p.user_id != service_request.user_id
    }
    for owner_id in owner_ids:
        send_safe(
            notify_request_match,
            provider_owner_id=owner_id,
            request_title=service_request.title,
            request_id=service_request.id
        )
    return result


def _get_managed_request(request_id, current_user_id):
    service_request = ServiceRequest.query.get(request_id)
    if not service_request:
        return None, (jsonify({'error': 'Request not found'}), 404)
    if service_request.user_id != current_user_id and not is_admin_user(current_user_id):
        return None, (jsonify({'error': 'Access denied'}), 403)
    return service_request, None


@service_requests_bp.route('/<int:request_id>/matching-providers', methods=['GET'])
@token_required
def matching_providers(current_user_id, request_id):
    service_request, error_response = _get_managed_request(request_id, current_user_id)
    if error_response:
        return error_response

    providers = find_matching_providers(service_request)
    return jsonify({
        'providers': [p.to_dict() for p in providers],
        'total': len(providers)
    }), 200


@service_requests_bp.route('/<int:request_id>/notify-providers', methods=['POST'])
@token_required
def notify_providers(current_user_id, request_id):
    """Re-send the WhatsApp announcement for a request."""
    service_request, error_response = _get_managed_request(request_id, current_user_id)
    if error_response:
        return error_response

    try:
        result = notify_matching_providers(service_request)
    except Exception as e:
        logger.error(f'[WHATSAPP] Notify failed for request {request_id}: {e}')
        return jsonify({'error': str(e)}), 500
    return jsonify(result), 200
