"""Current user profile endpoints."""

from flask import request, jsonify
from hopaba import db
from hopaba.models import User
from hopaba.routes.auth import auth_bp
from hopaba.utils.auth import token_required
from hopaba.utils.sanitize import sanitize_text, sanitize_url
from hopaba.utils.validation import is_valid_phone_number, normalize_phone

# Allowed fields for profile update (prevent mass assignment)
PROFILE_ALLOWED_FIELDS = {'full_name', 'phone', 'avatar_url', 'city'}


def _validate_profile_data(data):
    """Validate profile update fields. Returns error message or None."""
    unknown = set(data.keys()) - PROFILE_ALLOWED_FIELDS
    if unknown:
        return f"Unknown fields: {', '.join(sorted(unknown))}"

    length_limits = {'full_name': 120, 'city': 80, 'avatar_url': 500, 'phone': 20}
    for field, max_len in length_limits.items():
        if field in data and data[field] is not None:
            if not isinstance(data[field], str):
                return f"{field} must be a string"
            if len(data[field]) > max_len:
                return f"{field} must be less than {max_len} characters"

    if data.get('phone') and not is_valid_phone_number(data['phone']):
        return 'Phone must be +91 followed by 10 digits'

    if data.get('avatar_url') and not sanitize_url(data['avatar_url']):
        return 'avatar_url must be an http(s) URL'

    return None


@auth_bp.route('/me', methods=['GET'])
@token_required
def get_me(current_user_id):
    user = User.query.get(current_user_id)
    if not user:
        return jsonify({'error': 'User not found'}), 404
    return jsonify({'user': user.to_dict()}), 200


@auth_bp.route('/me', methods=['PUT'])
@token_required
def update_me(current_user_id):
    """Update whitelisted profile fields of the current user."""
    user = User.query.get(current_user_id)
    if not user:
        return jsonify({'error': 'User not found'}), 404

    data = request.get_json(silent=True) or {}
    error = _validate_profile_data(data)
    if error:
        return jsonify({'error': error}), 400

    try:
        for field in PROFILE_ALLOWED_FIELDS & set(data.keys()):
            value = data[field]
            if field == 'phone' and value:
                value = normalize_phone(value)
            elif isinstance(value, str) and field != 'avatar_url':
                value = sanitize_text(value) or None
            setattr(user, field, value)
        db.session.commit()
        return jsonify({'message': 'Profile updated', 'user': user.to_dict()}), 200
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500
