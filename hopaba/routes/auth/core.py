"""Core authentication routes: registration and login."""

from flask import request, jsonify
from hopaba import db, limiter
from hopaba.models import User
from hopaba.routes.auth import auth_bp
from hopaba.utils.auth import generate_token
from hopaba.utils.sanitize import sanitize_email, sanitize_text
from hopaba.utils.validation import (
    validate_email, validate_password, is_valid_phone_number, normalize_phone, text_fields_error,
)


@auth_bp.route('/register', methods=['POST'])
@limiter.limit("5 per minute")
def register():
    """Register a new account and log it in."""
    try:
        data = request.get_json(silent=True) or {}

        if not data.get('email') or not data.get('password'):
            return jsonify({'error': 'Missing email or password'}), 400

        type_error = text_fields_error(data, ('email', 'full_name', 'phone'))
        if type_error:
            return jsonify({'error': type_error}), 400

        email = sanitize_email(data['email'])
        password = data['password']
        full_name = sanitize_text(data.get('full_name') or '') or None
        phone = data.get('phone') or None

        email_error = validate_email(email)
        if email_error:
            return jsonify({'error': email_error}), 400

        password_errors = validate_password(password)
        if password_errors:
            return jsonify({'error': password_errors[0], 'details': password_errors}), 400

        if len(password) > 128:
            return jsonify({'error': 'Password must be less than 128 characters'}), 400

        if full_name and len(full_name) > 120:
            return jsonify({'error': 'Full name must be less than 120 characters'}), 400

        if phone and not is_valid_phone_number(phone):
            return jsonify({'error': 'Phone must be +91 followed by 10 digits'}), 400
        if phone:
            phone = normalize_phone(phone)

        if User.query.filter_by(email=email).first():
            return jsonify({'error': 'Email already exists'}), 409

        user = User(email=email, full_name=full_name, phone=phone)
        user.set_password(password)

        db.session.add(user)
        db.session.commit()

        return jsonify({
            'message': 'User registered successfully',
            'token': generate_token(user),
            'user': user.to_dict()
        }), 201
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@auth_bp.route('/login', methods=['POST'])
@limiter.limit("10 per minute")
def login():
    """Authenticate user and return JWT token."""
    data = request.get_json(silent=True) or {}

    if not data.get('email') or not data.get('password'):
        return jsonify({'error': 'Missing email or password'}), 400
    if not isinstance(data['email'], str) or not isinstance(data['password'], str):
        return jsonify({'error': 'Invalid email or password'}), 401

    user = User.query.filter_by(email=sanitize_email(data['email'])).first()

    if not user or not user.check_password(data['password']):
        return jsonify({'error': 'Invalid email or password'}), 401

    if not user.is_active:
        return jsonify({'error': 'Account is disabled'}), 403

    return jsonify({
        'message': 'Login successful',
        'token': generate_token(user),
        'user': user.to_dict()
    }), 200
