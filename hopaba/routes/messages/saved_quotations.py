"""Saved quotation routes (requester bookmarks)."""

from flask import request, jsonify
from hopaba import db
from hopaba.models import Message, SavedQuotation
from hopaba.routes.messages import messages_bp
from hopaba.utils import token_required
from hopaba.utils.validation import is_record_id


@messages_bp.route('/saved-quotations', methods=['GET'])
@token_required
def list_saved_quotations(current_user_id):
    saved = SavedQuotation.query.filter_by(user_id=current_user_id).order_by(
        SavedQuotation.created_at.desc()
    ).all()
    return jsonify({
        'saved_quotations': [s.to_dict() for s in saved],
        'total': len(saved)
    }), 200


@messages_bp.route('/saved-quotations', methods=['POST'])
@token_required
def save_quotation(current_user_id):
    """Bookmark a quotation from one of the user's own requests."""
    data = request.get_json(silent=True) or {}
    message_id = data.get('message_id')
    if not is_record_id(message_id):
        return jsonify({'error': 'message_id is required'}), 400

    message = Message.query.get(message_id)
    if not message:
        return jsonify({'error': 'Message not found'}), 404
    if not message.is_quotation:
        return jsonify({'error': 'Only quotations can be saved'}), 400

    conversation = message.conversation
    if conversation.user_id != current_user_id:
        return jsonify({'error': 'Access denied'}), 403

    if SavedQuotation.query.filter_by(user_id=current_user_id, message_id=message.id).first():
        return jsonify({'error': 'Quotation already saved'}), 409

    try:
        saved = SavedQuotation(
            user_id=current_user_id,
            message_id=message.id,
            conversation_id=conversation.id,
            provider_id=conversation.provider_id,
            request_id=conversation.request_id
        )
        db.session.add(saved)
        db.session.commit()
        return jsonify({'message': 'Quotation saved', 'saved_quotation': saved.to_dict()}), 201
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@messages_bp.route('/saved-quotations/<int:saved_id>', methods=['DELETE'])
@token_required
def delete_saved_quotation(current_user_id, saved_id):
    saved = SavedQuotation.query.get(saved_id)
    if not saved or saved.user_id != current_user_id:
        return jsonify({'error': 'Saved quotation not found'}), 404

    try:
        db.session.delete(saved)
        db.session.commit()
        return jsonify({'message': 'Saved quotation removed'}), 200
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500
