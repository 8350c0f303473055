"""Quotation routes: a provider's price offer sent as a message."""

from flask import request, jsonify
from hopaba import db
from hopaba.models import Message
from hopaba.routes.messages import messages_bp
from hopaba.routes.messages.conversations import (
    get_participant_conversation, deliver_message, clean_attachments,
)
from hopaba.utils import token_required
from hopaba.utils.sanitize import sanitize_text
from hopaba.utils.validation import validate_quotation, text_fields_error, MAX_MESSAGE_LENGTH
from datetime import datetime
import logging

logger = logging.getLogger(__name__)


def _optional_price(value):
    if value in (None, ''):
        return None
    return float(value)


@messages_bp.route('/conversations/<int:conversation_id>/quotations', methods=['POST'])
@token_required
def send_quotation(current_user_id, conversation_id):
    """
    Send a quotation. Only the provider side of a conversation may quote.

    Body: quotation_price, pricing_type (fixed|negotiable|wholesale),
    wholesale_price, negotiable_price, delivery_available,
    quotation_images, content.
    """
    conversation, error_response = get_participant_conversation(conversation_id, current_user_id)
    if error_response:
        return error_response
    if conversation.sender_type_for(current_user_id) != 'provider':
        return jsonify({'error': 'Only the provider can send a quotation'}), 403

    data = request.get_json(silent=True) or {}
    error = validate_quotation(data)
    if error:
        return jsonify({'error': error}), 400

    error = text_fields_error(data, ('content',))
    if error:
        return jsonify({'error': error}), 400
    content = sanitize_text(data.get('content') or '')
    if len(content) > MAX_MESSAGE_LENGTH:
        return jsonify({'error': f'Message too long (max {MAX_MESSAGE_LENGTH} characters)'}), 400

    pricing_type = data.get('pricing_type', 'fixed')
    try:
        message = Message(
            conversation_id=conversation.id,
            sender_id=current_user_id,
            sender_type='provider',
            content=content,
            quotation_price=float(data['quotation_price']),
            pricing_type=pricing_type,
            wholesale_price=_optional_price(data.get('wholesale_price')) if pricing_type == 'wholesale' else None,
            negotiable_price=_optional_price(data.get('negotiable_price')) if pricing_type == 'negotiable' else None,
            delivery_available=bool(data.get('delivery_available', False)),
            quotation_images=clean_attachments(data.get('quotation_images')),
            attachments=[]
        )
        db.session.add(message)
        conversation.last_message_at = datetime.utcnow()
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f'Failed to send quotation in conversation {conversation_id}: {e}')
        return jsonify({'error': str(e)}), 500

    logger.info(f'Quotation {message.id} of {message.quotation_price} sent in conversation {conversation.id}')
    deliver_message(conversation, message)
    return jsonify({'message': message.to_dict()}), 201
