"""Conversation and message routes."""

from flask import request, jsonify
from hopaba import db
from hopaba.models import User, ServiceProvider, ServiceRequest, Conversation, Message
from hopaba.routes.messages import messages_bp
from hopaba.services.push_notifications import notify_new_message, notify_new_quotation
from hopaba.services.realtime import emit_new_message, notify_conversation_participants
from hopaba.utils import token_required, get_display_name, send_safe
from hopaba.utils.sanitize import sanitize_text, sanitize_url
from hopaba.utils.validation import MAX_MESSAGE_LENGTH, text_fields_error, is_record_id
from datetime import datetime
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
import logging

logger = logging.getLogger(__name__)

CONVERSATION_LIST_LIMIT = 50
MESSAGE_PAGE_LIMIT = 100


def get_participant_conversation(conversation_id, user_id):
    """Return (conversation, error_response) for a participant of the conversation."""
    conversation = Conversation.query.get(conversation_id)
    if not conversation:
        return None, (jsonify({'error': 'Conversation not found'}), 404)
    if user_id not in conversation.participant_ids():
        return None, (jsonify({'error': 'Access denied'}), 403)
    return conversation, None


def sender_display_name(conversation, sender_type, sender_id):
    """Providers speak under their business name, requesters under their own."""
    if sender_type == 'provider' and conversation.provider:
        return conversation.provider.name
    return get_display_name(User.query.get(sender_id))


def deliver_message(conversation, message):
    """Realtime fan-out and Web Push for a committed message."""
    emit_new_message(conversation.id, message.to_dict())
    notify_conversation_participants(conversation)

    if message.sender_type == 'user':
        recipient_id = conversation.provider_owner_id
    else:
        recipient_id = conversation.user_id
    if recipient_id is None:
        return

    sender_name = sender_display_name(conversation, message.sender_type, message.sender_id)
    if message.is_quotation:
        send_safe(
            notify_new_quotation,
            recipient_id=recipient_id,
            provider_name=sender_name,
            price=message.quotation_price,
            request_title=conversation.request.title if conversation.request else '',
            conversation_id=conversation.id
        )
    else:
        send_safe(
            notify_new_message,
            recipient_id=recipient_id,
            sender_name=sender_name,
            message_preview=message.content or '📎 Attachment',
            conversation_id=conversation.id
        )


def clean_attachments(values):
    return [url for url in (sanitize_url(v) for v in values or [] if isinstance(v, str)) if url]


@messages_bp.route('/conversations', methods=['GET'])
@token_required
def get_conversations(current_user_id):
    """Conversations as requester plus those of providers the user owns."""
    try:
        owned_provider_ids = [
            p.id for p in ServiceProvider.query.filter_by(user_id=current_user_id).all()
        ]
        conversations = Conversation.query.filter(
            or_(
                Conversation.user_id == current_user_id,
                Conversation.provider_id.in_(owned_provider_ids)
            )
        ).order_by(Conversation.last_message_at.desc()).limit(CONVERSATION_LIST_LIMIT).all()

        return jsonify({
            'conversations': [conv.to_dict(current_user_id) for conv in conversations],
            'total': len(conversations)
        }), 200
    except Exception as e:
        return jsonify({'error': str(e)}), 500


@messages_bp.route('/conversations', methods=['POST'])
@token_required
def create_conversation(current_user_id):
    """Find or create the conversation between a request and a provider."""
    data = request.get_json(silent=True) or {}
    request_id = data.get('request_id')
    provider_id = data.get('provider_id')

    if not is_record_id(request_id) or not is_record_id(provider_id):
        return jsonify({'error': 'request_id and provider_id are required'}), 400

    service_request = ServiceRequest.query.get(request_id)
    if not service_request:
        return jsonify({'error': 'Request not found'}), 404
    provider = ServiceProvider.query.get(provider_id)
    if not provider:
        return jsonify({'error': 'Provider not found'}), 404

    if current_user_id not in (service_request.user_id, provider.user_id):
        return jsonify({'error': 'Access denied'}), 403
    if service_request.user_id == provider.user_id:
        return jsonify({'error': 'Cannot start a conversation with your own business'}), 400

    lookup = dict(request_id=service_request.id, provider_id=provider.id, user_id=service_request.user_id)
    existing = Conversation.query.filter_by(**lookup).first()
    if existing:
        return jsonify({'conversation': existing.to_dict(current_user_id), 'existing': True}), 200

    try:
        conversation = Conversation(**lookup)
        db.session.add(conversation)
        db.session.commit()
    except IntegrityError:
        # Lost a race with the other participant
        db.session.rollback()
        existing = Conversation.query.filter_by(**lookup).first()
        return jsonify({'conversation': existing.to_dict(current_user_id), 'existing': True}), 200
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500

    logger.info(f'Conversation {conversation.id} opened for request {request_id} / provider {provider_id}')
    notify_conversation_participants(conversation)
    return jsonify({'conversation': conversation.to_dict(current_user_id), 'existing': False}), 201


@messages_bp.route('/conversations/<int:conversation_id>', methods=['GET'])
@token_required
def get_conversation(current_user_id, conversation_id):
    """A conversation with its first 100 messages, oldest first."""
    conversation, error_response = get_participant_conversation(conversation_id, current_user_id)
    if error_response:
        return error_response

    messages = conversation.messages.order_by(None).order_by(
        Message.created_at.asc(), Message.id.asc()
    ).limit(MESSAGE_PAGE_LIMIT).all()

    return jsonify({
        'conversation': conversation.to_dict(current_user_id),
        'messages': [m.to_dict() for m in messages]
    }), 200


@messages_bp.route('/conversations/<int:conversation_id>/messages', methods=['POST'])
@token_required
def send_message(current_user_id, conversation_id):
    """Send a message in a conversation."""
    conversation, error_response = get_participant_conversation(conversation_id, current_user_id)
    if error_response:
        return error_response

    data = request.get_json(silent=True) or {}
    error = text_fields_error(data, ('content',))
    if error:
        return jsonify({'error': error}), 400
    if data.get('attachments') is not None and not isinstance(data['attachments'], list):
        return jsonify({'error': 'attachments must be a list'}), 400
    content = sanitize_text(data.get('content') or '')
    attachments = clean_attachments(data.get('attachments'))

    if not content and not attachments:
        return jsonify({'error': 'Message content is required'}), 400
    if len(content) > MAX_MESSAGE_LENGTH:
        return jsonify({'error': f'Message too long (max {MAX_MESSAGE_LENGTH} characters)'}), 400

    try:
        message = Message(
            conversation_id=conversation.id,
            sender_id=current_user_id,
            sender_type=conversation.sender_type_for(current_user_id),
            content=content,
            attachments=attachments
        )
        db.session.add(message)
        conversation.last_message_at = datetime.utcnow()
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f'Failed to send message in conversation {conversation_id}: {e}')
        return jsonify({'error': str(e)}), 500

    deliver_message(conversation, message)
    return jsonify({'message': message.to_dict()}), 201


@messages_bp.route('/conversations/<int:conversation_id>/read', methods=['POST'])
@token_required
def mark_conversation_read(current_user_id, conversation_id):
    """Mark the other side's messages as read."""
    conversation, error_response = get_participant_conversation(conversation_id, current_user_id)
    if error_response:
        return error_response

    try:
        updated_count = Message.query.filter(
            Message.conversation_id == conversation.id,
            Message.sender_type != conversation.sender_type_for(current_user_id),
            Message.read == False  # noqa: E712
        ).update({'read': True}, synchronize_session=False)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500

    if updated_count:
        notify_conversation_participants(conversation)
    return jsonify({'success': True, 'messages_marked_read': updated_count}), 200


@messages_bp.route('/unread-count', methods=['GET'])
@token_required
def get_unread_count(current_user_id):
    """Unread counts split by the role the user plays in each conversation."""
    try:
        as_requester = db.session.query(db.func.count(Message.id)).join(
            Conversation, Message.conversation_id == Conversation.id
        ).filter(
            Conversation.user_id == current_user_id,
            Message.sender_type == 'provider',
            Message.read == False  # noqa: E712
        ).scalar() or 0

        as_provider = db.session.query(db.func.count(Message.id)).join(
            Conversation, Message.conversation_id == Conversation.id
        ).join(
            ServiceProvider, Conversation.provider_id == ServiceProvider.id
        ).filter(
            ServiceProvider.user_id == current_user_id,
            Message.sender_type == 'user',
            Message.read == False  # noqa: E712
        ).scalar() or 0

        return jsonify({
            'as_requester': as_requester,
            'as_provider': as_provider,
            'total': as_requester + as_provider
        }), 200
    except Exception as e:
        return jsonify({'error': str(e)}), 500
