"""Community notes on a business, with thumbs-up and comments."""

from flask import Blueprint, request, jsonify
from hopaba import db
from hopaba.models import CommunityNote, NoteComment, ServiceProvider
from hopaba.utils import token_required, token_optional
from hopaba.utils.sanitize import sanitize_text, sanitize_url
from hopaba.utils.validation import text_fields_error, is_record_id
import logging

notes_bp = Blueprint('community_notes', __name__)

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 1000
MAX_CONTENT_BLOCKS = 200


def _clean_blocks(blocks):
    """Editor blocks are dicts; string values are sanitized, the rest kept."""
    cleaned = []
    for block in (blocks or [])[:MAX_CONTENT_BLOCKS]:
        if not isinstance(block, dict):
            continue
        cleaned.append({
            key: sanitize_text(value) if isinstance(value, str) else value
            for key, value in block.items()
        })
    return cleaned


def _clean_social_links(links):
    cleaned = []
    for link in links or []:
        if isinstance(link, str):
            url = sanitize_url(link)
            if url:
                cleaned.append(url)
        elif isinstance(link, dict) and sanitize_url(link.get('url')):
            cleaned.append({
                'platform': sanitize_text(str(link.get('platform') or '')),
                'url': sanitize_url(link.get('url')),
            })
    return cleaned


@notes_bp.route('', methods=['GET'])
@token_optional
def get_notes(current_user_id):
    """Notes for a location, newest first."""
    location_id = request.args.get('location_id', type=int)
    if not location_id:
        return jsonify({'error': 'location_id is required'}), 400

    notes = CommunityNote.query.filter_by(location_id=location_id).order_by(
        CommunityNote.created_at.desc(), CommunityNote.id.desc()
    ).all()
    return jsonify({
        'notes': [n.to_dict(current_user_id) for n in notes],
        'total': len(notes)
    }), 200


@notes_bp.route('', methods=['POST'])
@token_required
def create_note(current_user_id):
    data = request.get_json(silent=True) or {}
    location_id = data.get('location_id')
    error = text_fields_error(data, ('title',))
    if error:
        return jsonify({'error': error}), 400
    title = sanitize_text(data.get('title') or '')

    if not is_record_id(location_id) or not ServiceProvider.query.get(location_id):
        return jsonify({'error': 'Location not found'}), 404
    if len(title) < 3:
        return jsonify({'error': 'Title must be at least 3 characters'}), 400
    if data.get('content') is not None and not isinstance(data['content'], list):
        return jsonify({'error': 'content must be a list of blocks'}), 400
    for list_field in ('images', 'social_links'):
        if data.get(list_field) is not None and not isinstance(data[list_field], list):
            return jsonify({'error': f'{list_field} must be a list'}), 400

    try:
        note = CommunityNote(
            location_id=location_id,
            user_id=current_user_id,
            title=title,
            content=_clean_blocks(data.get('content')),
            images=[url for url in (sanitize_url(u) for u in data.get('images') or []) if url],
            social_links=_clean_social_links(data.get('social_links')),
            thumbs_up=0,
            thumbs_up_users=[]
        )
        db.session.add(note)
        db.session.commit()
        return jsonify({'message': 'Note published', 'note': note.to_dict(current_user_id)}), 201
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@notes_bp.route('/<int:note_id>', methods=['DELETE'])
@token_required
def delete_note(current_user_id, note_id):
    note = CommunityNote.query.get(note_id)
    if not note:
        return jsonify({'error': 'Note not found'}), 404
    if note.user_id != current_user_id:
        return jsonify({'error': 'You can only delete your own notes'}), 403

    try:
        NoteComment.query.filter_by(note_id=note.id).delete(synchronize_session=False)
        db.session.delete(note)
        db.session.commit()
        return jsonify({'message': 'Note deleted'}), 200
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@notes_bp.route('/<int:note_id>/thumbs-up', methods=['POST'])
@token_required
def toggle_thumbs_up(current_user_id, note_id):
    note = CommunityNote.query.get(note_id)
    if not note:
        return jsonify({'error': 'Note not found'}), 404

    try:
        liked = note.toggle_thumbs_up(current_user_id)
        db.session.commit()
        return jsonify({'liked': liked, 'thumbs_up': note.thumbs_up}), 200
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@notes_bp.route('/<int:note_id>/comments', methods=['GET'])
def get_comments(note_id):
    note = CommunityNote.query.get(note_id)
    if not note:
        return jsonify({'error': 'Note not found'}), 404
    comments = note.comments.all()
    return jsonify({'comments': [c.to_dict() for c in comments], 'total': len(comments)}), 200


@notes_bp.route('/<int:note_id>/comments', methods=['POST'])
@token_required
def add_comment(current_user_id, note_id):
    if not CommunityNote.query.get(note_id):
        return jsonify({'error': 'Note not found'}), 404

    data = request.get_json(silent=True) or {}
    error = text_fields_error(data, ('content',))
    if error:
        return jsonify({'error': error}), 400
    content = sanitize_text(data.get('content') or '')
    if not content:
        return jsonify({'error': 'Comment content is required'}), 400
    if len(content) > MAX_COMMENT_LENGTH:
        return jsonify({'error': f'Comment must be at most {MAX_COMMENT_LENGTH} characters'}), 400

    try:
        comment = NoteComment(note_id=note_id, user_id=current_user_id, content=content)
        db.session.add(comment)
        db.session.commit()
        return jsonify({'message': 'Comment added', 'comment': comment.to_dict()}), 201
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500


@notes_bp.route('/comments/<int:comment_id>', methods=['DELETE'])
@token_required
def delete_comment(current_user_id, comment_id):
    comment = NoteComment.query.get(comment_id)
    if not comment:
        return jsonify({'error': 'Comment not found'}), 404
    if comment.user_id != current_user_id:
        return jsonify({'error': 'You can only delete your own comments'}), 403

    try:
        db.session.delete(comment)
        db.session.commit()
        return jsonify({'message': 'Comment deleted'}), 200
    except Exception as e:
        db.session.rollback()
        return jsonify({'error': str(e)}), 500
