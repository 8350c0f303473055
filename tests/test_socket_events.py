"""
Tests for Socket.IO connection, conversation rooms and presence.
"""

import pytest

from hopaba import db, socketio
from hopaba.models import Conversation, User
from hopaba.services.redis_client import is_user_online
from hopaba.utils.auth import generate_token


def _token(user_id):
    return generate_token(User.query.get(user_id))


def _events(socket_client, name):
    return [event['args'][0] for event in socket_client.get_received() if event['name'] == name]


@pytest.fixture
def conversation_id(test_user, second_user, make_provider, make_request):
    conversation = Conversation(
        request_id=make_request(test_user['id']),
        provider_id=make_provider(second_user['id']),
        user_id=test_user['id'],
    )
    db.session.add(conversation)
    db.session.commit()
    return conversation.id


@pytest.fixture
def connect(app, client):
    clients = []

    def build(token):
        socket_client = socketio.test_client(app, flask_test_client=client, auth={'token': token})
        clients.append(socket_client)
        return socket_client

    yield build
    for socket_client in clients:
        if socket_client.is_connected():
            socket_client.disconnect()


class TestConnect:

    def test_valid_token_connects(self, connect, test_user):
        socket_client = connect(_token(test_user['id']))
        assert socket_client.is_connected()
        assert _events(socket_client, 'connected') == [{'user_id': test_user['id']}]
        assert is_user_online(test_user['id'])

    def test_invalid_token_is_rejected(self, connect, db_session):
        assert not connect('not-a-token').is_connected()

    def test_disconnect_marks_offline(self, connect, test_user):
        socket_client = connect(_token(test_user['id']))
        socket_client.disconnect()
        assert not is_user_online(test_user['id'])


class TestConversationRooms:

    def test_participant_joins(self, connect, test_user, conversation_id):
        token = _token(test_user['id'])
        socket_client = connect(token)
        socket_client.get_received()

        socket_client.emit('join_conversation', {'conversation_id': conversation_id, 'token': token})
        assert _events(socket_client, 'joined_conversation') == [{'conversation_id': conversation_id}]

    def test_outsider_is_refused(self, connect, admin_user, conversation_id):
        token = _token(admin_user['id'])
        socket_client = connect(token)
        socket_client.get_received()

        socket_client.emit('join_conversation', {'conversation_id': conversation_id, 'token': token})
        assert _events(socket_client, 'error') == [{'message': 'Access denied'}]

    def test_typing_reaches_other_participant(self, connect, test_user, second_user, conversation_id):
        requester_token = _token(test_user['id'])
        provider_token = _token(second_user['id'])
        requester = connect(requester_token)
        provider = connect(provider_token)
        requester.emit('join_conversation', {'conversation_id': conversation_id, 'token': requester_token})
        provider.emit('join_conversation', {'conversation_id': conversation_id, 'token': provider_token})
        requester.get_received()
        provider.get_received()

        requester.emit('typing', {'conversation_id': conversation_id, 'token': requester_token, 'is_typing': True})

        assert _events(provider, 'user_typing') == [{
            'user_id': test_user['id'], 'is_typing': True, 'conversation_id': conversation_id,
        }]
        assert _events(requester, 'user_typing') == []


class TestPresence:

    def test_heartbeat_and_status(self, connect, test_user, second_user):
        token = _token(test_user['id'])
        socket_client = connect(token)
        socket_client.get_received()

        socket_client.emit('heartbeat', {'token': token})
        assert _events(socket_client, 'heartbeat_ack') == [{'status': 'ok'}]

        socket_client.emit('get_user_status', {'user_id': second_user['id']})
        status = _events(socket_client, 'user_status')[0]
        assert status['status'] == 'offline'

        socket_client.emit('get_user_status', {'user_id': test_user['id']})
        status = _events(socket_client, 'user_status')[0]
        assert status['status'] == 'online'
        assert status['last_seen'] is not None
