"""
Tests for realtime room naming, emits and the inbox refresh debouncer.
"""

import threading
from types import SimpleNamespace
from unittest.mock import patch

from hopaba.services.realtime import (
    Debouncer,
    conversation_room,
    user_room,
    emit_new_message,
    emit_conversations_changed,
    notify_conversation_participants,
)


class TestRooms:

    def test_room_names(self):
        assert conversation_room(12) == 'conversation_12'
        assert user_room(7) == 'user_7'

    def test_emit_new_message_targets_conversation_room(self):
        with patch('hopaba.services.realtime.socketio.emit') as mock_emit:
            emit_new_message(3, {'id': 1, 'content': 'hi'})
        mock_emit.assert_called_once_with(
            'new_message',
            {'message': {'id': 1, 'content': 'hi'}, 'conversation_id': 3},
            room='conversation_3',
        )

    def test_emit_errors_are_logged_not_raised(self):
        with patch('hopaba.services.realtime.socketio.emit', side_effect=RuntimeError('no server')):
            emit_conversations_changed(5)


class TestDebouncer:

    def test_burst_collapses_to_one_call(self):
        fired = []
        done = threading.Event()

        def callback(key):
            fired.append(key)
            done.set()

        debouncer = Debouncer(callback, delay=0.05)
        for _ in range(5):
            debouncer.schedule('user-1')

        assert done.wait(timeout=2)
        # give any stray timers time to fire
        threading.Event().wait(0.15)
        assert fired == ['user-1']
        assert debouncer.pending() == set()

    def test_keys_are_independent(self):
        fired = []
        both = threading.Event()

        def callback(key):
            fired.append(key)
            if len(fired) == 2:
                both.set()

        debouncer = Debouncer(callback, delay=0.2)
        debouncer.schedule(1)
        debouncer.schedule(2)
        debouncer.schedule(1)
        assert debouncer.pending() == {1, 2}

        assert both.wait(timeout=2)
        threading.Event().wait(0.3)
        assert sorted(fired) == [1, 2]
        assert debouncer.pending() == set()

    def test_cancel_all(self):
        fired = []
        debouncer = Debouncer(fired.append, delay=0.05)
        debouncer.schedule('a')
        debouncer.cancel_all()
        threading.Event().wait(0.15)
        assert fired == []

    def test_notify_participants_schedules_both_sides(self):
        conversation = SimpleNamespace(participant_ids=lambda: [4, 9])
        with patch('hopaba.services.realtime.conversation_refresher') as refresher:
            notify_conversation_participants(conversation)
        assert [c.args[0] for c in refresher.schedule.call_args_list] == [4, 9]
