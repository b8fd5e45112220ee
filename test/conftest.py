import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from firebase_admin import messaging
from google.events.cloud import firestore as firestoredata

from chat_notifications.messages.schemas import TriggerContext
from chat_notifications.notifications.service import NotificationDispatcher


class FakeSnapshot:
    def __init__(self, data):
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return None if self._data is None else dict(self._data)


class FakeDocumentRef:
    def __init__(self, store, collection, doc_id):
        self.store = store
        self.collection = collection
        self.id = doc_id

    def get(self):
        self.store.reads.append((self.collection, self.id))
        return FakeSnapshot(self.store.collections.get(self.collection, {}).get(self.id))


class FakeCollectionRef:
    def __init__(self, store, name):
        self.store = store
        self.name = name

    def document(self, doc_id):
        return FakeDocumentRef(self.store, self.name, doc_id)


class FakeFirestore:
    """In-memory stand-in for the handful of Firestore calls the dispatcher makes"""

    def __init__(self, collections=None):
        self.collections = collections or {}
        self.reads = []

    def collection(self, name):
        return FakeCollectionRef(self, name)


@pytest.fixture
def firestore_db():
    return FakeFirestore({'Users': {'u2': {'token': 'TOK', 'name': 'Bob'}}})


@pytest.fixture
def send_mock(monkeypatch):
    mock = MagicMock(return_value='projects/demo/messages/0:1234')
    monkeypatch.setattr(messaging, 'send', mock)
    return mock


@pytest.fixture
def dispatcher(firestore_db):
    return NotificationDispatcher(firestore_db)


@pytest.fixture
def context():
    return TriggerContext(chat_room_id='room-1', message_id='msg-1')


@pytest.fixture
def text_record():
    return {
        'receiverId': 'u2',
        'senderID': 'u1',
        'senderName': 'Alice',
        'message': 'hi',
        'type': 'text',
        'timestamp': datetime(2024, 5, 1, 10, 30, tzinfo=timezone.utc),
    }


def make_protobuf_event(name='projects/demo/databases/(default)/documents/Chat_rooms/room-1/Messages/msg-1'):
    """Serialized DocumentEventData as Eventarc delivers it by default"""
    document = firestoredata.Document(
        name=name,
        fields={
            'receiverId': firestoredata.Value(string_value='u2'),
            'senderID': firestoredata.Value(string_value='u1'),
            'senderName': firestoredata.Value(string_value='Alice'),
            'message': firestoredata.Value(string_value='hi'),
            'type': firestoredata.Value(string_value='text'),
            'unread': firestoredata.Value(integer_value=3),
            'timestamp': firestoredata.Value(
                timestamp_value=datetime(2024, 5, 1, 10, 30, 0, 123456, tzinfo=timezone.utc)),
        },
    )
    event = firestoredata.DocumentEventData(value=document)
    return firestoredata.DocumentEventData.serialize(event)
