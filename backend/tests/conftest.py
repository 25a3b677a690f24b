import itertools
import threading
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest
from argon2 import PasswordHasher

from backend.auth_service.store import User
from backend.auth_service.utils import create_token
from backend.config import Settings
from backend.events_service.store import Event, Member
from backend.gateway.server import create_app

TEST_SECRET = "test_secret"


class FakeUserStore:
    """In-memory stand-in for UserStore with the same conditional insert."""

    def __init__(self):
        self.users = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def find_by_email(self, email):
        return next((u for u in self.users.values() if u.email == email), None)

    def find_by_id(self, user_id):
        return self.users.get(user_id)

    def insert(self, name, email, password_hash):
        with self._lock:
            if self.find_by_email(email) is not None:
                return None
            user = User(next(self._ids), name, email, password_hash, datetime.now(timezone.utc))
            self.users[user.id] = user
            return user


class FakeEventStore:
    """In-memory stand-in for EventStore; RSVP writes are atomic under a lock."""

    def __init__(self, users):
        self.users = users
        self.events = {}
        self._ids = itertools.count(1)
        self._clock = datetime(2025, 1, 1, tzinfo=timezone.utc)
        self._lock = threading.Lock()

    def _member(self, user_id):
        user = self.users.find_by_id(user_id)
        return Member(user.id, user.name, user.email)

    def _copy(self, event):
        return replace(event, attendee_ids=list(event.attendee_ids))

    def insert(self, fields, creator_id):
        with self._lock:
            self._clock += timedelta(seconds=1)
            event = Event(
                id=next(self._ids),
                title=fields.title,
                description=fields.description,
                date=fields.date,
                time=fields.time,
                location=fields.location,
                capacity=fields.capacity,
                image_url=fields.image_url,
                creator_id=creator_id,
                attendee_ids=[],
                created_at=self._clock,
                updated_at=self._clock,
            )
            self.events[event.id] = event
            return self._copy(event)

    def find(self, event_id):
        event = self.events.get(event_id)
        return self._copy(event) if event else None

    def find_detailed(self, event_id):
        event = self.find(event_id)
        if event is None:
            return None
        event.creator = self._member(event.creator_id)
        event.attendees = [self._member(uid) for uid in event.attendee_ids]
        return event

    def _newest_first(self, events):
        return sorted(events, key=lambda e: (e.created_at, e.id), reverse=True)

    def list_all(self):
        events = [self._copy(e) for e in self._newest_first(self.events.values())]
        for event in events:
            event.creator = self._member(event.creator_id)
        return events

    def list_by_creator(self, creator_id):
        mine = [e for e in self.events.values() if e.creator_id == creator_id]
        events = [self._copy(e) for e in self._newest_first(mine)]
        for event in events:
            event.attendees = [self._member(uid) for uid in event.attendee_ids]
        return events

    def update(self, event_id, creator_id, fields):
        with self._lock:
            event = self.events.get(event_id)
            if event is None or event.creator_id != creator_id:
                return None
            if len(event.attendee_ids) > fields.capacity:
                return None
            event.title = fields.title
            event.description = fields.description
            event.date = fields.date
            event.time = fields.time
            event.location = fields.location
            event.capacity = fields.capacity
            event.image_url = fields.image_url
            return self._copy(event)

    def delete(self, event_id, creator_id):
        with self._lock:
            event = self.events.get(event_id)
            if event is None or event.creator_id != creator_id:
                return False
            del self.events[event_id]
            return True

    def add_attendee(self, event_id, user_id):
        with self._lock:
            event = self.events.get(event_id)
            if event is None:
                return None
            if user_id in event.attendee_ids or len(event.attendee_ids) >= event.capacity:
                return None
            event.attendee_ids.append(user_id)
            return self._copy(event)

    def remove_attendee(self, event_id, user_id):
        with self._lock:
            event = self.events.get(event_id)
            if event is None:
                return None
            event.attendee_ids = [uid for uid in event.attendee_ids if uid != user_id]
            return self._copy(event)


class FakeImageUploader:

    def __init__(self):
        self.uploads = []

    def upload(self, image):
        self.uploads.append(image)
        return f"https://res.cloudinary.com/demo/image/upload/events/{len(self.uploads)}.jpg"


@pytest.fixture
def settings():
    return Settings(jwt_secret=TEST_SECRET, database_url="postgresql://test/test")


@pytest.fixture
def hasher():
    # Cheap parameters keep the suite fast
    return PasswordHasher(time_cost=1, memory_cost=8, parallelism=1)


@pytest.fixture
def user_store():
    return FakeUserStore()


@pytest.fixture
def event_store(user_store):
    return FakeEventStore(user_store)


@pytest.fixture
def images():
    return FakeImageUploader()


@pytest.fixture
def assistant(mocker):
    return mocker.Mock()


@pytest.fixture
def app(settings, user_store, event_store, images, assistant, hasher, mocker):
    mocker.patch("backend.auth_service.service.PasswordHasher", return_value=hasher)
    app = create_app(
        settings,
        user_store=user_store,
        event_store=event_store,
        images=images,
        assistant=assistant,
    )
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(user_store, hasher):
    """Create a stored user and return (user, auth headers)."""
    def _make_user(name, email, password="pass123"):
        user = user_store.insert(name, email, hasher.hash(password))
        token = create_token(user.id, user.email, TEST_SECRET)
        return user, {"Authorization": f"Bearer {token}"}
    return _make_user


@pytest.fixture
def mock_db(mocker):
    """
    Mocks a psycopg2 connection and cursor, returning (connect, conn, cursor).
    """
    mock_conn = mocker.MagicMock()
    mock_cursor = mocker.MagicMock()

    # Setup the context manager for connection
    mock_conn.__enter__.return_value = mock_conn
    mock_conn.__exit__.return_value = None

    # Setup the context manager for cursor
    mock_cursor.__enter__.return_value = mock_cursor
    mock_cursor.__exit__.return_value = None

    # Connect cursor to connection
    mock_conn.cursor.return_value = mock_cursor

    connect = mocker.Mock(return_value=mock_conn)
    return connect, mock_conn, mock_cursor
