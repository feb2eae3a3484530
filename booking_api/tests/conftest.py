import os
import sys
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

import pytest
from fastapi.testclient import TestClient
import fakeredis.aioredis as fakeredis

import booking_api.main as main
from booking_api import lifespan, state
from booking_api.scheduling.lifecycle import BookingManager, EventManager
from booking_api.scheduling.locks import UserLocks
from booking_api.tests.fakes import (
    InMemoryAvailabilityStore,
    InMemoryBookingStore,
    InMemoryDirectory,
    InMemoryEventStore,
    make_user,
)


@pytest.fixture
def host():
    return make_user("Host@Example.com", "Hana", "Host")


@pytest.fixture
def guest():
    return make_user("guest@example.com", "Gus", "Guest")


@pytest.fixture
def other_guest():
    return make_user("other@example.com", "Olga", "Other")


@pytest.fixture
def stranger():
    return make_user("stranger@example.com", "Sam", "Stranger")


@pytest.fixture
def directory(host, guest, other_guest, stranger):
    return InMemoryDirectory(host, guest, other_guest, stranger)


@pytest.fixture
def event_store():
    return InMemoryEventStore()


@pytest.fixture
def booking_store():
    return InMemoryBookingStore()


@pytest.fixture
def availability_store():
    return InMemoryAvailabilityStore()


@pytest.fixture
def booking_manager(booking_store, directory):
    return BookingManager(booking_store, directory, UserLocks())


@pytest.fixture
def event_manager(event_store, booking_store, directory):
    return EventManager(event_store, booking_store, directory, UserLocks())


@pytest.fixture
def client(monkeypatch, directory, event_store, booking_store, availability_store):
    fake_redis = fakeredis.FakeRedis(decode_responses=True)

    async def fake_init_redis():
        return fake_redis

    async def fake_init_database():
        state.event_store = event_store
        state.booking_store = booking_store
        state.availability_store = availability_store
        state.user_directory = directory
        return False

    monkeypatch.setattr(lifespan, "init_redis", fake_init_redis)
    monkeypatch.setattr(lifespan, "init_database", fake_init_database)

    with TestClient(main.app) as c:
        yield c
