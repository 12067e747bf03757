"""Shared test fixtures and configuration."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.core.cache import TTLCache
from app.db.base import Base
from app.db.models import Event, Participant, Poll, Question
from app.main import app
from app.realtime import ConnectionRegistry, EventBroadcaster
from app.services.coordinator import SessionCoordinator


# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(autouse=True)
def disable_rate_limiting_for_tests(request):
    """Disable rate limiting for all tests except rate limiting tests."""
    from app.core.rate_limit import limiter

    previous = limiter.enabled
    limiter.reset()
    # Rate limiting tests opt back in with @pytest.mark.rate_limit
    limiter.enabled = "rate_limit" in request.keywords
    yield
    limiter.enabled = previous
    limiter.reset()


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh database for each test."""
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a new database session for a test."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client with a test database.

    Used as a context manager so the lifespan runs and ``app.state`` holds a
    fresh registry, broadcaster, cache and coordinator for each test.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def registry():
    registry = ConnectionRegistry()
    registry.init()
    yield registry
    registry.shutdown()


@pytest.fixture
def broadcaster(registry):
    return EventBroadcaster(registry)


@pytest.fixture
def cache():
    return TTLCache()


@pytest.fixture
def coordinator(registry, broadcaster, cache):
    return SessionCoordinator(registry, broadcaster, cache, listing_ttl=60.0)


# ----------------------------------------------------------------------
# Data factories
# ----------------------------------------------------------------------

@pytest.fixture
def make_event(db_session):
    counter = {"n": 0}

    def _make_event(**overrides):
        counter["n"] += 1
        values = {
            "slug": f"event-{counter['n']}",
            "name": f"Event {counter['n']}",
            "is_active": True,
        }
        values.update(overrides)
        event = Event(**values)
        db_session.add(event)
        db_session.commit()
        db_session.refresh(event)
        return event

    return _make_event


@pytest.fixture
def make_participant(db_session):
    def _make_participant(event, **overrides):
        values = {"event_id": event.id, "name": None, "is_anonymous": True}
        values.update(overrides)
        participant = Participant(**values)
        db_session.add(participant)
        db_session.commit()
        db_session.refresh(participant)
        return participant

    return _make_participant


@pytest.fixture
def make_question(db_session):
    def _make_question(event, **overrides):
        values = {"event_id": event.id, "text": "What is next?", "is_approved": True}
        values.update(overrides)
        question = Question(**values)
        db_session.add(question)
        db_session.commit()
        db_session.refresh(question)
        return question

    return _make_question


@pytest.fixture
def make_poll(db_session):
    def _make_poll(event, **overrides):
        values = {
            "event_id": event.id,
            "question": "Pizza or salad?",
            "type": "multiple-choice",
            "options": ["Pizza", "Salad"],
            "is_active": True,
        }
        values.update(overrides)
        poll = Poll(**values)
        db_session.add(poll)
        db_session.commit()
        db_session.refresh(poll)
        return poll

    return _make_poll
