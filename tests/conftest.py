import os

# Configure test environment before the package reads its settings
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret")
# Tests always use the in-process change feed
os.environ["REDIS_URL"] = ""

import pytest
from fastapi.testclient import TestClient

from mentorship_hub.config import Settings
from mentorship_hub.core.change_feed import ChangeFeed
from mentorship_hub.database import Base, create_db_and_tables, get_engine, make_session_factory
from mentorship_hub.models import Profile, UserRole
from mentorship_hub.security import create_profile_token
from mentorship_hub.services import (
    ConnectionService,
    ConversationService,
    DirectoryService,
    MentorshipService,
    NotificationDispatcher,
)

PROFILES = [
    # key, full name, role
    ("alice", "Alice Student", UserRole.STUDENT),
    ("carol", "Carol Student", UserRole.STUDENT),
    ("bob", "Bob Alumni", UserRole.ALUMNI),
    ("dave", "Dave Alumni", UserRole.ALUMNI),
    ("erin", "Erin Admin", UserRole.ADMIN),
]

def seed_profiles(db):
    ids = {}
    for key, full_name, role in PROFILES:
        profile = Profile(
            email=f"{key}@example.edu",
            full_name=full_name,
            role=role.value,
            is_open_to_mentor=role == UserRole.ALUMNI,
        )
        db.add(profile)
        db.flush()
        ids[key] = profile.id
    db.commit()
    return ids

@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite+pysqlite:///:memory:",
        SECRET_KEY="test-secret",
        REDIS_URL=None,
    )

@pytest.fixture
def engine(settings):
    engine = get_engine(settings)
    create_db_and_tables(engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()

@pytest.fixture
def db(engine):
    session = make_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture
def feed():
    return ChangeFeed(buffer_size=100)

@pytest.fixture
def profiles(db):
    return seed_profiles(db)

@pytest.fixture
def directory(db):
    return DirectoryService(db)

@pytest.fixture
def dispatcher(db, feed, settings):
    return NotificationDispatcher(db, feed, settings)

@pytest.fixture
def mentorship(db, dispatcher, directory, feed, settings):
    return MentorshipService(db, dispatcher=dispatcher, directory=directory, feed=feed, settings=settings)

@pytest.fixture
def conversations(db, dispatcher, directory, feed, settings):
    return ConversationService(db, dispatcher=dispatcher, directory=directory, feed=feed, settings=settings)

@pytest.fixture
def connections(db, dispatcher, directory, feed, settings):
    return ConnectionService(db, dispatcher=dispatcher, directory=directory, feed=feed, settings=settings)

@pytest.fixture
def api(settings):
    """TestClient plus seeded profile ids and bearer headers per profile."""
    from mentorship_hub.main import create_app

    app = create_app(settings)
    with TestClient(app) as client:
        with app.state.session_factory() as session:
            ids = seed_profiles(session)
        headers = {
            key: {"Authorization": f"Bearer {create_profile_token(profile_id, settings)}"}
            for key, profile_id in ids.items()
        }
        yield client, ids, headers
