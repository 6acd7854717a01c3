import os

# Must be set before config.envs / db.init are imported
os.environ.setdefault("DB_URL", "sqlite://")
os.environ.setdefault("GEOCODE_ON_SAVE", "false")

from datetime import timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from db.models import Base, Event, EventKind
from utils.timezone import utc_now


@pytest.fixture
def db_session():
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = Session()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def now():
    return utc_now()


@pytest.fixture
def event_factory(db_session, now):
    """Persist an Event with sensible defaults; keyword arguments override them."""
    counter = {"n": 0}

    def make(**overrides):
        counter["n"] += 1
        fields = {
            "title": f"Event {counter['n']}",
            "date": now + timedelta(days=1),
            "location": "Boston, MA, 02114",
            "kind": EventKind.SPECIAL,
        }
        fields.update(overrides)
        event = Event(**fields)
        db_session.add(event)
        db_session.commit()
        return event

    return make
