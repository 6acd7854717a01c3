import pytest
from datetime import datetime, timezone, timedelta
from unittest.mock import patch
from db import models
from db.models import Event, EventKind
from utils.markup import render_markup

def test_event_model_fields():
    event = models.Event()
    assert hasattr(event, "id")
    assert hasattr(event, "title")
    assert hasattr(event, "date")
    assert hasattr(event, "location")
    assert hasattr(event, "description")
    assert hasattr(event, "cached_description_html")
    assert hasattr(event, "lat")
    assert hasattr(event, "lng")

def test_event_columns_for_geocoding():
    columns = Event.__table__.columns
    assert columns["lat"].nullable
    assert columns["lng"].nullable

def test_event_defaults_to_special():
    event = models.Event(title="Meetup")
    assert event.kind == EventKind.SPECIAL
    assert event.is_special
    assert not event.is_recurring

def test_recurring_event():
    event = models.Event(title="Weekly hack night", kind=EventKind.RECURRING)
    assert event.is_recurring
    assert not event.is_special

def test_not_geocoded_without_coordinates():
    event = models.Event(title="Meetup")
    assert not event.geocoded
    assert event.lat_lng_pair == [None, None]

def test_partial_coordinates_are_not_geocoded():
    event = models.Event(title="Meetup", lat=42.0)
    assert not event.geocoded

def test_set_and_clear_coordinates():
    event = models.Event(title="Meetup")
    event.set_coordinates("42.356004", -71)
    assert event.geocoded
    assert event.lat_lng_pair == [42.356004, -71.0]
    assert all(isinstance(x, float) for x in event.lat_lng_pair)
    event.clear_coordinates()
    assert event.lat is None and event.lng is None

def test_errors_start_empty():
    event = models.Event()
    assert event.errors.empty
    assert event.errors is event.errors

def test_description_html_is_cached_until_description_changes():
    event = Event(title="Talk", description="**Bold**")
    with patch("db.models.render_markup", wraps=render_markup) as render:
        assert "<strong>Bold</strong>" in event.description_html
        assert "<strong>Bold</strong>" in event.description_html
        assert render.call_count == 1

        event.description = "_new_"
        assert "<em>new</em>" in event.description_html
        assert render.call_count == 2

def test_description_html_not_rerendered_after_reload(db_session):
    event = Event(
        title="Talk",
        date=datetime(2030, 1, 1, tzinfo=timezone.utc),
        location="Boston",
        description="# Heading",
    )
    event.refresh_description_html()
    db_session.add(event)
    db_session.commit()
    event_id = event.id
    db_session.expunge_all()

    loaded = db_session.get(Event, event_id)
    with patch("db.models.render_markup") as render:
        assert "<h1>Heading</h1>" in loaded.description_html
        render.assert_not_called()

def test_empty_description_has_no_html():
    event = Event(title="Talk", description=None)
    assert event.description_html is None

def test_date_round_trips_as_aware_utc(db_session):
    local = timezone(timedelta(hours=5))
    event = Event(title="Talk", date=datetime(2030, 1, 1, 17, 0, tzinfo=local), location="Male")
    db_session.add(event)
    db_session.commit()
    db_session.expunge_all()

    loaded = db_session.get(Event, event.id)
    assert loaded.date == datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)
    assert loaded.date.tzinfo is not None
    assert loaded.kind == EventKind.SPECIAL
