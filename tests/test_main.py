import logging
import pytest
from datetime import timedelta
from unittest.mock import MagicMock, patch
from db.models import EventKind
import main

@pytest.fixture
def patched():
    with patch("main.init_db") as init_db, \
         patch("main.get_db") as get_db, \
         patch("main.close_engine") as close_engine, \
         patch("main.geocode_missing") as geocode_missing, \
         patch("main.build_geocoder") as build_geocoder, \
         patch("main.log_upcoming") as log_upcoming, \
         patch("main.GEOCODE_ON_SAVE", True):
        yield {
            "init_db": init_db,
            "get_db": get_db,
            "close_engine": close_engine,
            "geocode_missing": geocode_missing,
            "build_geocoder": build_geocoder,
            "log_upcoming": log_upcoming,
        }

def test_main_backfills_and_reports(patched):
    main.main(["--limit", "3"])
    patched["init_db"].assert_called_once()
    db = patched["get_db"].return_value.__enter__.return_value
    patched["geocode_missing"].assert_called_once_with(
        db, patched["build_geocoder"].return_value, limit=3
    )
    patched["log_upcoming"].assert_called_once_with(db)
    patched["close_engine"].assert_called_once()

def test_main_no_backfill(patched):
    main.main(["--no-backfill"])
    patched["geocode_missing"].assert_not_called()
    patched["log_upcoming"].assert_called_once()

def test_main_closes_engine_on_failure(patched):
    patched["init_db"].side_effect = RuntimeError("db down")
    with pytest.raises(RuntimeError):
        main.main([])
    patched["close_engine"].assert_called_once()

def test_log_upcoming(db_session, event_factory, now, caplog):
    event_factory(title="Launch party", kind=EventKind.SPECIAL, lat=42.35, lng=-71.06)
    event_factory(title="Hack night", kind=EventKind.RECURRING, date=now + timedelta(days=2))
    event_factory(title="Last year", kind=EventKind.SPECIAL, date=now - timedelta(days=365))

    caplog.set_level(logging.INFO, logger="EventCalendar")
    main.log_upcoming(db_session)

    assert "Next special events: 1" in caplog.text
    assert "Next recurring events: 1" in caplog.text
    assert "Launch party" in caplog.text
    assert "Last year" not in caplog.text
