import pytest
from datetime import datetime, timezone, timedelta
from config import envs
from utils import markup, timezone as tz

def test_render_markup():
    assert markup.render_markup("**hi**") == "<p><strong>hi</strong></p>"

def test_render_markup_rejects_non_text():
    with pytest.raises(markup.MarkupError):
        markup.render_markup(None)

def test_is_valid_markup():
    assert markup.is_valid_markup("- one\n- two")
    assert not markup.is_valid_markup(b"bytes")

def test_as_utc_treats_naive_as_utc():
    naive = datetime(2030, 1, 1, 12, 0)
    assert tz.as_utc(naive) == datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)

def test_as_utc_converts_offsets():
    eastern = timezone(timedelta(hours=-5))
    assert tz.as_utc(datetime(2030, 1, 1, 7, 0, tzinfo=eastern)).hour == 12

def test_as_utc_none():
    assert tz.as_utc(None) is None

def test_utc_now_is_aware():
    assert tz.utc_now().tzinfo == timezone.utc

def test_format_utc_time():
    assert tz.format_utc_time(datetime(2030, 1, 1, 12, 5)) == "2030-01-01 12:05 (UTC)"

def test_env_helpers(monkeypatch):
    monkeypatch.setenv("FLAG", "yes")
    monkeypatch.setenv("NUM", "7")
    monkeypatch.setenv("BAD_NUM", "seven")
    monkeypatch.setenv("RATE", "2.5")
    monkeypatch.setenv("NAMES", " Google, nominatim ,,")
    assert envs.get_bool_env("FLAG")
    assert not envs.get_bool_env("MISSING_FLAG")
    assert envs.get_int_env("NUM") == 7
    assert envs.get_int_env("BAD_NUM", 3) == 3
    assert envs.get_float_env("RATE") == 2.5
    assert envs.get_float_env("BAD_NUM", 1.0) == 1.0
    assert envs.get_list_env("NAMES") == ["google", "nominatim"]
    assert envs.get_list_env("MISSING_NAMES", "nominatim") == ["nominatim"]
