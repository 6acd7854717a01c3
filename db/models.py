import enum
from datetime import datetime

from sqlalchemy import (
    Column, String, Integer, DateTime, Float, Text, Enum, inspect
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func
from sqlalchemy.types import TypeDecorator

from utils.markup import render_markup
from utils.timezone import as_utc

Base = declarative_base()

# ===== Enums =====
class EventKind(str, enum.Enum):
    RECURRING = "recurring"
    SPECIAL = "special"

EventKindEnum = Enum(
    EventKind,
    name="event_kind",
    values_callable=lambda kinds: [k.value for k in kinds],
)

# ===== Column Types =====
class UTCDateTime(TypeDecorator):
    """Stores datetimes as naive UTC and hands them back as aware UTC, on every backend."""
    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if isinstance(value, datetime):
            return as_utc(value).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        return as_utc(value)

class TimestampMixin:
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

# ===== Event Table =====
class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    date = Column(UTCDateTime, nullable=False, index=True)
    location = Column(String(255), nullable=False)

    description = Column(Text, nullable=True)
    cached_description_html = Column(Text, nullable=True)

    kind = Column(EventKindEnum, nullable=False, default=EventKind.SPECIAL, index=True)

    # Both set or both NULL; only written by a successful geocode
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)

    def __init__(self, **kwargs):
        kwargs.setdefault("kind", EventKind.SPECIAL)
        super().__init__(**kwargs)

    # ===== Validation state (not persisted) =====
    @property
    def errors(self):
        from services.validation import ValidationErrors
        if getattr(self, "_errors", None) is None:
            self._errors = ValidationErrors()
        return self._errors

    # ===== Category =====
    @property
    def is_recurring(self) -> bool:
        return self.kind == EventKind.RECURRING

    @property
    def is_special(self) -> bool:
        return self.kind == EventKind.SPECIAL

    # ===== Geocoding =====
    @property
    def geocoded(self) -> bool:
        return self.lat is not None and self.lng is not None

    @property
    def lat_lng_pair(self) -> list:
        """[lat, lng] as floats; elements are None until the event is geocoded."""
        return [
            float(self.lat) if self.lat is not None else None,
            float(self.lng) if self.lng is not None else None,
        ]

    def set_coordinates(self, lat, lng):
        self.lat = float(lat)
        self.lng = float(lng)

    def clear_coordinates(self):
        self.lat = None
        self.lng = None

    # ===== Description markup =====
    def _description_changed(self) -> bool:
        state = inspect(self)
        return state.attrs.description.history.has_changes()

    def refresh_description_html(self) -> str:
        """
        Render the description into cached_description_html unless the cache is current.
        Raises MarkupError if the description is not valid markup.
        """
        if not self.description:
            self.cached_description_html = None
            self._rendered_from = None
            return None

        fresh = getattr(self, "_rendered_from", None) == self.description
        if self.cached_description_html is not None and (fresh or not self._description_changed()):
            return self.cached_description_html

        self.cached_description_html = render_markup(self.description)
        self._rendered_from = self.description
        return self.cached_description_html

    @property
    def description_html(self) -> str:
        return self.refresh_description_html()

    def __repr__(self):
        return f"<Event id={self.id} title={self.title} date={self.date} kind={self.kind}>"
