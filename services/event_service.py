from typing import Dict, Optional

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from config.logger import logger, log_and_raise, log_and_warn
from db.models import Event
from services.validation import validate_event

# Managed by validation/geocoding, never assigned from caller input
PROTECTED_FIELDS = {"id", "lat", "lng", "cached_description_html", "created_at", "updated_at"}


def build_event(**fields) -> Event:
    """Factory: construct an unsaved Event. Protected fields in the input are dropped."""
    for key in PROTECTED_FIELDS & set(fields):
        logger.warning(f"[Event] Ignoring protected field '{key}' for new event")
        fields.pop(key)
    return Event(**fields)


def get_event(db, event_id: int) -> Optional[Event]:
    return db.query(Event).filter(Event.id == event_id).first()


def save_event(db, event: Event, geocoder=None) -> bool:
    """
    Validate and persist an event, then try to geocode it once.
    Returns False (with event.errors filled) when validation fails; nothing is written.
    Geocoding never affects the outcome: a bad address or a provider outage
    leaves the event saved without coordinates.
    """
    if not validate_event(event):
        return False

    state = inspect(event)
    location_changed = state.transient or state.attrs.location.history.has_changes()

    try:
        db.add(event)
        db.commit()
        db.refresh(event)
        logger.info(f"[Event] Saved event {event.id} '{event.title}' on {event.date}")
    except SQLAlchemyError as e:
        db.rollback()
        log_and_raise("Event", f"saving event '{event.title}'", e)

    if geocoder is not None:
        geocode_event(db, event, geocoder, location_changed=location_changed)
    return True


def create_event(db, geocoder=None, **fields) -> Event:
    """Build and save an event. Check event.errors to see whether it was persisted."""
    event = build_event(**fields)
    save_event(db, event, geocoder=geocoder)
    return event


def update_event(db, event: Event, fields: Dict, geocoder=None) -> bool:
    """Assign known fields on an event and save it."""
    for key, value in fields.items():
        if key in PROTECTED_FIELDS or not hasattr(Event, key):
            logger.warning(f"[Event] Ignoring unknown or protected field '{key}' for event {event.id}")
            continue
        setattr(event, key, value)

    if save_event(db, event, geocoder=geocoder):
        return True

    # Drop the rejected values so a later commit cannot flush them
    if inspect(event).persistent:
        db.refresh(event)
    return False


def delete_event(db, event_id: int) -> bool:
    """Delete an event by id. Returns False if not found."""
    event = get_event(db, event_id)
    if not event:
        logger.warning(f"[Event] ⚠️ Event {event_id} not found for delete")
        return False
    try:
        db.delete(event)
        db.commit()
        logger.info(f"[Event] Deleted event {event_id}")
        return True
    except SQLAlchemyError as e:
        db.rollback()
        log_and_raise("Event", f"deleting event {event_id}", e)


def geocode_event(db, event: Event, geocoder, location_changed: bool = False) -> bool:
    """
    Post-save hook: resolve event.location to coordinates.
    Any failure is absorbed and no error is recorded. Existing coordinates are
    kept on failure unless location_changed says they belong to an old address.
    Returns True if the event was geocoded.
    """
    coordinates = None
    try:
        result = geocoder.geocode(event.location)
        if (
            result is not None
            and bool(getattr(result, "success", False))
            and result.lat is not None
            and result.lng is not None
        ):
            coordinates = (float(result.lat), float(result.lng))
    except Exception as e:
        log_and_warn("Event", f"geocoding '{event.location}' for event {event.id}", e)

    success = coordinates is not None
    if success:
        event.set_coordinates(*coordinates)
    elif location_changed and (event.lat is not None or event.lng is not None):
        event.clear_coordinates()
    else:
        return False

    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log_and_warn("Event", f"storing coordinates for event {event.id}", e)
        return False

    if success:
        logger.info(f"[Event] Geocoded event {event.id} to {event.lat_lng_pair}")
    return success


def geocode_missing(db, geocoder, limit: int = None) -> int:
    """
    Backfill coordinates for stored events without a full pair. Returns how many were geocoded.
    A lone lat or lng left on a row that still fails to geocode is cleared.
    """
    query = (
        db.query(Event)
        .filter((Event.lat.is_(None)) | (Event.lng.is_(None)))
        .order_by(Event.date.asc())
    )
    if limit:
        query = query.limit(limit)

    geocoded = 0
    pending = query.all()
    for event in pending:
        if geocode_event(db, event, geocoder, location_changed=True):
            geocoded += 1

    logger.info(f"[Event] Backfill geocoded {geocoded}/{len(pending)} events")
    return geocoded
