from datetime import datetime

from config.logger import logger
from utils.markup import MarkupError

REQUIRED_FIELDS = ("title", "date", "location")


class ValidationErrors:
    """Per-record collection of field errors, keyed by field name."""

    def __init__(self):
        self._errors = {}

    def add(self, field: str, message: str):
        self._errors.setdefault(field, []).append(message)

    def on(self, field: str) -> list:
        return list(self._errors.get(field, []))

    def clear(self):
        self._errors.clear()

    @property
    def empty(self) -> bool:
        return not self._errors

    @property
    def full_messages(self) -> list:
        return [
            message if message.startswith(field) else f"{field} {message}"
            for field, messages in self._errors.items()
            for message in messages
        ]

    def as_dict(self) -> dict:
        return {field: list(messages) for field, messages in self._errors.items()}

    def __len__(self):
        return sum(len(messages) for messages in self._errors.values())

    def __bool__(self):
        return not self.empty

    def __iter__(self):
        return iter(self._errors.items())

    def __repr__(self):
        return f"<ValidationErrors {self.as_dict()}>"


def _blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def validate_event(event) -> bool:
    """
    Validate an Event in place, resetting and filling event.errors.
    Renders and caches the description HTML when the description is valid markup.
    Returns True when the event may be persisted.
    """
    from db.models import EventKind  # Import here to avoid circular imports

    errors = event.errors
    errors.clear()

    for field in REQUIRED_FIELDS:
        if _blank(getattr(event, field, None)):
            errors.add(field, "can't be blank")

    if event.date is not None and not isinstance(event.date, datetime):
        errors.add("date", "is not a valid timestamp")

    if (event.lat is None) != (event.lng is None):
        errors.add("lat", "and lng must be set together")

    if event.kind is None:
        event.kind = EventKind.SPECIAL
    elif not isinstance(event.kind, EventKind):
        try:
            event.kind = EventKind(event.kind)
        except ValueError:
            errors.add("kind", f"must be one of: {', '.join(k.value for k in EventKind)}")

    if isinstance(event.description, str) and not event.description.strip():
        event.description = None

    try:
        event.refresh_description_html()
    except MarkupError as e:
        errors.add("description", "is not valid markup")
        logger.debug(f"[Event] Markup rejected for '{event.title}': {e}")

    if errors:
        logger.info(f"[Event] Validation failed for '{event.title}': {errors.full_messages}")
    return errors.empty
