"""
Named, chainable query scopes over the events table.

Every method returns a new EventScope; nothing is executed until all(),
first(), count() or iteration. Scopes apply in the order they are called, so
events(db).next(5).special() picks the five soonest events and then keeps the
special ones among them.
"""
from sqlalchemy.orm import aliased

from db.models import Event, EventKind
from utils.timezone import as_utc, utc_now


class EventScope:
    def __init__(self, db, query=None, entity=Event, limited: bool = False):
        self.db = db
        self.entity = entity
        self.query = query if query is not None else db.query(Event)
        self.limited = limited

    def _derive(self, query, entity=None, limited=False):
        return EventScope(self.db, query, entity or self.entity, limited)

    def _unlimited(self):
        """
        Return a scope that further filters can be applied to.
        A LIMIT-ed query is wrapped in a subquery so filters narrow the limited rows.
        """
        if not self.limited:
            return self
        rows = self.query.subquery()
        entity = aliased(Event, rows)
        query = self.db.query(entity).order_by(entity.date.asc(), entity.id.asc())
        return EventScope(self.db, query, entity)

    def where(self, predicate):
        """Apply predicate(entity) as a filter; entity is the mapped class or its alias."""
        base = self._unlimited()
        return base._derive(base.query.filter(predicate(base.entity)))

    # ===== Temporal scopes =====
    def future(self, now=None):
        now = as_utc(now) if now is not None else utc_now()
        return self.where(lambda e: e.date > now)

    def past(self, now=None):
        now = as_utc(now) if now is not None else utc_now()
        base = self.where(lambda e: e.date <= now)
        return base._derive(base.query.order_by(None).order_by(base.entity.date.desc()))

    def next(self, limit: int = 1, now=None):
        """Up to `limit` future events, soonest first."""
        base = self.future(now)
        query = (
            base.query.order_by(None)
            .order_by(base.entity.date.asc(), base.entity.id.asc())
            .limit(limit)
        )
        return base._derive(query, limited=True)

    # ===== Category scopes =====
    def recurring(self):
        return self.where(lambda e: e.kind == EventKind.RECURRING)

    def special(self):
        return self.where(lambda e: e.kind == EventKind.SPECIAL)

    # ===== Compositions =====
    def next_five_special(self, now=None):
        return self.next(5, now=now).special()

    def next_four_recurring(self, now=None):
        return self.next(4, now=now).recurring()

    # ===== Execution =====
    def all(self) -> list:
        return self.query.all()

    def first(self):
        return self.query.first()

    def count(self) -> int:
        return self.query.count()

    def __iter__(self):
        return iter(self.all())


def events(db) -> EventScope:
    """Entry point: an unfiltered scope over every event."""
    return EventScope(db)
