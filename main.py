import argparse

from config.logger import logger, log_and_raise
from config.envs import GEOCODE_ON_SAVE
from db.init import init_db, get_db, close_engine
from db.scopes import events
from services.event_service import geocode_missing
from services.geocoder import build_geocoder
from utils.timezone import format_utc_time

def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Event calendar maintenance entrypoint.")
    parser.add_argument("--no-backfill", action="store_true", help="skip geocoding events that lack coordinates")
    parser.add_argument("--limit", type=int, default=None, help="max events to geocode in the backfill")
    return parser.parse_args(argv)

def log_upcoming(db):
    """Log the next special and recurring events."""
    for label, upcoming in (
        ("special", events(db).next_five_special()),
        ("recurring", events(db).next_four_recurring()),
    ):
        rows = upcoming.all()
        logger.info(f"📅 Next {label} events: {len(rows)}")
        for event in rows:
            where = event.lat_lng_pair if event.geocoded else "not geocoded"
            logger.info(f"   • {format_utc_time(event.date)} {event.title} @ {event.location} ({where})")

def main(argv=None):
    """Main entrypoint: prepare the database, backfill coordinates, report upcoming events."""
    args = parse_args(argv)
    try:
        logger.info("🚀 Event calendar starting up...")
        init_db()

        with get_db() as db:
            if GEOCODE_ON_SAVE and not args.no_backfill:
                geocode_missing(db, build_geocoder(), limit=args.limit)
            log_upcoming(db)

    except Exception as e:
        log_and_raise("Main", "running event calendar maintenance", e)

    finally:
        close_engine()
        logger.info("🛑 Event calendar has stopped.")

if __name__ == "__main__":
    main()
