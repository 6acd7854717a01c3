import logging
import sys
import os

# ===== Base logger setup =====
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)

logger = logging.getLogger("EventCalendar")

def log_info(module: str, action: str):
    """Standardized info log."""
    logger.info(f"[{module}] {action}")

def log_and_raise(module: str, action: str, error: Exception):
    """
    Logs an error with traceback and re-raises.
    Use this in any try/except where failure should stop execution.
    """
    msg = f"[{module}] ❌ Failed while {action}: {error}"
    logger.error(msg, exc_info=True)
    raise error

def log_and_warn(module: str, action: str, warning):
    """
    Logs a warning without raising.
    Use for recoverable issues (e.g. a geocoder that could not resolve an address).
    """
    msg = f"[{module}] ⚠️ {action}: {warning}"
    logger.warning(msg)
