"""
Logging setup for the marketplace cart.

Usage:
    from marketplace.logging import get_logger
    logger = get_logger(__name__)

    logger.info(f"Cart hydrated: {describe_snapshot(items)}")

LOG_LEVEL sets the root level; CART_LOG_LEVEL overrides it for the
`marketplace` logger tree only (e.g. DEBUG to trace every mutation
without the Upstash client's request logs).
"""

import logging
import os
import sys
from functools import cache
from typing import Iterable, Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FORMAT_SIMPLE = "%(levelname)s - %(name)s - %(message)s"

PACKAGE_LOGGER = "marketplace"

# Longest snapshot description written to a single log line
MAX_LOGGED_ITEMS = 5


def _level_from_env(var: str, default: Optional[str] = "INFO") -> Optional[int]:
    level_name = os.environ.get(var, default)
    if level_name is None:
        return None
    return getattr(logging, level_name.upper(), logging.INFO)


def configure_logging() -> None:
    """Attach a stdout handler to the root logger once and apply env levels."""
    root = logging.getLogger()
    if not root.handlers:
        root.setLevel(_level_from_env("LOG_LEVEL"))
        handler = logging.StreamHandler(sys.stdout)
        is_production = os.environ.get("APP_ENV") == "production"
        handler.setFormatter(logging.Formatter(LOG_FORMAT_SIMPLE if is_production else LOG_FORMAT))
        root.addHandler(handler)

    cart_level = _level_from_env("CART_LOG_LEVEL", default=None)
    if cart_level is not None:
        logging.getLogger(PACKAGE_LOGGER).setLevel(cart_level)

    # The Upstash client talks REST over httpx
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


configure_logging()


@cache
def get_logger(name: str) -> logging.Logger:
    """Get or create a logger (typically `get_logger(__name__)`)."""
    return logging.getLogger(name)


def sanitize_id_for_logging(id_value: str | None) -> str:
    """
    Make a catalog item id safe to log.

    Ids come from the network: control characters that could forge log
    lines (CWE-117) are escaped and the result is cut to 8 chars.
    """
    if not id_value:
        return "N/A"
    safe_value = (
        str(id_value)
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("\x00", "")
    )
    return safe_value[:8]


def describe_snapshot(items: Iterable) -> str:
    """
    Compact one-line description of a cart snapshot, e.g. `2 item(s): 1x3, 2x1`.

    Only ids and quantities are logged, never titles or prices.
    """
    items = list(items)
    if not items:
        return "empty"
    parts = [f"{sanitize_id_for_logging(item.id)}x{item.quantity}" for item in items[:MAX_LOGGED_ITEMS]]
    if len(items) > MAX_LOGGED_ITEMS:
        parts.append(f"+{len(items) - MAX_LOGGED_ITEMS} more")
    return f"{len(items)} item(s): {', '.join(parts)}"


__all__ = [
    "LOG_FORMAT",
    "LOG_FORMAT_SIMPLE",
    "configure_logging",
    "describe_snapshot",
    "get_logger",
    "sanitize_id_for_logging",
]
