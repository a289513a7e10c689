"""
# Logging Manager

Central logger factory for the Account Service.

Every module obtains its logger through `get_logger()`. A `prefix` tags each record so that
log lines from one subsystem are easy to grep:

```python
from account_service.managers.logging_manager import get_logger

logger = get_logger(prefix="[ChildService]")
logger.info("Created child %s", child.id)
# 2026-01-01 12:00:00 | INFO | account_service | [ChildService] Created child 65a...
```

The root handler is configured once, on first use, with the level from `settings.LOG_LEVEL`.
"""

import logging
import sys
from typing import Optional

from account_service.config import settings

DEFAULT_LOGGER_NAME = "account_service"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_configured = False


class PrefixAdapter(logging.LoggerAdapter):
    """Logger adapter that prepends a fixed prefix to every message."""

    def process(self, msg, kwargs):
        prefix = self.extra.get("prefix") if self.extra else None
        if prefix:
            return f"{prefix} {msg}", kwargs
        return msg, kwargs


def _configure_root() -> None:
    global _configured
    if _configured:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root = logging.getLogger(DEFAULT_LOGGER_NAME)
    root.addHandler(handler)
    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    root.propagate = False
    _configured = True


def get_logger(name: Optional[str] = None, prefix: str = "") -> logging.LoggerAdapter:
    """
    Return a logger for the given name, optionally tagged with a prefix.

    Args:
        name (Optional[str]): Logger name. Child loggers of `account_service` share its handler.
            Defaults to `account_service`.
        prefix (str): Text prepended to every message, e.g. `"[DATABASE]"`.

    Returns:
        logging.LoggerAdapter: A prefixing adapter around the standard library logger.
    """
    _configure_root()
    logger = logging.getLogger(name or DEFAULT_LOGGER_NAME)
    return PrefixAdapter(logger, {"prefix": prefix})
