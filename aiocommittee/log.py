"""
logging setup from the environment

export AIOCOMMITTEE_LOGGING_HANDLERS=console,debug to log to stderr & /tmp/aiocommittee-debug.log
export AIOCOMMITTEE_LOGGING_LEVEL=INFO to skip the per request state transitions
"""
import logging.config
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional

FORMATTERS: Dict[str, Dict[str, str]] = {
    "plain": {"format": "%(message)s"},
    "named": {"format": "%(name)s %(levelname)s %(message)s"},
    "detailed": {"format": "%(asctime)s %(name)s %(levelname)s %(message)s"},
}

HANDLERS: Dict[str, Dict[str, str]] = {
    "console": {"class": "logging.StreamHandler", "formatter": "plain"},
    "syslog": {
        "class": "logging.handlers.SysLogHandler",
        "formatter": "named",
        "address": "/dev/log",
        "facility": "user",
    },
    "debug": {
        "class": "logging.handlers.WatchedFileHandler",
        "formatter": "detailed",
        "filename": "/tmp/aiocommittee-debug.log",
    },
}

handlers: Optional[List[str]] = None
"""the configured handlers, None until init() ran"""


def _detect() -> List[str]:
    if sys.stdin.isatty() and sys.stdout.isatty():
        return ["console"]
    if Path("/dev/log").resolve().is_socket():
        return ["syslog"]
    return []


def init(force=False):
    """
    configure the aiocommittee loggers once

    nothing is configured unless AIOCOMMITTEE_LOGGING_HANDLERS is set,
    force adds a handler suitable for the terminal or syslog
    """
    global handlers

    if handlers is not None:
        return

    handlers = []
    if (names := os.environ.get("AIOCOMMITTEE_LOGGING_HANDLERS", None)) is None:
        return

    if force:
        handlers.extend(_detect())
    handlers.extend(i for i in names.split(",") if i and i not in handlers)

    unknown = set(handlers) - set(HANDLERS)
    if unknown:
        raise ValueError(f"unknown logging handlers {sorted(unknown)}")

    level = os.environ.get("AIOCOMMITTEE_LOGGING_LEVEL", "DEBUG").upper()
    used = {name: dict(HANDLERS[name], level=level) for name in handlers}

    logging.config.dictConfig(
        {
            "version": 1,
            # the middleware runs inside the application, its loggers stay untouched
            "disable_existing_loggers": False,
            "formatters": {i["formatter"]: FORMATTERS[i["formatter"]] for i in used.values()},
            "handlers": used,
            "loggers": {
                "aiocommittee": {"level": level, "handlers": handlers},
                # WebLoader
                "httpx": {"level": level, "propagate": False, "handlers": handlers},
            },
        }
    )
