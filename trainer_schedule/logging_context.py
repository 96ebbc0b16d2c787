"""Acting-user logging context.

Every record that passes through the root handler installed by
``load_config`` carries the id of the trainer or member on whose behalf
the current action runs, so one user's edits and bookings can be followed
from the editor through the services to the backend client.

Usage:
    from trainer_schedule.logging_context import acting_as, get_user_logger

    logger = get_user_logger(__name__)
    with acting_as(trainer_id):
        logger.info("Saving availability")  # ... [trainer-id] INFO: ...
"""

import logging
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

SYSTEM_USER = "system"
LOG_FORMAT = "%(asctime)s [%(name)s] [%(user_id)s] %(levelname)s: %(message)s"

_user_id: ContextVar[str] = ContextVar("user_id", default=SYSTEM_USER)


def set_user_id(user_id: Optional[str]) -> None:
    """Set the acting user for the rest of the current context."""
    _user_id.set(user_id or SYSTEM_USER)


def get_user_id() -> str:
    return _user_id.get()


@contextmanager
def acting_as(user_id: Optional[str]) -> Iterator[str]:
    """Scope the acting user to a block, restoring the previous one on exit."""
    token = _user_id.set(user_id or SYSTEM_USER)
    try:
        yield _user_id.get()
    finally:
        _user_id.reset(token)


class UserIdFilter(logging.Filter):
    """Stamps ``user_id`` on records that do not already carry one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "user_id"):
            record.user_id = _user_id.get()  # type: ignore[attr-defined]
        return True


def user_id_handler(datefmt: Optional[str] = None) -> logging.Handler:
    """A stream handler whose format includes the acting user."""
    handler = logging.StreamHandler()
    handler.addFilter(UserIdFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=datefmt))
    return handler


def get_user_logger(name: str) -> logging.Logger:
    """Logger whose own records are stamped with the acting user.

    Records propagated to the root handler are stamped there anyway; the
    logger-level filter also covers handlers added directly, like pytest's
    ``caplog``.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, UserIdFilter) for f in logger.filters):
        logger.addFilter(UserIdFilter())
    return logger
