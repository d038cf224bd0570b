# Filename: filevault/stats.py
"""Per-user running counters.

Deltas are applied in a single UPDATE so concurrent adjustments for the same
user cannot lose an increment. Every counter is floored at zero.
"""
import logging

from sqlalchemy import case, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .models import Stat, utcnow

logger = logging.getLogger(__name__)

_COUNTERS = {
    "uploaded": "files_uploaded",
    "shared": "files_shared",
    "storage_bytes": "storage_used",
    "downloads": "downloads",
}


def _row_id(session: Session, user_id: int):
    return session.exec(select(Stat.id).where(Stat.user_id == user_id)).first()


def _ensure_row(session: Session, user_id: int) -> None:
    # lazily created; the unique user_id constraint keeps it to one row
    if _row_id(session, user_id) is not None:
        return
    session.add(Stat(user_id=user_id))
    try:
        session.commit()
    except IntegrityError:
        # another request created it between our select and insert
        session.rollback()
        logger.debug("Stats row for user %s already created concurrently", user_id)


def _clamped(column, delta: int):
    return case((column + delta < 0, 0), else_=column + delta)


def adjust(session: Session, user_id: int, uploaded: int = 0, shared: int = 0,
           storage_bytes: int = 0, downloads: int = 0) -> Stat:
    """Apply signed deltas to a user's counters and return the fresh row."""
    deltas = {"uploaded": uploaded, "shared": shared, "storage_bytes": storage_bytes, "downloads": downloads}
    _ensure_row(session, user_id)

    values = {"last_updated": utcnow()}
    for name, delta in deltas.items():
        if delta:
            column_name = _COUNTERS[name]
            values[column_name] = _clamped(getattr(Stat, column_name), delta)

    session.exec(update(Stat).where(Stat.user_id == user_id).values(**values))
    session.commit()
    return get_stats(session, user_id)


def get_stats(session: Session, user_id: int) -> Stat:
    stmt = select(Stat).where(Stat.user_id == user_id).execution_options(populate_existing=True)
    stat = session.exec(stmt).first()
    if stat is None:
        _ensure_row(session, user_id)
        stat = session.exec(stmt).one()
    return stat


def format_size(num_bytes: int) -> str:
    """Human readable storage figure, e.g. ``"1.5 KB"``."""
    num_bytes = num_bytes or 0
    if num_bytes > 1024 ** 3:
        return f"{num_bytes / 1024 ** 3:.1f} GB"
    if num_bytes > 1024 ** 2:
        return f"{num_bytes / 1024 ** 2:.1f} MB"
    if num_bytes > 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes} B"
