"""Purge of login audit rows that have aged out of the active window."""

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from sqlalchemy import delete
from sqlalchemy.orm import Session

from app.models import UserSession

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


def session_cutoff(retention_days: int, now: datetime | None = None) -> datetime:
    """Rows created at or before this instant are no longer active."""
    return (now or datetime.now(timezone.utc)) - timedelta(days=retention_days)


def purge_expired_sessions(
    session: Session, settings: "Settings", now: datetime | None = None
) -> int:
    """
    Delete sessions older than SESSION_RETENTION_DAYS and return how many went.
    A row survives exactly as long as UserSession.is_active() holds for it.
    """
    if not settings.SESSION_CLEANUP_ENABLED:
        logger.info("Session cleanup disabled; nothing purged")
        return 0

    cutoff = session_cutoff(settings.SESSION_RETENTION_DAYS, now)
    result = session.execute(
        delete(UserSession)
        .where(UserSession.created_at <= cutoff)
        .execution_options(synchronize_session=False)
    )
    session.commit()

    purged = result.rowcount or 0
    if purged:
        logger.info("Purged %s login sessions created on or before %s", purged, cutoff.isoformat())
    return purged
