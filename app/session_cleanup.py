"""
CLI entrypoint for the expired login-session purge. Run from cron, e.g.:

  python -m app.session_cleanup

Or daily: 0 3 * * * cd /path/to/gatekeeper && .venv/bin/python -m app.session_cleanup
"""

import logging
import sys

from app.core.config import get_settings
from app.core.database import session_scope
from app.services.session_cleanup import purge_expired_sessions

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Delete session rows older than SESSION_RETENTION_DAYS."""
    settings = get_settings()
    try:
        with session_scope() as db:
            deleted = purge_expired_sessions(db, settings)
    except Exception as e:
        logger.exception("Session cleanup failed: %s", e)
        return 1
    logger.info("Session cleanup completed: sessions_deleted=%s", deleted)
    return 0


if __name__ == "__main__":
    sys.exit(main())
