"""
Click recorder: persists click analytics, best-effort.

Each call appends one Click row and bumps urls.click_count with a single
``UPDATE ... SET click_count = click_count + 1`` so concurrent recorders
never lose increments. Errors are logged and swallowed: analytics must
never fail a redirect.
"""

import logging
from typing import Callable, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from shortlink_app.models.click import Click
from shortlink_app.models.url import URL
from shortlink_app.schemas.click import ClickEvent

logger = logging.getLogger(__name__)


class ClickRecorder:

    def __init__(self, session_factory: Callable[[], Session]):
        """
        Args:
            session_factory: Creates sessions for background recording,
                where the request-scoped session is already closed
        """
        self.session_factory = session_factory

    def record(self, event: ClickEvent, db: Optional[Session] = None) -> bool:
        """
        Record a click. Uses ``db`` if given, otherwise opens (and closes)
        a session of its own.

        Returns:
            True if both writes were committed, False otherwise
        """
        owns_session = db is None
        session = self.session_factory() if owns_session else db

        try:
            result = session.execute(
                update(URL)
                .where(URL.short_code == event.short_code)
                .values(click_count=URL.click_count + 1)
            )
            if result.rowcount == 0:
                session.rollback()
                logger.warning("Click for unknown short code %s dropped", event.short_code)
                return False

            session.add(Click(
                short_code=event.short_code,
                timestamp=event.timestamp,
                user_agent=event.user_agent,
                referer=event.referer,
                ip_address=event.ip_address,
            ))
            session.commit()
            return True

        except Exception:
            session.rollback()
            logger.exception("Failed to record click for %s", event.short_code)
            return False

        finally:
            if owns_session:
                session.close()
