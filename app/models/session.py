"""ORM model for login audit rows. Not authentication state: tokens are stateless."""

from datetime import datetime, timedelta, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import relationship

from app.models.base import Base

SESSION_ACTIVE_DAYS = 30


class UserSession(Base):
    """One row per successful login or registration (user agent + client IP)."""

    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_agent = Column(String(1024), nullable=False)
    ip_address = Column(String(64), nullable=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )

    user = relationship("User", back_populates="sessions")

    def is_active(self, now: datetime | None = None, days: int = SESSION_ACTIVE_DAYS) -> bool:
        """True when created within the last `days` days."""
        now = now or datetime.now(timezone.utc)
        created = self.created_at
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        return created > now - timedelta(days=days)
