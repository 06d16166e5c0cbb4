from sqlalchemy import Column, String, DateTime
from bazaar.core.clock import utcnow
from bazaar.db.base import Base

class AuthSession(Base):
    """Persisted session record: {user_id, token, expires_at}."""
    __tablename__ = "auth_sessions"

    token = Column(String(512), primary_key=True)
    user_id = Column(String(20), nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=utcnow)
