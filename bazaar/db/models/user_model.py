from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text
from bazaar.core.clock import utcnow
from bazaar.db.base import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(20), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    bio = Column(Text, nullable=True)

    # Moderation capability, only settable through the seed scripts
    is_admin = Column(Boolean, nullable=False, default=False)

    # can_login is False while a ban is recorded; ban_expiry decides if it still holds
    can_login = Column(Boolean, nullable=False, default=True)
    ban_expiry = Column(DateTime, nullable=True)

    balance = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=utcnow)
