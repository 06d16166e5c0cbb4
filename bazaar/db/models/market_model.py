import uuid

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text
from bazaar.core.clock import utcnow
from bazaar.db.base import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Product(Base):
    __tablename__ = "products"
    id = Column(String(36), primary_key=True, default=_uuid)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    image_url = Column(String(2048), nullable=False)

    # Seller's username; kept as plain text so history survives account removal
    author = Column(String(20), nullable=False, index=True)
    price = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=utcnow)

    # Set together, once
    purchased_by = Column(String(20), nullable=True, index=True)
    purchased_at = Column(DateTime, nullable=True)

    is_deleted = Column(Boolean, nullable=False, default=False)

class Report(Base):
    __tablename__ = "reports"
    id = Column(String(36), primary_key=True, default=_uuid)
    type = Column(String(10), nullable=False)  # user, post, chat, product
    content_id = Column(String(36), nullable=True)
    reported_user = Column(String(20), nullable=False, index=True)
    reason = Column(Text, nullable=False)
    reported_by = Column(String(20), nullable=False)
    created_at = Column(DateTime, default=utcnow)

class ChatMessage(Base):
    __tablename__ = "chat_messages"
    id = Column(String(36), primary_key=True, default=_uuid)
    content = Column(Text, nullable=False)
    author = Column(String(20), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)
    is_private = Column(Boolean, nullable=False, default=False)
    recipient = Column(String(20), nullable=True, index=True)
