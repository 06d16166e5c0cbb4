from typing import List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session
from bazaar.db.models.market_model import ChatMessage

class ChatRepository:

    def create(self, db: Session, message: ChatMessage):
        db.add(message)
        db.commit()
        db.refresh(message)
        return message

    def save(self, db: Session, message: ChatMessage):
        db.add(message)
        db.commit()
        db.refresh(message)
        return message

    def get_by_id(self, db: Session, message_id: str) -> Optional[ChatMessage]:
        return db.query(ChatMessage).filter(ChatMessage.id == message_id).first()

    def delete(self, db: Session, message: ChatMessage):
        db.delete(message)

    def list_public(self, db: Session) -> List[ChatMessage]:
        return (
            db.query(ChatMessage)
            .filter(ChatMessage.is_private.is_(False))
            .order_by(ChatMessage.created_at)
            .all()
        )

    def list_between(self, db: Session, user_a: str, user_b: str) -> List[ChatMessage]:
        return (
            db.query(ChatMessage)
            .filter(
                ChatMessage.is_private.is_(True),
                or_(
                    and_(ChatMessage.author == user_a, ChatMessage.recipient == user_b),
                    and_(ChatMessage.author == user_b, ChatMessage.recipient == user_a),
                ),
            )
            .order_by(ChatMessage.created_at)
            .all()
        )

    def list_private_for(self, db: Session, username: str) -> List[ChatMessage]:
        return (
            db.query(ChatMessage)
            .filter(
                ChatMessage.is_private.is_(True),
                or_(ChatMessage.author == username, ChatMessage.recipient == username),
            )
            .order_by(ChatMessage.created_at)
            .all()
        )
