import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from bazaar.core.clock import utcnow
from bazaar.core.errors import Forbidden, NotFound, ValidationFailed
from bazaar.db.models.market_model import ChatMessage
from bazaar.db.models.user_model import User
from bazaar.repositories.chat_repository import ChatRepository
from bazaar.repositories.user_repository import UserRepository
from bazaar.services.guards import require_identity

logger = logging.getLogger(__name__)

chat_repo = ChatRepository()
user_repo = UserRepository()

PUBLIC_MAX = 1000
PRIVATE_MAX = 500


def validate_content(content: Optional[str], max_length: int) -> str:
    if not content or not content.strip():
        raise ValidationFailed("content", "Message cannot be empty")
    if len(content) > max_length:
        raise ValidationFailed("content", f"Message cannot exceed {max_length} characters")
    return content


class ChatService:

    def send_message(self, db: Session, content: str, author: Optional[User],
                     recipient: Optional[str] = None, now: Optional[datetime] = None) -> ChatMessage:
        require_identity(author)
        if recipient:
            validate_content(content, PRIVATE_MAX)
            if recipient == author.username:
                raise ValidationFailed("recipient", "You cannot message yourself")
            if not user_repo.get_by_username(db, recipient):
                raise NotFound("User")
        else:
            validate_content(content, PUBLIC_MAX)

        message = ChatMessage(
            content=content,
            author=author.username,
            created_at=now or utcnow(),
            is_private=bool(recipient),
            recipient=recipient or None,
        )
        return chat_repo.create(db, message)

    def list_public(self, db: Session) -> List[ChatMessage]:
        return chat_repo.list_public(db)

    def list_conversation(self, db: Session, user: Optional[User], other: str) -> List[ChatMessage]:
        require_identity(user)
        if not user_repo.get_by_username(db, other):
            raise NotFound("User")
        return chat_repo.list_between(db, user.username, other)

    def list_conversations(self, db: Session, user: Optional[User]) -> List[dict]:
        """Latest private message per conversation partner, newest first."""
        require_identity(user)
        latest: Dict[str, ChatMessage] = {}
        for message in chat_repo.list_private_for(db, user.username):
            partner = message.recipient if message.author == user.username else message.author
            latest[partner] = message
        ordered = sorted(latest.items(), key=lambda item: item[1].created_at, reverse=True)
        return [{"partner": partner, "last_message": message} for partner, message in ordered]

    def edit_message(self, db: Session, message_id: str, content: str, actor: Optional[User]) -> ChatMessage:
        require_identity(actor)
        message = chat_repo.get_by_id(db, message_id)
        if not message:
            raise NotFound("Message")
        if message.author != actor.username:
            raise Forbidden("You can only edit your own messages")
        message.content = validate_content(content, PRIVATE_MAX if message.is_private else PUBLIC_MAX)
        return chat_repo.save(db, message)

    def delete_message(self, db: Session, message_id: str, actor: Optional[User]) -> None:
        require_identity(actor)
        message = chat_repo.get_by_id(db, message_id)
        if not message:
            raise NotFound("Message")
        # admins moderate the public room only
        allowed = message.author == actor.username or (actor.is_admin and not message.is_private)
        if not allowed:
            raise Forbidden("You do not have permission to delete this message")
        chat_repo.delete(db, message)
        db.commit()
