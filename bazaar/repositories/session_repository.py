from typing import Optional

from sqlalchemy.orm import Session
from bazaar.db.models.session_model import AuthSession

class SessionRepository:

    def create(self, db: Session, record: AuthSession):
        db.add(record)
        db.commit()
        db.refresh(record)
        return record

    def get_by_token(self, db: Session, token: str) -> Optional[AuthSession]:
        return db.query(AuthSession).filter(AuthSession.token == token).first()

    def delete_token(self, db: Session, token: str) -> int:
        deleted = db.query(AuthSession).filter(AuthSession.token == token).delete(synchronize_session=False)
        db.commit()
        return deleted

    def delete_for_user(self, db: Session, username: str, keep_token: Optional[str] = None) -> int:
        query = db.query(AuthSession).filter(AuthSession.user_id == username)
        if keep_token:
            query = query.filter(AuthSession.token != keep_token)
        deleted = query.delete(synchronize_session=False)
        db.commit()
        return deleted
