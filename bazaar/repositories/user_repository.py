from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session
from bazaar.db.models.user_model import User

class UserRepository:

    def create(self, db: Session, user: User):
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    def save(self, db: Session, user: User):
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    def get_by_username(self, db: Session, username: str) -> Optional[User]:
        return db.query(User).filter(User.username == username).first()

    def list_locked(self, db: Session) -> List[User]:
        return db.query(User).filter(User.can_login.is_(False)).order_by(User.ban_expiry).all()

    # Conditional writes. Each is one UPDATE; callers commit.

    def debit(self, db: Session, username: str, amount: int) -> bool:
        changed = (
            db.query(User)
            .filter(User.username == username, User.balance >= amount)
            .update({User.balance: User.balance - amount}, synchronize_session=False)
        )
        return changed == 1

    def credit(self, db: Session, username: str, amount: int) -> bool:
        changed = (
            db.query(User)
            .filter(User.username == username)
            .update({User.balance: User.balance + amount}, synchronize_session=False)
        )
        return changed == 1

    def set_ban(self, db: Session, username: str, expiry: datetime) -> bool:
        changed = (
            db.query(User)
            .filter(User.username == username)
            .update({User.can_login: False, User.ban_expiry: expiry}, synchronize_session=False)
        )
        return changed == 1

    def clear_ban(self, db: Session, username: str) -> bool:
        changed = (
            db.query(User)
            .filter(User.username == username)
            .update({User.can_login: True, User.ban_expiry: None}, synchronize_session=False)
        )
        return changed == 1

    def lift_expired_ban(self, db: Session, username: str, now: datetime) -> bool:
        changed = (
            db.query(User)
            .filter(
                User.username == username,
                User.can_login.is_(False),
                (User.ban_expiry.is_(None)) | (User.ban_expiry <= now),
            )
            .update({User.can_login: True, User.ban_expiry: None}, synchronize_session=False)
        )
        return changed == 1
