import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from bazaar.core.clock import utcnow
from bazaar.core.errors import NotFound, OutOfRange, ValidationFailed
from bazaar.core.security import ban_days_remaining, is_currently_banned
from bazaar.db.models.user_model import User
from bazaar.repositories.report_repository import ReportRepository
from bazaar.repositories.session_repository import SessionRepository
from bazaar.repositories.user_repository import UserRepository
from bazaar.services.guards import require_admin

logger = logging.getLogger(__name__)

user_repo = UserRepository()
report_repo = ReportRepository()
session_repo = SessionRepository()

BAN_DAYS_MIN = 1
BAN_DAYS_MAX = 365


class ModerationService:
    """Ban policy. Expiry is evaluated lazily by readers and at login."""

    def ban(self, db: Session, username: str, days: int, acting_admin: Optional[User],
            now: Optional[datetime] = None) -> User:
        require_admin(acting_admin)
        if isinstance(days, bool) or not isinstance(days, int):
            raise ValidationFailed("days", "Ban length must be a whole number of days")
        if days < BAN_DAYS_MIN or days > BAN_DAYS_MAX:
            raise OutOfRange("days", BAN_DAYS_MIN, BAN_DAYS_MAX)

        now = now or utcnow()
        expiry = now + timedelta(days=days)
        if not user_repo.set_ban(db, username, expiry):
            raise NotFound("User")
        # pending reports against the user are settled by the ban
        cleared = report_repo.delete_for_user(db, username)
        db.commit()
        session_repo.delete_for_user(db, username)

        logger.info("%s banned %s for %d day(s) (%d report(s) cleared)",
                    acting_admin.username, username, days, cleared)
        return user_repo.get_by_username(db, username)

    def unban(self, db: Session, username: str, acting_admin: Optional[User]) -> User:
        require_admin(acting_admin)
        if not user_repo.clear_ban(db, username):
            raise NotFound("User")
        db.commit()
        logger.info("%s lifted the ban on %s", acting_admin.username, username)
        return user_repo.get_by_username(db, username)

    def list_banned(self, db: Session, acting_admin: Optional[User],
                    now: Optional[datetime] = None) -> List[dict]:
        require_admin(acting_admin)
        now = now or utcnow()
        rows = []
        for user in user_repo.list_locked(db):
            active = is_currently_banned(user, now)
            rows.append({
                "username": user.username,
                "ban_expiry": user.ban_expiry,
                "currently_banned": active,
                "days_remaining": ban_days_remaining(user.ban_expiry, now) if active else 0,
            })
        return rows
