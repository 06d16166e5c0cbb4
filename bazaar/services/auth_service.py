import logging
import re
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from bazaar.core.clock import utcnow
from bazaar.core.config import settings
from bazaar.core.errors import (
    Banned,
    InvalidCredentials,
    Negative,
    NotFound,
    TooLong,
    UsernameTaken,
    ValidationFailed,
    WrongOldPassword,
)
from bazaar.core.security import (
    ban_days_remaining,
    decode_access_token,
    hash_password,
    is_currently_banned,
    new_session_token,
    verify_password,
)
from bazaar.db.models.session_model import AuthSession
from bazaar.db.models.user_model import User
from bazaar.repositories.session_repository import SessionRepository
from bazaar.repositories.user_repository import UserRepository
from bazaar.services.guards import require_identity

logger = logging.getLogger(__name__)

user_repo = UserRepository()
session_repo = SessionRepository()

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")
USERNAME_MIN, USERNAME_MAX = 4, 20
PASSWORD_MIN = 4
BIO_MAX = 500


def validate_username(username: str):
    if not username or not username.strip():
        raise ValidationFailed("username", "Username is required")
    if len(username) < USERNAME_MIN or len(username) > USERNAME_MAX:
        raise ValidationFailed("username", f"Username must be {USERNAME_MIN}-{USERNAME_MAX} characters")
    if not USERNAME_PATTERN.match(username):
        raise ValidationFailed("username", "Username may only contain letters, digits and underscores")


def validate_password(password: str, field: str = "password"):
    if not password:
        raise ValidationFailed(field, "Password is required")
    if len(password) < PASSWORD_MIN:
        raise ValidationFailed(field, f"Password must be at least {PASSWORD_MIN} characters")


def validate_bio(bio: Optional[str]):
    if bio and len(bio) > BIO_MAX:
        raise TooLong("bio", BIO_MAX)


class AuthService:
    """Session manager: credentials, persisted sessions and profile updates."""

    def register(self, db: Session, username: str, password: str, bio: str = "") -> User:
        validate_username(username)
        validate_password(password)
        validate_bio(bio)

        if user_repo.get_by_username(db, username):
            raise UsernameTaken()

        new_user = User(
            username=username,
            password_hash=hash_password(password),
            bio=bio or None,
            is_admin=False,
            can_login=True,
            ban_expiry=None,
            balance=settings.STARTING_BALANCE,
        )
        try:
            user = user_repo.create(db, new_user)
        except IntegrityError:
            # lost a race against another registration of the same name
            db.rollback()
            raise UsernameTaken()

        logger.info("Registered user %s", username)
        return user

    def login(self, db: Session, username: str, password: str, now: Optional[datetime] = None) -> dict:
        """Check credentials and ban state, then persist a new session.

        Returns ``{"user", "token", "expires_at"}``. An expired ban is lifted
        as a side effect of the attempt; an active one raises ``Banned``.
        """
        now = now or utcnow()
        if not username or not username.strip() or not password:
            raise ValidationFailed("credentials", "Username and password are required")

        user = user_repo.get_by_username(db, username)
        if not user or not verify_password(password, user.password_hash):
            raise InvalidCredentials()

        if not user.can_login:
            if is_currently_banned(user, now):
                days = ban_days_remaining(user.ban_expiry, now)
                logger.debug("Refused login for banned user %s (%d days left)", username, days)
                raise Banned(days)
            if user_repo.lift_expired_ban(db, username, now):
                db.commit()
                logger.info("Ban expired for %s; login restored", username)
            db.refresh(user)

        expires_at = now + timedelta(days=settings.SESSION_TTL_DAYS)
        token = new_session_token(user.username, expires_at)
        session_repo.create(db, AuthSession(token=token, user_id=user.username, expires_at=expires_at))
        db.refresh(user)
        return {"user": user, "token": token, "expires_at": expires_at}

    def logout(self, db: Session, token: Optional[str]) -> None:
        if not token:
            return
        try:
            session_repo.delete_token(db, token)
        except SQLAlchemyError:
            db.rollback()
            logger.warning("Could not delete session record during logout", exc_info=True)

    def restore_session(self, db: Session, token: Optional[str], now: Optional[datetime] = None) -> Optional[User]:
        """Resolve a persisted session to its user, or None. Never raises."""
        if not token:
            return None
        now = now or utcnow()
        try:
            record = session_repo.get_by_token(db, token)
            payload = decode_access_token(token, verify_exp=False)
            reason = None
            user = None
            if record is None:
                reason = "unknown token"
            elif payload is None or payload.get("sub") != record.user_id:
                reason = "malformed token"
            elif record.expires_at <= now:
                reason = "expired session"
            else:
                user = user_repo.get_by_username(db, record.user_id)
                if user is None:
                    reason = "user no longer exists"
                elif is_currently_banned(user, now):
                    reason = "user is banned"
                    user = None

            if reason:
                logger.warning("Discarding session: %s", reason)
                if record is not None:
                    session_repo.delete_token(db, token)
            return user
        except SQLAlchemyError:
            db.rollback()
            logger.warning("Session restore failed", exc_info=True)
            return None

    def get_user(self, db: Session, username: str) -> User:
        user = user_repo.get_by_username(db, username)
        if not user:
            raise NotFound("User")
        return user

    def refresh_user(self, db: Session, current_user: Optional[User]) -> User:
        require_identity(current_user)
        return self.get_user(db, current_user.username)

    def update_password(self, db: Session, current_user: Optional[User], old_password: str,
                        new_password: str, keep_token: Optional[str] = None) -> User:
        require_identity(current_user)
        if not old_password or not new_password:
            raise ValidationFailed("password", "All fields are required")
        validate_password(new_password, "new_password")

        user = self.get_user(db, current_user.username)
        if not verify_password(old_password, user.password_hash):
            raise WrongOldPassword()

        user.password_hash = hash_password(new_password)
        user = user_repo.save(db, user)
        # other devices have to log in again
        session_repo.delete_for_user(db, user.username, keep_token=keep_token)
        logger.info("Password changed for %s", user.username)
        return user

    def update_bio(self, db: Session, current_user: Optional[User], bio: str) -> User:
        require_identity(current_user)
        validate_bio(bio)
        user = self.get_user(db, current_user.username)
        user.bio = bio
        return user_repo.save(db, user)

    def update_balance(self, db: Session, current_user: Optional[User], amount: int) -> User:
        require_identity(current_user)
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ValidationFailed("amount", "Amount must be a whole number")
        if amount < 0:
            raise Negative("amount")
        user = self.get_user(db, current_user.username)
        user.balance = amount
        return user_repo.save(db, user)
