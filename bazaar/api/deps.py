from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from bazaar.core.errors import Forbidden, NotAuthenticated
from bazaar.db.models.user_model import User
from bazaar.db.session import get_db
from bazaar.services.auth_service import AuthService

bearer_scheme = HTTPBearer(auto_error=False)
auth_service = AuthService()


def get_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)) -> Optional[str]:
    if credentials is None:
        return None
    return credentials.credentials


def get_optional_user(
    token: Optional[str] = Depends(get_token),
    db: Session = Depends(get_db),
) -> Optional[User]:
    return auth_service.restore_session(db, token)


def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    if user is None:
        raise NotAuthenticated()
    return user


def get_current_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise Forbidden("Administrator privileges required")
    return user
