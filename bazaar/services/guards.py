from bazaar.core.errors import Forbidden, NotAuthenticated


def require_identity(user):
    if user is None:
        raise NotAuthenticated()
    return user


def require_admin(user):
    require_identity(user)
    if not user.is_admin:
        raise Forbidden("Administrator privileges required")
    return user


def can_manage(user, owner: str) -> bool:
    return user is not None and (user.username == owner or bool(user.is_admin))
