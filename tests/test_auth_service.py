from datetime import timedelta

import pytest

from bazaar.core.errors import (
    Banned,
    InvalidCredentials,
    Negative,
    NotAuthenticated,
    TooLong,
    UsernameTaken,
    ValidationFailed,
    WrongOldPassword,
)
from bazaar.core.security import verify_password
from bazaar.db.models.session_model import AuthSession
from bazaar.services.auth_service import AuthService
from conftest import PASSWORD, T

service = AuthService()


def test_register_creates_user_with_starting_balance(db):
    user = service.register(db, "dave_01", "Pass1234", "hello there")

    assert user.balance == 5_000_000
    assert user.can_login is True
    assert user.ban_expiry is None
    assert user.is_admin is False
    assert user.password_hash != "Pass1234"
    assert verify_password("Pass1234", user.password_hash)


def test_register_does_not_create_a_session(db):
    service.register(db, "dave_01", "Pass1234")
    assert db.query(AuthSession).count() == 0


def test_register_twice_fails_with_username_taken(db):
    service.register(db, "dave_01", "Pass1234")
    with pytest.raises(UsernameTaken):
        service.register(db, "dave_01", "Other999")


@pytest.mark.parametrize("username", ["abc", "a" * 21, "bad name", "dash-name", ""])
def test_register_rejects_bad_usernames(db, username):
    with pytest.raises(ValidationFailed) as exc:
        service.register(db, username, "Pass1234")
    assert exc.value.field == "username"


def test_register_rejects_short_password_and_long_bio(db):
    with pytest.raises(ValidationFailed):
        service.register(db, "dave_01", "abc")
    with pytest.raises(TooLong):
        service.register(db, "dave_01", "Pass1234", "x" * 501)


def test_login_returns_user_and_persists_session(db, make_user):
    make_user("alice")
    result = service.login(db, "alice", PASSWORD, now=T)

    assert result["user"].username == "alice"
    assert result["token"]
    assert result["expires_at"] == T + timedelta(days=7)
    record = db.query(AuthSession).filter(AuthSession.token == result["token"]).one()
    assert record.user_id == "alice"
    assert record.expires_at == T + timedelta(days=7)


def test_each_login_gets_a_fresh_token(db, make_user):
    make_user("alice")
    first = service.login(db, "alice", PASSWORD, now=T)
    second = service.login(db, "alice", PASSWORD, now=T)
    assert first["token"] != second["token"]


def test_login_rejects_unknown_user_and_wrong_password_alike(db, make_user):
    make_user("alice")
    with pytest.raises(InvalidCredentials) as unknown:
        service.login(db, "nobody", PASSWORD)
    with pytest.raises(InvalidCredentials) as wrong:
        service.login(db, "alice", "nope")
    assert unknown.value.detail == wrong.value.detail


def test_login_refuses_active_ban_and_keeps_it(db, make_user):
    make_user("carol", can_login=False, ban_expiry=T + timedelta(days=3))

    with pytest.raises(Banned) as exc:
        service.login(db, "carol", PASSWORD, now=T)

    assert exc.value.days_remaining == 3
    carol = service.get_user(db, "carol")
    assert carol.can_login is False
    assert carol.ban_expiry == T + timedelta(days=3)


def test_login_lifts_expired_ban(db, make_user):
    make_user("carol", can_login=False, ban_expiry=T - timedelta(hours=1))

    result = service.login(db, "carol", PASSWORD, now=T)

    assert result["user"].can_login is True
    assert result["user"].ban_expiry is None


def test_logout_removes_session_and_tolerates_garbage(db, make_user):
    make_user("alice")
    token = service.login(db, "alice", PASSWORD)["token"]

    service.logout(db, token)
    service.logout(db, token)
    service.logout(db, "not-a-token")
    service.logout(db, None)

    assert db.query(AuthSession).count() == 0


def test_restore_session_returns_user(db, make_user):
    make_user("alice")
    token = service.login(db, "alice", PASSWORD, now=T)["token"]

    user = service.restore_session(db, token, now=T + timedelta(days=1))
    assert user.username == "alice"


@pytest.mark.parametrize("token", [None, "", "garbage", "a.b.c"])
def test_restore_session_degrades_to_anonymous(db, token):
    assert service.restore_session(db, token) is None


def test_restore_session_discards_expired_record(db, make_user):
    make_user("alice")
    token = service.login(db, "alice", PASSWORD, now=T)["token"]

    assert service.restore_session(db, token, now=T + timedelta(days=8)) is None
    assert db.query(AuthSession).count() == 0


def test_restore_session_discards_record_of_removed_user(db, make_user):
    alice = make_user("alice")
    token = service.login(db, "alice", PASSWORD, now=T)["token"]
    db.delete(alice)
    db.commit()

    assert service.restore_session(db, token, now=T) is None
    assert db.query(AuthSession).count() == 0


def test_profile_updates_require_identity(db):
    with pytest.raises(NotAuthenticated):
        service.update_bio(db, None, "hi")
    with pytest.raises(NotAuthenticated):
        service.update_balance(db, None, 10)
    with pytest.raises(NotAuthenticated):
        service.update_password(db, None, "a", "bbbb")


def test_update_password_checks_old_password(db, make_user):
    alice = make_user("alice")
    with pytest.raises(WrongOldPassword):
        service.update_password(db, alice, "wrong", "NewPass1")

    service.update_password(db, alice, PASSWORD, "NewPass1")

    with pytest.raises(InvalidCredentials):
        service.login(db, "alice", PASSWORD)
    assert service.login(db, "alice", "NewPass1")["user"].username == "alice"


def test_update_password_revokes_other_sessions(db, make_user):
    alice = make_user("alice")
    kept = service.login(db, "alice", PASSWORD)["token"]
    other = service.login(db, "alice", PASSWORD)["token"]

    service.update_password(db, alice, PASSWORD, "NewPass1", keep_token=kept)

    assert service.restore_session(db, kept) is not None
    assert service.restore_session(db, other) is None


def test_update_bio_and_balance(db, make_user):
    alice = make_user("alice")

    assert service.update_bio(db, alice, "new bio").bio == "new bio"
    with pytest.raises(TooLong):
        service.update_bio(db, alice, "x" * 501)

    assert service.update_balance(db, alice, 0).balance == 0
    with pytest.raises(Negative):
        service.update_balance(db, alice, -1)
