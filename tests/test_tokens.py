from datetime import datetime, timedelta

from api.v1.auth.services import AuthService
from api.v1.auth.tokens import TokenService
from api.v1.auth.users import UserDirectory
from models.refresh_token import RefreshToken
from models.user import UserRole, ApplicationStatus


def test_login_issues_distinct_tokens_and_persists_refresh(db, mailer, approved_user):
    result = AuthService(db, mailer).login_with_user(approved_user)

    assert result["access_token"] != result["refresh_token"]
    record = db.query(RefreshToken).one()
    assert record.token == result["refresh_token"]
    assert record.user_id == approved_user.id
    assert record.is_revoked is False


def test_refresh_expiry_is_taken_from_token(db, mailer, approved_user):
    result = AuthService(db, mailer).login_with_user(approved_user)

    record = db.query(RefreshToken).filter_by(token=result["refresh_token"]).one()
    expected = datetime.utcnow() + timedelta(days=7)
    assert abs((record.token_expiry - expected).total_seconds()) < 60


def test_refresh_tokens_are_unique_per_login(db, mailer, approved_user):
    auth = AuthService(db, mailer)
    first = auth.login_with_user(approved_user)
    second = auth.login_with_user(approved_user)

    assert first["refresh_token"] != second["refresh_token"]


def test_revoke_marks_token(db, mailer, approved_user):
    refresh_token = AuthService(db, mailer).login_with_user(approved_user)["refresh_token"]
    token_service = TokenService(db)

    assert token_service.is_token_revoked(refresh_token) is False
    assert token_service.revoke_token(refresh_token) == 1
    assert token_service.is_token_revoked(refresh_token) is True
    # Already revoked: nothing left to change
    assert token_service.revoke_token(refresh_token) == 0
    assert token_service.is_token_revoked(refresh_token) is True


def test_unknown_token_is_not_revoked(db):
    assert TokenService(db).is_token_revoked("never-issued") is False


def test_access_token_is_never_tracked(db, mailer, approved_user):
    access_token = AuthService(db, mailer).login_with_user(approved_user)["access_token"]

    assert db.query(RefreshToken).filter_by(token=access_token).count() == 0
    assert TokenService(db).is_token_revoked(access_token) is False


def test_revoke_all_for_user_leaves_other_users(db, mailer, approved_user):
    other = UserDirectory(db).create(
        name="Grace Hopper",
        email="grace@example.com",
        role=UserRole.user,
        application_status=ApplicationStatus.approved,
    )
    auth = AuthService(db, mailer)
    mine = [auth.login_with_user(approved_user)["refresh_token"] for _ in range(3)]
    theirs = auth.login_with_user(other)["refresh_token"]

    token_service = TokenService(db)
    token_service.revoke_token(mine[0])

    assert token_service.revoke_all_for_user(approved_user.id) == 2
    assert all(token_service.is_token_revoked(token) for token in mine)
    assert token_service.is_token_revoked(theirs) is False
    assert token_service.revoke_all_for_user(approved_user.id) == 0


def test_delete_expired_tokens_only_removes_past_expiry(db, approved_user):
    now = datetime(2026, 3, 1, 1, 0, 0)
    db.add_all([
        RefreshToken(token="past", token_expiry=now - timedelta(seconds=1), user_id=approved_user.id),
        RefreshToken(token="exact", token_expiry=now, user_id=approved_user.id),
        RefreshToken(token="future", token_expiry=now + timedelta(days=1), user_id=approved_user.id),
        RefreshToken(token="no-expiry", token_expiry=None, user_id=approved_user.id),
    ])
    db.commit()

    assert TokenService(db).delete_expired_tokens(now) == 1
    remaining = sorted(r.token for r in db.query(RefreshToken).all())
    assert remaining == ["exact", "future", "no-expiry"]


def test_save_token_without_exp_has_no_expiry(db, approved_user):
    record = TokenService(db).save_token("not-a-jwt", approved_user)

    assert record.token_expiry is None
    assert record.is_revoked is False
