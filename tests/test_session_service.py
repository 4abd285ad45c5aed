from datetime import timedelta

import pytest

from conftest import LANDLORD_PASSWORD, get_account, register_landlord, with_db
from core.exceptions import (
    ConcurrentRotation,
    InvalidCredentials,
    InvalidCSRF,
    SessionExpired,
    SessionNotFound,
)
from models.enums import AccountRole
from services.session_service import SessionService, as_utc, utcnow

LANDLORD = AccountRole.LANDLORD


def login(email="landlord@example.com", password=LANDLORD_PASSWORD, **kwargs):
    return with_db(lambda db: SessionService(db, LANDLORD, **kwargs).login(email, password))


def validate(session_token, csrf_token, **kwargs):
    return with_db(lambda db: SessionService(db, LANDLORD, **kwargs).validate(session_token, csrf_token))


def authenticate(session_token, csrf_token, **kwargs):
    return with_db(
        lambda db: SessionService(db, LANDLORD, **kwargs).authenticate(session_token, csrf_token)
    )


def test_login_stores_pair_and_expiry(landlord_id):
    issued = login()
    account = get_account(LANDLORD, landlord_id)

    assert issued.account_id == landlord_id
    assert account.session_token == issued.session_token
    assert account.csrf_token == issued.csrf_token
    assert abs(as_utc(account.token_expiry) - issued.expires_at) < timedelta(seconds=1)
    assert timedelta(seconds=115) < issued.expires_at - utcnow() <= timedelta(seconds=120)


def test_login_email_is_normalised(landlord_id):
    issued = login(email="  LANDLORD@example.com ")
    assert issued.account_id == landlord_id


def test_login_failures_look_the_same(landlord_id):
    with pytest.raises(InvalidCredentials) as unknown:
        login(email="nobody@example.com")
    with pytest.raises(InvalidCredentials) as wrong:
        login(password="not-the-password")
    assert str(unknown.value) == str(wrong.value)
    assert get_account(LANDLORD, landlord_id).session_token is None


def test_second_login_replaces_first_pair(landlord_id):
    first = login()
    second = login()
    with pytest.raises(SessionNotFound):
        validate(first.session_token, first.csrf_token)
    assert validate(second.session_token, second.csrf_token).account_id == landlord_id


def test_authenticate_rotates_the_pair(landlord_id):
    issued = login()
    account, rotated = authenticate(issued.session_token, issued.csrf_token)

    assert account.account_id == landlord_id
    assert rotated.session_token != issued.session_token
    assert rotated.csrf_token != issued.csrf_token

    stored = get_account(LANDLORD, landlord_id)
    assert stored.session_token == rotated.session_token
    assert stored.csrf_token == rotated.csrf_token

    # the pair that was just used is dead
    with pytest.raises(SessionNotFound):
        authenticate(issued.session_token, issued.csrf_token)
    # and the fresh one works exactly once more
    authenticate(rotated.session_token, rotated.csrf_token)


def test_missing_tokens():
    with pytest.raises(SessionNotFound):
        validate(None, "csrf")
    with pytest.raises(SessionNotFound):
        validate("", "csrf")


def test_csrf_must_match_the_same_pair(landlord_id):
    other_id = register_landlord("other@example.com", "other-password")
    mine = login()
    theirs = login(email="other@example.com", password="other-password")

    with pytest.raises(InvalidCSRF):
        validate(mine.session_token, theirs.csrf_token)
    with pytest.raises(InvalidCSRF):
        validate(mine.session_token, None)
    with pytest.raises(InvalidCSRF):
        validate(mine.session_token, mine.csrf_token + "x")

    assert validate(theirs.session_token, theirs.csrf_token).account_id == other_id


def test_expired_session(landlord_id):
    start = utcnow()
    issued = login(clock=lambda: start)

    at_expiry = start + timedelta(seconds=120)
    assert validate(issued.session_token, issued.csrf_token, clock=lambda: at_expiry)

    later = start + timedelta(seconds=121)
    with pytest.raises(SessionExpired):
        validate(issued.session_token, issued.csrf_token, clock=lambda: later)


def test_custom_ttl(landlord_id):
    start = utcnow()
    issued = login(ttl=timedelta(seconds=5), clock=lambda: start)
    assert issued.expires_at == start + timedelta(seconds=5)
    with pytest.raises(SessionExpired):
        validate(
            issued.session_token,
            issued.csrf_token,
            clock=lambda: start + timedelta(seconds=6),
        )


def test_concurrent_rotation_has_one_winner(landlord_id):
    issued = login()
    account = validate(issued.session_token, issued.csrf_token)

    winner = with_db(lambda db: SessionService(db, LANDLORD).rotate(account))
    with pytest.raises(ConcurrentRotation):
        with_db(lambda db: SessionService(db, LANDLORD).rotate(account))

    stored = get_account(LANDLORD, landlord_id)
    assert stored.session_token == winner.session_token
    assert stored.csrf_token == winner.csrf_token


def test_logout_clears_pair(landlord_id):
    issued = login()
    with_db(lambda db: SessionService(db, LANDLORD).logout(landlord_id))

    stored = get_account(LANDLORD, landlord_id)
    assert stored.session_token is None
    assert stored.csrf_token is None
    assert stored.token_expiry is None
    assert not stored.is_logged_in
    with pytest.raises(SessionNotFound):
        validate(issued.session_token, issued.csrf_token)


def test_roles_are_separate(landlord_id):
    issued = login()
    with pytest.raises(SessionNotFound):
        with_db(
            lambda db: SessionService(db, AccountRole.TENANT).validate(
                issued.session_token, issued.csrf_token
            )
        )
