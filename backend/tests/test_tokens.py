"""Unit tests for session token issuing and verification."""
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from cinestream.errors import InvalidTokenError
from cinestream.services.tokens import TokenService

SECRET = "unit-test-secret"
ISSUED_AT = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def fixed_clock(moment: datetime):
    return lambda: moment


def test_verify_returns_the_issued_user_id() -> None:
    service = TokenService(SECRET)

    assert service.verify(service.issue(42)) == 42


def test_token_expires_thirty_days_after_issue() -> None:
    issuer = TokenService(SECRET, clock=fixed_clock(ISSUED_AT))
    token = issuer.issue(7)

    assert issuer.expires_at(token) == ISSUED_AT + timedelta(days=30)

    at_expiry = TokenService(SECRET, clock=fixed_clock(ISSUED_AT + timedelta(days=30)))
    assert at_expiry.verify(token) == 7

    after_expiry = TokenService(
        SECRET, clock=fixed_clock(ISSUED_AT + timedelta(days=30, seconds=1))
    )
    with pytest.raises(InvalidTokenError):
        after_expiry.verify(token)


def test_token_issued_long_ago_is_rejected_by_real_clock() -> None:
    stale = TokenService(SECRET, clock=fixed_clock(datetime.now(timezone.utc) - timedelta(days=31)))
    token = stale.issue(3)

    with pytest.raises(InvalidTokenError):
        TokenService(SECRET).verify(token)


def test_token_signed_with_another_key_is_rejected() -> None:
    token = TokenService("some-other-secret").issue(1)

    with pytest.raises(InvalidTokenError):
        TokenService(SECRET).verify(token)


def test_tampered_token_is_rejected() -> None:
    service = TokenService(SECRET)
    header, payload, signature = service.issue(1).split(".")
    flipped = ("A" if signature[0] != "A" else "B") + signature[1:]

    with pytest.raises(InvalidTokenError):
        service.verify(".".join([header, payload, flipped]))


@pytest.mark.parametrize("garbage", ["", "not-a-token", "a.b.c"])
def test_malformed_token_is_rejected(garbage: str) -> None:
    with pytest.raises(InvalidTokenError):
        TokenService(SECRET).verify(garbage)


def test_payload_without_expiry_is_rejected() -> None:
    token = jwt.encode({"sub": "5"}, SECRET, algorithm="HS256")

    with pytest.raises(InvalidTokenError):
        TokenService(SECRET).verify(token)


def test_non_numeric_subject_is_rejected() -> None:
    expires = int((datetime.now(timezone.utc) + timedelta(days=1)).timestamp())
    token = jwt.encode({"sub": "admin", "exp": expires}, SECRET, algorithm="HS256")

    with pytest.raises(InvalidTokenError):
        TokenService(SECRET).verify(token)


@pytest.mark.parametrize("subject", [str(2**63), "0", "\u00b2"])
def test_subject_outside_user_id_range_is_rejected(subject: str) -> None:
    expires = int((datetime.now(timezone.utc) + timedelta(days=1)).timestamp())
    token = jwt.encode({"sub": subject, "exp": expires}, SECRET, algorithm="HS256")

    with pytest.raises(InvalidTokenError):
        TokenService(SECRET).verify(token)


def test_empty_secret_is_refused() -> None:
    with pytest.raises(ValueError):
        TokenService("")
