from datetime import timedelta

import pytest
from jose import jwt
from starlette.requests import Request

from app.core.jwt import SessionTokenService, get_bearer_token
from app.schemas.enums import TokenRejection
from app.schemas.security import Rejected, Verified

KEY = "session-key"


class FakeClock:
    def __init__(self, now: float) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _request(headers: dict) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in headers.items()]
    return Request({"type": "http", "method": "GET", "path": "/", "headers": raw})


def test_issue_and_verify_round_trip():
    service = SessionTokenService(KEY, ttl=timedelta(seconds=60), clock=FakeClock(1000))
    token = service.issue("user-1", role="admin")

    result = service.verify(token)
    assert isinstance(result, Verified)
    assert result.value.sub == "user-1"
    assert result.value.role == "admin"
    assert result.value.exp == 1060


def test_expiry_uses_injected_clock():
    clock = FakeClock(1000)
    service = SessionTokenService(KEY, ttl=timedelta(seconds=60), clock=clock)
    token = service.issue("user-1")

    clock.now = 1059
    assert isinstance(service.verify(token), Verified)
    clock.now = 1060
    assert service.verify(token) == Rejected(TokenRejection.EXPIRED)


def test_wrong_key_is_rejected():
    token = SessionTokenService("another-key").issue("user-1")
    result = SessionTokenService(KEY).verify(token)
    assert isinstance(result, Rejected)
    assert result.reason in (TokenRejection.BAD_SIGNATURE, TokenRejection.MALFORMED)


def test_non_access_token_type_is_rejected():
    token = jwt.encode({"sub": "u", "exp": 4_000_000_000, "token_type": "refresh"}, KEY, algorithm="HS256")
    assert SessionTokenService(KEY).verify(token) == Rejected(TokenRejection.MALFORMED)


def test_missing_subject_is_rejected():
    token = jwt.encode({"exp": 4_000_000_000}, KEY, algorithm="HS256")
    assert SessionTokenService(KEY).verify(token) == Rejected(TokenRejection.MALFORMED)


@pytest.mark.parametrize("token", ["", "abc", "a.b.c"])
def test_garbage_is_rejected(token):
    assert isinstance(SessionTokenService(KEY).verify(token), Rejected)


@pytest.mark.parametrize(
    "headers, expected",
    [
        ({"Authorization": "Bearer abc"}, "abc"),
        ({"Authorization": "bearer abc"}, "abc"),
        ({"Authorization": "BEARER abc"}, "abc"),
        ({"Authorization": "Basic abc"}, None),
        ({"Authorization": "Bearer"}, None),
        ({"Authorization": "Bearer a b"}, None),
        ({}, None),
    ],
)
def test_get_bearer_token(headers, expected):
    assert get_bearer_token(_request(headers)) == expected
