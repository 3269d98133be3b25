import base64
import hashlib
import hmac
import json

import pytest

from app.schemas.enums import TokenRejection
from app.schemas.security import Rejected, Verified
from app.services.signing import SignedTokenCodec, secure_stream_path

KEY = "video-key"
URL = "https://cdn.example.com/v/movie.mp4"
URLSAFE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_"


class FakeClock:
    def __init__(self, now: float) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _raw(token: str) -> bytes:
    return base64.urlsafe_b64decode(token + "=" * (-len(token) % 4))


def _encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def test_issue_then_verify_returns_payload():
    clock = FakeClock(1000)
    codec = SignedTokenCodec(KEY, clock=clock)

    token, expires_at = codec.issue("movie-1", URL)
    result = codec.verify(token)

    assert isinstance(result, Verified)
    assert result.value.resource_id == "movie-1"
    assert result.value.target_url == URL
    assert result.value.expires_at == expires_at == 4600


def test_token_is_query_safe_and_unpadded():
    token, _ = SignedTokenCodec(KEY, clock=FakeClock(0)).issue("m", URL + "?a=1&b=2")
    assert "=" not in token
    assert "+" not in token and "/" not in token


def test_expiry_boundary_is_exclusive():
    clock = FakeClock(1000)
    codec = SignedTokenCodec(KEY, clock=clock)
    token, expires_at = codec.issue("m", URL, ttl_seconds=3600)
    assert expires_at == 4600

    clock.now = 4599
    assert isinstance(codec.verify(token), Verified)

    clock.now = 4600
    assert codec.verify(token) == Rejected(TokenRejection.EXPIRED)

    clock.now = 4601
    assert codec.verify(token) == Rejected(TokenRejection.EXPIRED)


def test_payload_tampering_is_bad_signature():
    codec = SignedTokenCodec(KEY, clock=FakeClock(1000))
    token, _ = codec.issue("m", URL)
    body, _, signature = _raw(token).decode().rpartition("|")

    forged_body = json.dumps(
        {"resourceId": "m", "targetUrl": "https://evil.example.com/x.mp4", "expiresAt": 4600},
        separators=(",", ":"),
    )
    forged = _encode(f"{forged_body}|{signature}".encode())

    assert codec.verify(forged) == Rejected(TokenRejection.BAD_SIGNATURE)


def test_signature_byte_flip_is_rejected():
    codec = SignedTokenCodec(KEY, clock=FakeClock(1000))
    token, _ = codec.issue("m", URL)
    raw = bytearray(_raw(token))
    raw[-1] = ord("0") if raw[-1] != ord("0") else ord("1")

    assert codec.verify(_encode(bytes(raw))) == Rejected(TokenRejection.BAD_SIGNATURE)


def test_token_from_other_key_is_rejected():
    token, _ = SignedTokenCodec("other-key", clock=FakeClock(1000)).issue("m", URL)
    result = SignedTokenCodec(KEY, clock=FakeClock(1000)).verify(token)
    assert result == Rejected(TokenRejection.BAD_SIGNATURE)


@pytest.mark.parametrize("garbage", ["", "!!!", "not-base64-$$", _encode(b"no separator here")])
def test_garbage_is_malformed(garbage):
    assert SignedTokenCodec(KEY).verify(garbage) == Rejected(TokenRejection.MALFORMED)


def test_non_canonical_base64_is_malformed():
    codec = SignedTokenCodec(KEY, clock=FakeClock(1000))
    # Pick a token whose last character carries unused low bits
    token = next(
        t for t, _ in (codec.issue(rid, URL) for rid in ("m", "mm", "mmm")) if len(_raw(t)) % 3 != 0
    )
    tweaked = token[:-1] + URLSAFE_ALPHABET[URLSAFE_ALPHABET.index(token[-1]) | 1]

    assert tweaked != token
    assert _raw(tweaked) == _raw(token)
    assert codec.verify(tweaked) == Rejected(TokenRejection.MALFORMED)


def test_signed_but_wrong_shape_is_malformed():
    body = json.dumps({"resourceId": "m", "targetUrl": URL, "expiresAt": "soon"})
    mac = hmac.new(KEY.encode(), body.encode(), hashlib.sha256).hexdigest()
    token = _encode(f"{body}|{mac}".encode())

    assert SignedTokenCodec(KEY).verify(token) == Rejected(TokenRejection.MALFORMED)


def test_separator_inside_url_survives():
    codec = SignedTokenCodec(KEY, clock=FakeClock(1000))
    url = "https://cdn.example.com/v/a|b.mp4"
    token, _ = codec.issue("m", url)

    result = codec.verify(token)
    assert isinstance(result, Verified)
    assert result.value.target_url == url


def test_non_positive_ttl_is_refused():
    with pytest.raises(ValueError):
        SignedTokenCodec(KEY).issue("m", URL, ttl_seconds=0)


def test_empty_key_is_refused():
    with pytest.raises(ValueError):
        SignedTokenCodec("")


def test_secure_stream_path_quotes_token():
    assert secure_stream_path("abc-_", api_prefix="/api") == "/api/videos/stream?token=abc-_"
    assert secure_stream_path("a b") == "/videos/stream?token=a%20b"


def test_every_single_bit_flip_is_rejected():
    codec = SignedTokenCodec(KEY, clock=FakeClock(1000))
    token, _ = codec.issue("movie-1", URL)
    raw = _raw(token)

    for index in range(len(raw)):
        for bit in range(8):
            flipped = bytearray(raw)
            flipped[index] ^= 1 << bit
            result = codec.verify(_encode(bytes(flipped)))
            assert isinstance(result, Rejected), (index, bit)


def test_every_character_substitution_is_rejected():
    codec = SignedTokenCodec(KEY, clock=FakeClock(1000))
    token, _ = codec.issue("movie-1", URL)

    for index, original in enumerate(token):
        for replacement in URLSAFE_ALPHABET:
            if replacement == original:
                continue
            tampered = token[:index] + replacement + token[index + 1 :]
            assert isinstance(codec.verify(tampered), Rejected), (index, replacement)
