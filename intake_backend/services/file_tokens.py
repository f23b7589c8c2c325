"""
Presigned file tokens.

A token is base64url("{filename}|{expires}|{hex hmac-sha256}") where the
signature covers "{filename}|{expires}". Tokens are stateless: nothing is
stored server-side and expiry is the only way one stops working.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import logging
import time
from dataclasses import dataclass
from typing import Optional

from intake_backend.errors import (
    InvalidExpiry,
    InvalidFormat,
    MalformedToken,
    SignatureMismatch,
    TokenExpired,
)

logger = logging.getLogger("intake_backend.services.file_tokens")

DEFAULT_TTL_SECONDS = 300
_SEPARATOR = "|"


@dataclass(frozen=True)
class SignedPayload:
    filename: str
    expires: int


def _now_seconds(now: Optional[float]) -> int:
    return int(now if now is not None else time.time())


def _sign(payload: str, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256).hexdigest()


def _b64url_encode(raw: str) -> str:
    return base64.urlsafe_b64encode(raw.encode("utf-8")).rstrip(b"=").decode("ascii")


def _b64url_decode(token: str) -> str:
    padded = token + "=" * (-len(token) % 4)
    try:
        raw = base64.b64decode(padded.encode("ascii"), altchars=b"-_", validate=True)
        return raw.decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError) as exc:
        raise MalformedToken() from exc


def create_token(
    filename: str,
    ttl_seconds: int = DEFAULT_TTL_SECONDS,
    *,
    secret: str,
    now: Optional[float] = None,
) -> str:
    expires = _now_seconds(now) + int(ttl_seconds)
    payload = f"{filename}{_SEPARATOR}{expires}"
    signature = _sign(payload, secret)
    return _b64url_encode(f"{payload}{_SEPARATOR}{signature}")


def verify_token(token: str, *, secret: str, now: Optional[float] = None) -> SignedPayload:
    """
    Decode and check a token, returning the filename it is bound to.

    Raises MalformedToken, InvalidFormat, InvalidExpiry, SignatureMismatch or
    TokenExpired, in that order of checking.
    """
    decoded = _b64url_decode(token)

    parts = decoded.split(_SEPARATOR)
    if len(parts) != 3:
        raise InvalidFormat()
    filename, expires_str, signature = parts

    try:
        expires = int(expires_str)
    except ValueError as exc:
        raise InvalidExpiry() from exc

    expected = _sign(f"{filename}{_SEPARATOR}{expires}", secret)
    if not hmac.compare_digest(signature.encode("utf-8"), expected.encode("utf-8")):
        raise SignatureMismatch()

    if _now_seconds(now) > expires:
        raise TokenExpired()

    return SignedPayload(filename=filename, expires=expires)


class FileTokenSigner:
    """Holds the signing secret and default TTL taken from Settings."""

    def __init__(self, secret: str, default_ttl: int = DEFAULT_TTL_SECONDS) -> None:
        if not secret:
            raise ValueError("FILE_UPLOAD_SECRET is required to sign file tokens")
        self._secret = secret
        self.default_ttl = default_ttl

    def create(self, filename: str, ttl_seconds: Optional[int] = None, *, now: Optional[float] = None) -> str:
        ttl = self.default_ttl if ttl_seconds is None else ttl_seconds
        return create_token(filename, ttl, secret=self._secret, now=now)

    def verify(self, token: str, *, now: Optional[float] = None) -> SignedPayload:
        return verify_token(token, secret=self._secret, now=now)
