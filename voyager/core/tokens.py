"""Stateless signed tokens for the OTP and password reset flow.

Nothing is stored server-side: every token carries its own state (e-mail,
code, expiry) and is protected by an HMAC-SHA256 signature, so any process
holding the shared secret can validate it.

Wire form: ``base64url(json) + "." + base64url(hmac_sha256(secret, base64url(json)))``
"""

import base64
import binascii
import hashlib
import hmac
import json
import logging
import secrets
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, StrictInt, StrictStr, ValidationError

logger = logging.getLogger("voyager.tokens")

Clock = Callable[[], float]

OTP_TTL_SECONDS = 10 * 60
RESET_TTL_SECONDS = 15 * 60


class TokenError(Exception):
    """Base class for the reasons a token is refused."""


class MalformedToken(TokenError):
    """Token cannot be split, decoded, parsed or does not match the expected shape."""


class InvalidSignature(TokenError):
    """Recomputed HMAC differs from the one carried by the token."""


class Expired(TokenError):
    """Signature is fine but the embedded expiry is in the past."""


class CodeMismatch(TokenError):
    """OTP token is valid but the supplied code differs from the embedded one."""


class OtpPayload(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    email: StrictStr
    code: StrictStr
    exp: StrictInt


class ResetPayload(BaseModel):
    # extra="forbid" keeps OTP tokens (which carry `code`) from passing as reset tokens
    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    email: StrictStr
    exp: StrictInt


@dataclass(frozen=True)
class OtpGrant:
    """Result of issuing an OTP: the code to mail and the token to hand the client."""

    token: str
    code: str
    email: str
    expires_at: int


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(data: str) -> bytes:
    padded = data + "=" * (-len(data) % 4)
    return base64.b64decode(padded, altchars=b"-_", validate=True)


def canonical_email(email: str) -> str:
    return email.strip().lower()


class TokenCodec:
    """HMAC-SHA256 sign/verify for JSON-serializable payloads."""

    def __init__(self, secret: str | bytes):
        if not secret:
            raise ValueError("A non-empty signing secret is required.")
        self._key = secret.encode("utf-8") if isinstance(secret, str) else bytes(secret)

    def _signature(self, data: str) -> str:
        digest = hmac.new(self._key, data.encode("ascii"), hashlib.sha256).digest()
        return _b64encode(digest)

    def sign(self, payload: Any) -> str:
        """Serialize `payload` canonically and append its signature."""
        serialized = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
        data = _b64encode(serialized.encode("utf-8"))
        return f"{data}.{self._signature(data)}"

    def decode(self, token: str) -> Any:
        """Return the payload of a correctly signed token.

        Raises MalformedToken or InvalidSignature; `verify` is the non-raising
        variant used by callers that only need a yes/no answer.
        """
        if not isinstance(token, str):
            raise MalformedToken("token is not a string")
        data, dot, sig = token.rpartition(".")
        if not dot:
            raise MalformedToken("missing separator")
        try:
            expected = self._signature(data).encode("ascii")
            supplied = sig.encode("ascii")
        except UnicodeEncodeError as exc:
            raise MalformedToken("non-ascii token") from exc

        if len(supplied) != len(expected) or not hmac.compare_digest(supplied, expected):
            raise InvalidSignature("signature mismatch")

        try:
            payload = json.loads(_b64decode(data).decode("utf-8"))
        except (binascii.Error, ValueError) as exc:
            raise MalformedToken("undecodable payload") from exc
        if not isinstance(payload, dict):
            raise MalformedToken("payload is not an object")
        return payload

    def verify(self, token: str) -> Optional[Any]:
        try:
            return self.decode(token)
        except TokenError:
            return None


class TokenService:
    """Issues OTP tokens, promotes verified ones to reset tokens, and checks reset tokens."""

    def __init__(
        self,
        secret: str | bytes,
        clock: Clock = time.time,
        otp_ttl: int = OTP_TTL_SECONDS,
        reset_ttl: int = RESET_TTL_SECONDS,
    ):
        self.codec = TokenCodec(secret)
        self.clock = clock
        self.otp_ttl = otp_ttl
        self.reset_ttl = reset_ttl

    def _now(self) -> int:
        return int(self.clock())

    @staticmethod
    def generate_code() -> str:
        """Six-digit numeric code drawn uniformly from [100000, 999999]."""
        return str(100000 + secrets.randbelow(900000))

    def issue(self, email: str, code: str | None = None) -> OtpGrant:
        """Sign an OTP payload for `email`; a fresh code is generated unless one is given."""
        email = canonical_email(email)
        code = code if code is not None else self.generate_code()
        expires_at = self._now() + self.otp_ttl
        token = self.codec.sign(OtpPayload(email=email, code=code, exp=expires_at).model_dump())
        return OtpGrant(token=token, code=code, email=email, expires_at=expires_at)

    def issue_reset(self, email: str) -> str:
        payload = ResetPayload(email=canonical_email(email), exp=self._now() + self.reset_ttl)
        return self.codec.sign(payload.model_dump())

    def _load(self, token: str, model: type[BaseModel]) -> Any:
        raw = self.codec.decode(token)
        try:
            payload = model.model_validate(raw)
        except ValidationError as exc:
            raise MalformedToken(f"not a {model.__name__}") from exc
        if self._now() > payload.exp:
            raise Expired(f"expired at {payload.exp}")
        return payload

    def check_otp(self, token: str, supplied_code: str) -> OtpPayload:
        """Validate an OTP token and code, raising the specific TokenError on failure.

        Checks run in a fixed order: signature, expiry, then code.
        """
        payload = self._load(token, OtpPayload)
        if not isinstance(supplied_code, str) or not hmac.compare_digest(
            payload.code.encode("utf-8"), supplied_code.encode("utf-8")
        ):
            raise CodeMismatch("code does not match")
        return payload

    def verify_and_promote(self, token: str, supplied_code: str) -> Optional[str]:
        """Exchange a valid OTP token and matching code for a reset token.

        Returns None for every kind of failure so callers cannot tell which
        check refused the token.
        """
        try:
            payload = self.check_otp(token, supplied_code)
        except TokenError as exc:
            logger.debug("OTP verification refused: %s", type(exc).__name__)
            return None
        return self.issue_reset(payload.email)

    def check_reset(self, reset_token: str) -> ResetPayload:
        return self._load(reset_token, ResetPayload)

    def authorize_reset(self, reset_token: str) -> Optional[str]:
        """Return the e-mail certified by a reset token, or None if it is invalid or expired."""
        try:
            return self.check_reset(reset_token).email
        except TokenError as exc:
            logger.debug("Reset token refused: %s", type(exc).__name__)
            return None


def signature_of(token: str) -> str:
    """Signature segment of a token; used as a stable key for the reset ledger."""
    return token.rpartition(".")[2]
