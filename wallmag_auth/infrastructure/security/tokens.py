from __future__ import annotations

import logging
import time
import uuid
from typing import Callable

from jose import JWTError, jwt

from wallmag_auth.domain.entities import (
    IssuedToken,
    Purpose,
    RevocationStatus,
    TokenClaims,
)
from wallmag_auth.domain.errors import Unauthorized
from wallmag_auth.domain.ports.revocation_store import RevocationStorePort
from wallmag_auth.domain.ports.token_service import TokenServicePort

logger = logging.getLogger(__name__)

MIN_SECRET_LENGTH = 32


class JwtTokenService(TokenServicePort):
    """
    Signed, time-boxed tokens tagged with a purpose and a unique jti.

    Expiry is checked against the injected clock rather than inside
    python-jose, so every time decision in the lifecycle uses one clock.
    """

    def __init__(
        self,
        secret: str,
        revocations: RevocationStorePort,
        *,
        algorithm: str = "HS256",
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret or len(secret) < MIN_SECRET_LENGTH:
            raise ValueError("jwt secret is missing or too weak")
        self._secret = secret
        self._revocations = revocations
        self._algorithm = algorithm
        self._clock = clock

    def now(self) -> int:
        return int(self._clock())

    def issue(
        self,
        identifier: str,
        purpose: Purpose,
        ttl_seconds: int,
        *,
        email: str | None = None,
        role: str | None = None,
    ) -> IssuedToken:
        iat = self.now()
        claims = TokenClaims(
            sub=identifier,
            purpose=purpose,
            jti=str(uuid.uuid4()),
            iat=iat,
            exp=iat + int(ttl_seconds),
            email=email,
            role=role,
        )
        payload = {
            "sub": claims.sub,
            "purpose": claims.purpose.value,
            "jti": claims.jti,
            "iat": claims.iat,
            "exp": claims.exp,
        }
        if email is not None:
            payload["email"] = email
        if role is not None:
            payload["role"] = role
        token = jwt.encode(payload, self._secret, algorithm=self._algorithm)
        return IssuedToken(token=token, claims=claims)

    def decode(self, token: str, expected_purpose: Purpose) -> TokenClaims:
        """Signature, expiry and purpose. Does not consult revocations."""
        if not token:
            raise Unauthorized()
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_exp": False, "verify_iat": False},
            )
            claims = TokenClaims(
                sub=str(payload["sub"]),
                purpose=Purpose(payload["purpose"]),
                jti=str(payload["jti"]),
                iat=int(payload["iat"]),
                exp=int(payload["exp"]),
                email=payload.get("email"),
                role=payload.get("role"),
            )
        except (JWTError, KeyError, ValueError, TypeError):
            raise Unauthorized()

        if claims.exp <= self.now():
            raise Unauthorized()
        if claims.purpose is not expected_purpose:
            logger.warning(
                "token purpose mismatch",
                extra={"expected": expected_purpose.value, "got": claims.purpose.value},
            )
            raise Unauthorized()
        return claims

    async def status(self, claims: TokenClaims) -> RevocationStatus:
        return await self._revocations.status(claims.jti)

    async def verify(self, token: str, expected_purpose: Purpose) -> TokenClaims:
        """decode() plus the revocation check; Rotating still verifies."""
        claims = self.decode(token, expected_purpose)
        if await self.status(claims) is RevocationStatus.REVOKED:
            raise Unauthorized()
        return claims
