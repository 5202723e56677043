from __future__ import annotations

import logging
from typing import Callable

import wallmag_auth.application.delays as delays
import wallmag_auth.domain.services as domain_services
from wallmag_auth.domain.entities import OtpFlow
from wallmag_auth.domain.errors import (
    DeliveryFailed,
    InvalidInput,
    InvalidOtp,
    Locked,
    OtpAlreadyUsed,
    OtpNotFound,
)
from wallmag_auth.domain.ports.email_port import EmailPort
from wallmag_auth.domain.ports.lockout import LockoutPort
from wallmag_auth.domain.ports.otp_store import OtpStorePort
from wallmag_auth.logging import mask_identifier

logger = logging.getLogger(__name__)

OTP_FAILURE_SCOPE = "otp"

_SUBJECTS = {
    OtpFlow.SIGNUP: "Wall-Magazine: your verification code",
    OtpFlow.RESET: "Wall-Magazine: password reset code",
}


def _render_body(name: str, code: str, ttl_seconds: int, flow: OtpFlow) -> str:
    minutes = max(1, ttl_seconds // 60)
    action = "complete your signup" if flow is OtpFlow.SIGNUP else "reset your password"
    return (
        f"Hello {name},\n\n"
        f"Use the code {code} to {action}. It expires in {minutes} minutes.\n\n"
        "If you did not request this, you can ignore this email."
    )


class OtpService:
    """
    Issues, verifies and consumes one-time codes.

    Only a bcrypt hash of the code is stored. Failed verifications count
    toward the account lock; reaching the threshold purges the live code.
    """

    def __init__(
        self,
        *,
        store: OtpStorePort,
        lockout: LockoutPort,
        email: EmailPort,
        hash_code: Callable[[str], str],
        verify_code: Callable[[str, str], bool],
        ttl_seconds: int = 300,
        max_failures: int = 5,
        failure_window_seconds: int = 300,
    ) -> None:
        self._store = store
        self._lockout = lockout
        self._email = email
        self._hash_code = hash_code
        self._verify_code = verify_code
        self._ttl = ttl_seconds
        self._max_failures = max_failures
        self._failure_window = failure_window_seconds

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    async def issue(
        self, identifier: str, *, email: str, name: str, flow: OtpFlow
    ) -> int:
        """Replace any live code with a fresh one and deliver it.

        Returns the code lifetime in seconds. If delivery fails the record is
        deleted again so no usable code exists that the user never received.
        """
        code = domain_services.generate_otp()
        await self._store.replace(identifier, flow, self._hash_code(code), self._ttl)

        try:
            await self._email.send(
                to=email,
                subject=_SUBJECTS[flow],
                body=_render_body(name, code, self._ttl, flow),
            )
        except Exception as exc:
            await self._store.delete(identifier, flow)
            logger.error(
                "otp delivery failed",
                extra={"id_number": mask_identifier(identifier), "flow": flow.value},
            )
            raise DeliveryFailed() from exc
        logger.info(
            "otp issued",
            extra={"id_number": mask_identifier(identifier), "flow": flow.value},
        )
        return self._ttl

    async def issue_decoy(self, identifier: str, *, flow: OtpFlow) -> int:
        """Store a record no submitted code can match, and send nothing.

        Lets an identifier without an account go through the same verify,
        failure counting and lock path as a real one.
        """
        unguessable = domain_services.generate_csrf_token()
        await self._store.replace(identifier, flow, self._hash_code(unguessable), self._ttl)
        return self._ttl

    async def verify(self, identifier: str, code: str, *, flow: OtpFlow) -> None:
        """
        Check `code` against the live record and flip it to verified.

        Raises Locked while the account is locked, OtpNotFound, OtpAlreadyUsed
        or InvalidOtp. The failure that reaches the threshold still answers
        InvalidOtp; it sets the lock and purges the code, so the next attempt
        is the one that sees Locked.
        """
        status = await self._lockout.check_locked(identifier)
        if status.locked:
            await delays.failure_delay()
            raise Locked(status.remaining_seconds)

        record = await self._store.get(identifier, flow)
        if record is None:
            await delays.failure_delay()
            raise OtpNotFound()
        if record.verified:
            await delays.failure_delay()
            raise OtpAlreadyUsed()

        if not self._verify_code(code, record.hash):
            status = await self._lockout.record_failure(
                identifier, OTP_FAILURE_SCOPE, self._max_failures, self._failure_window
            )
            await delays.failure_delay()
            if status.locked:
                await self._store.delete(identifier, flow)
                logger.warning(
                    "otp lock triggered",
                    extra={"id_number": mask_identifier(identifier), "flow": flow.value},
                )
            raise InvalidOtp()

        if not await self._store.mark_verified(identifier, flow):
            # expired between the read and the write
            raise OtpNotFound()
        await self._lockout.clear_failures(identifier, OTP_FAILURE_SCOPE)

    async def require_verified(self, identifier: str, flow: OtpFlow) -> None:
        record = await self._store.get(identifier, flow)
        if record is None or not record.verified:
            raise InvalidInput("OTP not verified. Please restart signup")

    async def consume(self, identifier: str, flow: OtpFlow) -> None:
        await self._store.delete(identifier, flow)
