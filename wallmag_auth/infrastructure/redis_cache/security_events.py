from __future__ import annotations

import json
import logging
import secrets
import time
from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from wallmag_auth.domain.ports.security_events import SecurityEventsPort
from wallmag_auth.logging import mask_identifier

logger = logging.getLogger(__name__)

EVENT_TTL_SECONDS = 86400
MONITORING_WINDOW = 3600
SUSPICIOUS_IP_THRESHOLD = 50

ALERT_THRESHOLDS = {
    "failed_login_attempt": 10,
    "failed_otp_attempt": 10,
    "csrf_validation_failed": 5,
    "account_locked": 3,
}


class RedisSecurityEvents(SecurityEventsPort):
    """
    Security telemetry kept in Redis: raw events for a day, rolling counters
    per event type and per IP, and a manual IP block list.

    Recording is fail-open: losing an event must never fail the request.
    """

    def __init__(self, redis: Redis, *, key_prefix: str = "security:") -> None:
        self._redis = redis
        self._prefix = key_prefix

    async def _bump(self, key: str) -> int:
        count = int(await self._redis.incr(key))
        if count == 1:
            await self._redis.expire(key, MONITORING_WINDOW)
        return count

    async def record(
        self,
        event_type: str,
        *,
        ip: Optional[str] = None,
        identifier: Optional[str] = None,
        attempt: Optional[int] = None,
    ) -> None:
        event = {
            "type": event_type,
            "ip": ip,
            "id_number": mask_identifier(identifier) if identifier else None,
            "attempt": attempt,
            "timestamp": time.time(),
        }
        try:
            event_key = (
                f"{self._prefix}event:{event_type}:"
                f"{int(time.time() * 1000)}:{secrets.token_hex(4)}"
            )
            await self._redis.set(event_key, json.dumps(event), ex=EVENT_TTL_SECONDS)

            count = await self._bump(f"{self._prefix}counter:{event_type}")
            threshold = ALERT_THRESHOLDS.get(event_type)
            if threshold and count >= threshold:
                logger.error(
                    "security alert: threshold reached",
                    extra={"event_type": event_type, "count": count, "threshold": threshold},
                )

            if ip:
                ip_count = await self._bump(f"{self._prefix}ip:{ip}")
                if ip_count > SUSPICIOUS_IP_THRESHOLD:
                    logger.error(
                        "security alert: suspicious ip",
                        extra={"ip": ip, "count": ip_count},
                    )
        except RedisError:
            logger.warning("security event dropped", extra={"event_type": event_type})
            return

        logger.warning("security event", extra=event)

    async def is_ip_blocked(self, ip: str) -> bool:
        try:
            return bool(await self._redis.exists(f"{self._prefix}blocked:ip:{ip}"))
        except RedisError:
            # Manual blocks are an extra layer over the fail-closed limits and
            # locks, so an outage here degrades to "not blocked".
            logger.warning("ip block list unavailable", extra={"ip": ip})
            return False

    async def block_ip(self, ip: str, duration_seconds: int = 86400) -> None:
        await self._redis.set(f"{self._prefix}blocked:ip:{ip}", "1", ex=duration_seconds)
        logger.warning("ip blocked", extra={"ip": ip, "duration_s": duration_seconds})

    async def unblock_ip(self, ip: str) -> None:
        await self._redis.delete(f"{self._prefix}blocked:ip:{ip}")
        logger.info("ip unblocked", extra={"ip": ip})
