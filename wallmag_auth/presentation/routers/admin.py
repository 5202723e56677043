from typing import Annotated

from fastapi import APIRouter, Depends

from wallmag_auth.domain.entities import TokenClaims
from wallmag_auth.domain.permissions import Permission
from wallmag_auth.domain.ports.security_events import SecurityEventsPort
from wallmag_auth.presentation.dependencies import get_security_events, require_permission
from wallmag_auth.schemas.requests import BlockIpIn
from wallmag_auth.schemas.responses import MessageOut

router = APIRouter(prefix="/admin/security", tags=["Admin"])

Admin = Annotated[TokenClaims, Depends(require_permission(Permission.MANAGE_USERS))]


@router.post("/blocked-ips", response_model=MessageOut)
async def post_block_ip(
    body: BlockIpIn,
    _: Admin,
    events: Annotated[SecurityEventsPort, Depends(get_security_events)],
):
    await events.block_ip(body.ip, body.duration_seconds)
    return MessageOut(message=f"IP {body.ip} blocked")


@router.delete("/blocked-ips/{ip}", response_model=MessageOut)
async def delete_blocked_ip(
    ip: str,
    _: Admin,
    events: Annotated[SecurityEventsPort, Depends(get_security_events)],
):
    await events.unblock_ip(ip)
    return MessageOut(message=f"IP {ip} unblocked")
