"""API route handlers for driver-wide port operations."""

from fastapi import APIRouter, Depends, HTTPException

from serialport_bridge.api.dependencies import get_channel, get_registry
from serialport_bridge.channel.base import CommandChannel
from serialport_bridge.core.errors import RemoteError
from serialport_bridge.core.models import ActionResponse, InvokeErrorPayload, PortsResponse
from serialport_bridge.driver.registry import PortRegistry
from serialport_bridge.session import Serialport

router = APIRouter(prefix="/api")


def _remote_failure(e: RemoteError) -> HTTPException:
    return HTTPException(status_code=500, detail=e.to_payload())


@router.get("/ports", response_model=PortsResponse)
async def list_ports(channel: CommandChannel = Depends(get_channel)):
    """List serial ports visible to the host."""
    try:
        ports = await Serialport.available_ports(channel)
    except RemoteError as e:
        raise _remote_failure(e) from None
    return PortsResponse(ports=ports)


@router.get("/ports/open", response_model=PortsResponse)
async def list_open_ports(registry: PortRegistry = Depends(get_registry)):
    """List ports currently held open by the driver."""
    return PortsResponse(ports=registry.open_ports)


@router.post(
    "/ports/force-close",
    response_model=ActionResponse,
    responses={500: {"model": InvokeErrorPayload}},
)
async def force_close_port(path: str, channel: CommandChannel = Depends(get_channel)):
    """Release one port regardless of which client opened it."""
    if not path:
        raise HTTPException(status_code=400, detail="Path cannot be empty!")
    try:
        await Serialport.force_close(path, channel)
    except RemoteError as e:
        raise _remote_failure(e) from None
    return ActionResponse(success=True, path=path)


@router.post(
    "/ports/close-all",
    response_model=ActionResponse,
    responses={500: {"model": InvokeErrorPayload}},
)
async def close_all_ports(channel: CommandChannel = Depends(get_channel)):
    """Release every port the driver holds open."""
    try:
        await Serialport.close_all(channel)
    except RemoteError as e:
        raise _remote_failure(e) from None
    return ActionResponse(success=True)
