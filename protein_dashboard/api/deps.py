"""
Request dependencies shared by the v1 routers
"""
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from protein_dashboard.services.errors import SearchValidationError
from protein_dashboard.services.registry import ServiceRegistry, SessionServices


def get_registry(request: Request) -> ServiceRegistry:
    return request.app.state.registry


async def require_access_code(
    x_access_code: Optional[str] = Header(default=None),
    registry: ServiceRegistry = Depends(get_registry)
) -> str:
    """Reject requests without a valid X-Access-Code header"""
    try:
        valid = await registry.access_gate.verify(x_access_code)
    except SearchValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message
        )

    if not valid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid access code"
        )
    return x_access_code.strip()


def get_session_services(
    access_code: str = Depends(require_access_code),
    registry: ServiceRegistry = Depends(get_registry)
) -> SessionServices:
    return registry.for_access_code(access_code)
