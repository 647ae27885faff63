"""
Access code routes
"""
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from protein_dashboard.api.deps import get_registry
from protein_dashboard.services.errors import SearchValidationError
from protein_dashboard.services.registry import ServiceRegistry

router = APIRouter()

class AccessCodeRequest(BaseModel):
    code: str

class AccessCodeResponse(BaseModel):
    valid: bool
    access_code: str

@router.post("/verify", response_model=AccessCodeResponse)
async def verify_access_code(
    request: AccessCodeRequest,
    registry: ServiceRegistry = Depends(get_registry)
):
    """Check a 6-digit access code against the codes table"""
    try:
        valid = await registry.access_gate.verify(request.code)
    except SearchValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.message
        )

    if not valid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid access code. Please try again."
        )

    return AccessCodeResponse(valid=True, access_code=request.code.strip())
