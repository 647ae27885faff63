"""
Sequence search routes
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from typing import List, Union

from protein_dashboard.api.deps import get_session_services
from protein_dashboard.schemas.protein import MultiSequenceResult, SequenceSearchPage
from protein_dashboard.services.registry import SessionServices

router = APIRouter()

class MultiSequenceRequest(BaseModel):
    sequences: Union[List[str], str]  # list or comma-separated string
    page: int = 1

@router.get("/search", response_model=SequenceSearchPage)
async def search_by_sequence(
    sequence: str,
    mode: str = "partial",
    page: int = 1,
    services: SessionServices = Depends(get_session_services)
):
    """Exact, prefix or partial match on the amino-acid sequence"""
    return await services.sequences.search_by_sequence(sequence, mode, page)

@router.post("/search-multiple", response_model=MultiSequenceResult)
async def search_multiple_sequences(
    request: MultiSequenceRequest,
    services: SessionServices = Depends(get_session_services)
):
    return await services.sequences.search_multiple_sequences(request.sequences, request.page)

@router.post("/cache/clear")
async def clear_cache(services: SessionServices = Depends(get_session_services)):
    services.sequences.clear_cache()
    return {"status": "cleared"}
