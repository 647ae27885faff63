"""
Saved protein set routes
"""
from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel
from typing import List

from protein_dashboard.api.deps import get_registry, get_session_services, require_access_code
from protein_dashboard.schemas.saved import RemoveResult, SavedSet, SaveResult
from protein_dashboard.services.csv_export import export_filename, to_csv
from protein_dashboard.services.registry import ServiceRegistry, SessionServices

router = APIRouter()

class ProteinIds(BaseModel):
    ids: List[int]

@router.get("", response_model=SavedSet)
async def list_saved(
    access_code: str = Depends(require_access_code),
    registry: ServiceRegistry = Depends(get_registry)
):
    proteins = await registry.saved_sets.fetch_saved(access_code)
    return SavedSet(access_code=access_code, proteins=proteins)

@router.post("", response_model=SaveResult)
async def save_proteins(
    request: ProteinIds,
    access_code: str = Depends(require_access_code),
    registry: ServiceRegistry = Depends(get_registry),
    services: SessionServices = Depends(get_session_services)
):
    """Add proteins to the saved set; ids already saved are skipped"""
    records = await services.proteins.fetch_complete_data_for_export(request.ids)
    return await registry.saved_sets.save(access_code, records)

@router.delete("", response_model=RemoveResult)
async def remove_saved(
    request: ProteinIds,
    access_code: str = Depends(require_access_code),
    registry: ServiceRegistry = Depends(get_registry)
):
    return await registry.saved_sets.remove(access_code, request.ids)

@router.get("/export")
async def export_saved(
    access_code: str = Depends(require_access_code),
    registry: ServiceRegistry = Depends(get_registry),
    services: SessionServices = Depends(get_session_services)
):
    """Export the saved set with complete records, sequences included"""
    saved = await registry.saved_sets.fetch_saved(access_code)
    if not saved:
        raise HTTPException(status_code=404, detail="No saved proteins to export")

    records = await services.proteins.fetch_complete_data_for_export([p.id for p in saved])
    filename = export_filename(f"saved-proteins-{access_code}")
    return Response(
        content=to_csv(records),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )
