"""
Protein listing, detail and export routes
"""
from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel
from typing import List, Optional, Tuple

from protein_dashboard.api.deps import get_session_services
from protein_dashboard.schemas.protein import ProteinRecord, SearchPage
from protein_dashboard.services.csv_export import export_filename, to_csv
from protein_dashboard.services.domains import MultiRange, SingleRange, parse_domain_header
from protein_dashboard.services.pagination import total_pages_for
from protein_dashboard.services.query_builder import SearchFilter
from protein_dashboard.services.registry import SessionServices

router = APIRouter()

class CountStatus(BaseModel):
    status: str  # pending, ready
    count: Optional[int] = None
    total_pages: Optional[int] = None

class DomainView(BaseModel):
    protein_id: int
    domain_header: Optional[str]
    kind: str  # single, multi, unparsed
    code: Optional[str] = None
    ranges: List[Tuple[int, int]] = []
    protein_length: Optional[int] = None

class ExportRequest(BaseModel):
    ids: List[int]

@router.get("", response_model=SearchPage)
async def list_proteins(
    name: Optional[str] = None,
    organism: Optional[str] = None,
    domain: Optional[str] = None,
    page: int = 1,
    defer_count: bool = False,
    services: SessionServices = Depends(get_session_services)
):
    """Filter proteins by name, organism and domain"""
    search_filter = SearchFilter(name=name, organism=organism, domain=domain)
    return await services.proteins.fetch_proteins(search_filter, page, defer_count=defer_count)

@router.get("/count", response_model=CountStatus)
async def get_count(
    name: Optional[str] = None,
    organism: Optional[str] = None,
    domain: Optional[str] = None,
    services: SessionServices = Depends(get_session_services)
):
    """Total for a search whose count was deferred"""
    search_filter = SearchFilter(name=name, organism=organism, domain=domain)
    count = services.proteins.get_cached_count(search_filter)
    if count is None:
        return CountStatus(status="pending")
    return CountStatus(
        status="ready",
        count=count,
        total_pages=total_pages_for(count, services.proteins.paginator.page_size)
    )

@router.post("/cache/clear")
async def clear_cache(services: SessionServices = Depends(get_session_services)):
    services.proteins.clear_cache()
    return {"status": "cleared"}

@router.post("/export")
async def export_proteins(
    request: ExportRequest,
    services: SessionServices = Depends(get_session_services)
):
    """Export full records, sequences included, as CSV"""
    if not request.ids:
        raise HTTPException(status_code=400, detail="No proteins to export")

    records = await services.proteins.fetch_complete_data_for_export(request.ids)
    return Response(
        content=to_csv(records),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'}
    )

@router.get("/{protein_id}", response_model=ProteinRecord)
async def get_protein(
    protein_id: int,
    services: SessionServices = Depends(get_session_services)
):
    protein = await services.proteins.fetch_protein_details(protein_id)
    if protein is None:
        raise HTTPException(status_code=404, detail="Protein not found")
    return protein

@router.get("/{protein_id}/domains", response_model=DomainView)
async def get_protein_domains(
    protein_id: int,
    services: SessionServices = Depends(get_session_services)
):
    """Parsed domain ranges for the detail page visualization"""
    protein = await services.proteins.fetch_protein_details(protein_id)
    if protein is None:
        raise HTTPException(status_code=404, detail="Protein not found")

    annotation = parse_domain_header(protein.domain_header)
    view = DomainView(
        protein_id=protein.id,
        domain_header=protein.domain_header,
        kind="unparsed",
        protein_length=protein.length
    )
    if isinstance(annotation, SingleRange):
        view.kind = "single"
        view.code = annotation.code
        view.ranges = [(annotation.start, annotation.end)]
    elif isinstance(annotation, MultiRange):
        view.kind = "multi"
        view.code = annotation.code
        view.ranges = list(annotation.ranges)
    return view
