from pydantic import BaseModel
from typing import List, Optional


class ProteinSummary(BaseModel):
    id: int
    accession: Optional[str] = None
    name: Optional[str] = None
    organism: Optional[str] = None
    domain_header: Optional[str] = None
    length: Optional[int] = None


class ProteinRecord(ProteinSummary):
    sequence: Optional[str] = None


class SequenceHighlight(BaseModel):
    before: str
    match: str
    after: str


class SequenceHit(ProteinRecord):
    highlight: Optional[SequenceHighlight] = None


class SearchPage(BaseModel):
    data: List[ProteinSummary] = []
    count: Optional[int] = None  # None when the count timed out or is still pending
    total_pages: Optional[int] = None
    current_page: int = 1
    has_more: bool = False
    count_pending: bool = False
    error: Optional[str] = None
    generation: int = 0


class SequenceSearchPage(SearchPage):
    data: List[SequenceHit] = []
    search_sequence: Optional[str] = None
    mode: str = "partial"
    truncated: bool = False
    original_length: int = 0


class MultiSequenceResult(BaseModel):
    results: List[SequenceSearchPage] = []
    total_count: int = 0
    count_incomplete: bool = False  # total_count is a lower bound
    searched_sequences: List[str] = []
    message: Optional[str] = None
    error: Optional[str] = None


class CountUpdate(BaseModel):
    count: int
    total_pages: int
    generation: int
