from pydantic import AliasChoices, BaseModel, Field
from typing import List, Optional


class SavedProteinEntry(BaseModel):
    id: int
    accession: Optional[str] = None
    name: Optional[str] = None
    organism: Optional[str] = None
    # stored as entries_header, the key the dashboard reads from saved_proteins
    domain_header: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("domain_header", "entries_header"),
        serialization_alias="entries_header",
    )
    length: Optional[int] = None
    saved_date: str


class SaveResult(BaseModel):
    added: int
    total: int
    message: str


class RemoveResult(BaseModel):
    removed: int
    total: int
    message: str


class SavedSet(BaseModel):
    access_code: str
    proteins: List[SavedProteinEntry] = []
