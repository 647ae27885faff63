"""
Translate dashboard filters and sequence input into SQLAlchemy clauses.

The same clause list is used for the count query and the data query so
the two can never disagree about which rows match.
"""
import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from sqlalchemy.sql.elements import ColumnElement

from protein_dashboard.db.models.protein import Protein
from protein_dashboard.schemas.protein import SequenceHighlight
from protein_dashboard.services.errors import SearchValidationError

AMINO_ACIDS = "ACDEFGHIKLMNPQRSTVWY"
_NON_AMINO_ACID = re.compile(f"[^{AMINO_ACIDS}]")


class SearchFilter(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    organism: Optional[str] = None
    domain: Optional[str] = None

    @field_validator("name", "organism", "domain", mode="before")
    @classmethod
    def _strip(cls, value):
        if isinstance(value, str):
            return value.strip() or None
        return value


class SequenceMode(str, Enum):
    EXACT = "exact"
    PREFIX = "prefix"
    PARTIAL = "partial"

    @classmethod
    def _missing_(cls, value):
        # names used by the dashboard's search form
        aliases = {"contains": cls.PARTIAL, "starts": cls.PREFIX}
        if isinstance(value, str):
            return aliases.get(value.lower())
        return None


def validate_filter(search_filter: SearchFilter, min_length: int = 3) -> None:
    for field in ("name", "organism"):
        value = getattr(search_filter, field)
        if value and len(value) < min_length:
            raise SearchValidationError(
                f"{field.capitalize()} must be at least {min_length} characters",
                field=field,
            )

    if not (search_filter.name or search_filter.organism or search_filter.domain):
        raise SearchValidationError(
            f"Please enter at least {min_length} characters in name or organism, or select a domain"
        )


def filter_clauses(search_filter: SearchFilter) -> List[ColumnElement]:
    clauses = []
    if search_filter.name:
        clauses.append(Protein.name.icontains(search_filter.name, autoescape=True))
    if search_filter.organism:
        clauses.append(Protein.organism_name.icontains(search_filter.organism, autoescape=True))
    if search_filter.domain:
        # domain codes are case-sensitive (PF00704 vs pf00704)
        clauses.append(Protein.domain_header.contains(search_filter.domain, autoescape=True))
    return clauses


def clean_sequence(raw: str) -> str:
    return _NON_AMINO_ACID.sub("", (raw or "").upper())


@dataclass(frozen=True)
class SequenceQuery:
    sequence: str
    mode: SequenceMode
    original_length: int
    truncated: bool = False

    def clauses(self) -> List[ColumnElement]:
        if self.mode is SequenceMode.EXACT:
            return [Protein.sequence == self.sequence]
        if self.mode is SequenceMode.PREFIX:
            return [Protein.sequence.startswith(self.sequence, autoescape=True)]
        return [Protein.sequence.contains(self.sequence, autoescape=True)]


def build_sequence_query(
    raw: str,
    mode="partial",
    min_length: int = 3,
    max_length: int = 100,
) -> SequenceQuery:
    try:
        mode = SequenceMode(mode)
    except ValueError:
        raise SearchValidationError(f"Unknown search mode: {mode}", field="mode")

    sequence = clean_sequence(raw)
    if len(sequence) < min_length:
        raise SearchValidationError(
            f"Sequence must be at least {min_length} amino acids long", field="sequence"
        )

    original_length = len(sequence)
    truncated = False
    if mode is SequenceMode.PARTIAL and original_length > max_length:
        sequence = sequence[:max_length]
        truncated = True

    return SequenceQuery(sequence, mode, original_length, truncated)


def highlight_match(full_sequence: Optional[str], search: str) -> Optional[SequenceHighlight]:
    if not full_sequence or not search:
        return None
    start = full_sequence.find(search)
    if start == -1:
        return None
    end = start + len(search)
    return SequenceHighlight(
        before=full_sequence[:start],
        match=full_sequence[start:end],
        after=full_sequence[end:],
    )


def cache_key(kind: str, **parts) -> str:
    """Deterministic key for a query; dict ordering never matters"""
    return json.dumps({"kind": kind, **parts}, sort_keys=True, default=str)
