"""
Data access for the proteins, codes and saved_proteins tables.

Every method is one round trip to the database. Driver failures are
translated into the service error taxonomy before they leave this module.
"""
from contextlib import asynccontextmanager
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError

from protein_dashboard.db.models.access_code import AccessCode
from protein_dashboard.db.models.protein import Protein
from protein_dashboard.db.models.saved_protein import SavedProteinSet
from protein_dashboard.services.errors import translate_db_error

SUMMARY_COLUMNS = (
    Protein.id,
    Protein.accession,
    Protein.name,
    Protein.organism_name,
    Protein.domain_header,
    Protein.length,
)
RECORD_COLUMNS = SUMMARY_COLUMNS + (Protein.sequence,)


def _row_to_dict(row) -> dict:
    data = dict(row._mapping)
    if "organism_name" in data:
        data["organism"] = data.pop("organism_name")
    return data


class ProteinRepository:
    def __init__(self, session_factory):
        self.session_factory = session_factory

    @asynccontextmanager
    async def _session(self):
        try:
            async with self.session_factory() as session:
                yield session
        except (SQLAlchemyError, OSError) as e:
            raise translate_db_error(e) from e

    async def count(self, clauses: Sequence, statement_timeout_ms: Optional[int] = None) -> int:
        stmt = select(func.count()).select_from(Protein).where(*clauses)
        async with self._session() as session:
            async with session.begin():
                connection = await session.connection()
                if statement_timeout_ms and connection.dialect.name == "postgresql":
                    await session.execute(
                        text(f"SET LOCAL statement_timeout = {int(statement_timeout_ms)}")
                    )
                result = await session.execute(stmt)
                return result.scalar_one()

    async def fetch_page(
        self,
        clauses: Sequence,
        offset: int,
        limit: int,
        columns: Sequence = SUMMARY_COLUMNS,
    ) -> List[dict]:
        stmt = (
            select(*columns)
            .where(*clauses)
            .order_by(Protein.id.asc())
            .offset(offset)
            .limit(limit)
        )
        async with self._session() as session:
            result = await session.execute(stmt)
            return [_row_to_dict(row) for row in result]

    async def get_protein(self, protein_id: int) -> Optional[dict]:
        stmt = select(*RECORD_COLUMNS).where(Protein.id == protein_id)
        async with self._session() as session:
            row = (await session.execute(stmt)).first()
            return _row_to_dict(row) if row is not None else None

    async def get_proteins(self, protein_ids: Iterable[int]) -> List[dict]:
        ids = list(protein_ids)
        if not ids:
            return []
        stmt = select(*RECORD_COLUMNS).where(Protein.id.in_(ids)).order_by(Protein.id.asc())
        async with self._session() as session:
            result = await session.execute(stmt)
            return [_row_to_dict(row) for row in result]

    async def code_exists(self, code: str) -> bool:
        stmt = select(AccessCode.code).where(AccessCode.code == code)
        async with self._session() as session:
            return (await session.execute(stmt)).scalar_one_or_none() is not None

    async def get_saved(self, access_code: str) -> Optional[List[dict]]:
        async with self._session() as session:
            saved = await session.get(SavedProteinSet, access_code)
            if saved is None:
                return None
            return list(saved.proteins or [])

    async def put_saved(self, access_code: str, entries: List[dict]) -> None:
        async with self._session() as session:
            async with session.begin():
                saved = await session.get(SavedProteinSet, access_code)
                if saved is None:
                    session.add(SavedProteinSet(access_code=access_code, proteins=entries))
                else:
                    # assign a new list so the JSON column is flagged dirty
                    saved.proteins = list(entries)
