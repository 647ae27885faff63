from typing import List, Optional, Union

from loguru import logger

from protein_dashboard.db.repository import RECORD_COLUMNS
from protein_dashboard.schemas.protein import MultiSequenceResult, SequenceHit, SequenceSearchPage
from protein_dashboard.services.errors import DatabaseError, SearchValidationError, sequence_search_message
from protein_dashboard.services.pagination import Paginator
from protein_dashboard.services.query_builder import (
    SequenceMode,
    SequenceQuery,
    build_sequence_query,
    cache_key,
    clean_sequence,
    highlight_match,
)


class SequenceSearchService:
    def __init__(
        self,
        repository,
        cache,
        paginator: Paginator,
        min_length: int = 3,
        max_search_length: int = 100,
    ):
        self.repository = repository
        self.cache = cache
        self.paginator = paginator
        self.min_length = min_length
        self.max_search_length = max_search_length
        self._generation = 0
        self._search_key: Optional[str] = None

    @property
    def generation(self) -> int:
        return self._generation

    def _begin(self, search_key: str, page: int) -> int:
        if search_key != self._search_key:
            self._generation += 1
            self._search_key = search_key
        self.cache.begin_search(search_key, page)
        return self._generation

    async def search_by_sequence(self, sequence: str, mode="partial", page: int = 1) -> SequenceSearchPage:
        try:
            query = build_sequence_query(sequence, mode, self.min_length, self.max_search_length)
            self.paginator.offset_for(page)
        except SearchValidationError as e:
            return SequenceSearchPage(
                count=0,
                total_pages=0,
                current_page=page,
                mode=getattr(mode, "value", str(mode)),
                error=e.message,
            )

        cleaned = clean_sequence(sequence)
        generation = self._begin(cache_key("sequence", sequence=cleaned, mode=query.mode.value), page)
        try:
            return await self._search(query, cleaned, page, generation)
        except DatabaseError as e:
            logger.bind(**e.diagnostics()).error(f"Sequence search failed ({query.mode.value}, {len(query.sequence)} residues)")
            return SequenceSearchPage(
                count=0,
                total_pages=0,
                current_page=page,
                generation=generation,
                search_sequence=query.sequence,
                mode=query.mode.value,
                truncated=query.truncated,
                original_length=query.original_length,
                error=sequence_search_message(e, query.mode.value, len(query.sequence)),
            )

    async def search_multiple_sequences(self, sequences: Union[str, List[str]], page: int = 1) -> MultiSequenceResult:
        """Run a contains-search for each sequence, one after the other"""
        if isinstance(sequences, str):
            sequences = sequences.split(",")
        sequences = [s.strip() for s in sequences if s and s.strip()]

        if not sequences:
            return MultiSequenceResult(
                error=f"Please enter at least one valid sequence with {self.min_length}+ amino acids"
            )

        invalid = [s for s in sequences if len(clean_sequence(s)) < self.min_length]
        if invalid:
            return MultiSequenceResult(
                error=f"Invalid sequences (must be at least {self.min_length} amino acids): {', '.join(invalid)}"
            )

        try:
            self.paginator.offset_for(page)
        except SearchValidationError as e:
            return MultiSequenceResult(error=e.message)

        cleaned = [clean_sequence(s) for s in sequences]
        generation = self._begin(cache_key("multi-sequence", sequences=cleaned), page)

        results = []
        for raw, clean in zip(sequences, cleaned):
            query = build_sequence_query(raw, SequenceMode.PARTIAL, self.min_length, self.max_search_length)
            results.append(await self._search(query, clean, page, generation))

        # a timed-out count leaves only the rows on this page as a lower bound
        count_incomplete = any(r.count is None for r in results)
        total_count = sum(len(r.data) if r.count is None else r.count for r in results)
        found = f"at least {total_count}" if count_incomplete else str(total_count)
        return MultiSequenceResult(
            results=results,
            total_count=total_count,
            count_incomplete=count_incomplete,
            searched_sequences=cleaned,
            message=f"Searched {len(cleaned)} sequence(s), found {found} total protein(s)",
        )

    def clear_cache(self) -> None:
        self.cache.clear()

    async def _search(self, query: SequenceQuery, cleaned: str, page: int, generation: int) -> SequenceSearchPage:
        key = cache_key("sequence", sequence=cleaned, mode=query.mode.value, page=page)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        if query.truncated:
            logger.warning(
                f"Sequence truncated to {len(query.sequence)} characters for partial search "
                f"(original length {query.original_length})"
            )

        result = await self.paginator.paginate(query.clauses(), page, RECORD_COLUMNS)
        hits = [
            SequenceHit(**row, highlight=highlight_match(row.get("sequence"), query.sequence))
            for row in result.rows
        ]
        search_page = SequenceSearchPage(
            data=hits,
            count=result.count,
            total_pages=result.total_pages,
            current_page=page,
            has_more=result.has_more,
            generation=generation,
            search_sequence=query.sequence,
            mode=query.mode.value,
            truncated=query.truncated,
            original_length=query.original_length,
        )
        if generation == self._generation:
            self.cache.set(key, search_page)
        return search_page
