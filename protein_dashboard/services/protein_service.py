import asyncio
import inspect
from typing import Callable, Dict, Iterable, List, Optional, Set, Union

from loguru import logger

from protein_dashboard.db.repository import SUMMARY_COLUMNS
from protein_dashboard.schemas.protein import CountUpdate, ProteinRecord, ProteinSummary, SearchPage
from protein_dashboard.services.errors import DatabaseError, SearchValidationError
from protein_dashboard.services.pagination import PageResult, Paginator, total_pages_for
from protein_dashboard.services.query_builder import (
    SearchFilter,
    cache_key,
    filter_clauses,
    validate_filter,
)


class ProteinQueryService:
    """Filtered protein listing with caching, retries and count degradation"""

    def __init__(self, repository, cache, paginator: Paginator, min_filter_length: int = 3):
        self.repository = repository
        self.cache = cache
        self.paginator = paginator
        self.min_filter_length = min_filter_length
        self._generation = 0
        self._search_key: Optional[str] = None
        self._tasks: Set[asyncio.Task] = set()
        self._counts: Dict[str, asyncio.Task] = {}

    @property
    def generation(self) -> int:
        return self._generation

    def _stamp(self, search_key: str) -> int:
        if search_key != self._search_key:
            self._generation += 1
            self._search_key = search_key
        return self._generation

    async def fetch_proteins(
        self,
        search_filter: Union[SearchFilter, dict],
        page: int = 1,
        defer_count: bool = False,
        on_count: Optional[Callable[[CountUpdate], object]] = None,
    ) -> SearchPage:
        """Fetch one page of proteins matching ``search_filter``.

        With ``defer_count`` (implied by ``on_count``) the page is returned
        before the total is known and the count runs in the background;
        ``on_count`` is called with a CountUpdate once it resolves.
        """
        if not isinstance(search_filter, SearchFilter):
            search_filter = SearchFilter(**search_filter)

        try:
            validate_filter(search_filter, self.min_filter_length)
            self.paginator.offset_for(page)
        except SearchValidationError as e:
            return SearchPage(count=0, total_pages=0, current_page=page, error=e.message)

        filters = search_filter.model_dump()
        search_key = cache_key("proteins", filters=filters)
        generation = self._stamp(search_key)
        self.cache.begin_search(search_key, page)

        key = cache_key("proteins", filters=filters, page=page)
        cached = self.cache.get(key)
        if cached is not None:
            return self._with_known_count(cached, search_key)

        clauses = filter_clauses(search_filter)
        if on_count is not None or defer_count:
            known_count = self.cache.get(cache_key("count", search=search_key))
            if known_count is not None:
                result = await self.paginator.page_for_count(clauses, page, known_count, SUMMARY_COLUMNS)
            else:
                result = await self.paginator.probe(clauses, page, SUMMARY_COLUMNS)
                result.count_pending = True
                self._schedule_count(clauses, search_key, generation, on_count)
        else:
            result = await self.paginator.paginate(clauses, page, SUMMARY_COLUMNS)

        search_page = self._to_page(result, page, generation)
        if generation == self._generation:
            self.cache.set(key, search_page)
        return search_page

    def get_cached_count(self, search_filter: Union[SearchFilter, dict]) -> Optional[int]:
        if not isinstance(search_filter, SearchFilter):
            search_filter = SearchFilter(**search_filter)
        search_key = cache_key("proteins", filters=search_filter.model_dump())
        return self.cache.get(cache_key("count", search=search_key))

    async def fetch_protein_details(self, protein_id: int) -> Optional[ProteinRecord]:
        key = cache_key("protein", id=protein_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        row = await self.paginator.retry.run(
            lambda: self.repository.get_protein(protein_id),
            description=f"protein {protein_id} lookup",
        )
        if row is None:
            return None

        record = ProteinRecord(**row)
        self.cache.set(key, record)
        return record

    async def fetch_complete_data_for_export(self, protein_ids: Iterable[int]) -> List[ProteinRecord]:
        ids = list(dict.fromkeys(protein_ids))
        rows = await self.paginator.retry.run(
            lambda: self.repository.get_proteins(ids),
            description="export lookup",
        )
        return [ProteinRecord(**row) for row in rows]

    def clear_cache(self) -> None:
        self.cache.clear()

    async def wait_for_background(self) -> None:
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        await self.wait_for_background()

    def _schedule_count(self, clauses, search_key: str, generation: int, on_count) -> None:
        running = self._counts.get(search_key)
        if running is not None and not running.done():
            return
        task = asyncio.create_task(self._run_count(clauses, search_key, generation, on_count))
        self._counts[search_key] = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(lambda done: self._forget_count(search_key, done))

    def _forget_count(self, search_key: str, task: asyncio.Task) -> None:
        if self._counts.get(search_key) is task:
            del self._counts[search_key]

    async def _run_count(self, clauses, search_key: str, generation: int, on_count) -> None:
        try:
            count = await self.paginator.count(clauses)
        except DatabaseError as e:
            logger.warning(f"Background count gave up: {e.message}")
            return

        if generation != self._generation:
            logger.debug(f"Discarding count for superseded search generation {generation}")
            return

        self.cache.set(cache_key("count", search=search_key), count)
        if on_count is None:
            return

        update = CountUpdate(
            count=count,
            total_pages=total_pages_for(count, self.paginator.page_size),
            generation=generation,
        )
        try:
            outcome = on_count(update)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            logger.exception("Count update callback failed")

    def _with_known_count(self, cached: SearchPage, search_key: str) -> SearchPage:
        if not cached.count_pending:
            return cached
        count = self.cache.get(cache_key("count", search=search_key))
        if count is None:
            return cached
        return cached.model_copy(update={
            "count": count,
            "total_pages": total_pages_for(count, self.paginator.page_size),
            "count_pending": False,
        })

    def _to_page(self, result: PageResult, page: int, generation: int) -> SearchPage:
        return SearchPage(
            data=[ProteinSummary(**row) for row in result.rows],
            count=result.count,
            total_pages=result.total_pages,
            current_page=page,
            has_more=result.has_more,
            count_pending=result.count_pending,
            generation=generation,
        )
