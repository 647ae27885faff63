import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from loguru import logger

from protein_dashboard.db.repository import SUMMARY_COLUMNS
from protein_dashboard.services.errors import SearchValidationError, StatementTimeoutError
from protein_dashboard.services.retry import RetryPolicy


@dataclass
class PageResult:
    rows: List[dict] = field(default_factory=list)
    count: Optional[int] = None
    total_pages: Optional[int] = None
    has_more: bool = False
    count_pending: bool = False


def total_pages_for(count: int, page_size: int) -> int:
    return math.ceil(count / page_size)


class Paginator:
    """Fetch one page plus a total count, degrading when counting is too slow.

    Counting across the whole proteins table under a text filter can blow
    the statement timeout. When that happens the page is fetched with one
    extra row instead, which is enough to tell whether a next page exists.
    """

    def __init__(
        self,
        repository,
        page_size: int,
        retry: RetryPolicy,
        count_retry: Optional[RetryPolicy] = None,
        count_timeout_ms: Optional[int] = None,
    ):
        self.repository = repository
        self.page_size = page_size
        self.retry = retry
        self.count_retry = count_retry or retry
        self.count_timeout_ms = count_timeout_ms

    def offset_for(self, page: int) -> int:
        if page < 1:
            raise SearchValidationError("Page must be 1 or greater", field="page")
        return (page - 1) * self.page_size

    async def paginate(self, clauses: Sequence, page: int, columns: Sequence = SUMMARY_COLUMNS) -> PageResult:
        self.offset_for(page)
        try:
            count = await self.retry.run(
                lambda: self.repository.count(clauses, self.count_timeout_ms),
                description="count query",
            )
        except StatementTimeoutError:
            logger.warning(f"Count query timed out on page {page}; falling back to probe pagination")
            return await self.probe(clauses, page, columns)

        return await self.page_for_count(clauses, page, count, columns)

    async def page_for_count(
        self, clauses: Sequence, page: int, count: int, columns: Sequence = SUMMARY_COLUMNS
    ) -> PageResult:
        if count == 0:
            return PageResult(rows=[], count=0, total_pages=0)

        offset = self.offset_for(page)
        rows = await self.retry.run(
            lambda: self.repository.fetch_page(clauses, offset, self.page_size, columns),
            description="data query",
        )
        return PageResult(
            rows=rows,
            count=count,
            total_pages=total_pages_for(count, self.page_size),
            has_more=offset + len(rows) < count,
        )

    async def probe(self, clauses: Sequence, page: int, columns: Sequence = SUMMARY_COLUMNS) -> PageResult:
        offset = self.offset_for(page)
        rows = await self.retry.run(
            lambda: self.repository.fetch_page(clauses, offset, self.page_size + 1, columns),
            description="probe query",
        )
        return PageResult(
            rows=rows[:self.page_size],
            has_more=len(rows) > self.page_size,
        )

    async def count(self, clauses: Sequence) -> int:
        # server default statement timeout applies here
        return await self.count_retry.run(
            lambda: self.repository.count(clauses),
            description="background count",
        )
