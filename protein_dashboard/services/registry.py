from dataclasses import dataclass
from typing import Callable, Dict

from protein_dashboard.core.config import settings
from protein_dashboard.services.access import AccessGate
from protein_dashboard.services.cache import build_result_cache
from protein_dashboard.services.pagination import Paginator
from protein_dashboard.services.protein_service import ProteinQueryService
from protein_dashboard.services.retry import RetryPolicy
from protein_dashboard.services.saved_sets import SavedSetService
from protein_dashboard.services.sequence_service import SequenceSearchService


@dataclass
class SessionServices:
    proteins: ProteinQueryService
    sequences: SequenceSearchService


class ServiceRegistry:
    """Query services per access code.

    Each access code gets its own caches, so a new search from one user
    never clears results cached for another.
    """

    def __init__(
        self,
        repository,
        cache_factory: Callable[[str], object] = build_result_cache,
        retry: RetryPolicy = None,
        count_retry: RetryPolicy = None,
    ):
        self.repository = repository
        self.cache_factory = cache_factory
        self.retry = retry or RetryPolicy(settings.MAX_RETRIES, settings.RETRY_BASE_DELAY)
        self.count_retry = count_retry or RetryPolicy(settings.COUNT_MAX_RETRIES, settings.RETRY_BASE_DELAY)
        self.access_gate = AccessGate(repository)
        self.saved_sets = SavedSetService(repository, self.retry)
        self._sessions: Dict[str, SessionServices] = {}

    def for_access_code(self, access_code: str) -> SessionServices:
        services = self._sessions.get(access_code)
        if services is None:
            services = self._build(access_code)
            self._sessions[access_code] = services
        return services

    def _build(self, access_code: str) -> SessionServices:
        proteins = ProteinQueryService(
            self.repository,
            self.cache_factory(f"{access_code}:proteins"),
            Paginator(
                self.repository,
                settings.PAGE_SIZE,
                self.retry,
                self.count_retry,
                count_timeout_ms=settings.COUNT_STATEMENT_TIMEOUT_MS,
            ),
            min_filter_length=settings.MIN_FILTER_LENGTH,
        )
        sequences = SequenceSearchService(
            self.repository,
            self.cache_factory(f"{access_code}:sequences"),
            Paginator(
                self.repository,
                settings.SEQUENCE_PAGE_SIZE,
                self.retry,
                self.count_retry,
                count_timeout_ms=settings.COUNT_STATEMENT_TIMEOUT_MS,
            ),
            min_length=settings.MIN_SEQUENCE_LENGTH,
            max_search_length=settings.MAX_SEQUENCE_SEARCH_LENGTH,
        )
        return SessionServices(proteins=proteins, sequences=sequences)

    async def aclose(self) -> None:
        for services in self._sessions.values():
            await services.proteins.aclose()
