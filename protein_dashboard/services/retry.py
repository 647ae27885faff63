import asyncio
from typing import Awaitable, Callable, TypeVar

from loguru import logger

from protein_dashboard.services.errors import (
    DatabaseError,
    SearchValidationError,
    StatementTimeoutError,
)

T = TypeVar("T")


class RetryPolicy:
    """Retry a database operation with linear backoff.

    Attempt ``n`` that fails waits ``base_delay * n`` before the next one.
    Statement timeouts and validation errors are raised straight away:
    resubmitting the same statement would just time out again.
    """

    def __init__(self, max_attempts: int = 3, base_delay: float = 1.0, sleep=asyncio.sleep):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.sleep = sleep

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * attempt

    async def run(self, operation: Callable[[], Awaitable[T]], description: str = "query") -> T:
        attempt = 1
        while True:
            try:
                return await operation()
            except (StatementTimeoutError, SearchValidationError):
                raise
            except DatabaseError as e:
                if attempt >= self.max_attempts:
                    logger.bind(**e.diagnostics()).error(
                        f"{description} failed after {attempt} attempts: {e.message}"
                    )
                    raise
                delay = self.delay_for(attempt)
                logger.warning(f"{description} attempt {attempt} failed ({e.message}); retrying in {delay}s")
                await self.sleep(delay)
                attempt += 1
