"""
Saved protein sets, one JSON array per access code.

Both add and remove read the current array and write the whole array
back. There is no version check, so two sessions saving under the same
access code at the same moment can lose one of the updates.
"""
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Tuple

from loguru import logger
from pydantic import BaseModel

from protein_dashboard.schemas.saved import RemoveResult, SavedProteinEntry, SaveResult
from protein_dashboard.services.errors import SearchValidationError
from protein_dashboard.services.retry import RetryPolicy

SNAPSHOT_FIELDS = ("id", "accession", "name", "organism", "domain_header", "length")


def snapshot(record, saved_date: str) -> dict:
    data = record.model_dump() if isinstance(record, BaseModel) else dict(record)
    entry = {field: data.get(field) for field in SNAPSHOT_FIELDS}
    entry["saved_date"] = saved_date
    return SavedProteinEntry(**entry).model_dump(by_alias=True)


def merge_entries(existing: List[dict], new: Iterable[dict]) -> Tuple[List[dict], int]:
    """Append entries whose id is not saved yet; returns (merged, added)"""
    seen = {entry["id"] for entry in existing}
    merged = list(existing)
    added = 0
    for entry in new:
        if entry["id"] in seen:
            continue
        seen.add(entry["id"])
        merged.append(entry)
        added += 1
    return merged, added


def remove_entries(existing: List[dict], protein_ids: Iterable[int]) -> Tuple[List[dict], int]:
    doomed = set(protein_ids)
    remaining = [entry for entry in existing if entry["id"] not in doomed]
    return remaining, len(existing) - len(remaining)


class SavedSetService:
    def __init__(self, repository, retry: RetryPolicy, clock: Callable[[], datetime] = None):
        self.repository = repository
        self.retry = retry
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def _load(self, access_code: str) -> List[dict]:
        rows = await self.retry.run(
            lambda: self.repository.get_saved(access_code),
            description="saved proteins lookup",
        )
        return rows or []

    async def fetch_saved(self, access_code: str) -> List[SavedProteinEntry]:
        return [SavedProteinEntry(**entry) for entry in await self._load(access_code)]

    async def save(self, access_code: str, records: Iterable) -> SaveResult:
        saved_date = self.clock().isoformat()
        new_entries = [snapshot(record, saved_date) for record in records]
        if not new_entries:
            raise SearchValidationError("No proteins to save. Please select proteins or perform a search.")

        existing = await self._load(access_code)
        merged, added = merge_entries(existing, new_entries)
        if added:
            await self.retry.run(
                lambda: self.repository.put_saved(access_code, merged),
                description="saved proteins write",
            )
        logger.info(f"Saved {added} protein(s) for access code {access_code} ({len(merged)} total)")

        skipped = len(new_entries) - added
        message = f"Saved {added} new protein(s)."
        if skipped:
            message += f" {skipped} already saved."
        return SaveResult(added=added, total=len(merged), message=message)

    async def remove(self, access_code: str, protein_ids: Iterable[int]) -> RemoveResult:
        existing = await self._load(access_code)
        remaining, removed = remove_entries(existing, protein_ids)
        if removed:
            await self.retry.run(
                lambda: self.repository.put_saved(access_code, remaining),
                description="saved proteins write",
            )
        logger.info(f"Removed {removed} protein(s) for access code {access_code}")
        return RemoveResult(
            removed=removed,
            total=len(remaining),
            message=f"Removed {removed} protein(s).",
        )
