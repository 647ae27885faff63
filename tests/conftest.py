import asyncio
import os

os.environ["LOG_FILE"] = ""
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from protein_dashboard.db.base import Base
from protein_dashboard.db.models.access_code import AccessCode
from protein_dashboard.db.models.protein import Protein
from protein_dashboard.db.models.saved_protein import SavedProteinSet  # noqa: F401 (registers table)
from protein_dashboard.db.repository import SUMMARY_COLUMNS, ProteinRepository
from protein_dashboard.services.retry import RetryPolicy

BASE_SEQUENCE = "ACDEFGHIKLMNPQRSTVWY" * 2
VALID_CODE = "123456"


def _make_proteins():
    proteins = []
    for i in range(1, 131):
        if i % 3 == 0:
            name, organism, header = f"Protein kinase {i}", "Homo sapiens", f"PF00069({i}...{i + 200})"
        elif i % 3 == 1:
            name, organism, header = f"Tyrosine KINASE {i}", "Mus musculus", "PF07714(10...250)"
        else:
            name, organism, header = f"ABC transporter {i}", "Escherichia coli", "PF00005(20...160,200...300)"
        motif = "HHWW" if i % 10 == 0 else "GGGG"
        sequence = "M" + motif + BASE_SEQUENCE
        proteins.append({
            "id": i,
            "accession": f"P{i:05d}",
            "name": name,
            "organism_name": organism,
            "domain_header": header,
            "sequence": sequence,
            "length": len(sequence),
        })
    proteins.append({
        "id": 500,
        "accession": "Q99999",
        "name": 'Kinase, "alpha" subunit',
        "organism_name": "Homo sapiens",
        "domain_header": "pf99999(1...5)",
        "sequence": "MSTRANGE" + "K" * 120,
        "length": 128,
    })
    return proteins


PROTEINS = _make_proteins()


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class ScriptedRepository:
    """Wraps a real repository; queued errors are raised before delegating"""

    def __init__(self, inner, count_errors=(), fetch_errors=()):
        self.inner = inner
        self.count_errors = list(count_errors)
        self.fetch_errors = list(fetch_errors)
        self.calls = []

    async def count(self, clauses, statement_timeout_ms=None):
        self.calls.append(("count",))
        if self.count_errors:
            raise self.count_errors.pop(0)
        return await self.inner.count(clauses, statement_timeout_ms)

    async def fetch_page(self, clauses, offset, limit, columns=SUMMARY_COLUMNS):
        self.calls.append(("fetch_page", offset, limit))
        if self.fetch_errors:
            raise self.fetch_errors.pop(0)
        return await self.inner.fetch_page(clauses, offset, limit, columns)

    def __getattr__(self, name):
        return getattr(self.inner, name)


class GatedRepository:
    """Wraps a real repository; the first count waits until `gate` is set"""

    def __init__(self, inner):
        self.inner = inner
        self.gate = asyncio.Event()
        self.held = False
        self.count_calls = 0

    async def count(self, clauses, statement_timeout_ms=None):
        self.count_calls += 1
        if not self.held:
            self.held = True
            await self.gate.wait()
        return await self.inner.count(clauses, statement_timeout_ms)

    async def wait_until_held(self):
        while not self.held:
            await asyncio.sleep(0)

    def __getattr__(self, name):
        return getattr(self.inner, name)


@pytest.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _case_sensitive_like(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA case_sensitive_like=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        session.add_all([Protein(**p) for p in PROTEINS])
        session.add(AccessCode(code=VALID_CODE))
        await session.commit()

    yield factory
    await engine.dispose()


@pytest.fixture
def repository(session_factory):
    return ProteinRepository(session_factory)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_sleep():
    return FakeSleep()


@pytest.fixture
def retry(fake_sleep):
    return RetryPolicy(max_attempts=3, base_delay=1.0, sleep=fake_sleep)


@pytest.fixture
def scripted():
    return ScriptedRepository


@pytest.fixture
def gated():
    return GatedRepository


@pytest.fixture
def proteins():
    return PROTEINS


@pytest.fixture
def valid_code():
    return VALID_CODE
