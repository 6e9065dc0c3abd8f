"""Mini README: Shared fixtures for the Fleet Ledger test-suite.

Structure:
    * anyio_backend - run ``@pytest.mark.anyio`` tests on asyncio only.
    * FakeClock / clock - manually advanced clock for timer tests.
    * store, blobs, principal - fresh collaborators per test.
"""

from __future__ import annotations

import pytest

from fleetledger.auth import Principal
from fleetledger.blobs import InMemoryBlobStorage
from fleetledger.store import InMemoryRecordStore

WORK_ID = "IA0012"
EMAIL = "ops.IA0012@fleet.test"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture
def blobs() -> InMemoryBlobStorage:
    return InMemoryBlobStorage()


@pytest.fixture
def principal() -> Principal:
    return Principal(uid="uid-ops", email=EMAIL)


@pytest.fixture
def gated_store(principal: Principal) -> InMemoryRecordStore:
    """Store whose user record carries the work ID used by gated operations."""

    return InMemoryRecordStore({"users": {principal.uid: {"workId": WORK_ID, "email": EMAIL}}})
