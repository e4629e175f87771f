from worker.tests.mocks.harness import WorkerHarness, make_job, make_payload
from worker.tests.mocks.redis import FakeRedis
from worker.tests.mocks.repositories import (
    InMemoryCardRepository,
    InMemoryGameRepository,
    InMemoryPlayerSessionRepository,
    InMemoryUserRepository,
)

__all__ = [
    "FakeRedis",
    "InMemoryCardRepository",
    "InMemoryGameRepository",
    "InMemoryPlayerSessionRepository",
    "InMemoryUserRepository",
    "WorkerHarness",
    "make_job",
    "make_payload",
]
