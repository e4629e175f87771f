"""Shared fixtures for worker tests."""

import os

import pytest

# WorkerSettings requires MONGODB_URI. Set a test default before any is built.
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017")

from worker.tests.mocks import WorkerHarness  # noqa: E402


@pytest.fixture
def harness() -> WorkerHarness:
    return WorkerHarness()
