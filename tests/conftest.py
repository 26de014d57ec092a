"""Pytest configuration and fixtures."""

import pytest

from pubmed_navigator.data_sources.pubmed import PubMedClient


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
async def pubmed_client(recording_sleep):
    """PubMedClient whose pacing sleeps are recorded instead of awaited."""
    c = PubMedClient(sleep=recording_sleep)
    yield c
    await c.close()


@pytest.fixture
def sample_pmids() -> list[str]:
    return ["36038128", "30105375", "31978945"]
