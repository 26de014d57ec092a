"""Shared fixtures for integration tests.

These hit the live NCBI APIs and only run with PUBMED_NAVIGATOR_INTEGRATION=1.
"""

import os

import pytest
from dotenv import load_dotenv

from pubmed_navigator.data_sources.pubmed import PubMedClient

load_dotenv()


def pytest_collection_modifyitems(config, items):
    if os.getenv("PUBMED_NAVIGATOR_INTEGRATION") == "1":
        return
    skip = pytest.mark.skip(reason="set PUBMED_NAVIGATOR_INTEGRATION=1 to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)


@pytest.fixture
async def pubmed_client():
    """Live PubMedClient with real pacing."""
    c = PubMedClient()
    yield c
    await c.close()
