"""Shared fixtures for the Bridge test suite."""

import pytest

from sdk.bridge_sdk.config import Settings


@pytest.fixture
def settings():
    """Settings with zero backoff so retries and session recovery run instantly."""
    return Settings(
        session_retry_delay=0.0,
        query_retries=2,
        query_retry_base_delay=0.0,
        query_retry_max_delay=0.0,
        ingest_chunk_size=4,
    )
