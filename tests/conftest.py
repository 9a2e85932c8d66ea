"""Pytest configuration and fixtures for the promplot tests."""

import pytest


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def two_series_matrix() -> list[dict]:
    """Two series with one sample each, either side of a 1.0 floor."""
    return [
        {"metric": {"__name__": "a"}, "values": [[1000, "0.5"]]},
        {"metric": {"__name__": "b"}, "values": [[1000, "2.0"]]},
    ]
