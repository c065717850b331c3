"""Shared pytest fixtures and configuration."""

import os
import pytest
from datetime import datetime, timezone
from freezegun import freeze_time

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("PROPERTIES_TABLE", "properties")
os.environ.setdefault("DUPLICATE_DETECTION_ENABLED", "true")

from tests.utils.factories import create_listing


BASE_TIME = datetime(2024, 12, 9, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def base_time():
    return BASE_TIME


@pytest.fixture
def main_street_cluster():
    """Two listings for the same address, created an hour apart with different casing."""
    original = create_listing(
        address="123 Main St",
        title="Original Main St",
        created_at=BASE_TIME,
    )
    newer = create_listing(
        address="123 MAIN ST",
        title="Newer Main St",
        created_at=BASE_TIME.replace(hour=13),
    )
    return original, newer


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2024-12-09 12:00:00") as frozen_time:
        yield frozen_time
