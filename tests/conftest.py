"""Pytest fixtures for sauce-reconcile tests."""

import pytest

from tests.helpers.fakes import FakeGateway, RecordingRun


@pytest.fixture
def gateway():
    """Sauce jobs API with no jobs and no failures."""
    return FakeGateway()


@pytest.fixture
def run():
    """Run context for build ``my-job-42``."""
    return RecordingRun()
