"""Shared fixtures for the Mind Growth Classroom tests."""

import pytest

from fakes import FakeGateway, RecordingForwarder


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def forwarder():
    return RecordingForwarder()
