"""Shared test fixtures and configuration for faultline tests."""

import random

import pytest
from test_helpers import CapturingTransport

import faultline
from faultline.client import Client, reset_default_client
from faultline.config import Config
from faultline.models import (
    Breadcrumb,
    Event,
    ExceptionRecord,
    Frame,
    RequestInfo,
    SDKInfo,
    Stacktrace,
)
from faultline.state import LastEventCell, last_event


@pytest.fixture(autouse=True)
def reset_global_state():
    """Every test starts from the default process-wide config."""
    yield
    faultline.configure()
    reset_default_client()
    last_event.clear()


@pytest.fixture
def sample_event():
    """Sample Event with every interface populated."""
    return Event(
        message="Something went wrong",
        breadcrumbs=[Breadcrumb(category="http", message="GET /", data={"status": 200})],
        sdk=SDKInfo(name="faultline.python", version="0.1.0"),
        request=RequestInfo(method="GET", url="https://example.com/", headers={"Accept": "*/*"}),
        extra={"attempt": 3},
        user={"id": "42"},
        tags={"env": "test"},
        exception=[
            ExceptionRecord(
                type="ValueError",
                value="bad value",
                stacktrace=Stacktrace(
                    frames=[Frame(filename="app.py", function="main", lineno=10, in_app=True)]
                ),
            )
        ],
    )


@pytest.fixture
def transport():
    return CapturingTransport()


@pytest.fixture
def last_event_cell():
    return LastEventCell()


@pytest.fixture
def make_client(transport, last_event_cell):
    """Build a Client around the capturing transport with the given options."""

    def factory(transport=transport, seed: int = 0, **options) -> Client:
        return Client(
            config=Config(**options),
            transport=transport,
            last_event_cell=last_event_cell,
            rng=random.Random(seed),
        )

    return factory
