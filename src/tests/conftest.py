"""Pytest configuration and fixtures."""

import pytest

START_MS = 1_700_000_000_000


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, now: int = START_MS) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock():
    """Create a fake clock starting at a fixed instant."""
    return FakeClock()


@pytest.fixture
def controller(clock):
    """Create an admission controller with an empty store and fake clock."""
    from turnstile.controller import AdmissionController

    return AdmissionController(clock=clock)


@pytest.fixture
def sample_policy():
    """Create a sample policy for testing."""
    from turnstile.models import Policy

    return Policy(name="search", limit=5, windowMs=60_000, keyPrefix="search")


@pytest.fixture
def settings():
    """Settings isolated from the environment."""
    from turnstile.config import Settings

    return Settings(_env_file=None, log_format="console", log_level="WARNING")


@pytest.fixture
def app(settings, controller):
    """Create an app wired to the fake-clock controller."""
    from turnstile.app import create_app

    return create_app(settings=settings, controller=controller)
