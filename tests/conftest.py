"""
Pytest configuration and fixtures
"""
import pytest

from calbridge.utils.config import BridgeConfig, resolve_config
from calbridge.utils.logger import configure_logging
from tests.fakes import BACKEND_ADDRESS, FakeClock, FakeTransport


@pytest.fixture(autouse=True)
def reset_logging():
    """Restore stderr-only logging after tests that reconfigure it"""
    yield
    configure_logging("INFO")


@pytest.fixture
def test_config() -> BridgeConfig:
    """Test configuration"""
    return resolve_config({
        "sender_email": "agent@example.com",
        "recipient_email": BACKEND_ADDRESS,
        "poll_interval_ms": 1000,
        "request_timeout_ms": 5000,
    })


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transport() -> FakeTransport:
    """Transport whose list results follow its stored messages"""
    return FakeTransport()
