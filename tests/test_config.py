"""
Tests for configuration loading and validation
"""
import pytest

from calbridge.core.email.gmail_constants import GMAIL_SCOPES
from calbridge.exceptions import ConfigurationError, ErrorCodes
from calbridge.protocol import ApiAction
from calbridge.utils.config import ConfigDefaults, load_config, resolve_config

BASE = {"sender_email": "agent@example.com", "recipient_email": "backend@example.com"}


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep the developer's environment and .env file out of these tests"""
    for name in (
        ConfigDefaults.ENV_SENDER_EMAIL,
        ConfigDefaults.ENV_RECIPIENT_EMAIL,
        ConfigDefaults.ENV_RESPONSE_SENDER_EMAIL,
        "CALBRIDGE_CONFIG",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


class TestResolveConfig:

    def test_defaults(self):
        config = resolve_config(BASE)

        assert config.response_sender_email == "backend@example.com"
        assert config.poll_interval_ms == 3000
        assert config.request_timeout_ms == 180000
        assert config.max_results == 35
        assert config.namespace == "calendarapi"
        assert config.cleanup_enabled is True
        assert config.cleanup_mode == ConfigDefaults.CLEANUP_MODE_TRASH
        assert set(config.supported_actions) == set(ApiAction)

    def test_explicit_response_sender(self):
        config = resolve_config({**BASE, "response_sender_email": "flow@example.com"})
        assert config.response_sender_email == "flow@example.com"

    def test_missing_address_rejected(self):
        with pytest.raises(ConfigurationError) as exc:
            resolve_config({"sender_email": "agent@example.com"})
        assert exc.value.code == ErrorCodes.INVALID_CONFIG

    def test_blank_address_rejected(self):
        with pytest.raises(ConfigurationError):
            resolve_config({**BASE, "sender_email": "   "})

    def test_poll_interval_minimum(self):
        with pytest.raises(ConfigurationError):
            resolve_config({**BASE, "poll_interval_ms": 499})
        assert resolve_config({**BASE, "poll_interval_ms": 500}).poll_interval_ms == 500

    def test_request_timeout_minimum(self):
        with pytest.raises(ConfigurationError):
            resolve_config({**BASE, "request_timeout_ms": 4999})
        assert resolve_config({**BASE, "request_timeout_ms": 5000}).request_timeout_ms == 5000

    def test_invalid_cleanup_mode(self):
        with pytest.raises(ConfigurationError):
            resolve_config({**BASE, "cleanup_mode": "delete"})

    def test_unknown_action_rejected(self):
        with pytest.raises(ConfigurationError):
            resolve_config({**BASE, "supported_actions": ["list", "calendars"]})

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ConfigurationError) as exc:
            resolve_config({**BASE, "logging": {"level": "LOUD"}})

        assert exc.value.code == ErrorCodes.INVALID_CONFIG
        assert "level" in exc.value.message

    def test_log_level_normalized(self):
        config = resolve_config({**BASE, "logging": {"level": "debug", "file": "logs/calbridge.log"}})

        assert config.logging.level == "DEBUG"
        assert config.logging.file == "logs/calbridge.log"

    def test_default_scopes_match_transport_requirements(self):
        config = resolve_config(BASE)

        assert config.scopes == GMAIL_SCOPES
        assert ConfigDefaults.SCOPES is GMAIL_SCOPES

    def test_addresses_from_environment(self, monkeypatch):
        monkeypatch.setenv(ConfigDefaults.ENV_SENDER_EMAIL, "env-agent@example.com")
        monkeypatch.setenv(ConfigDefaults.ENV_RECIPIENT_EMAIL, "env-backend@example.com")

        config = resolve_config({})

        assert config.sender_email == "env-agent@example.com"
        assert config.recipient_email == "env-backend@example.com"
        assert config.response_sender_email == "env-backend@example.com"


class TestLoadConfig:

    def test_load_yaml_with_env_placeholders(self, tmp_path, monkeypatch):
        monkeypatch.setenv("BACKEND_MAILBOX", "calendar@example.com")
        path = tmp_path / "calbridge.yaml"
        path.write_text(
            "sender_email: agent@example.com\n"
            "recipient_email: ${BACKEND_MAILBOX}\n"
            "poll_interval_ms: 2000\n"
            "supported_actions: [list, health]\n"
            "logging:\n"
            "  level: DEBUG\n"
        )

        config = load_config(str(path))

        assert config.recipient_email == "calendar@example.com"
        assert config.poll_interval_ms == 2000
        assert config.supported_actions == [ApiAction.LIST, ApiAction.HEALTH]
        assert config.logging.level == "DEBUG"

    def test_default_path_is_optional(self, monkeypatch):
        monkeypatch.setenv(ConfigDefaults.ENV_SENDER_EMAIL, "agent@example.com")
        monkeypatch.setenv(ConfigDefaults.ENV_RECIPIENT_EMAIL, "backend@example.com")

        config = load_config()

        assert config.sender_email == "agent@example.com"

    def test_explicit_missing_path_raises(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(str(tmp_path / "missing.yaml"))

    def test_non_mapping_yaml_raises(self, tmp_path):
        path = tmp_path / "calbridge.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ConfigurationError):
            load_config(str(path))
