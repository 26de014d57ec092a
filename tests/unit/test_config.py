"""Unit tests for application settings."""

from pubmed_navigator.config import Settings
from pubmed_navigator.constants import DEFAULT_TIMEOUT


def test_defaults():
    settings = Settings(ncbi_email="", ncbi_api_key="", log_level="INFO")

    assert settings.ncbi_tool == "pubmed-navigator"
    assert settings.request_timeout_seconds == DEFAULT_TIMEOUT
    assert settings.log_level == "INFO"


def test_only_used_fields_are_declared():
    assert set(Settings.model_fields) == {
        "ncbi_tool",
        "ncbi_email",
        "ncbi_api_key",
        "request_timeout_seconds",
        "log_level",
    }
