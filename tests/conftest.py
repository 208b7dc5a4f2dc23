"""Pytest fixtures for sensor-alerts tests."""

import pytest

from src.config.settings import Settings


@pytest.fixture
def test_settings() -> Settings:
    """Settings configured for testing."""
    return Settings(
        environment="development",
        log_level="DEBUG",
        aws_region="eu-north-1",
    )


@pytest.fixture(autouse=True)
def _aws_test_environment(monkeypatch):
    """Keep boto3 away from real credentials and regions."""
    monkeypatch.setenv("AWS_DEFAULT_REGION", "eu-north-1")
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
