"""Tests for alerting configuration loaded from the environment."""

from src.alerts.config import AlertConfig
from src.config.settings import Settings


class TestAlertConfig:

    def test_defaults(self, monkeypatch):
        for var in ("SUBS_TABLE", "STATE_TABLE", "SES_FROM"):
            monkeypatch.delenv(var, raising=False)
        config = AlertConfig()

        assert config.subscriptions_table == "alert_subscriptions"
        assert config.state_table == "alert_state"
        assert config.ses_from == ""
        assert config.email_enabled is False
        assert config.default_cooldown_seconds == 1800
        assert config.sensor_id_attribute == "sensorId"
        assert config.timestamp_attribute == "ts"

    def test_deployment_variables(self, monkeypatch):
        monkeypatch.setenv("SUBS_TABLE", "subs_prod")
        monkeypatch.setenv("STATE_TABLE", "state_prod")
        monkeypatch.setenv("SES_FROM", "noreply@example.com")
        config = AlertConfig()

        assert config.subscriptions_table == "subs_prod"
        assert config.state_table == "state_prod"
        assert config.email_enabled is True

    def test_prefixed_variables(self, monkeypatch):
        monkeypatch.setenv("ALERTS_STATE_TABLE", "state_staging")
        monkeypatch.setenv("ALERTS_MAX_CONCURRENCY", "4")
        config = AlertConfig()

        assert config.state_table == "state_staging"
        assert config.max_concurrency == 4

    def test_init_by_field_name(self):
        config = AlertConfig(ses_from="alerts@example.com", state_table="s")
        assert config.ses_from == "alerts@example.com"
        assert config.state_table == "s"


class TestSettings:

    def test_production_flag(self):
        assert Settings(environment="production").is_production
        assert not Settings(environment="development").is_production
