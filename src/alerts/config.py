"""Alert evaluator configuration.

Names the subscription and state tables, the verified SES sender identity,
and the change-feed attribute names. All settings can be overridden via
``ALERTS_*`` environment variables; the deployment's bare ``SUBS_TABLE``,
``STATE_TABLE`` and ``SES_FROM`` variables are accepted as well.
"""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AlertConfig(BaseSettings):
    """Configuration for the threshold alert evaluator."""

    model_config = SettingsConfigDict(
        env_prefix="ALERTS_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    subscriptions_table: str = Field(
        default="alert_subscriptions",
        validation_alias=AliasChoices("ALERTS_SUBSCRIPTIONS_TABLE", "SUBS_TABLE"),
        description="DynamoDB table holding subscriptions, keyed by sensorId",
    )
    state_table: str = Field(
        default="alert_state",
        validation_alias=AliasChoices("ALERTS_STATE_TABLE", "STATE_TABLE"),
        description="DynamoDB table holding alarm state, keyed by pk/sk",
    )
    ses_from: str = Field(
        default="",
        validation_alias=AliasChoices("ALERTS_SES_FROM", "SES_FROM"),
        description="Verified SES sender identity (empty disables email)",
    )

    default_cooldown_seconds: int = Field(
        default=1800,
        ge=0,
        description="Cooldown applied when a subscription does not set cooldownSec",
    )
    max_concurrency: int = Field(
        default=16,
        ge=1,
        le=256,
        description="Records evaluated concurrently within one batch",
    )

    sensor_id_attribute: str = Field(
        default="sensorId",
        description="New-image attribute carrying the sensor identity",
    )
    timestamp_attribute: str = Field(
        default="ts",
        description="New-image attribute carrying the epoch-ms timestamp",
    )

    @property
    def email_enabled(self) -> bool:
        return bool(self.ses_from)
