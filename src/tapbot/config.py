"""Configuration management for the tap bot using Pydantic Settings."""

from datetime import timedelta

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class TapConfig(BaseSettings):
    """Tap bot configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # Node
    rpc_endpoint: str = Field(alias="TAP_RPC_ENDPOINT")
    rpc_secure: bool = Field(default=False, alias="TAP_RPC_SECURE")
    history_blocks: int = Field(default=1000, alias="TAP_HISTORY_BLOCKS", gt=0)

    # Signing material
    wallet_private_key: SecretStr | None = Field(default=None, alias="TAP_WALLET_PRIVATE_KEY")
    wallet_private_key_file: str | None = Field(default=None, alias="TAP_WALLET_PRIVATE_KEY_FILE")
    wallet_mnemonic: SecretStr | None = Field(default=None, alias="TAP_WALLET_MNEMONIC")

    # Disbursement
    transfer_amount: int = Field(default=1000, alias="TAP_TRANSFER_AMOUNT", gt=0)
    cooldown_seconds: int = Field(default=300, alias="TAP_COOLDOWN_SECONDS", ge=0)
    gas_price: int = Field(default=50, alias="TAP_GAS_PRICE", ge=0)
    gas_limit: int = Field(default=21000, alias="TAP_GAS_LIMIT", gt=0)

    # Slack
    slack_bot_token: SecretStr | None = Field(default=None, alias="SLACK_BOT_TOKEN")
    slack_app_token: SecretStr | None = Field(default=None, alias="SLACK_APP_TOKEN")
    slack_channel: str | None = Field(default=None, alias="TAP_SLACK_CHANNEL")

    # Observability
    metrics_port: int = Field(default=8080, alias="TAP_METRICS_PORT", ge=1, le=65535)
    log_level: str = Field(default="INFO", alias="TAP_LOG_LEVEL")
    log_format: str = Field(default="json", alias="TAP_LOG_FORMAT")

    @property
    def rpc_url(self) -> str:
        """Node URL, with a scheme picked from rpc_secure when the endpoint has none."""
        if "://" in self.rpc_endpoint:
            return self.rpc_endpoint
        scheme = "https" if self.rpc_secure else "http"
        return f"{scheme}://{self.rpc_endpoint}"

    @property
    def cooldown(self) -> timedelta:
        return timedelta(seconds=self.cooldown_seconds)

    @property
    def has_wallet(self) -> bool:
        return any(
            (self.wallet_private_key, self.wallet_private_key_file, self.wallet_mnemonic)
        )
