"""
Configuration management for stellar-mc.

Supports configuration via environment variables and .env files.
The network is selected once per process and handed to every component
as an immutable NetworkContext.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict
from stellar_sdk import Network

from stellar_mc.exceptions import ConfigError


class NetworkType(str, Enum):
    """Stellar network types."""
    PUBLIC = "public"
    TEST = "test"


NETWORK_PASSPHRASES = {
    NetworkType.PUBLIC: Network.PUBLIC_NETWORK_PASSPHRASE,
    NetworkType.TEST: Network.TESTNET_NETWORK_PASSPHRASE,
}

HORIZON_URLS = {
    NetworkType.PUBLIC: "https://horizon.stellar.org",
    NetworkType.TEST: "https://horizon-testnet.stellar.org",
}


@dataclass(frozen=True)
class NetworkContext:
    """Passphrase and Horizon endpoint of the selected network."""
    passphrase: str
    endpoint_url: str


class McSettings(BaseSettings):
    """
    Configuration settings for stellar-mc.

    All settings can be configured via environment variables with the STELLAR_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="STELLAR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Network settings
    network: NetworkType = Field(
        default=NetworkType.TEST,
        description="Stellar network to connect to"
    )
    horizon_url: Optional[str] = Field(
        default=None,
        description="Custom Horizon base URL (optional)"
    )

    # Transaction settings
    base_fee: int = Field(
        default=100,
        ge=100,
        description="Fee per operation in stroops"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )

    @property
    def endpoint_url(self) -> str:
        """Get the Horizon URL for the selected network."""
        if self.horizon_url:
            return self.horizon_url.rstrip("/")
        return HORIZON_URLS[self.network]

    def network_context(self) -> NetworkContext:
        """Build the network context handed to every component."""
        return NetworkContext(
            passphrase=NETWORK_PASSPHRASES[self.network],
            endpoint_url=self.endpoint_url,
        )


def load_settings(**overrides) -> McSettings:
    """
    Load settings from the environment.

    Raises:
        ConfigError: If STELLAR_NETWORK names an unknown network or
            any other setting is invalid
    """
    try:
        return McSettings(**overrides)
    except ValidationError as e:
        for error in e.errors():
            if error["loc"] and error["loc"][0] == "network":
                raise ConfigError(
                    f'Unknown Stellar network: "{error.get("input")}". '
                    'Stellar network is set by the "STELLAR_NETWORK" environment variable. '
                    'Possible values are "public", "test". '
                    'An unset "STELLAR_NETWORK" is treated as "test".'
                ) from None
        raise ConfigError(f"Invalid configuration: {e}") from None
