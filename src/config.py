"""
Configuration module for the authctl provider.

Loads configuration from environment variables. The management API
credentials and the provider runtime settings are kept in separate
dataclasses so the API client can be built on its own.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

DEFAULT_USER_AGENT = "authctl/0.1.0"


@dataclass
class ManagementConfig:
    """Management API connection configuration."""

    domain: str = ""
    client_id: str = ""
    client_secret: str = field(default="", repr=False)  # Never log secrets
    api_token: str = field(default="", repr=False)
    audience: str = ""
    timeout: int = 30  # seconds
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self):
        if not self.audience and self.domain:
            self.audience = f"https://{self.domain}/api/v2/"

    @property
    def uses_client_credentials(self) -> bool:
        return not self.api_token and bool(self.client_id and self.client_secret)

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        domain = os.getenv("AUTH0_DOMAIN", "")
        if not domain:
            raise ValueError("AUTH0_DOMAIN environment variable must be set.")

        api_token = os.getenv("AUTH0_API_TOKEN", "")
        client_id = os.getenv("AUTH0_CLIENT_ID", "")
        client_secret = os.getenv("AUTH0_CLIENT_SECRET", "")
        if not api_token and not (client_id and client_secret):
            raise ValueError(
                "Either AUTH0_API_TOKEN or both AUTH0_CLIENT_ID and "
                "AUTH0_CLIENT_SECRET must be set."
            )

        return cls(
            domain=domain,
            client_id=client_id,
            client_secret=client_secret,
            api_token=api_token,
            audience=os.getenv("AUTH0_AUDIENCE", ""),
            timeout=int(os.getenv("AUTH0_TIMEOUT", "30")),
            user_agent=os.getenv("AUTH0_USER_AGENT", DEFAULT_USER_AGENT),
        )


@dataclass
class ProviderConfig:
    """Provider runtime configuration."""

    state_file: str = "authctl.state.json"
    log_level: str = "INFO"

    # Resource type names to enable (empty = all registered resources)
    enabled_resources: List[str] = field(default_factory=list)

    @classmethod
    def from_env(cls):
        """Load from environment variables."""
        enabled_str = os.getenv("ENABLED_RESOURCES", "")
        enabled = (
            [r.strip() for r in enabled_str.split(",") if r.strip()]
            if enabled_str
            else []
        )
        return cls(
            state_file=os.getenv("AUTH0_STATE_FILE", "authctl.state.json"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            enabled_resources=enabled,
        )


@dataclass
class Config:
    """Main configuration object."""

    management: ManagementConfig
    provider: ProviderConfig

    @classmethod
    def from_env(cls):
        """Load all configuration from environment variables."""
        return cls(
            management=ManagementConfig.from_env(),
            provider=ProviderConfig.from_env(),
        )

    @classmethod
    def default(cls):
        """Return default configuration."""
        return cls(
            management=ManagementConfig(),
            provider=ProviderConfig(),
        )


# Global config instance
config: Optional[Config] = None


def load_config() -> Config:
    """Load configuration (singleton pattern)."""
    global config
    if config is None:
        config = Config.from_env()
    return config


def get_config() -> Config:
    """Get the current configuration."""
    if config is None:
        return load_config()
    return config


def reset_config() -> None:
    """Reset configuration (mainly for testing)."""
    global config
    config = None
