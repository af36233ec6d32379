"""
Application configuration management.

Process settings come from environment variables (``Settings``). Subscribers,
their filters and the mail transport are read once at startup from a YAML
file into an immutable ``Configuration``.
"""

from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

from ghmailer.models.subscriber import Subscriber


DEFAULT_LISTEN_HOST = "0.0.0.0"


class ConfigError(Exception):
    """Raised when the configuration file cannot be loaded."""
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Path to the subscriber configuration file
    conf_path: str = "conf.yaml"

    # Webhook (signature verification is disabled when unset)
    webhook_secret: Optional[str] = None

    # Application
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False


def split_host_port(addr: str) -> Tuple[str, int]:
    """
    Split a ``host:port`` address.

    An empty host (``":8080"``) listens on all interfaces.

    Raises:
        ValueError: If the port is missing or not a number
    """
    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"address must be of the form host:port, got {addr!r}")
    return host or DEFAULT_LISTEN_HOST, int(port)


class Configuration(BaseModel):
    """Subscribers and transport settings for one process lifetime."""

    model_config = ConfigDict(frozen=True)

    addr: str = ":8080"
    smtp_addr: str = Field(
        default="localhost:25",
        validation_alias=AliasChoices("smtp_addr", "email_smtp_addr"),
    )
    from_address: str = Field(
        default="",
        validation_alias=AliasChoices("from", "email_from", "from_address"),
    )
    password: str = Field(
        default="",
        validation_alias=AliasChoices("password", "email_password"),
    )
    users: Dict[str, Subscriber] = {}

    @field_validator("addr", "smtp_addr")
    @classmethod
    def _check_address(cls, value: str) -> str:
        split_host_port(value)
        return value

    @field_validator("users", mode="before")
    @classmethod
    def _users_default(cls, value):
        return {} if value is None else value

    @property
    def listen_address(self) -> Tuple[str, int]:
        return split_host_port(self.addr)


def parse_configuration(data: object) -> Configuration:
    """
    Build a Configuration from already-parsed file content.

    Args:
        data: Mapping produced by the YAML parser (``None`` for an empty file)

    Returns:
        Validated configuration

    Raises:
        ConfigError: If the content does not match the configuration schema
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Configuration must be a mapping, got {type(data).__name__}"
        )

    try:
        return Configuration.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def load_configuration(path: Union[str, Path]) -> Configuration:
    """
    Load the subscriber configuration file.

    Args:
        path: Path to the YAML configuration file

    Returns:
        Validated configuration

    Raises:
        ConfigError: If the file is missing, unreadable or malformed
    """
    config_file = Path(path)

    try:
        with open(config_file, 'r') as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read configuration file {config_file}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in configuration file {config_file}: {e}") from e

    return parse_configuration(data)
