"""
Configuration management for the DynDNS server
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationException

CONFIG_ENV_VAR = "DYNDNSD_CONFIG"

# Keys of the classic YAML config file that do not map 1:1 onto a field name
CONFIG_FILE_ALIASES = {
    "logfile": "LOG_FILE",
    "loglevel": "LOG_LEVEL",
    "textfile": "METRICS",
}


class UserConfig(BaseModel):
    """A user allowed to update hostnames"""
    password: str
    hosts: List[str] = Field(default_factory=list)


class UpdaterParams(BaseModel):
    """Parameters of the command_with_bind_zone updater"""
    zone_file: str
    command: str
    ttl: str = "5m"
    dns: str
    email_addr: str
    additional_zone_content: str = ""
    check_zone: bool = True
    command_timeout: int = 30  # seconds

    @field_validator("command")
    @classmethod
    def validate_command(cls, v):
        if not v.strip():
            raise ValueError("updater command must not be empty")
        return v


class UpdaterConfig(BaseModel):
    """Which propagator to run after each committed update"""
    name: str = "command_with_bind_zone"
    params: UpdaterParams


class MetricsConfig(BaseModel):
    """Prometheus textfile export of the request meters"""
    file: str = "/tmp/dyndnsd-metrics.prom"
    prefix: str = ""
    interval: int = 60  # seconds


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Application settings
    APP_NAME: str = "DynDNSd"
    DEBUG: bool = Field(default=False, description="Debug mode")

    # Managed zone
    DOMAIN: str = Field(..., description="Domain all updatable hostnames live under")
    USERS: Dict[str, UserConfig] = Field(default_factory=dict)

    # Persistence: JSON file path or SQLAlchemy URL
    DB: str = "/tmp/dyndnsd.json"
    DATABASE_ECHO: bool = False

    # Server Configuration
    HOST: str = "0.0.0.0"
    PORT: int = 8245
    UPDATE_PATH: str = "/nic/update"
    REAL_IP_HEADER: str = "X-Real-IP"

    # Privileges to drop to after startup
    USER: Optional[str] = None
    GROUP: Optional[str] = None

    # Collaborators
    RESPONDER: str = "DynDNSStyle"
    UPDATER: Optional[UpdaterConfig] = None

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "[%(asctime)s] %(levelname)-5s %(message)s"
    LOG_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"
    LOG_FILE: Optional[str] = None

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 60

    # Monitoring
    METRICS: Optional[MetricsConfig] = None

    model_config = SettingsConfigDict(
        env_prefix="DYNDNSD_",
        env_file=[".env", "../.env"],
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("DOMAIN")
    @classmethod
    def validate_domain(cls, v):
        v = v.strip().rstrip(".")
        if not v:
            raise ValueError("domain must not be empty")
        return v

    @field_validator("RESPONDER")
    @classmethod
    def validate_responder(cls, v):
        if v not in ("DynDNSStyle", "RestStyle"):
            raise ValueError(f"unknown responder '{v}', expected DynDNSStyle or RestStyle")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level == "WARN":
            level = "WARNING"
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level '{v}'")
        return level

    @field_validator("UPDATER")
    @classmethod
    def validate_updater(cls, v):
        if v is not None and v.name != "command_with_bind_zone":
            raise ValueError(f"unknown updater '{v.name}'")
        return v

    @property
    def rate_limit(self) -> str:
        """Default slowapi limit string"""
        return f"{self.RATE_LIMIT_PER_MINUTE}/minute"


def _normalize_config_keys(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Map the lowercase keys of a YAML config file onto Settings fields"""
    normalized = {}
    for key, value in raw.items():
        field_name = CONFIG_FILE_ALIASES.get(key, key.upper())
        normalized[field_name] = value
    return normalized


def load_settings(config_file: Optional[str | Path] = None) -> Settings:
    """
    Load settings from a YAML config file, the environment and .env

    Args:
        config_file: Path of the YAML config file. Falls back to the
            DYNDNSD_CONFIG environment variable; without either only the
            environment is consulted.

    Returns:
        Validated Settings instance

    Raises:
        ConfigurationException: if the file is missing, unreadable or invalid
    """
    config_file = config_file or os.environ.get(CONFIG_ENV_VAR)
    values: Dict[str, Any] = {}

    if config_file:
        path = Path(config_file)
        if not path.is_file():
            raise ConfigurationException(
                f"Config file not found: {path}",
                details={"config_file": str(path)},
                suggestions=[f"Pass an existing YAML file or set {CONFIG_ENV_VAR}"]
            )
        try:
            with path.open("r", encoding="utf-8") as fd:
                raw = yaml.safe_load(fd) or {}
        except yaml.YAMLError as e:
            raise ConfigurationException(f"Config file {path} is not valid YAML: {e}")
        if not isinstance(raw, dict):
            raise ConfigurationException(f"Config file {path} must contain a mapping")
        values = _normalize_config_keys(raw)

    try:
        return Settings(**values)
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}"
            for error in e.errors()
        ]
        raise ConfigurationException(
            "Invalid configuration",
            details={"errors": errors},
            suggestions=["Check the domain, users and updater sections of the config file"]
        )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return load_settings()
