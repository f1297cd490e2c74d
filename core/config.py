"""Configuration models and loading."""

import json
import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, ValidationError

CONFIG_DIR = Path.home() / ".config" / "api-tester-relay"
CONFIG_FILE = CONFIG_DIR / "config.json"

ENV_ENVIRONMENT = "RELAY_ENVIRONMENT"
ENV_PORT = "RELAY_PORT"

Environment = Literal["development", "production"]

LOOPBACK_HOST = "127.0.0.1"


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 3001
    environment: Environment = "production"
    development_server_ip: str = "localhost"
    production_server_ip: str = "192.168.120.4"


class SecuritySettings(BaseModel):
    # Internal host blocked in production in addition to loopback
    production_blocked_host: str = "10.106.246.81"
    development_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:8080",
            "http://localhost:8081",
            "http://localhost:8082",
            "http://localhost:3000",
        ]
    )
    verify_tls: bool = False


class UpstreamSettings(BaseModel):
    timeout: float = 30.0
    max_redirects: int = 5
    max_connections: int = 100
    max_keepalive_connections: int = 20
    user_agent: str = "API-Tester-Pro-CORS-Proxy/1.0.0"


class RateLimitSettings(BaseModel):
    enabled: bool = True
    max_requests: int = 100
    window_seconds: float = 15 * 60
    max_clients: int = 10_000


class Config(BaseModel):
    server: ServerSettings = Field(default_factory=ServerSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    upstream: UpstreamSettings = Field(default_factory=UpstreamSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)

    @property
    def is_development(self) -> bool:
        return self.server.environment == "development"

    @property
    def blocked_hosts(self) -> frozenset[str]:
        """Hostnames the relay refuses to contact in the current environment."""
        if self.is_development:
            return frozenset({LOOPBACK_HOST, "localhost"})
        return frozenset({LOOPBACK_HOST, self.security.production_blocked_host})

    @property
    def server_ip(self) -> str:
        if self.is_development:
            return self.server.development_server_ip
        return self.server.production_server_ip

    @property
    def cors_origins(self) -> list[str]:
        if self.is_development:
            return list(self.security.development_origins)
        return ["*"]


def load_config() -> Config:
    """Load configuration from JSON file, creating default if needed.

    ``RELAY_ENVIRONMENT`` and ``RELAY_PORT`` override the file values.
    """
    return apply_env_overrides(_load_config_file())


def _load_config_file() -> Config:
    if not CONFIG_FILE.exists():
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        default = Config()
        CONFIG_FILE.write_text(default.model_dump_json(indent=2))
        return default

    try:
        data = json.loads(CONFIG_FILE.read_text())
        return Config.model_validate(data)
    except (json.JSONDecodeError, ValidationError):
        # Backup corrupted config and recreate default
        backup = CONFIG_FILE.with_suffix(".json.bak")
        CONFIG_FILE.rename(backup)
        default = Config()
        CONFIG_FILE.write_text(default.model_dump_json(indent=2))
        return default


def apply_env_overrides(config: Config, environ: dict[str, str] | None = None) -> Config:
    """Return a copy of config with environment variable overrides applied."""
    environ = os.environ if environ is None else environ
    server = config.server.model_copy()

    env_name = environ.get(ENV_ENVIRONMENT)
    if env_name:
        server.environment = ServerSettings.model_validate({"environment": env_name}).environment

    port = environ.get(ENV_PORT)
    if port:
        server.port = int(port)

    return config.model_copy(update={"server": server})


def save_environment(environment: Environment) -> Config:
    """Persist the deployment environment into the config file."""
    config = _load_config_file()
    config.server.environment = environment
    CONFIG_FILE.write_text(config.model_dump_json(indent=2))
    return config
