"""Configuration loading for examwatch deployments."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

CONFIG_FILENAME = "examwatch.yaml"


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""


@dataclass
class DatabaseConfig:
    """Student and activity store location."""

    path: str = "examwatch.db"


@dataclass
class ServerConfig:
    """HTTP server settings."""

    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: list[str] = field(default_factory=lambda: ["*"])


@dataclass
class ClientConfig:
    """Settings for the polling client.

    Attributes:
        base_url: Root URL of the API, including the /api prefix.
        poll_interval: Seconds between two polls of the same job.
        poll_jitter: Fraction of poll_interval added or removed at random.
    """

    base_url: str = "http://127.0.0.1:8000/api"
    poll_interval: float = 5.0
    poll_jitter: float = 0.1


@dataclass
class LoggingConfig:
    """Logging settings passed to setup_logging."""

    dir: str = "logs"
    level: str = "INFO"


@dataclass
class Settings:
    """examwatch configuration."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    client: ClientConfig = field(default_factory=ClientConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        """Create settings from a dictionary.

        Args:
            data: Configuration dictionary from YAML. Missing keys keep defaults.

        Returns:
            Parsed settings object.

        Raises:
            ConfigError: If a section is not a mapping or a value has the wrong type.
        """
        sections: dict[str, dict[str, Any]] = {}
        for name in ("database", "server", "client", "logging"):
            section = data.get(name) or {}
            if not isinstance(section, dict):
                raise ConfigError(f"Section '{name}' must be a mapping")
            sections[name] = section

        database = DatabaseConfig(path=str(sections["database"].get("path", "examwatch.db")))

        server_data = sections["server"]
        cors_origins = server_data.get("cors_origins", ["*"])
        if isinstance(cors_origins, str):
            cors_origins = [cors_origins]
        try:
            server = ServerConfig(
                host=str(server_data.get("host", "127.0.0.1")),
                port=int(server_data.get("port", 8000)),
                cors_origins=list(cors_origins),
            )

            client_data = sections["client"]
            client = ClientConfig(
                base_url=str(client_data.get("base_url", "http://127.0.0.1:8000/api")),
                poll_interval=float(client_data.get("poll_interval", 5.0)),
                poll_jitter=float(client_data.get("poll_jitter", 0.1)),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration value: {e}") from e

        if client.poll_interval <= 0:
            raise ConfigError("client.poll_interval must be positive")
        if not 0 <= client.poll_jitter < 1:
            raise ConfigError("client.poll_jitter must be in [0, 1)")

        logging_data = sections["logging"]
        logging_config = LoggingConfig(
            dir=str(logging_data.get("dir", "logs")),
            level=str(logging_data.get("level", "INFO")),
        )

        return cls(database=database, server=server, client=client, logging=logging_config)

    def apply_env(self, environ: dict[str, str] | None = None) -> Settings:
        """Override settings from EXAMWATCH_* environment variables.

        Args:
            environ: Environment mapping. Defaults to os.environ.

        Returns:
            This settings object, updated in place.
        """
        env = os.environ if environ is None else environ

        if "EXAMWATCH_DB_PATH" in env:
            self.database.path = env["EXAMWATCH_DB_PATH"]
        if "EXAMWATCH_HOST" in env:
            self.server.host = env["EXAMWATCH_HOST"]
        if "EXAMWATCH_PORT" in env:
            try:
                self.server.port = int(env["EXAMWATCH_PORT"])
            except ValueError as e:
                raise ConfigError(f"EXAMWATCH_PORT must be an integer: {e}") from e
        if "EXAMWATCH_API_URL" in env:
            self.client.base_url = env["EXAMWATCH_API_URL"]
        if "EXAMWATCH_LOG_DIR" in env:
            self.logging.dir = env["EXAMWATCH_LOG_DIR"]
        if "EXAMWATCH_LOG_LEVEL" in env:
            self.logging.level = env["EXAMWATCH_LOG_LEVEL"]
        return self


def load_config(config_path: Path | str) -> Settings:
    """Load examwatch configuration from a YAML file.

    Args:
        config_path: Path to examwatch.yaml file.

    Returns:
        Parsed settings object.

    Raises:
        ConfigError: If file doesn't exist or is invalid.
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a YAML mapping, got {type(data).__name__}")

    return Settings.from_dict(data)


def find_config(start_path: Path | str | None = None) -> Path | None:
    """Find examwatch.yaml by walking up directory tree.

    Args:
        start_path: Starting directory. Defaults to current directory.

    Returns:
        Path to examwatch.yaml file, or None if there is none.
    """
    current = Path.cwd() if start_path is None else Path(start_path)
    current = current.resolve()

    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if current.parent == current:
            return None
        current = current.parent


def get_settings(config_path: Path | str | None = None) -> Settings:
    """Resolve settings from file (explicit or discovered) and environment.

    Args:
        config_path: Explicit config file. When None, examwatch.yaml is searched
            for from the current directory upwards; defaults apply if none exists.

    Returns:
        Fully resolved settings.
    """
    if config_path is None:
        config_path = find_config()
    settings = load_config(config_path) if config_path is not None else Settings()
    return settings.apply_env()
