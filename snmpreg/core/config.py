"""
Configuration management for the SNMP agent.

Loads configuration from YAML files and environment variables.
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Tuple
import yaml

from .errors import ConfigurationError


DEFAULT_LISTEN_ADDR = "0.0.0.0:161"
DEFAULT_COMMUNITY = "public"


@dataclass
class AgentConfig:
    """SNMP agent configuration."""

    pen: int = 0  # Private Enterprise Number, required
    listen_addr: str = ""  # host:port, defaults to 0.0.0.0:161
    community: str = ""  # defaults to "public"
    log_level: str = "INFO"

    def with_defaults(self) -> "AgentConfig":
        """Return a copy with empty optional fields filled in."""
        return replace(
            self,
            listen_addr=self.listen_addr or DEFAULT_LISTEN_ADDR,
            community=self.community or DEFAULT_COMMUNITY,
        )

    def validate(self):
        """
        Check the configuration can produce an agent.

        Raises:
            ConfigurationError: PEN missing or listen address malformed
        """
        if isinstance(self.pen, bool) or not isinstance(self.pen, int) or self.pen <= 0:
            raise ConfigurationError("PEN (Private Enterprise Number) is required")
        self.listen_host_port()

    def listen_host_port(self) -> Tuple[str, int]:
        """Split listen_addr into (host, port). IPv6 hosts go in brackets."""
        addr = self.listen_addr or DEFAULT_LISTEN_ADDR
        host, sep, port = addr.rpartition(":")
        if not sep or not port.isdigit():
            raise ConfigurationError(f"Invalid listen address: {addr!r}")
        port_num = int(port)
        if port_num > 65535:
            raise ConfigurationError(f"Invalid listen port: {port_num}")
        host = host.strip("[]") or "0.0.0.0"
        return host, port_num


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None
    max_file_size_mb: int = 10
    backup_count: int = 5


@dataclass
class Config:
    """Main configuration container."""

    agent: AgentConfig = field(default_factory=AgentConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: str) -> "Config":
        """Load configuration from YAML file."""
        config_path = Path(path)
        if not config_path.exists():
            config = cls()
            config._apply_env_overrides()
            return config

        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> "Config":
        """Create config from dictionary."""
        config = cls()

        if "agent" in data:
            config.agent = AgentConfig(**data["agent"])

        if "logging" in data:
            config.logging = LoggingConfig(**data["logging"])

        # Override with environment variables
        config._apply_env_overrides()

        return config

    def _apply_env_overrides(self):
        """Apply environment variable overrides."""
        if os.getenv("SNMP_PEN"):
            try:
                self.agent.pen = int(os.getenv("SNMP_PEN"))
            except ValueError:
                raise ConfigurationError(f"SNMP_PEN must be an integer, got {os.getenv('SNMP_PEN')!r}")
        if os.getenv("SNMP_LISTEN_ADDR"):
            self.agent.listen_addr = os.getenv("SNMP_LISTEN_ADDR")
        if os.getenv("SNMP_COMMUNITY"):
            self.agent.community = os.getenv("SNMP_COMMUNITY")

        # Logging
        if os.getenv("LOG_LEVEL"):
            self.logging.level = os.getenv("LOG_LEVEL")
            self.agent.log_level = os.getenv("LOG_LEVEL")

    def to_yaml(self, path: str):
        """Save configuration to YAML file."""
        data = {
            "agent": {
                "pen": self.agent.pen,
                "listen_addr": self.agent.listen_addr or DEFAULT_LISTEN_ADDR,
                "community": self.agent.community or DEFAULT_COMMUNITY,
                "log_level": self.agent.log_level,
            },
            "logging": {
                "level": self.logging.level,
                "file_path": self.logging.file_path,
            },
        }

        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False)


def get_default_config_path() -> str:
    """Get the default configuration file path."""
    # Check common locations
    candidates = [
        Path("config/config.yaml"),
        Path("config.yaml"),
        Path.home() / ".snmpreg" / "config.yaml",
        Path("/etc/snmpreg/config.yaml"),
    ]

    for path in candidates:
        if path.exists():
            return str(path)

    # Return the first candidate as default
    return str(candidates[0])
