"""
Configuration management for the title crawler service.
"""

import yaml
import logging
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, field, fields


DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_LOG_LEVEL = "debug"
DEFAULT_PARSING_TIMEOUT = 2.0

LOG_LEVELS = ('debug', 'info', 'warning', 'error', 'critical')


@dataclass
class ServerConfig:
    """Configuration for the HTTP listener."""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    shutdown_timeout: float = 10.0


@dataclass
class CrawlerConfig:
    """Configuration for crawler behavior."""
    request_timeout: float = DEFAULT_PARSING_TIMEOUT
    window_timeout: float = DEFAULT_PARSING_TIMEOUT
    user_agent: str = "TitleCrawler/1.0"
    max_content_size: int = 10 * 1024 * 1024


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: str = DEFAULT_LOG_LEVEL
    file: Optional[str] = None
    format: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    json: bool = False


@dataclass
class MonitoringConfig:
    """Configuration for monitoring."""
    metrics_enabled: bool = False
    prometheus_port: int = 8000


@dataclass
class Config:
    """Main configuration class."""
    server: ServerConfig = field(default_factory=ServerConfig)
    crawler: CrawlerConfig = field(default_factory=CrawlerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)


def _build_section(section_cls, data: Optional[Dict[str, Any]], name: str):
    """Build a config section, rejecting keys the dataclass does not declare."""
    if data is None:
        return section_cls()
    if not isinstance(data, dict):
        raise ValueError(f"Configuration section '{name}' must be a mapping")

    known = {f.name for f in fields(section_cls)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown keys in '{name}' section: {', '.join(sorted(unknown))}")

    return section_cls(**data)


class ConfigManager:
    """Manages configuration loading and validation."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path) if config_path else None
        self._config: Optional[Config] = None

    def load_config(self, overrides: Optional[Dict[str, Dict[str, Any]]] = None) -> Config:
        """
        Load configuration from YAML file, falling back to defaults.

        Args:
            overrides: Per-section values that take precedence over the file
                (e.g. ``{'server': {'port': 9000}}``). ``None`` values are ignored.

        Returns:
            Validated Config instance
        """
        config_data: Dict[str, Any] = {}

        if self.config_path is not None:
            if not self.config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

            with open(self.config_path, 'r') as file:
                config_data = yaml.safe_load(file) or {}

            if not isinstance(config_data, dict):
                raise ValueError("Configuration file must contain a mapping at the top level")

        for section, values in (overrides or {}).items():
            merged = dict(config_data.get(section) or {})
            merged.update({key: value for key, value in values.items() if value is not None})
            config_data[section] = merged

        known_sections = {f.name for f in fields(Config)}
        unknown_sections = set(config_data) - known_sections
        if unknown_sections:
            raise ValueError(f"Unknown configuration sections: {', '.join(sorted(unknown_sections))}")

        self._config = Config(
            server=_build_section(ServerConfig, config_data.get('server'), 'server'),
            crawler=_build_section(CrawlerConfig, config_data.get('crawler'), 'crawler'),
            logging=_build_section(LoggingConfig, config_data.get('logging'), 'logging'),
            monitoring=_build_section(MonitoringConfig, config_data.get('monitoring'), 'monitoring'),
        )

        self._validate_config()
        return self._config

    def _validate_config(self):
        """Validate configuration values."""
        if not self._config:
            raise ValueError("Configuration not loaded")

        server = self._config.server
        if not 0 < server.port < 65536:
            raise ValueError("port must be between 1 and 65535")

        if server.shutdown_timeout <= 0:
            raise ValueError("shutdown_timeout must be positive")

        # Validate timeouts
        crawler = self._config.crawler
        if crawler.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")

        if crawler.window_timeout <= 0:
            raise ValueError("window_timeout must be positive")

        if crawler.max_content_size < 1:
            raise ValueError("max_content_size must be at least 1")

        if self._config.logging.level.lower() not in LOG_LEVELS:
            raise ValueError(f"invalid log level {self._config.logging.level}")

        if not 0 < self._config.monitoring.prometheus_port < 65536:
            raise ValueError("prometheus_port must be between 1 and 65535")

        logging.getLogger(__name__).debug("Configuration validation passed")

    @property
    def config(self) -> Config:
        """Get the loaded configuration."""
        if not self._config:
            raise ValueError("Configuration not loaded. Call load_config() first.")
        return self._config


def load_config(config_path: Optional[str] = None,
                overrides: Optional[Dict[str, Dict[str, Any]]] = None) -> Config:
    """Load configuration from file (or defaults when no path is given)."""
    return ConfigManager(config_path).load_config(overrides)
