import os
from dataclasses import dataclass
from pathlib import Path

import yaml

ROOT_DIR = Path(__file__).resolve().parent.parent


class ConfigError(Exception):
    """Raised when a required configuration key is missing or invalid."""


class ConfigLoader:
    _instance = None
    _config = None

    def __new__(cls):
        """
        Create a singleton instance of ConfigLoader.
        Loads configuration from YAML file on first instantiation.
        """
        if cls._instance is None:
            cls._load_config()
            cls._instance = super(ConfigLoader, cls).__new__(cls)
        return cls._instance

    @classmethod
    def _load_config(cls):
        """
        Load the configuration from the YAML file into the class variable _config.
        MCP_CONFIG_FILE overrides the default config.yaml next to server.py.
        """
        config_path = os.environ.get("MCP_CONFIG_FILE") or ROOT_DIR / "config.yaml"
        with open(config_path, "r", encoding="utf-8") as f:
            try:
                cls._config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    @classmethod
    def reset(cls):
        """Drop the cached instance so the next access re-reads the file."""
        cls._instance = None
        cls._config = None

    def get_config(self):
        """
        Return the loaded configuration dictionary.
        """
        return self._config


def get_config():
    """
    Helper function to get the singleton configuration instance's config dictionary.
    """
    return ConfigLoader().get_config()


def _env_flag(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Resolved server settings: config.yaml values with environment overrides applied."""

    server_name: str = "generated-mcp-server"
    server_title: str = "Amadeus MCP Server"
    server_version: str = "0.1.0"
    host: str = "0.0.0.0"
    port: int = 3001
    tools_dir: Path = ROOT_DIR / "tools"
    message_path: str = "/messages"
    debug: bool = False

    @classmethod
    def load(cls, config: dict | None = None) -> "Settings":
        cfg = get_config() if config is None else config
        cfg = cfg or {}

        tools_dir = Path(os.environ.get("MCP_TOOLS_DIR") or cfg.get("tools_dir") or "tools")
        if not tools_dir.is_absolute():
            tools_dir = ROOT_DIR / tools_dir

        port = os.environ.get("PORT") or cfg.get("port", cls.port)
        try:
            port = int(port)
        except (TypeError, ValueError):
            raise ConfigError(f"Invalid port value: {port!r}") from None

        return cls(
            server_name=cfg.get("server_name", cls.server_name),
            server_title=cfg.get("server_title", cls.server_title),
            server_version=str(cfg.get("server_version", cls.server_version)),
            host=os.environ.get("HOST") or cfg.get("host", cls.host),
            port=port,
            tools_dir=tools_dir,
            message_path=cfg.get("message_path", cls.message_path),
            debug=_env_flag(os.environ.get("MCP_DEBUG"), bool(cfg.get("debug", False))),
        )
