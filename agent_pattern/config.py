"""

Supports TOML configuration files with named LLM sections:
    [llm.default]            # Used when no config name is given
    model = "gpt-4o-mini"
    base_url = "https://api.openai.com/v1"
    api_key_env = "OPENAI_API_KEY"

    [llm.gemini]             # Any other named configuration
    model = "gemini-2.0-flash"
    base_url = "https://generativelanguage.googleapis.com/v1beta/openai/"
    api_key_env = "GEMINI_API_KEY"

    [history]
    backend = "memory"

    [log]
    print_level = "INFO"
"""
import threading
import tomllib
from pathlib import Path
from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field, ValidationError


def get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).resolve().parent.parent


PROJECT_ROOT = get_project_root()


class LLMSettings(BaseModel):
    """LLM configuration settings."""

    model: str = Field(..., description="Model name")
    base_url: Optional[str] = Field(None, description="API base URL (None uses the OpenAI default)")
    api_key: Optional[str] = Field(None, description="API key; takes precedence over api_key_env")
    api_key_env: str = Field("OPENAI_API_KEY", description="Environment variable holding the API key")
    max_tokens: int = Field(4096, description="Maximum number of tokens per request")
    temperature: float = Field(1.0, description="Sampling temperature")
    timeout: int = Field(60, description="Request timeout in seconds")


class HistorySettings(BaseModel):
    """Chat history store settings."""

    backend: Literal["memory", "sqlite"] = Field("memory", description="History backend")
    db_path: str = Field("data/history.db", description="SQLite file, relative to the project root")
    limit: int = Field(10, description="Default number of past messages fed back to an agent")


class LogSettings(BaseModel):
    """Logging settings."""

    print_level: str = Field("INFO", description="Console log level")
    logfile_level: str = Field("DEBUG", description="File log level")
    enable_file: bool = Field(False, description="Write logs under PROJECT_ROOT/logs")


class AppConfig(BaseModel):
    """Application configuration."""

    llm: Dict[str, LLMSettings] = Field(default_factory=dict)
    history: HistorySettings = Field(default_factory=HistorySettings)
    log: LogSettings = Field(default_factory=LogSettings)


class Config:
    """
    Configuration manager with singleton pattern.

    Usage:
        from agent_pattern.config import config
        settings = config.get_llm_config("default")
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        """Singleton pattern implementation."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize configuration (only once)."""
        if not self._initialized:
            with self._lock:
                if not self._initialized:
                    self._load_config()
                    self._initialized = True

    @staticmethod
    def _get_config_path() -> Optional[Path]:
        """
        Get configuration file path.

        Returns:
            Path to config.toml or config.example.toml, None if neither exists
        """
        config_dir = PROJECT_ROOT / "config"
        for filename in ("config.toml", "config.example.toml"):
            path = config_dir / filename
            if path.exists():
                return path
        return None

    def _load_config_file(self) -> dict:
        """Load and parse the TOML configuration file."""
        config_path = self._get_config_path()
        if config_path is None:
            return {}
        try:
            with config_path.open("rb") as f:
                return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML format in {config_path}: {e}") from e

    @staticmethod
    def _parse_llm_config(raw_config: dict) -> Dict[str, LLMSettings]:
        """
        Parse named [llm.<name>] sections.

        Args:
            raw_config: Raw TOML configuration dictionary

        Returns:
            Dictionary mapping config names to LLMSettings objects
        """
        llm_section = raw_config.get("llm", {})
        configs = {}
        for name, config_dict in llm_section.items():
            if not isinstance(config_dict, dict):
                continue
            try:
                configs[name] = LLMSettings(**config_dict)
            except ValidationError as e:
                raise ValueError(f"Invalid configuration for '{name}': {e}") from e

        if configs and "default" not in configs:
            configs["default"] = next(iter(configs.values()))
        return configs

    def _load_config(self):
        """Load and validate configuration."""
        raw_config = self._load_config_file()
        try:
            self._config = AppConfig(
                llm=self._parse_llm_config(raw_config),
                history=HistorySettings(**raw_config.get("history", {})),
                log=LogSettings(**raw_config.get("log", {})),
            )
        except ValidationError as e:
            raise ValueError(f"Configuration validation failed: {e}") from e

    @property
    def llm(self) -> Dict[str, LLMSettings]:
        """Get LLM configurations keyed by name."""
        return self._config.llm

    @property
    def history(self) -> HistorySettings:
        return self._config.history

    @property
    def log(self) -> LogSettings:
        return self._config.log

    def get_llm_config(self, name: str = "default") -> LLMSettings:
        """
        Get LLM configuration by name.

        Raises:
            KeyError: If configuration name not found
        """
        if name not in self.llm:
            available = ", ".join(self.llm.keys()) or "none"
            raise KeyError(
                f"LLM configuration '{name}' not found. "
                f"Available: {available}"
            )
        return self.llm[name]

    def reload(self):
        """Reload configuration from file (useful for testing)."""
        with self._lock:
            self._load_config()


# Global singleton instance
config = Config()
