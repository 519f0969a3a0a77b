"""Configuration system for clone capture.

This module provides configuration management for the clone pipeline,
including YAML loading, validation, and environment-specific overrides.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .browser_factory import DEFAULT_CHROMIUM_ARGS, BrowserConfig, BrowserEngineType
from .engine import CloneEngineConfig, ClonePipeline
from .errors import ConfigurationError
from .page_session import PageSessionConfig, WaitStrategy
from ..persistence.log_writer import DEFAULT_FILENAME_MAX_LENGTH

logger = logging.getLogger(__name__)


ENV_VAR = "WEBCLONER_ENV"
DEFAULT_ENVIRONMENT = "production"


class BrowserSettings(BaseModel):
    """Browser section of the clone configuration."""

    engine: str = Field(default=BrowserEngineType.CHROMIUM, description="Browser engine")
    headless: bool = Field(default=True, description="Run without a visible window")
    args: List[str] = Field(default_factory=lambda: list(DEFAULT_CHROMIUM_ARGS), description="Launch switches")
    window_width: int = Field(default=1920, ge=1)
    window_height: int = Field(default=1080, ge=1)
    user_agent: Optional[str] = None
    ignore_https_errors: bool = False
    locale: Optional[str] = None

    @field_validator('engine')
    @classmethod
    def validate_engine(cls, v):
        valid_engines = {BrowserEngineType.CHROMIUM, BrowserEngineType.FIREFOX, BrowserEngineType.WEBKIT}
        if v.lower() not in valid_engines:
            raise ValueError(f"Engine must be one of: {valid_engines}")
        return v.lower()


class CaptureSettings(BaseModel):
    """Capture section of the clone configuration."""

    navigation_timeout_ms: int = Field(default=90000, gt=0)
    wait_until: str = Field(default=WaitStrategy.NETWORKIDLE)
    settle_delay_ms: int = Field(default=3000, ge=0)
    body_read_timeout_ms: int = Field(default=15000, gt=0)
    drain_timeout_ms: int = Field(default=10000, ge=0)
    capture_websockets: bool = True
    fail_on_navigation_timeout: bool = True

    @field_validator('wait_until')
    @classmethod
    def validate_wait_until(cls, v):
        valid_states = {
            WaitStrategy.NETWORKIDLE,
            WaitStrategy.LOAD,
            WaitStrategy.DOMCONTENTLOADED,
            WaitStrategy.COMMIT,
        }
        if v not in valid_states:
            raise ValueError(f"wait_until must be one of: {valid_states}")
        return v


class OutputSettings(BaseModel):
    """Output section of the clone configuration."""

    assets_dir: str = Field(default="assets", min_length=1)
    logs_dir: str = Field(default="logs", min_length=1)
    log_filename_max_length: int = Field(default=DEFAULT_FILENAME_MAX_LENGTH, gt=0)


class CloneConfig(BaseModel):
    """Root configuration for the clone pipeline."""

    environment: str = Field(default=DEFAULT_ENVIRONMENT, description="Environment name")
    browser: Dict[str, Any] = Field(default_factory=dict, description="Browser configuration")
    capture: Dict[str, Any] = Field(default_factory=dict, description="Capture configuration")
    output: Dict[str, Any] = Field(default_factory=dict, description="Output configuration")
    environments: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict,
        description="Environment-specific overrides"
    )

    @field_validator('environment')
    @classmethod
    def validate_environment(cls, v):
        valid_environments = {'production', 'staging', 'development', 'test'}
        if v not in valid_environments:
            raise ValueError(f"Environment must be one of: {valid_environments}")
        return v

    def _section(self, name: str) -> Dict[str, Any]:
        """Get a section with environment overrides applied."""
        config = dict(getattr(self, name) or {})
        env_config = self.environments.get(self.environment) or {}
        if name in env_config:
            config.update(env_config[name] or {})
        return config

    def get_browser_settings(self) -> BrowserSettings:
        try:
            return BrowserSettings(**self._section('browser'))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid browser configuration: {e}") from e

    def get_capture_settings(self) -> CaptureSettings:
        try:
            return CaptureSettings(**self._section('capture'))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid capture configuration: {e}") from e

    def get_output_settings(self) -> OutputSettings:
        try:
            return OutputSettings(**self._section('output'))
        except ValidationError as e:
            raise ConfigurationError(f"Invalid output configuration: {e}") from e

    def get_browser_config(self) -> BrowserConfig:
        """Get browser configuration with environment overrides applied."""
        settings = self.get_browser_settings()
        return BrowserConfig(
            engine=settings.engine,
            headless=settings.headless,
            args=settings.args,
            viewport={'width': settings.window_width, 'height': settings.window_height},
            user_agent=settings.user_agent,
            ignore_https_errors=settings.ignore_https_errors,
            locale=settings.locale,
        )

    def get_session_config(self) -> PageSessionConfig:
        """Get page session configuration with environment overrides applied."""
        return PageSessionConfig(**self.get_capture_settings().model_dump())

    def get_engine_config(self) -> CloneEngineConfig:
        """Get engine configuration with environment overrides applied."""
        output = self.get_output_settings()
        return CloneEngineConfig(
            browser_config=self.get_browser_config(),
            session_config=self.get_session_config(),
            assets_dir=output.assets_dir,
            logs_dir=output.logs_dir,
            log_filename_max_length=output.log_filename_max_length,
        )


class CloneConfigManager:
    """Manager for clone configuration loading and caching."""

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to clone config YAML file. Defaults to config/clone.yaml
        """
        if config_path is None:
            project_root = Path(__file__).parent.parent.parent
            config_path = project_root / "config" / "clone.yaml"

        self.config_path = Path(config_path)
        self._config: Optional[CloneConfig] = None
        self._loaded_env: Optional[str] = None

    def load_config(self, force_reload: bool = False) -> CloneConfig:
        """Load configuration from YAML file.

        A missing file yields the built-in defaults.

        Args:
            force_reload: Force reload even if already cached

        Returns:
            Loaded and validated configuration

        Raises:
            ConfigurationError: If the YAML is invalid or validation fails
        """
        current_env = os.environ.get(ENV_VAR, DEFAULT_ENVIRONMENT)

        if self._config is not None and not force_reload and current_env == self._loaded_env:
            return self._config

        config_data: Dict[str, Any] = {}
        if self.config_path.exists():
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    config_data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}") from e
            if not isinstance(config_data, dict):
                raise ConfigurationError(f"Configuration root must be a mapping: {self.config_path}")
        else:
            logger.debug(f"No configuration file at {self.config_path}, using defaults")

        if current_env != DEFAULT_ENVIRONMENT:
            config_data['environment'] = current_env

        try:
            self._config = CloneConfig(**config_data)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

        self._loaded_env = current_env
        logger.debug(f"Loaded clone configuration (environment={self._config.environment})")
        return self._config

    @property
    def config(self) -> CloneConfig:
        """Get current configuration, loading if necessary."""
        if self._config is None:
            return self.load_config()
        return self._config

    @property
    def environment(self) -> str:
        """Get current environment."""
        return self.config.environment

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == 'production'


# Global config manager instance
_config_manager: Optional[CloneConfigManager] = None


def get_config(config_path: Optional[Union[str, Path]] = None) -> CloneConfigManager:
    """Get global clone configuration manager.

    Args:
        config_path: Path to config file (only used on first call)

    Returns:
        Global CloneConfigManager instance
    """
    global _config_manager
    if _config_manager is None:
        _config_manager = CloneConfigManager(config_path)
    return _config_manager


def create_pipeline_from_config(config_path: Optional[Union[str, Path]] = None) -> ClonePipeline:
    """Create a clone pipeline from a YAML file.

    Args:
        config_path: Path to clone config YAML file

    Returns:
        Configured ClonePipeline instance
    """
    if config_path is not None:
        manager = CloneConfigManager(config_path)
    else:
        manager = get_config()
    return ClonePipeline(manager.config.get_engine_config())
