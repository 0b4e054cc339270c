"""Configuration management module.

This module handles persistent configuration storage using TOML format.
Stores user preferences like the output directory for parsed trees and
default crawl limits.

Security:
- Config file permissions: 0600 (owner read/write only)
- Path validation
"""

import logging
import os
import tempfile
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

try:
    import tomli  # type: ignore[import]
except ImportError:
    # Fallback for older Python versions
    try:
        import tomllib as tomli  # type: ignore[import]
    except ImportError as e:
        raise ImportError("toml library not available. Install with: pip install tomli") from e

try:
    import tomlkit
except ImportError as e:
    raise ImportError("tomlkit library not available. Install with: pip install tomlkit") from e

logger = logging.getLogger(__name__)

_SETTING_TYPES = {"output_dir": str, "max_depth": int, "probe_timeout": float}


class ConfigError(Exception):
    """Raised when configuration operations fail."""

    pass


@dataclass
class HelpTreeConfig:
    """helptree configuration data."""

    output_dir: str = "out"
    max_depth: int | None = None  # None -> crawl default / environment
    probe_timeout: float | None = None  # None -> no timeout

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        data = asdict(self)
        # Filter out None values as TOML doesn't support them
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HelpTreeConfig":
        """Create from dictionary."""
        return cls(
            output_dir=data.get("output_dir", "out"),
            max_depth=data.get("max_depth"),
            probe_timeout=data.get("probe_timeout"),
        )


class ConfigManager:
    """Manage helptree configuration file.

    Configuration is stored at ~/.helptree/config.toml with secure permissions.
    """

    DEFAULT_CONFIG_DIR = Path.home() / ".helptree"
    DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"

    @classmethod
    def _validate_config_path(cls, path: Path) -> Path:
        """Validate configuration file path.

        Ensures the path is within ~/.helptree/, the current working
        directory or the system temporary directory.

        Raises:
            ConfigError: If path is outside allowed directories
        """
        resolved_path = path.resolve()

        allowed_dirs = [
            cls.DEFAULT_CONFIG_DIR.resolve(),
            Path.cwd().resolve(),
            Path(tempfile.gettempdir()).resolve(),
        ]

        for allowed_dir in allowed_dirs:
            try:
                resolved_path.relative_to(allowed_dir)
                return resolved_path
            except ValueError:
                continue

        raise ConfigError(
            f"Config path outside allowed directories: {resolved_path}\n"
            f"Allowed directories:\n"
            f"  - {cls.DEFAULT_CONFIG_DIR}\n"
            f"  - {Path.cwd()}"
        )

    @classmethod
    def get_config_path(cls, custom_path: str | None = None) -> Path:
        """Get configuration file path.

        Args:
            custom_path: Custom config file path (optional)

        Returns:
            Path to config file

        Raises:
            ConfigError: If path is invalid or outside allowed directories
        """
        if custom_path:
            path = cls._validate_config_path(Path(custom_path).expanduser())
            if not path.exists():
                raise ConfigError(f"Config file not found: {path}")
            return path

        return cls.DEFAULT_CONFIG_FILE

    @classmethod
    def ensure_config_dir(cls) -> Path:
        """Ensure config directory exists with secure permissions.

        Raises:
            ConfigError: If directory creation fails
        """
        try:
            cls.DEFAULT_CONFIG_DIR.mkdir(parents=True, exist_ok=True)
            os.chmod(cls.DEFAULT_CONFIG_DIR, 0o700)
            logger.debug(f"Config directory ready: {cls.DEFAULT_CONFIG_DIR}")
            return cls.DEFAULT_CONFIG_DIR
        except OSError as e:
            raise ConfigError(f"Failed to create config directory: {e}") from e

    @classmethod
    def load_config(cls, custom_path: str | None = None) -> HelpTreeConfig:
        """Load configuration from file.

        Args:
            custom_path: Custom config file path (optional)

        Returns:
            HelpTreeConfig object (defaults when no file exists)

        Raises:
            ConfigError: If loading fails
        """
        config_path = cls.get_config_path(custom_path)

        if not config_path.exists():
            logger.debug("Config file not found, using defaults")
            return HelpTreeConfig()

        try:
            mode = config_path.stat().st_mode & 0o777
            if mode & 0o077:
                logger.warning(
                    f"Config file has insecure permissions: {oct(mode)}. Fixing to 0600..."
                )
                os.chmod(config_path, 0o600)

            with open(config_path, "rb") as f:
                data = tomli.load(f)  # type: ignore[attr-defined]

            logger.debug(f"Loaded config from: {config_path}")
            return HelpTreeConfig.from_dict(data)

        except Exception as e:
            raise ConfigError(f"Failed to load config: {e}") from e

    @classmethod
    def save_config(cls, config: HelpTreeConfig, custom_path: str | None = None) -> Path:
        """Save configuration to file.

        Existing comments and formatting are preserved.

        Raises:
            ConfigError: If saving fails or path is outside allowed directories
        """
        temp_path: Path | None = None
        try:
            if custom_path:
                config_path = cls._validate_config_path(Path(custom_path).expanduser())
                config_path.parent.mkdir(parents=True, exist_ok=True)
            else:
                cls.ensure_config_dir()
                config_path = cls.DEFAULT_CONFIG_FILE

            temp_path = config_path.with_suffix(".tmp")

            if config_path.exists():
                with open(config_path) as f:
                    doc = tomlkit.load(f)
            else:
                doc = tomlkit.document()

            values = config.to_dict()
            for key in HelpTreeConfig.__dataclass_fields__:
                if key in values:
                    doc[key] = values[key]
                elif key in doc:
                    del doc[key]

            with open(temp_path, "w") as f:
                tomlkit.dump(doc, f)

            os.chmod(temp_path, 0o600)
            temp_path.replace(config_path)

            logger.debug(f"Saved config to: {config_path}")
            return config_path

        except Exception as e:
            if temp_path and temp_path.exists():
                temp_path.unlink()
            raise ConfigError(f"Failed to save config: {e}") from e

    @classmethod
    def update_config(cls, custom_path: str | None = None, **updates: Any) -> HelpTreeConfig:
        """Update configuration values.

        Raises:
            ConfigError: If update fails
        """
        config = cls.load_config(custom_path)

        for key, value in updates.items():
            if hasattr(config, key):
                setattr(config, key, value)
            else:
                logger.warning(f"Unknown config key: {key}")

        cls.save_config(config, custom_path)
        return config

    @classmethod
    def parse_setting(cls, setting: str) -> tuple[str, Any]:
        """Parse a "key=value" setting into a typed config value.

        An empty value resets the key to its default.

        Raises:
            ConfigError: If the format, key or value is invalid
        """
        key, sep, raw = setting.partition("=")
        key, raw = key.strip(), raw.strip()
        if not sep or not key:
            raise ConfigError(f"Invalid setting format: {setting} (use key=value)")
        if key not in _SETTING_TYPES:
            raise ConfigError(f"Unknown config key: {key}")

        if not raw:
            return key, HelpTreeConfig.__dataclass_fields__[key].default

        try:
            value = _SETTING_TYPES[key](raw)
        except ValueError as e:
            raise ConfigError(f"Invalid value for {key}: {raw}") from e

        if key == "max_depth" and value < 0:
            raise ConfigError(f"max_depth must be >= 0, got {value}")
        if key == "probe_timeout" and value <= 0:
            raise ConfigError(f"probe_timeout must be positive, got {value}")
        return key, value


__all__ = ["ConfigError", "ConfigManager", "HelpTreeConfig"]
