"""tmplcache configuration system.

Configuration is YAML-based with minimal CLI overrides (--no-cache).
Supports environment variable substitution (${VAR}) in config files.

Configuration file discovery (in priority order):
1. CLI --config argument
2. ./.tmplcache/config.yaml
3. ./tmplcache.yaml
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass
class TemplatesConfig:
    """Template source configuration.

    Attributes:
        directory: Template directory, or the path inside `package` when set
        package: Python package embedding the templates (None = filesystem)
        page_pattern: Glob matching page templates
        layout_pattern: Glob matching shared layout fragments
        autoescape: HTML-escape substituted values
    """

    directory: str = "templates"
    package: str | None = None
    page_pattern: str = "*.page.tmpl"
    layout_pattern: str = "*.layout.tmpl"
    autoescape: bool = True

    def __post_init__(self) -> None:
        """Validate template configuration."""
        if not self.directory:
            raise ValueError("Template directory must not be empty")
        if not self.page_pattern:
            raise ValueError("Template page_pattern must not be empty")
        if not self.layout_pattern:
            raise ValueError("Template layout_pattern must not be empty")


@dataclass
class AppConfig:
    """Top-level application configuration.

    Attributes:
        use_cache: Reuse compiled templates (production) or rebuild them on
            every render (development)
        templates: Template source settings
    """

    use_cache: bool = True
    templates: TemplatesConfig = field(default_factory=TemplatesConfig)

    # Runtime overrides (set by loader)
    _config_path: Path | None = field(default=None, repr=False)

    @property
    def config_path(self) -> Path | None:
        """Get the path to the config file that was loaded."""
        return self._config_path


# =============================================================================
# Environment Variable Substitution
# =============================================================================

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


def substitute_env_vars(value: Any) -> Any:
    """Substitute environment variables in config values.

    Supports ${VAR} syntax, e.g. ${TEMPLATE_DIR} -> value of TEMPLATE_DIR.

    Args:
        value: Config value (string, dict, list, or other)

    Returns:
        Value with environment variables substituted

    Raises:
        ValueError: If a referenced variable is not set
    """
    if isinstance(value, str):

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(f"Environment variable not set: {var_name}")
            return env_value

        return _ENV_VAR_PATTERN.sub(replace_var, value)

    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [substitute_env_vars(v) for v in value]

    return value


def _to_bool(value: Any, key: str) -> bool:
    """Coerce YAML/env values to bool ("true"/"false" strings come from ${VAR})."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "yes", "1", "on"}:
        return True
    if isinstance(value, str) and value.strip().lower() in {"false", "no", "0", "off"}:
        return False
    raise ValueError(f"Invalid boolean for {key}: {value!r}")


# =============================================================================
# Config File Discovery
# =============================================================================


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find configuration file in standard locations.

    Search order:
    1. ./.tmplcache/config.yaml
    2. ./tmplcache.yaml

    Args:
        start_path: Starting directory for search (defaults to cwd)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_path is None:
        start_path = Path.cwd()

    start_path = start_path.resolve()

    candidates = [
        start_path / ".tmplcache" / "config.yaml",
        start_path / "tmplcache.yaml",
    ]

    for candidate in candidates:
        if candidate.exists():
            return candidate

    return None


# =============================================================================
# Config Loading
# =============================================================================


def load_config_from_dict(data: dict[str, Any]) -> AppConfig:
    """Load configuration from a dictionary.

    Args:
        data: Configuration dictionary

    Returns:
        AppConfig instance

    Raises:
        ValueError: If a value is invalid or an env var is not set
    """
    data = substitute_env_vars(data)

    config = AppConfig()

    if "use_cache" in data:
        config.use_cache = _to_bool(data["use_cache"], "use_cache")

    if "templates" in data:
        templates_data = data["templates"] or {}
        defaults = config.templates
        config.templates = TemplatesConfig(
            directory=str(templates_data.get("directory", defaults.directory)),
            package=templates_data.get("package", defaults.package),
            page_pattern=templates_data.get("page_pattern", defaults.page_pattern),
            layout_pattern=templates_data.get("layout_pattern", defaults.layout_pattern),
            autoescape=_to_bool(
                templates_data.get("autoescape", defaults.autoescape),
                "templates.autoescape",
            ),
        )

    return config


def load_config(
    config_path: Path | None = None,
    auto_discover: bool = True,
) -> AppConfig:
    """Load configuration from file.

    Args:
        config_path: Explicit path to config file
        auto_discover: Whether to search for config file if not specified

    Returns:
        AppConfig instance

    Raises:
        FileNotFoundError: If config_path specified but doesn't exist
    """
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        found_path = config_path
    elif auto_discover:
        found_path = find_config_file()
    else:
        found_path = None

    if found_path is not None:
        with open(found_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        config = load_config_from_dict(data)
        config._config_path = found_path
    else:
        config = AppConfig()

    return config


def create_default_config() -> str:
    """Create default configuration YAML content.

    Returns:
        YAML string with default configuration and comments
    """
    return '''# tmplcache configuration

# Reuse compiled templates between renders. Turn off while editing templates
# so every render picks up changes from disk.
use_cache: true

templates:
  directory: "templates"        # or the path inside `package`
  # package: "myapp"            # load templates embedded in a Python package
  page_pattern: "*.page.tmpl"
  layout_pattern: "*.layout.tmpl"
  autoescape: true
'''
