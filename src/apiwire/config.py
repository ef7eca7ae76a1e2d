"""Configuration management: XDG paths, YAML loading, and service discovery.

This module handles everything between the files on disk and a validated
:class:`~apiwire.models.ServiceConfig`:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.apiwire/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`.
* **Parsing** -- :func:`parse_yaml` / :func:`load_yaml_config` turn one YAML
  file into a validated :class:`~apiwire.models.ServiceConfig`.
* **Discovery** -- :func:`discover_configs` scans the global config
  directory and the project-local ``./.apiwire/`` directory for ``*.yaml``
  and ``*.yml`` files.
* **Precedence** -- :func:`merge_configs` lets a local file replace a global
  file with the same ``serviceName``. Replacement is whole-service; fields
  are never merged.

Environment placeholders are *not* substituted here; see
:func:`apiwire.env.resolve_service_config`. :func:`load_service_config`
applies it by default for convenience.
"""

from __future__ import annotations

import logging
import os
import platform
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from apiwire.env import resolve_service_config
from apiwire.exceptions import ConfigError, ConfigNotFoundError, ConfigParseError, ErrorCode
from apiwire.models import ConfigFile, ServiceConfig

logger = logging.getLogger(__name__)

_APP_NAME = "apiwire"
_LOCAL_DIRNAME = ".apiwire"
_YAML_SUFFIXES = (".yaml", ".yml")


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the global service-config directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/apiwire/`` (default ``~/.config/apiwire/``).
    On macOS/Windows: ``~/.apiwire/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_local_config_dir() -> Path:
    """Return the project-local service-config directory (``./.apiwire/``).

    Unlike the global directory this one is never created implicitly.
    """
    return Path.cwd() / _LOCAL_DIRNAME


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Used to store API response caches. Cached data can be safely deleted
    at any time.

    On Linux/BSD: ``$XDG_CACHE_HOME/apiwire/`` (default ``~/.cache/apiwire/``).
    On macOS/Windows: ``~/.apiwire/cache/``.

    Returns:
        Absolute path to the cache directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/apiwire/`` (default ``~/.local/share/apiwire/``).
    On macOS/Windows: ``~/.apiwire/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- YAML parsing ---


def _format_validation_error(exc: ValidationError) -> str:
    lines = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ())) or "(root)"
        lines.append(f"  - {loc}: {err.get('msg', 'invalid value')}")
    return "\n".join(lines)


def parse_yaml(content: str, source: str = "<string>") -> ServiceConfig:
    """Parse YAML *content* into a validated :class:`~apiwire.models.ServiceConfig`.

    Args:
        content: Raw YAML text.
        source: File path (or other label) used in error messages.

    Returns:
        The validated service configuration. Placeholders are left as-is.

    Raises:
        ConfigParseError: If the text is not well-formed YAML.
        ConfigError: If the document is not a mapping or fails validation.
    """
    try:
        data: Any = yaml.safe_load(content)
    except yaml.YAMLError as exc:
        raise ConfigParseError(f"YAML parsing error in {source}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Invalid YAML structure in {source}: expected a mapping")

    try:
        return ServiceConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(
            f"Invalid configuration in {source}:\n{_format_validation_error(exc)}",
            details={"file": source, "errors": len(exc.errors())},
        ) from exc


def load_yaml_config(path: str | Path) -> ServiceConfig:
    """Read and parse a single service YAML file.

    Raises:
        ConfigNotFoundError: If the file does not exist.
        ConfigParseError: If the file cannot be read or is malformed YAML.
        ConfigError: If the configuration fails validation.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise ConfigNotFoundError(f"Configuration file not found: {file_path}")
    logger.debug("Loading YAML config from %s", file_path)
    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigParseError(f"Failed to read config file {file_path}: {exc}") from exc
    return parse_yaml(content, str(file_path))


# --- Discovery ---


def list_config_files(directory: str | Path) -> list[Path]:
    """Return the ``*.yaml`` / ``*.yml`` files directly inside *directory*, sorted."""
    dir_path = Path(directory)
    if not dir_path.is_dir():
        return []
    return [
        path
        for path in sorted(dir_path.iterdir())
        if path.is_file() and path.suffix.lower() in _YAML_SUFFIXES
    ]


def config_search_dirs(config_dir: Optional[str | Path] = None) -> list[tuple[Path, bool]]:
    """Return ``(directory, is_global)`` pairs in precedence order (lowest first)."""
    if config_dir is not None:
        return [(Path(config_dir), False)]
    return [(get_config_dir(), True), (get_local_config_dir(), False)]


def discover_configs_in_dir(directory: str | Path, is_global: bool) -> list[ConfigFile]:
    """Load every ``*.yaml`` / ``*.yml`` file in *directory*, sorted by name.

    Files that fail to load are logged and skipped so that one broken file
    does not hide every other service. A missing directory yields ``[]``.
    """
    configs: list[ConfigFile] = []
    for file_path in list_config_files(directory):
        try:
            config = load_yaml_config(file_path)
        except ConfigError as exc:
            logger.warning("Skipping config %s: %s", file_path, exc)
            continue
        configs.append(ConfigFile(path=str(file_path), config=config, is_global=is_global))
        logger.debug("Loaded config %s (service: %s)", file_path, config.service_name)
    return configs


def discover_configs(
    config_dir: Optional[str | Path] = None,
) -> tuple[list[ConfigFile], list[ConfigFile]]:
    """Discover service files in the global and project-local directories.

    Args:
        config_dir: When given, only this directory is scanned and its files
            are reported as local.

    Returns:
        A tuple of ``(global_files, local_files)``.
    """
    global_files: list[ConfigFile] = []
    local_files: list[ConfigFile] = []
    for directory, is_global in config_search_dirs(config_dir):
        found = discover_configs_in_dir(directory, is_global=is_global)
        (global_files if is_global else local_files).extend(found)
    logger.debug(
        "Discovered %d global and %d local configs", len(global_files), len(local_files)
    )
    return global_files, local_files


def merge_configs(
    global_files: list[ConfigFile], local_files: list[ConfigFile]
) -> dict[str, ServiceConfig]:
    """Merge discovered files into one map keyed by ``serviceName``.

    Local definitions replace global ones with the same name as a whole.
    """
    services: dict[str, ServiceConfig] = {}
    for config_file in global_files:
        services[config_file.config.service_name] = config_file.config
    for config_file in local_files:
        name = config_file.config.service_name
        if name in services:
            logger.debug("Local config overrides global config for service %s", name)
        services[name] = config_file.config
    return services


def load_all_configs(config_dir: Optional[str | Path] = None) -> dict[str, ServiceConfig]:
    """Return every discoverable service (unresolved), keyed by name."""
    global_files, local_files = discover_configs(config_dir)
    return merge_configs(global_files, local_files)


def find_service_config(
    service_name: str, config_dir: Optional[str | Path] = None
) -> Optional[ServiceConfig]:
    """Return the effective (unresolved) configuration for *service_name*, or ``None``."""
    return load_all_configs(config_dir).get(service_name)


def load_service_config(
    service_name: str,
    config_dir: Optional[str | Path] = None,
    resolve: bool = True,
) -> ServiceConfig:
    """Find a service by name and, by default, resolve its placeholders.

    Raises:
        ConfigNotFoundError: With code ``SERVICE_NOT_FOUND`` if no file
            declares *service_name*.
        EnvVarNotFoundError: If *resolve* is set and a placeholder is unset.
    """
    config = find_service_config(service_name, config_dir)
    if config is None:
        raise ConfigNotFoundError(
            f"Service '{service_name}' not found",
            code=ErrorCode.SERVICE_NOT_FOUND,
            help="Run 'apiwire list services' to see available services",
        )
    return resolve_service_config(config) if resolve else config
