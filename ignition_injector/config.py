"""Configuration loading and environment variable parsing for libvirt-ignition."""

from __future__ import annotations

import os
import platform
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import yaml  # type: ignore
except ImportError as exc:  # pragma: no cover
    raise SystemExit("PyYAML is required but not installed") from exc

from ignition_injector.constants import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_NAMESPACE,
    DEFAULT_POOL,
    DEFAULT_SECRET_DIR,
    GUESTFISH,
    LIBVIRT_URI,
    TRUTHY,
)
from ignition_injector.exceptions import InvalidConfiguration
from ignition_injector.models import InjectorConfig
from ignition_injector.utils import get_env, normalize_arch

_SETTINGS_KEYS = {
    "libvirt_uri": "LIBVIRT_URI",
    "pool": "IGNITION_POOL",
    "arch": "ARCH",
    "guestfish": "GUESTFISH",
    "guestfish_sudo": "GUESTFISH_SUDO",
    "secret_dir": "SECRET_DIR",
    "namespace": "SECRET_NAMESPACE",
    "log_verbose": "LOG_VERBOSE",
}


def load_settings(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Read the optional YAML settings file; a missing default file is not an error."""
    explicit = config_path is not None or get_env("IGNITION_CONFIG") is not None
    if config_path is None:
        config_path = Path(get_env("IGNITION_CONFIG") or DEFAULT_CONFIG_PATH)
    if not config_path.exists():
        if explicit:
            raise InvalidConfiguration(f"Settings file missing: {config_path}")
        return {}
    try:
        data = yaml.safe_load(config_path.read_text()) or {}
    except yaml.YAMLError as exc:
        raise InvalidConfiguration(f"Invalid settings file {config_path}: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidConfiguration(f"Settings file {config_path} must contain a mapping")
    unknown = sorted(set(data) - set(_SETTINGS_KEYS))
    if unknown:
        raise InvalidConfiguration(f"Unknown settings in {config_path}: {', '.join(unknown)}")
    return data


def _setting(settings: Dict[str, Any], key: str, default: str) -> str:
    env_value = os.environ.get(_SETTINGS_KEYS[key])
    if env_value is not None and env_value.strip():
        return env_value.strip()
    if key in settings and settings[key] is not None:
        return str(settings[key]).strip()
    return default


def _bool_setting(settings: Dict[str, Any], key: str) -> bool:
    return _setting(settings, key, "false").lower() in TRUTHY


def parse_env(config_path: Optional[Path] = None) -> InjectorConfig:
    settings = load_settings(config_path)
    return InjectorConfig(
        libvirt_uri=_setting(settings, "libvirt_uri", LIBVIRT_URI),
        pool=_setting(settings, "pool", DEFAULT_POOL),
        arch=normalize_arch(_setting(settings, "arch", platform.machine())),
        guestfish=_setting(settings, "guestfish", GUESTFISH),
        guestfish_sudo=_bool_setting(settings, "guestfish_sudo"),
        secret_dir=Path(_setting(settings, "secret_dir", str(DEFAULT_SECRET_DIR))),
        namespace=_setting(settings, "namespace", DEFAULT_NAMESPACE),
        log_verbose=_bool_setting(settings, "log_verbose"),
    )
