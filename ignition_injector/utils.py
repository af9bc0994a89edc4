"""Utility functions for libvirt-ignition."""

from __future__ import annotations

import os
import shlex
from pathlib import Path
from typing import Callable, Optional, Sequence

from ignition_injector.constants import _LOG_VERBOSE, ARCH_ALIASES, DELIVERY_STRATEGIES, TRUTHY
from ignition_injector.exceptions import InvalidConfiguration

Logger = Callable[[str, str], None]

_verbose = _LOG_VERBOSE


def set_verbose(enabled: bool) -> None:
    global _verbose
    _verbose = enabled


def log(level: str, message: str) -> None:
    """Lightweight structured logging compatible with existing colour expectation."""
    if level == "DEBUG" and not _verbose:
        return
    colours = {
        "INFO": "\033[0;34m",
        "WARN": "\033[1;33m",
        "ERROR": "\033[0;31m",
        "SUCCESS": "\033[0;32m",
        "DEBUG": "\033[0;90m",
    }
    colour = colours.get(level, "")
    reset = "\033[0m" if colour else ""
    print(f"{colour}[{level}]{reset} {message}", flush=True)


def get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(name, default)


def get_env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.lower() in TRUTHY


def normalize_arch(raw: str) -> str:
    arch = raw.strip().lower()
    arch = ARCH_ALIASES.get(arch, arch)
    if arch not in DELIVERY_STRATEGIES:
        supported = ", ".join(sorted(DELIVERY_STRATEGIES))
        raise InvalidConfiguration(f"Unsupported architecture '{raw}'. Supported: {supported}")
    return arch


def format_cmdline(cmd: Sequence[str]) -> str:
    """Format a command line for logging and error messages."""
    return " ".join(shlex.quote(str(part)) for part in cmd)


def remove_file(path: Path, logger: Logger = log) -> None:
    """Remove a file, logging instead of raising on failure."""
    try:
        path.unlink()
    except FileNotFoundError:
        return
    except OSError as exc:
        logger("WARN", f"Error while removing temporary file {path}: {exc}")
