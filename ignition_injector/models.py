"""Data models for libvirt-ignition."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, NamedTuple, Optional

from ignition_injector.constants import VOLUME_FORMAT, VOLUME_UNIT

SOURCE_FILE = "file"
SOURCE_INLINE = "inline"


@dataclass
class ConfigurationSource:
    content: str
    # "file", "inline", or None to infer from the content
    kind: Optional[str] = None

    def __post_init__(self):
        if self.kind not in (None, SOURCE_FILE, SOURCE_INLINE):
            raise ValueError(f"Unknown configuration source kind '{self.kind}'")

    def __repr__(self) -> str:
        return f"ConfigurationSource(kind={self.kind!r}, length={len(self.content)})"


@dataclass(frozen=True)
class VolumeDescriptor:
    name: str
    pool: str
    capacity: int
    unit: str = VOLUME_UNIT
    format: str = VOLUME_FORMAT


class GuestfishHandle(NamedTuple):
    key: str
    value: str

    def env(self) -> Dict[str, str]:
        return {self.key: self.value}

    def __str__(self) -> str:
        return f"{self.key}={self.value}"


@dataclass
class InjectorConfig:
    libvirt_uri: str
    pool: str
    arch: str
    guestfish: str
    guestfish_sudo: bool
    secret_dir: Path
    namespace: str
    log_verbose: bool = False
