"""Size the materialized payload and upload it into a storage pool."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Protocol
from xml.etree.ElementTree import Element, SubElement, tostring

from ignition_injector.exceptions import IgnitionError, UploadFailure
from ignition_injector.models import ConfigurationSource, VolumeDescriptor
from ignition_injector.resolver import materialized
from ignition_injector.utils import Logger, log


class VolumeStorage(Protocol):
    def create_and_upload_volume(self, pool_name: str, descriptor: VolumeDescriptor, local_path: Path) -> str:
        ...


def describe_volume(path: Path, name: str, pool: str) -> VolumeDescriptor:
    try:
        size = os.stat(path).st_size
    except OSError as exc:
        raise UploadFailure(f"Cannot determine size of Ignition file {path}: {exc}") from exc
    return VolumeDescriptor(name=name, pool=pool, capacity=size)


def render_volume_xml(descriptor: VolumeDescriptor) -> str:
    volume = Element("volume")
    SubElement(volume, "name").text = descriptor.name
    capacity = SubElement(volume, "capacity", unit=descriptor.unit)
    capacity.text = str(descriptor.capacity)
    target = SubElement(volume, "target")
    SubElement(target, "format", type=descriptor.format)
    return tostring(volume, encoding="unicode")


def package_and_upload(
    storage: VolumeStorage,
    path: Path,
    name: str,
    pool: str,
    logger: Logger = log,
) -> str:
    """Upload *path* as a raw volume and return the pool's identifier for it."""
    descriptor = describe_volume(path, name, pool)
    logger("INFO", f"Uploading Ignition volume {name} ({descriptor.capacity} B) to pool {pool}")
    try:
        key = storage.create_and_upload_volume(pool, descriptor, path)
    except UploadFailure:
        raise
    except (IgnitionError, OSError) as exc:
        raise UploadFailure(f"Failed to upload volume '{name}' to pool '{pool}': {exc}") from exc
    logger("SUCCESS", f"Ignition volume uploaded: {key}")
    return key


def upload_ignition(
    storage: VolumeStorage,
    source: ConfigurationSource,
    name: str,
    pool: str,
    logger: Logger = log,
) -> str:
    with materialized(source, name, logger) as path:
        return package_and_upload(storage, path, name, pool, logger)
