"""libvirt-backed storage pool and domain access."""

from __future__ import annotations

from pathlib import Path
from typing import BinaryIO

try:
    import libvirt  # type: ignore
except ImportError as exc:  # pragma: no cover
    raise SystemExit(f"libvirt python bindings not available: {exc}")

from ignition_injector.constants import LIBVIRT_URI
from ignition_injector.exceptions import DomainDefinitionError, UploadFailure
from ignition_injector.models import VolumeDescriptor
from ignition_injector.utils import Logger, log
from ignition_injector.volume import render_volume_xml


def _error_message(exc: Exception) -> str:
    return exc.get_error_message() if hasattr(exc, "get_error_message") else str(exc)


def _send_chunk(stream, nbytes: int, fileobj: BinaryIO) -> bytes:
    return fileobj.read(nbytes)


class LibvirtStorage:
    def __init__(self, conn: "libvirt.virConnect", logger: Logger = log) -> None:
        self.conn = conn
        self.logger = logger

    def close(self) -> None:
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def create_and_upload_volume(self, pool_name: str, descriptor: VolumeDescriptor, local_path: Path) -> str:
        try:
            pool = self.conn.storagePoolLookupByName(pool_name)
        except libvirt.libvirtError as exc:
            raise UploadFailure(f"Storage pool '{pool_name}' not found: {_error_message(exc)}") from exc

        try:
            pool.refresh(0)
        except libvirt.libvirtError as exc:
            self.logger("WARN", f"Storage pool '{pool_name}' refresh failed: {_error_message(exc)}")

        try:
            existing = pool.storageVolLookupByName(descriptor.name)
        except libvirt.libvirtError:
            existing = None
        if existing is not None:
            raise UploadFailure(f"Storage volume '{descriptor.name}' already exists in pool '{pool_name}'")

        xml = render_volume_xml(descriptor)
        self.logger("DEBUG", f"Creating volume in pool {pool_name}: {xml}")
        try:
            volume = pool.createXML(xml, 0)
        except libvirt.libvirtError as exc:
            raise UploadFailure(
                f"Error creating volume '{descriptor.name}' in pool '{pool_name}': {_error_message(exc)}"
            ) from exc

        stream = self.conn.newStream(0)
        try:
            volume.upload(stream, 0, descriptor.capacity, 0)
            with open(local_path, "rb") as src:
                stream.sendAll(_send_chunk, src)
            stream.finish()
        except (libvirt.libvirtError, OSError) as exc:
            try:
                stream.abort()
            except libvirt.libvirtError as abort_exc:
                self.logger("WARN", f"Aborting upload stream failed: {_error_message(abort_exc)}")
            message = _error_message(exc) if isinstance(exc, libvirt.libvirtError) else str(exc)
            raise UploadFailure(
                f"Error uploading {local_path} to volume '{descriptor.name}' in pool '{pool_name}': {message}"
            ) from exc

        return volume.key()

    def domain_xml(self, name: str) -> str:
        try:
            domain = self.conn.lookupByName(name)
        except libvirt.libvirtError as exc:
            raise DomainDefinitionError(f"Domain '{name}' not found: {_error_message(exc)}") from exc
        return domain.XMLDesc(0)

    def define_domain(self, xml: str) -> None:
        try:
            domain = self.conn.defineXML(xml)
        except libvirt.libvirtError as exc:
            raise DomainDefinitionError(f"Failed to define libvirt domain: {_error_message(exc)}") from exc
        if domain is None:
            raise DomainDefinitionError("Failed to define libvirt domain")


def open_storage(uri: str = LIBVIRT_URI, logger: Logger = log) -> LibvirtStorage:
    try:
        conn = libvirt.open(uri)
    except libvirt.libvirtError as exc:
        raise UploadFailure(f"Failed to open libvirt connection to {uri}: {_error_message(exc)}") from exc
    if conn is None:
        raise UploadFailure(f"Failed to open libvirt connection to {uri}")
    return LibvirtStorage(conn, logger)
