"""libvirt domain XML access for the parts Ignition delivery touches."""

from __future__ import annotations

from typing import Iterable, List, Optional
from xml.dom.minidom import parseString
from xml.etree.ElementTree import Element, ParseError, SubElement, fromstring, register_namespace, tostring

from ignition_injector.constants import QEMU_NS
from ignition_injector.exceptions import DomainDefinitionError


def _strip_whitespace(element: Element) -> None:
    for node in element.iter():
        if node.text is not None and not node.text.strip():
            node.text = None
        if node.tail is not None and not node.tail.strip():
            node.tail = None


class DomainDefinition:
    """Mutable view of a domain definition.

    Only two things are exposed: the ``<qemu:commandline>`` argument list,
    which may be appended to, and the backing file of the first disk.
    """

    def __init__(self, root: Element) -> None:
        if root.tag != "domain":
            raise DomainDefinitionError(f"Expected a <domain> document, got <{root.tag}>")
        self.root = root

    @classmethod
    def from_xml(cls, text: str) -> "DomainDefinition":
        register_namespace("qemu", QEMU_NS)
        try:
            root = fromstring(text)
        except ParseError as exc:
            raise DomainDefinitionError(f"Invalid domain XML: {exc}") from exc
        return cls(root)

    @property
    def name(self) -> Optional[str]:
        name = self.root.findtext("name")
        return name.strip() if name else None

    def _commandline(self, create: bool = False) -> Optional[Element]:
        commandline = self.root.find(f"{{{QEMU_NS}}}commandline")
        if commandline is None and create:
            commandline = SubElement(self.root, f"{{{QEMU_NS}}}commandline")
        return commandline

    @property
    def qemu_args(self) -> List[str]:
        commandline = self._commandline()
        if commandline is None:
            return []
        return [arg.get("value", "") for arg in commandline.findall(f"{{{QEMU_NS}}}arg")]

    def append_qemu_args(self, tokens: Iterable[str]) -> None:
        commandline = self._commandline(create=True)
        for token in tokens:
            SubElement(commandline, f"{{{QEMU_NS}}}arg", value=token)

    def first_disk_file(self) -> str:
        disk = self.root.find("devices/disk")
        if disk is None:
            raise DomainDefinitionError(f"Domain {self.name or '<unnamed>'} has no disk devices")
        source = disk.find("source")
        path = source.get("file") if source is not None else None
        if not path:
            raise DomainDefinitionError(
                f"First disk of domain {self.name or '<unnamed>'} is not backed by a file"
            )
        return path

    def to_xml(self) -> str:
        register_namespace("qemu", QEMU_NS)
        _strip_whitespace(self.root)
        raw = tostring(self.root, encoding="unicode")
        return parseString(raw).toprettyxml(indent="  ").split("\n", 1)[1].rstrip()
