"""Tests for ignition_injector.domain module."""

from __future__ import annotations

from xml.etree.ElementTree import fromstring

import pytest

from ignition_injector.constants import QEMU_NS
from ignition_injector.domain import DomainDefinition
from ignition_injector.exceptions import DomainDefinitionError


class TestParsing:
    def test_name(self, domain_xml):
        assert DomainDefinition.from_xml(domain_xml).name == "worker-0"

    def test_invalid_xml(self):
        with pytest.raises(DomainDefinitionError, match="Invalid domain XML"):
            DomainDefinition.from_xml("<domain>")

    def test_wrong_root(self):
        with pytest.raises(DomainDefinitionError, match="Expected a <domain>"):
            DomainDefinition.from_xml("<network/>")


class TestFirstDiskFile:
    def test_returns_first_disk(self, domain_xml):
        domain = DomainDefinition.from_xml(domain_xml)
        assert domain.first_disk_file() == "/var/lib/libvirt/images/worker-0.qcow2"

    def test_no_disks(self):
        domain = DomainDefinition.from_xml("<domain><name>d</name><devices/></domain>")
        with pytest.raises(DomainDefinitionError, match="has no disk devices"):
            domain.first_disk_file()

    def test_block_backed_disk(self):
        domain = DomainDefinition.from_xml(
            "<domain><name>d</name><devices><disk type='block'><source dev='/dev/sdb'/></disk></devices></domain>"
        )
        with pytest.raises(DomainDefinitionError, match="not backed by a file"):
            domain.first_disk_file()


class TestQemuArgs:
    def test_empty_without_commandline(self, domain_xml):
        assert DomainDefinition.from_xml(domain_xml).qemu_args == []

    def test_append_creates_commandline(self, domain_xml):
        domain = DomainDefinition.from_xml(domain_xml)
        domain.append_qemu_args(["-fw_cfg", "name=opt/x,file=/tmp/y"])
        assert domain.qemu_args == ["-fw_cfg", "name=opt/x,file=/tmp/y"]

    def test_append_preserves_existing(self):
        xml = (
            f"<domain xmlns:qemu='{QEMU_NS}'><name>d</name>"
            "<qemu:commandline><qemu:arg value='-global'/><qemu:arg value='x=1'/></qemu:commandline>"
            "</domain>"
        )
        domain = DomainDefinition.from_xml(xml)
        domain.append_qemu_args(["-fw_cfg", "v"])
        assert domain.qemu_args == ["-global", "x=1", "-fw_cfg", "v"]
        assert len(domain.root.findall(f"{{{QEMU_NS}}}commandline")) == 1


class TestToXml:
    def test_round_trips_with_qemu_prefix(self, domain_xml):
        domain = DomainDefinition.from_xml(domain_xml)
        domain.append_qemu_args(["-fw_cfg", "name=opt/com.coreos/config,file=/pool/worker-0.ign"])
        xml = domain.to_xml()
        assert "xmlns:qemu" in xml
        assert "<qemu:commandline>" in xml
        assert not xml.startswith("<?xml")
        reparsed = DomainDefinition.from_xml(xml)
        assert reparsed.qemu_args == domain.qemu_args
        assert reparsed.first_disk_file() == "/var/lib/libvirt/images/worker-0.qcow2"

    def test_no_blank_lines_from_reformatting(self, domain_xml):
        xml = DomainDefinition.from_xml(domain_xml).to_xml()
        assert all(line.strip() for line in xml.splitlines())
        assert fromstring(xml).tag == "domain"
