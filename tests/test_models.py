"""Tests for ignition_injector.models module."""

from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest

from ignition_injector.models import ConfigurationSource, GuestfishHandle, InjectorConfig, VolumeDescriptor


class TestConfigurationSource:
    def test_defaults_to_sniffing(self):
        assert ConfigurationSource("{}").kind is None

    @pytest.mark.parametrize("kind", ["file", "inline"])
    def test_explicit_kinds(self, kind):
        assert ConfigurationSource("{}", kind).kind == kind

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="Unknown configuration source kind 'url'"):
            ConfigurationSource("https://example.com/x.ign", "url")

    def test_repr_hides_content(self):
        source = ConfigurationSource('{"passwd": {"users": [{"passwordHash": "x"}]}}', "inline")
        assert "passwordHash" not in repr(source)
        assert "inline" in repr(source)


class TestVolumeDescriptor:
    def test_defaults(self):
        desc = VolumeDescriptor(name="worker-0.ign", pool="default", capacity=42)
        assert desc.unit == "B"
        assert desc.format == "raw"

    def test_frozen(self):
        desc = VolumeDescriptor(name="worker-0.ign", pool="default", capacity=42)
        with pytest.raises(FrozenInstanceError):
            desc.capacity = 0


class TestGuestfishHandle:
    def test_is_named_tuple(self):
        handle = GuestfishHandle("GUESTFISH_PID", "4513")
        assert handle[0] == "GUESTFISH_PID"
        assert handle[1] == "4513"

    def test_env_and_str(self):
        handle = GuestfishHandle("GUESTFISH_PID", "4513")
        assert handle.env() == {"GUESTFISH_PID": "4513"}
        assert str(handle) == "GUESTFISH_PID=4513"


class TestInjectorConfig:
    def test_creation(self):
        cfg = InjectorConfig(
            libvirt_uri="qemu:///system",
            pool="default",
            arch="x86_64",
            guestfish="guestfish",
            guestfish_sudo=False,
            secret_dir=Path("/etc/libvirt-ignition/secrets"),
            namespace="default",
        )
        assert cfg.log_verbose is False
        cfg.pool = "images"
        assert cfg.pool == "images"
