"""Shared test fixtures."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from ignition_injector.process import CommandRunner

IGNITION_JSON = json.dumps({"ignition": {"version": "3.4.0"}, "passwd": {"users": [{"name": "core"}]}})

DOMAIN_XML = """<domain type='kvm' xmlns:qemu='http://libvirt.org/schemas/domain/qemu/1.0'>
  <name>worker-0</name>
  <memory unit='MiB'>2048</memory>
  <os>
    <type arch='s390x' machine='s390-ccw-virtio'>hvm</type>
  </os>
  <devices>
    <disk type='file' device='disk'>
      <driver name='qemu' type='qcow2'/>
      <source file='/var/lib/libvirt/images/worker-0.qcow2'/>
      <target dev='vda' bus='virtio'/>
    </disk>
    <disk type='file' device='disk'>
      <source file='/var/lib/libvirt/images/worker-0-data.qcow2'/>
      <target dev='vdb' bus='virtio'/>
    </disk>
  </devices>
</domain>
"""


@pytest.fixture
def ignition_json() -> str:
    return IGNITION_JSON


@pytest.fixture
def domain_xml() -> str:
    return DOMAIN_XML


@pytest.fixture
def fake_runner():
    """CommandRunner mock: ``run`` answers per subcommand, ``start`` yields a fake process."""
    runner = MagicMock(spec=CommandRunner)
    runner.read_output.return_value = "GUESTFISH_PID=4513; export GUESTFISH_PID\n"
    outputs = {"findfs-label": "/dev/sda1\n"}

    def _run(args, env=None):
        return outputs.get(args[2], "")

    runner.run.side_effect = _run
    runner.outputs = outputs
    return runner


@pytest.fixture
def mock_env(monkeypatch):
    """Helper to set environment variables for tests."""

    def _set(**kwargs):
        for key, value in kwargs.items():
            if value is None:
                monkeypatch.delenv(key, raising=False)
            else:
                monkeypatch.setenv(key, str(value))

    return _set


# All environment variables that parse_env() reads, used to ensure a clean slate.
_PARSE_ENV_VARS = [
    "LIBVIRT_URI",
    "IGNITION_POOL",
    "ARCH",
    "GUESTFISH",
    "GUESTFISH_SUDO",
    "SECRET_DIR",
    "SECRET_NAMESPACE",
    "LOG_VERBOSE",
    "IGNITION_CONFIG",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Clear all environment variables that parse_env() reads and hide the default settings file."""
    for key in _PARSE_ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr("ignition_injector.config.DEFAULT_CONFIG_PATH", tmp_path / "absent.yaml")


@pytest.fixture(autouse=True)
def quiet_debug(monkeypatch):
    """Keep DEBUG output off unless a test turns it on."""
    monkeypatch.setattr("ignition_injector.utils._verbose", False)
