"""Global constants and path configuration for libvirt-ignition."""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_CONFIG_PATH = Path("/etc/libvirt-ignition/config.yaml")
DEFAULT_SECRET_DIR = Path("/etc/libvirt-ignition/secrets")
DEFAULT_POOL = "default"
DEFAULT_NAMESPACE = "default"
LIBVIRT_URI = os.environ.get("LIBVIRT_URI", "qemu:///system")
TRUTHY = {"1", "true", "yes", "on"}

QEMU_NS = "http://libvirt.org/schemas/domain/qemu/1.0"

# https://github.com/qemu/qemu/blob/master/docs/specs/fw_cfg.rst
FW_CFG_FLAG = "-fw_cfg"
FW_CFG_IGNITION_KEY = "opt/com.coreos/config"

USER_DATA_KEY = "userData"

GUESTFISH = "guestfish"
SUDO_PREFIX = ("sudo", "-E")
BOOT_FS_LABEL = "boot"
IGNITION_GUEST_PATH = "/ignition/config.ign"

VOLUME_UNIT = "B"
VOLUME_FORMAT = "raw"

STRATEGY_FW_CFG = "fw_cfg"
STRATEGY_GUESTFISH = "guestfish"

# fw_cfg is a property of the emulated platform; s390-ccw-virtio has none.
DELIVERY_STRATEGIES = {
    "x86_64": STRATEGY_FW_CFG,
    "aarch64": STRATEGY_FW_CFG,
    "ppc64": STRATEGY_FW_CFG,
    "riscv64": STRATEGY_FW_CFG,
    "s390x": STRATEGY_GUESTFISH,
}

ARCH_ALIASES = {
    "amd64": "x86_64",
    "arm64": "aarch64",
    "ppc64le": "ppc64",
    "ppc64el": "ppc64",
    "powerpc64": "ppc64",
    "riscv": "riscv64",
    "s390": "s390x",
}

_LOG_VERBOSE = os.environ.get("LOG_VERBOSE", "").lower() in TRUTHY
