"""libvirt-ignition package."""

__all__ = [
    "cli",
    "config",
    "constants",
    "delivery",
    "domain",
    "exceptions",
    "guestfish",
    "ignition",
    "models",
    "process",
    "resolver",
    "secret_store",
    "storage",
    "utils",
    "volume",
]
