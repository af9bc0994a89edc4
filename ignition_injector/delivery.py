"""Expose an uploaded Ignition volume to the guest.

Two strategies share the ``deliver(artifact_id, domain)`` contract. Which one
applies is decided once, from the target architecture alone.
"""

from __future__ import annotations

from typing import List, Optional

from ignition_injector.constants import (
    DELIVERY_STRATEGIES,
    FW_CFG_FLAG,
    FW_CFG_IGNITION_KEY,
    GUESTFISH,
    STRATEGY_FW_CFG,
)
from ignition_injector.domain import DomainDefinition
from ignition_injector.guestfish import GuestfishSession
from ignition_injector.process import CommandRunner
from ignition_injector.utils import Logger, log, normalize_arch


class DeliveryStrategy:
    name = ""

    def deliver(self, artifact_id: str, domain: DomainDefinition) -> None:
        raise NotImplementedError


def fw_cfg_args(artifact_id: str) -> List[str]:
    return [FW_CFG_FLAG, f"name={FW_CFG_IGNITION_KEY},file={artifact_id}"]


class FirmwareChannelDelivery(DeliveryStrategy):
    name = "fw_cfg"

    def __init__(self, logger: Logger = log) -> None:
        self.logger = logger

    def deliver(self, artifact_id: str, domain: DomainDefinition) -> None:
        domain.append_qemu_args(fw_cfg_args(artifact_id))
        self.logger("INFO", f"Ignition exposed through fw_cfg key {FW_CFG_IGNITION_KEY}")


class GuestfishDelivery(DeliveryStrategy):
    name = "guestfish"

    def __init__(self, runner: Optional[CommandRunner] = None, logger: Logger = log) -> None:
        self.runner = runner or CommandRunner(GUESTFISH, logger=logger)
        self.logger = logger

    def deliver(self, artifact_id: str, domain: DomainDefinition) -> None:
        disk_file = domain.first_disk_file()
        self.logger("INFO", "Injecting ignition configuration using guestfish")
        with GuestfishSession(self.runner, self.logger) as session:
            session.inject(disk_file, artifact_id)


def select_strategy(
    arch: str,
    runner: Optional[CommandRunner] = None,
    logger: Logger = log,
) -> DeliveryStrategy:
    if DELIVERY_STRATEGIES[normalize_arch(arch)] == STRATEGY_FW_CFG:
        return FirmwareChannelDelivery(logger)
    return GuestfishDelivery(runner, logger)
