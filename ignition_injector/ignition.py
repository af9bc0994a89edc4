"""Top-level Ignition provisioning for a single domain."""

from __future__ import annotations

from typing import Optional

from ignition_injector.delivery import select_strategy
from ignition_injector.domain import DomainDefinition
from ignition_injector.models import ConfigurationSource
from ignition_injector.process import CommandRunner
from ignition_injector.secret_store import SecretStore, fetch_user_data
from ignition_injector.utils import Logger, log
from ignition_injector.volume import VolumeStorage, upload_ignition


def ignition_source_from_secret(store: SecretStore, namespace: str, secret_name: str) -> ConfigurationSource:
    return ConfigurationSource(content=fetch_user_data(store, namespace, secret_name))


def set_ignition(
    domain: DomainDefinition,
    storage: VolumeStorage,
    source: ConfigurationSource,
    *,
    pool: str,
    volume_name: str,
    arch: str,
    runner: Optional[CommandRunner] = None,
    logger: Logger = log,
) -> str:
    """Upload the payload and wire it into *domain*; return the volume identifier.

    Nothing is rolled back on failure: a volume uploaded before a failing
    delivery step stays in the pool.
    """
    strategy = select_strategy(arch, runner, logger)
    logger("INFO", f"Creating ignition file {volume_name} (delivery: {strategy.name})")
    artifact_id = upload_ignition(storage, source, volume_name, pool, logger)
    strategy.deliver(artifact_id, domain)
    return artifact_id
