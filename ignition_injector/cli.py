"""Command-line entry point for libvirt-ignition."""

from __future__ import annotations

import argparse
import dataclasses
import sys
from pathlib import Path
from typing import List, Optional

from ignition_injector.config import parse_env
from ignition_injector.constants import DELIVERY_STRATEGIES, GUESTFISH
from ignition_injector.domain import DomainDefinition
from ignition_injector.exceptions import DomainDefinitionError, IgnitionError, InvalidConfiguration
from ignition_injector.ignition import ignition_source_from_secret, set_ignition
from ignition_injector.models import SOURCE_FILE, SOURCE_INLINE, ConfigurationSource, InjectorConfig
from ignition_injector.process import CommandRunner
from ignition_injector.resolver import resolve_kind
from ignition_injector.secret_store import ManifestSecretStore
from ignition_injector.utils import log, normalize_arch, set_verbose


def show_config(cfg: InjectorConfig) -> None:
    """Print the resolved configuration."""
    for field in dataclasses.fields(cfg):
        print(f"  {field.name}: {getattr(cfg, field.name)}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Deliver an Ignition config into a libvirt domain")
    payload = parser.add_mutually_exclusive_group()
    payload.add_argument("--secret", metavar="NAME", help="Secret holding the Ignition config under 'userData'")
    payload.add_argument("--ignition-file", metavar="PATH", help="Local Ignition config file")
    payload.add_argument("--ignition-content", metavar="JSON", help="Inline Ignition config (JSON object)")
    target = parser.add_mutually_exclusive_group()
    target.add_argument("--domain", metavar="NAME", help="Read the domain from libvirt and redefine it")
    target.add_argument("--domain-xml", metavar="FILE", type=Path, help="Domain XML file to update")
    parser.add_argument("--output", metavar="FILE", type=Path, help="Write updated --domain-xml here (default stdout)")
    parser.add_argument("--volume-name", help="Ignition volume name (default <domain>.ign)")
    parser.add_argument("--namespace", help="Secret namespace (overrides SECRET_NAMESPACE)")
    parser.add_argument("--pool", help="Storage pool (overrides IGNITION_POOL)")
    parser.add_argument("--arch", help="Target architecture (overrides ARCH)")
    parser.add_argument("--config", metavar="FILE", type=Path, help="YAML settings file")
    parser.add_argument("--show-config", action="store_true", help="Show resolved configuration and exit")
    parser.add_argument("--dry-run", action="store_true", help="Validate inputs, then exit without uploading")
    return parser


def _payload_source(args: argparse.Namespace, cfg: InjectorConfig) -> ConfigurationSource:
    if args.ignition_file:
        return ConfigurationSource(content=args.ignition_file, kind=SOURCE_FILE)
    if args.ignition_content:
        return ConfigurationSource(content=args.ignition_content, kind=SOURCE_INLINE)
    if args.secret:
        store = ManifestSecretStore(cfg.secret_dir)
        return ignition_source_from_secret(store, cfg.namespace, args.secret)
    raise InvalidConfiguration("One of --secret, --ignition-file or --ignition-content is required")


def _load_domain(args: argparse.Namespace, storage) -> DomainDefinition:
    if args.domain_xml:
        try:
            text = args.domain_xml.read_text(encoding="utf-8")
        except OSError as exc:
            raise DomainDefinitionError(f"Cannot read domain XML {args.domain_xml}: {exc}") from exc
        return DomainDefinition.from_xml(text)
    return DomainDefinition.from_xml(storage.domain_xml(args.domain))


def _write_domain(args: argparse.Namespace, domain: DomainDefinition, storage) -> None:
    xml = domain.to_xml()
    if args.domain:
        storage.define_domain(xml)
        log("SUCCESS", f"Redefined domain {args.domain}")
    elif args.output:
        args.output.write_text(xml + "\n", encoding="utf-8")
        log("SUCCESS", f"Wrote updated domain XML to {args.output}")
    else:
        sys.stdout.write(xml + "\n")


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        cfg = parse_env(args.config)
        if args.pool:
            cfg.pool = args.pool
        if args.arch:
            cfg.arch = normalize_arch(args.arch)
        if args.namespace:
            cfg.namespace = args.namespace
    except IgnitionError as exc:
        log("ERROR", str(exc))
        return 1
    set_verbose(cfg.log_verbose)

    if args.show_config:
        show_config(cfg)
        return 0

    if not (args.domain or args.domain_xml):
        log("ERROR", "One of --domain or --domain-xml is required")
        return 2

    try:
        source = _payload_source(args, cfg)
        kind = resolve_kind(source)
        if kind == SOURCE_FILE and not Path(source.content).is_file():
            raise InvalidConfiguration(f"Ignition file {source.content} does not exist")
    except IgnitionError as exc:
        log("ERROR", str(exc))
        return 1

    if args.dry_run:
        log("INFO", f"Pool: {cfg.pool} | Arch: {cfg.arch} | Delivery: {DELIVERY_STRATEGIES[cfg.arch]}")
        log("INFO", f"Payload: {kind} ({len(source.content)} characters)")
        log("INFO", "=== Dry-run complete (nothing uploaded) ===")
        return 0

    # imported here so --show-config and --dry-run work without libvirt bindings
    from ignition_injector.storage import open_storage

    storage = None
    try:
        storage = open_storage(cfg.libvirt_uri)
        domain = _load_domain(args, storage)
        volume_name = args.volume_name or f"{domain.name or args.domain or 'domain'}.ign"
        runner = CommandRunner(cfg.guestfish or GUESTFISH, elevate=cfg.guestfish_sudo)
        set_ignition(
            domain,
            storage,
            source,
            pool=cfg.pool,
            volume_name=volume_name,
            arch=cfg.arch,
            runner=runner,
        )
        _write_domain(args, domain, storage)
        return 0
    except IgnitionError as exc:
        log("ERROR", str(exc))
        return 1
    finally:
        if storage is not None:
            storage.close()
