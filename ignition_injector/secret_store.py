"""Read Ignition user data from Kubernetes Secret manifests."""

from __future__ import annotations

import base64
import binascii
from pathlib import Path
from typing import Dict, Optional, Protocol, Tuple

try:
    import yaml  # type: ignore
except ImportError as exc:  # pragma: no cover
    raise SystemExit("PyYAML is required but not installed") from exc

from ignition_injector.constants import DEFAULT_NAMESPACE, USER_DATA_KEY
from ignition_injector.exceptions import InvalidConfiguration, SecretFieldMissing, SecretNotFound
from ignition_injector.utils import log


class SecretStore(Protocol):
    def get(self, namespace: str, name: str) -> Dict[str, bytes]:
        ...


def _decode_secret(doc: dict, origin: Path) -> Dict[str, bytes]:
    fields: Dict[str, bytes] = {}
    for key, value in (doc.get("data") or {}).items():
        try:
            fields[key] = base64.b64decode(str(value), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidConfiguration(f"Secret field '{key}' in {origin} is not valid base64") from exc
    for key, value in (doc.get("stringData") or {}).items():
        fields[key] = str(value).encode("utf-8")
    return fields


class ManifestSecretStore:
    """Secrets loaded from ``kind: Secret`` YAML documents in a directory."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)
        self._secrets: Optional[Dict[Tuple[str, str], Dict[str, bytes]]] = None

    def _load(self) -> Dict[Tuple[str, str], Dict[str, bytes]]:
        secrets: Dict[Tuple[str, str], Dict[str, bytes]] = {}
        if not self.directory.is_dir():
            log("WARN", f"Secret directory {self.directory} does not exist")
            return secrets
        manifests = sorted(self.directory.glob("*.yaml")) + sorted(self.directory.glob("*.yml"))
        for manifest in manifests:
            try:
                docs = list(yaml.safe_load_all(manifest.read_text(encoding="utf-8")))
            except (OSError, yaml.YAMLError) as exc:
                raise InvalidConfiguration(f"Cannot read secret manifest {manifest}: {exc}") from exc
            for doc in docs:
                if not isinstance(doc, dict) or doc.get("kind") != "Secret":
                    continue
                metadata = doc.get("metadata") or {}
                name = metadata.get("name")
                if not name:
                    raise InvalidConfiguration(f"Secret in {manifest} has no metadata.name")
                namespace = metadata.get("namespace") or DEFAULT_NAMESPACE
                secrets[(namespace, name)] = _decode_secret(doc, manifest)
        log("DEBUG", f"Loaded {len(secrets)} secret(s) from {self.directory}")
        return secrets

    def get(self, namespace: str, name: str) -> Dict[str, bytes]:
        if self._secrets is None:
            self._secrets = self._load()
        try:
            return self._secrets[(namespace, name)]
        except KeyError:
            raise SecretNotFound(f"secret '{namespace}/{name}' not found in {self.directory}") from None


def fetch_user_data(store: SecretStore, namespace: str, secret_name: str, key: str = USER_DATA_KEY) -> str:
    if not secret_name:
        raise InvalidConfiguration("ignition.userDataSecret not set")
    try:
        data = store.get(namespace, secret_name)
    except SecretNotFound as exc:
        raise SecretNotFound(
            f"can not retrieve user data secret '{namespace}/{secret_name}' when constructing ignition volume: {exc}"
        ) from exc
    if key not in data:
        raise SecretFieldMissing(
            f"can not retrieve user data secret '{namespace}/{secret_name}' when constructing "
            f"ignition volume: key '{key}' not found in the secret"
        )
    try:
        return data[key].decode("utf-8")
    except UnicodeDecodeError as exc:
        raise InvalidConfiguration(f"Secret field '{key}' of '{namespace}/{secret_name}' is not UTF-8") from exc
