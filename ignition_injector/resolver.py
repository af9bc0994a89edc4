"""Materialize an Ignition payload into a local temporary file."""

from __future__ import annotations

import json
import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from ignition_injector.exceptions import InvalidConfiguration, PayloadIOError
from ignition_injector.models import SOURCE_FILE, SOURCE_INLINE, ConfigurationSource
from ignition_injector.utils import Logger, log, remove_file


def _is_json_object(content: str) -> bool:
    try:
        parsed = json.loads(content)
    except ValueError:
        return False
    return isinstance(parsed, dict)


def resolve_kind(source: ConfigurationSource) -> str:
    """Return ``"file"`` or ``"inline"`` for *source*.

    An explicit ``kind`` wins. Without one, content naming an existing local
    path is a file and anything else must be a JSON object.
    """
    if source.kind == SOURCE_FILE:
        return SOURCE_FILE
    if source.kind == SOURCE_INLINE:
        if not _is_json_object(source.content):
            raise InvalidConfiguration("Ignition content is not a valid JSON object")
        return SOURCE_INLINE
    try:
        if source.content and os.path.exists(source.content):
            return SOURCE_FILE
    except (ValueError, OSError):
        # embedded NUL bytes or a name too long to be a path
        pass
    if not _is_json_object(source.content):
        raise InvalidConfiguration("Ignition content is neither a file nor a valid JSON object")
    return SOURCE_INLINE


def materialize(source: ConfigurationSource, name: str, logger: Logger = log) -> Path:
    """Write the payload to a fresh temporary file and return its path.

    The caller owns the returned file; see :func:`materialized` for the
    scoped variant.
    """
    kind = resolve_kind(source)
    logger("DEBUG", f"Creating Ignition temporary file for {name} ({kind})")
    try:
        tmp = tempfile.NamedTemporaryFile(prefix=f"{name}-", delete=False)
    except OSError as exc:
        raise PayloadIOError(f"Cannot create temporary file for Ignition: {exc}") from exc

    tmp_path = Path(tmp.name)
    try:
        with tmp:
            if kind == SOURCE_INLINE:
                tmp.write(source.content.encode("utf-8"))
            else:
                try:
                    with open(source.content, "rb") as src:
                        shutil.copyfileobj(src, tmp)
                except OSError as exc:
                    raise PayloadIOError(
                        f"Error copying supplied Ignition file {source.content} to temporary file: {exc}"
                    ) from exc
    except OSError as exc:
        remove_file(tmp_path, logger)
        raise PayloadIOError(f"Cannot write Ignition object to temporary file {tmp_path}: {exc}") from exc
    except PayloadIOError:
        remove_file(tmp_path, logger)
        raise
    return tmp_path


@contextmanager
def materialized(source: ConfigurationSource, name: str, logger: Logger = log) -> Iterator[Path]:
    path = materialize(source, name, logger)
    try:
        yield path
    finally:
        remove_file(path, logger)
