"""Tests for ignition_injector.resolver module."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from ignition_injector.exceptions import InvalidConfiguration, PayloadIOError
from ignition_injector.models import ConfigurationSource
from ignition_injector.resolver import materialize, materialized, resolve_kind


@pytest.fixture
def quiet():
    return lambda level, message: None


@pytest.fixture(autouse=True)
def private_tmpdir(tmp_path, monkeypatch):
    tmpdir = tmp_path / "tmp"
    tmpdir.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(tmpdir))
    return tmpdir


class TestResolveKind:
    def test_existing_path_is_file(self, tmp_path):
        path = tmp_path / "config.ign"
        path.write_text("not json at all")
        assert resolve_kind(ConfigurationSource(str(path))) == "file"

    def test_json_object_is_inline(self, ignition_json):
        assert resolve_kind(ConfigurationSource(ignition_json)) == "inline"

    @pytest.mark.parametrize("content", ["", "{not json", "[1, 2]", "42", '"text"', "/no/such/file.ign"])
    def test_invalid_content_raises(self, content):
        with pytest.raises(InvalidConfiguration, match="neither a file nor a valid JSON object"):
            resolve_kind(ConfigurationSource(content))

    def test_explicit_inline_skips_path_check(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "{}").write_text("file named like json")
        assert resolve_kind(ConfigurationSource("{}", kind="inline")) == "inline"

    def test_explicit_inline_must_be_json(self):
        with pytest.raises(InvalidConfiguration, match="not a valid JSON object"):
            resolve_kind(ConfigurationSource("plain", kind="inline"))

    def test_explicit_file_is_not_sniffed(self):
        assert resolve_kind(ConfigurationSource('{"a": 1}', kind="file")) == "file"

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError):
            ConfigurationSource("{}", kind="url")


class TestMaterialize:
    def test_inline_bytes_are_verbatim(self, quiet):
        content = '{ "ignition" : {"version":"3.4.0"} ,\n  "x": "é" }'
        path = materialize(ConfigurationSource(content), "worker-0.ign", quiet)
        try:
            assert path.read_bytes() == content.encode("utf-8")
        finally:
            path.unlink()

    def test_file_copied_byte_for_byte(self, tmp_path, quiet):
        original = tmp_path / "source.ign"
        payload = bytes(range(256)) * 64
        original.write_bytes(payload)
        path = materialize(ConfigurationSource(str(original)), "worker-0.ign", quiet)
        try:
            assert path != original
            assert path.read_bytes() == payload
        finally:
            path.unlink()

    def test_unique_names(self, ignition_json, quiet):
        first = materialize(ConfigurationSource(ignition_json), "worker-0.ign", quiet)
        second = materialize(ConfigurationSource(ignition_json), "worker-0.ign", quiet)
        try:
            assert first != second
            assert first.name.startswith("worker-0.ign-")
        finally:
            first.unlink()
            second.unlink()

    def test_invalid_content_creates_no_file(self, private_tmpdir, quiet):
        with pytest.raises(InvalidConfiguration):
            materialize(ConfigurationSource("nope"), "worker-0.ign", quiet)
        assert list(private_tmpdir.iterdir()) == []

    def test_unreadable_file_raises_and_cleans_up(self, tmp_path, private_tmpdir, quiet):
        missing = tmp_path / "gone.ign"
        with pytest.raises(PayloadIOError, match="Error copying supplied Ignition file"):
            materialize(ConfigurationSource(str(missing), kind="file"), "worker-0.ign", quiet)
        assert list(private_tmpdir.iterdir()) == []

    def test_tempfile_creation_failure(self, ignition_json, quiet):
        with patch("ignition_injector.resolver.tempfile.NamedTemporaryFile", side_effect=OSError("disk full")):
            with pytest.raises(PayloadIOError, match="Cannot create temporary file"):
                materialize(ConfigurationSource(ignition_json), "worker-0.ign", quiet)


class TestMaterialized:
    def test_removed_after_success(self, ignition_json, quiet):
        with materialized(ConfigurationSource(ignition_json), "worker-0.ign", quiet) as path:
            assert path.exists()
        assert not path.exists()

    def test_removed_after_failure(self, ignition_json, quiet):
        seen = []
        with pytest.raises(RuntimeError):
            with materialized(ConfigurationSource(ignition_json), "worker-0.ign", quiet) as path:
                seen.append(path)
                raise RuntimeError("upload failed")
        assert not seen[0].exists()

    def test_cleanup_failure_is_logged_not_raised(self, ignition_json):
        messages = []
        with patch.object(Path, "unlink", side_effect=PermissionError("denied")):
            with materialized(ConfigurationSource(ignition_json), "worker-0.ign", lambda *a: messages.append(a)) as path:
                leftover = path
        assert ("WARN", f"Error while removing temporary file {leftover}: denied") in messages
        os.remove(leftover)
