"""Cargo.toml 读写测试"""

from __future__ import annotations

from pathlib import Path

import pytest

from cargo_localize.core.exceptions import ManifestNotFound, ManifestParseError, WriteFailed
from cargo_localize.core.manifest.codec import (
    dump_manifest,
    load_manifest,
    parse_manifest,
    save_manifest,
)

FULL_MANIFEST = """\
# top comment
[package]
name = "app"   # the app
version = "0.1.0"

[dependencies]
rand = "0.8.5"
serde = { version = "1", features = ["derive"] }
local = { path = "../local" }
gitdep = { git = "https://example.com/gitdep.git", branch = "main" }
shared = { workspace = true }
rng07 = { package = "rand", version = "0.7" }

[dependencies.tokio]
version = "1.35"
features = ["full"]

[dev-dependencies]
tempfile = "3"

[target.'cfg(unix)'.dependencies]
libc = "0.2"

[workspace.dependencies]
anyhow = "1.0"
"""


class TestManifestCodec:
    def test_roundtrip_is_byte_identical(self, tmp_path: Path) -> None:
        manifest = parse_manifest(FULL_MANIFEST, tmp_path / "Cargo.toml")
        assert dump_manifest(manifest) == FULL_MANIFEST

    def test_package_name(self, tmp_path: Path) -> None:
        manifest = parse_manifest(FULL_MANIFEST, tmp_path / "Cargo.toml")
        assert manifest.package_name == "app"

    def test_dependencies_in_document_order(self, tmp_path: Path) -> None:
        manifest = parse_manifest(FULL_MANIFEST, tmp_path / "Cargo.toml")
        deps = {d.name: d for d in manifest.dependencies()}

        assert list(deps) == [
            "rand", "serde", "local", "gitdep", "shared", "rng07", "tokio",
            "tempfile", "libc", "anyhow",
        ]
        assert deps["rand"].version_requirement == "0.8.5"
        assert deps["serde"].is_registry
        assert deps["local"].source_kind == "path"
        assert deps["gitdep"].source_kind == "git"
        assert deps["shared"].source_kind == "workspace"
        assert deps["rng07"].package == "rand"
        assert deps["tokio"].version_requirement == "1.35"
        assert deps["tempfile"].section == "dev-dependencies"
        assert deps["libc"].section == "target.cfg(unix).dependencies"
        assert deps["anyhow"].section == "workspace.dependencies"

    def test_virtual_manifest_has_no_package_name(self, tmp_path: Path) -> None:
        manifest = parse_manifest('[workspace]\nmembers = ["a"]\n', tmp_path / "Cargo.toml")
        assert manifest.package_name is None
        assert manifest.dependencies() == []

    def test_load_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestNotFound):
            load_manifest(tmp_path / "Cargo.toml")

    @pytest.mark.parametrize("raw", [
        "[package\nname = 'x'\n",
        "[dependencies]\nrand = 3\n",
    ])
    def test_load_malformed(self, tmp_path: Path, raw: str) -> None:
        path = tmp_path / "Cargo.toml"
        path.write_text(raw)
        with pytest.raises(ManifestParseError):
            load_manifest(path)

    def test_save_preserves_crlf(self, tmp_path: Path) -> None:
        path = tmp_path / "Cargo.toml"
        path.write_bytes(b'[package]\r\nname = "app"\r\n')
        save_manifest(load_manifest(path))
        assert path.read_bytes() == b'[package]\r\nname = "app"\r\n'
        assert not list(tmp_path.glob("*.tmp"))

    def test_save_keeps_file_mode(self, tmp_path: Path) -> None:
        path = tmp_path / "Cargo.toml"
        path.write_text('[package]\nname = "app"\n')
        path.chmod(0o644)
        save_manifest(load_manifest(path))
        assert path.stat().st_mode & 0o777 == 0o644

    def test_save_failure(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "Cargo.toml"
        path.write_text('[package]\nname = "app"\n')
        manifest = load_manifest(path)

        def _refuse(src, dst):
            raise OSError(28, "No space left on device")

        monkeypatch.setattr("cargo_localize.utils.yaml_io.os.replace", _refuse)
        with pytest.raises(WriteFailed) as exc_info:
            save_manifest(manifest)
        assert exc_info.value.path == path
        assert path.read_text() == '[package]\nname = "app"\n'
        assert not list(tmp_path.glob("*.tmp"))
