"""测试共享 fixture：伪造的 cargo 包缓存 + 伪造的项目

整体结构:

  tmp_path/
  ├── cargo-home/registry/src/index.crates.io-6f17d22bba15001f/
  │   ├── rand-0.8.5/        Cargo.toml + src/lib.rs + Cargo.toml.orig + .cargo-ok
  │   └── rand_core-0.6.4/
  └── app/
      ├── Cargo.toml
      └── Cargo.lock

用法:
    def test_xxx(crate, lock, make_localizer):
        crate("rand", "0.8.5", deps={"rand_core": "0.6"})
        lock([{"name": "app", "version": "0.1.0", "dependencies": ["rand"]},
              ("rand", "0.8.5", ["rand_core"]), ...])
        report = make_localizer().run()
"""

from __future__ import annotations

from pathlib import Path

import pytest

from cargo_localize.core.config import Config
from cargo_localize.core.localizer import Localizer
from cargo_localize.utils.logger import reset_logging

REGISTRY_SOURCE = "registry+https://github.com/rust-lang/crates.io-index"
INDEX_DIR = "index.crates.io-6f17d22bba15001f"

APP_MANIFEST = """\
[package]
name = "app"
version = "0.1.0"
edition = "2021"

[dependencies]
rand = "0.8.5"
"""


def add_crate(
    cargo_home: Path, name: str, version: str,
    deps: dict[str, str] | None = None,
) -> Path:
    """在伪造的 registry 缓存中放一个已解压的包"""
    crate_dir = cargo_home / "registry" / "src" / INDEX_DIR / f"{name}-{version}"
    (crate_dir / "src").mkdir(parents=True)
    (crate_dir / "src" / "lib.rs").write_text(f"// {name} {version}\n")
    lines = [
        "[package]",
        f'name = "{name}"',
        f'version = "{version}"',
        "",
        "[dependencies]",
    ]
    lines += [f'{dep} = "{req}"' for dep, req in (deps or {}).items()]
    (crate_dir / "Cargo.toml").write_text("\n".join(lines) + "\n")
    (crate_dir / "Cargo.toml.orig").write_text("# pre-publish manifest\n")
    (crate_dir / ".cargo-ok").write_text('{"v":1}')
    return crate_dir


def write_lock(project: Path, packages: list) -> Path:
    """写 Cargo.lock

    packages 元素:
      ("rand", "0.8.5", ["rand_core"])   registry 包的简写
      {"name", "version", "source"?, "dependencies"?}  显式记录（无 source 即工作区成员）
    """
    parts = ["# This file is automatically @generated by Cargo.", "version = 3", ""]
    for item in packages:
        pkg = registry(*item) if isinstance(item, tuple) else item
        parts.append("[[package]]")
        parts.append(f'name = "{pkg["name"]}"')
        parts.append(f'version = "{pkg["version"]}"')
        if pkg.get("source"):
            parts.append(f'source = "{pkg["source"]}"')
        deps = pkg.get("dependencies")
        if deps:
            parts.append("dependencies = [")
            parts += [f' "{d}",' for d in deps]
            parts.append("]")
        parts.append("")
    lock = project / "Cargo.lock"
    lock.write_text("\n".join(parts))
    return lock


def registry(name: str, version: str, deps: list[str] | None = None) -> dict:
    return {"name": name, "version": version, "source": REGISTRY_SOURCE, "dependencies": deps or []}


@pytest.fixture()
def cargo_home(tmp_path: Path) -> Path:
    home = tmp_path / "cargo-home"
    (home / "registry" / "src" / INDEX_DIR).mkdir(parents=True)
    return home


@pytest.fixture()
def project(tmp_path: Path) -> Path:
    app = tmp_path / "app"
    (app / "src").mkdir(parents=True)
    (app / "src" / "main.rs").write_text("fn main() {}\n")
    (app / "Cargo.toml").write_text(APP_MANIFEST)
    return app


@pytest.fixture()
def make_localizer(project: Path, cargo_home: Path):
    """Localizer 工厂，默认指向伪造的 cargo_home"""

    def _make(third_party_dir: str | None = None, **config: object) -> Localizer:
        cfg = Config(cargo_home=str(cargo_home), **config)  # type: ignore[arg-type]
        return Localizer(project, third_party_dir=third_party_dir, config=cfg)

    return _make


@pytest.fixture()
def rand_scenario(project: Path, cargo_home: Path) -> Path:
    """rand 0.8.5 -> rand_core 0.6.4"""
    add_crate(cargo_home, "rand", "0.8.5", deps={"rand_core": "0.6.4"})
    add_crate(cargo_home, "rand_core", "0.6.4")
    write_lock(project, [
        {"name": "app", "version": "0.1.0", "dependencies": ["rand"]},
        registry("rand", "0.8.5", ["rand_core"]),
        registry("rand_core", "0.6.4"),
    ])
    return project


@pytest.fixture()
def _clean_logging():
    yield
    reset_logging()


@pytest.fixture()
def crate(cargo_home: Path):
    """crate("rand", "0.8.5", deps={...}) 在缓存中放一个包"""

    def _add(name: str, version: str, deps: dict[str, str] | None = None) -> Path:
        return add_crate(cargo_home, name, version, deps)

    return _add


@pytest.fixture()
def lock(project: Path):
    """lock([...]) 写项目的 Cargo.lock"""

    def _write(packages: list) -> Path:
        return write_lock(project, packages)

    return _write


@pytest.fixture()
def app_manifest() -> str:
    """project fixture 写入的原始 Cargo.toml 内容"""
    return APP_MANIFEST
