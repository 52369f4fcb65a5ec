"""Cargo.toml 读写

基于 tomlkit 做格式保留的解析与序列化：注释、顺序、空白全部原样保留，
只有改写器动过的依赖声明会变化。

识别的依赖表:
  [dependencies] / [dev-dependencies] / [build-dependencies]
  [target.<cfg>.dependencies] 等平台相关表
  [workspace.dependencies]
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, MutableMapping
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError
from tomlkit.toml_document import TOMLDocument

from cargo_localize.core.dep.models import ManifestDependency
from cargo_localize.core.exceptions import ManifestNotFound, ManifestParseError, WriteFailed
from cargo_localize.utils.yaml_io import atomic_write

logger = logging.getLogger(__name__)

DEPENDENCY_SECTIONS = (
    "dependencies",
    "dev-dependencies",
    "dev_dependencies",
    "build-dependencies",
    "build_dependencies",
)


def describe_dependency(key: str, value: Any, section: str) -> ManifestDependency:
    """把一条原始声明归类为 ManifestDependency"""
    if isinstance(value, str):
        return ManifestDependency(
            name=key, package=key, version_requirement=str(value),
            source_kind="registry", section=section,
        )
    if not isinstance(value, MutableMapping):
        raise ValueError(f"[{section}] 依赖 {key} 的声明既不是字符串也不是表")

    if value.get("workspace") is True:
        kind = "workspace"
    elif "path" in value:
        kind = "path"
    elif "git" in value:
        kind = "git"
    else:
        kind = "registry"
    return ManifestDependency(
        name=key,
        package=str(value.get("package", key)),
        version_requirement=str(value.get("version", "")),
        source_kind=kind,
        section=section,
    )


class ManifestDocument:
    """已解析的 Cargo.toml，包装 tomlkit 文档"""

    def __init__(self, document: TOMLDocument, path: Path) -> None:
        self.document = document
        self.path = path

    @property
    def package_name(self) -> str | None:
        package = self.document.get("package")
        if isinstance(package, MutableMapping):
            name = package.get("name")
            return str(name) if name is not None else None
        return None

    def dependency_tables(self) -> Iterator[tuple[str, MutableMapping]]:
        """按文档顺序列出所有依赖表 (section 名, 表)"""
        for section in DEPENDENCY_SECTIONS:
            table = self.document.get(section)
            if isinstance(table, MutableMapping):
                yield section, table

        targets = self.document.get("target")
        if isinstance(targets, MutableMapping):
            for cfg, spec in targets.items():
                if not isinstance(spec, MutableMapping):
                    continue
                for section in DEPENDENCY_SECTIONS:
                    table = spec.get(section)
                    if isinstance(table, MutableMapping):
                        yield f"target.{cfg}.{section}", table

        workspace = self.document.get("workspace")
        if isinstance(workspace, MutableMapping):
            table = workspace.get("dependencies")
            if isinstance(table, MutableMapping):
                yield "workspace.dependencies", table

    def dependencies(self) -> list[ManifestDependency]:
        """全部依赖声明（有序）"""
        result: list[ManifestDependency] = []
        for section, table in self.dependency_tables():
            for key, value in table.items():
                result.append(describe_dependency(str(key), value, section))
        return result


def parse_manifest(text: str, path: Path) -> ManifestDocument:
    try:
        document = tomlkit.parse(text)
    except TOMLKitError as exc:
        raise ManifestParseError(path, str(exc)) from exc
    manifest = ManifestDocument(document, path)
    # 提前触发依赖表的结构校验，非法声明在读取阶段即报错
    try:
        manifest.dependencies()
    except ValueError as exc:
        raise ManifestParseError(path, str(exc)) from exc
    return manifest


def load_manifest(path: Path) -> ManifestDocument:
    """读取清单文件

    异常:
        ManifestNotFound: 文件不存在
        ManifestParseError: 不是合法的 TOML 或依赖声明结构非法
    """
    if not path.is_file():
        raise ManifestNotFound(path)
    try:
        # 按字节解码，保留原文件的换行风格
        text = path.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestParseError(path, str(exc)) from exc
    return parse_manifest(text, path)


def dump_manifest(manifest: ManifestDocument) -> str:
    return tomlkit.dumps(manifest.document)


def save_manifest(manifest: ManifestDocument, path: Path | None = None) -> Path:
    """原子写回清单文件"""
    target = path or manifest.path
    try:
        atomic_write(target, dump_manifest(manifest))
    except OSError as exc:
        raise WriteFailed(target, str(exc)) from exc
    logger.info("清单已写入: %s", target)
    return target
