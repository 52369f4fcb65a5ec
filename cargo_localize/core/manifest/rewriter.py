"""清单依赖改写器

把 registry 版本声明改写为指向 3rd-party 副本的 path 声明:

    rand = "0.8.5"
    rand = { version = "0.8.5", features = ["small_rng"] }
    [dependencies.rand]
    version = "0.8.5"

分别改写为:

    rand = { path = "3rd-party/rand-0.8.5" }
    rand = { features = ["small_rng"], path = "3rd-party/rand-0.8.5" }
    [dependencies.rand]
    path = "3rd-party/rand-0.8.5"

候选版本始终来自锁文件中该清单所属包的精确依赖边（PackageId），
同名多版本（如 package = "rand" 的重命名依赖）时按版本要求挑选。
path / git / workspace = true 声明以及未本地化的包保持不变。
"""

from __future__ import annotations

import logging
import os
from collections.abc import MutableMapping
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.items import Item

from cargo_localize.core.dep.models import ManifestDependency, PackageId, ThirdPartyEntry
from cargo_localize.core.dep.versions import matches, version_key
from cargo_localize.core.manifest.codec import ManifestDocument, describe_dependency

logger = logging.getLogger(__name__)

# 改写为 path 时需要移除的外部来源字段
SOURCE_KEYS = ("version", "git", "branch", "tag", "rev", "registry")
WORKSPACE_SECTION = "workspace.dependencies"


class ManifestRewriter:
    """把单个清单中的 registry 依赖改写为 path 依赖"""

    def __init__(
        self,
        vendored: dict[PackageId, ThirdPartyEntry],
        project_root: Path,
        candidates: list[PackageId],
        workspace_candidates: list[PackageId] | None = None,
    ) -> None:
        self.vendored = vendored
        self.project_root = project_root
        self.candidates = [c for c in candidates if c in vendored]
        # [workspace.dependencies] 的候选边，未给出时与其他依赖表相同
        self.workspace_candidates = (
            self.candidates if workspace_candidates is None
            else [c for c in workspace_candidates if c in vendored]
        )

    def select(self, dep: ManifestDependency) -> PackageId | None:
        """为一条声明挑选精确的已本地化 PackageId"""
        pool = self.workspace_candidates if dep.section == WORKSPACE_SECTION else self.candidates
        options = [c for c in pool if c.name == dep.package]
        if len(options) <= 1:
            return options[0] if options else None
        compatible = [c for c in options if matches(dep.version_requirement, c.version)]
        return max(compatible or options, key=lambda c: version_key(c.version))

    def relative_path(self, pkg_id: PackageId, manifest_dir: Path) -> str:
        target = self.project_root / self.vendored[pkg_id].local_path
        return Path(os.path.relpath(target, manifest_dir)).as_posix()

    def rewrite(self, manifest: ManifestDocument) -> list[str]:
        """改写清单（原地修改 tomlkit 文档），返回被改写的声明 key"""
        manifest_dir = manifest.path.parent
        rewritten: list[str] = []
        for section, table in manifest.dependency_tables():
            for key in list(table.keys()):
                value = table[key]
                dep = describe_dependency(str(key), value, section)
                if not dep.is_registry:
                    continue
                pkg_id = self.select(dep)
                if pkg_id is None:
                    logger.info("  跳过: [%s] %s (未本地化)", section, key)
                    continue

                rel_path = self.relative_path(pkg_id, manifest_dir)
                if isinstance(value, MutableMapping):
                    _point_table_at(value, rel_path)
                else:
                    table[key] = _inline_path(value, rel_path)
                rewritten.append(str(key))
                logger.info(
                    "  已改写: [%s] %s -> path = %s", section, key, rel_path,
                    extra={"package": pkg_id.name, "version": pkg_id.version},
                )
        return rewritten


def _point_table_at(table: MutableMapping, rel_path: str) -> None:
    for key in SOURCE_KEYS:
        if key in table:
            del table[key]
    table["path"] = rel_path


def _inline_path(old: Any, rel_path: str) -> Any:
    inline = tomlkit.inline_table()
    inline["path"] = rel_path
    # 保留行尾注释
    if isinstance(old, Item) and old.trivia.comment:
        inline.comment(old.trivia.comment)
    return inline
