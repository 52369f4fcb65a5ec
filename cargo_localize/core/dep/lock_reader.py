"""锁文件读取器

职责:
- 解析 Cargo.lock 为精确依赖图 LockGraph
- 依赖边一律解析为精确 PackageId，后续任何环节都不再按包名重新推导版本

依赖边的三种写法:
  "libc"                              只有一个版本时省略版本号
  "rand_core 0.6.4"                   同名多版本时带版本号
  "rand_core 0.6.4 (registry+https://...)"  同名同版本多来源时再带来源
"""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any

from cargo_localize.core.dep.models import LockEntry, LockGraph, PackageId, is_registry_source
from cargo_localize.core.exceptions import LockParseError

logger = logging.getLogger(__name__)


class LockReader:
    """Cargo.lock 读取器"""

    def __init__(self, lock_path: Path) -> None:
        self.lock_path = lock_path

    def read(self) -> LockGraph:
        """读取锁文件，文件不存在时返回空图（降级模式）"""
        if not self.lock_path.exists():
            logger.warning("锁文件不存在，仅本地化直接依赖: %s", self.lock_path)
            return LockGraph()
        try:
            raw = self.lock_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise LockParseError(f"读取锁文件失败: {self.lock_path}: {exc}") from exc
        graph = self.parse(raw)
        logger.info("已加载锁文件: %s (%d 个包)", self.lock_path, len(graph.entries))
        return graph

    def parse(self, raw: str) -> LockGraph:
        try:
            payload = tomllib.loads(raw)
        except tomllib.TOMLDecodeError as exc:
            raise LockParseError(f"锁文件不是合法的 TOML: {self.lock_path}: {exc}") from exc

        packages = payload.get("package", [])
        if not isinstance(packages, list):
            raise LockParseError(f"锁文件 `package` 字段不是数组: {self.lock_path}")

        # 第一遍: 收集所有包，第二遍再解析依赖边
        # 同名同版本来自多个来源时优先保留 registry 记录，否则保留第一条
        records: dict[PackageId, tuple[str | None, list[str]]] = {}
        for item in packages:
            pkg_id, source, deps = self._parse_package(item)
            if pkg_id in records:
                kept_source = records[pkg_id][0]
                if is_registry_source(source) and not is_registry_source(kept_source):
                    logger.warning("锁文件中重复的包 %s，改用 registry 记录: %s", pkg_id, source)
                    records[pkg_id] = (source, deps)
                else:
                    logger.warning("锁文件中重复的包 %s，忽略来源 %s", pkg_id, source)
                continue
            records[pkg_id] = (source, deps)

        by_name: dict[str, list[PackageId]] = {}
        for pkg_id in records:
            by_name.setdefault(pkg_id.name, []).append(pkg_id)

        graph = LockGraph()
        for pkg_id, (source, deps) in records.items():
            edges = tuple(self._resolve_edge(pkg_id, dep, by_name) for dep in deps)
            graph.entries[pkg_id] = LockEntry(package_id=pkg_id, source=source, dependencies=edges)
        return graph

    def _parse_package(self, item: Any) -> tuple[PackageId, str | None, list[str]]:
        if not isinstance(item, dict):
            raise LockParseError(f"锁文件中存在非法的 [[package]] 记录: {item!r}")
        name = item.get("name")
        version = item.get("version")
        if not isinstance(name, str) or not name:
            raise LockParseError(f"锁文件记录缺少 name: {item!r}")
        if not isinstance(version, str) or not version:
            raise LockParseError(f"锁文件记录 {name} 缺少 version")
        source = item.get("source")
        if source is not None and not isinstance(source, str):
            raise LockParseError(f"锁文件记录 {name} 的 source 非法: {source!r}")
        deps = item.get("dependencies", [])
        if not isinstance(deps, list) or not all(isinstance(d, str) for d in deps):
            raise LockParseError(f"锁文件记录 {name} 的 dependencies 必须是字符串数组")
        return PackageId(name, version), source, deps

    def _resolve_edge(
        self, owner: PackageId, dep: str, by_name: dict[str, list[PackageId]],
    ) -> PackageId:
        parts = dep.split(" ", 2)
        name = parts[0]
        candidates = by_name.get(name, [])
        if len(parts) >= 2:
            target = PackageId(name, parts[1])
            if target not in candidates:
                raise LockParseError(f"{owner} 依赖的 {target} 不在锁文件中")
            return target
        if not candidates:
            raise LockParseError(f"{owner} 依赖的 {name} 不在锁文件中")
        if len(candidates) > 1:
            versions = ", ".join(c.version for c in candidates)
            raise LockParseError(
                f"{owner} 依赖的 {name} 未注明版本，但锁文件中有多个版本: {versions}"
            )
        return candidates[0]
