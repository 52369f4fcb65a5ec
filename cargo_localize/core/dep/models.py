"""依赖本地化数据模型

数据类:
- PackageId: (name, version) 精确包标识
- LockEntry: 锁文件中的一条包记录及其精确依赖边
- LockGraph: 全部 LockEntry 组成的依赖图
- CacheEntry: 本地缓存中已解压的包源码位置
- ManifestDependency: 清单中的一条依赖声明
- ThirdPartyEntry: 已复制到 3rd-party 目录的包
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from pathlib import Path

REGISTRY_SOURCE_PREFIXES = ("registry+", "sparse+")


def is_registry_source(source: str | None) -> bool:
    return source is not None and source.startswith(REGISTRY_SOURCE_PREFIXES)


@dataclass(frozen=True, order=True)
class PackageId:
    """精确包标识，name 与 version 都相同才视为同一个包"""

    name: str
    version: str

    @property
    def dir_name(self) -> str:
        return f"{self.name}-{self.version}"

    def __str__(self) -> str:
        return f"{self.name} {self.version}"


@dataclass(frozen=True)
class LockEntry:
    """锁文件中的单个包"""

    package_id: PackageId
    source: str | None = None
    dependencies: tuple[PackageId, ...] = ()

    @property
    def is_registry(self) -> bool:
        return is_registry_source(self.source)


@dataclass
class LockGraph:
    """精确依赖图（按锁文件中的顺序保存）"""

    entries: dict[PackageId, LockEntry] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def get(self, pkg_id: PackageId) -> LockEntry | None:
        return self.entries.get(pkg_id)

    def find(self, name: str) -> list[LockEntry]:
        """按包名查找所有版本，仅用于确定起点，图内遍历始终走精确 PackageId"""
        return [e for e in self.entries.values() if e.package_id.name == name]

    def roots(self) -> list[LockEntry]:
        """没有 source 的记录即工作区成员 / path 依赖"""
        return [e for e in self.entries.values() if e.source is None]

    def reachable(self, start: list[PackageId]) -> list[PackageId]:
        """从 start 出发做广度优先遍历，返回可达的全部 PackageId（含 start 自身）"""
        seen: set[PackageId] = set()
        order: list[PackageId] = []
        queue = deque(start)
        while queue:
            pkg_id = queue.popleft()
            if pkg_id in seen:
                continue
            seen.add(pkg_id)
            order.append(pkg_id)
            entry = self.entries.get(pkg_id)
            if entry is not None:
                queue.extend(entry.dependencies)
        return order


@dataclass(frozen=True)
class CacheEntry:
    """本地包缓存中的源码目录"""

    package_id: PackageId
    source_path: Path


@dataclass
class ManifestDependency:
    """清单中的一条依赖声明"""

    name: str                     # 声明用的 key
    package: str                  # 实际包名（package = "..." 重命名时不同于 name）
    version_requirement: str = ""
    source_kind: str = "registry"  # "registry", "path", "git", "workspace"
    section: str = "dependencies"  # 所在表，如 "target.'cfg(unix)'.dependencies"

    @property
    def is_registry(self) -> bool:
        return self.source_kind == "registry"


@dataclass(frozen=True)
class ThirdPartyEntry:
    """已本地化的包，local_path 相对项目根目录"""

    package_id: PackageId
    local_path: Path
