"""本地包缓存定位器

职责:
- 把精确 PackageId 映射为本地缓存中已解压的源码目录（不触发任何下载）
- 列出某个包在本地缓存中的所有版本

缓存布局（由 cargo fetch 生成）:
  $CARGO_HOME/registry/src/<index-dir>/<name>-<version>/
  例如 ~/.cargo/registry/src/index.crates.io-6f17d22bba15001f/rand-0.8.5/
"""

from __future__ import annotations

import logging
from pathlib import Path

from cargo_localize.core.dep.models import CacheEntry, PackageId
from cargo_localize.core.dep.versions import best_match, sort_versions
from cargo_localize.core.exceptions import CacheEntryNotFound

logger = logging.getLogger(__name__)


class CacheLocator:
    """本地包缓存定位器 - 始终按 (name, version) 完整查找"""

    def __init__(self, cache_root: Path) -> None:
        self.cache_root = cache_root

    @classmethod
    def from_cargo_home(cls, cargo_home: Path) -> CacheLocator:
        return cls(cargo_home / "registry" / "src")

    def _index_dirs(self) -> list[Path]:
        if not self.cache_root.is_dir():
            return []
        return sorted(d for d in self.cache_root.iterdir() if d.is_dir())

    def locate(self, pkg_id: PackageId) -> CacheEntry:
        """定位包源码目录，找不到时抛出 CacheEntryNotFound"""
        for index_dir in self._index_dirs():
            candidate = index_dir / pkg_id.dir_name
            if candidate.is_dir():
                logger.debug("缓存命中: %s -> %s", pkg_id, candidate)
                return CacheEntry(package_id=pkg_id, source_path=candidate)
        raise CacheEntryNotFound(pkg_id.name, pkg_id.version, self.cache_root)

    def list_versions(self, name: str) -> list[str]:
        """列出某个包在本地缓存中的所有版本

        目录名形如 <name>-<version>，版本号必须以数字开头，
        以免 rand 误匹配到 rand-core 这类带连字符的包名。
        结果按 semver 排序（0.9.0 在 0.10.0 之前）。
        """
        prefix = f"{name}-"
        versions: set[str] = set()
        for index_dir in self._index_dirs():
            for d in index_dir.iterdir():
                if not d.is_dir() or not d.name.startswith(prefix):
                    continue
                version = d.name[len(prefix):]
                if version[:1].isdigit():
                    versions.add(version)
        return sort_versions(versions)

    def best_match(self, name: str, requirement: str) -> PackageId:
        """降级模式：按版本要求挑选本地缓存中最高的兼容版本"""
        version = best_match(requirement, self.list_versions(name))
        if version is None:
            raise CacheEntryNotFound(name, requirement or "*", self.cache_root)
        logger.info("按版本要求选择缓存版本: %s %s -> %s", name, requirement, version)
        return PackageId(name, version)
