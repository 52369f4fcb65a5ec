"""依赖本地化引擎

把项目的全部 registry 依赖（直接 + 间接）复制到项目内的 3rd-party 目录，
并把 Cargo.toml 中对应的声明改写为 path 依赖。

执行顺序（严格串行，没有事务回滚）:
  1. 解析 Cargo.lock 得到精确依赖图（不存在则降级为只处理直接依赖）
  2. 在本地包缓存中逐个定位 (name, version)
  3. 复制到 <third_party_dir>/<name>-<version>/（已存在则跳过）
  4. 读取 Cargo.toml
  5. 改写匹配的依赖声明
  6. 首次改写前备份为 Cargo.toml.bak，然后原子写回
  7. 删除 Cargo.lock

用法:
    from cargo_localize.core.localizer import Localizer

    report = Localizer("path/to/project").run()
    for entry in report.vendored:
        print(entry.package_id, entry.local_path)

    # 只查看将要本地化的包，不做任何修改
    plan = Localizer("path/to/project").plan()

    # 从备份恢复清单
    Localizer("path/to/project").restore()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from cargo_localize.core.backup import ManifestBackup, invalidate_lock, remove_file
from cargo_localize.core.config import Config
from cargo_localize.core.dep.cache_locator import CacheLocator
from cargo_localize.core.dep.copier import VendorCopier
from cargo_localize.core.dep.lock_reader import LockReader
from cargo_localize.core.dep.models import (
    CacheEntry,
    LockEntry,
    LockGraph,
    PackageId,
    ThirdPartyEntry,
)
from cargo_localize.core.exceptions import ManifestNotFound
from cargo_localize.core.manifest.codec import ManifestDocument, load_manifest, save_manifest
from cargo_localize.core.manifest.rewriter import ManifestRewriter

logger = logging.getLogger(__name__)


@dataclass
class LocalizePlan:
    """只读的本地化计划"""

    graph: LockGraph
    entries: list[CacheEntry]
    # 降级模式下直接依赖的选定版本，以及已读取的清单
    direct: list[PackageId] = field(default_factory=list)
    manifest: ManifestDocument | None = None

    @property
    def degraded(self) -> bool:
        return self.graph.is_empty


@dataclass
class LocalizeReport:
    """一次本地化运行的结果"""

    vendored: list[ThirdPartyEntry] = field(default_factory=list)
    copied: list[PackageId] = field(default_factory=list)
    skipped: list[PackageId] = field(default_factory=list)
    rewritten: list[str] = field(default_factory=list)
    vendored_manifests: list[Path] = field(default_factory=list)
    backup_path: Path | None = None
    backup_created: bool = False
    lock_removed: bool = False
    degraded: bool = False


class Localizer:
    """依赖本地化引擎，项目根目录显式传入并贯穿所有组件"""

    def __init__(
        self,
        project_path: str | Path = ".",
        third_party_dir: str | None = None,
        config: Config | None = None,
        locator: CacheLocator | None = None,
    ) -> None:
        self.project_root = Path(project_path).resolve()
        self.config = config or Config.for_project(self.project_root)
        self.third_party_dir = third_party_dir or self.config.third_party_dir
        self.third_party_path = self.project_root / self.third_party_dir
        self.manifest_path = self.project_root / self.config.manifest_name
        self.lock_path = self.project_root / self.config.lock_name
        self.locator = locator or CacheLocator.from_cargo_home(self.config.resolve_cargo_home())

    # ------------------------------------------------------------------
    # 计划（只读）
    # ------------------------------------------------------------------

    def plan(self) -> LocalizePlan:
        """解析依赖图并定位全部待复制的包，不修改任何文件"""
        if not self.manifest_path.is_file():
            raise ManifestNotFound(self.manifest_path)

        graph = LockReader(self.lock_path).read()
        if graph.is_empty:
            manifest = load_manifest(self.manifest_path)
            direct = self._direct_from_cache(manifest)
            entries = [self.locator.locate(pkg_id) for pkg_id in direct]
            return LocalizePlan(graph=graph, entries=entries, direct=direct, manifest=manifest)

        start: list[PackageId] = []
        for root in graph.roots():
            start.extend(root.dependencies)

        entries: list[CacheEntry] = []
        for pkg_id in graph.reachable(start):
            entry = graph.get(pkg_id)
            if entry is None or entry.source is None:
                continue
            if not entry.is_registry:
                logger.warning("跳过非 registry 来源的包: %s (%s)", pkg_id, entry.source)
                continue
            entries.append(self.locator.locate(pkg_id))
        logger.info("待本地化: %d 个包", len(entries))
        return LocalizePlan(graph=graph, entries=entries)

    def _direct_from_cache(self, manifest: ManifestDocument) -> list[PackageId]:
        """降级模式：为每条 registry 直接依赖挑选本地缓存中的兼容版本"""
        chosen: list[PackageId] = []
        for dep in manifest.dependencies():
            if not dep.is_registry:
                continue
            pkg_id = self.locator.best_match(dep.package, dep.version_requirement)
            if pkg_id not in chosen:
                chosen.append(pkg_id)
        return chosen

    def _top_level_candidates(
        self, graph: LockGraph, manifest: ManifestDocument,
    ) -> tuple[list[PackageId], list[PackageId]]:
        """根清单的候选依赖边: (包自身的依赖表, [workspace.dependencies])

        包自身的依赖表只取该包在锁文件中的依赖边，虚拟工作区则取所有成员的；
        [workspace.dependencies] 供全部成员继承，始终取所有成员依赖边的并集。
        """
        roots = graph.roots()
        own = [r for r in roots if r.package_id.name == manifest.package_name]
        return _union_edges(own or roots), _union_edges(roots)

    # ------------------------------------------------------------------
    # 执行
    # ------------------------------------------------------------------

    def run(self) -> LocalizeReport:
        plan = self.plan()

        copier = VendorCopier(self.third_party_path, self.project_root)
        vendored = copier.copy_all(plan.entries)

        manifest = plan.manifest or load_manifest(self.manifest_path)
        if plan.degraded:
            candidates, workspace_candidates = plan.direct, plan.direct
        else:
            candidates, workspace_candidates = self._top_level_candidates(plan.graph, manifest)
        rewriter = ManifestRewriter(
            vendored, self.project_root, candidates, workspace_candidates=workspace_candidates,
        )
        rewritten = rewriter.rewrite(manifest)

        backup = ManifestBackup(self.manifest_path, self.config.backup_suffix)
        backup_created = False
        if rewritten:
            backup_created = backup.ensure()
            save_manifest(manifest)
        else:
            logger.info("没有需要改写的依赖声明: %s", self.manifest_path)

        vendored_manifests: list[Path] = []
        if self.config.rewrite_vendored and not plan.degraded:
            vendored_manifests = self._rewrite_vendored(plan.graph, vendored)

        lock_removed = invalidate_lock(self.lock_path)

        report = LocalizeReport(
            vendored=list(vendored.values()),
            copied=list(copier.copied),
            skipped=list(copier.skipped),
            rewritten=rewritten,
            vendored_manifests=vendored_manifests,
            backup_path=backup.backup_path if backup.exists else None,
            backup_created=backup_created,
            lock_removed=lock_removed,
            degraded=plan.degraded,
        )
        logger.info(
            "依赖已本地化到 %s: %d 个包, 改写 %d 条声明",
            self.third_party_path, len(report.vendored), len(report.rewritten),
        )
        return report

    def _rewrite_vendored(
        self, graph: LockGraph, vendored: dict[PackageId, ThirdPartyEntry],
    ) -> list[Path]:
        """按各包自身的精确依赖边改写 3rd-party 内的清单，消除同名多版本的解析歧义"""
        changed: list[Path] = []
        for pkg_id, entry in vendored.items():
            manifest_path = self.project_root / entry.local_path / self.config.manifest_name
            lock_entry = graph.get(pkg_id)
            if lock_entry is None or not manifest_path.is_file():
                continue
            manifest = load_manifest(manifest_path)
            rewriter = ManifestRewriter(vendored, self.project_root, list(lock_entry.dependencies))
            if not rewriter.rewrite(manifest):
                continue
            ManifestBackup(manifest_path, self.config.backup_suffix).ensure()
            save_manifest(manifest)
            # 发布前的原始清单，保留会与改写后的清单不一致
            remove_file(manifest_path.with_name(manifest_path.name + ".orig"))
            changed.append(manifest_path)
        return changed

    # ------------------------------------------------------------------
    # 恢复
    # ------------------------------------------------------------------

    def restore(self) -> Path:
        """用 Cargo.toml.bak 恢复清单（不恢复锁文件和 3rd-party 目录）"""
        return ManifestBackup(self.manifest_path, self.config.backup_suffix).restore()


def _union_edges(entries: list[LockEntry]) -> list[PackageId]:
    edges: list[PackageId] = []
    for entry in entries:
        for pkg_id in entry.dependencies:
            if pkg_id not in edges:
                edges.append(pkg_id)
    return edges
