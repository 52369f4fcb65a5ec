"""包源码复制器

职责:
- 把缓存中的包源码整树复制到 <third_party_dir>/<name>-<version>/
- 目标目录已存在时跳过（重复执行幂等）
- 先复制到同级临时目录再 rename，中断时不会留下会被下次误跳过的半成品

失败策略: 快速失败，第一个复制错误即中止整个运行。
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from cargo_localize.core.dep.models import CacheEntry, PackageId, ThirdPartyEntry
from cargo_localize.core.exceptions import CopyFailed

logger = logging.getLogger(__name__)

# 复制时忽略的缓存元数据文件
IGNORED_NAMES = (".cargo-ok",)


class VendorCopier:
    """包源码复制器"""

    def __init__(self, third_party_path: Path, project_root: Path) -> None:
        self.third_party_path = third_party_path
        self.project_root = project_root
        self.copied: list[PackageId] = []
        self.skipped: list[PackageId] = []

    def destination(self, pkg_id: PackageId) -> Path:
        return self.third_party_path / pkg_id.dir_name

    def copy_one(self, entry: CacheEntry) -> ThirdPartyEntry:
        pkg_id = entry.package_id
        dest = self.destination(pkg_id)
        result = ThirdPartyEntry(
            package_id=pkg_id,
            local_path=Path(os.path.relpath(dest, self.project_root)),
        )
        if dest.exists():
            logger.info("已存在，跳过: %s", dest, extra={"package": pkg_id.name, "version": pkg_id.version})
            self.skipped.append(pkg_id)
            return result

        tmp = dest.with_name(f".{dest.name}.partial")
        try:
            self.third_party_path.mkdir(parents=True, exist_ok=True)
            if tmp.exists():
                shutil.rmtree(tmp)
            shutil.copytree(
                entry.source_path, tmp,
                symlinks=True, ignore=shutil.ignore_patterns(*IGNORED_NAMES),
            )
            os.replace(tmp, dest)
        except (OSError, shutil.Error) as exc:
            shutil.rmtree(tmp, ignore_errors=True)
            raise CopyFailed(dest, str(exc)) from exc

        logger.info(
            "已复制: %s -> %s", entry.source_path, dest,
            extra={"package": pkg_id.name, "version": pkg_id.version},
        )
        self.copied.append(pkg_id)
        return result

    def copy_all(self, entries: list[CacheEntry]) -> dict[PackageId, ThirdPartyEntry]:
        """按顺序复制全部包，返回 {PackageId: ThirdPartyEntry}"""
        vendored: dict[PackageId, ThirdPartyEntry] = {}
        for entry in entries:
            vendored[entry.package_id] = self.copy_one(entry)
        logger.info(
            "复制汇总: %d 新复制, %d 已存在",
            len(self.copied), len(self.skipped),
        )
        return vendored
