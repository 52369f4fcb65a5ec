"""清单备份与锁文件清理

备份策略: 首次运行为准（first-run-wins）。
  - 第一次改写前把 Cargo.toml 原始字节复制到 Cargo.toml.bak
  - 之后的运行不覆盖已有备份，因此 .bak 始终是本地化之前的清单
  - restore() 把备份复制回清单，是唯一的恢复手段

改写成功后删除 Cargo.lock，由 cargo 针对新的 path 声明重新解析。
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from cargo_localize.core.exceptions import ManifestNotFound, WriteFailed

logger = logging.getLogger(__name__)


class ManifestBackup:
    """清单备份"""

    def __init__(self, manifest_path: Path, suffix: str = ".bak") -> None:
        self.manifest_path = manifest_path
        self.backup_path = manifest_path.with_name(manifest_path.name + suffix)

    @property
    def exists(self) -> bool:
        return self.backup_path.is_file()

    def ensure(self) -> bool:
        """写清单前调用。已有备份时保留不动，返回是否新建了备份"""
        if self.exists:
            logger.info("保留已有备份: %s", self.backup_path)
            return False
        try:
            shutil.copyfile(self.manifest_path, self.backup_path)
        except OSError as exc:
            raise WriteFailed(self.backup_path, str(exc)) from exc
        logger.info("已备份清单: %s -> %s", self.manifest_path, self.backup_path)
        return True

    def restore(self) -> Path:
        """用备份覆盖当前清单"""
        if not self.exists:
            raise ManifestNotFound(self.backup_path)
        try:
            shutil.copyfile(self.backup_path, self.manifest_path)
        except OSError as exc:
            raise WriteFailed(self.manifest_path, str(exc)) from exc
        logger.info("已从备份恢复清单: %s", self.manifest_path)
        return self.manifest_path


def remove_file(path: Path) -> bool:
    """删除文件，不存在时返回 False"""
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as exc:
        raise WriteFailed(path, str(exc)) from exc
    logger.info("已删除: %s", path)
    return True


def invalidate_lock(lock_path: Path) -> bool:
    """删除锁文件，强制下次构建重新解析"""
    removed = remove_file(lock_path)
    if not removed:
        logger.debug("锁文件不存在，无需删除: %s", lock_path)
    return removed
