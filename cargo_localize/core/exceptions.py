"""统一异常体系

所有业务异常继承 LocalizeError，每类异常带一个稳定的 code。
所有异常都是致命的：引擎不做本地恢复或重试，CLI 层据此输出单条诊断并以非零状态退出。
"""

from __future__ import annotations

from pathlib import Path


class LocalizeError(Exception):
    """引擎基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(LocalizeError):
    """配置文件内容无效"""

    code = "CONFIG_ERROR"


class ManifestNotFound(LocalizeError):
    """项目路径下不存在清单文件"""

    code = "MANIFEST_NOT_FOUND"

    def __init__(self, path: Path | str) -> None:
        super().__init__(f"清单文件不存在: {path}")
        self.path = Path(path)


class ManifestParseError(LocalizeError):
    """清单文件不是合法的 TOML"""

    code = "MANIFEST_PARSE_ERROR"

    def __init__(self, path: Path | str, cause: str) -> None:
        super().__init__(f"解析清单失败: {path}: {cause}")
        self.path = Path(path)
        self.cause = cause


class LockParseError(LocalizeError):
    """锁文件格式错误或依赖边无法解析"""

    code = "LOCK_PARSE_ERROR"


class CacheEntryNotFound(LocalizeError):
    """本地包缓存中没有该 (name, version)，通常是未先执行 cargo fetch"""

    code = "CACHE_ENTRY_NOT_FOUND"

    def __init__(self, name: str, version: str, cache_root: Path | str = "") -> None:
        where = f" (缓存根目录: {cache_root})" if cache_root else ""
        super().__init__(
            f"本地缓存中找不到 {name} {version}{where}，请先执行 cargo fetch"
        )
        self.name = name
        self.version = version


class CopyFailed(LocalizeError):
    """复制包源码到 3rd-party 目录失败"""

    code = "COPY_FAILED"

    def __init__(self, path: Path | str, cause: str) -> None:
        super().__init__(f"复制失败: {path}: {cause}")
        self.path = Path(path)
        self.cause = cause


class WriteFailed(LocalizeError):
    """写入清单、备份或删除锁文件失败"""

    code = "WRITE_FAILED"

    def __init__(self, path: Path | str, cause: str) -> None:
        super().__init__(f"写入失败: {path}: {cause}")
        self.path = Path(path)
        self.cause = cause
