"""依赖图与包源码本地化

拆分说明:
- models.py: 数据模型
- versions.py: 版本要求匹配
- lock_reader.py: 锁文件解析
- cache_locator.py: 本地缓存查找
- copier.py: 源码复制
"""

from cargo_localize.core.dep.cache_locator import CacheLocator
from cargo_localize.core.dep.copier import VendorCopier
from cargo_localize.core.dep.lock_reader import LockReader
from cargo_localize.core.dep.models import (
    CacheEntry,
    LockEntry,
    LockGraph,
    ManifestDependency,
    PackageId,
    ThirdPartyEntry,
)

__all__ = [
    "CacheEntry",
    "CacheLocator",
    "LockEntry",
    "LockGraph",
    "LockReader",
    "ManifestDependency",
    "PackageId",
    "ThirdPartyEntry",
    "VendorCopier",
]
