"""Cargo 版本要求匹配

不是约束求解器：只用于在同名的多个候选版本之间挑选与声明兼容的那一个，
以及无锁文件的降级模式下从本地缓存挑选版本。

底层用 semantic_version 的 SimpleSpec，这里只负责把 Cargo 的写法翻译过去:
  - "1.2.3" / "^1.2.3": 裸版本号按 caret 处理，>=1.2.3 且主版本相同
  - "0.8": 0.8.x；"0.0.3": 只匹配 0.0.3
  - "~1.2": 1.2.x
  - "=1.2.3": 精确匹配（SimpleSpec 写作 "==1.2.3"）
  - "0.8.*" / "*" / 空: 通配
  - ">=1.0, <1.5": 逗号分隔的各段取交集

预发布版本只在要求本身写明预发布时才会被选中，与 Cargo 一致。
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from semantic_version import SimpleSpec, Version

logger = logging.getLogger(__name__)

_COMPARATORS = ("<=", ">=", "<", ">", "^", "~")
_LOWEST = Version("0.0.0")


def parse_version(version: str) -> Version | None:
    """解析完整的 semver 版本号，非法时返回 None"""
    try:
        return Version(version.strip())
    except ValueError:
        return None


def _translate_clause(clause: str) -> str:
    clause = clause.replace(" ", "")
    if clause in ("", "*"):
        return "*"
    if clause.startswith(_COMPARATORS):
        return clause
    if clause.startswith("="):
        return "=" + clause
    if "*" in clause:
        return "==" + clause
    return "^" + clause


def to_spec(requirement: str) -> SimpleSpec:
    """把 Cargo 版本要求翻译为 SimpleSpec

    异常:
        ValueError: 要求无法解析
    """
    return SimpleSpec(",".join(_translate_clause(c) for c in requirement.split(",")))


def matches(requirement: str, version: str) -> bool:
    """判断 version 是否满足 requirement"""
    ver = parse_version(version)
    if ver is None:
        return False
    try:
        spec = to_spec(requirement)
    except ValueError:
        logger.warning("无法解析的版本要求: %r", requirement)
        return False
    return spec.match(ver)


def version_key(version: str) -> Version:
    """排序键，无法解析的版本号排在最前"""
    parsed = parse_version(version)
    return parsed if parsed is not None else _LOWEST


def sort_versions(versions: Iterable[str]) -> list[str]:
    """按 semver 顺序排序，丢弃无法解析的版本号"""
    return sorted((v for v in versions if parse_version(v) is not None), key=version_key)


def best_match(requirement: str, versions: Iterable[str]) -> str | None:
    """在候选版本中挑选满足要求的最高版本"""
    try:
        spec = to_spec(requirement)
    except ValueError:
        logger.warning("无法解析的版本要求: %r", requirement)
        return None
    by_version: dict[Version, str] = {}
    for v in versions:
        ver = parse_version(v)
        if ver is not None:
            by_version[ver] = v
    chosen = spec.select(by_version)
    return by_version[chosen] if chosen is not None else None
