"""Cargo.toml 读写与依赖改写"""

from cargo_localize.core.manifest.codec import (
    ManifestDocument,
    describe_dependency,
    dump_manifest,
    load_manifest,
    parse_manifest,
    save_manifest,
)
from cargo_localize.core.manifest.rewriter import ManifestRewriter

__all__ = [
    "ManifestDocument",
    "ManifestRewriter",
    "describe_dependency",
    "dump_manifest",
    "load_manifest",
    "parse_manifest",
    "save_manifest",
]
