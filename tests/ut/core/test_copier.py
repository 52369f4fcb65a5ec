"""包源码复制测试"""

from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from cargo_localize.core.dep.copier import VendorCopier
from cargo_localize.core.dep.models import CacheEntry, PackageId
from cargo_localize.core.exceptions import CopyFailed


def _entry(path: Path, name: str, version: str) -> CacheEntry:
    return CacheEntry(package_id=PackageId(name, version), source_path=path)


class TestVendorCopier:
    def test_copy_tree(self, project: Path, crate) -> None:
        src = crate("rand", "0.8.5")
        copier = VendorCopier(project / "3rd-party", project)

        vendored = copier.copy_all([_entry(src, "rand", "0.8.5")])

        dest = project / "3rd-party" / "rand-0.8.5"
        assert (dest / "src" / "lib.rs").read_text() == "// rand 0.8.5\n"
        assert (dest / "Cargo.toml").is_file()
        assert not (dest / ".cargo-ok").exists()
        assert vendored[PackageId("rand", "0.8.5")].local_path == Path("3rd-party/rand-0.8.5")
        assert copier.copied == [PackageId("rand", "0.8.5")]
        assert not list((project / "3rd-party").glob(".*partial"))

    def test_existing_destination_is_skipped(self, project: Path, crate) -> None:
        src = crate("rand", "0.8.5")
        dest = project / "3rd-party" / "rand-0.8.5"
        dest.mkdir(parents=True)
        (dest / "marker").write_text("keep")

        copier = VendorCopier(project / "3rd-party", project)
        copier.copy_all([_entry(src, "rand", "0.8.5")])

        assert (dest / "marker").read_text() == "keep"
        assert not (dest / "src").exists()
        assert copier.skipped == [PackageId("rand", "0.8.5")]
        assert copier.copied == []

    def test_versions_get_distinct_directories(self, project: Path, crate) -> None:
        old = crate("rand", "0.7.3")
        new = crate("rand", "0.8.5")
        copier = VendorCopier(project / "3rd-party", project)
        vendored = copier.copy_all([_entry(old, "rand", "0.7.3"), _entry(new, "rand", "0.8.5")])

        paths = {e.local_path for e in vendored.values()}
        assert len(paths) == 2
        assert (project / "3rd-party" / "rand-0.7.3" / "src" / "lib.rs").read_text() == "// rand 0.7.3\n"

    def test_missing_source_fails_fast(self, project: Path, crate, tmp_path: Path) -> None:
        good = crate("a", "1.0.0")
        copier = VendorCopier(project / "3rd-party", project)

        with pytest.raises(CopyFailed) as exc_info:
            copier.copy_all([
                _entry(tmp_path / "does-not-exist", "ghost", "1.0.0"),
                _entry(good, "a", "1.0.0"),
            ])

        assert exc_info.value.path == project / "3rd-party" / "ghost-1.0.0"
        # 第一个失败即中止，后续包不再复制
        assert not (project / "3rd-party" / "a-1.0.0").exists()
        assert not (project / "3rd-party" / "ghost-1.0.0").exists()

    def test_copy_error_leaves_no_partial_destination(
        self, project: Path, crate, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        src = crate("rand", "0.8.5")

        def _broken_copytree(source, target, **kwargs):
            Path(target).mkdir(parents=True)
            (Path(target) / "half").write_text("x")
            raise shutil.Error([(str(source), str(target), "disk full")])

        monkeypatch.setattr("cargo_localize.core.dep.copier.shutil.copytree", _broken_copytree)
        copier = VendorCopier(project / "3rd-party", project)
        with pytest.raises(CopyFailed, match="disk full"):
            copier.copy_one(_entry(src, "rand", "0.8.5"))

        leftovers = [p.name for p in (project / "3rd-party").iterdir()]
        assert leftovers == []
