"""Tests for object key / local path mapping."""

from __future__ import annotations

from pathlib import Path, PureWindowsPath

import pytest

from s3cse.client.sync.mapper import (
    is_prefix,
    map_download,
    map_upload,
    object_key_to_local_path,
)
from s3cse.client.sync.types import MappingError, TransferItem


class TestIsPrefix:
    """Tests for is_prefix()."""

    def test_trailing_slash_is_prefix(self) -> None:
        assert is_prefix("reports/") is True

    def test_plain_key_is_not_prefix(self) -> None:
        assert is_prefix("reports/jan.csv") is False

    def test_nested_key_without_slash(self) -> None:
        assert is_prefix("a/b/c") is False


class TestMapDownload:
    """Tests for map_download()."""

    @pytest.mark.parametrize(
        "key",
        ["single.bin", "a/single.bin", "a/b/c/d/single.bin"],
    )
    def test_single_key_lands_under_base_by_basename(self, key: str) -> None:
        """A single object should land at base/basename(key) whatever its depth."""
        items = map_download(key, Path("/out"), [key])
        assert items == [TransferItem(source=key, destination=Path("/out/single.bin"))]

    def test_prefix_preserves_structure(self) -> None:
        """Members keep their structure below the prefix."""
        items = map_download("p/", Path("/base"), ["p/a", "p/b/c"])
        assert [item.destination for item in items] == [
            Path("/base/a"),
            Path("/base/b/c"),
        ]
        assert [item.source for item in items] == ["p/a", "p/b/c"]

    def test_reports_scenario(self) -> None:
        """reports/ listing should land under /out with the year kept."""
        items = map_download(
            "reports/",
            Path("/out"),
            ["reports/2024/jan.csv", "reports/2024/feb.csv"],
        )
        assert {item.destination for item in items} == {
            Path("/out/2024/jan.csv"),
            Path("/out/2024/feb.csv"),
        }

    def test_prefix_with_single_member_keeps_structure(self) -> None:
        """One member under a prefix still keeps its relative structure."""
        items = map_download("p/", Path("/base"), ["p/x/y.txt"])
        assert items[0].destination == Path("/base/x/y.txt")

    def test_empty_listing_yields_no_items(self) -> None:
        """Zero members is not an error."""
        assert map_download("empty/", Path("/out"), []) == []

    def test_folder_markers_skipped(self) -> None:
        """Zero-byte folder marker objects should not become items."""
        items = map_download("p/", Path("/base"), ["p/", "p/sub/", "p/sub/f.txt"])
        assert [item.source for item in items] == ["p/sub/f.txt"]

    def test_accepts_iterator(self) -> None:
        """Member keys may be a lazy iterator."""
        items = map_download("p/", Path("/base"), iter(["p/a"]))
        assert len(items) == 1

    def test_traversal_rejected(self) -> None:
        """A key climbing out of the base path should be rejected."""
        with pytest.raises(MappingError, match="escapes"):
            map_download("p/", Path("/base"), ["p/../../etc/passwd"])

    def test_absolute_relative_key_rejected(self) -> None:
        """A double slash after the prefix would make an absolute path."""
        with pytest.raises(MappingError, match="escapes"):
            map_download("p/", Path("/base"), ["p//etc/passwd"])


class TestMapUpload:
    """Tests for map_upload()."""

    def test_directory_with_prefix(self, tmp_path: Path) -> None:
        """Files keep their relative position under the prefix."""
        files = [tmp_path / "a", tmp_path / "b" / "c"]
        items = map_upload("prefix/", tmp_path, files)
        assert [item.destination for item in items] == ["prefix/a", "prefix/b/c"]
        assert [item.source for item in items] == files

    def test_archive_scenario(self) -> None:
        """archive/ upload of /data should produce archive/... keys."""
        base = Path("/data")
        items = map_upload("archive/", base, [base / "x.txt", base / "sub" / "y.txt"])
        assert {item.destination for item in items} == {"archive/x.txt", "archive/sub/y.txt"}

    def test_single_file_with_prefix_uses_basename(self) -> None:
        """A single-file base should map to prefix + file name."""
        file_path = Path("/data/report.pdf")
        items = map_upload("archive/", file_path, [file_path])
        assert items == [TransferItem(source=file_path, destination="archive/report.pdf")]

    def test_single_key_used_verbatim(self) -> None:
        """Without a prefix the key is used as-is."""
        file_path = Path("/data/report.pdf")
        items = map_upload("backups/latest.pdf", file_path, [file_path])
        assert items == [TransferItem(source=file_path, destination="backups/latest.pdf")]

    def test_single_key_with_several_files_rejected(self) -> None:
        """Several files onto one non-prefix key should fail, not overwrite."""
        base = Path("/data")
        with pytest.raises(MappingError, match="single key"):
            map_upload("one-key", base, [base / "a", base / "b"])

    def test_empty_directory(self, tmp_path: Path) -> None:
        """An empty walk produces no items in either mode."""
        assert map_upload("prefix/", tmp_path, []) == []
        assert map_upload("key", tmp_path, []) == []

    def test_keys_use_forward_slashes(self) -> None:
        """Keys are built from POSIX relative paths."""
        base = Path("/data")
        items = map_upload("p/", base, [base / "deep" / "er" / "f.bin"])
        assert items[0].destination == "p/deep/er/f.bin"
        assert "\\" not in str(items[0].destination)


class TestObjectKeyToLocalPath:
    """Tests for object_key_to_local_path()."""

    def test_splits_on_slash(self) -> None:
        """Keys are split into path components."""
        assert object_key_to_local_path(Path("/base"), "a/b/c") == Path("/base/a/b/c")

    def test_windows_base(self) -> None:
        """On a Windows-style base, components are joined with backslashes."""
        base = PureWindowsPath("C:/out")
        assert str(object_key_to_local_path(base, "2024/jan.csv")) == "C:\\out\\2024\\jan.csv"  # type: ignore[arg-type]
