"""Tests for entry helpers, listing models and runtime configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import StubEntry, make_entries
from packview.models import EntryInfo, PackageInfo
from packview.package import LoadedPackage, PackageKind, is_binary_content
from packview.package.entry import extension_of
from packview.runtime import RuntimeConfig, get_global_config, get_runtime_config, set_global_config


class TestIsBinaryContent:
    """Tests for binary sniffing."""

    def test_text_is_not_binary(self) -> None:
        assert not is_binary_content(b'{"name": "value"}\n')

    def test_empty_is_text(self) -> None:
        assert not is_binary_content(b"")

    def test_pe_header_is_binary(self) -> None:
        assert is_binary_content(b"MZ\x90\x00")

    def test_extension_wins(self) -> None:
        assert is_binary_content(b"plain", ".dll")

    def test_nul_byte_is_binary(self) -> None:
        assert is_binary_content(b"abc\x00def")

    def test_sample_size_limits_scan(self) -> None:
        """Bytes past the sample window are not inspected."""
        data = b"a" * 100 + b"\x00"
        assert not is_binary_content(data, sample_size=50)
        assert is_binary_content(data, sample_size=200)

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("lib/net6.0/A.DLL", ".dll"),
            ("dir.d\\README", None),
            ("archive.tar.gz", ".gz"),
            ("", None),
        ],
    )
    def test_extension_of(self, name: str, expected: str | None) -> None:
        assert extension_of(name) == expected


class TestReadBytes:
    def test_read_bytes(self) -> None:
        assert StubEntry("a", b"content").read_bytes() == b"content"

    def test_repr(self) -> None:
        assert repr(StubEntry("x/y")) == "<StubEntry stub://x/y>"


class TestLoadedPackage:
    """Tests for the package aggregate built from arbitrary entries."""

    def test_duplicates_preserved(self) -> None:
        entries = make_entries("a.txt", "a.txt")
        package = LoadedPackage(PackageKind.ZIP, entries)
        assert len(package.entries) == 2
        assert [e.name for e in package.top_level_entries] == ["a.txt", "a.txt"]
        assert package.find_entry("a.txt") is entries[0]

    def test_generator_is_materialized(self) -> None:
        """A single-pass sequence is consumed once and kept."""
        package = LoadedPackage(PackageKind.BUNDLE, (e for e in make_entries("a/b", "c")))
        assert [e.name for e in package.entries] == ["a/b", "c"]
        assert [e.name for e in package.entries] == ["a/b", "c"]

    def test_top_level_views_are_tuples(self) -> None:
        """Callers cannot grow the tree through the top-level views."""
        package = LoadedPackage(PackageKind.ZIP, make_entries("a/b", "c"))
        assert isinstance(package.top_level_entries, tuple)
        assert isinstance(package.top_level_folders, tuple)
        assert [e.name for e in package.top_level_entries] == ["c"]
        assert [f.name for f in package.top_level_folders] == ["a"]

    def test_repr(self) -> None:
        package = LoadedPackage(PackageKind.ZIP, make_entries("a", "b"))
        assert repr(package) == "<LoadedPackage kind=zip entries=2>"


class TestModels:
    """Tests for JSON listing models."""

    def test_package_info_round_trip(self, nupkg_path: Path) -> None:
        package = LoadedPackage.from_zip_file(nupkg_path)
        info = PackageInfo.from_package(str(nupkg_path), package)

        assert info.kind == "zip"
        assert info.entry_count == 5
        assert [f.path for f in info.folders] == ["", "lib", "lib/net6.0", "lib/netstandard2.0"]
        assert info.folders[0].folders == ["lib"]
        assert [e.name for e in info.folders[2].entries] == ["Sample.Library.dll", "Sample.Library.xml"]
        assert PackageInfo.model_validate_json(info.model_dump_json()) == info

    def test_entry_info_uses_short_name(self, nupkg_path: Path) -> None:
        package = LoadedPackage.from_zip_file(nupkg_path)
        wrapped = package.top_level_folders[0].folders[0].entries[0]
        info = EntryInfo.from_entry(wrapped)

        assert info.name == "Sample.Library.dll"
        assert info.full_name.endswith(";lib/net6.0/Sample.Library.dll")
        assert info.size == 202
        assert info.resource_type == "embedded"


class TestRuntimeConfig:
    def test_defaults(self) -> None:
        config = get_runtime_config()
        assert config.copy_buffer_size == 64 * 1024
        assert config.binary_sample_size == 8192
        assert not config.verbose

    def test_overrides(self) -> None:
        config = get_runtime_config(copy_buffer_size=1024, verbose=True)
        assert config.copy_buffer_size == 1024
        assert config.verbose

    def test_rejects_non_positive_sizes(self) -> None:
        with pytest.raises(ValueError):
            RuntimeConfig(copy_buffer_size=0)
        with pytest.raises(ValueError):
            get_runtime_config(binary_sample_size=-1)

    def test_global_config(self) -> None:
        config = RuntimeConfig(copy_buffer_size=10)
        set_global_config(config)
        assert get_global_config() is config
