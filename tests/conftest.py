"""Shared pytest fixtures for package tests."""

from __future__ import annotations

import io
import logging
import struct
import zipfile
import zlib
from dataclasses import dataclass
from pathlib import Path

import pytest

from packview.bundle import BUNDLE_SIGNATURE, BundleFileType
from packview.package import PackageEntry
from packview.runtime import RuntimeConfig, set_global_config


# -----------------------------------------------------------------------------
# In-memory entries
# -----------------------------------------------------------------------------


class StubEntry(PackageEntry):
    """Entry backed by a bytes literal."""

    def __init__(self, name: str, data: bytes = b"") -> None:
        self._name = name
        self._data = data

    @property
    def name(self) -> str:
        return self._name

    @property
    def full_name(self) -> str:
        return f"stub://{self._name}"

    def try_get_length(self) -> int | None:
        return len(self._data)

    def try_open_stream(self):
        return io.BytesIO(self._data)


def make_entries(*names: str) -> list[StubEntry]:
    return [StubEntry(name, name.encode()) for name in names]


# -----------------------------------------------------------------------------
# Bundle writer
# -----------------------------------------------------------------------------


@dataclass
class BundleFile:
    path: str
    data: bytes
    type: BundleFileType = BundleFileType.ASSEMBLY
    compress: bool = False


def _encode_string(value: str) -> bytes:
    raw = value.encode("utf-8")
    length = len(raw)
    prefix = bytearray()
    while True:
        byte = length & 0x7F
        length >>= 7
        if length:
            prefix.append(byte | 0x80)
        else:
            prefix.append(byte)
            return bytes(prefix) + raw


def build_bundle(
    files: list[BundleFile],
    major: int = 2,
    minor: int = 0,
    bundle_id: str = "test-bundle",
) -> tuple[bytes, dict[str, tuple[int, int]]]:
    """
    Build a minimal single-file bundle.

    Layout: fake host stub with the header-offset placeholder and signature,
    file payloads, then the manifest header.

    Returns:
        (bundle bytes, {path: (offset, stored size)})
    """
    host = b"MZ" + b"\x90" * 62
    placeholder_at = len(host)
    body = bytearray(host + b"\x00" * 8 + BUNDLE_SIGNATURE + b"\x00" * 16)

    locations: dict[str, tuple[int, int]] = {}
    records = bytearray()
    for f in files:
        stored = f.data
        compressed_size = 0
        if f.compress:
            compressor = zlib.compressobj(wbits=-zlib.MAX_WBITS)
            stored = compressor.compress(f.data) + compressor.flush()
            compressed_size = len(stored)
        offset = len(body)
        body += stored
        locations[f.path] = (offset, len(stored))

        records += struct.pack("<qq", offset, len(f.data))
        if major >= 6:
            records += struct.pack("<q", compressed_size)
        records += struct.pack("<B", int(f.type))
        records += _encode_string(f.path)

    header_offset = len(body)
    header = bytearray(struct.pack("<IIi", major, minor, len(files)))
    header += _encode_string(bundle_id)
    if major >= 2:
        header += struct.pack("<qqqqQ", 0, 0, 0, 0, 0)
    body += header + records

    struct.pack_into("<q", body, placeholder_at, header_offset)
    return bytes(body), locations


# -----------------------------------------------------------------------------
# Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def default_runtime_config():
    """Every test starts from default runtime settings."""
    set_global_config(RuntimeConfig())
    yield
    set_global_config(RuntimeConfig())


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Drop stream handlers installed by cli.main() so later tests log cleanly."""
    root = logging.getLogger()
    before, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in before and type(handler) is logging.StreamHandler:
            root.removeHandler(handler)
    root.setLevel(level)


@pytest.fixture
def nupkg_path(tmp_path: Path) -> Path:
    """A NuGet-shaped zip archive with nested folders."""
    path = tmp_path / "Sample.Library.1.0.0.nupkg"
    with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as zf:
        zf.writestr("Sample.Library.nuspec", "<package />")
        zf.writestr("lib/net6.0/Sample.Library.dll", b"MZ" + b"\x00" * 200)
        zf.writestr("lib/net6.0/Sample.Library.xml", "<doc />")
        zf.writestr("lib/netstandard2.0/Sample.Library.dll", b"MZ" + b"\x01" * 100)
        zf.writestr("README.md", "# Sample\n" * 50)
    return path


@pytest.fixture
def bundle_files() -> list[BundleFile]:
    return [
        BundleFile("App.dll", b"MZ" + bytes(range(256)) * 4),
        BundleFile("App.deps.json", b'{"runtimeTarget": {}}', BundleFileType.DEPS_JSON),
        BundleFile("App.runtimeconfig.json", b'{"runtimeOptions": {}}', BundleFileType.RUNTIME_CONFIG_JSON),
        BundleFile("runtimes/linux-x64/native/libApp.so", b"\x7fELF" + b"\x00" * 60, BundleFileType.NATIVE_BINARY),
        BundleFile("de/App.resources.dll", b"MZ resources", BundleFileType.ASSEMBLY),
    ]


@pytest.fixture
def bundle_path(tmp_path: Path, bundle_files: list[BundleFile]) -> Path:
    """A version 2 single-file bundle on disk."""
    data, _ = build_bundle(bundle_files)
    path = tmp_path / "App.exe"
    path.write_bytes(data)
    return path
