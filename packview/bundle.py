"""
Reader for .NET single-file bundles.

A single-file bundle is an app host executable with the application's
files appended to it. The host carries a placeholder consisting of the
bundle header offset (int64) immediately followed by a fixed 32-byte
signature; the header at that offset describes every embedded file as
an (offset, size, type, relative path) record.

Only reading is supported. All functions operate on any buffer-protocol
object (bytes, memoryview over an mmap) without copying file data.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum


# -----------------------------------------------------------------------------
# Exceptions
# -----------------------------------------------------------------------------


class BundleFormatError(ValueError):
    """Raised when a bundle header or manifest is malformed."""

    pass


# -----------------------------------------------------------------------------
# Format constants
# -----------------------------------------------------------------------------

# SHA-256 of ".net core bundle"
BUNDLE_SIGNATURE: bytes = bytes(
    [
        0x8B, 0x12, 0x02, 0xB9, 0x6A, 0x61, 0x20, 0x38,
        0x72, 0x7B, 0x93, 0x02, 0x14, 0xD7, 0xA0, 0x32,
        0x13, 0xF5, 0xB9, 0xE6, 0xEF, 0xAE, 0x33, 0x18,
        0xEE, 0x3B, 0x2D, 0xCE, 0x24, 0xB3, 0x6A, 0xAE,
    ]
)

_HEADER_OFFSET = struct.Struct("<q")
_HEADER_PREFIX = struct.Struct("<IIi")  # major, minor, file count
_HEADER_V2 = struct.Struct("<qqqqQ")  # deps.json, runtimeconfig.json, flags
_ENTRY_LOCATION = struct.Struct("<qq")  # offset, size
_INT64 = struct.Struct("<q")
_UINT8 = struct.Struct("<B")


class BundleFileType(IntEnum):
    """Kind of a file embedded in a bundle, as recorded in the manifest."""

    UNKNOWN = 0
    ASSEMBLY = 1
    NATIVE_BINARY = 2
    DEPS_JSON = 3
    RUNTIME_CONFIG_JSON = 4
    SYMBOLS = 5


# -----------------------------------------------------------------------------
# Manifest types
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BundleFileEntry:
    """
    A single manifest record.

    Attributes:
        relative_path: Path of the file relative to the application root
        offset: Absolute offset of the file's bytes within the bundle
        size: Uncompressed size in bytes
        compressed_size: Stored size when deflate-compressed, else 0
        type: Recorded file type
    """

    relative_path: str
    offset: int
    size: int
    compressed_size: int = 0
    type: BundleFileType = BundleFileType.UNKNOWN

    @property
    def is_compressed(self) -> bool:
        return self.compressed_size > 0

    @property
    def stored_size(self) -> int:
        """Number of bytes the record occupies in the bundle."""
        return self.compressed_size if self.is_compressed else self.size


@dataclass(frozen=True, slots=True)
class BundleManifest:
    """Parsed bundle header plus its file records."""

    major_version: int
    minor_version: int
    bundle_id: str
    entries: list[BundleFileEntry] = field(default_factory=list)
    deps_json_offset: int = 0
    deps_json_size: int = 0
    runtime_config_json_offset: int = 0
    runtime_config_json_size: int = 0
    flags: int = 0


# -----------------------------------------------------------------------------
# Detection
# -----------------------------------------------------------------------------


def is_bundle(view) -> tuple[bool, int]:
    """
    Check whether a buffer holds a single-file bundle.

    Scans for the bundle signature; the int64 preceding it is the header
    offset, which must point inside the buffer.

    Args:
        view: Buffer-protocol object over the whole file

    Returns:
        (True, header_offset) for a bundle, (False, 0) otherwise
    """
    data = memoryview(view).cast("B")
    try:
        size = len(data)
        pos = _find(data, BUNDLE_SIGNATURE, _HEADER_OFFSET.size)
        while pos != -1:
            (header_offset,) = _HEADER_OFFSET.unpack_from(data, pos - _HEADER_OFFSET.size)
            if 0 < header_offset < size:
                return True, header_offset
            pos = _find(data, BUNDLE_SIGNATURE, pos + 1)
        return False, 0
    finally:
        data.release()


def _find(data: memoryview, needle: bytes, start: int) -> int:
    """Locate needle in data at or after start without copying the buffer."""
    obj = data.obj
    if hasattr(obj, "find") and len(data) == len(obj):
        return obj.find(needle, start)
    # Slices of a larger buffer: search the detached bytes of the view.
    return data.tobytes().find(needle, start)


# -----------------------------------------------------------------------------
# Manifest parsing
# -----------------------------------------------------------------------------


class _ManifestReader:
    """Sequential little-endian reader with bounds checking."""

    def __init__(self, data: memoryview, position: int) -> None:
        self._data = data
        self.position = position

    def unpack(self, fmt: struct.Struct) -> tuple:
        if self.position < 0 or self.position + fmt.size > len(self._data):
            raise BundleFormatError(f"Bundle manifest truncated at offset {self.position}")
        values = fmt.unpack_from(self._data, self.position)
        self.position += fmt.size
        return values

    def read_7bit_int(self) -> int:
        """Read a 7-bit encoded length prefix (at most 5 bytes)."""
        result = 0
        for shift in range(0, 35, 7):
            (byte,) = self.unpack(_UINT8)
            result |= (byte & 0x7F) << shift
            if not byte & 0x80:
                return result
        raise BundleFormatError(f"Bad string length prefix at offset {self.position}")

    def read_string(self) -> str:
        length = self.read_7bit_int()
        end = self.position + length
        if end > len(self._data):
            raise BundleFormatError(f"String of length {length} overruns bundle at offset {self.position}")
        raw = bytes(self._data[self.position:end])
        self.position = end
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise BundleFormatError(f"Invalid UTF-8 in bundle string: {e}") from e


def read_manifest(view, header_offset: int) -> BundleManifest:
    """
    Read the bundle manifest located at header_offset.

    Args:
        view: Buffer-protocol object over the whole file
        header_offset: Offset returned by is_bundle()

    Returns:
        Parsed BundleManifest with records in stored order

    Raises:
        BundleFormatError: If the header or any record is malformed
    """
    data = memoryview(view).cast("B")
    try:
        reader = _ManifestReader(data, header_offset)
        major, minor, file_count = reader.unpack(_HEADER_PREFIX)
        if file_count < 0:
            raise BundleFormatError(f"Negative file count in bundle header: {file_count}")
        bundle_id = reader.read_string()

        deps_offset = deps_size = rc_offset = rc_size = flags = 0
        if major >= 2:
            deps_offset, deps_size, rc_offset, rc_size, flags = reader.unpack(_HEADER_V2)

        entries: list[BundleFileEntry] = []
        for _ in range(file_count):
            offset, size = reader.unpack(_ENTRY_LOCATION)
            compressed_size = 0
            if major >= 6:
                (compressed_size,) = reader.unpack(_INT64)
            (raw_type,) = reader.unpack(_UINT8)
            relative_path = reader.read_string()

            try:
                file_type = BundleFileType(raw_type)
            except ValueError:
                file_type = BundleFileType.UNKNOWN

            entry = BundleFileEntry(
                relative_path=relative_path,
                offset=offset,
                size=size,
                compressed_size=compressed_size,
                type=file_type,
            )
            if offset < 0 or entry.size < 0 or compressed_size < 0 or offset + entry.stored_size > len(data):
                raise BundleFormatError(
                    f"Bundle record {relative_path!r} lies outside the file "
                    f"(offset={offset}, size={entry.stored_size}, file size={len(data)})"
                )
            entries.append(entry)

        return BundleManifest(
            major_version=major,
            minor_version=minor,
            bundle_id=bundle_id,
            entries=entries,
            deps_json_offset=deps_offset,
            deps_json_size=deps_size,
            runtime_config_json_offset=rc_offset,
            runtime_config_json_size=rc_size,
            flags=flags,
        )
    finally:
        data.release()


__all__ = [
    "BUNDLE_SIGNATURE",
    "BundleFileEntry",
    "BundleFileType",
    "BundleFormatError",
    "BundleManifest",
    "is_bundle",
    "read_manifest",
]
