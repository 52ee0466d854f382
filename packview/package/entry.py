"""
Package entry abstraction.

An entry is a single named item inside a package. Its content is never
loaded up front: every call to try_open_stream() produces a fresh,
independently positioned stream, so callers can enumerate large packages
cheaply and pay for I/O only when bytes are actually needed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum, IntFlag
from typing import BinaryIO


# -----------------------------------------------------------------------------
# Binary detection
# -----------------------------------------------------------------------------

# Common binary file signatures (magic bytes)
BINARY_SIGNATURES: list[bytes] = [
    b"\x89PNG",  # PNG
    b"\xff\xd8\xff",  # JPEG
    b"GIF87a",  # GIF
    b"GIF89a",  # GIF
    b"PK\x03\x04",  # ZIP
    b"PK\x05\x06",  # ZIP (empty)
    b"\x1f\x8b",  # GZIP
    b"\x7fELF",  # ELF
    b"MZ",  # DOS/PE executable
    b"\xca\xfe\xba\xbe",  # Mach-O
    b"\xcf\xfa\xed\xfe",  # Mach-O 64-bit
    b"BSJB",  # CLI metadata root
    b"%PDF",  # PDF
]

# Extensions that are always binary
BINARY_EXTENSIONS: frozenset[str] = frozenset(
    {
        # Images
        ".png",
        ".jpg",
        ".jpeg",
        ".gif",
        ".bmp",
        ".ico",
        # Archives and packages
        ".zip",
        ".nupkg",
        ".snupkg",
        ".gz",
        # Executables and libraries
        ".exe",
        ".dll",
        ".so",
        ".dylib",
        ".winmd",
        # Debug symbols
        ".pdb",
        # Other
        ".resources",
        ".p7s",
    }
)


def is_binary_content(data: bytes, extension: str | None = None, sample_size: int = 8192) -> bool:
    """
    Detect if content is binary.

    Uses a combination of:
    1. Extension-based detection
    2. Magic byte signatures
    3. Null byte detection
    4. High-byte ratio heuristic

    Args:
        data: Raw bytes to check
        extension: Optional file extension (e.g., ".dll")
        sample_size: Number of leading bytes to inspect

    Returns:
        True if content appears to be binary
    """
    if extension and extension.lower() in BINARY_EXTENSIONS:
        return True

    # Empty files are text
    if not data:
        return False

    for sig in BINARY_SIGNATURES:
        if data.startswith(sig):
            return True

    sample = data[:sample_size]

    if b"\x00" in sample:
        return True

    # Allow common whitespace and printable ASCII
    non_text = sum(
        1
        for b in sample
        if b < 0x09 or (0x0D < b < 0x20) or b > 0x7E
    )

    # More than 30% non-text bytes = binary
    return (non_text / len(sample)) > 0.30


def extension_of(name: str) -> str | None:
    """File extension of the last path component including dot, or None."""
    base = name.replace("\\", "/").rsplit("/", 1)[-1]
    if "." not in base:
        return None
    return "." + base.rsplit(".", 1)[-1].lower()


# -----------------------------------------------------------------------------
# Resource metadata
# -----------------------------------------------------------------------------


class ResourceType(Enum):
    """Where a resource's bytes live relative to its container."""

    EMBEDDED = "embedded"
    LINKED = "linked"
    ASSEMBLY_LINKED = "assembly_linked"


class ResourceAttributes(IntFlag):
    """Visibility attributes carried with a resource."""

    PUBLIC = 0x0001
    PRIVATE = 0x0002


# -----------------------------------------------------------------------------
# Entries
# -----------------------------------------------------------------------------


class PackageEntry(ABC):
    """
    A single named, independently openable item inside a package.

    Subclasses provide name, full_name and try_open_stream(). Metadata
    defaults describe a public embedded resource.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """File name of the entry; may include path components relative to the package root."""

    @property
    @abstractmethod
    def full_name(self) -> str:
        """Descriptive identifier embedding the container location. For display only."""

    @property
    def resource_type(self) -> ResourceType:
        return ResourceType.EMBEDDED

    @property
    def attributes(self) -> ResourceAttributes:
        return ResourceAttributes.PUBLIC

    @abstractmethod
    def try_open_stream(self) -> BinaryIO | None:
        """
        Open a new stream over the entry's content.

        Each call returns an independent stream positioned at 0; the caller
        owns it and should close it.

        Returns:
            Readable binary stream, or None when the content is unavailable
        """

    def try_get_length(self) -> int | None:
        """Uncompressed content length if known without opening the entry."""
        return None

    def read_bytes(self) -> bytes | None:
        """
        Read the whole entry.

        Returns:
            Content bytes, or None when the content is unavailable
        """
        stream = self.try_open_stream()
        if stream is None:
            return None
        with stream:
            return stream.read()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.full_name}>"


class FolderEntry(PackageEntry):
    """
    Entry inside a package folder. Effectively renames the entry.

    The tree shows the short local name while the flat package listing
    keeps the full stored name; everything else is delegated.
    """

    def __init__(self, name: str, original: PackageEntry) -> None:
        self._name = name
        self._original = original

    @property
    def name(self) -> str:
        return self._name

    @property
    def original(self) -> PackageEntry:
        return self._original

    @property
    def full_name(self) -> str:
        return self._original.full_name

    @property
    def resource_type(self) -> ResourceType:
        return self._original.resource_type

    @property
    def attributes(self) -> ResourceAttributes:
        return self._original.attributes

    def try_open_stream(self) -> BinaryIO | None:
        return self._original.try_open_stream()

    def try_get_length(self) -> int | None:
        return self._original.try_get_length()
