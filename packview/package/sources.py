"""
Format-specific package entries.

Provides lazy, read-only access to members of:
- Zip files (reopened and decompressed in memory on every open)
- Single-file bundles (zero-copy slices of a shared memory mapping)
"""

from __future__ import annotations

import io
import logging
import mmap
import shutil
import zipfile
import zlib
from pathlib import Path
from typing import BinaryIO

from packview.bundle import BundleFileEntry, BundleFileType
from packview.runtime import get_global_config

from .entry import PackageEntry

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Zip entries
# -----------------------------------------------------------------------------


class ZipFileEntry(PackageEntry):
    """
    Member of a zip archive.

    The archive is not held open between calls: every open reopens it,
    locates the member by name and decompresses it fully into memory.
    Concurrent opens therefore never share a handle or a cursor.
    """

    def __init__(self, zip_file: str | Path, info: zipfile.ZipInfo) -> None:
        """
        Initialize zip entry.

        Args:
            zip_file: Path to the archive
            info: Member record as enumerated from the archive
        """
        self._zip_file = str(zip_file)
        self._name = info.filename
        self._size = info.file_size

    @property
    def name(self) -> str:
        return self._name

    @property
    def full_name(self) -> str:
        return f"zip://{self._zip_file};{self._name}"

    def try_get_length(self) -> int | None:
        return self._size

    def try_open_stream(self) -> BinaryIO | None:
        logger.debug("Decompress %s", self._name)
        with zipfile.ZipFile(self._zip_file, "r") as archive:
            try:
                info = archive.getinfo(self._name)
            except KeyError:
                logger.debug("Zip member %s vanished from %s", self._name, self._zip_file)
                return None

            buffer = io.BytesIO()
            with archive.open(info, "r") as src:
                shutil.copyfileobj(src, buffer, get_global_config().copy_buffer_size)

        buffer.seek(0)
        return buffer


# -----------------------------------------------------------------------------
# Bundle entries
# -----------------------------------------------------------------------------


class MappedViewStream(io.RawIOBase):
    """
    Read-only, seekable stream over a memoryview slice.

    Reads copy only into the caller's buffer; the mapped bytes themselves
    are never duplicated. close() releases the slice so the owning mapping
    can be closed afterwards.
    """

    def __init__(self, view: memoryview) -> None:
        super().__init__()
        self._view = view
        self._position = 0

    def _check_open(self) -> None:
        if self.closed:
            raise ValueError("I/O operation on closed stream")

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        self._check_open()
        target = memoryview(buffer).cast("B")
        count = max(0, min(len(target), len(self._view) - self._position))
        target[:count] = self._view[self._position:self._position + count]
        self._position += count
        return count

    def readall(self) -> bytes:
        self._check_open()
        data = self._view[self._position:].tobytes()
        self._position = len(self._view)
        return data

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        self._check_open()
        if whence == io.SEEK_SET:
            position = offset
        elif whence == io.SEEK_CUR:
            position = self._position + offset
        elif whence == io.SEEK_END:
            position = len(self._view) + offset
        else:
            raise ValueError(f"Invalid whence: {whence}")
        if position < 0:
            raise ValueError(f"Negative seek position {position}")
        self._position = position
        return position

    def tell(self) -> int:
        self._check_open()
        return self._position

    def close(self) -> None:
        if not self.closed:
            self._view.release()
        super().close()


class BundleEntry(PackageEntry):
    """
    File embedded in a single-file bundle.

    Holds a reference to the bundle's memory mapping, owned by the package.
    Each open takes a fresh view at the record's offset and size; the
    mapping must outlive every stream handed out.
    """

    def __init__(self, bundle_file: str | Path, mapping: mmap.mmap, entry: BundleFileEntry) -> None:
        """
        Initialize bundle entry.

        Args:
            bundle_file: Path of the bundle, used for display
            mapping: Read-only mapping of the whole bundle
            entry: Manifest record for this file
        """
        self._bundle_file = str(bundle_file)
        self._mapping = mapping
        self._entry = entry

    @property
    def name(self) -> str:
        return self._entry.relative_path

    @property
    def full_name(self) -> str:
        return f"bundle://{self._bundle_file};{self.name}"

    @property
    def file_type(self) -> BundleFileType:
        return self._entry.type

    @property
    def offset(self) -> int:
        return self._entry.offset

    def try_get_length(self) -> int | None:
        return self._entry.size

    def try_open_stream(self) -> BinaryIO | None:
        """
        Open the member.

        Raises:
            ValueError: If the owning package has been closed
        """
        logger.debug("Open bundle member %s", self.name)
        start = self._entry.offset
        # The slice keeps the mapping exported after the whole view is released
        with memoryview(self._mapping) as view:
            stored = view[start:start + self._entry.stored_size]
        if not self._entry.is_compressed:
            return MappedViewStream(stored)

        # Compressed members are raw deflate streams
        try:
            return io.BytesIO(zlib.decompress(stored, -zlib.MAX_WBITS, self._entry.size or zlib.DEF_BUF_SIZE))
        finally:
            stored.release()
