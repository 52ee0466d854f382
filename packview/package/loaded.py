"""
Loaded packages: zip archives (e.g. NuGet packages) or single-file bundles.

A LoadedPackage keeps the flat list of entries in container order and an
eagerly built folder tree over them. Entry content stays lazy.

Usage:
    package = LoadedPackage.from_zip_file("Newtonsoft.Json.nupkg")
    for folder in package.top_level_folders:
        print(folder.name)

    with LoadedPackage.from_bundle("app.exe") as bundle:
        ...
"""

from __future__ import annotations

import logging
import mmap
import os
import zipfile
from enum import Enum
from pathlib import Path
from typing import Iterable

from packview.bundle import is_bundle, read_manifest

from .entry import PackageEntry
from .sources import BundleEntry, ZipFileEntry
from .tree import PackageFolder, build_folder_tree

logger = logging.getLogger(__name__)


class PackageKind(Enum):
    """Container format a package was loaded from."""

    ZIP = "zip"
    BUNDLE = "bundle"


class LoadedPackage:
    """
    Read-only view over a zip archive or a single-file bundle.

    Attributes:
        kind: Container format
        entries: All entries, including those in sub-directories
        root: Root of the folder tree
    """

    def __init__(
        self,
        kind: PackageKind,
        entries: Iterable[PackageEntry],
        *,
        mapping: mmap.mmap | None = None,
    ) -> None:
        """
        Initialize a package and build its folder tree.

        Args:
            kind: Container format
            entries: Entries in container order; consumed once
            mapping: Memory mapping the entries read from, owned from now on
        """
        self.kind = kind
        self.entries: tuple[PackageEntry, ...] = tuple(entries)
        self.root: PackageFolder = build_folder_tree(self.entries)
        self._mapping = mapping

    @property
    def top_level_entries(self) -> tuple[PackageEntry, ...]:
        return tuple(self.root.entries)

    @property
    def top_level_folders(self) -> tuple[PackageFolder, ...]:
        return tuple(self.root.folders)

    def find_entry(self, name: str) -> PackageEntry | None:
        """Return the first entry whose stored name equals name, or None."""
        for entry in self.entries:
            if entry.name == name:
                return entry
        return None

    def total_size(self) -> int:
        """Sum of the known content lengths of all entries."""
        return sum(length for e in self.entries if (length := e.try_get_length()) is not None)

    def close(self) -> None:
        """
        Release the memory mapping backing bundle entries.

        No-op for zip packages and when already closed. Every stream
        obtained from a bundle entry must be closed first.

        Raises:
            BufferError: If bundle streams are still open
        """
        if self._mapping is None:
            return
        # Raises BufferError while streams hold slices; nothing changes then
        self._mapping.close()
        self._mapping = None

    def __enter__(self) -> "LoadedPackage":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"<LoadedPackage kind={self.kind.value} entries={len(self.entries)}>"

    # -------------------------------------------------------------------------
    # Loaders
    # -------------------------------------------------------------------------

    @staticmethod
    def from_zip_file(file: str | Path) -> LoadedPackage:
        """
        Load a zip archive.

        The archive is only open while its members are enumerated; each
        entry reopens it when its content is requested.

        Raises:
            FileNotFoundError: If the file does not exist
            zipfile.BadZipFile: If the file is not a valid zip archive
        """
        logger.debug("LoadedPackage.from_zip_file(%s)", file)
        with zipfile.ZipFile(file, "r") as archive:
            entries = [ZipFileEntry(file, info) for info in archive.infolist()]
        return LoadedPackage(PackageKind.ZIP, entries)

    @staticmethod
    def from_bundle(file_name: str | Path) -> LoadedPackage | None:
        """
        Load a .NET single-file bundle.

        Returns:
            The package, or None if the file is not a bundle

        Raises:
            FileNotFoundError: If the file does not exist
            BundleFormatError: If the bundle manifest is malformed
        """
        logger.debug("LoadedPackage.from_bundle(%s)", file_name)
        with open(file_name, "rb") as f:
            if os.fstat(f.fileno()).st_size == 0:
                logger.debug("%s is empty, not a bundle", file_name)
                return None
            # The mapping stays valid after the file object is closed
            mapping: mmap.mmap | None = mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ)

        try:
            found, bundle_header_offset = is_bundle(mapping)
            if not found:
                logger.debug("%s is not a bundle", file_name)
                return None
            manifest = read_manifest(mapping, bundle_header_offset)
            entries = [BundleEntry(file_name, mapping, e) for e in manifest.entries]
            result = LoadedPackage(PackageKind.BUNDLE, entries, mapping=mapping)
            mapping = None  # owned by the package, still used by the bundle entries
            return result
        finally:
            if mapping is not None:
                mapping.close()
