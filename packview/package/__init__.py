"""
Packview package layer.

Provides a read-only view over zip archives and single-file bundles,
exposing both the flat entry list and the folder tree implied by entry
names. Entry content is only read when a stream is opened.

Usage:
    from packview.package import LoadedPackage

    package = LoadedPackage.from_zip_file("library.nupkg")
    for entry in package.top_level_entries:
        print(entry.name, entry.full_name)

    bundle = LoadedPackage.from_bundle("app.exe")
    if bundle is None:
        print("not a bundle")
"""

from .entry import (
    FolderEntry,
    PackageEntry,
    ResourceAttributes,
    ResourceType,
    is_binary_content,
)
from .loaded import LoadedPackage, PackageKind
from .sources import BundleEntry, MappedViewStream, ZipFileEntry
from .tree import PackageFolder, build_folder_tree, split_name

__all__ = [
    # Entries
    "PackageEntry",
    "FolderEntry",
    "ZipFileEntry",
    "BundleEntry",
    "MappedViewStream",
    "ResourceType",
    "ResourceAttributes",
    "is_binary_content",
    # Tree
    "PackageFolder",
    "build_folder_tree",
    "split_name",
    # Packages
    "LoadedPackage",
    "PackageKind",
]
