"""
Serializable snapshots of a loaded package.

Used for machine-readable output (`packview tree --format json`). Folders
are listed flat, in walk order, and reference their children by name, so
nesting depth never turns into recursion when building or dumping them.
"""

from __future__ import annotations

from pydantic import BaseModel

from packview.package import LoadedPackage, PackageEntry, PackageFolder


class EntryInfo(BaseModel):
    """A single entry as shown in a folder."""

    name: str  # short name inside its folder
    full_name: str
    size: int | None = None
    resource_type: str = "embedded"

    @classmethod
    def from_entry(cls, entry: PackageEntry) -> "EntryInfo":
        return cls(
            name=entry.name,
            full_name=entry.full_name,
            size=entry.try_get_length(),
            resource_type=entry.resource_type.value,
        )


class FolderInfo(BaseModel):
    """One folder: its path, child folder names and entries."""

    path: str  # "" for the root
    name: str
    folders: list[str] = []
    entries: list[EntryInfo] = []

    @classmethod
    def from_folder(cls, path: str, folder: PackageFolder) -> "FolderInfo":
        return cls(
            path=path,
            name=folder.name,
            folders=[child.name for child in folder.folders],
            entries=[EntryInfo.from_entry(entry) for entry in folder.entries],
        )


class PackageInfo(BaseModel):
    """Summary plus every folder of a package."""

    path: str
    kind: str  # "zip" or "bundle"
    entry_count: int
    total_size: int
    folders: list[FolderInfo]  # root first, then depth-first

    @classmethod
    def from_package(cls, path: str, package: LoadedPackage) -> "PackageInfo":
        return cls(
            path=path,
            kind=package.kind.value,
            entry_count=len(package.entries),
            total_size=package.total_size(),
            folders=[FolderInfo.from_folder(p, f) for p, f in package.root.walk()],
        )
