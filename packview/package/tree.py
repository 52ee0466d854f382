"""
Folder tree reconstruction.

Packages store flat, path-qualified entry names. The tree built here is
synthetic: one PackageFolder per directory implied by those names, each
entry re-exposed under its short local name.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator

from .entry import FolderEntry, PackageEntry


def split_name(name: str) -> tuple[str, str]:
    """
    Split a path-qualified name into (directory, filename).

    Both forward and backward slashes separate components. Names without
    a separator live in the root, whose key is "".
    """
    pos = max(name.rfind("/"), name.rfind("\\"))
    if pos == -1:
        return "", name  # file in root
    return name[:pos], name[pos + 1:]


@dataclass(eq=False)
class PackageFolder:
    """
    Directory node of a package tree.

    Attributes:
        name: Short name of the folder (no separators)
        folders: Child folders in discovery order
        entries: Child entries, renamed to their short names
    """

    name: str
    folders: list[PackageFolder] = field(default_factory=list)
    entries: list[PackageEntry] = field(default_factory=list)

    def walk(self, path: str = "") -> Iterator[tuple[str, PackageFolder]]:
        """
        Yield (path, folder) for this folder and all descendants, depth-first.

        Paths are joined with "/"; the starting folder gets the given path.
        """
        stack = [(path, self)]
        while stack:
            current_path, folder = stack.pop()
            yield current_path, folder
            children = [
                (f"{current_path}/{child.name}" if current_path else child.name, child)
                for child in folder.folders
            ]
            stack.extend(reversed(children))


def build_folder_tree(entries: Iterable[PackageEntry]) -> PackageFolder:
    """
    Build the folder hierarchy implied by entry names.

    Every directory path is memoized so repeated prefixes resolve to the
    same node. Sibling order follows the order entries are supplied.
    Names are not validated: an empty filename or duplicate name is
    attached exactly as split_name() yields it.

    Args:
        entries: Package entries in package order

    Returns:
        Root folder, named ""
    """
    root = PackageFolder("")
    folders: dict[str, PackageFolder] = {"": root}

    def get_folder(dirname: str) -> PackageFolder:
        folder = folders.get(dirname)
        if folder is not None:
            return folder

        # Collect missing ancestors, deepest first
        missing: list[str] = []
        while dirname not in folders:
            missing.append(dirname)
            dirname, _ = split_name(dirname)

        parent = folders[dirname]
        for path in reversed(missing):
            _, basename = split_name(path)
            folder = PackageFolder(basename)
            parent.folders.append(folder)
            folders[path] = folder
            parent = folder
        return parent

    for entry in entries:
        dirname, filename = split_name(entry.name)
        get_folder(dirname).entries.append(FolderEntry(filename, entry))

    return root
