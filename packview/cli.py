"""
Packview CLI.

Commands:
    info     Show kind, entry count and sizes of a package
    ls       List every entry in container order
    tree     Show the folder tree implied by entry names
    cat      Write one entry's content to stdout

Examples:
    packview info Newtonsoft.Json.13.0.3.nupkg
    packview ls app.exe --bundle --full
    packview tree library.nupkg -f json
    packview cat library.nupkg lib/net6.0/Library.xml
"""

from __future__ import annotations

import argparse
import logging
import sys
import zipfile

from packview.bundle import BundleFormatError
from packview.package import LoadedPackage, PackageFolder, is_binary_content
from packview.package.entry import extension_of
from packview.runtime import get_global_config, get_runtime_config, set_global_config


def open_package(path: str, kind: str | None = None) -> LoadedPackage | None:
    """
    Load a package, choosing the loader from kind or by sniffing the file.

    Args:
        path: Package file
        kind: "zip", "bundle", or None to detect

    Returns:
        The package, or None if a bundle was expected but not found
    """
    if kind is None:
        kind = "zip" if zipfile.is_zipfile(path) else "bundle"
    if kind == "zip":
        return LoadedPackage.from_zip_file(path)
    return LoadedPackage.from_bundle(path)


def _load(args: argparse.Namespace) -> LoadedPackage | None:
    """Open the package named on the command line, reporting failures."""
    try:
        package = open_package(args.package, args.kind)
    except FileNotFoundError as e:
        print(f"Error: File not found: {e.filename or args.package}", file=sys.stderr)
        return None
    except zipfile.BadZipFile as e:
        print(f"Error: Bad zip file: {args.package}: {e}", file=sys.stderr)
        return None
    except BundleFormatError as e:
        print(f"Error: Malformed bundle: {args.package}: {e}", file=sys.stderr)
        return None
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return None

    if package is None:
        print(f"Error: Not a package: {args.package}", file=sys.stderr)
    return package


def _format_size(size: int | None) -> str:
    return "-" if size is None else f"{size:,}"


def cmd_info(args: argparse.Namespace) -> int:
    """Handle info command."""
    package = _load(args)
    if package is None:
        return 1

    with package:
        print(f"Package: {args.package}")
        print(f"Kind: {package.kind.value}")
        print()
        print("Stats:")
        print(f"  Entries: {len(package.entries)}")
        print(f"  Top-level entries: {len(package.top_level_entries)}")
        print(f"  Top-level folders: {len(package.top_level_folders)}")
        print(f"  Content size: {package.total_size():,} bytes")
    return 0


def cmd_ls(args: argparse.Namespace) -> int:
    """Handle ls command."""
    package = _load(args)
    if package is None:
        return 1

    with package:
        for entry in package.entries:
            label = entry.full_name if args.full else entry.name
            print(f"{_format_size(entry.try_get_length()):>14}  {label}")
    return 0


def _print_tree(root: PackageFolder) -> None:
    """
    Print folders before entries, both in discovery order.

    Uses an explicit stack; a folder's entries are printed once all of its
    sub-folders have been.
    """
    stack: list[tuple[PackageFolder, int, bool]] = [(root, 0, False)]
    while stack:
        folder, depth, expanded = stack.pop()
        if expanded:
            for entry in folder.entries:
                print(f"{'  ' * depth}{entry.name}")
            continue

        if depth:
            print(f"{'  ' * (depth - 1)}{folder.name}/")
        stack.append((folder, depth, True))
        stack.extend((child, depth + 1, False) for child in reversed(folder.folders))


def cmd_tree(args: argparse.Namespace) -> int:
    """Handle tree command."""
    package = _load(args)
    if package is None:
        return 1

    with package:
        if args.format == "json":
            from packview.models import PackageInfo

            print(PackageInfo.from_package(args.package, package).model_dump_json(indent=2))
        else:
            _print_tree(package.root)
    return 0


def cmd_cat(args: argparse.Namespace) -> int:
    """Handle cat command."""
    package = _load(args)
    if package is None:
        return 1

    with package:
        entry = package.find_entry(args.entry)
        if entry is None:
            print(f"Error: No entry named {args.entry!r} in {args.package}", file=sys.stderr)
            return 1

        data = entry.read_bytes()
        if data is None:
            print(f"Error: Content unavailable: {entry.full_name}", file=sys.stderr)
            return 1

        sample_size = get_global_config().binary_sample_size
        if (
            not args.force
            and sys.stdout.isatty()
            and is_binary_content(data, extension_of(entry.name), sample_size)
        ):
            print(
                f"Error: {args.entry} is binary; use --force to write it to the terminal",
                file=sys.stderr,
            )
            return 1

        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
    return 0


def _add_package_arguments(parser: argparse.ArgumentParser) -> None:
    """Arguments shared by every command."""
    parser.add_argument(
        "package",
        help="Path to a zip archive or single-file bundle",
    )
    kind = parser.add_mutually_exclusive_group()
    kind.add_argument(
        "--zip",
        dest="kind",
        action="store_const",
        const="zip",
        help="Read the file as a zip archive",
    )
    kind.add_argument(
        "--bundle",
        dest="kind",
        action="store_const",
        const="bundle",
        help="Read the file as a single-file bundle",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Print debug information",
    )


def main(argv: list[str] | None = None) -> int:
    """Main CLI entrypoint."""
    parser = argparse.ArgumentParser(
        prog="packview",
        description="Browse zip archives and single-file bundles as folder trees.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # info
    info_parser = subparsers.add_parser(
        "info",
        help="Show kind, entry count and sizes",
    )
    _add_package_arguments(info_parser)

    # ls
    ls_parser = subparsers.add_parser(
        "ls",
        help="List every entry in container order",
    )
    _add_package_arguments(ls_parser)
    ls_parser.add_argument(
        "--full",
        action="store_true",
        help="Show full names (zip://... or bundle://...)",
    )

    # tree
    tree_parser = subparsers.add_parser(
        "tree",
        help="Show the folder tree",
    )
    _add_package_arguments(tree_parser)
    tree_parser.add_argument(
        "-f",
        "--format",
        choices=["json", "text"],
        default="text",
        help="Output format (default: text)",
    )

    # cat
    cat_parser = subparsers.add_parser(
        "cat",
        help="Write an entry's content to stdout",
    )
    _add_package_arguments(cat_parser)
    cat_parser.add_argument(
        "entry",
        help="Stored entry name, e.g. lib/net6.0/Library.dll",
    )
    cat_parser.add_argument(
        "--force",
        action="store_true",
        help="Write binary content even when stdout is a terminal",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    config = get_runtime_config(verbose=args.verbose)
    set_global_config(config)
    logging.basicConfig(
        level=logging.DEBUG if config.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.command == "info":
        return cmd_info(args)
    elif args.command == "ls":
        return cmd_ls(args)
    elif args.command == "tree":
        return cmd_tree(args)
    elif args.command == "cat":
        return cmd_cat(args)
    else:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
