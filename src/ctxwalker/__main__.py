import argparse
import sys
from typing import List, Optional

from . import __version__
from .models import PathNotFoundError, WalkCancelledError
from .options import IgnorePreset, LanguagePreset, TraversalOptions
from .snapshot import ConsoleManager, scan_directory


def _preset_names(enum_cls) -> List[str]:
    return [member.name.lower() for member in enum_cls]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ctxwalker",
        description="Scan a directory and collect file metadata and decoded text content.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("root", nargs="?", default=".", help="Directory to scan")
    parser.add_argument("-d", "--max-depth", type=int, default=0, help="Maximum depth (0 = unlimited)")
    parser.add_argument(
        "-s", "--max-file-size", type=int, default=0, help="Skip files larger than this many bytes (0 = unlimited)"
    )
    parser.add_argument("-i", "--include", action="append", default=[], help="Include pattern (repeatable)")
    parser.add_argument("-e", "--exclude", action="append", default=[], help="Exclude pattern (repeatable)")
    parser.add_argument(
        "--lang", action="append", default=[], choices=_preset_names(LanguagePreset), help="Language include preset"
    )
    parser.add_argument(
        "--ignore", action="append", default=[], choices=_preset_names(IgnorePreset), help="Ignore preset"
    )
    parser.add_argument("--default-excludes", action="store_true", help="Apply the built-in exclude patterns")
    parser.add_argument("--follow-symlinks", action="store_true", help="Descend into symlinked directories")
    parser.add_argument("--show-hidden", action="store_true", help="Include dot-files and dot-directories")
    parser.add_argument("--exclude-binary", action="store_true", help="Leave binary files out of the result")
    parser.add_argument("-w", "--workers", type=int, default=None, help="Worker threads for file processing")
    parser.add_argument("--tree", action="store_true", help="Print a tree of the collected entries")
    parser.add_argument("--tree-stats", action="store_true", help="Annotate the tree with folder statistics")
    return parser


def options_from_args(args: argparse.Namespace) -> TraversalOptions:
    return TraversalOptions.normalize_inputs(
        include_patterns=args.include,
        exclude_patterns=args.exclude,
        language_presets=[LanguagePreset[name.upper()] for name in args.lang],
        ignore_presets=[IgnorePreset[name.upper()] for name in args.ignore],
        use_default_excludes=args.default_excludes,
        max_depth=args.max_depth,
        max_file_size=args.max_file_size,
        follow_symlinks=args.follow_symlinks,
        show_hidden=args.show_hidden,
        exclude_binary=args.exclude_binary,
        max_workers=args.workers,
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    console = ConsoleManager()

    try:
        options = options_from_args(args)
    except ValueError as e:
        parser.error(str(e))

    try:
        scan_directory(
            args.root,
            options,
            show_tree=args.tree or args.tree_stats,
            show_tree_stats=args.tree_stats,
            console=console,
        )
    except PathNotFoundError as e:
        console.log(f"Error: {e}", style="bold red")
        return 1
    except (WalkCancelledError, KeyboardInterrupt):
        console.log("Scan cancelled.", style="bold yellow")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
