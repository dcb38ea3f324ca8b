import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, List, Optional

from rich.console import Console
from rich.live import Live
from rich.markup import escape
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from .models import FolderRecord, TraversalResult
from .options import TraversalOptions
from .walker import walk

MAX_LISTED_WARNINGS = 20


class ConsoleManager:
    """A thin wrapper around a rich Console for scan logging and tables."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def log(self, message: str, style: str = ""):
        """Logs a timestamped message with an optional rich style."""
        self.console.log(message, style=style)

    def print_table(self, title: str, columns: List[str], rows: List[List[str]]):
        """Prints a formatted table to the console."""
        table = Table(
            title=title,
            show_header=True,
            header_style="bold magenta",
            border_style="dim",
        )
        for col in columns:
            table.add_column(col)
        for row in rows:
            table.add_row(*row)
        self.console.print(table)

    def print_lines(self, lines: List[str]):
        for line in lines:
            self.console.print(line, highlight=False)


def format_size(num_bytes: int) -> str:
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.2f} KB"
    return f"{num_bytes / (1024 * 1024):.2f} MB"


def _yes_no(flag: bool) -> str:
    return "[green]Yes[/green]" if flag else "[red]No[/red]"


def generate_tree_lines(result: TraversalResult, show_stats: bool = False) -> List[str]:
    """
    Renders the accepted files and folders of a result as tree lines.

    Args:
        result (TraversalResult): A finalized walk result.
        show_stats (bool): If True, annotate folders with their file count and
            aggregate size.

    Returns:
        List[str]: One rich-markup string per tree line, root first.
    """
    tree_dict: Dict[str, Dict] = {}
    for record in result.files:
        level = tree_dict
        for part in record.relative_path.split("/"):
            level = level.setdefault(part, {})
    folders: Dict[str, FolderRecord] = {f.relative_path: f for f in result.folders}

    def stats_for(rel: str) -> str:
        folder = folders.get(rel)
        if not show_stats or folder is None:
            return ""
        return f" [dim][{folder.file_count}f, {format_size(folder.size)}][/dim]"

    lines = []
    style = ("├── ", "└── ", "│   ", "    ")

    def build_lines_recursive(d: Dict, rel_dir: str = "", prefix: str = ""):
        # Folders first, then files, each alphabetically.
        items = sorted(d.keys(), key=lambda k: (not d[k], k.lower()))
        for i, name in enumerate(items):
            is_last = i == len(items) - 1
            connector = style[1] if is_last else style[0]
            rel = f"{rel_dir}/{name}" if rel_dir else name
            display_name = escape(name) + (stats_for(rel) if d[name] else "")
            lines.append(f"{prefix}{connector}{display_name}")
            if d[name]:
                extension = style[3] if is_last else style[2]
                build_lines_recursive(d[name], rel, prefix + extension)

    root_name = f"[bold cyan]{escape(Path(result.root_path).name or result.root_path)}[/bold cyan]"
    if show_stats:
        root_name += f" [dim][{result.file_count}f, {format_size(result.total_size)}][/dim]"
    lines.append(root_name)
    build_lines_recursive(tree_dict)
    return lines


def scan_directory(
    root_directory: str = ".",
    options: Optional[TraversalOptions] = None,
    show_tree: bool = False,
    show_tree_stats: bool = False,
    cancel_event: Optional[threading.Event] = None,
    console: Optional[ConsoleManager] = None,
) -> TraversalResult:
    """
    Walks a directory with a live progress display and prints a summary.

    This is the interactive front end to ``walk``: it prints the effective
    options, reports progress while files are processed, lists per-entry
    failures as warnings, and optionally prints a tree of the result.

    Args:
        root_directory (str): The starting directory for the scan.
        options (TraversalOptions, optional): Traversal rules. Defaults to
            ``TraversalOptions()``.
        show_tree (bool): If True, print a tree of the accepted entries.
        show_tree_stats (bool): If True, annotate the tree with folder statistics.
        cancel_event (threading.Event, optional): Forwarded to ``walk``.
        console (ConsoleManager, optional): Output target. Defaults to a new one.

    Returns:
        TraversalResult: The result returned by ``walk``.

    Raises:
        PathNotFoundError: If the root directory is missing or unreadable.
        WalkCancelledError: If the scan was cancelled.
    """
    console = console or ConsoleManager()
    options = options or TraversalOptions()
    root_dir = Path(root_directory or ".").resolve()
    start_time = time.perf_counter()

    config_rows = [
        ["Root Directory", str(root_dir)],
        ["Include Patterns", ", ".join(options.include_patterns) or "All"],
        ["Exclude Patterns", ", ".join(options.exclude_patterns) or "None"],
        ["Max Depth", str(options.max_depth) if options.max_depth else "Unlimited"],
        [
            "Max File Size",
            format_size(options.max_file_size) if options.max_file_size else "Unlimited",
        ],
        ["Show Hidden", _yes_no(options.show_hidden)],
        ["Exclude Binary", _yes_no(options.exclude_binary)],
        ["Follow Symlinks", _yes_no(options.follow_symlinks)],
        ["Workers", str(options.max_workers or "Default")],
    ]
    console.print_table("Directory Scan Configuration", ["Parameter", "Value"], config_rows)

    @contextmanager
    def progress_manager():
        progress = Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            SpinnerColumn(),
            TimeElapsedColumn(),
            "{task.fields[status]}",
            expand=True,
        )
        with Live(progress, console=console.console, refresh_per_second=10):
            yield progress

    with progress_manager() as progress:
        walk_task = progress.add_task("Walking files", total=None, status="")

        def on_progress(processed: int, submitted: int, name: str):
            progress.update(
                walk_task,
                completed=processed,
                description=f"Processed [bold green]{processed}[/bold green]/{submitted} files",
                status=f"[dim]{escape(name)}[/dim]",
            )

        result = walk(
            root_dir,
            options,
            cancel_event=cancel_event,
            progress_callback=on_progress,
        )
        progress.update(
            walk_task,
            total=max(result.file_count, 1),
            completed=max(result.file_count, 1),
            description=f"Collected [bold green]{result.file_count}[/bold green] files",
            status="[bold green]Done![/bold green]",
        )

    for error in result.errors[:MAX_LISTED_WARNINGS]:
        console.log(f"Warning: {escape(str(error))}", style="yellow")
    if len(result.errors) > MAX_LISTED_WARNINGS:
        console.log(
            f"... and {len(result.errors) - MAX_LISTED_WARNINGS} more warnings",
            style="yellow",
        )

    if show_tree:
        console.print_lines(generate_tree_lines(result, show_tree_stats))

    binary_count = sum(1 for f in result.files if f.is_binary)
    summary_rows = [
        ["Files", f"[bold green]{result.file_count}[/bold green]"],
        ["Folders", str(result.folder_count)],
        ["Binary Files", str(binary_count)],
        ["Total Size", format_size(result.total_size)],
        ["Warnings", f"[yellow]{len(result.errors)}[/yellow]" if result.errors else "0"],
        ["Total Time", f"{time.perf_counter() - start_time:.2f} seconds"],
    ]
    console.print_table("Scan Complete", ["Metric", "Value"], summary_rows)
    return result
