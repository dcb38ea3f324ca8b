import os
import stat
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Iterable, List, Optional, Set, Tuple, Union

from .aggregator import ResultAggregator
from .binary import is_binary, sniff
from .encoding import decode_bytes
from .matcher import PathMatcher, normalize_path
from .models import (
    BINARY_PLACEHOLDER,
    EntryError,
    FileRecord,
    FolderRecord,
    PathNotFoundError,
    TraversalResult,
    WalkCancelledError,
)
from .options import TraversalOptions

ProgressCallback = Callable[[int, int, str], None]
PathLike = Union[str, os.PathLike]

# How long the enumerating thread waits for a free worker slot before it
# re-checks the cancellation event.
_SLOT_POLL_SECONDS = 0.05


# --- Helpers ---
def calculate_depth(relative_path: str) -> int:
    """Depth of a root-relative path: the root's immediate children are at depth 0."""
    return normalize_path(relative_path).count("/")


def is_hidden_name(name: str) -> bool:
    return name.startswith(".")


def _mod_time(st: os.stat_result) -> datetime:
    return datetime.fromtimestamp(st.st_mtime)


def _check_cancelled(cancel_event: Optional[threading.Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise WalkCancelledError("Traversal cancelled by caller")


def _build_file_record(
    abs_path: str, rel_path: str, st: os.stat_result, binary: bool
) -> Tuple[FileRecord, Optional[EntryError]]:
    """
    Reads and decodes a file into a record.

    Raises:
        OSError: If the file content cannot be read.
    """
    warning, encoding = None, None
    if binary:
        content = BINARY_PLACEHOLDER
    else:
        with open(abs_path, "rb") as handle:
            data = handle.read()
        decoded = decode_bytes(data)
        content, encoding = decoded.text, decoded.encoding
        if decoded.fallback:
            warning = EntryError(
                abs_path,
                "transcode",
                f"could not decode as {decoded.encoding}, kept best-effort UTF-8",
            )
    record = FileRecord(
        path=abs_path,
        relative_path=rel_path,
        name=os.path.basename(abs_path),
        size=st.st_size,
        mod_time=_mod_time(st),
        is_hidden=is_hidden_name(os.path.basename(abs_path)),
        is_binary=binary,
        content=content,
        encoding=encoding,
    )
    return record, warning


def _folder_record(abs_path: str, rel_path: str, st: os.stat_result) -> FolderRecord:
    name = os.path.basename(abs_path)
    return FolderRecord(
        path=abs_path,
        relative_path=rel_path,
        name=name,
        mod_time=_mod_time(st),
        is_hidden=is_hidden_name(name),
    )


# --- Per-file Work ---
def process_file(
    abs_path: str,
    rel_path: str,
    options: TraversalOptions,
    matcher: PathMatcher,
    aggregator: ResultAggregator,
) -> Optional[FileRecord]:
    """
    Runs the per-file pipeline: size check, pattern check, binary
    classification, then read and decode.

    Skips (size, pattern, excluded binary) return None silently. Read failures
    are recorded on the aggregator and the file is omitted. Decoding failures
    are recorded but the file is kept with best-effort content.
    """
    try:
        st = os.stat(abs_path)
    except OSError as e:
        aggregator.add_error(EntryError(abs_path, "stat", e.strerror or str(e)))
        return None

    if options.max_file_size > 0 and st.st_size > options.max_file_size:
        return None
    if not matcher.matches(rel_path):
        return None

    try:
        binary = sniff(abs_path)
    except OSError as e:
        aggregator.add_error(EntryError(abs_path, "read", e.strerror or str(e)))
        return None
    if binary and options.exclude_binary:
        return None

    try:
        record, warning = _build_file_record(abs_path, rel_path, st, binary)
    except OSError as e:
        aggregator.add_error(EntryError(abs_path, "read", e.strerror or str(e)))
        return None
    if warning is not None:
        aggregator.add_error(warning)
    aggregator.add_file(record)
    return record


class _FileDispatcher:
    """
    Feeds per-file tasks to a fixed-size thread pool.

    Submission blocks once ``2 * max_workers`` tasks are in flight, which keeps
    memory and open file handles bounded on very large trees.
    """

    def __init__(
        self,
        options: TraversalOptions,
        matcher: PathMatcher,
        aggregator: ResultAggregator,
        cancel_event: Optional[threading.Event],
        progress_callback: Optional[ProgressCallback],
    ):
        self.options, self.matcher, self.aggregator = options, matcher, aggregator
        self.cancel_event = cancel_event
        self.progress_callback = progress_callback
        workers = options.max_workers or (os.cpu_count() or 1) + 4
        self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="walker")
        self._slots = threading.BoundedSemaphore(workers * 2)
        self._lock = threading.Lock()
        self._submitted = self._processed = 0
        self._failure: Optional[BaseException] = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._executor.shutdown(wait=True, cancel_futures=exc_type is not None)
        if exc_type is None and self._failure is not None:
            raise self._failure
        return False

    def submit(self, abs_path: str, rel_path: str) -> None:
        while not self._slots.acquire(timeout=_SLOT_POLL_SECONDS):
            _check_cancelled(self.cancel_event)
        try:
            _check_cancelled(self.cancel_event)
            future = self._executor.submit(self._run, abs_path, rel_path)
        except BaseException:
            self._slots.release()
            raise
        with self._lock:
            self._submitted += 1
        future.add_done_callback(self._on_done)

    def _run(self, abs_path: str, rel_path: str) -> str:
        if self.cancel_event is None or not self.cancel_event.is_set():
            process_file(abs_path, rel_path, self.options, self.matcher, self.aggregator)
        return os.path.basename(abs_path)

    def _on_done(self, future: "Future[str]") -> None:
        self._slots.release()
        if future.cancelled():
            return
        error = future.exception()
        with self._lock:
            self._processed += 1
            processed, submitted = self._processed, self._submitted
            if error is not None and self._failure is None:
                self._failure = error
        if error is None and self.progress_callback is not None:
            self.progress_callback(processed, submitted, future.result())


# --- Enumeration ---
def _scan_tree(
    root: str,
    options: TraversalOptions,
    matcher: PathMatcher,
    aggregator: ResultAggregator,
    dispatcher: _FileDispatcher,
    cancel_event: Optional[threading.Event],
) -> None:
    """Enumerates the tree top-down on the calling thread, dispatching files."""
    visited: Set[Tuple[int, int]] = set()
    if options.follow_symlinks:
        root_stat = os.stat(root)
        visited.add((root_stat.st_dev, root_stat.st_ino))

    def recursive_scan(current_path: str, rel_dir: str):
        try:
            with os.scandir(current_path) as it:
                entries = list(it)
        except OSError as e:
            if not rel_dir:
                raise PathNotFoundError(root, e.strerror or str(e)) from e
            aggregator.add_error(EntryError(current_path, "listdir", e.strerror or str(e)))
            return

        for entry in entries:
            _check_cancelled(cancel_event)
            if not options.show_hidden and is_hidden_name(entry.name):
                continue
            rel_path = f"{rel_dir}/{entry.name}" if rel_dir else entry.name
            over_depth = options.max_depth > 0 and calculate_depth(rel_path) >= options.max_depth

            try:
                is_dir = entry.is_dir(follow_symlinks=True)
                is_file = not is_dir and entry.is_file(follow_symlinks=True)
            except OSError:
                is_dir = is_file = False

            if is_dir:
                if over_depth or matcher.excludes_directory(rel_path):
                    continue
                if entry.is_symlink() and not options.follow_symlinks:
                    continue
                try:
                    st = entry.stat(follow_symlinks=True)
                except OSError as e:
                    aggregator.add_error(EntryError(entry.path, "stat", e.strerror or str(e)))
                    continue
                if options.follow_symlinks:
                    identity = (st.st_dev, st.st_ino)
                    if identity in visited:
                        continue
                    visited.add(identity)
                aggregator.add_folder(_folder_record(entry.path, rel_path, st))
                recursive_scan(entry.path, rel_path)
            elif is_file:
                if not over_depth:
                    dispatcher.submit(entry.path, rel_path)
            elif entry.is_symlink():
                aggregator.add_error(EntryError(entry.path, "stat", "broken symbolic link"))

    recursive_scan(root, "")


# --- Main Entry Points ---
def walk(
    root_path: PathLike,
    options: Optional[TraversalOptions] = None,
    *,
    cancel_event: Optional[threading.Event] = None,
    progress_callback: Optional[ProgressCallback] = None,
) -> TraversalResult:
    """
    Walks a directory tree and collects every accepted file and folder.

    Args:
        root_path (str | PathLike): The directory to scan. A regular file is
            treated as a one-file selection (see ``walk_files``).
        options (TraversalOptions, optional): Depth, size, visibility and
            pattern rules. Defaults to ``TraversalOptions()``.
        cancel_event (threading.Event, optional): When set, the walk stops
            dispatching work and raises ``WalkCancelledError``.
        progress_callback (callable, optional): Called from worker threads as
            ``callback(processed, submitted, file_name)`` after each file.

    Returns:
        TraversalResult: The finalized result. Per-entry failures are listed in
        ``result.errors`` rather than raised.

    Raises:
        PathNotFoundError: If the root does not exist or cannot be listed.
        WalkCancelledError: If ``cancel_event`` was set before completion.
    """
    options = options or TraversalOptions()
    start_time = time.perf_counter()
    root = os.path.abspath(os.fspath(root_path))
    try:
        root_stat = os.stat(root)
    except OSError as e:
        raise PathNotFoundError(root, e.strerror or str(e)) from e
    if not stat.S_ISDIR(root_stat.st_mode):
        # The root is exempt from the hidden rule, so skip walk_files' filtering.
        return _walk_selection(
            [root], options, cancel_event=cancel_event, progress_callback=progress_callback
        )

    matcher = PathMatcher.from_options(options)
    aggregator = ResultAggregator(root)
    with _FileDispatcher(options, matcher, aggregator, cancel_event, progress_callback) as dispatcher:
        _scan_tree(root, options, matcher, aggregator, dispatcher, cancel_event)
    # Workers skip their task once cancelled, so a late cancel may mean an
    # incomplete result. A cancel that lands after the last file finished is
    # reported the same way: callers get a complete result or an exception.
    _check_cancelled(cancel_event)
    return aggregator.finalize(time.perf_counter() - start_time)


def walk_files(
    paths: Iterable[PathLike],
    options: Optional[TraversalOptions] = None,
    *,
    cancel_event: Optional[threading.Event] = None,
    progress_callback: Optional[ProgressCallback] = None,
) -> TraversalResult:
    """
    Processes an explicit selection of files instead of enumerating a tree.

    Paths that do not exist or are directories are skipped, and each file is
    processed once even if listed several times. Relative paths are computed
    against the common parent directory of the selection, and every parent
    directory becomes a folder record. ``max_depth`` does not apply.
    """
    options = options or TraversalOptions()
    selected: List[str] = []
    seen: Set[str] = set()
    for path in paths:
        abs_path = os.path.abspath(os.fspath(path))
        if abs_path in seen or not os.path.isfile(abs_path):
            continue
        if not options.show_hidden and is_hidden_name(os.path.basename(abs_path)):
            continue
        seen.add(abs_path)
        selected.append(abs_path)
    return _walk_selection(
        selected, options, cancel_event=cancel_event, progress_callback=progress_callback
    )


def _walk_selection(
    selected: List[str],
    options: TraversalOptions,
    *,
    cancel_event: Optional[threading.Event],
    progress_callback: Optional[ProgressCallback],
) -> TraversalResult:
    """Processes already-vetted, de-duplicated absolute file paths."""
    start_time = time.perf_counter()
    base = os.path.commonpath([os.path.dirname(p) for p in selected]) if selected else ""
    matcher = PathMatcher.from_options(options)
    aggregator = ResultAggregator(base)

    with _FileDispatcher(options, matcher, aggregator, cancel_event, progress_callback) as dispatcher:
        for abs_path in selected:
            _check_cancelled(cancel_event)
            parent = os.path.dirname(abs_path)
            rel_parent = normalize_path(os.path.relpath(parent, base).replace(os.sep, "/"))
            if rel_parent == ".":
                rel_parent = ""
            try:
                aggregator.add_folder(_folder_record(parent, rel_parent, os.stat(parent)))
            except OSError as e:
                aggregator.add_error(EntryError(parent, "stat", e.strerror or str(e)))
            rel_path = f"{rel_parent}/{os.path.basename(abs_path)}" if rel_parent else os.path.basename(abs_path)
            dispatcher.submit(abs_path, rel_path)
    _check_cancelled(cancel_event)
    return aggregator.finalize(time.perf_counter() - start_time)


def get_file_info(path: PathLike) -> FileRecord:
    """
    Builds a record for a single file, outside of any walk.

    Raises:
        OSError: If the file cannot be stat'ed or read.
    """
    abs_path = os.path.abspath(os.fspath(path))
    st = os.stat(abs_path)
    record, _ = _build_file_record(abs_path, os.path.basename(abs_path), st, is_binary(abs_path))
    return record


def get_folder_info(path: PathLike) -> FolderRecord:
    """
    Builds a record for a single directory holding its direct child files.

    Child files that cannot be read are left out.

    Raises:
        OSError: If the directory cannot be stat'ed or listed.
    """
    abs_path = os.path.abspath(os.fspath(path))
    st = os.stat(abs_path)
    files = []
    with os.scandir(abs_path) as it:
        for entry in it:
            try:
                if entry.is_file(follow_symlinks=True):
                    files.append(get_file_info(entry.path))
            except OSError:
                continue
    files.sort(key=lambda f: f.name)
    name = os.path.basename(abs_path)
    return FolderRecord(
        path=abs_path,
        relative_path="",
        name=name,
        mod_time=_mod_time(st),
        is_hidden=is_hidden_name(name),
        size=sum(f.size for f in files),
        file_count=len(files),
        files=tuple(files),
    )
