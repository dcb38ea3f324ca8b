import posixpath
import threading
from dataclasses import replace
from typing import Dict, List

from .models import EntryError, FileRecord, FolderRecord, TraversalResult


class ResultAggregator:
    """
    Thread-safe accumulator for the records produced during a walk.

    Every mutation and every read of the running totals goes through a single
    lock, so the counts always agree with the stored collections.
    """

    def __init__(self, root_path: str):
        self.root_path = root_path
        self._lock = threading.Lock()
        self._files: Dict[str, FileRecord] = {}
        self._folders: Dict[str, FolderRecord] = {}
        self._errors: List[EntryError] = []
        self._total_size = 0

    def add_file(self, record: FileRecord) -> bool:
        """Stores a file record. Returns False if the path was already recorded."""
        with self._lock:
            if record.path in self._files:
                return False
            self._files[record.path] = record
            self._total_size += record.size
            return True

    def add_folder(self, record: FolderRecord) -> bool:
        with self._lock:
            if record.relative_path in self._folders:
                return False
            self._folders[record.relative_path] = record
            return True

    def add_error(self, error: EntryError) -> None:
        with self._lock:
            self._errors.append(error)

    @property
    def file_count(self) -> int:
        with self._lock:
            return len(self._files)

    @property
    def folder_count(self) -> int:
        with self._lock:
            return len(self._folders)

    @property
    def total_size(self) -> int:
        with self._lock:
            return self._total_size

    def finalize(self, duration: float = 0.0) -> TraversalResult:
        """
        Builds the read-only result once all workers have finished.

        Folder sizes and counts are computed from the accepted files, folders
        without any accepted descendant file are dropped, and each remaining
        folder is given its direct children for tree-style consumers.
        """
        with self._lock:
            files = list(self._files.values())
            folders = dict(self._folders)
            errors = list(self._errors)
            total_size = self._total_size

        sizes = {rel: 0 for rel in folders}
        counts = {rel: 0 for rel in folders}
        direct_files: Dict[str, List[FileRecord]] = {rel: [] for rel in folders}
        for record in files:
            parent = posixpath.dirname(record.relative_path)
            if parent in direct_files:
                direct_files[parent].append(record)
            while True:
                if parent in sizes:
                    sizes[parent] += record.size
                    counts[parent] += 1
                if not parent:
                    break
                parent = posixpath.dirname(parent)

        kept = [rel for rel in folders if counts[rel] > 0]
        # Deepest first so every child is finished before its parent is built;
        # "" (the selection base in walk_files) always comes last.
        kept.sort(key=lambda rel: rel.count("/") if rel else -1, reverse=True)
        built: Dict[str, FolderRecord] = {}
        children: Dict[str, List[FolderRecord]] = {rel: [] for rel in kept}
        for rel in kept:
            record = replace(
                folders[rel],
                size=sizes[rel],
                file_count=counts[rel],
                files=tuple(sorted(direct_files[rel], key=lambda f: f.name)),
                folders=tuple(sorted(children[rel], key=lambda f: f.name)),
            )
            built[rel] = record
            parent = posixpath.dirname(rel)
            if rel and parent in children:
                children[parent].append(record)

        return TraversalResult(
            root_path=self.root_path,
            files=files,
            folders=list(built.values()),
            file_count=len(files),
            folder_count=len(built),
            total_size=total_size,
            errors=errors,
            duration=duration,
        )
