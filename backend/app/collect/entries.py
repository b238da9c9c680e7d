"""
PageFit — Dropped entry sources.

A drop (or folder upload) is a list of entries, each a file or a directory.
Directories are read through a reader that hands out children in batches
until it returns an empty batch, the way browser directory readers do.

Two sources ship:
  - Local*: a real folder on disk (listing and reads run in a worker thread)
  - Memory*: an in-memory tree, built from uploaded relative paths
"""

from __future__ import annotations

import asyncio
import mimetypes
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from app.errors import TraversalReadError

DEFAULT_BATCH_SIZE = 100

mimetypes.add_type("image/webp", ".webp")


def guess_media_type(name: str) -> str:
    media_type, _ = mimetypes.guess_type(name)
    return media_type or "application/octet-stream"


@dataclass(frozen=True)
class FileHandle:
    """What is known about a file before its content is read."""
    name: str
    relative_path: str
    media_type: str
    size: int = 0

    @property
    def is_image(self) -> bool:
        return self.media_type.startswith("image/")


class Entry(ABC):
    name: str
    relative_path: str
    is_file: bool = False
    is_directory: bool = False

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.relative_path!r})"


class FileEntry(Entry):
    is_file = True

    @abstractmethod
    async def get_file(self) -> FileHandle:
        """
        Resolve the entry to a file handle.

        Raises:
            TraversalReadError: the entry cannot be accessed
            (any PageFitError or OSError skips the entry)
        """
        ...

    @abstractmethod
    async def read_bytes(self) -> bytes:
        """
        Read the full file content.

        Raises:
            TraversalReadError: the content cannot be read
        """
        ...


class DirectoryReader(ABC):
    @abstractmethod
    async def read_entries(self) -> list[Entry]:
        """
        Next batch of children; an empty list once the listing is exhausted.

        Raises:
            TraversalReadError: the listing cannot continue
        """
        ...


class DirectoryEntry(Entry):
    is_directory = True

    @abstractmethod
    def create_reader(self) -> DirectoryReader:
        """Start listing this folder. A PageFitError or OSError skips it."""
        ...


# ──────────────────────────────────────────────────────────
# Local filesystem
# ──────────────────────────────────────────────────────────

class LocalFileEntry(FileEntry):
    def __init__(self, path: Path | str, relative_path: str | None = None):
        self.path = Path(path)
        self.name = self.path.name
        self.relative_path = relative_path or self.name

    async def get_file(self) -> FileHandle:
        try:
            stat = await asyncio.to_thread(self.path.stat)
        except OSError as exc:
            raise TraversalReadError(self.relative_path, exc.strerror or str(exc)) from exc
        return FileHandle(
            name=self.name,
            relative_path=self.relative_path,
            media_type=guess_media_type(self.name),
            size=stat.st_size,
        )

    async def read_bytes(self) -> bytes:
        try:
            return await asyncio.to_thread(self.path.read_bytes)
        except OSError as exc:
            raise TraversalReadError(self.relative_path, exc.strerror or str(exc)) from exc


class LocalDirectoryReader(DirectoryReader):
    def __init__(self, directory: LocalDirectoryEntry, batch_size: int):
        self._directory = directory
        self._batch_size = batch_size
        self._pending: list[Entry] | None = None

    async def read_entries(self) -> list[Entry]:
        if self._pending is None:
            self._pending = await asyncio.to_thread(self._list)
        batch = self._pending[: self._batch_size]
        del self._pending[: self._batch_size]
        return batch

    def _list(self) -> list[Entry]:
        directory = self._directory
        try:
            with os.scandir(directory.path) as it:
                children = sorted(it, key=lambda e: e.name)
        except OSError as exc:
            raise TraversalReadError(directory.relative_path, exc.strerror or str(exc)) from exc

        entries: list[Entry] = []
        for child in children:
            relative = f"{directory.relative_path}/{child.name}"
            # symlinked directories are not followed
            if child.is_dir(follow_symlinks=False):
                entries.append(LocalDirectoryEntry(child.path, relative, self._batch_size))
            elif child.is_file():
                entries.append(LocalFileEntry(child.path, relative))
        return entries


class LocalDirectoryEntry(DirectoryEntry):
    def __init__(
        self,
        path: Path | str,
        relative_path: str | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        self.path = Path(path)
        self.name = self.path.name
        self.relative_path = relative_path or self.name
        self.batch_size = batch_size

    def create_reader(self) -> DirectoryReader:
        return LocalDirectoryReader(self, self.batch_size)


def entries_from_paths(paths: Iterable[Path | str], batch_size: int = DEFAULT_BATCH_SIZE) -> list[Entry]:
    """Top-level entries for paths picked or dropped from the local disk."""
    entries: list[Entry] = []
    for p in paths:
        path = Path(p)
        if path.is_dir():
            entries.append(LocalDirectoryEntry(path, batch_size=batch_size))
        else:
            entries.append(LocalFileEntry(path))
    return entries


# ──────────────────────────────────────────────────────────
# In-memory (uploads)
# ──────────────────────────────────────────────────────────

class MemoryFileEntry(FileEntry):
    def __init__(self, relative_path: str, data: bytes, media_type: str | None = None):
        self.relative_path = relative_path
        self.name = relative_path.rsplit("/", 1)[-1]
        if not media_type or media_type == "application/octet-stream":
            media_type = guess_media_type(self.name)
        self.media_type = media_type
        self.data = data

    async def get_file(self) -> FileHandle:
        return FileHandle(
            name=self.name,
            relative_path=self.relative_path,
            media_type=self.media_type,
            size=len(self.data),
        )

    async def read_bytes(self) -> bytes:
        return self.data


class MemoryDirectoryReader(DirectoryReader):
    def __init__(self, children: list[Entry], batch_size: int):
        self._remaining = list(children)
        self._batch_size = batch_size

    async def read_entries(self) -> list[Entry]:
        batch = self._remaining[: self._batch_size]
        del self._remaining[: self._batch_size]
        return batch


@dataclass(repr=False)
class MemoryDirectoryEntry(DirectoryEntry):
    relative_path: str
    children: list[Entry] = field(default_factory=list)
    batch_size: int = DEFAULT_BATCH_SIZE

    def __post_init__(self):
        self.name = self.relative_path.rsplit("/", 1)[-1]

    def create_reader(self) -> DirectoryReader:
        return MemoryDirectoryReader(self.children, self.batch_size)


def build_upload_tree(
    uploads: Iterable[tuple[str, str | None, bytes]],
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> list[Entry]:
    """
    Rebuild the folder structure of an upload.

    Each upload is (relative_path, media_type, data); folder uploads carry
    paths like "holiday/day1/img.jpg". Files and folders keep the order in
    which they first appear.
    """
    roots: list[Entry] = []
    directories: dict[str, MemoryDirectoryEntry] = {}

    for relative_path, media_type, data in uploads:
        parts = [p for p in relative_path.replace("\\", "/").split("/") if p not in ("", ".", "..")]
        if not parts:
            continue

        siblings = roots
        prefix = ""
        for part in parts[:-1]:
            prefix = f"{prefix}/{part}" if prefix else part
            directory = directories.get(prefix)
            if directory is None:
                directory = MemoryDirectoryEntry(prefix, batch_size=batch_size)
                directories[prefix] = directory
                siblings.append(directory)
            siblings = directory.children

        siblings.append(MemoryFileEntry("/".join(parts), data, media_type))

    return roots
