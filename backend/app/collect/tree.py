"""
PageFit — Collect images out of a dropped folder tree.

Walks the dropped entries depth-first: a folder's whole content lands in
place before the next sibling, so dropping "A" then "B" yields A's images
before B's. Folders are walked with an explicit stack rather than
recursion, and every entry carries a sort key made of its positions
along the path, so arbitrarily deep trees come out in a stable order.

Only files with an image/* media type are kept. An entry that cannot be
read (any PageFitError or OSError from an entry source) is logged and
skipped; it never stops the rest of the walk.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Sequence

from app.collect.entries import DirectoryReader, Entry, FileEntry, FileHandle
from app.errors import PageFitError
from app.models.assets import ImageAsset
from app.utils.logging import logger, step_timer

SortKey = tuple[int, ...]


@dataclass
class _Frame:
    """One folder being listed."""
    key: SortKey
    label: str
    reader: DirectoryReader | None
    batch: deque[Entry] = field(default_factory=deque)
    handed_out: int = 0
    exhausted: bool = False


async def _read_image(entry: FileEntry) -> tuple[FileHandle, bytes] | None:
    """File handle and content for an image entry, None for anything else."""
    try:
        handle = await entry.get_file()
        if not handle.is_image:
            return None
        data = await entry.read_bytes()
    except (PageFitError, OSError) as exc:
        logger.warning("  Skipped %s: %s", entry.relative_path, exc)
        return None
    return handle, data


async def collect_images(
    entries: Sequence[Entry],
    start_ordinal: int = 0,
    request_id: str | None = None,
) -> list[ImageAsset]:
    """
    Flatten dropped files and folders into an ordered list of images.

    Ordinals are assigned from start_ordinal upwards, so new images land
    after anything already selected.
    """
    found: list[tuple[SortKey, FileHandle, bytes]] = []
    skipped = 0

    with step_timer("Collect images", request_id=request_id):
        stack = [_Frame(key=(), label="<drop>", reader=None, batch=deque(entries), exhausted=True)]

        while stack:
            frame = stack[-1]

            if not frame.batch:
                if frame.exhausted:
                    stack.pop()
                    continue
                try:
                    batch = await frame.reader.read_entries()
                except (PageFitError, OSError) as exc:
                    logger.warning("  Stopped reading %s: %s", frame.label, exc)
                    skipped += 1
                    stack.pop()
                    continue
                if not batch:
                    frame.exhausted = True
                    continue
                frame.batch.extend(batch)
                continue

            entry = frame.batch.popleft()
            key = frame.key + (frame.handed_out,)
            frame.handed_out += 1

            if entry.is_directory:
                try:
                    reader = entry.create_reader()
                except (PageFitError, OSError) as exc:
                    logger.warning("  Skipped folder %s: %s", entry.relative_path, exc)
                    skipped += 1
                    continue
                stack.append(_Frame(key=key, label=entry.relative_path, reader=reader))
            elif entry.is_file:
                result = await _read_image(entry)
                if result is None:
                    skipped += 1
                    continue
                handle, data = result
                found.append((key, handle, data))

        found.sort(key=lambda item: item[0])
        images = [
            ImageAsset(
                ordinal=start_ordinal + i,
                name=handle.name,
                relative_path=handle.relative_path,
                media_type=handle.media_type,
                data=data,
            )
            for i, (_, handle, data) in enumerate(found)
        ]
        logger.info("  Collected %d images (%d entries skipped)", len(images), skipped)
        return images
