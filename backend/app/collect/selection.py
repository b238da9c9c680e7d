"""
PageFit — The caller's running selection of images.

The export core never holds state between calls; whoever drives it (the
API handler, a script) owns one of these and passes a snapshot to the
export. Ordinals only ever grow: removing an image leaves a gap, it does
not renumber the rest.
"""

from __future__ import annotations

from typing import Iterator, Sequence

from app.collect.entries import Entry
from app.collect.tree import collect_images
from app.models.assets import ImageAsset


class ImageSelection:
    def __init__(self):
        self._assets: list[ImageAsset] = []
        self._next_ordinal = 0

    def __len__(self) -> int:
        return len(self._assets)

    def __iter__(self) -> Iterator[ImageAsset]:
        return iter(self.snapshot())

    @property
    def next_ordinal(self) -> int:
        return self._next_ordinal

    async def add_entries(self, entries: Sequence[Entry]) -> list[ImageAsset]:
        """Collect images from dropped or picked entries and append them."""
        added = await collect_images(entries, start_ordinal=self._next_ordinal)
        self._assets.extend(added)
        if added:
            self._next_ordinal = added[-1].ordinal + 1
        return added

    def remove(self, ordinal: int) -> bool:
        for i, asset in enumerate(self._assets):
            if asset.ordinal == ordinal:
                del self._assets[i]
                return True
        return False

    def clear(self) -> None:
        self._assets.clear()

    def snapshot(self) -> tuple[ImageAsset, ...]:
        """Immutable view in page order, safe to hand to an export."""
        return tuple(sorted(self._assets, key=lambda a: a.ordinal))
