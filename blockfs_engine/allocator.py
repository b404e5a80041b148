from __future__ import annotations
import logging
from typing import List, Optional, Set, Tuple

from .errors import NoSpaceError
from .layout import Layout
from .storage import BackingStore

log = logging.getLogger(__name__)


class FreeBlockMap:
    """One flag per block, True = free."""
    def __init__(self, max_blocks: int, bits: Optional[List[bool]] = None) -> None:
        if bits is None:
            bits = [True] * max_blocks
        if len(bits) != max_blocks:
            raise ValueError(f"bitmap has {len(bits)} entries, expected {max_blocks}")
        self.bits = bits

    def __len__(self) -> int:
        return len(self.bits)

    def is_free(self, block: int) -> bool:
        return self.bits[block]

    def free_count(self) -> int:
        return sum(self.bits)

    def allocated(self) -> Set[int]:
        return {i for i, free in enumerate(self.bits) if not free}

    def mark(self, start: int, count: int, free: bool) -> None:
        for b in range(start, start + count):
            self.bits[b] = free

    def find_run(self, count: int) -> Optional[int]:
        """First-fit: lowest start index of `count` consecutive free blocks."""
        if count <= 0 or count > len(self.bits):
            return None
        for i in range(len(self.bits) - count + 1):
            if all(self.bits[i:i + count]):
                return i
        return None


class BlockAllocator:
    """
    Contiguous first-fit allocation over a FreeBlockMap. Released blocks are
    zeroed in the backing store before they become free again.
    """
    def __init__(self, bitmap: FreeBlockMap, store: BackingStore, layout: Layout) -> None:
        self.bitmap = bitmap
        self.store = store
        self.layout = layout

    def allocate(self, count: int) -> int:
        start = self.bitmap.find_run(count)
        if start is None:
            raise NoSpaceError("Not enough free space to write file.")
        self.bitmap.mark(start, count, free=False)
        log.debug("allocated blocks %d..%d", start, start + count - 1)
        return start

    def release(self, start: int, count: int) -> None:
        self.store.zero(self.layout.block_offset(start), count * self.layout.block_size)
        self.bitmap.mark(start, count, free=True)
        log.debug("released blocks %d..%d", start, start + count - 1)

    def reallocate(self, old: Optional[Tuple[int, int]], count: int) -> int:
        """
        Release `old` (if any) and allocate `count` blocks, with the old extent
        counted as free space. On NoSpaceError the old extent and its bytes stay
        exactly as they were.
        """
        if old is None:
            return self.allocate(count)
        old_start, old_count = old
        self.bitmap.mark(old_start, old_count, free=True)
        start = self.bitmap.find_run(count)
        if start is None:
            self.bitmap.mark(old_start, old_count, free=False)
            raise NoSpaceError("Not enough free space to write file.")
        self.bitmap.mark(old_start, old_count, free=False)
        self.release(old_start, old_count)
        self.bitmap.mark(start, count, free=False)
        log.debug("reallocated blocks %d..%d -> %d..%d",
                  old_start, old_start + old_count - 1, start, start + count - 1)
        return start
