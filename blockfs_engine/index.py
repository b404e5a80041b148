from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

from .layout import Inode


@dataclass
class InodeSlot:
    slot_id: int
    inode: Optional[Inode] = None

    @property
    def occupied(self) -> bool:
        return self.inode is not None


class InodeTable:
    """
    Fixed-capacity slot array. The slot id is the inode number and stays stable
    for the lifetime of the file; a vacated slot is reused by the next create.
    """
    def __init__(self, capacity: int) -> None:
        self.slots: List[InodeSlot] = [InodeSlot(i) for i in range(capacity)]

    @classmethod
    def from_inodes(cls, inodes: Sequence[Optional[Inode]]) -> "InodeTable":
        table = cls(len(inodes))
        for slot, inode in zip(table.slots, inodes):
            slot.inode = inode
        return table

    @property
    def capacity(self) -> int:
        return len(self.slots)

    def __len__(self) -> int:
        return sum(1 for s in self.slots if s.occupied)

    def inodes(self) -> List[Optional[Inode]]:
        return [s.inode for s in self.slots]

    def occupied(self) -> Iterator[InodeSlot]:
        return (s for s in self.slots if s.occupied)

    def find(self, name: str) -> Optional[InodeSlot]:
        for slot in self.slots:
            if slot.inode is not None and slot.inode.name == name:
                return slot
        return None

    def first_vacant(self) -> Optional[InodeSlot]:
        for slot in self.slots:
            if not slot.occupied:
                return slot
        return None

    def occupy(self, slot_id: int, inode: Inode) -> None:
        slot = self.slots[slot_id]
        if slot.occupied:
            raise ValueError(f"slot {slot_id} is already occupied")
        slot.inode = inode

    def vacate(self, slot_id: int) -> Inode:
        slot = self.slots[slot_id]
        if slot.inode is None:
            raise ValueError(f"slot {slot_id} is already vacant")
        inode, slot.inode = slot.inode, None
        return inode

    def names(self) -> List[str]:
        return [s.inode.name for s in self.occupied()]
