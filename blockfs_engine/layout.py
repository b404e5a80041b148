from __future__ import annotations
import struct
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .errors import InvalidArgumentError, MetadataCorruptionError

NAME_BYTES = 11
INODE_STRUCT = struct.Struct(">11sHh")
INODE_SIZE = INODE_STRUCT.size  # 15
MAX_FILE_SIZE = 0xFFFF
MAX_BLOCK_INDEX = 0x7FFF
NO_BLOCK = -1

BITMAP_FREE = 1
BITMAP_USED = 0


@dataclass
class Inode:
    name: str
    size: int = 0
    first_block: int = NO_BLOCK

    def pack(self) -> bytes:
        return INODE_STRUCT.pack(self.name.encode("utf-8"), self.size, self.first_block)

    @staticmethod
    def unpack(data: bytes) -> Optional["Inode"]:
        """Decode one 15-byte record; an all-zero name means the slot is vacant."""
        raw_name, size, first_block = INODE_STRUCT.unpack(data[:INODE_SIZE])
        raw_name = raw_name.rstrip(b"\x00")
        if not raw_name:
            return None
        try:
            name = raw_name.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MetadataCorruptionError(f"undecodable file name {raw_name!r}") from e
        return Inode(name, size, first_block)


EMPTY_SLOT = INODE_STRUCT.pack(b"", 0, NO_BLOCK)


@dataclass(frozen=True)
class Layout:
    """
    Geometry of a backing store:
      [inode table: max_files * 15][bitmap: max_blocks][blocks: max_blocks * block_size]
    """
    max_files: int = 5
    max_blocks: int = 10
    block_size: int = 128

    def __post_init__(self) -> None:
        if self.max_files < 1:
            raise InvalidArgumentError("max_files must be at least 1")
        if not 1 <= self.max_blocks <= MAX_BLOCK_INDEX:
            raise InvalidArgumentError(f"max_blocks must be in 1..{MAX_BLOCK_INDEX}")
        if self.block_size < 1:
            raise InvalidArgumentError("block_size must be at least 1")

    @property
    def metadata_size(self) -> int:
        return self.max_files * INODE_SIZE + self.max_blocks

    @property
    def data_size(self) -> int:
        return self.max_blocks * self.block_size

    @property
    def total_size(self) -> int:
        return self.metadata_size + self.data_size

    def block_offset(self, block: int) -> int:
        return self.metadata_size + block * self.block_size

    def blocks_for(self, size: int) -> int:
        return (size + self.block_size - 1) // self.block_size

    def extent(self, inode: Inode) -> Optional[Tuple[int, int]]:
        # (start, block count), or None while the file has no data
        if inode.first_block < 0:
            return None
        return inode.first_block, self.blocks_for(inode.size)


def validate_name(name: Optional[str]) -> bytes:
    if not name:
        raise InvalidArgumentError("Filename can't be empty!")
    encoded = name.encode("utf-8")
    if len(encoded) > NAME_BYTES:
        raise InvalidArgumentError(f"Filename can't be more than {NAME_BYTES} characters long!")
    if b"\x00" in encoded:
        raise InvalidArgumentError("Filename can't contain NUL bytes!")
    return encoded


def encode_header(inodes: Sequence[Optional[Inode]], bitmap: Sequence[bool]) -> bytes:
    parts: List[bytes] = []
    for inode in inodes:
        parts.append(EMPTY_SLOT if inode is None else inode.pack())
    parts.append(bytes(BITMAP_FREE if free else BITMAP_USED for free in bitmap))
    return b"".join(parts)


def decode_header(raw: bytes, layout: Layout) -> Tuple[List[Optional[Inode]], List[bool]]:
    if len(raw) != layout.metadata_size:
        raise MetadataCorruptionError(
            f"metadata region is {len(raw)} bytes, expected {layout.metadata_size}")
    inodes: List[Optional[Inode]] = []
    for i in range(layout.max_files):
        off = i * INODE_SIZE
        inodes.append(Inode.unpack(raw[off:off + INODE_SIZE]))
    bitmap: List[bool] = []
    for i, b in enumerate(raw[layout.max_files * INODE_SIZE:]):
        if b not in (BITMAP_FREE, BITMAP_USED):
            raise MetadataCorruptionError(f"bitmap entry {i} has invalid value {b}")
        bitmap.append(b == BITMAP_FREE)
    return inodes, bitmap
