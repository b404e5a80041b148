from __future__ import annotations
import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple

from .allocator import BlockAllocator, FreeBlockMap
from .errors import (
    AlreadyExistsError,
    InvalidArgumentError,
    InvalidStateError,
    MetadataCorruptionError,
    NotFoundError,
    ResourceExhaustedError,
    StorageIOError,
)
from .index import InodeSlot, InodeTable
from .layout import MAX_FILE_SIZE, NO_BLOCK, Inode, Layout, decode_header, encode_header, validate_name
from .locks import ReadWriteLock
from .progress import Progress, ProgressCallback
from .storage import BackingStore

log = logging.getLogger(__name__)


class FileSystemManager:
    """
    Flat, single-directory file system inside one backing file.

    All state sits behind one ReadWriteLock: read/list/stat share it, while
    create/write/delete hold it exclusively until the metadata region has been
    rewritten and fsync'ed, so a returned call is a durable one.
    """
    def __init__(
        self,
        path: str,
        total_size: Optional[int] = None,
        *,
        layout: Optional[Layout] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        self.path = path
        self.layout = layout or Layout()
        if total_size is None:
            total_size = self.layout.total_size
        if total_size < self.layout.total_size:
            raise InvalidArgumentError(
                f"total_size {total_size} is smaller than the {self.layout.total_size} bytes "
                f"the layout needs")
        self.total_size = total_size
        self._progress = Progress(on_progress)
        self._lock = ReadWriteLock()
        self._store = BackingStore(path, total_size)
        self._table = InodeTable(self.layout.max_files)
        self._bitmap = FreeBlockMap(self.layout.max_blocks)
        self._allocator = BlockAllocator(self._bitmap, self._store, self.layout)
        self._failed: Optional[str] = None
        self._open()

    def _open(self) -> None:
        self._progress.emit("open.start", 0, self.path)
        self._store.open()
        try:
            with self._lock.write():
                if self._store.created:
                    self._progress.emit("open.format", 50)
                    self.save_metadata()
                    log.info("formatted new backing store %s (%d bytes)", self.path, self.total_size)
                else:
                    self._progress.emit("open.load_meta", 50)
                    self.load_metadata()
                    self._progress.emit("open.check", 90)
                    problems = self.check()
                    if problems:
                        raise MetadataCorruptionError(
                            f"inconsistent metadata in {self.path}: " + "; ".join(problems))
                    log.info("loaded backing store %s: %d file(s), %d free block(s)",
                             self.path, len(self._table), self._bitmap.free_count())
        except BaseException:
            self._store.close()
            raise
        self._progress.emit("open.done", 100)

    # ----- persistence -----

    def save_metadata(self) -> None:
        """Rewrite the whole metadata region and fsync. Caller holds the write lock."""
        header = encode_header(self._table.inodes(), self._bitmap.bits)
        self._store.write_at(0, header)
        self._store.sync()
        log.debug("metadata persisted (%d bytes)", len(header))

    def load_metadata(self) -> None:
        raw = self._store.read_at(0, self.layout.metadata_size)
        inodes, bits = decode_header(raw, self.layout)
        self._table = InodeTable.from_inodes(inodes)
        self._bitmap.bits = bits

    def check(self) -> List[str]:
        """Return a list of invariant violations; an empty list means consistent."""
        problems: List[str] = []
        seen: Dict[str, int] = {}
        owner: Dict[int, str] = {}
        for slot in self._table.occupied():
            inode = slot.inode
            try:
                validate_name(inode.name)
            except InvalidArgumentError as e:
                problems.append(f"slot {slot.slot_id}: {e}")
            if inode.name in seen:
                problems.append(f"slot {slot.slot_id}: duplicate name {inode.name!r} "
                                f"(also in slot {seen[inode.name]})")
            seen.setdefault(inode.name, slot.slot_id)
            extent = self.layout.extent(inode)
            if extent is None:
                if inode.first_block != NO_BLOCK:
                    problems.append(f"{inode.name!r}: invalid first block {inode.first_block}")
                elif inode.size != 0:
                    problems.append(f"{inode.name!r}: size {inode.size} without data blocks")
                continue
            start, count = extent
            if count == 0:
                problems.append(f"{inode.name!r}: block {start} allocated for an empty file")
                continue
            if start + count > self.layout.max_blocks:
                problems.append(f"{inode.name!r}: extent {start}+{count} past block {self.layout.max_blocks}")
                continue
            for b in range(start, start + count):
                if b in owner:
                    problems.append(f"block {b} shared by {owner[b]!r} and {inode.name!r}")
                owner.setdefault(b, inode.name)
        allocated = self._bitmap.allocated()
        for b in sorted(allocated - set(owner)):
            problems.append(f"block {b} marked allocated but owned by no file")
        for b in sorted(set(owner) - allocated):
            problems.append(f"block {b} owned by {owner[b]!r} but marked free")
        return problems

    # ----- guards -----

    def _ensure_usable(self) -> None:
        if self._store.closed:
            raise StorageIOError("File system is closed.")
        if self._failed:
            raise StorageIOError(f"File system is in a failed state: {self._failed}")

    @contextmanager
    def _mutation(self) -> Iterator[None]:
        with self._lock.write():
            self._ensure_usable()
            try:
                yield
            except StorageIOError as e:
                # memory and disk may now disagree; refuse further requests
                self._failed = str(e)
                log.warning("storage failure, file system marked failed: %s", e)
                raise

    def _lookup(self, name: Optional[str]) -> InodeSlot:
        if not name:
            raise InvalidArgumentError("Filename can't be empty!")
        slot = self._table.find(name)
        if slot is None:
            raise NotFoundError("File does not exist.")
        return slot

    # ----- directory operations -----

    def create(self, name: str) -> None:
        with self._mutation():
            validate_name(name)
            if self._table.find(name) is not None:
                raise AlreadyExistsError("File already exists.")
            slot = self._table.first_vacant()
            if slot is None:
                raise ResourceExhaustedError("Max files reached.")
            self._table.occupy(slot.slot_id, Inode(name))
            self.save_metadata()
            log.debug("created %r in slot %d", name, slot.slot_id)

    def read(self, name: str) -> bytes:
        with self._lock.read():
            self._ensure_usable()
            inode = self._lookup(name).inode
            if inode.first_block < 0:
                raise InvalidStateError("File has no data blocks.")
            return self._store.read_at(self.layout.block_offset(inode.first_block), inode.size)

    def write(self, name: str, data: bytes) -> None:
        """Replace the file's content. The old extent is released before the new one is chosen."""
        data = bytes(data)
        with self._mutation():
            if not name:
                raise InvalidArgumentError("Filename can't be empty!")
            if not data:
                raise InvalidArgumentError("Data can't be empty!")
            if len(data) > MAX_FILE_SIZE:
                raise InvalidArgumentError(f"File can't be larger than {MAX_FILE_SIZE} bytes!")
            slot = self._lookup(name)
            inode = slot.inode
            needed = self.layout.blocks_for(len(data))
            start = self._allocator.reallocate(self.layout.extent(inode), needed)
            padding = needed * self.layout.block_size - len(data)
            self._store.write_at(self.layout.block_offset(start), data + b"\x00" * padding)
            inode.size = len(data)
            inode.first_block = start
            self.save_metadata()
            log.debug("wrote %d bytes to %r at blocks %d..%d", len(data), name, start, start + needed - 1)

    def delete(self, name: str) -> None:
        with self._mutation():
            slot = self._lookup(name)
            extent = self.layout.extent(slot.inode)
            if extent is not None:
                self._allocator.release(*extent)
            self._table.vacate(slot.slot_id)
            self.save_metadata()
            log.debug("deleted %r from slot %d", name, slot.slot_id)

    def list(self) -> List[str]:
        with self._lock.read():
            self._ensure_usable()
            return self._table.names()

    # ----- introspection -----

    def stat(self, name: str) -> Inode:
        with self._lock.read():
            self._ensure_usable()
            inode = self._lookup(name).inode
            return Inode(inode.name, inode.size, inode.first_block)

    def extents(self) -> Dict[str, Tuple[int, int]]:
        with self._lock.read():
            out: Dict[str, Tuple[int, int]] = {}
            for slot in self._table.occupied():
                extent = self.layout.extent(slot.inode)
                if extent is not None:
                    out[slot.inode.name] = extent
            return out

    def free_blocks(self) -> int:
        with self._lock.read():
            return self._bitmap.free_count()

    def bitmap(self) -> List[bool]:
        with self._lock.read():
            return list(self._bitmap.bits)

    @property
    def failed(self) -> bool:
        return self._failed is not None

    def close(self) -> None:
        with self._lock.write():
            if self._store.closed:
                return
            self._store.close()
        self._progress.emit("close.done", 100, self.path)

    def __enter__(self) -> "FileSystemManager":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
