from __future__ import annotations
import os
from typing import BinaryIO, Optional

from .errors import StorageIOError


class BackingStore:
    """
    Fixed-length file with positioned read/write and an explicit durable flush.
    Every OSError is surfaced as StorageIOError.
    """
    def __init__(self, path: str, total_size: int) -> None:
        self.path = path
        self.total_size = total_size
        self.created = False
        self._fh: Optional[BinaryIO] = None

    def open(self) -> None:
        self.created = not os.path.exists(self.path)
        try:
            fh = open(self.path, "w+b" if self.created else "r+b")
        except OSError as e:
            raise StorageIOError(f"cannot open backing store {self.path!r}: {e}") from e
        try:
            fh.truncate(self.total_size)
        except OSError as e:
            fh.close()
            raise StorageIOError(f"cannot resize backing store {self.path!r}: {e}") from e
        self._fh = fh

    @property
    def closed(self) -> bool:
        return self._fh is None

    def _handle(self) -> BinaryIO:
        if self._fh is None:
            raise StorageIOError("backing store is closed")
        return self._fh

    def _check_range(self, offset: int, n: int) -> None:
        if offset < 0 or n < 0 or offset + n > self.total_size:
            raise StorageIOError(
                f"range {offset}..{offset + n} outside backing store of {self.total_size} bytes")

    def read_at(self, offset: int, n: int) -> bytes:
        self._check_range(offset, n)
        fh = self._handle()
        try:
            fh.seek(offset)
            data = fh.read(n)
        except OSError as e:
            raise StorageIOError(f"read of {n} bytes at {offset} failed: {e}") from e
        if len(data) != n:
            raise StorageIOError(f"short read at {offset}: got {len(data)} of {n} bytes")
        return data

    def write_at(self, offset: int, data: bytes) -> None:
        self._check_range(offset, len(data))
        fh = self._handle()
        try:
            fh.seek(offset)
            fh.write(data)
        except OSError as e:
            raise StorageIOError(f"write of {len(data)} bytes at {offset} failed: {e}") from e

    def zero(self, offset: int, n: int) -> None:
        self.write_at(offset, b"\x00" * n)

    def sync(self) -> None:
        """Flush Python buffers and fsync, so written bytes survive a crash."""
        fh = self._handle()
        try:
            fh.flush()
            os.fsync(fh.fileno())
        except OSError as e:
            raise StorageIOError(f"fsync of {self.path!r} failed: {e}") from e

    def close(self) -> None:
        if self._fh is None:
            return
        fh, self._fh = self._fh, None
        try:
            fh.close()
        except OSError as e:
            raise StorageIOError(f"close of {self.path!r} failed: {e}") from e

    def __enter__(self) -> "BackingStore":
        if self._fh is None:
            self.open()
        return self

    def __exit__(self, *exc) -> None:
        self.close()
