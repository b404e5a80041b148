from __future__ import annotations


class BlockFSError(Exception):
    """Base class for all file system errors."""
    recoverable = True


class InvalidArgumentError(BlockFSError):
    pass


class AlreadyExistsError(BlockFSError):
    pass


class NotFoundError(BlockFSError):
    pass


class ResourceExhaustedError(BlockFSError):
    """No free inode slot."""


class NoSpaceError(BlockFSError):
    """No contiguous run of free blocks large enough."""


class InvalidStateError(BlockFSError):
    pass


class StorageIOError(BlockFSError, OSError):
    """
    Backing store failure. After one of these the on-disk metadata and the
    data region may disagree, so callers should not keep serving the client.
    """
    recoverable = False


class MetadataCorruptionError(StorageIOError):
    pass
