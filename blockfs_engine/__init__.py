from .errors import (
    BlockFSError,
    InvalidArgumentError,
    AlreadyExistsError,
    NotFoundError,
    ResourceExhaustedError,
    NoSpaceError,
    InvalidStateError,
    StorageIOError,
    MetadataCorruptionError,
)
from .layout import Layout, Inode
from .manager import FileSystemManager
from .protocol import CommandProcessor, Reply
from .server import FileServer
from .config import ServerConfig

__all__ = [
    "FileSystemManager",
    "Layout",
    "Inode",
    "CommandProcessor",
    "Reply",
    "FileServer",
    "ServerConfig",
    "BlockFSError",
    "InvalidArgumentError",
    "AlreadyExistsError",
    "NotFoundError",
    "ResourceExhaustedError",
    "NoSpaceError",
    "InvalidStateError",
    "StorageIOError",
    "MetadataCorruptionError",
]
