from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .errors import BlockFSError
from .manager import FileSystemManager

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reply:
    text: str
    close: bool = False


def success(msg: str) -> Reply:
    return Reply(f"SUCCESS: {msg}")


def error(msg: str, close: bool = False) -> Reply:
    return Reply(f"ERROR: {msg}", close)


class CommandProcessor:
    """
    Line-oriented command front end:

      CREATE <name> | READ <name> | WRITE <name> <content...> | DELETE <name> | LIST | QUIT

    The command word is case-insensitive. WRITE content is the rest of the line
    after the second space, taken verbatim.
    """
    def __init__(self, fs: FileSystemManager) -> None:
        self.fs = fs
        self._handlers: Dict[str, Callable[[List[str]], Reply]] = {
            "CREATE": self._create,
            "READ": self._read,
            "WRITE": self._write,
            "DELETE": self._delete,
            "LIST": self._list,
            "QUIT": self._quit,
        }

    def handle(self, line: str) -> Optional[Reply]:
        line = line.rstrip("\r\n")
        if not line.strip():
            return None
        parts = line.split(" ", 2)
        handler = self._handlers.get(parts[0].upper())
        if handler is None:
            return error("Unknown command.")
        try:
            return handler(parts)
        except BlockFSError as e:
            if not e.recoverable:
                log.error("storage failure while handling %r: %s", parts[0], e)
            return error(str(e), close=not e.recoverable)

    def _create(self, parts: List[str]) -> Reply:
        if len(parts) < 2:
            return error("Missing file name!")
        self.fs.create(parts[1])
        return success(f"File '{parts[1]}' created.")

    def _read(self, parts: List[str]) -> Reply:
        if len(parts) < 2:
            return error("Missing file name!")
        data = self.fs.read(parts[1])
        text = data.decode("utf-8", errors="replace")
        return success(f"File '{parts[1]}' read. File contains: {text}")

    def _write(self, parts: List[str]) -> Reply:
        if len(parts) < 2:
            return error("Missing file name!")
        if len(parts) < 3:
            return error("Missing file content!")
        self.fs.write(parts[1], parts[2].encode("utf-8"))
        return success(f"File '{parts[1]}' written.")

    def _delete(self, parts: List[str]) -> Reply:
        if len(parts) < 2:
            return error("Missing file name!")
        self.fs.delete(parts[1])
        return success(f"File '{parts[1]}' deleted.")

    def _list(self, parts: List[str]) -> Reply:
        return Reply("[" + ", ".join(self.fs.list()) + "]")

    def _quit(self, parts: List[str]) -> Reply:
        return Reply("SUCCESS: Disconnecting.", close=True)
