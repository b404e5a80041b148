from __future__ import annotations
import logging
import socketserver
from typing import Tuple

from .config import ServerConfig
from .manager import FileSystemManager
from .protocol import CommandProcessor

log = logging.getLogger(__name__)


class ClientHandler(socketserver.StreamRequestHandler):
    """One thread per connection; one command per line, one reply line per command."""

    server: "FileServer"

    def handle(self) -> None:
        peer = "%s:%s" % self.client_address[:2]
        log.info("client connected: %s", peer)
        processor = CommandProcessor(self.server.fs)
        try:
            for raw in self.rfile:
                line = raw.decode("utf-8", errors="replace")
                log.debug("%s -> %s", peer, line.rstrip("\r\n"))
                reply = processor.handle(line)
                if reply is None:
                    continue
                self.wfile.write(reply.text.encode("utf-8") + b"\n")
                self.wfile.flush()
                if reply.close:
                    break
        except ConnectionError as e:
            log.info("client %s dropped: %s", peer, e)
        finally:
            log.info("client disconnected: %s", peer)


class FileServer(socketserver.ThreadingTCPServer):
    daemon_threads = True
    allow_reuse_address = True

    def __init__(self, fs: FileSystemManager, address: Tuple[str, int]) -> None:
        self.fs = fs
        super().__init__(address, ClientHandler)

    @classmethod
    def from_config(cls, fs: FileSystemManager, config: ServerConfig) -> "FileServer":
        return cls(fs, (config.host, config.port))

    def serve_forever(self, poll_interval: float = 0.5) -> None:
        host, port = self.server_address[:2]
        log.info("server started, listening on %s:%d", host, port)
        super().serve_forever(poll_interval)
