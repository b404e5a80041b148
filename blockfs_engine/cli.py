from __future__ import annotations
import logging
from typing import Optional, Sequence

from rich.console import Console
from rich.logging import RichHandler

from .config import ServerConfig
from .errors import BlockFSError
from .manager import FileSystemManager
from .server import FileServer

log = logging.getLogger("blockfs_engine")


def setup_logging(level: str, console: Optional[Console] = None) -> None:
    handler = RichHandler(console=console or Console(stderr=True), show_path=False)
    logging.basicConfig(level=level, format="%(message)s", datefmt="[%X]", handlers=[handler], force=True)


def main(argv: Optional[Sequence[str]] = None) -> int:
    config = ServerConfig.from_args(argv)
    setup_logging(config.log_level)
    try:
        fs = FileSystemManager(config.store_path, config.total_size, layout=config.layout())
    except (BlockFSError, OSError) as e:
        log.critical("cannot start file system on %s: %s", config.store_path, e)
        return 1
    try:
        with FileServer.from_config(fs, config) as server:
            try:
                server.serve_forever()
            except KeyboardInterrupt:
                log.info("shutting down")
    except OSError as e:
        log.critical("could not start server on port %d: %s", config.port, e)
        return 1
    finally:
        fs.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
