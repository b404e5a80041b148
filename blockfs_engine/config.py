from __future__ import annotations
import argparse
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from .layout import Layout

ENV_PORT = "BLOCKFS_PORT"
ENV_STORE = "BLOCKFS_STORE"
ENV_LOG_LEVEL = "BLOCKFS_LOG_LEVEL"


@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 12345
    store_path: str = "filesystem.dat"
    total_size: Optional[int] = None
    max_files: int = 5
    max_blocks: int = 10
    block_size: int = 128
    log_level: str = "INFO"

    def layout(self) -> Layout:
        return Layout(self.max_files, self.max_blocks, self.block_size)

    @classmethod
    def from_args(
        cls,
        argv: Optional[Sequence[str]] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> "ServerConfig":
        """
        Defaults < environment (BLOCKFS_PORT, BLOCKFS_STORE, BLOCKFS_LOG_LEVEL) < command line.
        """
        env = os.environ if env is None else env
        base = cls()
        if env.get(ENV_PORT):
            base.port = int(env[ENV_PORT])
        if env.get(ENV_STORE):
            base.store_path = env[ENV_STORE]
        if env.get(ENV_LOG_LEVEL):
            base.log_level = env[ENV_LOG_LEVEL]

        p = argparse.ArgumentParser(prog="blockfs-server",
                                    description="Serve a block file system over TCP.")
        p.add_argument("--host", default=base.host)
        p.add_argument("--port", type=int, default=base.port)
        p.add_argument("--store", dest="store_path", default=base.store_path,
                       help="backing store file (created if missing)")
        p.add_argument("--total-size", type=int, default=base.total_size,
                       help="backing file length in bytes (default: exactly what the layout needs)")
        p.add_argument("--max-files", type=int, default=base.max_files)
        p.add_argument("--max-blocks", type=int, default=base.max_blocks)
        p.add_argument("--block-size", type=int, default=base.block_size)
        p.add_argument("--log-level", default=base.log_level,
                       choices=["DEBUG", "INFO", "WARNING", "ERROR"], type=str.upper)
        ns = p.parse_args(argv)
        return cls(**vars(ns))
