#!/usr/bin/env python3
# Example usage of blockfs_engine: local API first, then the same store over TCP.

import socket
import threading

from blockfs_engine import FileServer, FileSystemManager, NoSpaceError

def main() -> None:
    # Create/open the backing store (5 files, 10 blocks of 128 bytes by default)
    fs = FileSystemManager("demo.dat")

    if "hello.txt" not in fs.list():
        fs.create("hello.txt")
    fs.write("hello.txt", b"Hello, blocks!")
    print("Read back:", fs.read("hello.txt"))
    print("Extents:", fs.extents(), "free blocks:", fs.free_blocks())

    try:
        fs.write("hello.txt", b"x" * 5000)
    except NoSpaceError as e:
        print("Too big:", e)

    # Serve it on an ephemeral port and talk to it like a client would
    server = FileServer(fs, ("127.0.0.1", 0))
    threading.Thread(target=server.serve_forever, daemon=True).start()
    with socket.create_connection(server.server_address[:2]) as sock, sock.makefile("rwb") as f:
        for cmd in ("LIST", "READ hello.txt", "QUIT"):
            f.write(cmd.encode() + b"\n")
            f.flush()
            print(cmd, "->", f.readline().decode().rstrip())
    server.shutdown()
    server.server_close()
    fs.close()

if __name__ == "__main__":
    main()
