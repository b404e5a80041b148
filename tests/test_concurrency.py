import threading

import pytest
from blockfs_engine import FileSystemManager, Layout, InvalidArgumentError
from blockfs_engine.locks import ReadWriteLock

def test_readers_share_the_lock():
    lock = ReadWriteLock()
    inside = threading.Barrier(2, timeout=5)

    def reader():
        with lock.read():
            inside.wait()

    threads = [threading.Thread(target=reader) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)
    assert not any(t.is_alive() for t in threads)

def test_writer_excludes_readers():
    lock = ReadWriteLock()
    done = threading.Event()

    def reader():
        with lock.read():
            done.set()

    with lock.write():
        t = threading.Thread(target=reader)
        t.start()
        assert not done.wait(0.2)
    assert done.wait(5)
    t.join(timeout=5)

def test_waiting_writer_blocks_new_readers():
    lock = ReadWriteLock()
    order = []
    lock.acquire_read()

    def writer():
        with lock.write():
            order.append("w")

    def late_reader():
        with lock.read():
            order.append("r")

    w = threading.Thread(target=writer)
    w.start()
    while not lock._writers_waiting:
        threading.Event().wait(0.01)
    r = threading.Thread(target=late_reader)
    r.start()
    threading.Event().wait(0.1)
    assert order == []
    lock.release_read()
    w.join(timeout=5)
    r.join(timeout=5)
    assert order == ["w", "r"]

def test_lock_released_after_failure(tmp_path):
    fs = FileSystemManager(str(tmp_path / "disk.dat"))
    for _ in range(3):
        with pytest.raises(InvalidArgumentError):
            fs.create("")
    # would deadlock if a failed create had kept the write lock
    fs.create("ok")
    assert fs.list() == ["ok"]

def test_concurrent_reads_do_not_block_each_other(tmp_path):
    fs = FileSystemManager(str(tmp_path / "disk.dat"))
    fs.create("a")
    fs.create("b")
    fs.write("a", b"alpha")
    fs.write("b", b"beta")
    results = {}

    # hold a shared lock for the whole test; reads must still get through
    with fs._lock.read():
        def read(name):
            results[name] = fs.read(name)
        threads = [threading.Thread(target=read, args=(n,)) for n in ("a", "b")]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=5)
    assert results == {"a": b"alpha", "b": b"beta"}

def test_parallel_writers_keep_invariants(tmp_path):
    fs = FileSystemManager(str(tmp_path / "disk.dat"),
                           layout=Layout(max_files=8, max_blocks=128, block_size=16))
    names = [f"file{i}" for i in range(8)]
    for n in names:
        fs.create(n)
    errors = []

    def worker(name, seed):
        try:
            for i in range(25):
                data = bytes([seed]) * (1 + (i * 13 + seed) % 100)
                fs.write(name, data)
                assert fs.read(name) == data
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(n, i + 1)) for i, n in enumerate(names)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    assert errors == []
    assert fs.check() == []
