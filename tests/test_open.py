import pytest
from blockfs_engine import FileSystemManager, Layout, MetadataCorruptionError, StorageIOError
from blockfs_engine.layout import Inode, encode_header
from rich.console import Console

_console = Console(force_terminal=True, color_system="standard")

def progress_printer(evt):
    phase = evt.get("phase", "")
    pct = int(evt.get("pct", 0))
    msg = evt.get("msg", "")
    parts = [p for p in (phase, f"{pct}%", (f"- {msg}" if msg else "")) if p]
    _console.print("[progress] " + " ".join(parts), highlight=False, markup=False)

def test_progress_events(tmp_path):
    events = []

    def collect(evt):
        progress_printer(evt)
        events.append(evt["phase"])

    path = str(tmp_path / "disk.dat")
    fs = FileSystemManager(path, on_progress=collect)
    assert events == ["open.start", "open.format", "open.done"]
    fs.close()
    assert events[-1] == "close.done"

    events.clear()
    FileSystemManager(path, on_progress=collect).close()
    assert events == ["open.start", "open.load_meta", "open.check", "open.done", "close.done"]

def test_new_store_is_formatted(tmp_path):
    path = tmp_path / "disk.dat"
    FileSystemManager(str(path)).close()
    raw = path.read_bytes()
    lay = Layout()
    assert raw[:lay.metadata_size] == encode_header([None] * 5, [True] * 10)
    assert raw[lay.metadata_size:] == b"\x00" * lay.data_size

def test_inconsistent_bitmap_is_rejected(tmp_path):
    path = tmp_path / "disk.dat"
    lay = Layout()
    bits = [True] * 10
    bits[7] = False  # allocated but no owner
    header = encode_header([Inode("a", 10, 0), None, None, None, None], bits)
    path.write_bytes(header + b"\x00" * lay.data_size)
    with pytest.raises(MetadataCorruptionError) as ei:
        FileSystemManager(str(path))
    msg = str(ei.value)
    assert "block 7 marked allocated" in msg
    assert "block 0 owned by 'a' but marked free" in msg

def test_duplicate_names_rejected(tmp_path):
    path = tmp_path / "disk.dat"
    lay = Layout()
    header = encode_header([Inode("x"), Inode("x"), None, None, None], [True] * 10)
    path.write_bytes(header + b"\x00" * lay.data_size)
    with pytest.raises(MetadataCorruptionError):
        FileSystemManager(str(path))

def test_unopenable_path(tmp_path):
    with pytest.raises(StorageIOError):
        FileSystemManager(str(tmp_path / "no" / "such" / "dir" / "disk.dat"))

def test_short_existing_file_is_extended(tmp_path):
    path = tmp_path / "disk.dat"
    FileSystemManager(str(path)).close()
    raw = path.read_bytes()
    path.write_bytes(raw[:Layout().metadata_size])
    with FileSystemManager(str(path)) as fs:
        assert fs.list() == []
    assert path.stat().st_size == Layout().total_size
