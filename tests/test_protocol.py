import pytest
from blockfs_engine import CommandProcessor, FileSystemManager, StorageIOError

@pytest.fixture
def proc(tmp_path):
    fs = FileSystemManager(str(tmp_path / "disk.dat"))
    yield CommandProcessor(fs)
    fs.close()

def test_session(proc):
    assert proc.handle("CREATE a.txt\n").text == "SUCCESS: File 'a.txt' created."
    assert proc.handle("WRITE a.txt hello  world \n").text == "SUCCESS: File 'a.txt' written."
    assert proc.handle("READ a.txt").text == "SUCCESS: File 'a.txt' read. File contains: hello  world "
    assert proc.handle("LIST").text == "[a.txt]"
    assert proc.handle("DELETE a.txt").text == "SUCCESS: File 'a.txt' deleted."
    assert proc.handle("LIST").text == "[]"

def test_command_word_case_insensitive(proc):
    assert proc.handle("create f").text.startswith("SUCCESS")
    assert proc.handle("list").text == "[f]"

def test_errors_are_single_lines(proc):
    assert proc.handle("READ nope").text == "ERROR: File does not exist."
    assert proc.handle("CREATE abcdefghijkl").text == "ERROR: Filename can't be more than 11 characters long!"
    proc.handle("CREATE f")
    assert proc.handle("CREATE f").text == "ERROR: File already exists."
    assert proc.handle("READ f").text == "ERROR: File has no data blocks."
    assert proc.handle("WRITE f " + "x" * 2000).text == "ERROR: Not enough free space to write file."
    reply = proc.handle("FROB f")
    assert reply.text == "ERROR: Unknown command."
    assert not reply.close

def test_missing_arguments(proc):
    for cmd in ("CREATE", "READ", "DELETE", "WRITE"):
        assert proc.handle(cmd).text == "ERROR: Missing file name!"
    assert proc.handle("WRITE f").text == "ERROR: Missing file content!"

def test_blank_lines_ignored(proc):
    assert proc.handle("") is None
    assert proc.handle("   \r\n") is None

def test_quit_closes(proc):
    reply = proc.handle("QUIT")
    assert reply.text == "SUCCESS: Disconnecting."
    assert reply.close

def test_storage_failure_closes_connection(proc, monkeypatch):
    proc.handle("CREATE f")

    def broken_sync():
        raise StorageIOError("fsync failed")

    monkeypatch.setattr(proc.fs._store, "sync", broken_sync)
    reply = proc.handle("WRITE f data")
    assert reply.text == "ERROR: fsync failed"
    assert reply.close
    assert proc.fs.failed
    # every later request is refused
    assert proc.handle("LIST").text.startswith("ERROR: File system is in a failed state")
