from blockfs_engine import Layout, ServerConfig

def test_defaults():
    cfg = ServerConfig.from_args([], env={})
    assert cfg.port == 12345
    assert cfg.store_path == "filesystem.dat"
    assert cfg.layout() == Layout(5, 10, 128)

def test_env_then_args():
    env = {"BLOCKFS_PORT": "9000", "BLOCKFS_STORE": "/tmp/env.dat", "BLOCKFS_LOG_LEVEL": "DEBUG"}
    cfg = ServerConfig.from_args([], env=env)
    assert (cfg.port, cfg.store_path, cfg.log_level) == (9000, "/tmp/env.dat", "DEBUG")

    cfg = ServerConfig.from_args(["--port", "7000", "--max-blocks", "20", "--log-level", "warning"], env=env)
    assert cfg.port == 7000
    assert cfg.store_path == "/tmp/env.dat"
    assert cfg.log_level == "WARNING"
    assert cfg.layout().max_blocks == 20

def test_cli_fails_fast_on_bad_store(tmp_path):
    from blockfs_engine.cli import main
    bad = tmp_path / "missing" / "disk.dat"
    assert main(["--store", str(bad), "--port", "0"]) == 1
