"""
Shared pytest fixtures for coolify-migration tests.

Provides a fake destination host, sample source trees and config objects.
"""

import pytest
from unittest.mock import MagicMock, patch

from coolify_migration.config import MigrationConfig


class FakeRemoteClient:
    """In-memory stand-in for RemoteClient.

    Commands return status 0 unless a prefix in ``statuses`` matches.
    Files live in a dict keyed by remote path.
    """

    def __init__(self, statuses=None, files=None, connect_error=None):
        self.statuses = dict(statuses or {})
        self.files = dict(files or {})
        self.modes = {}
        self.commands = []
        self.stdin_payloads = []
        self.connect_error = connect_error
        self.connected = False
        self.closed = False

    def connect(self):
        if self.connect_error is not None:
            raise self.connect_error
        self.connected = True
        return self

    def close(self):
        self.closed = True

    def __enter__(self):
        return self.connect()

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def run(self, command, stdin_path=None, stdin_data=None, stream_output=False):
        self.commands.append(command)
        if stdin_path is not None:
            with open(stdin_path, 'rb') as f:
                self.stdin_payloads.append(f.read())
        elif stdin_data is not None:
            self.stdin_payloads.append(stdin_data)

        for prefix, status in self.statuses.items():
            if command.startswith(prefix):
                return status, "simulated failure" if status else ""
        return 0, ""

    def read_file(self, path):
        return self.files.get(path)

    def write_file(self, path, content, mode=None):
        self.files[path] = content
        if mode is not None:
            self.modes[path] = mode

    def rename(self, source, destination):
        self.files[destination] = self.files.pop(source)
        if source in self.modes:
            self.modes[destination] = self.modes.pop(source)

    def chmod(self, path, mode):
        self.modes[path] = mode


@pytest.fixture
def fake_remote():
    return FakeRemoteClient()


@pytest.fixture
def source_tree(tmp_path):
    """A small Coolify data directory, an authorized_keys file and two volumes."""
    source_dir = tmp_path / "data" / "coolify"
    (source_dir / "source").mkdir(parents=True)
    (source_dir / "source" / ".env").write_text("APP_KEY=secret\n")
    (source_dir / "proxy.sock").write_text("not really a socket")

    ssh_dir = tmp_path / "home" / ".ssh"
    ssh_dir.mkdir(parents=True)
    keys = ssh_dir / "authorized_keys"
    keys.write_text("ssh-ed25519 AAAA source@host\n")

    key_file = ssh_dir / "id_ed25519"
    key_file.write_text("PRIVATE KEY")

    volumes_root = tmp_path / "volumes"
    for name in ("coolify-db", "coolify-redis"):
        data = volumes_root / name / "_data"
        data.mkdir(parents=True)
        (data / "dump.rdb").write_bytes(b"x" * 2048)

    return {
        "root": tmp_path,
        "source_dir": str(source_dir),
        "authorized_keys": str(keys),
        "key_file": str(key_file),
        "volumes_root": str(volumes_root),
    }


@pytest.fixture
def config(source_tree):
    root = source_tree["root"]
    return MigrationConfig(
        destination_host="203.0.113.10",
        ssh_key_path=source_tree["key_file"],
        source_dir=source_tree["source_dir"],
        backup_file=str(root / "coolify_backup.tar.gz"),
        authorized_keys_path=source_tree["authorized_keys"],
        docker_volumes_root=source_tree["volumes_root"],
        state_file=str(root / "coolify_migration_state.json"),
        stop_docker_before_backup=False,
        remove_local_backup=False,
    )


@pytest.fixture
def mock_root():
    """Mock os.geteuid() to return 0 (root)."""
    with patch("os.geteuid", return_value=0):
        yield


@pytest.fixture
def mock_non_root():
    """Mock os.geteuid() to return non-zero (not root)."""
    with patch("os.geteuid", return_value=1000):
        yield


@pytest.fixture
def mock_docker_client():
    """Docker client whose running containers are set per test."""
    mock_client = MagicMock()
    mock_client.containers.list.return_value = []
    return mock_client
