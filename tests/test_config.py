"""
Unit tests for configuration loading and precedence.
"""

import pytest

from coolify_migration.config import MigrationConfig, load_config, parse_bool
from coolify_migration.errors import ConfigError


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "migration.yml"
    path.write_text(
        "destination_host: 10.0.0.2\n"
        "ssh_port: 2222\n"
        "backup_file: from-file.tar.gz\n"
        "stop_docker_before_backup: yes\n"
    )
    return str(path)


class TestLoadConfig:

    def test_defaults(self):
        config = load_config(environ={}, overrides={"destination_host": "10.0.0.2"})

        assert config.ssh_key_path == "/root/.ssh/key"
        assert config.ssh_port == 22
        assert config.ssh_user == "root"
        assert config.source_dir == "/data/coolify/"
        assert config.backup_file == "coolify_backup.tar.gz"
        assert config.install_script_url == "https://cdn.coollabs.io/coolify/install.sh"
        assert config.stop_docker_before_backup is None
        assert config.remove_local_backup is None
        assert config.force_new_archive is False

    def test_file_values(self, config_file):
        config = load_config(config_file, environ={})

        assert config.destination_host == "10.0.0.2"
        assert config.ssh_port == 2222
        assert config.stop_docker_before_backup is True

    def test_environment_overrides_file(self, config_file):
        config = load_config(config_file, environ={
            "COOLIFY_MIGRATION_SSH_PORT": "2200",
            "COOLIFY_MIGRATION_REMOVE_LOCAL_BACKUP": "no",
        })

        assert config.ssh_port == 2200
        assert config.remove_local_backup is False
        assert config.backup_file == "from-file.tar.gz"

    def test_flags_override_environment(self, config_file):
        config = load_config(
            config_file,
            environ={"COOLIFY_MIGRATION_BACKUP_FILE": "from-env.tar.gz"},
            overrides={"backup_file": "from-flag.tar.gz", "ssh_port": None},
        )

        assert config.backup_file == "from-flag.tar.gz"
        assert config.ssh_port == 2222

    def test_missing_host(self):
        with pytest.raises(ConfigError, match="Destination host is not configured"):
            load_config(environ={})

    def test_unknown_setting(self, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("destination_host: 10.0.0.2\nssh_prot: 22\n")
        with pytest.raises(ConfigError, match="ssh_prot"):
            load_config(str(path), environ={})

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="does not exist"):
            load_config(str(tmp_path / "nope.yml"), environ={})

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(str(path), environ={})

    @pytest.mark.parametrize("value", ["abc", "0", "-1"])
    def test_invalid_port(self, value):
        with pytest.raises(ConfigError):
            load_config(environ={}, overrides={"destination_host": "h", "ssh_port": value})

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("")
        config = load_config(str(path), environ={}, overrides={"destination_host": "h"})
        assert isinstance(config, MigrationConfig)


class TestParseBool:

    @pytest.mark.parametrize("value", ["1", "true", "YES", "y", "on", True])
    def test_true(self, value):
        assert parse_bool("x", value) is True

    @pytest.mark.parametrize("value", ["0", "False", "no", "n", "off", False])
    def test_false(self, value):
        assert parse_bool("x", value) is False

    def test_invalid(self):
        with pytest.raises(ConfigError, match="Invalid boolean for x"):
            parse_bool("x", "maybe")
