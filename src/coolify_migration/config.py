import os
from dataclasses import dataclass, field, fields, replace
from typing import Optional

import yaml  # type: ignore

from coolify_migration.errors import ConfigError

ENV_PREFIX = "COOLIFY_MIGRATION_"

DEFAULT_INSTALL_SCRIPT_URL = "https://cdn.coollabs.io/coolify/install.sh"

_TRUE_VALUES = ("1", "true", "yes", "y", "on")
_FALSE_VALUES = ("0", "false", "no", "n", "off")


def _default_authorized_keys():
    return os.path.join(os.path.expanduser("~"), ".ssh", "authorized_keys")


@dataclass
class MigrationConfig:
    """Everything a migration run needs, passed explicitly to run_migration().

    The two decisions that used to be interactive prompts are plain fields.
    None means "not decided"; the CLI resolves them before the run starts.
    """

    destination_host: str = ""
    ssh_key_path: str = "/root/.ssh/key"
    ssh_port: int = 22
    ssh_user: str = "root"
    connect_timeout: int = 5
    source_dir: str = "/data/coolify/"
    backup_file: str = "coolify_backup.tar.gz"
    authorized_keys_path: str = field(default_factory=_default_authorized_keys)
    docker_volumes_root: str = "/var/lib/docker/volumes"
    install_script_url: str = DEFAULT_INSTALL_SCRIPT_URL
    fetch_installer_locally: bool = False
    stop_docker_before_backup: Optional[bool] = None
    remove_local_backup: Optional[bool] = None
    force_new_archive: bool = False
    state_file: str = "coolify_migration_state.json"


_INT_FIELDS = ("ssh_port", "connect_timeout")
_BOOL_FIELDS = ("fetch_installer_locally", "force_new_archive")
_OPTIONAL_BOOL_FIELDS = ("stop_docker_before_backup", "remove_local_backup")


def parse_bool(name, value):
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigError(f"Invalid boolean for {name}: {value!r}")


def _coerce(name, value):
    if name in _INT_FIELDS:
        try:
            number = int(value)
        except (TypeError, ValueError):
            raise ConfigError(f"Invalid integer for {name}: {value!r}")
        if number <= 0:
            raise ConfigError(f"{name} must be positive, got {number}")
        return number
    if name in _BOOL_FIELDS:
        return parse_bool(name, value)
    if name in _OPTIONAL_BOOL_FIELDS:
        if value is None or value == "":
            return None
        return parse_bool(name, value)
    if value is None:
        raise ConfigError(f"{name} must not be empty")
    return str(value)


def _field_names():
    return [f.name for f in fields(MigrationConfig)]


def read_config_file(path):
    """
    Read overrides from a YAML file

    Args:
        path (str): Path to the YAML config file

    Returns:
        dict: Field name to raw value
    """
    if not os.path.exists(path):
        raise ConfigError(f"Config file {path} does not exist")

    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Could not parse {path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping of settings")

    unknown = sorted(set(data) - set(_field_names()))
    if unknown:
        raise ConfigError(f"Unknown settings in {path}: {', '.join(unknown)}")
    return data


def read_environment(environ=None):
    """Collect COOLIFY_MIGRATION_<FIELD> overrides from the environment."""
    if environ is None:
        environ = os.environ

    values = {}
    for name in _field_names():
        key = ENV_PREFIX + name.upper()
        if key in environ:
            values[name] = environ[key]
    return values


def load_config(config_file=None, environ=None, overrides=None):
    """
    Build a MigrationConfig from defaults, a YAML file, the environment and CLI flags

    Later sources win: file < environment < overrides. Overrides whose value
    is None are treated as "not given".

    Args:
        config_file (str, optional): YAML file with settings
        environ (dict, optional): Environment to read, defaults to os.environ
        overrides (dict, optional): Values from command-line flags

    Returns:
        MigrationConfig: The validated configuration
    """
    raw = {}
    if config_file:
        raw.update(read_config_file(config_file))
    raw.update(read_environment(environ))
    if overrides:
        raw.update({k: v for k, v in overrides.items() if v is not None})

    values = {name: _coerce(name, value) for name, value in raw.items()}
    config = replace(MigrationConfig(), **values)

    if not config.destination_host:
        raise ConfigError(
            "Destination host is not configured. "
            f"Pass --host, set {ENV_PREFIX}DESTINATION_HOST or add destination_host to the config file."
        )
    return config
