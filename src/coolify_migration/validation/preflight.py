import os

import paramiko  # type: ignore

from coolify_migration import console
from coolify_migration.docker_utils.docker_backup import docker_installed, docker_service_active
from coolify_migration.errors import PreflightError, RemoteConnectionError
from coolify_migration.transfer.remote_client import RemoteClient


def remote_client_for(config):
    return RemoteClient(
        config.destination_host,
        config.ssh_port,
        config.ssh_user,
        config.ssh_key_path,
        timeout=config.connect_timeout,
    )


def check_ssh_connection(config, client_factory=remote_client_for):
    """Open a session to the destination and run a no-op command."""
    try:
        with client_factory(config) as client:
            status, output = client.run("exit")
    except RemoteConnectionError as e:
        raise PreflightError(str(e))
    except (paramiko.SSHException, OSError) as e:
        raise PreflightError(f"SSH connection to {config.destination_host} failed: {e}")

    if status != 0:
        raise PreflightError(f"SSH connection to {config.destination_host} failed: {output.strip()}")


def run_preflight_checks(config, client_factory=remote_client_for):
    """
    Verify everything the migration depends on before anything is changed

    Checks run in a fixed order and the first failure raises PreflightError.

    Args:
        config (MigrationConfig): Run configuration
        client_factory (callable): Builds a RemoteClient from the config
    """
    if os.geteuid() != 0:
        raise PreflightError("Please run the script as root")

    if not os.path.isdir(config.source_dir):
        raise PreflightError(f"Source directory {config.source_dir} does not exist")
    console.success("Source directory exists")

    if not os.path.isfile(config.ssh_key_path):
        raise PreflightError(f"SSH key file {config.ssh_key_path} does not exist")
    console.success("SSH key file exists")

    if not docker_installed():
        raise PreflightError("Docker is not installed")
    if not docker_service_active():
        raise PreflightError("Docker is not running")
    console.success("Docker is installed and running")

    check_ssh_connection(config, client_factory)
    console.success("SSH connection successful")
