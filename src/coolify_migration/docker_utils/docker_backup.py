import os
import shutil
import subprocess

import docker  # type: ignore
from docker.errors import DockerException  # type: ignore

from coolify_migration import console
from coolify_migration.errors import ArchiveError, DiscoveryError


def run_command(cmd, capture_output=True):
    """
    Run a command and report whether it succeeded

    Args:
        cmd (list): Command and arguments, executed without a shell
        capture_output (bool): Capture stdout/stderr instead of inheriting them

    Returns:
        subprocess.CompletedProcess: The finished process, or None if the binary is missing
    """
    try:
        return subprocess.run(cmd, text=True, capture_output=capture_output)
    except FileNotFoundError:
        print(f"Error running command: {' '.join(cmd)}")
        print(f"Error: {cmd[0]} not found")
        return None


def docker_installed():
    return shutil.which("docker") is not None


def docker_service_active():
    """Return True if systemd reports the docker unit as active."""
    result = run_command(["systemctl", "is-active", "--quiet", "docker"])
    return result is not None and result.returncode == 0


def stop_docker_service():
    """
    Stop the Docker daemon and its socket unit so volume data stops changing

    Raises:
        ArchiveError: If either unit fails to stop
    """
    for unit in ("docker", "docker.socket"):
        result = run_command(["systemctl", "stop", unit])
        if result is None:
            raise ArchiveError(f"Failed to stop {unit}: systemctl not available")
        if result.returncode != 0:
            raise ArchiveError(f"Failed to stop {unit}: {(result.stderr or '').strip()}")
    console.success("Docker stopped")


def volume_data_path(volumes_root, volume_name):
    return os.path.join(volumes_root, volume_name, "_data")


def discover_volume_paths(volumes_root="/var/lib/docker/volumes", client=None):
    """
    Map the named volumes of every running container to their on-disk data paths

    Containers are visited in the order Docker lists them and mounts in the
    order they appear on each container. A volume shared by several
    containers appears once per container. Bind mounts have no name and are
    skipped, as are stopped containers.

    Args:
        volumes_root (str): Docker's volume storage directory
        client (docker.DockerClient, optional): Client to use, defaults to docker.from_env()

    Returns:
        list: Volume data paths in discovery order
    """
    try:
        if client is None:
            client = docker.from_env()
        containers = client.containers.list()
    except DockerException as e:
        raise DiscoveryError(f"Could not list running containers: {e}")

    volume_paths = []
    for container in containers:
        for mount in container.attrs.get('Mounts') or []:
            volume_name = mount.get('Name')
            if volume_name:
                volume_paths.append(volume_data_path(volumes_root, volume_name))

    print(f"Found {len(volume_paths)} volume mounts across {len(containers)} running containers")
    return volume_paths
