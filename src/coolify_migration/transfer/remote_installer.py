import shlex
from collections import namedtuple

import paramiko  # type: ignore
import requests

from coolify_migration import console
from coolify_migration.errors import RemoteStepError

AUTHORIZED_KEYS = ".ssh/authorized_keys"
AUTHORIZED_KEYS_BACKUP = ".ssh/authorized_keys_backup"
AUTHORIZED_KEYS_TEMP = ".ssh/authorized_keys_temp"

RemoteStep = namedtuple('RemoteStep', ['name', 'description', 'action'])


def merge_authorized_keys(*contents):
    """
    Union of several authorized_keys files, sorted and without duplicates

    Args:
        *contents (str): File contents; None counts as an empty file

    Returns:
        str: Merged file content ending with a newline, or "" when there are no keys
    """
    keys = set()
    for content in contents:
        for line in (content or "").splitlines():
            line = line.strip()
            if line:
                keys.add(line)
    if not keys:
        return ""
    return "\n".join(sorted(keys)) + "\n"


def fetch_install_script(url, timeout=30):
    """Download the installer locally so the destination does not need curl."""
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise RemoteStepError('install', f"Could not download install script from {url}: {e}")
    return response.content


def stop_docker(client, config, archive_path):
    status, _ = client.run("systemctl is-active --quiet docker")
    if status != 0:
        console.info("Docker is not a service, skipping stop command")
        return

    status, output = client.run("systemctl stop docker")
    if status != 0:
        raise RemoteStepError('stop_docker', f"Docker stop failed: {output.strip()}")
    console.success("Docker stopped")


def backup_authorized_keys(client, config, archive_path):
    existing = client.read_file(AUTHORIZED_KEYS)
    client.write_file(AUTHORIZED_KEYS_BACKUP, existing or "", mode=0o600)
    console.success(f"Authorized keys backed up to ~/{AUTHORIZED_KEYS_BACKUP}")


def extract_archive(client, config, archive_path):
    print(f"Streaming {archive_path} to {config.destination_host}...")
    status, output = client.run("tar -xzf - -C /", stdin_path=archive_path)
    if status != 0:
        raise RemoteStepError('extract_archive', f"Backup file extraction failed: {output.strip()}")
    console.success("Backup file extracted")


def merge_remote_authorized_keys(client, config, archive_path):
    merged = merge_authorized_keys(
        client.read_file(AUTHORIZED_KEYS_BACKUP),
        client.read_file(AUTHORIZED_KEYS),
    )
    client.write_file(AUTHORIZED_KEYS_TEMP, merged, mode=0o600)
    client.rename(AUTHORIZED_KEYS_TEMP, AUTHORIZED_KEYS)
    client.chmod(AUTHORIZED_KEYS, 0o600)
    console.success("Authorized keys merged")


def install_coolify(client, config, archive_path):
    if config.fetch_installer_locally:
        script = fetch_install_script(config.install_script_url)
        status, _ = client.run("bash -s", stdin_data=script, stream_output=True)
    else:
        # a failed download must fail the step, not hand bash an empty script
        pipeline = f"set -o pipefail; curl -fsSL {shlex.quote(config.install_script_url)} | bash"
        status, _ = client.run(f"bash -c {shlex.quote(pipeline)}", stream_output=True)

    if status != 0:
        raise RemoteStepError('install', f"Coolify installation failed with exit status {status}")
    console.success("Coolify installed")


REMOTE_STEPS = [
    RemoteStep('stop_docker', "Stop Docker on the destination", stop_docker),
    RemoteStep('backup_authorized_keys', "Back up destination authorized keys", backup_authorized_keys),
    RemoteStep('extract_archive', "Extract backup archive", extract_archive),
    RemoteStep('merge_authorized_keys', "Merge authorized keys", merge_remote_authorized_keys),
    RemoteStep('install', "Install Coolify", install_coolify),
]


def run_remote_steps(client, config, archive_path, state, steps=None):
    """
    Run the destination-side steps in order, skipping those already completed

    Each successful step is recorded in the migration state before the next
    one starts. The first failure stops the sequence.

    Args:
        client (RemoteClient): Connected client for the destination
        config (MigrationConfig): Run configuration
        archive_path (str): Local archive to ship
        state (MigrationState): Checkpoint of completed steps
        steps (list, optional): Steps to run, defaults to REMOTE_STEPS
    """
    if steps is None:
        steps = REMOTE_STEPS

    for step in steps:
        if state.is_done(step.name):
            console.info(f"{step.description}: already completed, skipping")
            continue

        print(f"--> {step.description}")
        try:
            step.action(client, config, archive_path)
        except RemoteStepError:
            raise
        except (paramiko.SSHException, OSError) as e:
            raise RemoteStepError(step.name, f"{step.description} failed: {e}")
        state.mark_done(step.name)

    console.success("Remote commands executed successfully")
