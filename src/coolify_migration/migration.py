import os

from coolify_migration import console
from coolify_migration.archive.archiver import archive_age, create_archive, report_sizes
from coolify_migration.checkpoint import MigrationState
from coolify_migration.docker_utils.docker_backup import discover_volume_paths, stop_docker_service
from coolify_migration.errors import CleanupError, RemoteConnectionError, RemoteStepError
from coolify_migration.transfer.remote_installer import run_remote_steps
from coolify_migration.validation.preflight import remote_client_for, run_preflight_checks


def never(decision):
    return False


def prepare_archive(config, volume_paths, state, decide=never):
    """
    Make sure the backup archive exists, building it only when it is missing

    An existing archive is reused as is unless force_new_archive is set. When
    stop_docker_before_backup is unset, decide() is asked, and only here.

    Returns:
        str: Path to the archive
    """
    archive_path = config.backup_file

    if os.path.isfile(archive_path) and config.force_new_archive:
        console.warning(f"Removing existing backup file {archive_path} as requested")
        os.remove(archive_path)

    if os.path.isfile(archive_path):
        age = str(archive_age(archive_path)).split('.')[0]
        console.warning(f"Backup file already exists, skipping creation (last written {age} ago)")
        return archive_path

    console.warning("Backup file does not exist, creating...")
    stop_docker = config.stop_docker_before_backup
    if stop_docker is None:
        stop_docker = decide('stop_docker_before_backup')
    if stop_docker:
        stop_docker_service()
    else:
        console.warning("Docker not stopped, continuing with the backup")

    create_archive(archive_path, config.source_dir, config.authorized_keys_path, volume_paths)
    # earlier remote progress belongs to a different archive
    state.reset()
    return archive_path


def remove_local_backup(config):
    for path in (config.backup_file, config.state_file):
        if not os.path.exists(path):
            continue
        try:
            os.remove(path)
        except OSError as e:
            raise CleanupError(f"Failed to remove local backup file {path}: {e}")
    console.success("Local backup file removed")


def run_migration(config, client_factory=remote_client_for, volume_discoverer=discover_volume_paths,
                  decide=never):
    """
    Back up this Coolify instance and restore it on the destination host

    Stages run strictly in order: preflight, volume discovery, sizing,
    archive, remote steps, cleanup. Any failure raises a MigrationError and
    nothing after it runs.

    Args:
        config (MigrationConfig): Run configuration
        client_factory (callable): Builds a RemoteClient from the config
        volume_discoverer (callable): Returns the volume paths to include
        decide (callable): Answers a decision left unset in the config, by field name
    """
    run_preflight_checks(config, client_factory)

    volume_paths = volume_discoverer(config.docker_volumes_root)
    report_sizes(volume_paths, config.source_dir)

    state = MigrationState.load(config.state_file, config.destination_host)
    archive_path = prepare_archive(config, volume_paths, state, decide)

    client = client_factory(config)
    try:
        client.connect()
        run_remote_steps(client, config, archive_path, state)
    except RemoteConnectionError as e:
        raise RemoteStepError('connect', str(e))
    finally:
        client.close()

    remove_backup = config.remove_local_backup
    if remove_backup is None:
        remove_backup = decide('remove_local_backup')
    if remove_backup:
        remove_local_backup(config)
    else:
        console.warning("Local backup file not removed")
