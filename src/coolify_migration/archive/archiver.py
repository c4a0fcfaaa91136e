import os
import stat
import tarfile
import datetime

from coolify_migration import console
from coolify_migration.errors import ArchiveError

PROGRESS_EVERY = 1000


def path_size(path):
    """
    Total apparent size in bytes of a file or directory tree

    Missing or unreadable entries count as zero, and symlinks are not followed.
    """
    try:
        st = os.lstat(path)
    except OSError:
        return 0

    if not stat.S_ISDIR(st.st_mode):
        return st.st_size

    total = st.st_size
    for root, dirs, files in os.walk(path, onerror=lambda e: None):
        for name in dirs + files:
            try:
                total += os.lstat(os.path.join(root, name)).st_size
            except OSError:
                continue
    return total


def human_size(num_bytes):
    """Format a byte count like `du -h` does: 0, 512, 12K, 1.5G."""
    if num_bytes < 1024:
        return str(num_bytes)

    value = float(num_bytes)
    for unit in ("K", "M", "G", "T", "P"):
        value /= 1024
        shown = round(value, 1) if value < 10 else round(value)
        if shown < 1024 or unit == "P":
            break
    if shown < 10:
        return f"{shown:.1f}{unit}"
    return f"{shown:.0f}{unit}"


def report_sizes(volume_paths, source_dir):
    """Print the combined size of the volumes and the size of the data directory."""
    volumes_total = sum(path_size(p) for p in volume_paths)
    console.success(f"Total size of volumes to migrate: {human_size(volumes_total)}")
    console.success(f"Size of the source directory: {human_size(path_size(source_dir))}")
    return volumes_total


def archive_age(archive_path, now=None):
    """Return how long ago the archive was last written, as a timedelta."""
    if now is None:
        now = datetime.datetime.now()
    modified = datetime.datetime.fromtimestamp(os.path.getmtime(archive_path))
    return now - modified


class _ProgressFilter:
    """tarfile filter that drops *.sock entries and prints a dot every PROGRESS_EVERY members."""

    def __init__(self, every=None):
        self.every = every or PROGRESS_EVERY
        self.count = 0

    def __call__(self, tarinfo):
        if tarinfo.name.endswith('.sock'):
            return None
        self.count += 1
        if self.count % self.every == 0:
            console.progress()
        return tarinfo


def create_archive(archive_path, source_dir, authorized_keys_path, volume_paths):
    """
    Create the migration archive

    Paths are stored relative to the filesystem root so that `tar -xzf - -C /`
    on the destination puts every file back where it came from. The archive
    is written to a .partial file first and only renamed into place once it is
    complete.

    Args:
        archive_path (str): Final location of the .tar.gz file
        source_dir (str): Coolify data directory
        authorized_keys_path (str): Local authorized_keys file to ship
        volume_paths (list): Docker volume data directories

    Returns:
        str: Path to the created archive
    """
    paths = [os.path.abspath(source_dir), os.path.abspath(authorized_keys_path)]
    paths.extend(os.path.abspath(p) for p in volume_paths)

    missing = [p for p in paths if not os.path.exists(p)]
    if missing:
        raise ArchiveError(f"Cannot archive missing paths: {', '.join(missing)}")

    partial_path = f"{archive_path}.partial"
    member_filter = _ProgressFilter()
    print(f"Creating backup archive: {archive_path}")

    try:
        with tarfile.open(partial_path, 'w:gz') as tar:
            for path in paths:
                tar.add(path, arcname=path.lstrip('/'), filter=member_filter)
        print()
        os.replace(partial_path, archive_path)
    except (OSError, tarfile.TarError) as e:
        print()
        if os.path.exists(partial_path):
            os.remove(partial_path)
        raise ArchiveError(f"Backup file creation failed: {e}")

    console.success(f"Backup file created ({member_filter.count} entries)")
    return archive_path
