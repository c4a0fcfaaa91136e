"""Move a Coolify instance, its Docker volumes and SSH keys to a new server."""

__version__ = "0.1.0"
