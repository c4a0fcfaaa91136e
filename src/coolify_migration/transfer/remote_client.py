import paramiko  # type: ignore

from coolify_migration.errors import RemoteConnectionError

CHUNK_SIZE = 64 * 1024


class RemoteClient:
    """
    Thin wrapper around a paramiko SSH session to the destination host

    Commands run through exec_command and files are read and written over
    SFTP. Relative SFTP paths resolve against the login user's home directory.
    """

    def __init__(self, hostname, port, username, key_filename, timeout=None, ssh_client=None):
        self.hostname = hostname
        self.port = port
        self.username = username
        self.key_filename = key_filename
        self.timeout = timeout
        self._client = ssh_client if ssh_client is not None else paramiko.SSHClient()
        self._sftp = None

    def connect(self):
        # Host keys are not pinned: the destination is usually a freshly provisioned server
        self._client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            self._client.connect(
                hostname=self.hostname,
                port=self.port,
                username=self.username,
                key_filename=self.key_filename,
                timeout=self.timeout,
                look_for_keys=False,
                allow_agent=False,
            )
        except (paramiko.SSHException, OSError) as e:
            raise RemoteConnectionError(f"SSH connection to {self.hostname} failed: {e}")
        return self

    def close(self):
        if self._sftp is not None:
            self._sftp.close()
            self._sftp = None
        self._client.close()

    def __enter__(self):
        return self.connect()

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def run(self, command, stdin_path=None, stdin_data=None, stream_output=False):
        """
        Execute a command on the destination and wait for it to finish

        Args:
            command (str): Shell command line to run remotely
            stdin_path (str, optional): Local file streamed to the command's stdin
            stdin_data (bytes, optional): Data written to the command's stdin
            stream_output (bool): Print remote output line by line while it runs

        Returns:
            tuple: (exit status, combined stdout and stderr text)
        """
        channel = self._client.get_transport().open_session()
        # combined stderr has to be on before exec_command
        channel.set_combined_stderr(True)
        channel.exec_command(command)
        stdout = channel.makefile('rb')

        if stdin_path is not None:
            with open(stdin_path, 'rb') as f:
                while True:
                    chunk = f.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    channel.sendall(chunk)
        elif stdin_data is not None:
            channel.sendall(stdin_data)
        channel.shutdown_write()

        if stream_output:
            lines = []
            for raw in stdout:
                line = raw.decode('utf-8', errors='replace')
                print(line, end="")
                lines.append(line)
            output = "".join(lines)
        else:
            output = stdout.read().decode('utf-8', errors='replace')

        status = channel.recv_exit_status()
        channel.close()
        return status, output

    def sftp(self):
        if self._sftp is None:
            self._sftp = self._client.open_sftp()
        return self._sftp

    def read_file(self, path):
        """Return the remote file's text, or None if it does not exist.

        Bytes that are not UTF-8 are kept as surrogates and restored by write_file.
        """
        try:
            with self.sftp().open(path, 'r') as f:
                return f.read().decode('utf-8', errors='surrogateescape')
        except FileNotFoundError:
            return None

    def write_file(self, path, content, mode=None):
        if isinstance(content, str):
            content = content.encode('utf-8', errors='surrogateescape')
        sftp = self.sftp()
        with sftp.open(path, 'w') as f:
            f.write(content)
        if mode is not None:
            sftp.chmod(path, mode)

    def rename(self, source, destination):
        """Rename over an existing destination, like mv."""
        self.sftp().posix_rename(source, destination)

    def chmod(self, path, mode):
        self.sftp().chmod(path, mode)
