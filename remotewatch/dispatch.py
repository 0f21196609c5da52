"""
Module that turns protocol records from the remote into local commands.

Every line streamed back by the agent is a record of the form command|path, where the
path is an absolute path on the remote host. The path is mapped onto the local mount
point of the remote file system and handed to the local command configured for the
command name. Commands can also be handled in-process by registering a handler.
"""

import subprocess
from typing import Callable, Dict, NamedTuple, Optional, Sequence

from remotewatch.config import SessionConfig
from remotewatch.logger import log, summarize
from remotewatch.transport import Channel

# Command names that are opened like a plain file when they have no command of their own
FILE_FALLBACK_COMMANDS = ("newfile", "dir")

Handler = Callable[[str], None]


class UnsupportedCommand(Exception):
    """Exception raised for a command that has no handler or local command."""

    def __init__(self, command: str) -> None:
        """Instantiate the exception for the unsupported command name."""
        super().__init__(f"unsupported command '{command}'")

        self.command = command


class ProtocolRecord(NamedTuple):
    """A single request received from the remote."""

    command: str
    path: str


def parse_record(line: str) -> Optional[ProtocolRecord]:
    """
    Split a protocol line into its command and path.

    Only the first delimiter separates the two, so the path may contain '|' itself.
    Returns None for lines that aren't valid records.
    """
    command, delimiter, path = line.partition("|")

    if not delimiter or not command:
        return None

    return ProtocolRecord(command, path)


def translate(path_to_mount: str, remote_relative_path: str) -> str:
    """Join the local mount point and a path relative to the remote mount root."""
    return path_to_mount.rstrip("/") + "/" + remote_relative_path.lstrip("/")


def relative_to_mount(path: str, mount_relative_to: str) -> Optional[str]:
    """
    Make a remote path relative to the remote directory that is mounted locally.

    Returns None if the path is outside of that directory.
    """
    root = mount_relative_to.rstrip("/")

    if not root or path == root:
        return path[len(root) :].lstrip("/")
    elif path.startswith(root + "/"):
        return path[len(root) + 1 :]
    elif not path.startswith("/"):
        # Already relative to the mount root
        return path
    else:
        return None


class Dispatcher:
    """Reads records from the remote and executes the matching local commands."""

    def __init__(self, config: SessionConfig, channel: Channel) -> None:
        """Create a dispatcher that reads records from the channel."""
        self._config = config
        self._channel = channel
        self._handlers: Dict[str, Handler] = {}

    def register(self, command: str, handler: Handler) -> None:
        """Handle a command with a function instead of a configured local command."""
        self._handlers[command] = handler

    def run(self) -> None:
        """
        Process records until the remote stops sending them.

        An unsupported command stops processing by raising UnsupportedCommand.
        """
        while True:
            line = self._channel.read_line()

            if line is None:
                log.info("remote closed the connection")
                return

            log.info(f"got command: {summarize(line)}")

            record = parse_record(line)

            if record is None:
                log.error(f"ignoring malformed record: {summarize(line)}")
                continue

            remote_relative_path = relative_to_mount(
                record.path, self._config.mount_relative_to
            )

            if remote_relative_path is None:
                log.error(
                    f"ignoring {record.path}: not under"
                    f" {self._config.mount_relative_to}"
                )
                continue

            local_path = translate(self._config.path_to_mount, remote_relative_path)
            self.dispatch(record.command, local_path)

    def dispatch(self, command: str, path: str) -> None:
        """Execute a command for a local path."""
        handler = self._handlers.get(command)

        if handler is not None:
            handler(path)
            return

        if self._config.supports_command(command):
            self._spawn([*self._config.get_command(command), path])
        elif command in FILE_FALLBACK_COMMANDS:
            self.dispatch("file", path)
        else:
            raise UnsupportedCommand(command)

    @staticmethod
    def _spawn(command: Sequence[str]) -> None:
        """Start a local command without waiting for it to finish."""
        log.debug(f"running {list(command)}")

        try:
            subprocess.Popen(command, stdin=subprocess.DEVNULL)
        except OSError as e:
            log.error(f"failed to run {command[0]}: {e}")
