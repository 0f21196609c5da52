"""
Module implementing the piped connection to the remote shell.

The connection is an ssh process that runs a one-shot interpreter on the remote host.
Whatever is written to the process's stdin is the program the interpreter runs, and
whatever that program prints comes back on the process's stdout. remotewatch uses it
for exactly one exchange: send the agent script, close stdin, then read lines until
the remote side goes away.
"""

from __future__ import annotations

import contextlib
import subprocess
from typing import IO, Iterator, List, Optional, Sequence

from remotewatch.constants import REMOTE_INTERPRETER
from remotewatch.logger import log

SSH_COMMAND = "ssh"


class TransportError(RuntimeError):
    """Exception raised when the connection to the remote shell fails."""


class Channel:
    """Duplex byte channel to a remote interpreter started through ssh."""

    def __init__(self, process: subprocess.Popen) -> None:
        """Wrap an ssh process whose stdin and stdout are pipes."""
        self._process = process

    @classmethod
    def open(cls, connection_args: Sequence[str]) -> Channel:
        """Start ssh with the given arguments and a remote interpreter."""
        ssh_command = cls.compose_command(connection_args)

        log.debug(f"running {ssh_command}")

        try:
            process = subprocess.Popen(
                ssh_command, stdin=subprocess.PIPE, stdout=subprocess.PIPE
            )
        except OSError as e:
            raise TransportError(f"failed to start ssh: {e}") from e

        return cls(process)

    @staticmethod
    def compose_command(connection_args: Sequence[str]) -> List[str]:
        """Compose the full ssh command line for the connection arguments."""
        return [SSH_COMMAND, *connection_args, REMOTE_INTERPRETER]

    @property
    def _stdin(self) -> IO[bytes]:
        assert self._process.stdin is not None
        return self._process.stdin

    @property
    def _stdout(self) -> IO[bytes]:
        assert self._process.stdout is not None
        return self._process.stdout

    def send(self, text: str) -> None:
        """Write all of the text to the remote side."""
        try:
            self._stdin.write(text.encode())
            self._stdin.flush()
        except OSError as e:
            raise TransportError(f"failed to send to ssh: {e}") from e

    def close_write(self) -> None:
        """Signal the end of input to the remote side."""
        try:
            self._stdin.close()
        except OSError as e:
            raise TransportError(f"failed to close input of ssh: {e}") from e

    def read_line(self) -> Optional[str]:
        """
        Block until the remote side writes a line and return it without newline.

        Returns None once the remote side has stopped, for whatever reason.
        """
        try:
            line = self._stdout.readline()
        except OSError as e:
            log.debug(f"reading from ssh failed: {e}")
            return None

        if not line:
            return None

        return line.decode("utf-8", errors="surrogateescape").rstrip("\n")

    def __iter__(self) -> Iterator[str]:
        """Iterate over the lines from the remote side until the end of stream."""
        while True:
            line = self.read_line()

            if line is None:
                return

            yield line

    def wait(self) -> int:
        """Wait for ssh to exit and return its exit status."""
        return self._process.wait()

    def close(self) -> None:
        """Terminate ssh if it's still running and release the pipes."""
        # https://bugs.python.org/issue40550
        with contextlib.suppress(ProcessLookupError):
            self._process.terminate()

        with contextlib.suppress(subprocess.TimeoutExpired):
            self._process.wait(timeout=5.0)

        if self._process.poll() is None:
            with contextlib.suppress(ProcessLookupError):
                self._process.kill()
            self._process.wait()

        for pipe in (self._process.stdin, self._process.stdout):
            if pipe is not None:
                with contextlib.suppress(OSError):
                    pipe.close()
