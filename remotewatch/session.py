"""
Module that implements a watch session.

A session connects to the remote host, bootstraps the agent there and then dispatches
the requests that the agent streams back until the connection ends:

    render agent -> start ssh -> send agent, close stdin -> handshake -> dispatch

The session runs entirely on the calling thread. It blocks until the remote side
closes the connection, which in practice means that ssh was interrupted.
"""

import contextlib
import sys

from remotewatch import bootstrap
from remotewatch.config import SessionConfig
from remotewatch.constants import HANDSHAKE_PREFIX, SSH_ERROR_CODE
from remotewatch.dispatch import Dispatcher
from remotewatch.logger import log, summarize
from remotewatch.transport import Channel


class Session:
    """A single connection to the remote host that opens requested files locally."""

    def __init__(self, config: SessionConfig) -> None:
        """Create a session from its configuration."""
        self._config = config

    def watch(self) -> int:
        """
        Run the session and return the exit status of ssh once it ends.

        ssh is always terminated when the session stops early due to an error.
        """
        with contextlib.ExitStack() as stack:
            return self._watch(stack)

        # https://github.com/python/mypy/issues/7726
        assert False, "unreachable"

    def _watch(self, stack: contextlib.ExitStack) -> int:
        script = bootstrap.render_agent(self._config)
        log.debug(f"rendered agent script: {summarize(script)}")

        channel = Channel.open(self._config.ssh_command_line_options)
        stack.callback(channel.close)

        channel.send(script)
        channel.close_write()

        self._await_handshake(channel)
        log.info(f"watching for '{self._config.editor_command_name}' on remote")

        Dispatcher(self._config, channel).run()

        return channel.wait()

    def _await_handshake(self, channel: Channel) -> None:
        """Wait for the agent to report that it is streaming the watch log."""
        expected = HANDSHAKE_PREFIX + self._config.token

        for line in channel:
            if line == expected:
                return
            elif line.startswith(HANDSHAKE_PREFIX):
                raise RuntimeError("handshake failed (unexpected token)")
            else:
                # Output from the remote shell's startup files and the like
                self._write_stdout(line)

        if channel.wait() == SSH_ERROR_CODE:
            raise RuntimeError("ssh failed")
        else:
            raise RuntimeError("remote agent failed to start")

    @staticmethod
    def _write_stdout(line: str) -> None:
        """Write a line to stdout and immediately flush it."""
        sys.stdout.write(line + "\n")
        sys.stdout.flush()
