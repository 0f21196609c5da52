from unittest import mock
import os
import signal
import subprocess

import pytest

from remotewatch.transport import Channel, TransportError


def mock_ssh(substitute_command: str):
    realPopen = subprocess.Popen

    def wrapper(_command, *args, **kwargs):
        return realPopen(substitute_command, shell=True, *args, **kwargs)

    return wrapper


def test_compose_command():
    command = Channel.compose_command(["-p", "2222", "devbox"])

    assert command == ["ssh", "-p", "2222", "devbox", "python3"]


def test_missing_ssh():
    with mock.patch("subprocess.Popen") as mock_popen:
        mock_popen.side_effect = FileNotFoundError()

        with pytest.raises(TransportError) as e:
            Channel.open(["devbox"])

    assert "failed to start ssh" in str(e.value)
    assert isinstance(e.value.__cause__, FileNotFoundError)


def test_connection_arguments():
    with mock.patch("subprocess.Popen") as mock_popen:
        Channel.open(["devbox"])

    assert mock_popen.call_args[0][0] == ["ssh", "devbox", "python3"]
    assert mock_popen.call_args[1]["stdin"] == subprocess.PIPE
    assert mock_popen.call_args[1]["stdout"] == subprocess.PIPE


def test_send_and_read(tmp_path):
    received = tmp_path / "received"

    callback = mock_ssh(f"cat > '{received}'; printf 'one\\ntwo|three\\n'")

    with mock.patch("subprocess.Popen", side_effect=callback):
        channel = Channel.open(["devbox"])

    channel.send("print('hello')\n")
    channel.close_write()

    assert channel.read_line() == "one"
    assert channel.read_line() == "two|three"
    assert channel.read_line() is None
    assert channel.wait() == 0

    assert received.read_text() == "print('hello')\n"

    channel.close()


def test_iterate_lines():
    callback = mock_ssh("cat > /dev/null; printf 'a\\nb\\nlast without newline'")

    with mock.patch("subprocess.Popen", side_effect=callback):
        channel = Channel.open(["devbox"])

    channel.close_write()

    assert list(channel) == ["a", "b", "last without newline"]

    channel.close()


def test_end_of_stream_exit_code():
    callback = mock_ssh("cat > /dev/null; exit 255")

    with mock.patch("subprocess.Popen", side_effect=callback):
        channel = Channel.open(["devbox"])

    channel.close_write()

    assert channel.read_line() is None
    assert channel.wait() == 255

    channel.close()


def test_send_after_remote_exit():
    callback = mock_ssh("exec 0<&-; exit 0")

    with mock.patch("subprocess.Popen", side_effect=callback):
        channel = Channel.open(["devbox"])

    channel.wait()

    with pytest.raises(TransportError) as e:
        # Large enough to not fit into the pipe buffer
        channel.send("x" * (1024 * 1024))

    assert "failed to send to ssh" in str(e.value)

    channel.close()


def test_close_terminates_ssh():
    # exec is necessary to ensure that sleep receives the termination signal
    callback = mock_ssh("exec sleep 10")

    with mock.patch("subprocess.Popen", side_effect=callback):
        channel = Channel.open(["devbox"])

    channel.close()

    assert channel.wait() == -signal.SIGTERM


def test_undecodable_path_survives():
    callback = mock_ssh("cat > /dev/null; printf 'file|caf\\351.txt\\n'")

    with mock.patch("subprocess.Popen", side_effect=callback):
        channel = Channel.open(["devbox"])

    channel.close_write()

    line = channel.read_line()
    assert os.fsencode(line) == b"file|caf\xe9.txt"

    channel.close()
