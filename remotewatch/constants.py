"""Module defining various global constants."""

# remotewatch version
VERSION = "1.0.0"

# Special exit code for when remotewatch itself fails.
REMOTEWATCH_ERROR_CODE = 254

# Exit code of ssh when the connection itself failed.
SSH_ERROR_CODE = 255

# Interpreter that ssh starts on the remote to read and run the agent script.
REMOTE_INTERPRETER = "python3"

# Name of the helper command installed in ~/bin on the remote.
DEFAULT_EDITOR_COMMAND_NAME = "ec"

# Local commands used when the configuration doesn't define any.
DEFAULT_COMMANDS = {"file": ["open"]}

# Prefix of the line the agent emits once it's about to stream the watch log.
HANDSHAKE_PREFIX = "# remotewatch "

# Default location of the config file with the session profiles.
DEFAULT_CONFIG_PATH = "~/.remotewatch/config"
