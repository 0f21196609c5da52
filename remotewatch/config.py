"""
Module for the session configuration and the profile file it is loaded from.

Profiles live in an INI file with one section per profile. Values in the [DEFAULT]
section apply to every profile unless the profile overrides them, for example:

    [DEFAULT]
    command.file = open -a Emacs

    [devbox]
    ssh_command_line_options = -p 2222 devbox.example.com
    path_to_mount = /Volumes/devbox
    command.dir = open

Options holding a command line are split like a shell would split them.
"""

from __future__ import annotations

from configparser import ConfigParser, Error as ConfigParserError, SectionProxy
from dataclasses import dataclass, field
import shlex
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple
import uuid

from remotewatch.constants import DEFAULT_COMMANDS, DEFAULT_EDITOR_COMMAND_NAME
from remotewatch.logger import log

# Prefix of the options that define the local command for a remote command name.
COMMAND_OPTION_PREFIX = "command."


class ConfigError(ValueError):
    """Exception raised when the configuration is missing or incomplete."""


def _new_token() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class SessionConfig:
    """Configuration of a single watch session, read-only after construction."""

    ssh_command_line_options: Tuple[str, ...]
    path_to_mount: str

    mount_relative_to: str = "/"
    editor_command_name: str = DEFAULT_EDITOR_COMMAND_NAME
    custom_temp_dir: Optional[str] = None
    verbose: bool = False

    token: str = field(default_factory=_new_token)

    commands: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: {
            name: tuple(argv) for name, argv in DEFAULT_COMMANDS.items()
        }
    )

    def __post_init__(self) -> None:
        """Validate the required fields and freeze the mutable ones."""
        if isinstance(self.ssh_command_line_options, str):
            raise ConfigError("ssh_command_line_options must be a list of arguments")

        if not self.ssh_command_line_options:
            raise ConfigError("ssh_command_line_options must not be empty")

        if not self.path_to_mount:
            raise ConfigError("path_to_mount must not be empty")

        if not self.editor_command_name:
            raise ConfigError("editor_command_name must not be empty")

        for name, argv in self.commands.items():
            if not argv:
                raise ConfigError(f"command for '{name}' must not be empty")

        # Sequences are stored as tuples so the configuration can't change later on
        object.__setattr__(
            self, "ssh_command_line_options", tuple(self.ssh_command_line_options)
        )
        object.__setattr__(
            self,
            "commands",
            MappingProxyType(
                {name: tuple(argv) for name, argv in self.commands.items()}
            ),
        )

    def get_command(self, name: str) -> Tuple[str, ...]:
        """Get the local command template for a supported command name."""
        return self.commands[name]

    def supports_command(self, name: str) -> bool:
        """Check if there is a local command template for a command name."""
        return name in self.commands

    @staticmethod
    def from_options(options: Mapping[str, Any]) -> SessionConfig:
        """
        Build a session configuration from a flat option map.

        Only ssh_command_line_options and path_to_mount are required, every other
        option falls back to its default when it's missing or None.
        """
        for required in ("ssh_command_line_options", "path_to_mount"):
            if not options.get(required):
                raise ConfigError(f"missing required option {required}")

        kwargs: Dict[str, Any] = {
            "ssh_command_line_options": options["ssh_command_line_options"],
            "path_to_mount": options["path_to_mount"],
        }

        for name in (
            "mount_relative_to",
            "editor_command_name",
            "custom_temp_dir",
            "verbose",
            "token",
            "commands",
        ):
            if options.get(name) is not None:
                kwargs[name] = options[name]

        return SessionConfig(**kwargs)


def _split(value: str) -> List[str]:
    try:
        return shlex.split(value)
    except ValueError as e:
        raise ConfigError(f"can't parse '{value}': {e}")


def _load_section(section: SectionProxy) -> Dict[str, Any]:
    """Convert a profile section into a flat option map."""
    options: Dict[str, Any] = {}
    commands: Dict[str, List[str]] = {}

    for key, value in section.items():
        if key.startswith(COMMAND_OPTION_PREFIX):
            commands[key[len(COMMAND_OPTION_PREFIX) :]] = _split(value)
        elif key == "ssh_command_line_options":
            options[key] = _split(value)
        elif key == "verbose":
            try:
                options[key] = section.getboolean(key)
            except ValueError as e:
                raise ConfigError(f"invalid value for verbose: {e}")
        else:
            options[key] = value

    if commands:
        options["commands"] = commands

    return options


def load_options(filename: str, profile: str) -> Dict[str, Any]:
    """Load the flat option map of a profile from a config file."""
    parser = ConfigParser(interpolation=None)

    # Command names are case sensitive
    parser.optionxform = str  # type: ignore

    try:
        with open(filename, "r") as f:
            parser.read_string(f.read(), filename)
    except FileNotFoundError:
        raise ConfigError(f"no config file at {filename}")
    except (OSError, ConfigParserError) as e:
        raise ConfigError(f"failed to read config file {filename}: {e}")

    if not parser.has_section(profile):
        raise ConfigError(f"no profile named '{profile}' in {filename}")

    options = _load_section(parser[profile])
    log.debug(f"loaded profile {profile}: {options}")

    return options
