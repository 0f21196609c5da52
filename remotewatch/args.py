"""Module defining the command-line arguments and providing a parser for them."""

from __future__ import annotations

import argparse
from typing import List, Optional

from remotewatch.constants import DEFAULT_CONFIG_PATH, VERSION


class Arguments(argparse.Namespace):
    """Parsed command-line arguments."""

    profile: str

    config: str

    verbose: bool
    debug: bool

    @classmethod
    def parse(cls, args: Optional[List[str]] = None) -> Arguments:
        """
        Parse command-line arguments from the given list of strings.

        Defaults to sys.argv if none are specified.
        """
        return cls._get_parser().parse_args(args, namespace=cls())

    @classmethod
    def _get_parser(cls) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="remotewatch",
            description="Open files from a remote SSH session in the local editor.",
            usage="remotewatch [option...] profile",
        )

        parser.add_argument(
            "--version",
            action="version",
            version=f"%(prog)s {VERSION}",
            help="show the program version",
        )

        parser.add_argument(
            "profile", type=str, help="profile in the config file to connect with"
        )

        parser.add_argument(
            "--config",
            type=str,
            help=f"path to config file (default is {DEFAULT_CONFIG_PATH})",
            default=DEFAULT_CONFIG_PATH,
        )

        # Log every request received from the remote
        parser.add_argument(
            "-v", "--verbose", action="store_true", help="log received requests"
        )

        # Enable debug output for development
        parser.add_argument(
            "--debug", action="store_true", help="enable debug information"
        )

        return parser
