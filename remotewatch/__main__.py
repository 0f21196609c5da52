"""
Module implementing the command-line interface and invoking a watch session.

remotewatch is started on the local machine with the name of a profile. It connects
to the remote host of that profile over SSH, installs a small helper command there and
then opens every file that the helper is invoked on in a local application, using the
local mount point of the remote file system.
"""

import os
import signal
import sys
from typing import List, NoReturn, Optional

import fasteners

import remotewatch.constants as constants
from remotewatch.config import ConfigError, SessionConfig, load_options
from remotewatch.dispatch import UnsupportedCommand
import remotewatch.logger as logger
from remotewatch.logger import log
from remotewatch.session import Session
from .args import Arguments


def _lock_path(config_path: str, profile: str) -> str:
    """Get the path of the lock file that guards the sessions of a profile."""
    return os.path.join(os.path.dirname(config_path), f"{profile}.lock")


def main(arguments: Optional[List[str]] = None) -> NoReturn:
    """
    Run a watch session for the profile named in the arguments.

    Defaults to parsing command-line arguments from sys.argv if none are specified.
    """
    # Parse command-line arguments.
    args = Arguments.parse(arguments)
    logger.configure(verbose=args.verbose, debug=args.debug)

    config_path = os.path.expanduser(args.config)

    try:
        config = SessionConfig.from_options(load_options(config_path, args.profile))
    except ConfigError as e:
        log.error(f"configuration error: {e}")
        sys.exit(os.EX_CONFIG)

    logger.configure(verbose=args.verbose or config.verbose, debug=args.debug)

    # Only one session per profile, since sessions would replace each other's helper.
    lock_path = _lock_path(config_path, args.profile)
    lock = fasteners.InterProcessLock(lock_path)

    if not lock.acquire(blocking=False):
        log.error(f"another session for profile {args.profile} is already running")
        sys.exit(constants.REMOTEWATCH_ERROR_CODE)

    try:
        exit_code = Session(config).watch()
    except KeyboardInterrupt:
        exit_code = 128 + signal.SIGINT
    except UnsupportedCommand as e:
        log.error(f"configuration error: {e}")
        exit_code = os.EX_CONFIG
    except Exception as e:
        log.error(f"failed to watch: {e}")
        exit_code = constants.REMOTEWATCH_ERROR_CODE
    finally:
        lock.release()

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
