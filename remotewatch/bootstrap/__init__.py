"""
Module that renders the scripts that run on the remote host.

The agent is piped into the remote interpreter once per session. It installs the
helper command, which the remote user runs to request a file to be opened, and then
turns into a tail of the watch log that the helper appends requests to. The helper's
source is embedded in the agent as a string literal, and the agent fills in the path
of the watch log once it has picked one.
"""

import os
from typing import Dict

from remotewatch.config import SessionConfig
from remotewatch.template import literal, render

_TEMPLATE_DIR = os.path.dirname(os.path.abspath(__file__))

AGENT_TEMPLATE = "agent.py.tmpl"
HELPER_TEMPLATE = "helper.py.tmpl"


def load_template(name: str) -> str:
    """Read one of the script templates shipped with this package."""
    with open(os.path.join(_TEMPLATE_DIR, name), "r") as f:
        return f.read()


def _bindings(config: SessionConfig) -> Dict[str, str]:
    """Compute the placeholder values shared by the agent and the helper."""
    if config.custom_temp_dir:
        tempdir = f"dir={literal(config.custom_temp_dir)}"
    else:
        tempdir = ""

    return {
        "COMMAND_NAME": literal(config.editor_command_name),
        "TOKEN": literal(config.token),
        "TEMPDIR": tempdir,
    }


def render_helper(config: SessionConfig) -> str:
    """Render the source of the helper command for a session."""
    return render(load_template(HELPER_TEMPLATE), _bindings(config))


def render_agent(config: SessionConfig) -> str:
    """Render the agent script, with the helper embedded, for a session."""
    bindings = _bindings(config)
    bindings["HELPER"] = literal(render_helper(config))

    return render(load_template(AGENT_TEMPLATE), bindings)
