"""
Module implementing the placeholder substitution used to generate the remote scripts.

Templates are plain text with placeholders of the form __NAME__. Only a fixed set of
names is substituted locally; anything else that happens to look like a placeholder
is left alone so the remote side can resolve it itself. Values are inserted verbatim,
so callers that need a value inside the generated program's source use literal() to
turn it into a string literal first.
"""

import re
from typing import Mapping, Optional, Set

# Placeholders that are resolved locally before the script is sent to the remote.
PLACEHOLDERS = frozenset({"COMMAND_NAME", "TOKEN", "TEMPDIR", "HELPER"})

_PLACEHOLDER_PATTERN = re.compile(r"__([A-Z0-9]+(?:_[A-Z0-9]+)*)__")


def render(template: str, bindings: Mapping[str, str]) -> str:
    """
    Substitute every occurrence of each known placeholder in the template.

    Known placeholders without a binding are replaced by an empty string.
    """
    unknown = set(bindings) - PLACEHOLDERS
    if unknown:
        raise ValueError(f"unknown placeholders: {', '.join(sorted(unknown))}")

    def substitute(match: "re.Match[str]") -> str:
        name = match.group(1)

        if name not in PLACEHOLDERS:
            return match.group(0)

        return bindings.get(name, "")

    return _PLACEHOLDER_PATTERN.sub(substitute, template)


def placeholders(template: str) -> Set[str]:
    """Return the names of the known placeholders used by a template."""
    return {
        match.group(1)
        for match in _PLACEHOLDER_PATTERN.finditer(template)
        if match.group(1) in PLACEHOLDERS
    }


def literal(value: Optional[str]) -> str:
    """Escape a value into a Python literal that evaluates back to the same value."""
    return repr(value)
