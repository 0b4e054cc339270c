"""Extended flag form: required, default value and data-type hints.

Everything here is pattern matching over human-written descriptions and
docopt-style usage strings. The results are hints for downstream
generators, not verified properties of the target program.
"""

import logging
from dataclasses import replace

from helptree.models import CommandChildren, CommandNode, LineFlag

logger = logging.getLogger(__name__)

# Longest first so "stringArray" wins over "string"
DATA_TYPE_PREFIXES = (
    "stringToString",
    "stringArray",
    "duration",
    "string",
    "float",
    "uint",
    "bool",
    "int",
)

_OPTIONAL_PHRASES = ("default is", "defaults to")
_REQUIRED_PHRASES = ("required", "mandatory", "must be provided", "must specify")
_PLACEHOLDER_VALUES = ("PATH", "NAME", "ID")


def extract_data_type_prefix(description: str | None) -> str | None:
    """Return a leading type word such as "uint" in "uint Number of servers"."""
    if not description:
        return None
    for prefix in DATA_TYPE_PREFIXES:
        if description.startswith(f"{prefix} "):
            return prefix
    return None


def extract_default_value(description: str | None) -> str | None:
    """Return X from "(default X)" or "default is X"."""
    if not description:
        return None

    start = description.find("(default ")
    if start != -1:
        end = description.find(")", start)
        if end != -1:
            return description[start + len("(default ") : end]

    start = description.find("default is ")
    if start != -1:
        words = description[start + len("default is ") :].split()
        if words:
            return words[0]

    return None


def is_flag_required_in_usage(usage_string: str, long_flag: str, short_flag: str = "") -> bool:
    """Check docopt-style patterns for a flag inside a usage string.

    ``<--flag>`` and ``(--flag)`` mark a flag required, ``[--flag]`` and a
    generic ``[flags]`` mark it optional, and ``--flag VALUE_NAME`` style
    placeholders mark it required. Anything else counts as optional.
    """
    if not usage_string or not long_flag:
        return False

    if f"<{long_flag}>" in usage_string or f"({long_flag})" in usage_string:
        return True
    if short_flag and (f"<{short_flag}>" in usage_string or f"({short_flag})" in usage_string):
        return True

    if (
        f"[{long_flag}]" in usage_string
        or (short_flag and f"[{short_flag}]" in usage_string)
        or "[flags]" in usage_string
    ):
        return False

    bare = long_flag.lstrip("-")
    placeholders = {bare.upper(), bare.replace("-", "_").upper(), *_PLACEHOLDER_VALUES}
    return any(f"{long_flag} {placeholder}" in usage_string for placeholder in placeholders)


def infer_required(flag: LineFlag, usage_string: str = "") -> bool:
    description = flag.description or ""
    lowered = description.lower()

    if (
        "(default" in description
        or any(phrase in lowered for phrase in _OPTIONAL_PHRASES)
        or flag.long == "--help"
        or description.startswith("help for")
    ):
        return False

    if any(phrase in lowered for phrase in _REQUIRED_PHRASES):
        return True

    return is_flag_required_in_usage(usage_string, flag.long or "", flag.short or "")


def annotate_flag(flag: LineFlag, usage_string: str = "") -> LineFlag:
    """Return a copy of ``flag`` carrying the extended form."""
    return replace(
        flag,
        data_type=flag.data_type or extract_data_type_prefix(flag.description),
        required=infer_required(flag, usage_string),
        default_value=extract_default_value(flag.description),
    )


def annotate_flags(node: CommandNode) -> CommandNode:
    """Return a new tree whose flags all carry the extended form.

    Each node's flags are checked against that node's first usage string.
    """
    usage_string = node.children.usages[0].usage_string if node.children.usages else ""
    children = CommandChildren(
        commands={name: annotate_flags(child) for name, child in node.children.commands.items()},
        flags=[annotate_flag(flag, usage_string) for flag in node.children.flags],
        usages=list(node.children.usages),
        others=list(node.children.others),
    )
    logger.debug(f"Annotated {len(children.flags)} flags for {node.command_path or node.name}")
    return replace(node, children=children)


__all__ = [
    "DATA_TYPE_PREFIXES",
    "annotate_flag",
    "annotate_flags",
    "extract_data_type_prefix",
    "extract_default_value",
    "infer_required",
    "is_flag_required_in_usage",
]
