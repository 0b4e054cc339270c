"""Structural diff over generated TypeScript projections of a tree.

A TypeScript projection lays out one ``.ts`` file per command::

    help.ts                  top-level command "help"
    secret/create.ts         "create" under "secret"
    checkpoint/model/ls.ts   "ls" under "checkpoint model"

and each file declares its flags as an object array::

    export const CREATE_FLAGS: CommandFlag[] = [
      { longName: '--name', shortName: '-n', description: 'Secret name', valueDataType: STRING },
    ];

Files only on one side become command adds/removes; files on both sides
with different content have their flag arrays compared with the same
change records as the tree diff.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from helptree.diff_engine import (
    Change,
    CommandAdded,
    CommandRemoved,
    DiffError,
    FlagAdded,
    FlagDataTypeChanged,
    FlagDescriptionChanged,
    FlagRemoved,
)

logger = logging.getLogger(__name__)

FLAGS_MARKER = "_FLAGS: CommandFlag[] = ["
_QUOTES = "'\"`"


@dataclass
class ProjectedFlag:
    """A flag as declared in a generated TypeScript file."""

    long_name: str | None
    short_name: str | None
    description: str
    data_type: str

    @property
    def signature(self) -> str:
        return self.long_name or self.short_name or "unknown"

    @property
    def display_name(self) -> str:
        if self.short_name and self.long_name:
            return f"{self.short_name}/{self.long_name}"
        return self.short_name or self.long_name or "unknown"


def command_from_path(relative_path: str) -> tuple[str, str]:
    """Split ``a/b/c.ts`` into (parent, command) = ("a b", "c")."""
    parts = relative_path.removesuffix(".ts").split("/")
    return " ".join(parts[:-1]), parts[-1]


def extract_flags(content: str) -> list[ProjectedFlag]:
    """Parse the ``*_FLAGS: CommandFlag[] = [...]`` array of one file."""
    start = content.find(FLAGS_MARKER)
    if start == -1:
        return []
    array_start = start + len(FLAGS_MARKER)

    bracket_depth = 0
    brace_depth = 0
    quote: str | None = None
    escaped = False
    for offset, char in enumerate(content[array_start:]):
        if escaped:
            escaped = False
            continue
        if quote is not None:
            if char == "\\":
                escaped = True
            elif char == quote:
                quote = None
            continue

        if char in _QUOTES:
            quote = char
        elif char == "[":
            bracket_depth += 1
        elif char == "]":
            if bracket_depth == 0 and brace_depth == 0:
                return _parse_flag_objects(content[array_start : array_start + offset])
            bracket_depth -= 1
        elif char == "{":
            brace_depth += 1
        elif char == "}":
            brace_depth -= 1

    return []


def _parse_flag_objects(array_body: str) -> list[ProjectedFlag]:
    flags = []
    depth = 0
    current: list[str] = []
    for char in array_body:
        if char == "{":
            depth += 1
        if depth > 0:
            current.append(char)
        if char == "}":
            depth -= 1
            if depth == 0:
                flag = _parse_flag_object("".join(current))
                if flag is not None:
                    flags.append(flag)
                current = []
    return flags


def _parse_flag_object(text: str) -> ProjectedFlag | None:
    long_name = _property_value(text, "longName")
    short_name = _property_value(text, "shortName")
    description = _property_value(text, "description") or ""
    if not (long_name or short_name) or not description:
        return None
    return ProjectedFlag(
        long_name=long_name,
        short_name=short_name,
        description=description,
        data_type=_property_value(text, "valueDataType") or "",
    )


def _property_value(text: str, name: str) -> str | None:
    idx = text.find(f"{name}:")
    if idx == -1:
        return None
    rest = text[idx + len(name) + 1 :].lstrip()
    if rest and rest[0] in "'\"":
        end = rest.find(rest[0], 1)
        return rest[1:end] if end != -1 else None

    end = len(rest)
    for terminator in (",", "\n", "}"):
        position = rest.find(terminator)
        if position != -1:
            end = min(end, position)
    value = rest[:end].strip()
    return value or None


def _list_ts_files(directory: Path) -> list[str]:
    if not directory.is_dir():
        raise DiffError(f"Not a directory: {directory}")
    return sorted(path.relative_to(directory).as_posix() for path in directory.rglob("*.ts"))


def diff_projected_flags(
    from_content: str, to_content: str, command_path: str, changes: list[Change]
) -> None:
    from_map = {flag.signature: flag for flag in extract_flags(from_content)}
    to_map = {flag.signature: flag for flag in extract_flags(to_content)}

    for key, flag in to_map.items():
        if key not in from_map:
            changes.append(FlagAdded(command=command_path, flag=flag.display_name))
    for key, flag in from_map.items():
        if key not in to_map:
            changes.append(FlagRemoved(command=command_path, flag=flag.display_name))

    for key, from_flag in from_map.items():
        to_flag = to_map.get(key)
        if to_flag is None:
            continue
        if from_flag.description != to_flag.description:
            changes.append(
                FlagDescriptionChanged(
                    command=command_path,
                    flag=from_flag.display_name,
                    old=from_flag.description,
                    new=to_flag.description,
                )
            )
        if from_flag.data_type != to_flag.data_type:
            changes.append(
                FlagDataTypeChanged(
                    command=command_path,
                    flag=from_flag.display_name,
                    old=from_flag.data_type,
                    new=to_flag.data_type,
                )
            )


def diff_typescript_directories(from_dir: Path, to_dir: Path) -> list[Change]:
    """Compare two TypeScript projection directories.

    Raises:
        DiffError: If either directory is missing or a file cannot be read
    """
    from_files = _list_ts_files(Path(from_dir))
    to_files = _list_ts_files(Path(to_dir))
    from_set, to_set = set(from_files), set(to_files)
    changes: list[Change] = []

    for relative in to_files:
        if relative not in from_set:
            parent, command = command_from_path(relative)
            changes.append(CommandAdded(parent=parent, command=command))

    for relative in from_files:
        if relative not in to_set:
            parent, command = command_from_path(relative)
            changes.append(CommandRemoved(parent=parent, command=command))

    for relative in from_files:
        if relative not in to_set:
            continue
        try:
            from_content = (Path(from_dir) / relative).read_text(encoding="utf-8")
            to_content = (Path(to_dir) / relative).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise DiffError(f"Failed to read {relative}: {e}") from e
        if from_content == to_content:
            continue
        parent, command = command_from_path(relative)
        command_path = f"{parent} {command}" if parent else command
        diff_projected_flags(from_content, to_content, command_path, changes)

    logger.debug(f"Diffed projections {from_dir} -> {to_dir}: {len(changes)} changes")
    return changes


__all__ = [
    "FLAGS_MARKER",
    "ProjectedFlag",
    "command_from_path",
    "diff_projected_flags",
    "diff_typescript_directories",
    "extract_flags",
]
