"""Structural diff between two CLI Structure Trees.

Walks both trees in lock-step by command name, starting at the root's
COMMAND map, and reports:

- commands added / removed under each parent
- flags added / removed on every command present in both trees
- description and data-type changes on flags present in both

Output order is deterministic and part of the contract: added commands
(in "to" order), removed commands (in "from" order), then each common
command's flag changes followed by its subcommand changes.

Usage:
    from helptree.diff_engine import diff_files

    for change in diff_files(Path("v1/parsed.json"), Path("v2/parsed.json")):
        print(change.format())
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from helptree.models import CommandNode, LineFlag, StructureError

logger = logging.getLogger(__name__)


class DiffError(Exception):
    """Raised when one of the inputs cannot be read as a CLI Structure Tree."""

    pass


@dataclass(frozen=True)
class CommandAdded:
    parent: str
    command: str

    def format(self) -> str:
        if not self.parent:
            return f"+ Added command: {self.command}"
        return f"+ Added command: {self.command} (to {self.parent})"


@dataclass(frozen=True)
class CommandRemoved:
    parent: str
    command: str

    def format(self) -> str:
        if not self.parent:
            return f"- Removed command: {self.command}"
        return f"- Removed command: {self.command} (from {self.parent})"


@dataclass(frozen=True)
class FlagAdded:
    command: str
    flag: str

    def format(self) -> str:
        return f"+ Added flag: {self.flag} (command: {self.command})"


@dataclass(frozen=True)
class FlagRemoved:
    command: str
    flag: str

    def format(self) -> str:
        return f"- Removed flag: {self.flag} (command: {self.command})"


@dataclass(frozen=True)
class FlagDescriptionChanged:
    command: str
    flag: str
    old: str
    new: str

    def format(self) -> str:
        return (
            f"~ Modified flag: {self.flag} (command: {self.command})\n"
            f"    Description changed:\n"
            f'      Before: "{self.old}"\n'
            f'      After:  "{self.new}"'
        )


@dataclass(frozen=True)
class FlagDataTypeChanged:
    command: str
    flag: str
    old: str | None
    new: str | None

    def format(self) -> str:
        return (
            f"~ Modified flag: {self.flag} (command: {self.command})\n"
            f"    Data type changed: {self.old or 'none'} -> {self.new or 'none'}"
        )


Change = (
    CommandAdded
    | CommandRemoved
    | FlagAdded
    | FlagRemoved
    | FlagDescriptionChanged
    | FlagDataTypeChanged
)


def diff(from_tree: CommandNode, to_tree: CommandNode) -> list[Change]:
    """Compare two trees and return the ordered list of changes."""
    changes: list[Change] = []
    _diff_commands(from_tree, to_tree, "", changes)
    return changes


def diff_documents(from_document: Any, to_document: Any) -> list[Change]:
    """Compare two decoded JSON documents.

    Raises:
        DiffError: If either document is not shaped like a tree
    """
    try:
        from_tree = CommandNode.from_dict(from_document)
        to_tree = CommandNode.from_dict(to_document)
    except StructureError as e:
        raise DiffError(f"Invalid CLI structure: {e}") from e
    return diff(from_tree, to_tree)


def diff_files(from_path: Path, to_path: Path) -> list[Change]:
    """Read two persisted trees and compare them.

    Raises:
        DiffError: If either file cannot be read, decoded or interpreted
    """
    documents = []
    for path in (from_path, to_path):
        try:
            documents.append(json.loads(Path(path).read_text(encoding="utf-8")))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DiffError(f"Failed to read {path}: {e}") from e

    changes = diff_documents(*documents)
    logger.debug(f"Diffed {from_path} -> {to_path}: {len(changes)} changes")
    return changes


def _diff_commands(
    from_node: CommandNode, to_node: CommandNode, parent_path: str, changes: list[Change]
) -> None:
    from_commands = from_node.children.commands
    to_commands = to_node.children.commands

    for name in to_commands:
        if name not in from_commands:
            changes.append(CommandAdded(parent=parent_path, command=name))

    for name in from_commands:
        if name not in to_commands:
            changes.append(CommandRemoved(parent=parent_path, command=name))

    for name, from_child in from_commands.items():
        to_child = to_commands.get(name)
        if to_child is None:
            continue
        current_path = f"{parent_path} {name}" if parent_path else name
        diff_flags(from_child.children.flags, to_child.children.flags, current_path, changes)
        _diff_commands(from_child, to_child, current_path, changes)


def diff_flags(
    from_flags: list[LineFlag],
    to_flags: list[LineFlag],
    command_path: str,
    changes: list[Change],
) -> None:
    """Append the flag-level changes for one command.

    Flags are matched by long name, falling back to short name. Within
    one side a later flag with the same key replaces an earlier one.
    """
    from_map = {flag.signature: flag for flag in from_flags}
    to_map = {flag.signature: flag for flag in to_flags}

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

        old_description = from_flag.description or ""
        new_description = to_flag.description or ""
        if old_description != new_description:
            changes.append(
                FlagDescriptionChanged(
                    command=command_path,
                    flag=from_flag.display_name,
                    old=old_description,
                    new=new_description,
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


__all__ = [
    "Change",
    "CommandAdded",
    "CommandRemoved",
    "DiffError",
    "FlagAdded",
    "FlagDataTypeChanged",
    "FlagDescriptionChanged",
    "FlagRemoved",
    "diff",
    "diff_documents",
    "diff_files",
    "diff_flags",
]
