"""Persisted tree storage.

Crawled trees are stored as pretty-printed JSON, one directory per
program and version (or user-chosen tag):

    <base_dir>/<program>/<version_or_tag>/parsed.json

Persisted trees are read back for diffs and renderers; they are never
modified in place.
"""

import json
import logging
import os
import re
from pathlib import Path

from helptree.models import CommandNode, StructureError
from helptree.process_probe import UNKNOWN_VERSION

logger = logging.getLogger(__name__)

PARSED_FILENAME = "parsed.json"
LATEST_TAG = "latest"

_UNSAFE_TAG_CHARS = re.compile(r"[^\w.+-]+")


class StorageError(Exception):
    """Raised when persisted trees cannot be written, found or read."""

    pass


def default_tag(version: str | None) -> str:
    """Directory name for a program version ("latest" when unknown)."""
    if not version or not version.strip() or version.strip() == UNKNOWN_VERSION:
        return LATEST_TAG
    first_line = version.strip().splitlines()[0]
    return _UNSAFE_TAG_CHARS.sub("_", first_line).strip("_") or LATEST_TAG


def program_name(node: CommandNode) -> str:
    """Storage name of the crawled program ("/usr/bin/git remote" -> "git")."""
    invocation = node.name.split()
    return Path(invocation[0]).name if invocation else "cli"


def write_tree(node: CommandNode, path: Path) -> Path:
    """Atomically write a tree as pretty-printed JSON.

    Raises:
        StorageError: If writing fails
    """
    path = Path(path)
    temp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path.write_text(json.dumps(node.to_dict(), indent=2) + "\n", encoding="utf-8")
        temp_path.replace(path)
    except OSError as e:
        if temp_path.exists():
            temp_path.unlink()
        raise StorageError(f"Failed to write {path}: {e}") from e

    logger.debug(f"Saved CLI structure to: {path}")
    return path


def read_tree(path: Path) -> CommandNode:
    """Read a persisted tree.

    Raises:
        StorageError: If the file is missing, not JSON, or not a tree
    """
    path = Path(path)
    if not path.exists():
        raise StorageError(f"Parsed structure not found: {path}")
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
        return CommandNode.from_dict(document)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError, StructureError) as e:
        raise StorageError(f"Failed to read {path}: {e}") from e


class ParsedStore:
    """Program/version directory layout for persisted trees."""

    def __init__(self, base_dir: Path | str = "out"):
        self.base_dir = Path(base_dir).expanduser()

    def program_dir(self, program: str) -> Path:
        return self.base_dir / self._validate_segment(program, "program")

    def path_for(self, program: str, tag: str) -> Path:
        return self.program_dir(program) / self._validate_segment(tag, "tag") / PARSED_FILENAME

    def projection_dir(self, program: str, tag: str) -> Path:
        """Location of a generated TypeScript projection for a stored version."""
        return self.program_dir(program) / self._validate_segment(tag, "tag") / program

    def save(self, node: CommandNode, tag: str | None = None) -> Path:
        """Store a tree under its program and tag (default: its version)."""
        path = self.path_for(program_name(node), tag or default_tag(node.version))
        return write_tree(node, path)

    def load(self, program: str, tag: str) -> CommandNode:
        return read_tree(self.path_for(program, tag))

    def list_versions(self, program: str) -> list[str]:
        """Stored tags for ``program``, sorted descending."""
        program_dir = self.program_dir(program)
        if not program_dir.is_dir():
            return []
        tags = [entry.name for entry in program_dir.iterdir() if entry.is_dir()]
        return sorted(tags, reverse=True)

    def resolve_tags(
        self, program: str, from_tag: str | None = None, to_tag: str | None = None
    ) -> tuple[str, str]:
        """Pick the two versions to compare.

        ``from`` defaults to the first listed version and ``to`` to the
        second.

        Raises:
            StorageError: If no data exists or a default cannot be chosen
        """
        versions = self.list_versions(program)
        if not versions:
            raise StorageError(
                f"No parsed data found for program '{program}' in {self.base_dir}.\n"
                f"Run 'helptree parse {program}' first."
            )

        resolved_from = from_tag or versions[0]
        if to_tag:
            resolved_to = to_tag
        elif len(versions) > 1:
            resolved_to = versions[1]
        else:
            raise StorageError(
                f"Need at least two versions for comparison. "
                f"Available versions: {', '.join(versions)}"
            )
        return resolved_from, resolved_to

    @staticmethod
    def _validate_segment(value: str, kind: str) -> str:
        if not value or value in (".", "..") or os.sep in value or "/" in value:
            raise StorageError(f"Invalid {kind} name: {value!r}")
        return value


__all__ = [
    "LATEST_TAG",
    "PARSED_FILENAME",
    "ParsedStore",
    "StorageError",
    "default_tag",
    "program_name",
    "read_tree",
    "write_tree",
]
