"""
CLI Structure Tree Data Models

Shared dataclasses for the crawler, the line classifier, the usage parser
and every consumer of a persisted tree.

Philosophy:
- Single responsibility: tree data structures only
- Zero dependencies: No imports from other helptree modules
- Serialized keys are a public contract (renderers match on them)

Public API (the "studs"):
    ComponentType: Usage component kinds
    UsageComponent: One node of a parsed usage line
    HelpCapture: Captured output of one help invocation
    LineFlag, LineCommand, LineUsage, LineOther: Classified help-text lines
    CommandChildren: The four role-keyed child collections of a node
    CommandNode: A CLI Structure Tree node (root or subcommand)
    StructureError: Raised when a document is not shaped like a tree
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class StructureError(ValueError):
    """Raised when a document cannot be read as a CLI Structure Tree."""

    pass


class ComponentType(Enum):
    """Kind of a usage component."""

    FLAG = "Flag"
    ARGUMENT = "Argument"
    KEYWORD = "Keyword"
    GROUP = "Group"
    ALTERNATIVE_GROUP = "AlternativeGroup"
    KEY_VALUE_PAIR = "KeyValuePair"


def _require_mapping(value: Any, where: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise StructureError(f"Expected an object for {where}, got {type(value).__name__}")
    return value


def _require_list(value: Any, where: str) -> list[Any]:
    if not isinstance(value, list):
        raise StructureError(f"Expected an array for {where}, got {type(value).__name__}")
    return value


def _optional_str(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    return value if isinstance(value, str) else None


@dataclass
class UsageComponent:
    """One node of a parsed usage line.

    Plain tokens carry a name. Bracket groups carry ``children``; paren
    groups carry ``alternatives`` (one component list per ``|`` side).
    The two collections are never both populated.
    """

    component_type: ComponentType
    name: str = ""
    required: bool = True
    repeatable: bool = False
    key_value: bool = False
    alternatives: list[list["UsageComponent"]] = field(default_factory=list)
    children: list["UsageComponent"] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "component_type": self.component_type.value,
            "name": self.name,
            "required": self.required,
            "repeatable": self.repeatable,
            "key_value": self.key_value,
            "alternatives": [
                [component.to_dict() for component in alternative]
                for alternative in self.alternatives
            ],
            "children": [child.to_dict() for child in self.children],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UsageComponent":
        data = _require_mapping(data, "usage component")
        try:
            component_type = ComponentType(data.get("component_type"))
        except ValueError as e:
            raise StructureError(
                f"Unknown usage component type: {data.get('component_type')!r}"
            ) from e

        alternatives = [
            [cls.from_dict(item) for item in _require_list(alternative, "alternative")]
            for alternative in _require_list(data.get("alternatives", []), "alternatives")
        ]
        return cls(
            component_type=component_type,
            name=data.get("name", ""),
            required=data.get("required", True),
            repeatable=data.get("repeatable", False),
            key_value=data.get("key_value", False),
            alternatives=alternatives,
            children=[
                cls.from_dict(child)
                for child in _require_list(data.get("children", []), "children")
            ],
        )


@dataclass
class HelpCapture:
    """Captured output of one subprocess invocation.

    Attributes:
        stdout: Trimmed standard output
        stderr: Trimmed standard error (or the launch error text)
        exit_code: Process exit status, -1 when the process could not run
    """

    stdout: str
    stderr: str
    exit_code: int

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    def to_dict(self) -> dict[str, Any]:
        return {"stdout": self.stdout, "stderr": self.stderr, "status": self.exit_code}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HelpCapture":
        data = _require_mapping(data, "help_page")
        return cls(
            stdout=data.get("stdout", ""),
            stderr=data.get("stderr", ""),
            exit_code=data.get("status", -1),
        )


@dataclass
class LineFlag:
    """A flag definition found under a help section.

    ``required`` and ``default_value`` are only set by the extended flag
    form (see ``helptree.flag_details``).
    """

    short: str | None
    long: str | None
    data_type: str | None
    description: str | None
    parent_header: str
    required: bool | None = None
    default_value: str | None = None

    @property
    def signature(self) -> str:
        """Key used to match the same flag across two trees."""
        return self.long or self.short or ""

    @property
    def display_name(self) -> str:
        if self.short and self.long:
            return f"{self.short}/{self.long}"
        return self.short or self.long or "unknown"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "short": self.short,
            "long": self.long,
            "data_type": self.data_type,
            "description": self.description,
            "parent_header": self.parent_header,
        }
        if self.required is not None:
            data["required"] = self.required
            data["default_value"] = self.default_value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LineFlag":
        data = _require_mapping(data, "flag")
        required = data.get("required")
        return cls(
            short=_optional_str(data, "short"),
            long=_optional_str(data, "long"),
            data_type=_optional_str(data, "data_type"),
            description=_optional_str(data, "description"),
            parent_header=data.get("parent_header", ""),
            required=required if isinstance(required, bool) else None,
            default_value=_optional_str(data, "default_value"),
        )


@dataclass
class LineCommand:
    """A subcommand listed under a commands section."""

    name: str
    description: str
    parent_header: str
    parent: str


@dataclass
class LineUsage:
    """A usage line and its parsed grammar."""

    usage_string: str
    parent_header: str
    usage_components: list[UsageComponent] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "usage_string": self.usage_string,
            "parent_header": self.parent_header,
            "usage_components": [c.to_dict() for c in self.usage_components],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LineUsage":
        data = _require_mapping(data, "usage")
        return cls(
            usage_string=data.get("usage_string", ""),
            parent_header=data.get("parent_header", ""),
            usage_components=[
                UsageComponent.from_dict(c)
                for c in _require_list(data.get("usage_components", []), "usage_components")
            ],
        )


@dataclass
class LineOther:
    """Free text that matched no other rule.

    ``components`` is only set for single-token lines that parsed as usage
    grammar; it is ``None`` for verbatim text.
    """

    line_contents: str
    parent_header: str
    components: list[UsageComponent] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "line_contents": self.line_contents,
            "parent_header": self.parent_header,
            "components": (
                None if self.components is None else [c.to_dict() for c in self.components]
            ),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LineOther":
        data = _require_mapping(data, "other line")
        components = data.get("components")
        return cls(
            line_contents=data.get("line_contents", ""),
            parent_header=data.get("parent_header", ""),
            components=(
                None
                if components is None
                else [UsageComponent.from_dict(c) for c in _require_list(components, "components")]
            ),
        )


OutputLine = LineFlag | LineCommand | LineUsage | LineOther


@dataclass
class CommandChildren:
    """Role-keyed child collections of a tree node."""

    commands: dict[str, "CommandNode"] = field(default_factory=dict)
    flags: list[LineFlag] = field(default_factory=list)
    usages: list[LineUsage] = field(default_factory=list)
    others: list[LineOther] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.commands or self.flags or self.usages or self.others)

    def to_dict(self) -> dict[str, Any]:
        return {
            "COMMAND": {name: node.to_dict() for name, node in self.commands.items()},
            "FLAG": [flag.to_dict() for flag in self.flags],
            "USAGE": [usage.to_dict() for usage in self.usages],
            "OTHER": [other.to_dict() for other in self.others],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "CommandChildren":
        data = _require_mapping(data, "children")
        commands = _require_mapping(data.get("COMMAND", {}), "COMMAND")
        return cls(
            commands={name: CommandNode.from_dict(node) for name, node in commands.items()},
            flags=[LineFlag.from_dict(f) for f in _require_list(data.get("FLAG", []), "FLAG")],
            usages=[LineUsage.from_dict(u) for u in _require_list(data.get("USAGE", []), "USAGE")],
            others=[LineOther.from_dict(o) for o in _require_list(data.get("OTHER", []), "OTHER")],
        )


@dataclass
class CommandNode:
    """A CLI Structure Tree node.

    The root carries ``version`` and always has a ``help_page``. Subcommand
    nodes carry ``parent`` and ``parent_header`` and only have a
    ``help_page`` when their help was probed.

    Attributes:
        name: Invocation name (full program invocation for the root)
        description: First line of the help page or the listing description
        children: Subcommands, flags, usage lines and other lines
        depth: Distance from the root
        command_path: Full invocation path as a string
        parent_header: Section title the command was listed under
        parent: Name of the command whose help listed this one
        version: Program version (root only)
        help_page: Raw capture of the help invocation for this node
    """

    name: str
    description: str = ""
    children: CommandChildren = field(default_factory=CommandChildren)
    depth: int = 0
    command_path: str = ""
    parent_header: str | None = None
    parent: str | None = None
    version: str | None = None
    help_page: HelpCapture | None = None

    def iter_nodes(self) -> Iterator["CommandNode"]:
        """Yield this node and every descendant, depth first."""
        yield self
        for child in self.children.commands.values():
            yield from child.iter_nodes()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "description": self.description}
        if self.version is not None:
            data["version"] = self.version
        if self.parent_header is not None:
            data["parent_header"] = self.parent_header
        if self.parent is not None:
            data["parent"] = self.parent
        data["depth"] = self.depth
        data["command_path"] = self.command_path
        if self.help_page is not None:
            data["outputs"] = {"help_page": self.help_page.to_dict()}
        data["children"] = self.children.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "CommandNode":
        data = _require_mapping(data, "command")
        name = data.get("name")
        if not isinstance(name, str):
            raise StructureError("Command node is missing a string 'name'")

        outputs = _require_mapping(data.get("outputs") or {}, "outputs")
        help_page = outputs.get("help_page")
        return cls(
            name=name,
            description=data.get("description") or "",
            children=CommandChildren.from_dict(data.get("children") or {}),
            depth=data.get("depth", 0),
            command_path=data.get("command_path", ""),
            parent_header=_optional_str(data, "parent_header"),
            parent=_optional_str(data, "parent"),
            version=_optional_str(data, "version"),
            help_page=HelpCapture.from_dict(help_page) if help_page is not None else None,
        )


__all__ = [
    "CommandChildren",
    "CommandNode",
    "ComponentType",
    "HelpCapture",
    "LineCommand",
    "LineFlag",
    "LineOther",
    "LineUsage",
    "OutputLine",
    "StructureError",
    "UsageComponent",
]
