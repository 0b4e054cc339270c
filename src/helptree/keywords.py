"""Keyword extraction and summary counts over one tree.

Top-level command names are "commands"; every command name below them is
a "subcommand". Flags are collected from the top-level commands down
(root flags are not counted as keywords).
"""

from dataclasses import asdict, dataclass, field

from helptree.models import CommandNode


@dataclass
class CLIKeywords:
    """Unique keywords of a CLI."""

    base_program: str
    commands: list[str] = field(default_factory=list)
    subcommands: list[str] = field(default_factory=list)
    short_flags: list[str] = field(default_factory=list)
    long_flags: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "base_program": self.base_program,
            "commands": self.commands,
            "subcommands": self.subcommands,
            "short_flags": self.short_flags,
            "long_flags": self.long_flags,
        }


@dataclass
class CLISummary:
    """Total and unique keyword counts."""

    unique_keywords_count: int
    unique_command_count: int
    unique_subcommand_count: int
    unique_short_flag_count: int
    unique_long_flag_count: int
    total_command_count: int
    total_subcommand_count: int
    total_short_flag_count: int
    total_long_flag_count: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


def _collect(root: CommandNode) -> tuple[list[str], list[str], list[str], list[str]]:
    commands: list[str] = []
    subcommands: list[str] = []
    short_flags: list[str] = []
    long_flags: list[str] = []

    for top_level in root.children.commands.values():
        commands.append(top_level.name)
        for node in top_level.iter_nodes():
            if node is not top_level:
                subcommands.append(node.name)
            for flag in node.children.flags:
                if flag.short:
                    short_flags.append(flag.short)
                if flag.long:
                    long_flags.append(flag.long)

    return commands, subcommands, short_flags, long_flags


def extract_keywords(root: CommandNode) -> CLIKeywords:
    """Collect the de-duplicated keywords of a tree."""
    commands, subcommands, short_flags, long_flags = _collect(root)
    return CLIKeywords(
        base_program=root.name,
        commands=commands,
        subcommands=sorted(set(subcommands)),
        short_flags=sorted(set(short_flags)),
        long_flags=sorted(set(long_flags)),
    )


def summarize(root: CommandNode) -> CLISummary:
    """Count keywords of a tree, with and without repetitions."""
    commands, subcommands, short_flags, long_flags = _collect(root)
    unique = [len(set(values)) for values in (commands, subcommands, short_flags, long_flags)]
    return CLISummary(
        unique_keywords_count=sum(unique),
        unique_command_count=unique[0],
        unique_subcommand_count=unique[1],
        unique_short_flag_count=unique[2],
        unique_long_flag_count=unique[3],
        total_command_count=len(commands),
        total_subcommand_count=len(subcommands),
        total_short_flag_count=len(short_flags),
        total_long_flag_count=len(long_flags),
    )


__all__ = ["CLIKeywords", "CLISummary", "extract_keywords", "summarize"]
