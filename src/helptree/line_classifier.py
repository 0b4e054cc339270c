"""Help-text line classification.

Walks the lines of one help page and turns each indented line into a
typed record, using the most recent section header as context:

    Available Commands:          <- header, becomes the active section
      serve  Start the server    <- LineCommand
    Flags:
      -h, --help   help for app  <- LineFlag

Classification order for an indented line:
    1. Flag line (leading dash)
    2. Single token (parsed as usage grammar, dropped if that yields nothing)
    3. Section title contains "usage"    -> LineUsage
    4. Section title contains "example"  -> LineOther (verbatim)
    5. Section title names commands      -> LineCommand
    6. Anything else                     -> LineOther (verbatim)

These are deliberately simple string heuristics tuned for the help
dialects of common CLI frameworks, not a formal grammar.
"""

import re
from dataclasses import dataclass, field

from helptree.models import LineCommand, LineFlag, LineOther, LineUsage, OutputLine
from helptree.usage_parser import parse_usage_line

FLAG_LINE_PATTERN = re.compile(r"^\s*-{1,2}\S+")
COMMAND_HEADERS = ("commands", "available commands", "subcommands")
NO_SECTION = "None"

FLAG_SPLIT_SORTED = "sorted"
FLAG_SPLIT_LEGACY = "legacy"
FLAG_SPLIT_MODES = (FLAG_SPLIT_SORTED, FLAG_SPLIT_LEGACY)

_INDENTS = ("  ", "\t")


def is_header_line(line: str) -> bool:
    """Return True for an unindented, non-blank line."""
    if line.startswith((" ", "\t")):
        return False
    if ":" in line:
        return True
    return bool(line.strip())


def header_title(line: str) -> str:
    title = line.strip()
    return title[:-1] if title.endswith(":") else title


@dataclass
class SectionState:
    """Parse state for one help page: the active section header."""

    current_section: str | None = None

    def enter(self, title: str) -> None:
        self.current_section = title

    def accepts(self, line: str) -> bool:
        """Whether ``line`` is an indented line under an active section."""
        return self.current_section is not None and line.startswith(_INDENTS)


@dataclass
class HelpPage:
    """Classified contents of one help page."""

    description: str = ""
    lines: list[OutputLine] = field(default_factory=list)


def parse_flag_line(
    tokens: list[str], section_header: str, split_mode: str = FLAG_SPLIT_SORTED
) -> LineFlag:
    """Build a LineFlag from the whitespace tokens of a flag line.

    Leading tokens that start with ``-`` or contain a comma form the flag
    definition; the first other token starts the description. Within the
    definition, dash tokens are flag names and the first remaining token
    is the data-type hint.

    With two or more flag names, ``sorted`` mode assigns the shortest
    ``--`` name to ``long`` and the shortest single-dash name to ``short``;
    ``legacy`` mode takes the first of each in encounter order.
    """
    flag_part: list[str] = []
    description_parts: list[str] = []
    for idx, token in enumerate(tokens):
        if token.startswith("-") or "," in token:
            flag_part.append(token)
        else:
            description_parts = tokens[idx:]
            break

    candidates = [
        piece for definition in " ".join(flag_part).split(", ") for piece in definition.split()
    ]
    flag_names = [c for c in candidates if c.startswith("-")]
    type_hints = [c for c in candidates if not c.startswith("-") and c.strip()]

    short: str | None = None
    long: str | None = None
    if len(flag_names) == 1:
        if flag_names[0].startswith("--"):
            long = flag_names[0]
        else:
            short = flag_names[0]
    elif len(flag_names) >= 2:
        ordered = sorted(flag_names, key=len) if split_mode == FLAG_SPLIT_SORTED else flag_names
        for name in ordered:
            if name.startswith("--"):
                if long is None:
                    long = name
            elif short is None:
                short = name

    return LineFlag(
        short=short,
        long=long,
        data_type=type_hints[0] if type_hints else None,
        description=" ".join(description_parts) if description_parts else None,
        parent_header=section_header,
    )


def classify_line(
    line: str,
    section_header: str | None,
    base_command: str,
    split_mode: str = FLAG_SPLIT_SORTED,
) -> OutputLine | None:
    """Classify one indented help line.

    Args:
        line: Raw line, indentation included
        section_header: Title of the active section (None if there is none)
        base_command: Invocation name stripped from usage lines
        split_mode: Flag name assignment mode (see parse_flag_line)

    Returns:
        The typed record, or None when the line is dropped
    """
    section = section_header or NO_SECTION
    trimmed = line.strip()
    tokens = trimmed.split()
    if not tokens:
        return None

    if FLAG_LINE_PATTERN.match(trimmed):
        return parse_flag_line(tokens, section, split_mode)

    if len(tokens) == 1:
        components = parse_usage_line(trimmed, base_command)
        if not components:
            return None
        return LineOther(line_contents=tokens[0], parent_header=section, components=components)

    lowered = section.lower()
    if "usage" in lowered:
        return LineUsage(
            usage_string=trimmed,
            parent_header=section,
            usage_components=parse_usage_line(trimmed, base_command),
        )

    if "example" in lowered:
        return LineOther(line_contents=line, parent_header=section)

    if any(header in lowered for header in COMMAND_HEADERS):
        return LineCommand(
            name=tokens[0],
            description=" ".join(tokens[1:]),
            parent_header=section,
            parent=base_command,
        )

    return LineOther(line_contents=line, parent_header=section)


def classify_help_text(
    text: str, base_command: str, split_mode: str = FLAG_SPLIT_SORTED
) -> HelpPage:
    """Classify every line of a help page.

    The page description is its first line, unless that line is indented
    or is itself a "Usage" line. Skipping "Usage" lines here is stricter
    than indentation alone: a page opening with "Usage: app [flags]" gets
    an empty description instead of its usage text.
    """
    lines = text.splitlines()
    page = HelpPage()
    if lines and not lines[0].startswith(" ") and not lines[0].lower().startswith("usage"):
        page.description = lines[0]

    state = SectionState()
    for line in lines:
        if not line.strip():
            continue
        if is_header_line(line):
            state.enter(header_title(line))
            continue
        if not state.accepts(line):
            continue
        output = classify_line(line, state.current_section, base_command, split_mode)
        if output is not None:
            page.lines.append(output)

    return page


__all__ = [
    "COMMAND_HEADERS",
    "FLAG_LINE_PATTERN",
    "FLAG_SPLIT_LEGACY",
    "FLAG_SPLIT_MODES",
    "FLAG_SPLIT_SORTED",
    "HelpPage",
    "SectionState",
    "classify_help_text",
    "classify_line",
    "header_title",
    "is_header_line",
    "parse_flag_line",
]
