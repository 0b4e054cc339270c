"""Usage-line grammar parser.

Turns a single usage line such as::

    app remote add [-t <branch>]... (--mirror=fetch|--mirror=push) <name> <url>

into an ordered tree of UsageComponent nodes:

- ``[...]``  Group (optional), contents parsed recursively into ``children``
- ``(a|b)``  AlternativeGroup, one flattened component list per ``|`` side
- ``...``    marks the preceding token or group repeatable
- tokens     Flag (``--x``), Argument (``<x>`` or key=value) or Keyword

The input is untrusted text, so unbalanced brackets never raise: an
unclosed ``[`` or ``(`` consumes the rest of the line. A group at
MAX_GROUP_DEPTH levels of nesting is not parsed further; its interior
becomes a flat list of tokens.
"""

import re

from helptree.models import ComponentType, UsageComponent

KEY_VALUE_PATTERN = re.compile(r"^<[^>]+>=<[^>]+>$")
ELLIPSIS = "..."
MAX_GROUP_DEPTH = 32

_STRUCTURAL_CHARS = frozenset("[]()|")
_FLAT_SPLIT_PATTERN = re.compile(r"[\s\[\]()|]+")


def parse_usage_line(usage_line: str, base_command: str) -> list[UsageComponent]:
    """Parse one usage line into components.

    Everything up to and including the first occurrence of ``base_command``
    is discarded. Lines whose remainder starts with ``-`` are flag lines
    routed here by mistake and produce no components.

    Args:
        usage_line: Raw usage text (with or without a "Usage:" prefix)
        base_command: Invocation name to strip, e.g. "app" or "serve"

    Returns:
        Top-level components in order of appearance
    """
    line = usage_line.strip()
    if base_command:
        idx = line.find(base_command)
        if idx != -1:
            line = line[idx + len(base_command) :]

    line = line.strip()
    if line.startswith("-"):
        return []
    return parse_tokens(line)


def parse_tokens(text: str, depth: int = 0) -> list[UsageComponent]:
    """Parse a token stream (the body of a usage line or of a group).

    ``depth`` is the group nesting level of ``text``. Groups opened at
    MAX_GROUP_DEPTH keep their tokens but lose any inner structure.
    """
    components: list[UsageComponent] = []
    nested = depth + 1 < MAX_GROUP_DEPTH
    pos = 0
    length = len(text)

    while pos < length:
        char = text[pos]

        if char.isspace():
            pos += 1
            continue

        if char == "[":
            interior, pos = _extract_until_matching(text, pos + 1, "[", "]")
            trailing_ellipsis, pos = _consume_ellipsis(text, pos)
            components.append(
                UsageComponent(
                    component_type=ComponentType.GROUP,
                    required=False,
                    repeatable=trailing_ellipsis or interior.endswith(ELLIPSIS),
                    children=(
                        parse_tokens(interior, depth + 1) if nested else _flat_tokens(interior)
                    ),
                )
            )
            continue

        if char == "(":
            interior, pos = _extract_until_matching(text, pos + 1, "(", ")")
            trailing_ellipsis, pos = _consume_ellipsis(text, pos)
            if nested:
                alternatives = _parse_alternatives(interior, depth + 1)
            else:
                flat = _flat_tokens(interior)
                alternatives = [flat] if flat else []
            if not alternatives:
                continue
            components.append(
                UsageComponent(
                    component_type=ComponentType.ALTERNATIVE_GROUP,
                    required=True,
                    repeatable=trailing_ellipsis or interior.endswith(ELLIPSIS),
                    alternatives=alternatives,
                )
            )
            continue

        if char in _STRUCTURAL_CHARS:
            # stray closer or top-level separator
            pos += 1
            continue

        start = pos
        while pos < length and not text[pos].isspace() and text[pos] not in _STRUCTURAL_CHARS:
            pos += 1
        token = text[start:pos]

        component = _token_component(token)
        if component is not None:
            components.append(component)
        elif token.endswith(ELLIPSIS) and components:
            # "<file> ..." repeats the previous component
            components[-1].repeatable = True

    return components


def _token_component(token: str) -> UsageComponent | None:
    repeatable = token.endswith(ELLIPSIS)
    name = token
    while name.endswith(ELLIPSIS):
        name = name[: -len(ELLIPSIS)]
    name = name.strip()
    if not name:
        return None

    key_value = bool(KEY_VALUE_PATTERN.match(name)) or "=" in token

    if name.startswith("--"):
        component_type = ComponentType.FLAG
    elif (name.startswith("<") and name.endswith(">")) or key_value:
        component_type = ComponentType.ARGUMENT
    else:
        component_type = ComponentType.KEYWORD

    return UsageComponent(
        component_type=component_type,
        name=name,
        required=True,
        repeatable=repeatable,
        key_value=key_value,
    )


def _extract_until_matching(
    text: str, start: int, open_char: str, close_char: str
) -> tuple[str, int]:
    """Return the interior of a bracket pair and the position after its closer.

    Depth counted, so nested pairs of the same kind stay inside the
    interior. Without a matching closer the interior runs to end of text.
    """
    depth = 1
    for idx in range(start, len(text)):
        char = text[idx]
        if char == open_char:
            depth += 1
        elif char == close_char:
            depth -= 1
            if depth == 0:
                return text[start:idx], idx + 1
    return text[start:], len(text)


def _consume_ellipsis(text: str, pos: int) -> tuple[bool, int]:
    if text.startswith(ELLIPSIS, pos):
        return True, pos + len(ELLIPSIS)
    return False, pos


def _split_top_level(text: str, separator: str = "|") -> list[str]:
    parts: list[str] = []
    depth = 0
    start = 0
    for idx, char in enumerate(text):
        if char in "[(":
            depth += 1
        elif char in "])":
            depth = max(depth - 1, 0)
        elif char == separator and depth == 0:
            parts.append(text[start:idx])
            start = idx + 1
    parts.append(text[start:])
    return parts


def _parse_alternatives(interior: str, depth: int) -> list[list[UsageComponent]]:
    alternatives = []
    for side in _split_top_level(interior):
        components = parse_tokens(side.strip(), depth)
        if components:
            alternatives.append(components)
    return alternatives


def _flat_tokens(text: str) -> list[UsageComponent]:
    """Tokens of ``text`` with every bracket and separator dropped."""
    components = []
    for token in _FLAT_SPLIT_PATTERN.split(text):
        component = _token_component(token)
        if component is not None:
            components.append(component)
    return components


__all__ = ["ELLIPSIS", "KEY_VALUE_PATTERN", "MAX_GROUP_DEPTH", "parse_tokens", "parse_usage_line"]
