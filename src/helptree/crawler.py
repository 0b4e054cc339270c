"""Recursive help-tree crawler.

Builds a CLI Structure Tree by probing "<program> --help", classifying
the output, and recursing into every listed subcommand:

    app --help            -> root node (depth 0)
    app serve --help      -> COMMAND["serve"] (depth 1)
    app serve tls --help  -> COMMAND["serve"].COMMAND["tls"] (depth 2)

Two guards keep the crawl finite against self-referencing or very deep
help output:

- depth cap: children listed at ``max_depth`` are recorded as leaves
  without being probed
- visited set: an invocation string is probed at most once per crawl;
  a repeat is recorded as a leaf

A failed probe only truncates that subtree. The crawl is strictly
sequential: one child process at a time, depth first.
"""

import logging
from collections.abc import Callable

from helptree.crawl_config import CrawlConfig
from helptree.flag_details import annotate_flags
from helptree.line_classifier import classify_help_text
from helptree.models import (
    CommandChildren,
    CommandNode,
    HelpCapture,
    LineCommand,
    LineFlag,
    LineOther,
    LineUsage,
)
from helptree.process_probe import execute, get_program_version

logger = logging.getLogger(__name__)

Probe = Callable[..., HelpCapture]


class HelpTreeCrawler:
    """Crawl an external program's help pages into a CommandNode tree.

    Args:
        probe: Callable ``(full_command, timeout=None) -> HelpCapture``;
            defaults to running a real subprocess
        config: Crawl settings (defaults to CrawlConfig())
    """

    def __init__(self, probe: Probe | None = None, config: CrawlConfig | None = None):
        self.probe = probe or execute
        self.config = (config or CrawlConfig()).validate()

    def crawl(self, program: str, subcommand: str | None = None) -> CommandNode:
        """Crawl ``program`` (optionally starting at ``subcommand``).

        The root is always probed, regardless of the guards.

        Returns:
            Root CommandNode of the fully materialized tree
        """
        invocation = f"{program} {subcommand}" if subcommand else program
        logger.info(f"Crawling help tree for: {invocation}")

        version = get_program_version(
            program,
            version_arg=self.config.version_arg,
            timeout=self.config.probe_timeout,
            probe=self.probe,
        )
        help_page = self._probe_help(invocation)
        if not help_page.succeeded:
            logger.warning(
                f"Help for '{invocation}' exited with status {help_page.exit_code}: "
                f"{help_page.stderr or 'no error output'}"
            )

        visited = {invocation}
        description, children = self._parse_node(
            invocation, invocation, help_page.stdout, depth=0, visited=visited
        )
        root = CommandNode(
            name=invocation,
            description=description,
            children=children,
            depth=0,
            command_path=invocation,
            version=version,
            help_page=help_page,
        )

        if self.config.infer_flag_details:
            root = annotate_flags(root)

        command_count = sum(1 for _ in root.iter_nodes()) - 1
        logger.info(
            f"Discovered {command_count} commands under '{invocation}' (version: {version})"
        )
        return root

    def _probe_help(self, invocation: str) -> HelpCapture:
        command = f"{invocation} {self.config.help_flag}"
        return self.probe(command, timeout=self.config.probe_timeout)

    def _parse_node(
        self,
        command: str,
        command_path: str,
        help_text: str,
        depth: int,
        visited: set[str],
    ) -> tuple[str, CommandChildren]:
        """Classify one help page and crawl the commands it lists."""
        base_command = command.split()[-1] if command.split() else ""
        page = classify_help_text(help_text, base_command, self.config.flag_split_mode)

        children = CommandChildren()
        for line in page.lines:
            if isinstance(line, LineFlag):
                children.flags.append(line)
            elif isinstance(line, LineUsage):
                children.usages.append(line)
            elif isinstance(line, LineOther):
                children.others.append(line)
            elif isinstance(line, LineCommand):
                node = self._crawl_child(line, command, command_path, depth, visited)
                if line.name in children.commands:
                    logger.debug(f"Keeping first listing of '{line.name}' under '{command}'")
                    continue
                children.commands[line.name] = node

        return page.description, children

    def _crawl_child(
        self,
        line: LineCommand,
        command: str,
        command_path: str,
        depth: int,
        visited: set[str],
    ) -> CommandNode:
        invocation = f"{command} {line.name}"
        node = CommandNode(
            name=line.name,
            description=line.description,
            depth=depth + 1,
            command_path=f"{command_path} {line.name}",
            parent_header=line.parent_header,
            parent=line.parent,
        )

        if invocation in visited:
            logger.debug(f"Skipping already visited command: {invocation}")
            return node
        if depth >= self.config.max_depth:
            logger.debug(f"Depth cap {self.config.max_depth} reached, not probing: {invocation}")
            return node

        visited.add(invocation)
        capture = self._probe_help(invocation)
        if not capture.succeeded:
            logger.debug(f"Help probe failed for '{invocation}' (status {capture.exit_code})")
            return node

        description, children = self._parse_node(
            invocation, node.command_path, capture.stdout, depth + 1, visited
        )
        node.children = children
        node.help_page = capture
        if description:
            node.description = description
        return node


def extract_cli_structure(
    program: str,
    subcommand: str | None = None,
    config: CrawlConfig | None = None,
    probe: Probe | None = None,
) -> CommandNode:
    """Crawl ``program`` with a one-off HelpTreeCrawler."""
    return HelpTreeCrawler(probe=probe, config=config).crawl(program, subcommand)


__all__ = ["HelpTreeCrawler", "Probe", "extract_cli_structure"]
