"""Configuration for help-tree crawls.

This module provides the tunable crawl settings: how deep to recurse,
which arguments request help and version output, and how to split flag
definitions.

Design Philosophy:
- Sensible defaults: Works out of the box against Cobra-style CLIs
- Environment-aware: Can be overridden via env vars
"""

import os
from dataclasses import dataclass, replace

from helptree.line_classifier import FLAG_SPLIT_MODES, FLAG_SPLIT_SORTED

DEFAULT_MAX_DEPTH = 5


@dataclass
class CrawlConfig:
    """Crawl configuration settings.

    Attributes:
        max_depth: Deepest level whose listed children are still probed
        help_flag: Argument appended to request a help page
        version_arg: Argument used for the root version lookup
        probe_timeout: Seconds before a probe is killed (None = no timeout)
        flag_split_mode: "sorted" (length-sorted) or "legacy" flag assignment
        infer_flag_details: Annotate flags with required/default hints
    """

    max_depth: int = DEFAULT_MAX_DEPTH
    help_flag: str = "--help"
    version_arg: str = "version"
    probe_timeout: float | None = None
    flag_split_mode: str = FLAG_SPLIT_SORTED
    infer_flag_details: bool = False

    def validate(self) -> "CrawlConfig":
        """Check value ranges.

        Raises:
            ValueError: If a setting is out of range
        """
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {self.max_depth}")
        if self.probe_timeout is not None and self.probe_timeout <= 0:
            raise ValueError(f"probe_timeout must be positive, got {self.probe_timeout}")
        if self.flag_split_mode not in FLAG_SPLIT_MODES:
            raise ValueError(
                f"flag_split_mode must be one of {', '.join(FLAG_SPLIT_MODES)}, "
                f"got {self.flag_split_mode!r}"
            )
        if not self.help_flag.strip():
            raise ValueError("help_flag must not be empty")
        return self

    def with_overrides(self, **overrides) -> "CrawlConfig":
        """Return a copy with non-None overrides applied."""
        values = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **values).validate()

    @classmethod
    def from_environment(cls) -> "CrawlConfig":
        """Load crawl configuration from environment variables.

        Environment variables (all optional):
            HELPTREE_MAX_DEPTH: Depth cap (default: 5)
            HELPTREE_HELP_FLAG: Help argument (default: --help)
            HELPTREE_VERSION_ARG: Version argument (default: version)
            HELPTREE_PROBE_TIMEOUT: Probe timeout in seconds (default: none)
            HELPTREE_FLAG_SPLIT_MODE: sorted or legacy (default: sorted)
            HELPTREE_INFER_FLAG_DETAILS: Annotate flags (default: false)

        Returns:
            CrawlConfig with values from environment or defaults

        Raises:
            ValueError: If a variable holds an invalid value
        """
        timeout = os.getenv("HELPTREE_PROBE_TIMEOUT", "").strip()
        return cls(
            max_depth=int(os.getenv("HELPTREE_MAX_DEPTH", str(DEFAULT_MAX_DEPTH))),
            help_flag=os.getenv("HELPTREE_HELP_FLAG", "--help"),
            version_arg=os.getenv("HELPTREE_VERSION_ARG", "version"),
            probe_timeout=float(timeout) if timeout else None,
            flag_split_mode=os.getenv("HELPTREE_FLAG_SPLIT_MODE", FLAG_SPLIT_SORTED).lower(),
            infer_flag_details=os.getenv("HELPTREE_INFER_FLAG_DETAILS", "false").lower()
            == "true",
        ).validate()


# Global configuration instance (lazily loaded)
_config: CrawlConfig | None = None


def get_crawl_config() -> CrawlConfig:
    """Get global crawl configuration.

    Returns:
        CrawlConfig instance (loaded from environment on first access)
    """
    global _config
    if _config is None:
        _config = CrawlConfig.from_environment()
    return _config


def reset_crawl_config() -> None:
    """Reset global crawl configuration.

    Forces reload from environment on next access.
    """
    global _config
    _config = None


__all__ = ["DEFAULT_MAX_DEPTH", "CrawlConfig", "get_crawl_config", "reset_crawl_config"]
