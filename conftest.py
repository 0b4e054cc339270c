"""Pytest configuration and fixtures for helptree tests.

CRITICAL: Protects the user's configuration from test modifications.
"""

import pytest


@pytest.fixture(autouse=True)
def protect_user_config(tmp_path, monkeypatch):
    """Point ConfigManager at a temporary ~/.helptree for every test.

    Tests must never read or modify the real ~/.helptree/config.toml.
    """
    from helptree.config_manager import ConfigManager

    config_dir = tmp_path / ".helptree"
    monkeypatch.setattr(ConfigManager, "DEFAULT_CONFIG_DIR", config_dir)
    monkeypatch.setattr(ConfigManager, "DEFAULT_CONFIG_FILE", config_dir / "config.toml")
    return config_dir


@pytest.fixture(autouse=True)
def clean_crawl_environment(monkeypatch):
    """Drop HELPTREE_* overrides and the cached crawl config around each test."""
    from helptree.crawl_config import reset_crawl_config

    for name in (
        "HELPTREE_MAX_DEPTH",
        "HELPTREE_HELP_FLAG",
        "HELPTREE_VERSION_ARG",
        "HELPTREE_PROBE_TIMEOUT",
        "HELPTREE_FLAG_SPLIT_MODE",
        "HELPTREE_INFER_FLAG_DETAILS",
    ):
        monkeypatch.delenv(name, raising=False)

    reset_crawl_config()
    yield
    reset_crawl_config()
