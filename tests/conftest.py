"""
Shared test fixtures and configuration for helptree tests.

This module provides common fixtures used across all test types:
- Sample help pages in the style of Cobra-based CLIs
- A fake program that answers "--help" and "version" probes from a dict
- Sample stored trees
"""

from pathlib import Path

import pytest

from helptree.models import HelpCapture

# ============================================================================
# SAMPLE HELP PAGES
# ============================================================================

APP_HELP = """App description
Usage:
  app [command]
Available Commands:
  serve  Start the server
Flags:
  -h, --help   help for app"""

SERVE_HELP = """Start the HTTP server and block until interrupted
Usage:
  app serve [flags]
Available Commands:
  tls  Serve over TLS
Flags:
  -p, --port int   Port to listen on (default 8080)
  -h, --help       help for serve"""

SERVE_TLS_HELP = """Serve over TLS using a certificate pair
Usage:
  app serve tls --cert PATH [flags]
Flags:
      --cert string   Certificate file (required)
  -h, --help          help for tls"""


class FakeProgram:
    """Answers probes from a mapping of invocation -> help text.

    ``"<invocation> --help"`` returns the mapped page (exit 0) or an
    "unknown command" failure (exit 1). ``"<program> version"`` returns
    ``version`` when it is set.
    """

    def __init__(self, pages: dict[str, str], version: str | None = "v1.0.0"):
        self.pages = pages
        self.version = version
        self.calls: list[str] = []

    def __call__(self, full_command: str, timeout: float | None = None) -> HelpCapture:
        self.calls.append(full_command)
        if full_command.endswith(" --help"):
            invocation = full_command[: -len(" --help")]
            if invocation in self.pages:
                return HelpCapture(stdout=self.pages[invocation].strip(), stderr="", exit_code=0)
        elif full_command.endswith(" version") and self.version is not None:
            return HelpCapture(stdout=self.version, stderr="", exit_code=0)
        return HelpCapture(stdout="", stderr=f"unknown command: {full_command}", exit_code=1)

    @property
    def help_calls(self) -> list[str]:
        return [call for call in self.calls if call.endswith(" --help")]


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def app_help() -> str:
    """Root help page of the "app" program."""
    return APP_HELP


@pytest.fixture
def app_pages() -> dict[str, str]:
    """Help pages of a three-level "app" program."""
    return {
        "app": APP_HELP,
        "app serve": SERVE_HELP,
        "app serve tls": SERVE_TLS_HELP,
    }


@pytest.fixture
def fake_app(app_pages) -> FakeProgram:
    """Fake "app" program at version v1.0.0."""
    return FakeProgram(app_pages)


@pytest.fixture
def tree_document() -> dict:
    """A stored tree as decoded JSON (root + two commands)."""
    return {
        "name": "app",
        "description": "App description",
        "version": "v1.0.0",
        "depth": 0,
        "command_path": "app",
        "outputs": {"help_page": {"stdout": APP_HELP, "stderr": "", "status": 0}},
        "children": {
            "COMMAND": {
                "serve": {
                    "name": "serve",
                    "description": "Start the server",
                    "parent_header": "Available Commands",
                    "parent": "app",
                    "depth": 1,
                    "command_path": "app serve",
                    "children": {
                        "COMMAND": {},
                        "FLAG": [
                            {
                                "short": "-p",
                                "long": "--port",
                                "data_type": None,
                                "description": "int Port to listen on (default 8080)",
                                "parent_header": "Flags",
                            }
                        ],
                        "USAGE": [],
                        "OTHER": [],
                    },
                },
                "version": {
                    "name": "version",
                    "description": "Print the version",
                    "parent_header": "Available Commands",
                    "parent": "app",
                    "depth": 1,
                    "command_path": "app version",
                    "children": {"COMMAND": {}, "FLAG": [], "USAGE": [], "OTHER": []},
                },
            },
            "FLAG": [
                {
                    "short": "-h",
                    "long": "--help",
                    "data_type": None,
                    "description": "help for app",
                    "parent_header": "Flags",
                }
            ],
            "USAGE": [],
            "OTHER": [],
        },
    }


@pytest.fixture
def write_json(tmp_path):
    """Write a JSON-serializable object to a file under tmp_path."""
    import json

    def _write(name: str, document) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(document), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_program():
    """Factory for FakeProgram instances with custom pages."""
    return FakeProgram
