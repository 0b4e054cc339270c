"""Integration tests for the helptree CLI.

Runs the click commands end to end with CliRunner. The crawler's
subprocess probe is replaced by the fake "app" program, everything else
(storage, config, diff, rendering) is real.
"""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from helptree.cli import main
from helptree.config_manager import ConfigManager, HelpTreeConfig
from helptree.models import CommandNode
from helptree.storage import ParsedStore

pytestmark = pytest.mark.integration


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def patched_probe(fake_app):
    with patch("helptree.crawler.execute", new=fake_app):
        yield fake_app


def store_versions(base_dir, tree_document, **versions):
    """Store tree_document variants under out/app/<tag>/parsed.json."""
    store = ParsedStore(base_dir)
    for tag, mutate in versions.items():
        document = json.loads(json.dumps(tree_document))
        mutate(document)
        store.save(CommandNode.from_dict(document), tag=tag)
    return store


class TestParseCommand:
    """Tests for 'helptree parse'."""

    def test_parse_stores_by_version(self, runner, patched_probe, tmp_path):
        result = runner.invoke(main, ["parse", "app", "--output-dir", str(tmp_path)])

        assert result.exit_code == 0, result.output
        path = tmp_path / "app" / "v1.0.0" / "parsed.json"
        assert f"CLI structure saved: {path}" in result.output
        assert "Version: v1.0.0  Commands: 2" in result.output

        document = json.loads(path.read_text())
        assert document["name"] == "app"
        assert list(document["children"]["COMMAND"]) == ["serve"]
        assert document["outputs"]["help_page"]["status"] == 0

    def test_parse_to_file(self, runner, patched_probe, tmp_path):
        output = tmp_path / "app.json"

        result = runner.invoke(main, ["parse", "app", "-o", str(output)])

        assert result.exit_code == 0, result.output
        assert json.loads(output.read_text())["version"] == "v1.0.0"

    def test_parse_with_tag(self, runner, patched_probe, tmp_path):
        result = runner.invoke(
            main, ["parse", "app", "--tag", "before", "--output-dir", str(tmp_path)]
        )

        assert result.exit_code == 0, result.output
        assert (tmp_path / "app" / "before" / "parsed.json").exists()

    def test_parse_subcommand(self, runner, patched_probe, tmp_path):
        output = tmp_path / "serve.json"

        result = runner.invoke(main, ["parse", "app", "serve", "-o", str(output)])

        assert result.exit_code == 0, result.output
        document = json.loads(output.read_text())
        assert document["name"] == "app serve"
        assert list(document["children"]["COMMAND"]) == ["tls"]

    def test_max_depth_option(self, runner, patched_probe, tmp_path):
        result = runner.invoke(
            main, ["parse", "app", "--max-depth", "0", "-o", str(tmp_path / "a.json")]
        )

        assert result.exit_code == 0, result.output
        assert "Commands: 1" in result.output
        assert patched_probe.help_calls == ["app --help"]

    def test_config_file_max_depth(self, runner, patched_probe, tmp_path):
        ConfigManager.save_config(HelpTreeConfig(output_dir=str(tmp_path), max_depth=0))

        result = runner.invoke(main, ["parse", "app"])

        assert result.exit_code == 0, result.output
        assert "Commands: 1" in result.output
        assert (tmp_path / "app" / "v1.0.0" / "parsed.json").exists()

    def test_cli_option_beats_config_and_env(self, runner, patched_probe, tmp_path, monkeypatch):
        monkeypatch.setenv("HELPTREE_MAX_DEPTH", "0")
        ConfigManager.save_config(HelpTreeConfig(max_depth=0))

        result = runner.invoke(
            main, ["parse", "app", "--max-depth", "3", "-o", str(tmp_path / "a.json")]
        )

        assert result.exit_code == 0, result.output
        assert "Commands: 2" in result.output

    def test_environment_max_depth(self, runner, patched_probe, tmp_path, monkeypatch):
        monkeypatch.setenv("HELPTREE_MAX_DEPTH", "0")

        result = runner.invoke(main, ["parse", "app", "-o", str(tmp_path / "a.json")])

        assert result.exit_code == 0, result.output
        assert "Commands: 1" in result.output

    def test_infer_flags(self, runner, patched_probe, tmp_path):
        output = tmp_path / "a.json"

        result = runner.invoke(main, ["parse", "app", "--infer-flags", "-o", str(output)])

        assert result.exit_code == 0, result.output
        serve = json.loads(output.read_text())["children"]["COMMAND"]["serve"]
        port = serve["children"]["FLAG"][0]
        assert port["required"] is False
        assert port["default_value"] == "8080"

    def test_invalid_timeout(self, runner, patched_probe, tmp_path):
        result = runner.invoke(
            main, ["parse", "app", "--timeout", "0", "-o", str(tmp_path / "a.json")]
        )

        assert result.exit_code == 1
        assert "Invalid crawl settings" in result.output


class TestCompareCommand:
    """Tests for 'helptree compare'."""

    def test_compare_latest_two(self, runner, tmp_path, tree_document):
        def add_command(document):
            document["children"]["COMMAND"]["status"] = {"name": "status", "children": {}}

        store_versions(tmp_path, tree_document, v1=lambda d: None, v2=add_command)

        result = runner.invoke(main, ["compare", "app", "--output-dir", str(tmp_path)])

        assert result.exit_code == 0, result.output
        # "v2" sorts first, so it is the default "from"
        assert "Comparing app versions: v2 -> v1" in result.output
        assert "- Removed command: status" in result.output
        assert "Summary: 1 changes detected" in result.output

    def test_compare_explicit_tags(self, runner, tmp_path, tree_document):
        def change_flag(document):
            serve = document["children"]["COMMAND"]["serve"]
            serve["children"]["FLAG"][0]["description"] = "Port number"

        store_versions(tmp_path, tree_document, v1=lambda d: None, v2=change_flag)

        result = runner.invoke(
            main,
            ["compare", "app", "--from", "v1", "--to", "v2", "--output-dir", str(tmp_path)],
        )

        assert result.exit_code == 0, result.output
        assert "~ Modified flag: -p/--port (command: serve)" in result.output
        assert 'Before: "int Port to listen on (default 8080)"' in result.output
        assert 'After:  "Port number"' in result.output

    def test_compare_identical(self, runner, tmp_path, tree_document):
        store_versions(tmp_path, tree_document, v1=lambda d: None, v2=lambda d: None)

        result = runner.invoke(main, ["compare", "app", "--output-dir", str(tmp_path)])

        assert result.exit_code == 0, result.output
        assert "No differences found between v2 and v1" in result.output

    def test_compare_needs_two_versions(self, runner, tmp_path, tree_document):
        store_versions(tmp_path, tree_document, v1=lambda d: None)

        result = runner.invoke(main, ["compare", "app", "--output-dir", str(tmp_path)])

        assert result.exit_code == 1
        assert "Need at least two versions" in result.output

    def test_compare_unknown_program(self, runner, tmp_path):
        result = runner.invoke(main, ["compare", "nothing", "--output-dir", str(tmp_path)])

        assert result.exit_code == 1
        assert "No parsed data found for program 'nothing'" in result.output

    def test_compare_missing_version(self, runner, tmp_path, tree_document):
        store_versions(tmp_path, tree_document, v1=lambda d: None, v2=lambda d: None)

        result = runner.invoke(
            main, ["compare", "app", "--to", "v9", "--output-dir", str(tmp_path)]
        )

        assert result.exit_code == 1
        assert "Version 'v9' not found" in result.output

    def test_compare_invalid_structure_falls_back(self, runner, tmp_path, tree_document):
        store_versions(tmp_path, tree_document, v1=lambda d: None, v2=lambda d: None)
        (tmp_path / "app" / "v2" / "parsed.json").write_text("{broken")

        result = runner.invoke(main, ["compare", "app", "--output-dir", str(tmp_path)])

        assert result.exit_code == 1
        assert "Error comparing structures" in result.output
        assert "Falling back to simple file comparison" in result.output
        assert "Files differ between v2 and v1" in result.output

    def test_compare_typescript_projection(self, runner, tmp_path):
        for tag, description in (("v1", "Old text"), ("v2", "New text")):
            flags_file = tmp_path / "app" / tag / "app" / "serve.ts"
            flags_file.parent.mkdir(parents=True)
            flags_file.write_text(
                "export const SERVE_FLAGS: CommandFlag[] = [\n"
                f"  {{ longName: '--port', description: '{description}' }},\n"
                "];\n"
            )

        result = runner.invoke(
            main,
            [
                "compare",
                "app",
                "--from",
                "v1",
                "--to",
                "v2",
                "--format",
                "ts-dir",
                "--output-dir",
                str(tmp_path),
            ],
        )

        assert result.exit_code == 0, result.output
        assert "~ Modified flag: --port (command: serve)" in result.output


class TestKeywordCommands:
    """Tests for 'helptree keywords' and 'helptree summary'."""

    def test_keywords(self, runner, tree_document, write_json):
        path = write_json("parsed.json", tree_document)

        result = runner.invoke(main, ["keywords", str(path)])

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {
            "base_program": "app",
            "commands": ["serve", "version"],
            "subcommands": [],
            "short_flags": ["-p"],
            "long_flags": ["--port"],
        }

    def test_summary(self, runner, tree_document, write_json):
        path = write_json("parsed.json", tree_document)

        result = runner.invoke(main, ["summary", str(path)])

        assert result.exit_code == 0, result.output
        assert "app (v1.0.0)" in result.output
        assert "Commands" in result.output
        assert "Long flags" in result.output

    def test_keywords_missing_file(self, runner, tmp_path):
        result = runner.invoke(main, ["keywords", str(tmp_path / "missing.json")])

        assert result.exit_code == 1
        assert "Parsed structure not found" in result.output


class TestConfigCommands:
    """Tests for 'helptree config'."""

    def test_set_then_show(self, runner):
        result = runner.invoke(main, ["config", "set", "max_depth=2", "probe_timeout=4.5"])

        assert result.exit_code == 0, result.output
        assert "Configuration updated" in result.output
        assert "  max_depth: 2" in result.output
        assert ConfigManager.load_config() == HelpTreeConfig(max_depth=2, probe_timeout=4.5)

        result = runner.invoke(main, ["config", "show"])

        assert result.exit_code == 0, result.output
        assert f"Config file: {ConfigManager.DEFAULT_CONFIG_FILE}" in result.output
        assert '"max_depth": 2' in result.output

    def test_set_empty_value_restores_default(self, runner):
        ConfigManager.save_config(HelpTreeConfig(max_depth=2))

        result = runner.invoke(main, ["config", "set", "max_depth="])

        assert result.exit_code == 0, result.output
        assert ConfigManager.load_config().max_depth is None
        assert "max_depth" not in ConfigManager.DEFAULT_CONFIG_FILE.read_text()

    def test_set_value_used_by_parse(self, runner, patched_probe, tmp_path):
        runner.invoke(main, ["config", "set", f"output_dir={tmp_path}", "max_depth=0"])

        result = runner.invoke(main, ["parse", "app"])

        assert result.exit_code == 0, result.output
        assert "Commands: 1" in result.output
        assert (tmp_path / "app" / "v1.0.0" / "parsed.json").exists()

    def test_set_invalid_key(self, runner):
        result = runner.invoke(main, ["config", "set", "colour=red"])

        assert result.exit_code == 1
        assert "Unknown config key: colour" in result.output
        assert not ConfigManager.DEFAULT_CONFIG_FILE.exists()

    def test_set_requires_a_setting(self, runner):
        result = runner.invoke(main, ["config", "set"])

        assert result.exit_code == 2
        assert "Missing argument" in result.output


class TestMainGroup:
    """Tests for the top-level group."""

    def test_no_command_shows_help(self, runner):
        result = runner.invoke(main, [])

        assert result.exit_code == 0
        assert "Reverse-engineer a CLI's command tree" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_invalid_config_path(self, runner, tmp_path):
        result = runner.invoke(
            main, ["--config", str(tmp_path / "missing.toml"), "parse", "app"]
        )

        assert result.exit_code == 1
        assert "Config file not found" in result.output
