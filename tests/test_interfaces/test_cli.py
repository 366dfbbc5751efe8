"""Tests for the AgentHub CLI."""

import json

import pytest
from click.testing import CliRunner

import agenthub.interfaces.cli as cli_mod
from agenthub import config as cfg
from agenthub.interfaces.cli import cli


@pytest.fixture
def runner(hub):
    """Click test runner with injected hub."""
    original = cli_mod._hub
    cli_mod._hub = hub
    yield CliRunner()
    cli_mod._hub = original


class TestStats:
    def test_stats_text(self, runner):
        result = runner.invoke(cli, ["stats"])
        assert result.exit_code == 0
        assert "AgentHub Statistics" in result.output
        assert "Projects:    2" in result.output

    def test_stats_json(self, runner):
        result = runner.invoke(cli, ["stats", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["agents"] == 4


class TestProject:
    def test_list(self, runner):
        result = runner.invoke(cli, ["project", "list"])
        assert result.exit_code == 0
        assert "shop" in result.output
        assert "Next.js, Supabase" in result.output

    def test_list_json(self, runner):
        result = runner.invoke(cli, ["project", "list", "--json"])
        data = json.loads(result.output)
        assert data["shop"]["activeAgents"] == ["boss", "jin", "rex"]

    def test_add(self, runner, hub):
        result = runner.invoke(cli, ["project", "add", "arcade", "--stack", "Godot", "--agents", "jin,rex"])
        assert result.exit_code == 0, result.output
        assert "Project registered: arcade" in result.output
        assert "Generated: 2" in result.output
        assert hub.get_project("arcade").active_agents == ["jin", "rex"]

    def test_add_duplicate(self, runner):
        result = runner.invoke(cli, ["project", "add", "shop", "--stack", "Godot"])
        assert result.exit_code == 1
        assert "Error: Project already registered: shop" in result.output

    def test_add_no_generate_json(self, runner):
        result = runner.invoke(cli, ["project", "add", "arcade", "--stack", "Godot", "--no-generate", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output) == {"project": "arcade", "registered": True}

    def test_clone(self, runner, hub):
        result = runner.invoke(cli, ["project", "clone", "shop", "shop-v2", "--customize", "jin:Mobile first"])
        assert result.exit_code == 0, result.output
        text = (hub.projects_dir / "shop-v2" / ".claude" / "commands" / "frontend.md").read_text()
        assert "Mobile first" in text


class TestGenerate:
    def test_agent(self, runner, hub):
        result = runner.invoke(cli, ["generate", "agent", "shop", "jin"])
        assert result.exit_code == 0
        assert "Generated:" in result.output
        assert (hub.projects_dir / "shop" / ".claude" / "commands" / "frontend.md").exists()

    def test_inactive_agent(self, runner):
        result = runner.invoke(cli, ["generate", "agent", "shop", "mia"])
        assert result.exit_code == 0
        assert "Skipped" in result.output

    def test_project_json(self, runner):
        result = runner.invoke(cli, ["generate", "project", "shop", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["succeeded"] == ["shop/boss", "shop/jin", "shop/rex"]

    def test_all_with_failure_exits_1(self, runner, hub):
        (hub.hub_dir / "templates" / "rex.md").unlink()
        result = runner.invoke(cli, ["generate", "all"])
        assert result.exit_code == 1
        assert "shop/rex" in result.output
        assert "Generated: 3" in result.output

    def test_unknown_project(self, runner):
        result = runner.invoke(cli, ["generate", "project", "nope"])
        assert result.exit_code == 1
        assert "Error: Project not found: nope" in result.output


class TestScore:
    def test_feedback(self, runner):
        result = runner.invoke(cli, ["score", "feedback", "shop", "jin", "success", "Built login"])
        assert result.exit_code == 0, result.output
        assert "jin: +15 -> 815 (A)" in result.output

    def test_feedback_bad_type(self, runner):
        result = runner.invoke(cli, ["score", "feedback", "shop", "jin", "amazing"])
        assert result.exit_code == 2

    def test_penalty_json(self, runner):
        result = runner.invoke(cli, ["score", "penalty", "shop", "jin", "quality:Broken build", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["totalScore"] == 780
        assert data["penalty"]["description"] == "quality:Broken build"

    def test_penalty_unknown_category(self, runner):
        result = runner.invoke(cli, ["score", "penalty", "shop", "jin", "laziness"])
        assert result.exit_code == 1
        assert "Unknown penalty category" in result.output

    def test_show(self, runner):
        runner.invoke(cli, ["score", "init", "shop"])
        result = runner.invoke(cli, ["score", "show", "shop"])
        assert result.exit_code == 0
        assert "jin" in result.output
        assert "800" in result.output

    def test_show_agent_json(self, runner):
        runner.invoke(cli, ["score", "feedback", "shop", "rex", "failure"])
        result = runner.invoke(cli, ["score", "show", "shop", "rex", "--json"])
        data = json.loads(result.output)
        assert data["totalScore"] == 780
        assert data["rank"] == "B"


class TestSkills:
    def test_add_list_remove(self, runner):
        runner.invoke(cli, ["score", "init", "shop"])
        result = runner.invoke(cli, ["skills", "add", "shop", "jin", "react-native", "--proficiency", "70"])
        assert result.exit_code == 0
        assert "Added skill react-native (70)" in result.output

        result = runner.invoke(cli, ["skills", "list", "shop", "jin", "--json"])
        assert [s["name"] for s in json.loads(result.output)] == ["react-native"]

        result = runner.invoke(cli, ["skills", "remove", "shop", "jin", "react-native"])
        assert result.exit_code == 0
        result = runner.invoke(cli, ["skills", "list", "shop", "jin"])
        assert "No skills recorded" in result.output

    def test_out_of_range(self, runner):
        runner.invoke(cli, ["score", "init", "shop"])
        result = runner.invoke(cli, ["skills", "add", "shop", "jin", "sql", "--proficiency", "150"])
        assert result.exit_code == 1
        assert "between 0 and 100" in result.output

    def test_without_scores(self, runner):
        result = runner.invoke(cli, ["skills", "list", "shop", "jin"])
        assert result.exit_code == 1
        assert "Score file not found" in result.output


class TestOverlay:
    def test_set_show_clear(self, runner):
        result = runner.invoke(cli, [
            "overlay", "set", "shop", "jin",
            "--model", "opus", "--expertise-append", "Tailwind,Radix", "--append", "THE END",
        ])
        assert result.exit_code == 0, result.output
        assert "modelOverride, expertiseAppend, templatePatches" in result.output

        result = runner.invoke(cli, ["overlay", "show", "shop"])
        data = json.loads(result.output)
        assert data["agents"]["jin"]["expertiseAppend"] == ["Tailwind", "Radix"]

        result = runner.invoke(cli, ["overlay", "clear", "shop", "jin"])
        assert result.exit_code == 0

    def test_show_missing(self, runner):
        result = runner.invoke(cli, ["overlay", "show", "shop"])
        assert "No overlay for shop" in result.output

    def test_reset_missing(self, runner):
        result = runner.invoke(cli, ["overlay", "reset", "shop"])
        assert result.exit_code == 1

    def test_bad_model(self, runner):
        result = runner.invoke(cli, ["overlay", "set", "shop", "jin", "--model", "gpt-4"])
        assert result.exit_code == 2


class TestTemplate:
    def test_list_json(self, runner):
        result = runner.invoke(cli, ["template", "list", "--json"])
        assert [t["filename"] for t in json.loads(result.output)] == ["boss.md", "jin.md", "mia.md", "rex.md"]

    def test_show(self, runner):
        result = runner.invoke(cli, ["template", "show", "jin"])
        assert result.output.startswith("# {{AGENT_NAME}}")

    def test_show_traversal(self, runner):
        result = runner.invoke(cli, ["template", "show", "../registry"])
        assert result.exit_code == 1
        assert "Invalid template name" in result.output


class TestMigrate:
    def test_dry_run(self, runner, hub):
        result = runner.invoke(cli, ["migrate", "--dry-run"])
        assert result.exit_code == 0
        assert "dry run" in result.output
        assert "rex: additionalContext (registry)" in result.output
        assert not (hub.hub_dir / "overlays" / "shop.json").exists()

    def test_json(self, runner):
        result = runner.invoke(cli, ["migrate", "--json"])
        data = json.loads(result.output)
        assert data["totalMigrated"] == 1
        assert data["dryRun"] is False


class TestSettings:
    @pytest.fixture(autouse=True)
    def isolated_settings(self, tmp_path, monkeypatch):
        import agenthub.settings as sm
        monkeypatch.setattr(sm, "SETTINGS_FILE", tmp_path / "settings.json")
        for attr in sm._SETTING_MAP.values():
            monkeypatch.setattr(cfg, attr, getattr(cfg, attr))

    def test_show(self, runner):
        result = runner.invoke(cli, ["settings", "show"])
        assert result.exit_code == 0
        assert json.loads(result.output)["generation"]["manager_command"] == "manager"

    def test_set(self, runner):
        result = runner.invoke(cli, ["settings", "set", "scoring.initial_score", "750"])
        assert result.exit_code == 0
        assert "scoring.initial_score = 750" in result.output
        assert cfg.INITIAL_SCORE == 750

    def test_set_bad_key(self, runner):
        result = runner.invoke(cli, ["settings", "set", "initial_score", "750"])
        assert result.exit_code == 1
