"""Tests for agent command-file generation."""

import json

import pytest

from agenthub.engines.generator import BatchReport, legacy_customization
from agenthub.errors import AgentNotFoundError, ProjectNotFoundError
from agenthub.models.registry import LegacyCustomization, ProjectConfig
from agenthub.types import GenerationStatus


def _commands(hub, project="shop"):
    return hub.projects_dir / project / ".claude" / "commands"


def _write_overlay(hub, project, agents=None, global_context=None):
    data = {
        "version": "1.0.0",
        "project": project,
        "agents": agents or {},
        "globalOverrides": {"additionalContext": global_context} if global_context else {},
    }
    (hub.hub_dir / "overlays" / f"{project}.json").write_text(json.dumps(data))


class TestGenerateAgent:
    def test_writes_command_file(self, hub):
        result = hub.generate_agent("shop", "jin")
        assert result.status == GenerationStatus.GENERATED
        path = _commands(hub) / "frontend.md"
        assert result.output_path == path
        text = path.read_text()
        assert text.startswith("# jin - Frontend developer")
        assert "Project: shop (Next.js, Supabase)" in text
        assert "Expertise: CSS, React" in text

    def test_footer_for_regular_agents(self, hub):
        hub.generate_agent("shop", "jin")
        text = (_commands(hub) / "frontend.md").read_text()
        assert "agents.jin.developmentMemory" in text
        assert (hub.projects_dir / "shop" / ".claude" / "agent-scores.json").as_posix() in text

    def test_no_footer_for_manager(self, hub):
        hub.generate_agent("shop", "boss")
        text = (_commands(hub) / "manager.md").read_text()
        assert "developmentMemory" not in text
        assert "jin (Frontend developer) - /project:frontend" in text
        assert "**boss**" not in text

    def test_registry_customization_needs_migration(self, hub):
        hub.generate_agent("shop", "rex")
        assert "Owns the payment flow" not in (_commands(hub) / "backend.md").read_text()

        hub.migrate_overlays()
        hub.generate_agent("shop", "rex")
        assert "Owns the payment flow" in (_commands(hub) / "backend.md").read_text()

    def test_overlay_applied(self, hub):
        _write_overlay(hub, "shop", {
            "jin": {
                "roleOverride": "UI lead",
                "modelOverride": "opus",
                "expertiseAppend": ["Tailwind"],
                "templatePatches": {"prepend": "READ FIRST", "append": "THE END"},
            },
        }, global_context="Launch is on Friday")
        result = hub.generate_agent("shop", "jin")
        text = (_commands(hub) / "frontend.md").read_text()
        assert text.startswith("READ FIRST\n\n# jin - UI lead")
        assert "Model: opus" in text
        assert "Expertise: CSS, React, Tailwind" in text
        assert "Launch is on Friday" in text
        assert "THE END" in text
        assert result.overlay_fields == ["roleOverride", "modelOverride", "expertiseAppend", "templatePatches"]

    def test_config_customization_applied(self, hub):
        project = hub.get_project("shop")
        hub.projects.save_config("shop", project, ProjectConfig(
            project="shop",
            customizations={"rex": {"additionalContext": "Owns search"}},
        ))
        hub.generate_agent("shop", "rex")
        text = (_commands(hub) / "backend.md").read_text()
        assert "Owns search" in text

    def test_malformed_overlay_ignored(self, hub):
        (hub.hub_dir / "overlays" / "shop.json").write_text("{broken")
        result = hub.generate_agent("shop", "jin")
        assert result.status == GenerationStatus.GENERATED
        assert result.overlay_fields == []
        assert (_commands(hub) / "frontend.md").read_text().startswith("# jin - Frontend developer")

    def test_inactive_agent_skipped(self, hub):
        result = hub.generate_agent("shop", "mia")
        assert result.status == GenerationStatus.SKIPPED
        assert not (_commands(hub) / "qa.md").exists()

    def test_unknown_project(self, hub):
        with pytest.raises(ProjectNotFoundError):
            hub.generate_agent("nope", "jin")

    def test_unknown_agent(self, hub):
        with pytest.raises(AgentNotFoundError):
            hub.generate_agent("shop", "ghost")


class TestBatchGeneration:
    def test_generate_project(self, hub):
        report = hub.generate_project("shop")
        assert report.ok
        assert report.succeeded == ["shop/boss", "shop/jin", "shop/rex"]
        assert sorted(p.name for p in _commands(hub).iterdir()) == ["backend.md", "frontend.md", "manager.md"]

    def test_generate_all(self, hub):
        report = hub.generate_all()
        assert len(report.succeeded) == 4
        assert (_commands(hub, "blog") / "frontend.md").exists()

    def test_failure_does_not_stop_batch(self, hub):
        (hub.hub_dir / "templates" / "jin.md").unlink()
        report = hub.generate_project("shop")
        assert report.succeeded == ["shop/boss", "shop/rex"]
        assert len(report.failed) == 1
        assert report.failed[0]["target"] == "shop/jin"
        assert "jin.md" in report.failed[0]["error"]
        assert not report.ok

    def test_unreadable_config_does_not_stop_batch(self, hub):
        config_path = hub.projects_dir / "blog" / ".claude" / "agent-config.json"
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_bytes(b'{"project": "blog", "techStack": ["\xff\xfe"]}')

        report = hub.generate_all()
        assert report.succeeded == ["shop/boss", "shop/jin", "shop/rex"]
        assert [f["target"] for f in report.failed] == ["blog/jin"]
        assert "agent-config.json" in report.failed[0]["error"]

        report = hub.generator.regenerate_agent("jin")
        assert report.succeeded == ["shop"]
        assert [f["target"] for f in report.failed] == ["blog"]

    def test_regenerate_agent_across_projects(self, hub):
        report = hub.generator.regenerate_agent("jin")
        assert report.succeeded == ["shop", "blog"]


class TestBatchReport:
    def test_merge(self):
        a = BatchReport(succeeded=["x"])
        b = BatchReport(skipped=["y"])
        b.record_failure("z", ValueError("boom"))
        a.merge(b)
        assert a.to_dict() == {
            "succeeded": ["x"],
            "skipped": ["y"],
            "failed": [{"target": "z", "error": "boom"}],
        }


class TestLegacyCustomization:
    def test_reads_project_config(self):
        config = ProjectConfig(project="shop", customizations={"jin": {"expertise": ["Vue"]}})
        assert legacy_customization(config, "jin") == LegacyCustomization(expertise=["Vue"])

    def test_registry_inline_ignored(self):
        config = ProjectConfig(project="shop")
        assert legacy_customization(config, "rex") is None

    def test_no_config(self):
        assert legacy_customization(None, "jin") is None
