"""AgentHub CLI.

Click-based command line interface for AgentHub.

Usage:
    agenthub stats
    agenthub project add my-app --stack "Next.js,Supabase"
    agenthub project clone my-app my-app-v2 --customize "jin:Focus on mobile"
    agenthub generate project my-app
    agenthub generate all
    agenthub score feedback my-app jin success "Shipped the login page"
    agenthub score penalty my-app jin "process:Skipped code review"
    agenthub skills add my-app jin react-native --proficiency 70
    agenthub overlay set my-app jin --model opus --context "Owns the API"
    agenthub migrate --dry-run
"""

import json
import logging
import sys
from typing import Optional

import click

from agenthub import settings as settings_mod
from agenthub.engines.generator import BatchReport
from agenthub.errors import AgentHubError, InvalidInputError
from agenthub.hub import AgentHub, split_csv
from agenthub.types import FeedbackType, ModelId

_hub: Optional[AgentHub] = None


def get_hub() -> AgentHub:
    global _hub
    if _hub is None:
        settings_mod.load_on_startup()
        _hub = AgentHub()
        _hub.initialize()
    return _hub


def _json_out(data):
    """Print data as JSON."""
    click.echo(json.dumps(data, indent=2, default=str, ensure_ascii=False))


def _report_out(report: BatchReport, title: str, as_json: bool) -> None:
    if as_json:
        _json_out(report.to_dict())
    else:
        click.echo(title)
        click.echo("=" * 40)
        click.echo(f"  Generated: {len(report.succeeded)}")
        if report.skipped:
            click.echo(f"  Skipped:   {len(report.skipped)}")
        if report.failed:
            click.echo(f"  Failed:    {len(report.failed)}")
            for failure in report.failed:
                click.echo(f"    - {failure['target']}: {failure['error']}")
    if not report.ok:
        sys.exit(1)


# =============================================================================
# Root group
# =============================================================================

class HubGroup(click.Group):
    """Root group: turns AgentHubError into a one-line message and exit code 1."""

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except AgentHubError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)


@click.group(cls=HubGroup)
@click.option("--verbose", "-v", is_flag=True, help="Log progress to stderr")
def cli(verbose):
    """AgentHub - agent registry, command-file generator and score ledger."""
    if verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            stream=sys.stderr,
        )


# =============================================================================
# Stats
# =============================================================================

@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def stats(as_json):
    """Show hub statistics."""
    s = get_hub().stats()

    if as_json:
        _json_out(s)
        return

    click.echo("AgentHub Statistics")
    click.echo("=" * 40)
    click.echo(f"  Projects:    {s['projects']}")
    click.echo(f"  Agents:      {s['agents']}")
    click.echo(f"  Squads:      {s['squads']}")
    click.echo(f"  Templates:   {s['templates']}")
    click.echo(f"  Overlays:    {s['overlays']}")


# =============================================================================
# Projects
# =============================================================================

@cli.group()
def project():
    """Project registration commands."""
    pass


@project.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def project_list(as_json):
    """List registered projects."""
    projects = get_hub().list_projects()

    if as_json:
        _json_out({pid: p.to_json_dict() for pid, p in projects.items()})
        return

    if not projects:
        click.echo("No projects registered.")
        return
    for pid, p in projects.items():
        click.echo(f"  {pid:20s} {len(p.active_agents):2d} agents  [{', '.join(p.tech_stack)}]")


@project.command("add")
@click.argument("name")
@click.option("--stack", required=True, help="Comma-separated tech stack")
@click.option("--path", "path", help="Directory under the projects dir (default: NAME)")
@click.option("--agents", help="Comma-separated agent ids (default: all)")
@click.option("--description", help="Project description")
@click.option("--no-generate", is_flag=True, help="Skip command-file generation")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def project_add(name, stack, path, agents, description, no_generate, as_json):
    """Register a new project and generate its agents."""
    report = get_hub().register_project(
        name,
        stack,
        path=path,
        agents=split_csv(agents) or None,
        description=description,
        generate=not no_generate,
    )
    if not as_json:
        click.echo(f"Project registered: {name}")
    if not no_generate:
        _report_out(report, f"\nGeneration for {name}", as_json)
    elif as_json:
        _json_out({"project": name, "registered": True})


@project.command("clone")
@click.argument("source")
@click.argument("target")
@click.option("--stack", help="Comma-separated tech stack (default: the source's)")
@click.option("--customize", help='Per-agent context, e.g. "jin:Focus on mobile,dev:Owns the API"')
@click.option("--path", "path", help="Directory under the projects dir (default: TARGET)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def project_clone(source, target, stack, customize, path, as_json):
    """Create a project with the same agents as SOURCE."""
    report = get_hub().clone_project(source, target, stack=stack, customize=customize, path=path)
    if not as_json:
        click.echo(f"Project cloned: {source} -> {target}")
    _report_out(report, f"\nGeneration for {target}", as_json)


# =============================================================================
# Generation
# =============================================================================

@cli.group()
def generate():
    """Command-file generation commands."""
    pass


@generate.command("agent")
@click.argument("project_id")
@click.argument("agent_id")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def generate_agent(project_id, agent_id, as_json):
    """Generate one agent's command file."""
    result = get_hub().generate_agent(project_id, agent_id)

    if as_json:
        _json_out(result.to_dict())
        return

    if result.output_path is None:
        click.echo(f"Skipped: {agent_id} is not active in {project_id}")
        return
    click.echo(f"Generated: {result.output_path}")
    click.echo(f"  Role:    {result.role}")
    if result.overlay_fields:
        click.echo(f"  Overlay: {', '.join(result.overlay_fields)}")


@generate.command("project")
@click.argument("project_id")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def generate_project(project_id, as_json):
    """Generate every active agent of a project."""
    report = get_hub().generate_project(project_id)
    _report_out(report, f"Generation for {project_id}", as_json)


@generate.command("all")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def generate_all(as_json):
    """Generate every active agent of every project."""
    report = get_hub().generate_all()
    _report_out(report, "Generation for all projects", as_json)


# =============================================================================
# Scores
# =============================================================================

@cli.group()
def score():
    """Agent score commands."""
    pass


@score.command("init")
@click.argument("project_id")
def score_init(project_id):
    """Create a fresh score file for a project."""
    scores = get_hub().init_scores(project_id)
    click.echo(f"Scores initialized for {project_id} ({len(scores.agents)} agents)")


@score.command("show")
@click.argument("project_id")
@click.argument("agent_id", required=False)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def score_show(project_id, agent_id, as_json):
    """Show scores for a project, or one agent in detail."""
    scores = get_hub().get_scores(project_id)

    if agent_id:
        record = scores.agents.get(agent_id)
        if record is None:
            raise InvalidInputError(f"No score record for {agent_id} in {project_id}")
        if as_json:
            _json_out(record.to_json_dict())
            return
        click.echo(f"{agent_id} @ {project_id}")
        click.echo("=" * 40)
        click.echo(f"  Score:     {record.total_score} ({record.rank})")
        click.echo(f"  Tasks:     {record.metrics.tasks_completed} ({record.metrics.success_rate}% success)")
        click.echo(f"  Warnings:  {record.warnings}")
        click.echo(f"  Penalties: {len(record.penalties)}")
        for mission in record.active_missions():
            click.echo(
                f"  Mission:   {mission.category} L{mission.level} "
                f"{mission.completed_successes}/{mission.required_successes} (due {mission.deadline})"
            )
        return

    if as_json:
        _json_out(scores.to_json_dict())
        return

    click.echo(f"Scores for {project_id}")
    click.echo("=" * 40)
    ranked = sorted(scores.agents.items(), key=lambda item: item[1].total_score, reverse=True)
    for aid, record in ranked:
        click.echo(f"  {aid:15s} {record.total_score:5d}  {record.rank}")


@score.command("feedback")
@click.argument("project_id")
@click.argument("agent_id")
@click.argument("feedback_type", type=click.Choice([t.value for t in FeedbackType]))
@click.argument("description", required=False)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def score_feedback(project_id, agent_id, feedback_type, description, as_json):
    """Record a task outcome for an agent."""
    record, completed = get_hub().apply_feedback(project_id, agent_id, feedback_type, description)

    if as_json:
        _json_out({
            "agent": agent_id,
            "totalScore": record.total_score,
            "rank": record.rank,
            "completedMissions": [m.to_json_dict() for m in completed],
        })
        return

    change = record.recent_tasks[0].score_change
    click.echo(f"{agent_id}: {change:+d} -> {record.total_score} ({record.rank})")
    for mission in completed:
        click.echo(f"  Mission complete: {mission.category} (+{mission.recovery_points})")


@score.command("penalty")
@click.argument("project_id")
@click.argument("agent_id")
@click.argument("penalty")
@click.option("--description", help="Recorded instead of the penalty string")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def score_penalty(project_id, agent_id, penalty, description, as_json):
    """Apply a penalty given as CATEGORY[:DESCRIPTION]."""
    record, entry = get_hub().apply_penalty(project_id, agent_id, penalty, description)

    if as_json:
        _json_out({
            "agent": agent_id,
            "totalScore": record.total_score,
            "rank": record.rank,
            "penalty": entry.to_json_dict(),
        })
        return

    click.echo(
        f"{agent_id}: {entry.category_name} level {entry.level} "
        f"(x{entry.multiplier}) {entry.score_change:+d} -> {record.total_score} ({record.rank})"
    )
    if entry.level >= 2:
        click.echo("  Improvement mission assigned")
    if entry.level >= 4:
        click.echo("  Agent flagged for replacement review", err=True)


# =============================================================================
# Skills
# =============================================================================

@cli.group()
def skills():
    """Agent skill commands."""
    pass


@skills.command("add")
@click.argument("project_id")
@click.argument("agent_id")
@click.argument("name")
@click.option("--proficiency", type=int, default=50, show_default=True, help="0-100")
@click.option("--notes", default="", help="Free-form notes")
@click.option("--source", default="external", show_default=True)
def skills_add(project_id, agent_id, name, proficiency, notes, source):
    """Add or update a skill."""
    skill, created = get_hub().add_skill(project_id, agent_id, name, proficiency, notes, source)
    verb = "Added" if created else "Updated"
    click.echo(f"{verb} skill {skill.name} ({skill.proficiency}) for {agent_id}")


@skills.command("list")
@click.argument("project_id")
@click.argument("agent_id")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def skills_list(project_id, agent_id, as_json):
    """List an agent's skills."""
    items = get_hub().list_skills(project_id, agent_id)

    if as_json:
        _json_out([s.to_json_dict() for s in items])
        return

    if not items:
        click.echo(f"No skills recorded for {agent_id}.")
        return
    for s in items:
        click.echo(f"  {s.name:25s} {s.proficiency:3d}  ({s.source}, {s.last_updated})")


@skills.command("remove")
@click.argument("project_id")
@click.argument("agent_id")
@click.argument("name")
def skills_remove(project_id, agent_id, name):
    """Remove a skill."""
    get_hub().remove_skill(project_id, agent_id, name)
    click.echo(f"Removed skill {name} from {agent_id}")


# =============================================================================
# Overlays
# =============================================================================

@cli.group()
def overlay():
    """Per-project overlay commands."""
    pass


@overlay.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def overlay_list(as_json):
    """List projects that have an overlay."""
    overlays = get_hub().list_overlays()

    if as_json:
        _json_out({pid: o.to_json_dict() for pid, o in overlays.items()})
        return

    for pid, o in overlays.items():
        click.echo(f"  {pid:20s} {len(o.agents)} overrides  (updated {o.last_updated})")


@overlay.command("show")
@click.argument("project_id")
def overlay_show(project_id):
    """Print a project's overlay as JSON."""
    found = get_hub().get_overlay(project_id)
    if found is None:
        click.echo(f"No overlay for {project_id}.")
        return
    _json_out(found.to_json_dict())


@overlay.command("set")
@click.argument("project_id")
@click.argument("agent_id")
@click.option("--role", help="Replaces the agent's role")
@click.option("--model", type=click.Choice([m.value for m in ModelId]), help="Replaces the recommended model")
@click.option("--expertise", help="Comma-separated, replaces the expertise list")
@click.option("--expertise-append", help="Comma-separated, appended to the expertise list")
@click.option("--context", help="Additional context for this agent")
@click.option("--prepend", help="Text placed before the rendered template")
@click.option("--append", help="Text placed after the rendered template")
@click.option("--global-context", help="Context for every agent of the project")
def overlay_set(project_id, agent_id, role, model, expertise, expertise_append, context, prepend, append, global_context):
    """Set an agent's override. Omitted options are left unset."""
    fields = {
        "roleOverride": role,
        "modelOverride": model,
        "expertiseOverride": split_csv(expertise) or None,
        "expertiseAppend": split_csv(expertise_append) or None,
        "additionalContext": context,
    }
    if prepend or append:
        fields["templatePatches"] = {"prepend": prepend, "append": append}
    saved = get_hub().set_agent_override(
        project_id,
        agent_id,
        {k: v for k, v in fields.items() if v is not None},
        global_context=global_context,
    )
    override = saved.agents.get(agent_id)
    if override is None:
        click.echo(f"No override left for {agent_id}")
    else:
        click.echo(f"Override saved for {agent_id}: {', '.join(override.field_names())}")


@overlay.command("clear")
@click.argument("project_id")
@click.argument("agent_id")
def overlay_clear(project_id, agent_id):
    """Remove one agent's override."""
    get_hub().clear_agent_override(project_id, agent_id)
    click.echo(f"Override removed for {agent_id}")


@overlay.command("reset")
@click.argument("project_id")
def overlay_reset(project_id):
    """Reset a project's overlay to the empty document."""
    get_hub().reset_overlay(project_id)
    click.echo(f"Overlay reset: {project_id}")


# =============================================================================
# Templates
# =============================================================================

@cli.group()
def template():
    """Agent template commands."""
    pass


@template.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def template_list(as_json):
    """List agent templates."""
    items = get_hub().list_templates()

    if as_json:
        _json_out(items)
        return

    for t in items:
        click.echo(f"  {t['filename']:25s} {t['size']:7d} bytes")


@template.command("show")
@click.argument("name")
def template_show(name):
    """Print a template."""
    click.echo(get_hub().read_template(name), nl=False)


# =============================================================================
# Migration
# =============================================================================

@cli.command()
@click.option("--dry-run", is_flag=True, help="Report what would change without writing")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def migrate(dry_run, as_json):
    """Convert legacy customizations into overlays."""
    summary = get_hub().migrate_overlays(dry_run=dry_run)

    if as_json:
        _json_out(summary.to_dict())
        return

    title = "Overlay Migration (dry run)" if dry_run else "Overlay Migration"
    click.echo(f"{title} ({summary.duration_seconds:.1f}s)")
    click.echo("=" * 40)
    for report in summary.reports:
        status = "written" if report.written else "unchanged"
        click.echo(f"  {report.project:20s} {report.migrated_count} migrated ({status})")
        for line in report.migrated:
            click.echo(f"    + {line}")
        for line in report.skipped:
            click.echo(f"    = {line} (override exists)")
        for err in report.errors:
            click.echo(f"    ! {err}")
    click.echo(f"\nTotal migrated: {summary.total_migrated}")


# =============================================================================
# Settings
# =============================================================================

@cli.group()
def settings():
    """Runtime settings commands."""
    pass


@settings.command("show")
def settings_show():
    """Print the effective settings."""
    settings_mod.load_on_startup()
    _json_out(settings_mod.get_current_settings())


@settings.command("set")
@click.argument("key")
@click.argument("value")
def settings_set(key, value):
    """Persist one setting, e.g. `settings set scoring.initial_score 750`."""
    section, sep, name = key.partition(".")
    if not sep or not name:
        raise InvalidInputError(f"Setting key must be section.name, got {key!r}")
    settings_mod.load_on_startup()
    applied = settings_mod.apply_settings({section: {name: value}})
    for dotpath, new_value in applied.items():
        click.echo(f"{dotpath} = {new_value}")


@settings.command("reset")
def settings_reset():
    """Delete settings.json."""
    settings_mod.reset_settings()
    click.echo("Settings reset to defaults")


# =============================================================================
# Main entry point
# =============================================================================

def main():
    cli()


if __name__ == "__main__":
    main()
