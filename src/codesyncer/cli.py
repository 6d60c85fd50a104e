"""Command-line interface for codesyncer."""

import logging
import signal
from pathlib import Path
from typing import cast

import click
from rich.logging import RichHandler
from rich.markup import escape

from codesyncer import __version__
from codesyncer.config.init import (
    init_project,
    is_first_watch,
    mark_watch_used,
    write_root_guide,
)
from codesyncer.config.loader import (
    get_home_config_path,
    get_local_config_path,
    load_config,
    load_yaml_config,
    save_config,
)
from codesyncer.config.schema import CodeSyncerConfig
from codesyncer.console import console
from codesyncer.errors import SetupMissingError
from codesyncer.templates.upgrade import (
    format_upgrade_summary,
    get_template_vars,
    upgrade_templates,
)
from codesyncer.templates.version import get_outdated_templates
from codesyncer.watch.session_log import SessionLogger, session_log_path
from codesyncer.watch.watcher import DEFAULT_DEBOUNCE_MS, ChangeWatcher
from codesyncer.workspace.scanner import (
    REPO_DIRNAME,
    WorkspaceDiff,
    WorkspaceMode,
    detect_monorepo,
    detect_workspace_mode,
    diff_workspace_repositories,
    has_master_setup,
    has_setup,
    list_workspace_repositories,
)
from codesyncer.workspace.validate import ValidationResult, validate_setup

logger = logging.getLogger(__name__)

WORKSPACE_MODES = ("auto", "single", "multi-repo", "monorepo")
ROOT_GUIDE_FILENAME = "CLAUDE.md"


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def version_callback(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
    """Print version and exit."""
    if not value or ctx.resilient_parsing:
        return
    console.print(f"codesyncer [bold cyan]{__version__}[/bold cyan]")
    ctx.exit()


@click.group(invoke_without_command=True)
@click.option(
    "--version",
    is_flag=True,
    callback=version_callback,
    expose_value=False,
    is_eager=True,
    help="Show version and exit.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """CodeSyncer - keep AI collaboration docs in sync with your code."""
    _setup_logging(verbose)

    if ctx.invoked_subcommand is None:
        console.print("[bold]codesyncer[/bold] - inline decisions, synced to docs")
        console.print("\nRun [cyan]codesyncer --help[/cyan] for available commands.")


@main.command()
@click.option("--name", help="Project name (default: current folder name).")
@click.option("--github-user", help="GitHub username used in generated links.")
@click.option("--tech-stack", help="Tech stack summary, e.g. 'TypeScript, React'.")
@click.option(
    "--mode",
    type=click.Choice(WORKSPACE_MODES),
    default="auto",
    help="Workspace layout (default: detect).",
)
def init(name: str | None, github_user: str | None, tech_stack: str | None, mode: str) -> None:
    """Generate CodeSyncer setup files.

    Single repositories get .claude/ guides. Multi-repo workspaces and
    monorepos additionally get .codesyncer/MASTER_CODESYNCER.md and a
    .claude/ folder in every repository or package. Existing files are kept.
    """
    root = Path.cwd()
    resolved_mode = detect_workspace_mode(root) if mode == "auto" else mode

    variables: dict[str, str] = {}
    if name:
        variables["PROJECT_NAME"] = name
    if github_user:
        variables["GITHUB_USERNAME"] = github_user
    if tech_stack:
        variables["TECH_STACK"] = tech_stack

    if resolved_mode == "monorepo":
        info = detect_monorepo(root)
        if info is not None:
            console.print(f"[dim]Detected {info.display_name} monorepo[/dim]")

    result = init_project(root, variables, cast(WorkspaceMode, resolved_mode))

    console.print(f"\n[bold]CodeSyncer setup ({resolved_mode})[/bold]\n")
    for path in result.created:
        console.print(f"  [green]✓[/green] {path.relative_to(root)}")
    for path in result.skipped:
        console.print(f"  [dim]- {path.relative_to(root)} (exists, kept)[/dim]")
    if resolved_mode != "single":
        console.print(f"\n[dim]{len(result.repositories)} repositories configured[/dim]")
    if not result.created:
        console.print("\nNo changes made.")
    else:
        console.print("\nRun [cyan]codesyncer watch[/cyan] to sync inline tags.")


def _show_watch_welcome() -> None:
    console.print()
    console.print("[cyan]" + "━" * 60 + "[/cyan]")
    console.print("[bold yellow]🎉 Welcome to Watch Mode![/bold yellow]\n")
    console.print("This feature monitors your code changes in real-time and")
    console.print("automatically documents @codesyncer-* tags.\n")
    console.print("[bold]How to use:[/bold]\n")
    console.print("  1. Add tags in your code:")
    console.print('[dim]     // @codesyncer-decision "Use React Query for caching"[/dim]')
    console.print('[dim]     // @codesyncer-rule "Always use TypeScript strict mode"[/dim]\n')
    console.print("  2. Tags are auto-synced to DECISIONS.md on save\n")
    console.print("[cyan]" + "━" * 60 + "[/cyan]")


@main.command()
@click.option("--log", "log_to_file", is_flag=True, help="Also write events to a session log file.")
@click.option(
    "--debounce",
    type=click.IntRange(min=0),
    help="Quiet period in milliseconds before a changed file is processed.",
)
def watch(log_to_file: bool, debounce: int | None) -> None:
    """Watch source files and sync inline tags to DECISIONS.md.

    Runs until interrupted with Ctrl+C. Requires a prior `codesyncer init`.
    """
    root = Path.cwd()
    config = load_config(root)
    if debounce is not None:
        debounce_ms = debounce
    elif config.debounce_ms is not None:
        debounce_ms = config.debounce_ms
    else:
        debounce_ms = DEFAULT_DEBOUNCE_MS
    log_to_file = log_to_file or bool(config.log_to_file)

    if is_first_watch(root):
        _show_watch_welcome()
        mark_watch_used(root)

    log_file = session_log_path(root) if log_to_file and has_setup(root) else None
    session_logger = SessionLogger(root, console, log_file)
    watcher = ChangeWatcher(
        root,
        session_logger=session_logger,
        debounce_ms=debounce_ms,
        extra_excludes=config.extra_excludes or (),
    )

    try:
        watcher.start()
    except SetupMissingError as e:
        session_logger.close()
        console.print(f"\n[red]❌ {e}[/red]\n")
        raise SystemExit(1) from None

    signal.signal(signal.SIGTERM, lambda _signum, _frame: watcher.request_stop())
    try:
        watcher.run_forever()
    finally:
        watcher.stop()


def _print_validation(result: ValidationResult, verbose: bool) -> None:
    if verbose or result.valid:
        for label, value in result.info:
            console.print(f"  [dim]{label}:[/dim] {value}")
        console.print()

    for issue in result.errors:
        console.print(f"  [red]✗ {issue.code}[/red] {escape(issue.message)}")
        if issue.fix:
            console.print(f"    [dim]Fix: {escape(issue.fix)}[/dim]")
    for issue in result.warnings:
        console.print(f"  [yellow]! {issue.code}[/yellow] {escape(issue.message)}")
        if verbose and issue.fix:
            console.print(f"    [dim]Fix: {escape(issue.fix)}[/dim]")

    console.print()
    if result.valid and not result.warnings:
        console.print("[green]✓ Setup is valid.[/green]")
    elif result.valid:
        console.print(f"[yellow]Setup is valid with {len(result.warnings)} warning(s).[/yellow]")
    else:
        console.print(f"[red]Setup has {len(result.errors)} error(s).[/red]")


@main.command()
@click.option("--verbose", "-v", is_flag=True, help="Show details and fixes.")
def validate(verbose: bool) -> None:
    """Check the CodeSyncer setup for missing or unfilled files."""
    console.print("\n[bold cyan]🔍 CodeSyncer - Validate[/bold cyan]\n")
    result = validate_setup(Path.cwd())
    _print_validation(result, verbose)
    if not result.valid:
        raise SystemExit(1)


def _marker_dirs_to_upgrade(root: Path) -> list[Path]:
    """Return every .claude directory this workspace owns."""
    dirs = []
    if (root / REPO_DIRNAME).is_dir():
        dirs.append(root / REPO_DIRNAME)
    if has_master_setup(root):
        for repo in list_workspace_repositories(root):
            if (repo.path / REPO_DIRNAME).is_dir():
                dirs.append(repo.path / REPO_DIRNAME)
    return dirs


@main.command()
@click.option("--dry-run", is_flag=True, help="Show what would change without writing.")
def upgrade(dry_run: bool) -> None:
    """Upgrade generated setup files to the latest templates.

    Files with section markers are merged so your edits outside the marked
    sections survive. Every modified file is backed up first.
    """
    root = Path.cwd()
    if not has_setup(root):
        console.print(f"[red]{SetupMissingError(root)}[/red]")
        raise SystemExit(1)

    marker_dirs = _marker_dirs_to_upgrade(root)
    outdated = [(d, get_outdated_templates(d)) for d in marker_dirs]
    outdated = [(d, statuses) for d, statuses in outdated if statuses]
    root_guide_missing = not (root / ROOT_GUIDE_FILENAME).exists()
    if not outdated and not root_guide_missing:
        console.print(f"[green]✓ All templates are up to date ({__version__}).[/green]")
        return

    if root_guide_missing:
        if dry_run:
            console.print(f"\n{ROOT_GUIDE_FILENAME} would be created at the project root.")
        else:
            variables = get_template_vars(root / REPO_DIRNAME)
            repo_count = len(list_workspace_repositories(root)) if has_master_setup(root) else 1
            variables["REPO_COUNT"] = str(repo_count)
            write_root_guide(root, variables)
            console.print(f"\n[green]✓[/green] Created {ROOT_GUIDE_FILENAME} at the project root.")

    failed = False
    for marker_dir, statuses in outdated:
        console.print(f"\n[bold]{marker_dir.relative_to(root)}[/bold]")
        for status in statuses:
            current = status.current_version or "unversioned"
            console.print(
                f"  {status.file.name}: {current} → [cyan]{status.latest_version}[/cyan]"
            )
        results = upgrade_templates(
            statuses, get_template_vars(marker_dir), dry_run=dry_run, root=root
        )
        console.print(format_upgrade_summary(results), markup=False)
        failed = failed or any(not r.success for r in results)

    if dry_run:
        console.print("\n[dim]Dry run: no files were changed.[/dim]")
    if failed:
        raise SystemExit(1)


@main.command()
def scan() -> None:
    """Show the detected workspace layout and repositories.

    In a workspace with a master doc, also report repositories added or
    removed since it was generated.
    """
    root = Path.cwd()
    mode = detect_workspace_mode(root)
    console.print(f"[bold]Workspace:[/bold] {escape(str(root))}")
    console.print(f"[bold]Mode:[/bold] {mode}")

    info = detect_monorepo(root)
    if info is not None:
        console.print(
            f"[bold]Monorepo:[/bold] {info.display_name} ({escape(str(info.config_file))})"
        )

    repositories = list_workspace_repositories(root)
    if not repositories:
        console.print("\n[dim]No repositories found.[/dim]")
        return

    console.print(f"\n[bold]Repositories ({len(repositories)}):[/bold]")
    for repo in repositories:
        mark = "[green]✓[/green]" if repo.has_setup else "[dim]-[/dim]"
        console.print(
            f"  {mark} {escape(repo.name)} [dim]{escape(repo.relative_path or '')}[/dim]"
        )

    diff = diff_workspace_repositories(root) if has_master_setup(root) else None
    if diff is not None:
        _print_workspace_diff(diff)


def _print_workspace_diff(diff: WorkspaceDiff) -> None:
    if diff.added:
        console.print(f"\n[cyan]+ {len(diff.added)} new repository(ies)[/cyan]")
        for repo in diff.added:
            console.print(f"  [cyan]+ {escape(repo.name)}[/cyan]")
        console.print("[dim]Run codesyncer init to set up the new repositories.[/dim]")
    if diff.removed:
        console.print(f"\n[yellow]- {len(diff.removed)} removed repository(ies)[/yellow]")
        for name in diff.removed:
            console.print(f"  [yellow]- {escape(name)}[/yellow]")
    if not diff.changed:
        with_setup = sum(1 for repo in diff.current if repo.has_setup)
        console.print("\n[green]✓ Everything is up to date[/green]")
        console.print(
            f"[dim]{len(diff.current)} repositories, {with_setup} with setup[/dim]"
        )


@main.command("config")
@click.option(
    "--debounce",
    type=click.IntRange(min=0),
    help="Default quiet period in milliseconds for watch.",
)
@click.option("--log/--no-log", "log_to_file", default=None, help="Default for watch --log.")
@click.option(
    "--exclude",
    "excludes",
    multiple=True,
    help="Directory name watch should ignore (repeatable, replaces the list).",
)
@click.option(
    "--local",
    "-l",
    "local_config",
    is_flag=True,
    help="Write ./.codesyncer/config.yaml instead of ~/.codesyncer/config.yaml.",
)
def config_command(
    debounce: int | None,
    log_to_file: bool | None,
    excludes: tuple[str, ...],
    local_config: bool,
) -> None:
    """Show or change watch settings.

    Without options, prints the effective settings. Given values are merged
    into the global config (~/.codesyncer/config.yaml), or the project one
    with --local; settings not given are kept.
    """
    root = Path.cwd()
    update = CodeSyncerConfig(
        debounce_ms=debounce,
        log_to_file=log_to_file,
        extra_excludes=excludes or None,
    )
    if not update.to_dict():
        console.print("[bold]Effective configuration[/bold]")
        for key, value in load_config(root).to_dict().items():
            console.print(f"  {key}: [cyan]{escape(str(value))}[/cyan]")
        return

    path = get_local_config_path(root) if local_config else get_home_config_path()
    current = CodeSyncerConfig.from_dict(load_yaml_config(path) or {})
    save_config(current.merge(update), path)
    console.print(f"[green]Saved settings to {escape(str(path))}[/green]")
