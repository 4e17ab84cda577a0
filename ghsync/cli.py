"""CLI interface for ghsync."""

import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Optional

import click

from .api import GitHubClient
from .config import SyncSettings, config
from .exceptions import GitHubAPIError, GitHubSyncConfigError, GitHubSyncError
from .output import OutputFormatter
from .sync import ExclusionMatcher, FileSystemStorage, SyncEngine, SyncLog, SyncMode

logger = logging.getLogger(__name__)

MODE_CHOICES = [m.value for m in SyncMode] + ["ltr", "rtl", "m"]


def _load_settings(ctx: Any) -> SyncSettings:
    """Load stored settings, with --token / $GHSYNC_TOKEN taking precedence."""
    settings = config.load()
    token = ctx.obj.get("token")
    if token:
        settings = replace(settings, token=token)
    return settings


def _require_client(ctx: Any, settings: SyncSettings) -> GitHubClient:
    """Create an API client or exit when no token is available."""
    out: OutputFormatter = ctx.obj["out"]
    if not settings.token:
        out.error("No GitHub token configured. Run 'ghsync init' first.")
        ctx.exit(1)
    return GitHubClient(token=settings.token)


def _require_repo(ctx: Any, settings: SyncSettings) -> str:
    out: OutputFormatter = ctx.obj["out"]
    if not settings.repo:
        out.error("No repository selected. Run 'ghsync use OWNER/NAME' first.")
        ctx.exit(1)
    return settings.repo


@click.group()
@click.option("--token", "-t", envvar="GHSYNC_TOKEN", help="GitHub access token")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(package_name="ghsync")
@click.pass_context
def main(
    ctx: Any,
    token: Optional[str],
    quiet: bool,
    json: bool,
    verbose: bool,
) -> None:
    """ghsync - Sync a local folder with a GitHub repository."""
    ctx.ensure_object(dict)
    ctx.obj["token"] = token
    ctx.obj["json"] = json
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("ghsync").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


@main.command()
@click.option(
    "--token",
    "-t",
    "new_token",
    prompt="Enter your GitHub access token",
    hide_input=True,
    help="GitHub access token",
)
@click.pass_context
def init(ctx: Any, new_token: str) -> None:
    """Validate a GitHub token, store it and lock it.

    A locked token can only be replaced after 'ghsync reset'.
    """
    out: OutputFormatter = ctx.obj["out"]

    try:
        if config.load().is_token_locked:
            out.error("Token is locked. Run 'ghsync reset' to change it.")
            ctx.exit(1)

        out.info("Validating token...")
        client = GitHubClient(token=new_token)
        try:
            user = client.get_authenticated_user()
        finally:
            client.close()

        login = user.get("login") if isinstance(user, dict) else None
        if not login:
            out.error("Token validation failed: no user returned")
            ctx.exit(1)

        config.lock_token(new_token)
        out.success(f"✓ Token is valid (user: {login})")
        out.print_summary(
            "Initialization Complete",
            [
                ("Status", "✓ Token saved and locked"),
                ("Config file", str(config.get_config_path())),
                ("Next step", "Run 'ghsync repos' and 'ghsync use OWNER/NAME'"),
            ],
        )
    except GitHubAPIError as e:
        out.error(f"Token validation failed: {e}")
        ctx.exit(1)
    except GitHubSyncConfigError as e:
        out.error(str(e))
        ctx.exit(1)


@main.command()
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_context
def reset(ctx: Any, yes: bool) -> None:
    """Delete the stored token and restore default settings."""
    out: OutputFormatter = ctx.obj["out"]
    if not yes and not click.confirm("Reset all ghsync settings?", default=False):
        out.warning("Reset cancelled.")
        return
    config.reset()
    out.success("Configuration reset")


@main.command()
@click.pass_context
def status(ctx: Any) -> None:
    """Show the current configuration."""
    out: OutputFormatter = ctx.obj["out"]
    try:
        settings = _load_settings(ctx)
    except GitHubSyncConfigError as e:
        out.error(str(e))
        ctx.exit(1)
        return

    if settings.is_token_locked:
        token_display = "******** (locked)"
    elif settings.token:
        token_display = "set"
    else:
        token_display = "not set"

    out.print_summary(
        "ghsync status",
        [
            ("Token", token_display),
            ("Repository", settings.repo or "not set"),
            ("Branch", settings.branch),
            ("Sync interval", f"{settings.sync_interval}s"),
            ("Idle sync", f"{settings.auto_sync_after_edit}s"),
            ("Exclusion rules", str(len(settings.excluded_rules))),
            ("Config file", str(config.get_config_path())),
        ],
    )


@main.command()
@click.pass_context
def repos(ctx: Any) -> None:
    """List repositories the token can access."""
    out: OutputFormatter = ctx.obj["out"]
    settings = _load_settings(ctx)
    client = _require_client(ctx, settings)
    try:
        repositories = client.list_repositories()
    except GitHubAPIError as e:
        out.error(f"Failed to list repositories: {e}")
        ctx.exit(1)
        return
    finally:
        client.close()

    rows = [
        [
            r.get("full_name", ""),
            "private" if r.get("private") else "public",
            r.get("default_branch", ""),
        ]
        for r in repositories
    ]
    out.print_table(["Repository", "Visibility", "Default branch"], rows)


@main.command()
@click.argument("repo")
@click.option("--branch", "-b", help="Branch to sync (default: keep current)")
@click.pass_context
def use(ctx: Any, repo: str, branch: Optional[str]) -> None:
    """Select the repository to sync with (OWNER/NAME)."""
    out: OutputFormatter = ctx.obj["out"]
    changes: dict[str, Any] = {"repo": repo.strip().strip("/")}
    if branch:
        changes["branch"] = branch
    try:
        settings = config.update(**changes)
    except GitHubSyncConfigError as e:
        out.error(str(e))
        ctx.exit(1)
        return
    out.success(f"Using {settings.repo}@{settings.branch}")


@main.command()
@click.pass_context
def branches(ctx: Any) -> None:
    """List branches of the selected repository."""
    out: OutputFormatter = ctx.obj["out"]
    settings = _load_settings(ctx)
    repo = _require_repo(ctx, settings)
    client = _require_client(ctx, settings)
    try:
        branch_list = client.list_branches(repo)
    except GitHubAPIError as e:
        out.error(f"Failed to list branches: {e}")
        ctx.exit(1)
        return
    finally:
        client.close()

    rows = [
        [b.get("name", ""), "*" if b.get("name") == settings.branch else ""]
        for b in branch_list
    ]
    out.print_table(["Branch", "Selected"], rows)


@main.command()
@click.option("--branch", "-b", help="Branch to sync with")
@click.option(
    "--interval", type=int, help="Fixed-interval sync period in seconds (0 = off)"
)
@click.option(
    "--idle", type=int, help="Idle-after-edit sync period in seconds (0 = off)"
)
@click.pass_context
def configure(
    ctx: Any, branch: Optional[str], interval: Optional[int], idle: Optional[int]
) -> None:
    """Change branch and sync timing settings."""
    out: OutputFormatter = ctx.obj["out"]
    changes: dict[str, Any] = {}
    if branch is not None:
        changes["branch"] = branch
    if interval is not None:
        changes["sync_interval"] = interval
    if idle is not None:
        changes["auto_sync_after_edit"] = idle

    if not changes:
        out.warning("Nothing to change. See 'ghsync configure --help'.")
        return

    try:
        config.update(**changes)
    except GitHubSyncConfigError as e:
        out.error(str(e))
        ctx.exit(1)
        return
    out.success("Settings updated")


@main.group()
def exclude() -> None:
    """Manage exclusion rules (wildcard '*' supported)."""


@exclude.command("list")
@click.pass_context
def exclude_list(ctx: Any) -> None:
    """List exclusion rules."""
    out: OutputFormatter = ctx.obj["out"]
    settings = config.load()
    if ctx.obj["json"]:
        out.print_json(settings.excluded_rules)
        return
    if not settings.excluded_rules:
        out.info("No exclusion rules")
        return
    for rule in settings.excluded_rules:
        out.info(rule)


@exclude.command("add")
@click.argument("rule")
@click.pass_context
def exclude_add(ctx: Any, rule: str) -> None:
    """Add an exclusion rule, e.g. '.obsidian/plugins/*'."""
    out: OutputFormatter = ctx.obj["out"]
    try:
        config.add_exclusion_rule(rule)
    except GitHubSyncConfigError as e:
        out.error(str(e))
        ctx.exit(1)
        return
    out.success(f"Added exclusion rule: {rule}")


@exclude.command("remove")
@click.argument("rule")
@click.pass_context
def exclude_remove(ctx: Any, rule: str) -> None:
    """Remove an exclusion rule (built-in defaults included)."""
    out: OutputFormatter = ctx.obj["out"]
    try:
        config.remove_exclusion_rule(rule)
    except GitHubSyncConfigError as e:
        out.error(str(e))
        ctx.exit(1)
        return
    out.success(f"Removed exclusion rule: {rule}")


@exclude.command("check")
@click.argument("paths", nargs=-1, required=True)
@click.pass_context
def exclude_check(ctx: Any, paths: tuple[str, ...]) -> None:
    """Show whether paths would be excluded from sync."""
    out: OutputFormatter = ctx.obj["out"]
    matcher = ExclusionMatcher(config.load().excluded_rules)
    results = {path: matcher.is_excluded(path) for path in paths}
    if ctx.obj["json"]:
        out.print_json(results)
        return
    for path, excluded in results.items():
        out.info(f"{path}: {'excluded' if excluded else 'included'}")


@main.command()
@click.argument("mode", type=click.Choice(MODE_CHOICES, case_sensitive=False))
@click.argument(
    "path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
)
@click.option(
    "--dry-run", is_flag=True, help="Show what would be done without transferring"
)
@click.pass_context
def sync(ctx: Any, mode: str, path: Path, dry_run: bool) -> None:
    """Sync PATH (default: current directory) with the selected repository.

    Sync Modes:
      - local_to_remote (ltr): make the repository mirror local, incl. deletes
      - remote_to_local (rtl): download every remote file, overwriting local
      - merge (m): only copy files missing on either side

    Examples:
        ghsync sync merge ./vault
        ghsync sync ltr . --dry-run
    """
    out: OutputFormatter = ctx.obj["out"]

    try:
        settings = _load_settings(ctx)
    except GitHubSyncConfigError as e:
        out.error(str(e))
        ctx.exit(1)
        return

    if not settings.is_configured:
        out.error(
            "Token and repository must be configured. "
            "Run 'ghsync init' and 'ghsync use OWNER/NAME'."
        )
        ctx.exit(1)

    sync_mode = SyncMode.from_string(mode)
    log = SyncLog(settings.logs)
    client = GitHubClient(token=settings.token)
    engine = SyncEngine(client, FileSystemStorage(path), output=out, log=log)

    failed = False
    try:
        result = engine.sync(sync_mode, settings, dry_run=dry_run)
    except GitHubSyncError as e:
        out.error(f"Sync failed: {e}")
        failed = True
    finally:
        client.close()
        config.save_logs(log.entries)

    if failed:
        ctx.exit(1)
        return

    if ctx.obj["json"]:
        out.print_json(result.to_dict())


@main.command("log")
@click.option("--clear", is_flag=True, help="Clear the sync log")
@click.pass_context
def show_log(ctx: Any, clear: bool) -> None:
    """Show the most recent sync log entries (newest first)."""
    out: OutputFormatter = ctx.obj["out"]
    if clear:
        config.clear_logs()
        out.success("Sync log cleared")
        return

    entries = config.load().logs
    if ctx.obj["json"]:
        out.print_json(entries)
        return
    if not entries:
        out.info("Sync log is empty")
        return
    for entry in entries:
        out.print(entry)


if __name__ == "__main__":
    main()
