# crm_cli/activity/commands.py
import typer

from crm_cli.core.api import api_get_activity, api_verify_activity
from crm_cli.core.context import load_site_context, open_wordpress_api
from crm_cli.core.errors import CRMClientError
from crm_cli.core.session import load_token

app = typer.Typer(help="Activity logs of the current site and of the backend.")


def _require_token() -> str:
    token = load_token()
    if not token:
        typer.echo("No active session. Please login first.")
        raise typer.Exit(code=1)
    return token


@app.command("site")
def site_activity(page: int = typer.Option(1, "--page", min=1, help="Page of 50 entries, newest first")):
    """
    Show the crm/v1 activity log of the current WordPress site.
    """
    context = load_site_context()
    try:
        with open_wordpress_api(context) as api:
            logs = api.get_activity_logs(page)
    except CRMClientError as e:
        typer.echo(str(e))
        raise typer.Exit(code=1)

    if not logs:
        typer.echo("No activity found.")
        return
    for entry in logs:
        typer.echo(f"{entry.get('timestamp', '')}  {str(entry.get('username') or entry.get('user_id') or '-')[:16]:16}  "
                   f"{entry.get('action', '')}: {entry.get('details', '')}")


@app.command("server")
def server_activity(limit: int = typer.Option(50, "--limit", min=1, help="Number of entries")):
    """
    Show the backend activity log (super admin only).
    """
    token = _require_token()
    entries = api_get_activity(token, limit)
    if entries is None:
        typer.echo("Failed to fetch activity (API error or session invalid).")
        raise typer.Exit(code=1)

    for entry in entries:
        typer.echo(f"{entry.get('timestamp')}  actor {entry.get('actor_id')}  {entry.get('action')}  {entry.get('details') or ''}")


@app.command("verify")
def verify_server_activity():
    """
    Check that the backend activity log has not been tampered with.
    """
    token = _require_token()
    valid = api_verify_activity(token)
    if valid is None:
        typer.echo("Failed to verify activity (API error or session invalid).")
        raise typer.Exit(code=1)
    if not valid:
        typer.echo("Activity log chain is BROKEN.")
        raise typer.Exit(code=1)
    typer.echo("Activity log chain is intact.")
