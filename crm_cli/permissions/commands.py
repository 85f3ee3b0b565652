# crm_cli/permissions/commands.py
import json
from pathlib import Path

import typer
from crm_cli.core.session import load_token
from crm_cli.core.api import api_bulk_update_permissions, api_get_permissions, api_update_permission

app = typer.Typer(help="Role permission matrix.")


@app.command("list")
def list_permissions(
    role: str = typer.Option(None, "--role", help="Only show this role"),
):
    permissions = api_get_permissions()
    if permissions is None:
        typer.echo("Failed to get permissions (API error).")
        raise typer.Exit(code=1)

    if role:
        permissions = [p for p in permissions if p.get("role") == role]

    typer.echo(f"{'Role':14}  {'Feature':16}  R  W")
    typer.echo("-" * 40)
    for perm in permissions:
        r = "x" if perm.get("can_read") else "-"
        w = "x" if perm.get("can_write") else "-"
        typer.echo(f"{perm.get('role', '')[:14]:14}  {perm.get('feature', '')[:16]:16}  {r}  {w}")


@app.command("set")
def set_permission(
    role: str = typer.Argument(..., help="Role"),
    feature: str = typer.Argument(..., help="Feature"),
    read: bool = typer.Option(False, "--read/--no-read", help="Grant read access"),
    write: bool = typer.Option(False, "--write/--no-write", help="Grant write access"),
):
    """
    Update one permission (super admin only).
    """
    token = load_token()
    if not token:
        typer.echo("No active session. Please login first.")
        raise typer.Exit(code=1)

    if api_update_permission(token, role, feature, read, write):
        typer.echo(f"Permission {role}/{feature} updated.")
    else:
        typer.echo("Failed to update permission. Check your session.")
        raise typer.Exit(code=1)


@app.command("bulk")
def bulk_update(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON list of {role, feature, can_read, can_write}"),
):
    """
    Save many permissions at once (super admin only). All or nothing on the backend.
    """
    token = load_token()
    if not token:
        typer.echo("No active session. Please login first.")
        raise typer.Exit(code=1)

    try:
        permissions = json.loads(file.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        typer.echo(f"Could not read {file}: {e}")
        raise typer.Exit(code=1)

    if not isinstance(permissions, list) or not permissions:
        typer.echo("The file must contain a non-empty JSON list.")
        raise typer.Exit(code=1)
    for perm in permissions:
        if not isinstance(perm, dict) or not perm.get("role") or not perm.get("feature"):
            typer.echo("Every entry needs a role and a feature.")
            raise typer.Exit(code=1)

    updated = api_bulk_update_permissions(token, permissions)
    if updated is None:
        typer.echo("Failed to update permissions. Check your session.")
        raise typer.Exit(code=1)
    typer.echo(f"{updated} permission(s) updated.")
