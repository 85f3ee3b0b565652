# crm_cli/roles/commands.py
import typer
from crm_cli.core.session import load_token
from crm_cli.core.api import api_assign_role, api_delete_assignment, api_get_assignments, api_get_roles
from crm_cli.core.context import load_site_context, open_wordpress_api
from crm_cli.core.errors import CRMClientError

app = typer.Typer(help="Site role assignments.")


@app.command("list")
def list_roles():
    roles = api_get_roles()
    if roles is None:
        typer.echo("Failed to get roles (API error).")
        raise typer.Exit(code=1)
    for role in roles:
        typer.echo(role)


@app.command("assignments")
def list_assignments(
    site_id: str = typer.Option(None, "--site", help="Only this site"),
):
    assignments = api_get_assignments(site_id)
    if assignments is None:
        typer.echo("Failed to get assignments (API error).")
        raise typer.Exit(code=1)
    if not assignments:
        typer.echo("No assignments found.")
        return

    typer.echo(f"{'ID':6}  {'User':10}  {'Site':12}  Role")
    typer.echo("-" * 44)
    for a in assignments:
        typer.echo(f"{str(a.get('id'))[:6]:6}  {str(a.get('wp_user_id'))[:10]:10}  {str(a.get('site_id'))[:12]:12}  {a.get('app_role')}")


@app.command("assign")
def assign(
    wp_user_id: str = typer.Argument(..., help="WordPress user ID"),
    site_id: str = typer.Argument(..., help="Site ID"),
    role: str = typer.Argument(..., help="Role to assign"),
):
    """
    Assign a role to a WordPress user on a site (super admin only).
    """
    token = load_token()
    if not token:
        typer.echo("No active session. Please login first.")
        raise typer.Exit(code=1)

    if api_assign_role(token, wp_user_id, site_id, role):
        typer.echo(f"User {wp_user_id} is now {role} on {site_id}.")
    else:
        typer.echo("Failed to assign role. Check the role name and your session.")
        raise typer.Exit(code=1)


@app.command("unassign")
def unassign(assignment_id: int = typer.Argument(..., help="Assignment ID")):
    token = load_token()
    if not token:
        typer.echo("No active session. Please login first.")
        raise typer.Exit(code=1)

    if api_delete_assignment(token, assignment_id):
        typer.echo(f"Assignment {assignment_id} removed.")
    else:
        typer.echo("Failed to remove assignment.")
        raise typer.Exit(code=1)


@app.command("users")
def list_site_users(
    wp_role: str = typer.Option(None, "--wp-role", help="Only WordPress users with this role"),
):
    """
    WordPress users of the current site with their CRM role on it.
    """
    context = load_site_context()
    try:
        with open_wordpress_api(context) as api:
            users = api.get_users(role=wp_role)
    except CRMClientError as e:
        typer.echo(str(e))
        raise typer.Exit(code=1)

    assignments = api_get_assignments(context.current_site_id) or []
    app_roles = {str(a.get("wp_user_id")): a.get("app_role") for a in assignments}

    if not users:
        typer.echo("No users found.")
        return
    typer.echo(f"{'ID':6}  {'Username':20}  {'WP roles':20}  CRM role")
    typer.echo("-" * 64)
    for user in users:
        user_id = str(user.get("id"))
        wp_roles = ",".join(user.get("roles") or [])
        typer.echo(f"{user_id[:6]:6}  {str(user.get('username') or user.get('name'))[:20]:20}  {wp_roles[:20]:20}  {app_roles.get(user_id) or '-'}")
