# crm_cli/sites/commands.py
import getpass
import typer

from crm_cli.core.api import (
    api_create_site,
    api_delete_site,
    api_get_site,
    api_get_user_sites,
    api_list_sites,
    api_update_site,
)
from crm_cli.core.context import active_profile, build_resolver, load_site_context, persist_site_context
from crm_cli.core.errors import CRMClientError
from crm_cli.core.roles import Role
from crm_cli.core.session import (
    clear_site_session,
    load_legacy_site_url,
    load_token,
    save_global_credentials,
    save_legacy_site_url,
    save_site_session,
)
from crm_cli.core.sites import get_accessible_sites, get_wp_rest_url, get_wp_url, normalize_site_url
from crm_cli.core.wordpress import create_wordpress_api
from crm_cli.core.credentials import basic_auth_header

app = typer.Typer(help="WordPress site management and switching.")


def _require_token() -> str:
    token = load_token()
    if not token:
        typer.echo("No active session. Please login first.")
        raise typer.Exit(code=1)
    return token


@app.command("list")
def list_sites():
    """
    List the cached sites the active profile can use. The current one is marked with '*'.
    """
    context = load_site_context()
    if not context.sites:
        typer.echo("No sites configured. Use `sites add` or `sites sync`.")
        return

    # Only the sites the active profile may switch to
    profile = active_profile(context)
    sites = get_accessible_sites(context, profile["id"], profile["role"]) if profile else context.sites

    current_id = context.current_site_id
    typer.echo(f"  {'ID':12}  {'Name':28}  URL")
    typer.echo("-" * 70)
    for site in sites:
        marker = "*" if site.get("id") == current_id else " "
        typer.echo(f"{marker} {str(site.get('id', ''))[:12]:12}  {str(site.get('name', ''))[:28]:28}  {site.get('url', '')}")


@app.command("sync")
def sync_sites():
    """
    Replace the local site cache with the sites stored on the backend.
    """
    token = _require_token()
    sites = api_list_sites(token)
    if sites is None:
        typer.echo("Failed to fetch sites (API error or session invalid).")
        raise typer.Exit(code=1)

    context = load_site_context()
    context.set_sites(sites)
    persist_site_context(context)
    typer.echo(f"Synced {len(sites)} site(s).")


@app.command("add")
def add_site(
    name: str = typer.Argument(..., help="Display name"),
    url: str = typer.Argument(..., help="Site URL, e.g. example.com/crm"),
    site_id: str = typer.Option(None, "--id", help="Site ID (generated by the backend if omitted)"),
    username: str = typer.Option(None, "--username", help="Site-level WordPress username"),
    app_password: str = typer.Option(None, "--app-password", help="Site-level application password"),
    default: bool = typer.Option(False, "--default", help="Mark as the default site"),
):
    """
    Register a site on the backend and add it to the local cache.
    """
    token = _require_token()
    payload = {
        "id": site_id,
        "name": name,
        "url": normalize_site_url(url),
        "username": username,
        "app_password": app_password,
        "is_default": default,
    }
    site = api_create_site(token, payload)
    if site is None:
        typer.echo("Failed to create site. Check that the ID is unused and your session is valid.")
        raise typer.Exit(code=1)

    context = load_site_context()
    context.set_sites(context.sites + [site])
    persist_site_context(context)
    typer.echo(f"Site '{site['id']}' added.")


@app.command("show")
def show_site(site_id: str = typer.Argument(..., help="Site ID")):
    """
    Show a site record as stored on the backend.
    """
    token = _require_token()
    site = api_get_site(token, site_id)
    if site is None:
        typer.echo(f"Site '{site_id}' not found (or session invalid).")
        raise typer.Exit(code=1)

    for key in ["id", "name", "url", "username", "is_default", "assigned_admins", "created_at", "updated_at"]:
        typer.echo(f"{key:16} {site.get(key)}")
    typer.echo(f"{'app_password':16} {'(set)' if site.get('app_password') else '(none)'}")


@app.command("update")
def update_site(
    site_id: str = typer.Argument(..., help="Site ID"),
    name: str = typer.Option(None, "--name", help="Display name"),
    url: str = typer.Option(None, "--url", help="Site URL"),
    username: str = typer.Option(None, "--username", help="Site-level WordPress username"),
    app_password: str = typer.Option(None, "--app-password", help="Site-level application password"),
    default: bool = typer.Option(None, "--default/--no-default", help="Mark or unmark as the default site"),
    admins: list[str] = typer.Option(None, "--admin", help="Assigned admin user ID (repeat; replaces the list)"),
):
    """
    Change a site on the backend. Only the given fields are sent.
    """
    updates = {
        "name": name,
        "url": normalize_site_url(url) if url else None,
        "username": username,
        "app_password": app_password,
        "is_default": default,
        "assigned_admins": list(admins) if admins else None,
    }
    updates = {key: value for key, value in updates.items() if value is not None}
    if not updates:
        typer.echo("Nothing to update.")
        raise typer.Exit(code=1)

    token = _require_token()
    site = api_update_site(token, site_id, updates)
    if site is None:
        typer.echo("Failed to update site. Check the ID and your session.")
        raise typer.Exit(code=1)

    context = load_site_context()
    context.set_sites([site if s.get("id") == site_id else s for s in context.sites])
    persist_site_context(context)
    typer.echo(f"Site '{site_id}' updated.")


@app.command("remove")
def remove_site(
    site_id: str = typer.Argument(..., help="Site ID"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
):
    token = _require_token()
    if not force:
        if not typer.confirm(f"Are you sure you want to delete site {site_id}?"):
            typer.echo("Operation cancelled.")
            raise typer.Exit(code=0)

    if not api_delete_site(token, site_id):
        typer.echo("Failed to delete site on the backend.")
        raise typer.Exit(code=1)

    context = load_site_context()
    context.remove_site(site_id)
    persist_site_context(context)
    clear_site_session(site_id)
    typer.echo(f"Site {site_id} deleted.")


@app.command("use")
def use_site(site_id: str = typer.Argument(..., help="Site ID to switch to")):
    """
    Switch the current site.
    """
    context = load_site_context()
    if not context.set_current_site(site_id):
        typer.echo(f"Unknown site '{site_id}'. Run `sites list` to see the available sites.")
        raise typer.Exit(code=1)
    persist_site_context(context)
    typer.echo(f"Now using site '{site_id}' ({get_wp_url(context)}).")


@app.command("current")
def current_site():
    """
    Show the current site, its resolved URLs and whether credentials are available.
    """
    context = load_site_context()
    legacy_url = load_legacy_site_url()
    base_url = get_wp_url(context, legacy_url)
    if not base_url:
        typer.echo("No site configured.")
        raise typer.Exit(code=1)

    site = context.current_site
    resolver = build_resolver(context)
    authenticated = resolver.resolve(context.current_site_id) is not None

    typer.echo(f"Site:     {site.get('name') if site else '(legacy URL)'}")
    typer.echo(f"URL:      {base_url}")
    typer.echo(f"REST:     {get_wp_rest_url(context, legacy_url)}")
    typer.echo(f"Auth:     {'yes' if authenticated else 'no (unauthenticated requests)'}")


@app.command("login")
def site_login(
    username: str = typer.Option(None, "--username", "-u", help="WordPress username"),
):
    """
    Log in to the current site with a WordPress application password.
    """
    context = load_site_context()
    site = context.current_site
    if site is None:
        typer.echo("No site selected.")
        raise typer.Exit(code=1)

    if username is None:
        username = typer.prompt("WordPress username")
    app_password = getpass.getpass("Application password: ")

    try:
        api = create_wordpress_api(get_wp_rest_url(context), {"Authorization": basic_auth_header(username, app_password)})
        me = api.get_current_user()
    except CRMClientError as e:
        typer.echo(f"Site login failed: {e}")
        raise typer.Exit(code=1)

    user_id = str(me.get("id"))
    role = None
    assignments = api_get_user_sites(user_id) or []
    for assignment in assignments:
        if assignment.get("site_id") == site["id"]:
            role = assignment.get("app_role")
            break
    if role is None and "administrator" in (me.get("roles") or []):
        role = Role.ADMIN.value

    save_site_session(site["id"], {
        "username": username,
        "app_password": app_password,
        "user_id": user_id,
        "role": role,
    })
    typer.echo(f"Logged in to '{site['name']}' as {username} (role: {role or 'none'}).")


@app.command("logout")
def site_logout():
    """
    Forget the login for the current site.
    """
    context = load_site_context()
    site_id = context.current_site_id
    if site_id is None or not clear_site_session(site_id):
        typer.echo("No site login to remove.")
        return
    typer.echo(f"Logged out of site '{site_id}'.")


@app.command("set-global")
def set_global_credentials(
    username: str = typer.Option(..., "--username", "-u", help="WordPress username"),
):
    """
    Store fallback credentials used when a site has none of its own.
    """
    password = getpass.getpass("Application password: ")
    if not password:
        typer.echo("Password cannot be empty.")
        raise typer.Exit(code=1)
    save_global_credentials(username, password)
    typer.echo("Global credentials saved.")


@app.command("set-url")
def set_legacy_url(url: str = typer.Argument(..., help="Site URL used when no site is cached")):
    save_legacy_site_url(url)
    typer.echo(f"Fallback site URL set to {normalize_site_url(url)}.")
