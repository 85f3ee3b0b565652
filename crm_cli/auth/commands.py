import getpass
import re
import typer

from crm_cli.core.session import save_session, load_token, load_profile, clear_session, is_logged_in
from crm_cli.core.api import api_check_session, api_get_me, api_login, api_logout


app = typer.Typer(help="Backend authentication commands (login, logout)")

USERNAME_REGEX = re.compile(r"^[a-zA-Z0-9_.@-]{3,100}$")


@app.command("login")
def login(
    username: str = typer.Option(None, "--username", "-u", help="Username"),
):
    """
    Login to the CRM backend. Only allowed if no session is active.
    """
    if is_logged_in():
        typer.echo("Session already active. Logout first to remove current session token.")
        raise typer.Exit(code=1)

    if username is None:
        username = typer.prompt("Username")

    if not USERNAME_REGEX.match(username):
        typer.echo("Invalid username.")
        raise typer.Exit(code=1)

    password = getpass.getpass("Password: ")
    if not password:
        typer.echo("Password cannot be empty.")
        raise typer.Exit(code=1)

    result = api_login(username, password)
    if result is None:
        typer.echo("Login failed (invalid credentials or API error).")
        raise typer.Exit(code=1)

    save_session(result["token"], result["profile"])
    typer.echo(f"Login successful as '{username}'.")


@app.command("logout")
def logout():
    """
    Invalidate the backend session and delete the local token.
    """
    token = load_token()
    if token:
        if api_logout(token):
            typer.echo("Logged out from backend.")
        else:
            typer.echo("Warning: Failed to logout from backend. The session may have already been invalidated.")

    clear_session()
    typer.echo("Session ended.")


@app.command("whoami")
def whoami():
    """
    Show the logged-in super admin, refreshed from the backend when reachable.
    """
    token = load_token()
    if not token:
        typer.echo("Not logged in.")
        raise typer.Exit(code=1)

    profile = api_get_me(token)
    if profile is not None:
        save_session(token, profile)
    else:
        profile = load_profile() or {}
        typer.echo("(backend unreachable or session invalid, showing the stored profile)")
    typer.echo(f"{profile.get('username')} (id {profile.get('id')}, role {profile.get('role')})")


@app.command("check")
def check():
    """
    Ask the backend whether the stored session is still valid.
    """
    token = load_token()
    if not token:
        typer.echo("No active session. Please login first.")
        raise typer.Exit(code=1)

    status = api_check_session(token)
    if status == "valid":
        typer.echo("Session is valid.")
        return
    if status is None:
        typer.echo("Could not reach the backend.")
        raise typer.Exit(code=1)

    if status == "invalidated":
        typer.echo("Session was invalidated (logged in elsewhere or revoked). Please login again.")
    else:
        typer.echo("Session is invalid or expired. Please login again.")
    clear_session()
    raise typer.Exit(code=1)
