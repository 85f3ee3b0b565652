# crm_cli/main.py
import logging

import typer
from crm_cli.auth.commands import app as auth_app
from crm_cli.sites.commands import app as sites_app
from crm_cli.leads.commands import app as leads_app
from crm_cli.posts.commands import app as posts_app
from crm_cli.permissions.commands import app as permissions_app
from crm_cli.roles.commands import app as roles_app
from crm_cli.activity.commands import app as activity_app

app = typer.Typer()
app.add_typer(auth_app, name="auth")
app.add_typer(sites_app, name="sites")
app.add_typer(leads_app, name="leads")
app.add_typer(posts_app, name="posts")
app.add_typer(permissions_app, name="permissions")
app.add_typer(roles_app, name="roles")
app.add_typer(activity_app, name="activity")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log HTTP calls")):
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format="%(levelname)s %(name)s: %(message)s")


if __name__ == "__main__":
    app()
