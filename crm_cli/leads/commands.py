# crm_cli/leads/commands.py
import typer

from crm_cli.core.context import active_profile, load_site_context, log_site_activity
from crm_cli.core.errors import CRMClientError
from crm_cli.core.filters import DataFilter
from crm_cli.core.session import load_legacy_site_url
from crm_cli.core.sites import get_wp_rest_url
from crm_cli.core.wordpress import create_leads_api

app = typer.Typer(help="Leads of the current site.")


def _leads_api():
    context = load_site_context()
    try:
        api = create_leads_api(get_wp_rest_url(context, load_legacy_site_url()))
    except CRMClientError as e:
        typer.echo(str(e))
        raise typer.Exit(code=1)
    return context, api


def _visible_lead(context, api, lead_id: str) -> dict:
    try:
        lead = api.get(lead_id)
    except CRMClientError as e:
        typer.echo(str(e))
        raise typer.Exit(code=1)
    if not DataFilter(active_profile(context)).filter_by_assignment([lead]):
        typer.echo("Lead not found.")
        raise typer.Exit(code=1)
    return lead


def _require_manager(context) -> None:
    if DataFilter(active_profile(context)).is_team_member:
        typer.echo("Your role cannot do this.")
        raise typer.Exit(code=1)


def _save(api, lead_id: str, fields: dict) -> None:
    try:
        api.update(lead_id, fields)
    except CRMClientError as e:
        typer.echo(str(e))
        raise typer.Exit(code=1)


@app.command("list")
def list_leads(
    status: str = typer.Option(None, "--status", help="Only leads with this status"),
):
    """
    List leads. Team members only see the leads assigned to them.
    """
    context, api = _leads_api()
    try:
        leads = api.get_all()
    except CRMClientError as e:
        typer.echo(str(e))
        raise typer.Exit(code=1)

    leads = DataFilter(active_profile(context)).filter_by_assignment(leads)
    if status:
        leads = [lead for lead in leads if lead.get("status") == status]

    if not leads:
        typer.echo("No leads found.")
        return

    typer.echo(f"{'ID':8}  {'Name':24}  {'Status':12}  {'Source':8}  Assigned")
    typer.echo("-" * 70)
    for lead in leads:
        typer.echo(
            f"{lead['id'][:8]:8}  {str(lead.get('name', ''))[:24]:24}  "
            f"{lead['status'][:12]:12}  {lead['source'][:8]:8}  {lead.get('assigned_to') or '-'}"
        )


@app.command("show")
def show_lead(lead_id: str = typer.Argument(..., help="Lead ID")):
    context, api = _leads_api()
    # A lead hidden from the list stays hidden here too
    lead = _visible_lead(context, api, lead_id)

    for key, value in lead.items():
        typer.echo(f"{key:18} {value}")


@app.command("add")
def add_lead(
    email: str = typer.Argument(..., help="Lead email (must be unique on the site)"),
    name: str = typer.Option("", "--name", help="Full name"),
    phone: str = typer.Option("", "--phone", help="Phone number"),
    company: str = typer.Option("", "--company", help="Company"),
    source: str = typer.Option("crm", "--source", help="Where the lead came from"),
    notes: str = typer.Option("", "--notes", help="Free-form notes"),
):
    context, api = _leads_api()
    data = {"email": email, "name": name, "phone": phone, "company": company, "source": source, "notes": notes}
    try:
        result = api.create(data)
    except CRMClientError as e:
        typer.echo(str(e))
        raise typer.Exit(code=1)

    if result.get("status") == "duplicate":
        typer.echo(result.get("message") or "A lead with this email already exists.")
        raise typer.Exit(code=1)

    lead_id = result.get("lead_id")
    log_site_activity(context, "Lead Created", f"Lead {lead_id} ({email})")
    typer.echo(f"Lead {lead_id} created.")


@app.command("update")
def update_lead(
    lead_id: str = typer.Argument(..., help="Lead ID"),
    status: str = typer.Option(None, "--status", help="New status"),
    notes: str = typer.Option(None, "--notes", help="Replace the notes"),
    follow_up_date: str = typer.Option(None, "--follow-up-date", help="Follow-up date, e.g. 2026-11-02"),
    follow_up_status: str = typer.Option(None, "--follow-up-status", help="pending, done, ..."),
    follow_up_type: str = typer.Option(None, "--follow-up-type", help="call, email, meeting, ..."),
):
    """
    Update a lead. Team members can only update leads assigned to them.
    """
    fields = {
        "status": status,
        "notes": notes,
        "follow_up_date": follow_up_date,
        "follow_up_status": follow_up_status,
        "follow_up_type": follow_up_type,
    }
    fields = {key: value for key, value in fields.items() if value is not None}
    if not fields:
        typer.echo("Nothing to update.")
        raise typer.Exit(code=1)

    context, api = _leads_api()
    _visible_lead(context, api, lead_id)
    _save(api, lead_id, fields)
    log_site_activity(context, "Lead Updated", f"Lead {lead_id}: {', '.join(sorted(fields))}")
    typer.echo(f"Lead {lead_id} updated.")


@app.command("assign")
def assign_lead(
    lead_id: str = typer.Argument(..., help="Lead ID"),
    user_id: str = typer.Argument(..., help="WordPress user ID of the assignee"),
):
    context, api = _leads_api()
    _require_manager(context)
    _visible_lead(context, api, lead_id)
    _save(api, lead_id, {"assigned_to": user_id})
    log_site_activity(context, "Lead Assigned", f"Lead {lead_id} assigned to user {user_id}")
    typer.echo(f"Lead {lead_id} assigned to user {user_id}.")


@app.command("delete")
def delete_lead(
    lead_id: str = typer.Argument(..., help="Lead ID"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
):
    context, api = _leads_api()
    _require_manager(context)
    if not force and not typer.confirm(f"Are you sure you want to delete lead {lead_id}?"):
        typer.echo("Operation cancelled.")
        raise typer.Exit(code=0)

    try:
        api.delete(lead_id)
    except CRMClientError as e:
        typer.echo(str(e))
        raise typer.Exit(code=1)
    log_site_activity(context, "Lead Deleted", f"Lead {lead_id}")
    typer.echo(f"Lead {lead_id} deleted.")
