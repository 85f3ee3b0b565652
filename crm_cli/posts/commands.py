# crm_cli/posts/commands.py
import typer

from crm_cli.core.context import active_profile, load_site_context, log_site_activity, open_wordpress_api
from crm_cli.core.errors import CRMClientError
from crm_cli.core.filters import DataFilter

app = typer.Typer(help="Blog posts of the current site.")

POST_STATUS_CHOICES = ("publish", "draft", "private", "pending", "future")


def _title(post: dict) -> str:
    return (post.get("title") or {}).get("rendered", "")


def _check_status(status):
    if status is not None and status not in POST_STATUS_CHOICES:
        typer.echo(f"Invalid status. Must be one of: {', '.join(POST_STATUS_CHOICES)}")
        raise typer.Exit(code=1)


def _own_post(context, api, post_id: int) -> dict:
    # Team members only reach their own posts
    post = api.get_post(post_id)
    if not DataFilter(active_profile(context)).filter_by_author([post]):
        typer.echo("Post not found.")
        raise typer.Exit(code=1)
    return post


@app.command("list")
def list_posts():
    """
    List posts in every status. Team members only see their own posts.
    """
    context = load_site_context()
    try:
        with open_wordpress_api(context) as api:
            posts = api.get_all_posts()
    except CRMClientError as e:
        typer.echo(str(e))
        raise typer.Exit(code=1)

    posts = DataFilter(active_profile(context)).filter_by_author(posts)
    if not posts:
        typer.echo("No posts found.")
        return

    typer.echo(f"{'ID':8}  {'Status':10}  {'Author':8}  Title")
    typer.echo("-" * 70)
    for post in posts:
        typer.echo(f"{str(post.get('id'))[:8]:8}  {str(post.get('status'))[:10]:10}  {str(post.get('author'))[:8]:8}  {_title(post)[:40]}")


@app.command("show")
def show_post(post_id: int = typer.Argument(..., help="Post ID")):
    context = load_site_context()
    try:
        with open_wordpress_api(context) as api:
            post = _own_post(context, api, post_id)
    except CRMClientError as e:
        typer.echo(str(e))
        raise typer.Exit(code=1)

    typer.echo(f"Title:    {_title(post)}")
    typer.echo(f"Status:   {post.get('status')}")
    typer.echo(f"Author:   {post.get('author')}")
    typer.echo(f"Date:     {post.get('date')}")
    typer.echo(f"Link:     {post.get('link')}")
    typer.echo("")
    typer.echo((post.get("content") or {}).get("rendered", ""))


@app.command("create")
def create_post(
    title: str = typer.Option(..., "--title", help="Post title"),
    content: str = typer.Option("", "--content", help="Post body (HTML)"),
    status: str = typer.Option("draft", "--status", help="publish, draft, private, pending or future"),
):
    _check_status(status)
    context = load_site_context()
    try:
        with open_wordpress_api(context) as api:
            post = api.create_post({"title": title, "content": content, "status": status})
    except CRMClientError as e:
        typer.echo(str(e))
        raise typer.Exit(code=1)

    log_site_activity(context, "Blog Created", f"Post {post.get('id')}: {title}")
    typer.echo(f"Post {post.get('id')} created ({status}).")


@app.command("update")
def update_post(
    post_id: int = typer.Argument(..., help="Post ID"),
    title: str = typer.Option(None, "--title", help="New title"),
    content: str = typer.Option(None, "--content", help="New body (HTML)"),
    status: str = typer.Option(None, "--status", help="New status"),
):
    """
    Update a post. Team members can only edit posts they authored.
    """
    _check_status(status)
    data = {key: value for key, value in {"title": title, "content": content, "status": status}.items() if value is not None}
    if not data:
        typer.echo("Nothing to update.")
        raise typer.Exit(code=1)

    context = load_site_context()
    try:
        with open_wordpress_api(context) as api:
            _own_post(context, api, post_id)
            api.update_post(post_id, data)
    except CRMClientError as e:
        typer.echo(str(e))
        raise typer.Exit(code=1)

    log_site_activity(context, "Blog Updated", f"Post {post_id}: {', '.join(sorted(data))}")
    typer.echo(f"Post {post_id} updated.")


@app.command("delete")
def delete_post(
    post_id: int = typer.Argument(..., help="Post ID"),
    permanent: bool = typer.Option(False, "--permanent", help="Delete instead of moving to the trash"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
):
    if not force and not typer.confirm(f"Are you sure you want to delete post {post_id}?"):
        typer.echo("Operation cancelled.")
        raise typer.Exit(code=0)

    context = load_site_context()
    try:
        with open_wordpress_api(context) as api:
            _own_post(context, api, post_id)
            api.delete_post(post_id, force=permanent)
    except CRMClientError as e:
        typer.echo(str(e))
        raise typer.Exit(code=1)

    log_site_activity(context, "Blog Deleted", f"Post {post_id}")
    typer.echo(f"Post {post_id} {'deleted' if permanent else 'moved to the trash'}.")


def _list_terms(kind: str):
    context = load_site_context()
    try:
        with open_wordpress_api(context) as api:
            terms = api.get_categories() if kind == "categories" else api.get_tags()
    except CRMClientError as e:
        typer.echo(str(e))
        raise typer.Exit(code=1)

    if not terms:
        typer.echo(f"No {kind} found.")
        return
    for term in terms:
        typer.echo(f"{str(term.get('id'))[:6]:6}  {term.get('name')} ({term.get('count', 0)})")


@app.command("categories")
def list_categories():
    _list_terms("categories")


@app.command("tags")
def list_tags():
    _list_terms("tags")
