import json
import os
from pathlib import Path
from typing import Optional

import httpx
import typer
from rich import print
from rich.table import Table

app = typer.Typer(help="Command-line client for the WASAText API.")

# Configuration
BASE_URL = os.getenv("WASATEXT_URL", "http://localhost:3000")
TOKEN_STORE = Path(os.getenv("WASATEXT_TOKEN_STORE", ".wasatext-tokens.json"))


# -------------------------
# Helpers
# -------------------------
def get_client() -> httpx.Client:
    return httpx.Client(base_url=BASE_URL, timeout=10.0)


def save_token(username: str, token: str):
    tokens = {}
    if TOKEN_STORE.exists():
        tokens = json.loads(TOKEN_STORE.read_text())
    tokens[username] = token
    TOKEN_STORE.parent.mkdir(parents=True, exist_ok=True)
    TOKEN_STORE.write_text(json.dumps(tokens, indent=2))


def load_token(username: str) -> str:
    if not TOKEN_STORE.exists():
        print("[bold red]❌ Token store not found. Please login first.[/bold red]")
        raise typer.Exit(code=1)
    tokens = json.loads(TOKEN_STORE.read_text())
    token = tokens.get(username)
    if not token:
        print(f"[bold red]❌ No token found for user '{username}'. Please login first.[/bold red]")
        raise typer.Exit(code=1)
    return token


def request(user: str, method: str, endpoint: str, **kwargs) -> httpx.Response:
    headers = {"Authorization": f"Bearer {load_token(user)}"}
    with get_client() as client:
        return client.request(method.upper(), "/" + endpoint.lstrip("/"), headers=headers, **kwargs)


def report(response: httpx.Response) -> dict:
    """Print failures and exit non-zero; return the JSON body otherwise."""
    if response.is_error:
        print(f"[bold red]❌ {response.status_code}: {response.text}[/bold red]")
        raise typer.Exit(code=1)
    return response.json()


# -------------------------
# Commands
# -------------------------
@app.command()
def login(name: str = typer.Option(..., "--name", "-n", help="Display name to log in as")):
    """Login (registering on first use) and store the token."""
    with get_client() as client:
        body = report(client.post("/session", json={"name": name}))
    save_token(name, body["token"])
    print(f"[bold green]✅ Logged in as {name} ({body['identifier']})[/bold green]")


@app.command()
def conversations(user: str = typer.Option(..., "--user", "-u")):
    """List the conversations of a user, most recent first."""
    items = report(request(user, "get", "/me/conversations"))

    table = Table(title=f"Conversations of {user}")
    table.add_column("id", justify="right")
    table.add_column("name")
    table.add_column("group")
    table.add_column("last message")
    for item in items:
        table.add_row(
            str(item["id"]),
            item.get("name") or "",
            "yes" if item["isGroup"] else "no",
            item.get("lastMessageText") or "",
        )
    print(table)


@app.command()
def show(
    user: str = typer.Option(..., "--user", "-u"),
    conversation_id: int = typer.Argument(...),
):
    """Show a conversation with its messages and comments."""
    convo = report(request(user, "get", f"/conversations/{conversation_id}"))
    print(f"[bold]{convo.get('name') or 'Direct conversation'}[/bold] "
          f"with {', '.join(convo['participants'])}")
    for msg in reversed(convo["messages"]):
        print(f"[cyan]#{msg['id']} {msg['sender']}[/cyan] [dim]{msg['timestamp']}[/dim]: {msg['text']}")
        for comment in msg["comments"]:
            print(f"    [magenta]{comment['username']}[/magenta]: {comment['comment']}")


@app.command()
def send(
    user: str = typer.Option(..., "--user", "-u"),
    conversation_id: int = typer.Option(..., "--conversation", "-c"),
    text: str = typer.Argument(...),
):
    """Send a message to a conversation."""
    body = report(request(user, "post", f"/conversations/{conversation_id}/messages", json={"text": text}))
    print(f"[bold green]✅ Sent message {body['messageId']}[/bold green]")


@app.command()
def direct(
    user: str = typer.Option(..., "--user", "-u"),
    to: str = typer.Option(..., "--to", help="Recipient user id"),
    text: str = typer.Argument(...),
):
    """Send a direct message, opening the conversation if needed."""
    body = report(request(user, "post", "/messages", json={"toUserId": to, "text": text}))
    print(f"[bold green]✅ Sent message {body['messageId']} "
          f"in conversation {body['conversationId']}[/bold green]")


@app.command()
def comment(
    user: str = typer.Option(..., "--user", "-u"),
    message_id: int = typer.Argument(...),
    text: str = typer.Argument(...),
):
    """Comment on a message (replaces your previous comment)."""
    report(request(user, "post", f"/messages/{message_id}/comments", json={"comment": text}))
    print(f"[bold green]✅ Commented on message {message_id}[/bold green]")


@app.command()
def forward(
    user: str = typer.Option(..., "--user", "-u"),
    message_id: int = typer.Argument(...),
    conversation_id: int = typer.Option(..., "--to", help="Destination conversation id"),
):
    """Forward a message to another conversation."""
    body = report(request(user, "post", f"/messages/{message_id}/forward",
                          json={"conversationId": conversation_id}))
    print(f"[bold green]✅ Forwarded as message {body['messageId']}[/bold green]")


@app.command()
def delete(
    user: str = typer.Option(..., "--user", "-u"),
    message_id: int = typer.Argument(...),
):
    """Delete one of your messages."""
    report(request(user, "delete", f"/messages/{message_id}"))
    print(f"[bold green]✅ Deleted message {message_id}[/bold green]")


@app.command()
def call(
    user: str = typer.Option(..., "--user", "-u"),
    endpoint: str = typer.Option(..., "--endpoint", "-e"),
    method: str = typer.Option("get", "--method", "-m"),
    body: Optional[str] = typer.Option(None, "--body"),
):
    """Make an authenticated HTTP call to the API."""
    headers = {"Authorization": f"Bearer {load_token(user)}"}
    if body:
        headers["Content-Type"] = "application/json"
    with get_client() as client:
        response = client.request(
            method.upper(), "/" + endpoint.lstrip("/"), headers=headers, content=body
        )
    print(f"[cyan]➡️  {method.upper()} {response.request.url}[/cyan]")
    print(f"[bold yellow]Status: {response.status_code}[/bold yellow]")
    print(response.text)


if __name__ == "__main__":
    app()
