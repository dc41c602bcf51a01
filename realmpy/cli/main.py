"""Realm CLI - Main commands."""
import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="realm",
    help="Realm homeserver login and credential cache",
    add_completion=False
)
console = Console()


# Secret storage path: ~/.config/realm/secrets.session
def get_secrets_path() -> Path:
    config_dir = Path.home() / ".config" / "realm"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir / "secrets"


def run_async(coro):
    """Run async function."""
    return asyncio.run(coro)


def check_server(server: str) -> str:
    """Normalize a server URL, exiting with a clean error if it is blank."""
    from realmpy import normalize_server_url
    
    try:
        return normalize_server_url(server)
    except ValueError as e:
        console.print(f"[red]Invalid server URL: {e}[/red]")
        raise typer.Exit(1)


def build_config(insecure: bool, proxy: str):
    """API config from the connection options."""
    from realmpy import APIConfig, ProxyConfig
    
    config = APIConfig.insecure() if insecure else APIConfig.default()
    if proxy:
        config.proxy = ProxyConfig(url=proxy)
    return config


def print_login_error(e) -> None:
    from realmpy import EmailLoginError, MatrixErrorCodes
    
    if isinstance(e, EmailLoginError):
        console.print(f"[red]Login failed: {e.error}[/red]")
        console.print(f"Error code: {e.errcode} (HTTP {e.status})")
        console.print(f"[dim]{MatrixErrorCodes.get_message(e.errcode)}[/dim]")
    else:
        console.print(f"[red]Login failed: {e}[/red]")


@app.command()
def login(
    server: str = typer.Argument(..., help="Homeserver URL"),
    username: str = typer.Option(None, "--username", "-u", help="Username or email address"),
    password: str = typer.Option(None, "--password", "-p", help="Account password"),
    insecure: bool = typer.Option(False, "--insecure", help="Skip TLS certificate verification"),
    proxy: str = typer.Option(None, "--proxy", help="Proxy URL"),
):
    """Login to a realm homeserver and cache the credential."""
    from realmpy import RealmContext, SQLiteSecretStorage, acquire_session, RealmAuthError
    
    check_server(server)
    if not username:
        username = typer.prompt("Username")
    if not password:
        password = typer.prompt("Password", hide_input=True)
    
    config = build_config(insecure, proxy)
    
    async def do_login():
        secrets = SQLiteSecretStorage(str(get_secrets_path()))
        context = RealmContext(secrets, config)
        client = None
        
        try:
            client = await acquire_session(context, server, username, password)
            console.print(f"[green]Logged in as {client.user_id}[/green]")
            console.print(f"Device: {client.device_id}")
        except RealmAuthError as e:
            print_login_error(e)
            raise typer.Exit(1)
        finally:
            if client is not None:
                await client.close()
            await secrets.close()
    
    run_async(do_login())


@app.command()
def realms(
    server: str = typer.Argument(..., help="Homeserver URL"),
    username: str = typer.Option(None, "--username", "-u", help="Username or email address"),
    password: str = typer.Option(None, "--password", "-p", help="Account password"),
    insecure: bool = typer.Option(False, "--insecure", help="Skip TLS certificate verification"),
    proxy: str = typer.Option(None, "--proxy", help="Proxy URL"),
):
    """List the realms the account can open."""
    from realmpy import (
        RealmContext, SQLiteSecretStorage, acquire_session, list_realms,
        RealmAuthError, RealmDiscoveryError, RealmConnectionError
    )
    
    check_server(server)
    if not username:
        username = typer.prompt("Username")
    if not password:
        password = typer.prompt("Password", hide_input=True)
    
    config = build_config(insecure, proxy)
    
    async def do_realms():
        secrets = SQLiteSecretStorage(str(get_secrets_path()))
        context = RealmContext(secrets, config)
        client = None
        
        try:
            try:
                client = await acquire_session(context, server, username, password)
            except RealmAuthError as e:
                print_login_error(e)
                raise typer.Exit(1)
            
            try:
                found = await list_realms(context, client)
            except (RealmDiscoveryError, RealmConnectionError) as e:
                console.print(f"[red]Could not read realms: {e}[/red]")
                raise typer.Exit(1)
        finally:
            if client is not None:
                await client.close()
            await secrets.close()
        
        if not found:
            console.print("[red]No realms found[/red]")
            raise typer.Exit(1)
        
        table = Table(title=f"Realms for {client.user_id}")
        table.add_column("#", style="dim")
        table.add_column("Realm", style="cyan")
        for index, realm in enumerate(found):
            table.add_row(str(index), realm + (" (default)" if index == 0 else ""))
        console.print(table)
    
    run_async(do_realms())


@app.command()
def accounts():
    """List cached credentials."""
    from realmpy import SQLiteSecretStorage, CredentialRepository
    from realmpy.core.utils import redact_token
    
    async def list_accounts():
        secrets = SQLiteSecretStorage(str(get_secrets_path()))
        try:
            store = await CredentialRepository(secrets).load()
        finally:
            await secrets.close()
        
        if not len(store):
            console.print("[yellow]No cached credentials[/yellow]")
            return
        
        table = Table()
        table.add_column("Server", style="cyan")
        table.add_column("Username")
        table.add_column("User ID")
        table.add_column("Device", style="dim")
        table.add_column("Token", style="dim")
        
        for server, username, entry in store.entries():
            entry = entry if isinstance(entry, dict) else {}
            table.add_row(
                server,
                username,
                str(entry.get('user_id', '?')),
                str(entry.get('device_id', '?')),
                redact_token(str(entry.get('access_token', '')))
            )
        
        console.print(table)
    
    run_async(list_accounts())


@app.command()
def forget(
    server: str = typer.Argument(..., help="Homeserver URL"),
    username: str = typer.Argument(..., help="Username or email address"),
):
    """Remove a cached credential."""
    from realmpy import SQLiteSecretStorage, CredentialRepository
    
    normalized = check_server(server)
    
    async def do_forget():
        secrets = SQLiteSecretStorage(str(get_secrets_path()))
        repository = CredentialRepository(secrets)
        try:
            store = await repository.load()
            if not store.remove(normalized, username):
                console.print(f"[yellow]No cached credential for {username} on {server}[/yellow]")
                raise typer.Exit(1)
            await repository.persist(store)
        finally:
            await secrets.close()
        console.print(f"[green]Forgot {username} on {server}[/green]")
    
    run_async(do_forget())


if __name__ == "__main__":
    app()
