"""
WHOIS CLI commands.
"""

import click
from rich.console import Console
from rich.table import Table

from nettracex.cli_support import echo_json, fail, get_client, run_cancellable
from nettracex.errors import NetTraceError


def _date(value) -> str:
    return value.strftime("%Y-%m-%d") if value else "-"


@click.command("whois")
@click.argument("query")
@click.option("--raw", is_flag=True, help="Print the raw server response")
@click.option("--json", "json_out", is_flag=True, help="Output as JSON")
@click.pass_context
def whois_cmd(ctx: click.Context, query: str, raw: bool, json_out: bool):
    """Look up registration data for a domain or IP address.

    Examples:
        nettracex whois example.com
        nettracex whois 8.8.8.8 --raw
    """
    console = Console()

    async def run(cancel):
        return await get_client(ctx).whois_lookup(query, cancel)

    try:
        result = run_cancellable(run)
    except NetTraceError as e:
        fail(console, e)

    if json_out:
        echo_json(result)
        return

    if raw:
        click.echo(result.raw_data)
        return

    table = Table(title=f"WHOIS: {query}", show_header=False, box=None)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Domain", result.domain)
    table.add_row("Registrar", result.registrar or "-")
    table.add_row("Created", _date(result.created))
    table.add_row("Updated", _date(result.updated))
    table.add_row("Expires", _date(result.expires))
    if result.name_servers:
        table.add_row("Name Servers", "\n".join(result.name_servers))
    if result.status:
        table.add_row("Status", "\n".join(result.status))

    for role, contact in result.contacts.items():
        parts = [contact.name, contact.organization, contact.email]
        table.add_row(role.title(), ", ".join(p for p in parts if p))

    console.print(table)
