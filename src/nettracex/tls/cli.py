"""
SSL/TLS CLI commands.
"""

import click
from rich.console import Console
from rich.table import Table

from nettracex.cli_support import echo_json, fail, get_client, run_cancellable
from nettracex.errors import NetTraceError


@click.command("ssl")
@click.argument("host")
@click.option("-p", "--port", default=443, help="Port to connect to")
@click.option("--json", "json_out", is_flag=True, help="Output as JSON")
@click.pass_context
def ssl_cmd(ctx: click.Context, host: str, port: int, json_out: bool):
    """Inspect the certificate served by a TLS endpoint.

    Examples:
        nettracex ssl example.com
        nettracex ssl mail.example.com -p 993
    """
    console = Console()

    async def run(cancel):
        return await get_client(ctx).ssl_check(host, port, cancel)

    try:
        result = run_cancellable(run)
    except NetTraceError as e:
        fail(console, e)

    if json_out:
        echo_json(result)
        return

    status = "[green]Valid[/green]" if result.valid else "[red]Invalid[/red]"

    table = Table(title=f"SSL Certificate: {host}:{port}", show_header=False, box=None)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Status", status)
    level_color = {"SECURE": "green", "WARNING": "yellow"}.get(result.security_level.value, "red")
    table.add_row("Security", f"[{level_color}]{result.security_level.value}[/{level_color}]")
    table.add_row("Subject", result.subject)
    table.add_row("Issuer", result.issuer)
    if result.expiry:
        days = result.days_remaining
        color = "green" if days > 30 else "yellow" if days >= 0 else "red"
        table.add_row("Expires", f"{result.expiry:%Y-%m-%d %H:%M} UTC [{color}]({days} days)[/{color}]")
    if result.sans:
        table.add_row("SANs", ", ".join(result.sans))
    if result.protocol_version:
        table.add_row("Protocol", result.protocol_version)
    if result.cipher_name:
        table.add_row("Cipher", result.cipher_name)
    table.add_row("Chain Length", str(len(result.chain)))

    console.print(table)

    for error in result.errors:
        console.print(f"[red]  - {error}[/red]")
    for warning in result.warnings:
        console.print(f"[yellow]  - {warning}[/yellow]")

    if result.recommendations:
        console.print("\n[bold]Recommendations:[/bold]")
        for recommendation in result.recommendations:
            console.print(f"  - {recommendation}")
