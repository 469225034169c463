"""
DNS CLI commands.
"""

import click
from rich.console import Console
from rich.table import Table

from nettracex.cli_support import echo_json, fail, get_client, run_cancellable
from nettracex.errors import NetTraceError
from nettracex.models import DNSRecordType


@click.command("dns")
@click.argument("name")
@click.option("-t", "--type", "record_type", default="A",
              help="Record type (A, AAAA, MX, TXT, CNAME, NS), a comma-separated list, or ALL")
@click.option("--json", "json_out", is_flag=True, help="Output as JSON")
@click.pass_context
def dns_cmd(ctx: click.Context, name: str, record_type: str, json_out: bool):
    """Perform a DNS lookup.

    Examples:
        nettracex dns example.com
        nettracex dns example.com -t MX
        nettracex dns example.com -t A,AAAA
        nettracex dns example.com -t ALL
    """
    console = Console()
    requested = [t.strip().upper() for t in record_type.split(",") if t.strip()]

    async def run(cancel):
        client = get_client(ctx)
        if requested == ["ALL"]:
            return await client.dns_lookup_many(name, None, cancel)
        if len(requested) > 1:
            return await client.dns_lookup_many(name, requested, cancel)
        return await client.dns_lookup(name, record_type.upper(), cancel)

    try:
        result = run_cancellable(run)
    except NetTraceError as e:
        fail(console, e)

    if json_out:
        echo_json(result)
        return

    for failed, error in result.failed_types.items():
        console.print(f"[yellow]{failed} lookup failed: {error}[/yellow]")

    if not result.records:
        console.print(f"[yellow]No {record_type.upper()} records found for {name}[/yellow]")
        return

    has_mx = any(r.record_type == DNSRecordType.MX for r in result.records)

    table = Table(title=f"DNS Lookup: {name}", box=None)
    table.add_column("Type", style="cyan")
    table.add_column("TTL", style="dim")
    table.add_column("Value", style="white")
    if has_mx:
        table.add_column("Priority", style="dim")

    for record in result.records:
        row = [record.record_type.value, str(record.ttl), record.value]
        if has_mx:
            row.append(str(record.priority) if record.priority is not None else "")
        table.add_row(*row)

    console.print(table)
    console.print(f"[dim]Server: {result.server}  Time: {result.response_time_ms:.0f}ms[/dim]")
