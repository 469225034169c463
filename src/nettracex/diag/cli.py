"""
Diagnostics CLI commands.
"""

import click
from rich.console import Console
from rich.table import Table

from nettracex.cli_support import echo_json, fail, get_client, run_cancellable
from nettracex.diag.stats import calculate_statistics, summarize_trace
from nettracex.errors import NetTraceError
from nettracex.models import PingOptions, PingResult, TraceHop, TraceOptions


def _ping_row(result: PingResult) -> str:
    if result.success:
        return (
            f"[cyan]{result.sequence:>4}[/cyan]  {result.host.ip or result.host.hostname}  "
            f"time={result.rtt_ms:.2f} ms  ttl={result.ttl}  size={result.packet_size}"
        )
    return f"[cyan]{result.sequence:>4}[/cyan]  [red]{result.error}[/red]"


def _hop_row(hop: TraceHop) -> list[str]:
    if hop.is_timeout:
        detail = f"[red]{hop.error}[/red]" if hop.error else "[dim]Request timed out[/dim]"
        return [str(hop.hop_number), "*", detail, "* * *"]
    rtts = "  ".join(f"{rtt:.2f} ms" for rtt in hop.rtt_ms)
    return [str(hop.hop_number), hop.ip or "*", hop.hostname or "", rtts]


@click.command("ping")
@click.argument("host")
@click.option("-c", "--count", default=4, help="Number of probes (0 = until interrupted)")
@click.option("-i", "--interval", default=1.0, help="Seconds between probes")
@click.option("-t", "--timeout", default=5.0, help="Timeout per probe in seconds")
@click.option("-s", "--size", "packet_size", default=64, help="Packet size reported with each sample")
@click.option("--port", default=80, help="TCP port used for the connect probe")
@click.option("-6", "--ipv6", is_flag=True, help="Use IPv6")
@click.option("--json", "json_out", is_flag=True, help="Output as JSON")
@click.pass_context
def ping_cmd(
    ctx: click.Context,
    host: str,
    count: int,
    interval: float,
    timeout: float,
    packet_size: int,
    port: int,
    ipv6: bool,
    json_out: bool,
):
    """Ping a host with TCP connect probes and show statistics.

    Examples:
        nettracex ping example.com
        nettracex ping 1.1.1.1 -c 10 --port 443
        nettracex ping example.com -c 0    (Ctrl-C to stop)
    """
    console = Console()

    async def run(cancel):
        opts = PingOptions(
            count=count, interval=interval, timeout=timeout,
            packet_size=packet_size, port=port, ipv6=ipv6,
        )
        stream = await get_client(ctx).ping(host, opts, cancel)
        if json_out:
            return await stream.collect()

        console.print(f"[cyan]PING {host} (tcp/{port})[/cyan]")
        results = []
        async for sample in stream:
            results.append(sample)
            console.print(_ping_row(sample))
        return results

    try:
        results = run_cancellable(run)
    except NetTraceError as e:
        fail(console, e)

    stats = calculate_statistics(results)

    if json_out:
        echo_json({"results": results, "statistics": stats})
        return

    table = Table(title=f"Ping: {host}", show_header=False, box=None)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Packets Sent", str(stats.packets_sent))
    table.add_row("Packets Received", str(stats.packets_received))

    loss_color = "green" if stats.packet_loss == 0 else "yellow" if stats.packet_loss < 50 else "red"
    table.add_row("Packet Loss", f"[{loss_color}]{stats.packet_loss:.1f}%[/{loss_color}]")

    if stats.packets_received:
        table.add_row("", "")
        table.add_row("Min RTT", f"{stats.min_ms:.2f} ms")
        table.add_row("Avg RTT", f"{stats.avg_ms:.2f} ms")
        table.add_row("Max RTT", f"{stats.max_ms:.2f} ms")
        table.add_row("Std Dev", f"{stats.stddev_ms:.2f} ms")

    console.print()
    console.print(table)


@click.command("trace")
@click.argument("host")
@click.option("-m", "--max-hops", default=30, help="Maximum number of hops")
@click.option("-q", "--queries", default=3, help="Queries per hop")
@click.option("-t", "--timeout", default=5.0, help="Timeout per query in seconds")
@click.option("-6", "--ipv6", is_flag=True, help="Use IPv6")
@click.option("--no-resolve", is_flag=True, help="Don't resolve hop hostnames")
@click.option("--json", "json_out", is_flag=True, help="Output as JSON")
@click.pass_context
def trace_cmd(
    ctx: click.Context,
    host: str,
    max_hops: int,
    queries: int,
    timeout: float,
    ipv6: bool,
    no_resolve: bool,
    json_out: bool,
):
    """Trace the route to a host.

    Examples:
        nettracex trace example.com
        nettracex trace 8.8.8.8 -m 20 --no-resolve
    """
    console = Console()

    async def run(cancel):
        opts = TraceOptions(
            max_hops=max_hops, queries=queries, timeout=timeout,
            ipv6=ipv6, resolve_hostnames=not no_resolve,
        )
        stream = await get_client(ctx).traceroute(host, opts, cancel)
        if json_out:
            return await stream.collect()

        console.print(f"[cyan]Tracing route to {host}, {max_hops} hops max[/cyan]")
        hops = []
        async for hop in stream:
            hops.append(hop)
            console.print("  ".join(_hop_row(hop)))
        return hops

    try:
        hops = run_cancellable(run)
    except NetTraceError as e:
        fail(console, e)

    summary = summarize_trace(hops)

    if json_out:
        echo_json({"hops": hops, "summary": summary})
        return

    if not hops:
        console.print(f"[yellow]No route found to {host}[/yellow]")
        return

    status = "[green]reached[/green]" if summary.reached else "[yellow]not reached[/yellow]"
    console.print(
        f"\n[cyan]Hops:[/cyan] {summary.total_hops}  "
        f"[cyan]Completed:[/cyan] {summary.completed_hops}  "
        f"[cyan]Timeouts:[/cyan] {summary.timeout_hops} ({summary.success_rate:.1f}% success)"
    )
    if summary.completed_hops:
        console.print(
            f"[cyan]RTT:[/cyan] min {summary.min_rtt_ms:.2f} ms  "
            f"avg {summary.avg_rtt_ms:.2f} ms  max {summary.max_rtt_ms:.2f} ms"
        )
    console.print(
        f"[cyan]Final hop:[/cyan] {summary.final_hop}  "
        f"[cyan]Destination:[/cyan] {summary.destination or '*'} ({status})"
    )
