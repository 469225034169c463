"""
NetTraceX command-line entry point.
"""

import click
from rich.console import Console

from nettracex import __version__
from nettracex.config import get_config
from nettracex.diag.cli import ping_cmd, trace_cmd
from nettracex.dns.cli import dns_cmd
from nettracex.errors import NetTraceError
from nettracex.logging_config import configure_logging
from nettracex.tls.cli import ssl_cmd
from nettracex.whois.cli import whois_cmd


@click.group()
@click.version_option(__version__, prog_name="nettracex")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--log-file", type=click.Path(dir_okay=False), help="Also write logs to this file")
@click.pass_context
def main(ctx: click.Context, debug: bool, log_file: str | None):
    """NetTraceX network diagnostics."""
    obj = ctx.ensure_object(dict)
    try:
        config = obj.get("config") or get_config()
    except NetTraceError as e:
        Console().print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)
    obj["config"] = config

    configure_logging(config.logging, debug=debug, log_file=log_file)


main.add_command(ping_cmd)
main.add_command(trace_cmd)
main.add_command(dns_cmd)
main.add_command(whois_cmd)
main.add_command(ssl_cmd)


if __name__ == "__main__":
    main()
