"""
Helpers shared by the feature CLIs.
"""

import asyncio
import json
import signal
from typing import Any, Awaitable, Callable, TypeVar

import click
from rich.console import Console

from nettracex.cancel import CancelSignal
from nettracex.client import DiagnosticClient
from nettracex.config import get_config
from nettracex.errors import TrackingErrorHandler
from nettracex.export import to_jsonable
from nettracex.logging_config import StructuredLogger, get_logger

T = TypeVar("T")


def get_client(ctx: click.Context) -> DiagnosticClient:
    """Client stored on the click context, built from the environment on first use."""
    obj = ctx.ensure_object(dict)
    if obj.get("client") is None:
        config = obj.get("config") or get_config()
        logger = StructuredLogger(get_logger("nettracex.client"))
        obj["client"] = DiagnosticClient(config.network, TrackingErrorHandler(logger), logger)
    return obj["client"]


def run_cancellable(operation: Callable[[CancelSignal], Awaitable[T]]) -> T:
    """Run an operation on a fresh event loop; Ctrl-C fires its CancelSignal."""

    async def runner() -> T:
        cancel = CancelSignal()
        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, cancel.cancel)
            installed = True
        except (NotImplementedError, RuntimeError, ValueError):
            # Not supported on this platform or outside the main thread
            installed = False
        try:
            return await operation(cancel)
        finally:
            if installed:
                loop.remove_signal_handler(signal.SIGINT)

    return asyncio.run(runner())


def fail(console: Console, err: Exception) -> None:
    console.print(f"[red]Error:[/red] {err}")
    raise SystemExit(1)


def echo_json(data: Any) -> None:
    click.echo(json.dumps(to_jsonable(data), indent=2))
