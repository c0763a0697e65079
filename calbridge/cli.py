"""
CalBridge CLI

Usage:
    calbridge health
    calbridge list 2026-02-16T00:00:00Z 2026-02-16T23:59:59Z
    calbridge create --subject "Team Standup" --start 2026-02-17T09:00:00Z --end 2026-02-17T09:30:00Z
    calbridge update EVENT_ID --location "Google Meet"
    calbridge delete EVENT_ID

On first run a browser opens for Gmail authorization; the token is cached
in token.json afterwards.
"""
import asyncio
import json
import sys
from typing import Any, Awaitable, Callable, Dict, Optional

import click
from rich.console import Console
from rich.markup import escape

from .client import CalendarEmailClient
from .exceptions import CalBridgeError
from .protocol import CorrelatedResponse, ResponseStatus
from .utils.config import load_config
from .utils.logger import configure_logging

console = Console()
err_console = Console(stderr=True)

ClientCall = Callable[[CalendarEmailClient], Awaitable[CorrelatedResponse]]


async def _run_call(config_path: Optional[str], debug: bool, call: ClientCall) -> CorrelatedResponse:
    config = load_config(config_path)
    if not debug:
        configure_logging(config.logging.level, config.logging.file)
    async with CalendarEmailClient(config) as client:
        return await call(client)


def _execute(ctx: click.Context, call: ClientCall) -> None:
    """Run one client call and print the response as JSON."""
    try:
        response = asyncio.run(
            _run_call(ctx.obj.get("config_path"), ctx.obj.get("debug", False), call)
        )
    except CalBridgeError as e:
        err_console.print(f"[bold red]API Error {escape(f'[{e.code}]')}:[/] {escape(e.message)}")
        if e.correlation_id:
            err_console.print(f"   Request ID: {e.correlation_id}")
        sys.exit(2)

    console.print_json(json.dumps(response.to_dict(), default=str))

    if response.status == ResponseStatus.ERROR:
        sys.exit(1)


def _event_fields(**fields: Any) -> Dict[str, Any]:
    return {k: v for k, v in fields.items() if v is not None}


@click.group()
@click.option('--config', 'config_path', type=click.Path(dir_okay=False), default=None,
              help='Path to calbridge.yaml')
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], debug: bool):
    """Calendar API calls over an email request/response bus."""
    configure_logging("DEBUG" if debug else "WARNING")
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["debug"] = debug


@cli.command()
@click.pass_context
def health(ctx: click.Context):
    """Check that the backend answers."""
    _execute(ctx, lambda client: client.health_check())


@cli.command(name='list')
@click.argument('start')
@click.argument('end')
@click.pass_context
def list_events(ctx: click.Context, start: str, end: str):
    """List events between START and END (ISO 8601)."""
    _execute(ctx, lambda client: client.list_events(start, end))


@cli.command()
@click.option('--subject', required=True)
@click.option('--start', required=True, help='ISO 8601 start')
@click.option('--end', required=True, help='ISO 8601 end')
@click.option('--location', default=None)
@click.option('--body', default=None)
@click.pass_context
def create(ctx: click.Context, subject: str, start: str, end: str,
           location: Optional[str], body: Optional[str]):
    """Create an event."""
    data = _event_fields(subject=subject, start=start, end=end, location=location, body=body)
    _execute(ctx, lambda client: client.create_event(data))


@cli.command()
@click.argument('event_id')
@click.option('--subject', default=None)
@click.option('--start', default=None)
@click.option('--end', default=None)
@click.option('--location', default=None)
@click.option('--body', default=None)
@click.pass_context
def update(ctx: click.Context, event_id: str, subject: Optional[str], start: Optional[str],
           end: Optional[str], location: Optional[str], body: Optional[str]):
    """Update fields of event EVENT_ID."""
    data = _event_fields(id=event_id, subject=subject, start=start, end=end,
                         location=location, body=body)
    _execute(ctx, lambda client: client.update_event(data))


@cli.command()
@click.argument('event_id')
@click.pass_context
def delete(ctx: click.Context, event_id: str):
    """Delete event EVENT_ID."""
    _execute(ctx, lambda client: client.delete_event(event_id))


def main():
    cli(obj={})


if __name__ == '__main__':
    main()
