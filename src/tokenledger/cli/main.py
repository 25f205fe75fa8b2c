#!/usr/bin/env python3
"""
tokenledger CLI - drive the token chaincode against a local world state

Commands:
- init: instantiate the token
- invoke: call any chaincode operation
- state: list the committed world state
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any, Dict, List, Optional

import click
from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from tokenledger import __version__
from tokenledger.chaincode import ChaincodeRuntime, TokenChaincode
from tokenledger.chaincode.response import ChaincodeResponse
from tokenledger.core import composite_key, config
from tokenledger.core.config import VALID_LOG_LEVELS
from tokenledger.core.events import EventHub, TransferEvent
from tokenledger.core.ledger_exceptions import DecodeError, TokenLedgerError
from tokenledger.core.logging_config import setup_logging
from tokenledger.core.transaction_context import ChaincodeEvent
from tokenledger.database.storage_manager import SQLiteStateBackend

logger = logging.getLogger(__name__)
console = Console()

EXIT_FAILURE = 1
EXIT_NOT_FOUND = 2


def _handle_cli_error(exc: Exception, exit_code: int = EXIT_FAILURE) -> None:
    """Centralized CLI error handler for consistent messaging/exit codes."""
    logger.error("CLI error: %s", exc, exc_info=True)
    console.print(f"[bold red]Error:[/] {exc}")
    sys.exit(exit_code)


def _event_to_dict(event: ChaincodeEvent) -> Dict[str, Any]:
    body: Dict[str, Any] = {"tx_id": event.tx_id, "event_name": event.event_name}
    if event.event_name == TransferEvent.EVENT_NAME:
        try:
            transfer = TransferEvent.from_payload(event.payload)
            body["payload"] = {
                "sender": transfer.sender,
                "recipient": transfer.recipient,
                "amount": transfer.amount,
            }
            return body
        except DecodeError:
            pass
    body["payload"] = event.payload.decode("utf-8", errors="replace")
    return body


def _display_key(key: str) -> str:
    if composite_key.is_composite_key(key):
        try:
            namespace, parts = composite_key.split_composite_key(key)
        except DecodeError:
            return repr(key)
        return f"{namespace}({', '.join(parts)})"
    return key


def _run(ctx: click.Context, call) -> None:
    """Run one transaction, render the outcome and set the exit code."""
    runtime: ChaincodeRuntime = ctx.obj["runtime"]
    events: List[ChaincodeEvent] = []
    handle = runtime.event_hub.subscribe(EventHub.WILDCARD, events.append)
    try:
        response: ChaincodeResponse = call(runtime)
    except TokenLedgerError as exc:
        _handle_cli_error(exc)
        return
    finally:
        runtime.event_hub.unsubscribe(handle)

    if ctx.obj["json_output"]:
        body = response.to_dict()
        body["events"] = [_event_to_dict(event) for event in events]
        click.echo(json.dumps(body, indent=2))
    else:
        _print_response(response, events)

    if response.not_found:
        ctx.exit(EXIT_NOT_FOUND)
    if not response.ok:
        ctx.exit(EXIT_FAILURE)


def _print_response(response: ChaincodeResponse, events: List[ChaincodeEvent]) -> None:
    if response.ok:
        console.print(f"[bold green]OK[/] ({response.status})")
        if response.payload:
            console.print(response.payload.decode("utf-8", errors="replace"), markup=False)
    else:
        code = response.error_code.value if response.error_code else "ERROR"
        console.print(f"[bold red]Failed[/] ({response.status} {code})")
        console.print(response.message, markup=False)

    for event in events:
        payload = _event_to_dict(event)["payload"]
        rendered = json.dumps(payload) if isinstance(payload, dict) else payload
        console.print(f"[bold cyan]Event[/] {event.event_name}: ", end="")
        console.print(rendered, markup=False)


@click.group()
@click.version_option(__version__, prog_name="tokenledger")
@click.option(
    "--state-db",
    envvar="TOKENLEDGER_STATE_DB",
    default=config.STATE_DB_PATH,
    show_default=True,
    type=click.Path(dir_okay=False),
    help="SQLite world state file",
)
@click.option("--json-output", is_flag=True, help="Output raw JSON")
@click.option(
    "--log-level",
    type=click.Choice(VALID_LOG_LEVELS, case_sensitive=False),
    default=config.LOG_LEVEL,
    show_default=True,
    help="Logging level",
)
@click.pass_context
def cli(ctx: click.Context, state_db: str, json_output: bool, log_level: str):
    """
    tokenledger - fungible token chaincode runner

    Every command runs as one transaction against the world state in
    --state-db: it is committed on success and discarded on failure.
    """
    ctx.ensure_object(dict)
    setup_logging(
        name="tokenledger",
        log_file=config.LOG_FILE or None,
        level=log_level,
        environment=config.ENVIRONMENT,
    )
    try:
        backend = SQLiteStateBackend(state_db)
    except TokenLedgerError as exc:
        _handle_cli_error(exc)
        return
    ctx.call_on_close(backend.close)

    ctx.obj["backend"] = backend
    ctx.obj["runtime"] = ChaincodeRuntime(TokenChaincode(), backend)
    ctx.obj["json_output"] = json_output


@cli.command("init")
@click.argument("name")
@click.argument("symbol")
@click.argument("owner")
@click.argument("amount")
@click.pass_context
def init_token(ctx: click.Context, name: str, symbol: str, owner: str, amount: str):
    """
    Instantiate the token and credit AMOUNT to OWNER.

    Example:
        tokenledger init GoldCoin GLD alice 1000
    """
    _run(ctx, lambda runtime: runtime.instantiate([name, symbol, owner, amount]))


@cli.command("invoke", context_settings={"ignore_unknown_options": True})
@click.argument("function")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def invoke(ctx: click.Context, function: str, args: tuple):
    """
    Call chaincode FUNCTION with positional ARGS.

    Example:
        tokenledger invoke transfer alice bob 300
        tokenledger invoke balanceOf bob
    """
    _run(ctx, lambda runtime: runtime.invoke(function, list(args)))


@cli.command("state")
@click.option("--prefix", default="", help="Only keys starting with this prefix")
@click.pass_context
def show_state(ctx: click.Context, prefix: str):
    """List committed world-state entries in key order."""
    backend: SQLiteStateBackend = ctx.obj["backend"]
    try:
        entries = [(key, value) for key, value in backend.items() if key.startswith(prefix)]
    except TokenLedgerError as exc:
        _handle_cli_error(exc)
        return

    if ctx.obj["json_output"]:
        click.echo(
            json.dumps(
                [
                    {"key": _display_key(key), "value": value.decode("utf-8", errors="replace")}
                    for key, value in entries
                ],
                indent=2,
            )
        )
        return

    if not entries:
        console.print("[yellow]World state is empty[/]")
        return

    table = Table(title="World State", box=box.ROUNDED)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in entries:
        table.add_row(Text(_display_key(key)), Text(value.decode("utf-8", errors="replace")))
    console.print(table)


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point"""
    try:
        cli(args=argv, obj={})
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/]")
        sys.exit(130)


if __name__ == "__main__":
    main()
