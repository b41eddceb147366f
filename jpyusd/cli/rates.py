"""CLI for inspecting the live rate and converting amounts from a terminal."""

from __future__ import annotations

from concurrent.futures import TimeoutError as FutureTimeoutError

import click
from flask import current_app
from flask.cli import AppGroup

from jpyusd.services.conversion import ConversionParseError, convert_text, format_date, is_valid_amount_input
from jpyusd.services.currencies import Direction, parse_direction
from jpyusd.services.orchestrator import Orchestrator, RateState

rates_cli = AppGroup("rates", help="Exchange rate commands.")

DIRECTION_CHOICE = click.Choice([d.value for d in Direction], case_sensitive=False)


def _resolve_state(direction: str) -> RateState:
    orchestrator: Orchestrator = current_app.extensions["fx_orchestrator"]
    timeout = float(current_app.config.get("RATES_WAIT_TIMEOUT_SECONDS", 15))
    orchestrator.get_rate(direction)
    try:
        return orchestrator.wait(timeout=timeout)
    except FutureTimeoutError as exc:
        raise click.ClickException(
            f"Timed out after {timeout:g}s waiting for the exchange rate."
        ) from exc


@rates_cli.command("show")
@click.option("--direction", type=DIRECTION_CHOICE, default="JPY_TO_USD", show_default=True)
def show_rate(direction: str) -> None:
    """Fetch and print the current rate for a direction."""

    state = _resolve_state(direction)
    if state.rate is None:
        raise click.ClickException(state.error or "Exchange rate is not available.")

    parsed = parse_direction(direction)
    click.echo(f"1 {parsed.source.value} = {state.rate} {parsed.target.value}")
    click.echo(f"Source: {state.provider} ({state.source.value if state.source else 'unknown'})")
    click.echo(f"Last updated: {format_date(state.last_updated)}")


@rates_cli.command("convert")
@click.argument("amount")
@click.option("--direction", type=DIRECTION_CHOICE, default="JPY_TO_USD", show_default=True)
def convert_amount(amount: str, direction: str) -> None:
    """Convert AMOUNT in the direction's source currency."""

    parsed = parse_direction(direction)
    if not is_valid_amount_input(amount, parsed.source):
        raise click.BadParameter(f"'{amount}' is not a valid {parsed.source.value} amount.")

    state = _resolve_state(direction)
    if state.rate is None:
        raise click.ClickException(state.error or "Exchange rate is not available.")

    try:
        result = convert_text(amount, state.rate, parsed)
    except ConversionParseError as exc:
        raise click.BadParameter(exc.message) from exc

    click.echo(f"{result.formatted_amount} = {result.formatted_converted}")
