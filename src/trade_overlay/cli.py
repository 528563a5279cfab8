"""CLI entry point for the trade overlay."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

import click

from .core.enums import Direction, OperationType


def _decimal(ctx: click.Context, param: click.Parameter, value: str | None) -> Decimal | None:
    if value is None:
        return None
    try:
        return Decimal(value)
    except InvalidOperation:
        raise click.BadParameter(f"not a number: {value!r}") from None


@click.group()
def main() -> None:
    """Interactive trade-level overlay."""


@main.command()
@click.option("--config", default="configs/overlay.toml", help="Config file path")
@click.option(
    "--direction",
    type=click.Choice([d.value for d in Direction]),
    default=None,
    help="Initial trade direction (default from config)",
)
@click.option("--price", default="1.10000", callback=_decimal, help="Market price to show the tool at")
@click.option("--store", "store_path", default=None, help="JSONL config store (default: in-memory)")
def demo(config: str, direction: str | None, price: Decimal, store_path: str | None) -> None:
    """Run a scripted session: show, drag SL, flip via menu, confirm."""
    from .core.config import load_settings
    from .core.errors import ConfigError
    from .demo import run_demo
    from .observability.logger import new_session_id, setup_logging

    try:
        settings = load_settings(config)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    setup_logging(settings.observability.log_level, settings.observability.log_format)
    new_session_id()

    result = run_demo(
        settings,
        price=price,
        direction=Direction(direction) if direction else None,
        store_path=store_path,
        echo=click.echo,
    )
    if not result.signals:
        raise click.ClickException("Demo session emitted no signal")
    for signal in result.signals:
        click.echo(signal.to_json())


@main.group()
def signal() -> None:
    """Build a trade signal and print its wire JSON."""


@signal.command("open")
@click.option(
    "--operation",
    type=click.Choice([o.value for o in OperationType], case_sensitive=False),
    required=True,
    help="BUY or SELL",
)
@click.option("--stop-pips", required=True, callback=_decimal, help="Stop distance in pips")
@click.option("--instrument", default="EURUSD", help="Instrument symbol")
def open_signal(operation: str, stop_pips: Decimal, instrument: str) -> None:
    """Build an OPEN signal."""
    from .core.errors import SignalConstructionError
    from .core.events import Signal

    try:
        sig = Signal.open_for(OperationType(operation.upper()), stop_pips, instrument)
    except SignalConstructionError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(sig.to_json())


@signal.command("close")
@click.option("--instrument", default="EURUSD", help="Instrument symbol")
def close_signal(instrument: str) -> None:
    """Build a CLOSE signal."""
    from .core.errors import SignalConstructionError
    from .core.events import Signal

    try:
        sig = Signal.close_for(instrument)
    except SignalConstructionError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(sig.to_json())


if __name__ == "__main__":
    main()
