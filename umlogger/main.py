"""Command line entry point."""

from __future__ import annotations

import logging
from typing import Optional

import typer

from umlogger.core import AppSettings, ShutdownToken
from umlogger.core.errors import MeterError, ShutdownRequested
from umlogger.core.formatter import token_help
from umlogger.logging_config import configure_logging
from umlogger.serial import DeviceTransport, PortDiscovery, SerialPortHandler, Session
from umlogger.version import APP_NAME, DESCRIPTION, __version__

logger = logging.getLogger(__name__)

app = typer.Typer(
    help=DESCRIPTION,
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
)

MONITOR_HELP = (
    "Poll the meter and print one formatted line per sample. Press ctrl-c to quit.\n\n"
    "Format supports the following tokens:\n\n"
    + token_help().replace("\n", "\n\n")
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"{APP_NAME} {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """Entry point for the CLI."""


def _resolve_settings(**overrides) -> AppSettings:
    settings = AppSettings.load()
    for name, value in overrides.items():
        if value is not None:
            setattr(settings, name, value)
    try:
        settings.validate()
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    return settings


@app.command("monitor", help=MONITOR_HELP)
def monitor_command(
    device: Optional[str] = typer.Option(None, "--device", "-d", help="Serial device of the meter."),
    template: Optional[str] = typer.Option(None, "--format", "-f", help="Output format template."),
    interval: Optional[float] = typer.Option(None, "--interval", "-i", help="Sampling interval in seconds."),
    baud: Optional[int] = typer.Option(None, "--baud", "-b", help="Serial baud rate."),
    clear: Optional[bool] = typer.Option(
        None,
        "--clear/--no-clear",
        help="Clear the accumulated sums before sampling.",
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Diagnostic log level."),
) -> None:
    settings = _resolve_settings(
        device=device,
        format=template,
        interval=interval,
        baud=baud,
        clear_on_start=clear,
        log_level=log_level.upper() if log_level else None,
    )
    configure_logging(settings.log_level, force=True)
    logger.debug("Settings: %s", settings)

    cancel = ShutdownToken()
    cancel.install_signal_handlers()
    try:
        with Session(
            settings.device,
            settings.format,
            settings.interval,
            baud=settings.baud,
            cancel=cancel,
            emit=lambda line: typer.echo(line, nl=False),
            handler_factory=SerialPortHandler,
        ) as session:
            if settings.clear_on_start:
                session.clear_sums()
            session.run()
    except ShutdownRequested:
        logger.info("Interrupted before sampling started")
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except ConnectionError as e:
        logger.error("Failed to open serial port: %s", e, extra={"device": settings.device})
        raise typer.Exit(code=1)
    except MeterError as e:
        logger.error("%s", e, extra={"device": settings.device})
        raise typer.Exit(code=1)
    finally:
        cancel.restore_signal_handlers()


@app.command("clear")
def clear_command(
    device: Optional[str] = typer.Option(None, "--device", "-d", help="Serial device of the meter."),
    baud: Optional[int] = typer.Option(None, "--baud", "-b", help="Serial baud rate."),
) -> None:
    """Clear the meter's accumulated charge and energy sums."""
    settings = _resolve_settings(device=device, baud=baud)
    configure_logging(settings.log_level, force=True)

    try:
        with SerialPortHandler(settings.device, settings.baud) as handler:
            DeviceTransport(handler).clear_sums()
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return
    except ConnectionError as e:
        logger.error("Failed to open serial port: %s", e, extra={"device": settings.device})
        raise typer.Exit(code=1)
    except MeterError as e:
        logger.error("%s", e, extra={"device": settings.device})
        raise typer.Exit(code=1)
    typer.echo(f"Cleared accumulated sums on {settings.device}")


@app.command("ports")
def ports_command(
    show_all: bool = typer.Option(False, "--all", "-a", help="List every serial port, not only likely meters."),
) -> None:
    """List serial ports the meter may be attached to."""
    ports = PortDiscovery.get_ports(show_all=show_all)
    if not ports:
        typer.echo("No serial ports found.", err=True)
        return
    for name, description in ports:
        typer.echo(f"{name}\t{description}")


def run() -> None:
    app()


if __name__ == '__main__':
    run()
