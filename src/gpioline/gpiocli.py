"""gpioline command line."""

from __future__ import annotations

import logging
import sys
import time
from collections.abc import Callable, Coroutine
from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import Annotated, Any

import anyio
import typer
from pydantic import ValidationError

from gpioline.asyncio_ import asyncio_run, handle_signals
from gpioline.config import LineConfig, LineOptions, LoggerConfig
from gpioline.const import GPIO_ROOT_ENV, GPIO_ROOT_PATH
from gpioline.exceptions import GpioLineError
from gpioline.line import Gpio
from gpioline.logger import configure_logger, setup_logging
from gpioline.poller import EpollPoller
from gpioline.sysfs import SysfsPaths, read_attribute, unexport
from gpioline.version import __version__
from gpioline.watch import PollerFactory

_LOGGER = logging.getLogger(__name__)


class DirectionChoice(str, Enum):
    IN = "in"
    OUT = "out"
    HIGH = "high"
    LOW = "low"


class EdgeChoice(str, Enum):
    NONE = "none"
    RISING = "rising"
    FALLING = "falling"
    BOTH = "both"


app = typer.Typer(help="Sysfs GPIO line tool.")

PinArgument = Annotated[int, typer.Argument(min=0, help="Linux GPIO number")]
RootOption = Annotated[
    Path,
    typer.Option(
        envvar=GPIO_ROOT_ENV,
        help="GPIO sysfs control directory",
    ),
]
DebugOption = Annotated[
    int,
    typer.Option("-d", "--debug", count=True, help="Enable debug logging"),
]
ActiveLowOption = Annotated[
    bool, typer.Option("--active-low", help="Invert the logical value")
]
LogOption = Annotated[
    list[str] | None,
    typer.Option(
        "--log",
        help="Logger level as name=level, or a bare level for the root logger",
    ),
]


def _run(handler: Callable[..., Coroutine[Any, Any, Any]], **kwargs: object) -> Any:
    failed: list[BaseException] = []
    result = None
    try:
        result = asyncio_run(handler, **kwargs)
    except* (GpioLineError, OSError) as eg:
        failed.extend(eg.exceptions)
    if failed:
        for err in failed:
            _LOGGER.error("%s", err)
        raise typer.Exit(1)
    return result


def _logger_config(values: list[str] | None) -> LoggerConfig | None:
    if not values:
        return None
    default = None
    logs: dict[str, str] = {}
    for value in values:
        name, _, level = value.rpartition("=")
        if name:
            logs[name] = level.lower()
        else:
            default = level.lower()
    try:
        return LoggerConfig(default=default, logs=logs)
    except ValidationError as err:
        raise typer.BadParameter(str(err), param_hint="--log") from err


def _prepare(debug: int, log: list[str] | None = None) -> None:
    setup_logging(debug_level=debug)
    configure_logger(debug=debug, log_config=_logger_config(log))


@app.command()
def info(
    pin: PinArgument,
    root: RootOption = Path(GPIO_ROOT_PATH),
    debug: DebugOption = 0,
    log: LogOption = None,
) -> None:
    """Show the configuration of an exported line."""
    _prepare(debug, log)
    paths = SysfsPaths(pin=pin, root=root)
    if not paths.line_dir.exists():
        typer.echo(f"gpio{pin} is not exported", err=True)
        raise typer.Exit(1)
    for path in (paths.direction, paths.edge, paths.active_low, paths.value):
        try:
            value = read_attribute(path)
        except OSError:
            value = "-"
        typer.echo(f"{path.name}: {value}")


async def _read(config: LineConfig, root: Path) -> int:
    async with Gpio.create(config, root=root) as line:
        return await line.read()


@app.command()
def read(
    pin: PinArgument,
    direction: Annotated[
        DirectionChoice, typer.Option(help="Direction to configure")
    ] = DirectionChoice.IN,
    active_low: ActiveLowOption = False,
    root: RootOption = Path(GPIO_ROOT_PATH),
    debug: DebugOption = 0,
    log: LogOption = None,
) -> None:
    """Read the logical value of a line. The line is unexported afterwards."""
    _prepare(debug, log)
    config = LineConfig(
        pin=pin,
        direction=direction.value,
        options=LineOptions(active_low=active_low),
    )
    typer.echo(_run(_read, config=config, root=root))


async def _write(config: LineConfig, root: Path, value: int, hold: float) -> None:
    async with Gpio.create(config, root=root) as line:
        await line.write(value)
        if hold > 0:
            await anyio.sleep(hold)


@app.command()
def write(
    pin: PinArgument,
    value: Annotated[int, typer.Argument(min=0, max=1, help="0 or 1")],
    hold: Annotated[
        float, typer.Option(help="Seconds to keep the line before releasing it")
    ] = 0.0,
    active_low: ActiveLowOption = False,
    root: RootOption = Path(GPIO_ROOT_PATH),
    debug: DebugOption = 0,
    log: LogOption = None,
) -> None:
    """Drive an output line. The line is unexported afterwards."""
    _prepare(debug, log)
    config = LineConfig(
        pin=pin, direction="out", options=LineOptions(active_low=active_low)
    )
    _run(_write, config=config, root=root, value=value, hold=hold)


async def _watch(
    config: LineConfig,
    root: Path,
    count: int,
    poller_factory: PollerFactory = EpollPoller,
) -> None:
    async with anyio.create_task_group() as tg:
        tg.start_soon(handle_signals, "Signal received")
        async with Gpio.create(
            config, root=root, poller_factory=poller_factory
        ) as line:
            done = anyio.Event()
            errors: list[BaseException] = []
            seen = 0

            def on_interrupt(error: BaseException | None, value: int | None) -> None:
                nonlocal seen
                if error is not None:
                    errors.append(error)
                    done.set()
                    return
                seen += 1
                typer.echo(f"{time.time():.3f} gpio{config.pin} {value}")
                if count and seen >= count:
                    done.set()

            line.watch(on_interrupt)
            await done.wait()
            line.unwatch(on_interrupt)
        tg.cancel_scope.cancel()
    if errors:
        raise errors[0]


@app.command()
def watch(
    pin: PinArgument,
    edge: Annotated[EdgeChoice, typer.Option(help="Interrupt edge")] = EdgeChoice.BOTH,
    debounce: Annotated[
        int, typer.Option(min=0, help="Software debounce in milliseconds")
    ] = 0,
    count: Annotated[
        int, typer.Option(min=0, help="Stop after this many interrupts, 0 is forever")
    ] = 0,
    active_low: ActiveLowOption = False,
    root: RootOption = Path(GPIO_ROOT_PATH),
    debug: DebugOption = 0,
    log: LogOption = None,
) -> None:
    """Print the value of an input line on every interrupt."""
    _prepare(debug, log)
    config = LineConfig(
        pin=pin,
        direction="in",
        edge=edge.value,
        options=LineOptions(
            debounce_timeout=timedelta(milliseconds=debounce),
            active_low=active_low,
        ),
    )
    _run(_watch, config=config, root=root, count=count)


async def _bench(
    config: LineConfig,
    root: Path,
    loops: int,
    poller_factory: PollerFactory = EpollPoller,
) -> float:
    async with Gpio.create(
        config, root=root, poller_factory=poller_factory
    ) as line:
        start = time.perf_counter()
        for _ in range(loops):
            await line.write(1)
            await line.write(0)
        elapsed = time.perf_counter() - start
    return loops / elapsed if elapsed else 0.0


@app.command()
def bench(
    pin: PinArgument,
    loops: Annotated[int, typer.Option(min=1, help="High/low cycles")] = 4000,
    root: RootOption = Path(GPIO_ROOT_PATH),
    debug: DebugOption = 0,
    log: LogOption = None,
) -> None:
    """Measure the asynchronous write toggle frequency of an output line."""
    _prepare(debug, log)
    config = LineConfig(pin=pin, direction="out")
    frequency = _run(_bench, config=config, root=root, loops=loops)
    typer.echo(f"async frequency = {frequency / 1000:.3f}KHz")


@app.command("unexport")
def unexport_command(
    pin: PinArgument,
    root: RootOption = Path(GPIO_ROOT_PATH),
    debug: DebugOption = 0,
    log: LogOption = None,
) -> None:
    """Ask the kernel to unexport a line."""
    _prepare(debug, log)
    if not unexport(SysfsPaths(pin=pin, root=root)):
        typer.echo(f"gpio{pin} unexport rejected", err=True)
        raise typer.Exit(1)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
) -> None:
    """Sysfs GPIO line tool."""
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)


def main() -> int:
    """Start gpioline with typer."""
    try:
        app()
        return 0
    except typer.Exit as e:
        return e.exit_code if e.exit_code is not None else 0


if __name__ == "__main__":
    sys.exit(main())
