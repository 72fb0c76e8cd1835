"""Tests for the line handle against a fake sysfs tree."""

from __future__ import annotations

import os
from datetime import timedelta
from pathlib import Path

import anyio
import pytest

from gpioline import Gpio, LineConfig, LineOptions, LineState
from gpioline.exceptions import HandshakeTimeout, InvalidArgument, StateError

pytestmark = pytest.mark.anyio


async def test_configure_and_check_output(
    gpio_root: Path, line_dir: Path, poller_factory
) -> None:
    config = LineConfig(pin=17, direction="out")
    async with Gpio.create(
        config, root=gpio_root, poller_factory=poller_factory
    ) as line:
        assert line.get_direction() == "out"
        line.write_sync(1)
        assert line.read_sync() == 1
        line.write_sync(0)
        assert line.read_sync() == 0
        await line.write(1)
        assert await line.read() == 1
        line.write_sync(0)
        assert line.read_sync() == 0
        line.unexport()
        assert line.state is LineState.UNEXPORTED

    assert (gpio_root / "unexport").read_text() == "17"


async def test_constructor_exports_missing_line(gpio_root: Path, poller_factory) -> None:
    async with anyio.create_task_group() as tg:
        line = Gpio(
            tg=tg,
            config=LineConfig(
                pin=17,
                direction="in",
                options=LineOptions(export_timeout=timedelta(milliseconds=50)),
            ),
            root=gpio_root,
            poller_factory=poller_factory,
        )
        assert (gpio_root / "export").read_text() == "17"
        with pytest.raises(HandshakeTimeout):
            await line.init()
        assert line.state is LineState.UNINITIALIZED


async def test_constructor_skips_export_when_present(
    gpio_root: Path, line_dir: Path, poller_factory
) -> None:
    async with anyio.create_task_group() as tg:
        Gpio(
            tg=tg,
            config=LineConfig(pin=17, direction="in"),
            root=gpio_root,
            poller_factory=poller_factory,
        )
    assert not (gpio_root / "export").exists()


async def test_init_applies_configuration(
    gpio_root: Path, line_dir: Path, poller_factory
) -> None:
    config = LineConfig(
        pin=17,
        direction="high",
        edge="falling",
        options=LineOptions(active_low=True),
    )
    async with Gpio.create(
        config, root=gpio_root, poller_factory=poller_factory
    ) as line:
        assert line.get_direction() == "high"
        assert line.get_edge() == "falling"
        assert line.get_active_low() is True
        assert [result.attribute for result in line.config_results] == [
            "direction",
            "edge",
            "active_low",
        ]
        assert all(result.ok for result in line.config_results)


async def test_init_tolerates_rejected_attribute(
    gpio_root: Path, make_line_dir, poller_factory
) -> None:
    line_dir = make_line_dir(edge=False)
    # A directory can't be written to, like an edge the controller rejects.
    (line_dir / "edge").mkdir()
    config = LineConfig(pin=17, direction="in", edge="both")
    async with Gpio.create(
        config, root=gpio_root, poller_factory=poller_factory
    ) as line:
        assert line.state is LineState.READY
        failed = [result for result in line.config_results if not result.ok]
        assert [result.attribute for result in failed] == ["edge"]
        assert isinstance(failed[0].error, OSError)
        assert line.read_sync() == 0


async def test_init_twice_is_noop(
    gpio_root: Path, line_dir: Path, poller_factory, pollers
) -> None:
    async with Gpio.create(
        LineConfig(pin=17, direction="in"),
        root=gpio_root,
        poller_factory=poller_factory,
    ) as line:
        results = line.config_results
        watch_subsystem = line.watch_subsystem
        await line.init()
        assert line.state is LineState.READY
        assert line.config_results is results
        assert line.watch_subsystem is watch_subsystem
        assert len(pollers) == 1


async def test_read_reflects_value_file(
    gpio_root: Path, line_dir: Path, poller_factory
) -> None:
    async with Gpio.create(
        LineConfig(pin=17, direction="in"),
        root=gpio_root,
        poller_factory=poller_factory,
    ) as line:
        assert line.read_sync() == 0
        (line_dir / "value").write_text("1\n")
        assert line.read_sync() == 1
        assert await line.read() == 1


async def test_write_rejects_other_values(
    gpio_root: Path, line_dir: Path, poller_factory
) -> None:
    async with Gpio.create(
        LineConfig(pin=17, direction="out"),
        root=gpio_root,
        poller_factory=poller_factory,
    ) as line:
        with pytest.raises(InvalidArgument):
            line.write_sync(2)
        line.write_sync(True)
        assert (line_dir / "value").read_bytes()[:1] == b"1"


async def test_attribute_setters(gpio_root: Path, line_dir: Path, poller_factory) -> None:
    async with Gpio.create(
        LineConfig(pin=17, direction="in"),
        root=gpio_root,
        poller_factory=poller_factory,
    ) as line:
        line.set_direction("out")
        assert line.get_direction() == "out"
        line.set_edge("rising")
        assert line.get_edge() == "rising"
        line.set_active_low(True)
        assert line.get_active_low() is True
        line.set_active_low(False)
        assert (line_dir / "active_low").read_text() == "0"
        with pytest.raises(InvalidArgument):
            line.set_direction("sideways")  # type: ignore[arg-type]
        with pytest.raises(InvalidArgument):
            line.set_edge("up")  # type: ignore[arg-type]
        assert line.get_direction() == "out"


async def test_options(gpio_root: Path, line_dir: Path, poller_factory) -> None:
    config = LineConfig(
        pin=17, direction="in", options=LineOptions(debounce_timeout=25)
    )
    async with Gpio.create(
        config, root=gpio_root, poller_factory=poller_factory
    ) as line:
        assert line.options().debounce_timeout == timedelta(milliseconds=25)
        assert line.options().active_low is False


async def test_operations_require_ready(
    gpio_root: Path, line_dir: Path, poller_factory
) -> None:
    async with anyio.create_task_group() as tg:
        line = Gpio(
            tg=tg,
            config=LineConfig(pin=17, direction="in"),
            root=gpio_root,
            poller_factory=poller_factory,
        )
        with pytest.raises(StateError):
            line.read_sync()
        with pytest.raises(StateError):
            line.watch(lambda error, value: None)
        # Attribute access only needs the line directory.
        assert line.get_direction() == "in"


async def test_unexport_once(gpio_root: Path, line_dir: Path, poller_factory, pollers) -> None:
    async with Gpio.create(
        LineConfig(pin=17, direction="in"),
        root=gpio_root,
        poller_factory=poller_factory,
    ) as line:
        assert line.watch_subsystem is not None
        fd = line.watch_subsystem.fd
        line.unexport()
        with pytest.raises(OSError):
            os.fstat(fd)
        assert pollers[0].closed
        with pytest.raises(StateError):
            line.unexport()
        with pytest.raises(StateError):
            line.read_sync()
        with pytest.raises(StateError):
            line.get_direction()


async def test_unexport_rejection_tolerated(
    gpio_root: Path, line_dir: Path, poller_factory
) -> None:
    # Platforms managing export themselves refuse the request.
    (gpio_root / "unexport").mkdir()
    async with Gpio.create(
        LineConfig(pin=17, direction="in"),
        root=gpio_root,
        poller_factory=poller_factory,
    ) as line:
        line.unexport()
        assert line.state is LineState.UNEXPORTED


async def test_unexport_without_init(gpio_root: Path, line_dir: Path, poller_factory) -> None:
    async with anyio.create_task_group() as tg:
        line = Gpio(
            tg=tg,
            config=LineConfig(pin=17, direction="in"),
            root=gpio_root,
            poller_factory=poller_factory,
        )
        line.unexport()
    assert line.state is LineState.UNEXPORTED
    assert (gpio_root / "unexport").read_text() == "17"


async def test_init_failure_after_open_releases_descriptor(
    gpio_root: Path, line_dir: Path, poller_factory
) -> None:
    def broken_factory(callback):
        raise OSError(24, "Too many open files")

    async with anyio.create_task_group() as tg:
        line = Gpio(
            tg=tg,
            config=LineConfig(pin=17, direction="in", edge="both"),
            root=gpio_root,
            poller_factory=broken_factory,
        )
        open_fds = len(os.listdir("/proc/self/fd"))
        with pytest.raises(OSError):
            await line.init()
        assert line.state is LineState.UNINITIALIZED
        assert line.watch_subsystem is None
        assert len(os.listdir("/proc/self/fd")) == open_fds

        line.poller_factory = poller_factory
        await line.init()
        assert line.state is LineState.READY
        line.unexport()
