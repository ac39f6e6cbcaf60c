"""Command line entry point: scan, poll, and print fixes as JSON lines."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
import sys

from gpsdrain.config import DrainConfig
from gpsdrain.controller import SessionController
from gpsdrain.exceptions import DrainConfigError
from gpsdrain.session import DrainSession
from gpsdrain.sinks import JsonLinesLocationSink, LoggingLogSink

_LOG = logging.getLogger("gpsdrain")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="gpsdrain",
        description="Find a GPS line server on the local subnet and stream its fixes as JSON lines.",
    )
    parser.add_argument("--subnet", help="Subnet prefix to scan, e.g. 192.168.1 (default: detected).")
    parser.add_argument("--start", type=int, dest="start_octet", help="First host octet to probe.")
    parser.add_argument("--end", type=int, dest="end_octet", help="Last host octet to probe.")
    parser.add_argument("--port", type=int, help="GPS server TCP port.")
    parser.add_argument(
        "--connect-timeout",
        type=float,
        help="Seconds allowed per connect attempt.",
    )
    parser.add_argument(
        "--interval",
        type=float,
        dest="poll_interval",
        help="Seconds between a response and the next request.",
    )
    parser.add_argument(
        "--retry-delay",
        type=float,
        default=0.0,
        help="Start a new session this many seconds after one ends (0 = run once).",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args(argv)


def _log_summary(session: DrainSession | None) -> None:
    if session is None:
        return
    if session.peer is None:
        _LOG.info("Session ended without finding a server (%.1fs)", session.age)
        return
    stats = session.stats
    if stats is None:
        _LOG.info("Session with %s stopped after %.1fs", session.peer, session.age)
        return
    _LOG.info(
        "Session with %s ended after %.1fs: ticks=%d fixes=%d malformed=%d injection_failures=%d",
        session.peer,
        session.age,
        stats.ticks,
        stats.fixes,
        stats.malformed,
        stats.injection_failures,
    )


async def _run(config: DrainConfig, subnet: str | None, retry_delay: float) -> int:
    address_range = config.address_range(subnet)
    _LOG.info("Scanning %s", address_range)

    controller = SessionController(
        JsonLinesLocationSink(sys.stdout),
        LoggingLogSink(),
        config=config,
    )
    stopping = asyncio.Event()
    stop_tasks: list[asyncio.Task[None]] = []
    loop = asyncio.get_running_loop()

    def request_stop() -> None:
        if stopping.is_set():
            return
        stopping.set()
        stop_tasks.append(loop.create_task(controller.stop()))

    signals: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, request_stop)
            signals.append(sig)

    session: DrainSession | None = None
    try:
        while True:
            controller.start(address_range, location_access=True)
            session = await controller.wait()
            _log_summary(session)
            if stopping.is_set() or retry_delay <= 0:
                break
            _LOG.info("Scanning again in %.1fs", retry_delay)
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(stopping.wait(), retry_delay)
            if stopping.is_set():
                break
    finally:
        for sig in signals:
            loop.remove_signal_handler(sig)
        await asyncio.gather(*stop_tasks)

    if session is not None and session.peer is None and not stopping.is_set():
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config = DrainConfig.from_env(
            port=args.port,
            start_octet=args.start_octet,
            end_octet=args.end_octet,
            connect_timeout=args.connect_timeout,
            poll_interval=args.poll_interval,
        )
        return asyncio.run(_run(config, args.subnet, args.retry_delay))
    except DrainConfigError as exc:
        print(f"gpsdrain: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
