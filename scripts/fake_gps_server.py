#!/usr/bin/env python3
"""Local stand-in for a phone-side GPS line server.

Answers every ``Give me GPS`` line with ``GPS:<lat>,<lon>`` while walking a
small circle, so a gpsdrain session has something to poll::

    python scripts/fake_gps_server.py --port 2768
    gpsdrain --subnet 127.0.0 --start 1 --end 1 --port 2768
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import math
import sys
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from gpsdrain._protocol import REQUEST_LINE  # noqa: E402

_LOG = logging.getLogger("fake_gps_server")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve fake GPS fixes over the gpsdrain line protocol.")
    parser.add_argument("--host", default="0.0.0.0", help="Address to bind.")
    parser.add_argument("--port", type=int, default=2768, help="TCP port to listen on.")
    parser.add_argument("--lat", type=float, default=37.421998, help="Centre latitude.")
    parser.add_argument("--lon", type=float, default=-122.084, help="Centre longitude.")
    parser.add_argument("--radius", type=float, default=0.0005, help="Circle radius in degrees.")
    parser.add_argument("--tag", default="GPS", help="Tag placed before the colon.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logs.")
    return parser.parse_args()


def _make_handler(args: argparse.Namespace):
    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        peer = writer.get_extra_info("peername")
        _LOG.info("Client connected: %s", peer)
        step = 0
        try:
            while True:
                line = await reader.readline()
                if not line:
                    break
                request = line.decode("ascii", errors="replace").strip()
                if request != REQUEST_LINE:
                    _LOG.debug("Ignoring %r from %s", request, peer)
                    continue
                angle = step * math.pi / 30
                lat = args.lat + args.radius * math.sin(angle)
                lon = args.lon + args.radius * math.cos(angle)
                step += 1
                writer.write(f"{args.tag}:{lat:.6f},{lon:.6f}\n".encode("ascii"))
                await writer.drain()
        except ConnectionError:
            _LOG.debug("Client %s dropped", peer, exc_info=True)
        finally:
            writer.close()
            _LOG.info("Client disconnected: %s", peer)

    return handle


async def _serve(args: argparse.Namespace) -> None:
    server = await asyncio.start_server(_make_handler(args), args.host, args.port)
    _LOG.info("Listening on %s:%s", args.host, args.port)
    async with server:
        await server.serve_forever()


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        asyncio.run(_serve(args))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
