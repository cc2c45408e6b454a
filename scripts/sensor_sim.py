"""
Stand-in for the external motion-sensing application.

Serves a WebSocket on the sensor port, drives the right wrist along a sweep
across the field, optionally sends `startGame`, and logs the telemetry the
game sends back.
"""

from __future__ import annotations

import argparse
import logging
import math
import threading
import time
from collections import Counter

import orjson
from websockets.exceptions import ConnectionClosed
from websockets.sync.server import serve

logger = logging.getLogger("sensor_sim")


def _log_inbound(ws, counts: Counter) -> None:
    try:
        for raw in ws:
            try:
                msg = orjson.loads(raw)
            except orjson.JSONDecodeError:
                logger.warning("Unparseable telemetry: %r", raw[:80])
                continue
            mtype = msg.get("type", "?")
            counts[mtype] += 1
            if mtype != "trackingUpdate":
                logger.info("<- %s %s", mtype, {k: v for k, v in msg.items() if k != "type"})
    except ConnectionClosed:
        pass


def main() -> int:
    ap = argparse.ArgumentParser(description="Fake external wrist sensor for motionpop.")
    ap.add_argument("--host", default="localhost")
    ap.add_argument("--port", type=int, default=7000)
    ap.add_argument("--width", type=int, default=1280)
    ap.add_argument("--height", type=int, default=720)
    ap.add_argument("--rate", type=float, default=30.0, help="Samples per second")
    ap.add_argument("--start-after", type=float, default=1.0, help="Seconds before sending startGame (<0 disables)")
    args = ap.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    def handler(ws) -> None:
        logger.info("Game connected")
        counts: Counter = Counter()
        reader = threading.Thread(target=_log_inbound, args=(ws, counts), daemon=True)
        reader.start()

        ws.send(orjson.dumps({"type": "config", "data": {"useExternalSensors": True}}).decode())
        t0 = time.monotonic()
        started = args.start_after < 0
        period = 1.0 / max(1.0, args.rate)
        try:
            while reader.is_alive():
                t = time.monotonic() - t0
                if not started and t >= args.start_after:
                    ws.send(orjson.dumps({"type": "startGame"}).decode())
                    started = True
                x = args.width * (0.5 + 0.4 * math.sin(t * 1.3))
                y = args.height * (0.45 + 0.3 * math.sin(t * 0.7))
                msg = {"type": "setWrist", "data": {"wrist": "right", "x": x, "y": y, "active": True}}
                ws.send(orjson.dumps(msg).decode())
                time.sleep(period)
        except ConnectionClosed:
            pass
        logger.info("Game disconnected; telemetry received: %s", dict(counts))

    with serve(handler, args.host, args.port) as server:
        logger.info("Sensor simulator listening on ws://%s:%d", args.host, args.port)
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
